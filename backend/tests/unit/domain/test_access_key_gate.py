"""
Unit tests for AccessKeyGate.

Tests credential precedence (cookie, header, form, query), the cookies the
gate asks the HTTP layer to set or clear, and cookie path scoping.
"""

from datetime import timedelta

import pytest

from filedrop.domain.access_control.services import (
    ACCESS_KEY_COOKIE_NAME,
    COOKIE_CLEAR_EXPIRES,
    AccessCookiePolicy,
    AccessKeyGate,
    AccessKeySource,
    Credentials,
)

from tests.fixtures import REFERENCE_NOW

KEY = "abcdefghij.txt"
SECRET = "s3cret"


@pytest.fixture
def gate():
    return AccessKeyGate(AccessCookiePolicy(site_path="/", selif_path="selif"))


@pytest.mark.unit
class TestPublicObjects:
    """Objects without an access key."""

    def test_always_authorized(self, gate):
        decision = gate.check(KEY, "", Credentials(header="anything"))

        assert decision.authorized
        assert decision.source is AccessKeySource.NONE
        assert decision.cookie is None


@pytest.mark.unit
class TestProtectedObjects:
    """Objects with an access key."""

    def test_no_credentials_denied(self, gate):
        decision = gate.check(KEY, SECRET, Credentials())

        assert not decision.authorized
        assert decision.source is AccessKeySource.NONE
        assert decision.cookie is None

    @pytest.mark.parametrize(
        "credentials,source",
        [
            (Credentials(cookie=SECRET), AccessKeySource.COOKIE),
            (Credentials(header=SECRET), AccessKeySource.HEADER),
            (Credentials(form=SECRET), AccessKeySource.FORM),
            (Credentials(query=SECRET), AccessKeySource.QUERY),
        ],
    )
    def test_each_source_can_authorize(self, gate, credentials, source):
        decision = gate.check(KEY, SECRET, credentials)

        assert decision.authorized
        assert decision.source is source

    def test_success_sets_cookie_on_both_paths(self, gate):
        decision = gate.check(KEY, SECRET, Credentials(query=SECRET))

        assert decision.cookie is not None
        assert decision.cookie.name == ACCESS_KEY_COOKIE_NAME
        assert decision.cookie.value == SECRET
        assert decision.cookie.paths == [f"/{KEY}", f"/selif/{KEY}"]
        assert decision.cookie.expires is None
        assert not decision.cookie.clears

    def test_first_supplied_source_decides(self, gate):
        """A wrong header is final even when the query parameter is right."""
        decision = gate.check(KEY, SECRET, Credentials(header="wrong", query=SECRET))

        assert not decision.authorized
        assert decision.source is AccessKeySource.HEADER
        assert decision.cookie is None

    def test_correct_cookie_wins_over_wrong_header(self, gate):
        decision = gate.check(KEY, SECRET, Credentials(cookie=SECRET, header="wrong"))

        assert decision.authorized
        assert decision.source is AccessKeySource.COOKIE
        assert decision.cookie is not None
        assert decision.cookie.value == SECRET
        assert not decision.cookie.clears

    def test_wrong_cookie_is_cleared(self, gate):
        """A stale cookie is cleared so that another source can succeed next time."""
        decision = gate.check(KEY, SECRET, Credentials(cookie="stale", header=SECRET))

        assert not decision.authorized
        assert decision.source is AccessKeySource.COOKIE
        assert decision.cookie.clears
        assert decision.cookie.value == ""
        assert decision.cookie.expires == COOKIE_CLEAR_EXPIRES
        assert decision.cookie.paths == [f"/{KEY}", f"/selif/{KEY}"]

    def test_empty_values_are_skipped(self, gate):
        decision = gate.check(KEY, SECRET, Credentials(cookie="", header=None, form=SECRET))

        assert decision.authorized
        assert decision.source is AccessKeySource.FORM


@pytest.mark.unit
class TestCookiePolicy:
    """Cookie scoping and lifetime."""

    def test_cookie_expiry_applied(self):
        gate = AccessKeyGate(AccessCookiePolicy(cookie_expiry=600))

        decision = gate.check(KEY, SECRET, Credentials(header=SECRET), now=REFERENCE_NOW)

        assert decision.cookie.expires == REFERENCE_NOW + timedelta(seconds=600)

    def test_paths_follow_site_and_selif_path(self):
        gate = AccessKeyGate(AccessCookiePolicy(site_path="/drop/", selif_path="/raw/"))

        assert gate.cookie_paths(KEY) == [f"/drop/{KEY}", f"/drop/raw/{KEY}"]

    def test_default_policy(self):
        assert AccessKeyGate().cookie_paths(KEY) == [f"/{KEY}", f"/selif/{KEY}"]
