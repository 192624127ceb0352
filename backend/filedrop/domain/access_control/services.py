"""
Access Key Gate

Decides whether a request may view a protected object and tells the HTTP
layer which cookies to set or clear as a result.
"""

import posixpath
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional


ACCESS_KEY_HEADER_NAME = "Filedrop-Access-Key"
ACCESS_KEY_COOKIE_NAME = ACCESS_KEY_HEADER_NAME
ACCESS_KEY_PARAM_NAME = "access_key"

# Expiry used to make clients drop a cookie
COOKIE_CLEAR_EXPIRES = datetime.fromtimestamp(0, tz=timezone.utc)


class AccessKeySource(Enum):
    """Where the credential that decided an access check came from."""

    NONE = "none"
    COOKIE = "cookie"
    HEADER = "header"
    FORM = "form"
    QUERY = "query"


@dataclass(frozen=True)
class Credentials:
    """
    Access key values extracted from a request.

    None or empty string means the source did not supply a value.
    """
    cookie: Optional[str] = None
    header: Optional[str] = None
    form: Optional[str] = None
    query: Optional[str] = None

    def in_precedence_order(self):
        """Yield (source, value) pairs in the order they are consulted."""
        yield AccessKeySource.COOKIE, self.cookie
        yield AccessKeySource.HEADER, self.header
        yield AccessKeySource.FORM, self.form
        yield AccessKeySource.QUERY, self.query


@dataclass(frozen=True)
class CookieInstruction:
    """
    Cookie the HTTP layer must set on the response.

    Attributes:
        name: Cookie name
        value: Cookie value (empty when clearing)
        paths: Paths the cookie is scoped to, one Set-Cookie per path
        expires: Absolute expiry, None for a session cookie
    """
    name: str
    value: str
    paths: List[str] = field(default_factory=list)
    expires: Optional[datetime] = None

    @property
    def clears(self) -> bool:
        """True when this instruction removes the cookie."""
        return self.value == "" and self.expires == COOKIE_CLEAR_EXPIRES


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of an access check."""
    authorized: bool
    source: AccessKeySource
    cookie: Optional[CookieInstruction] = None


@dataclass(frozen=True)
class AccessCookiePolicy:
    """
    Cookie settings for successful access checks.

    Attributes:
        site_path: Path prefix the site is mounted at (e.g. '/')
        selif_path: Path segment of the direct-download alias (e.g. 'selif')
        cookie_expiry: Cookie lifetime in seconds, 0 for session cookies
    """
    site_path: str = "/"
    selif_path: str = "selif"
    cookie_expiry: int = 0


class AccessKeyGate:
    """
    Domain service checking access keys against request credentials.

    Sources are consulted in strict order (cookie, header, form field,
    query parameter). The first source that supplies a value decides the
    outcome; later sources are never looked at.
    """

    def __init__(self, policy: Optional[AccessCookiePolicy] = None):
        """
        Initialize the gate.

        Args:
            policy: Cookie scoping and lifetime settings
        """
        self.policy = policy or AccessCookiePolicy()

    def check(
        self,
        key: str,
        access_key: str,
        credentials: Credentials,
        now: Optional[datetime] = None,
    ) -> AccessDecision:
        """
        Check request credentials against an object's access key.

        Args:
            key: Storage key of the object (used for cookie paths)
            access_key: The object's access key, empty for public objects
            credentials: Values extracted from the request
            now: Reference time for cookie expiry

        Returns:
            AccessDecision with the consulted source and, when needed,
            a cookie to set (success) or clear (failed cookie attempt)
        """
        if not access_key:
            return AccessDecision(authorized=True, source=AccessKeySource.NONE)

        for source, value in credentials.in_precedence_order():
            if not value:
                continue
            if secrets.compare_digest(value.encode(), access_key.encode()):
                return AccessDecision(
                    authorized=True,
                    source=source,
                    cookie=self._grant_cookie(key, access_key, now),
                )
            cookie = None
            if source is AccessKeySource.COOKIE:
                # Drop the stale cookie so another source can succeed next time
                cookie = self._clear_cookie(key)
            return AccessDecision(authorized=False, source=source, cookie=cookie)

        return AccessDecision(authorized=False, source=AccessKeySource.NONE)

    def cookie_paths(self, key: str) -> List[str]:
        """
        Paths an access cookie for ``key`` is scoped to.

        Args:
            key: Storage key

        Returns:
            The display path and the direct-download alias path
        """
        site_path = self.policy.site_path or "/"
        selif_path = self.policy.selif_path.strip("/")
        return [
            posixpath.join(site_path, key),
            posixpath.join(site_path, selif_path, key),
        ]

    def _grant_cookie(
        self, key: str, access_key: str, now: Optional[datetime]
    ) -> CookieInstruction:
        expires = None
        if self.policy.cookie_expiry > 0:
            if now is None:
                now = datetime.now(timezone.utc)
            expires = now + timedelta(seconds=self.policy.cookie_expiry)
        return CookieInstruction(
            name=ACCESS_KEY_COOKIE_NAME,
            value=access_key,
            paths=self.cookie_paths(key),
            expires=expires,
        )

    def _clear_cookie(self, key: str) -> CookieInstruction:
        return CookieInstruction(
            name=ACCESS_KEY_COOKIE_NAME,
            value="",
            paths=self.cookie_paths(key),
            expires=COOKIE_CLEAR_EXPIRES,
        )
