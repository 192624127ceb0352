"""
Application Settings

Reads FILEDROP_* environment variables into one immutable Settings object.
Components receive only the slices they need (expiry policy, upload policy,
cookie policy) rather than the whole object.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple
from urllib.parse import urlparse

from filedrop.domain.access_control.services import AccessCookiePolicy
from filedrop.domain.file_storage.expiry import ExpiryPolicy


ENV_PREFIX = "FILEDROP_"

DEFAULT_MAX_SIZE = 4 * 1024 * 1024 * 1024
DEFAULT_CONTENT_SECURITY_POLICY = (
    "default-src 'self'; img-src 'self' data:; style-src 'self' 'unsafe-inline'; "
    "frame-ancestors 'self';"
)
DEFAULT_FILE_CONTENT_SECURITY_POLICY = (
    "default-src 'none'; img-src 'self'; object-src 'self'; media-src 'self'; "
    "style-src 'self' 'unsafe-inline'; frame-ancestors 'self';"
)


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(ENV_PREFIX + name, default)


def _env_bool(name: str, default: bool = False) -> bool:
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int = 0) -> int:
    value = _env(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_float(name: str, default: float = 0.0) -> float:
    value = _env(name)
    if value is None or not value.strip():
        return default
    return float(value)


def _env_list(name: str, separator: str = ",") -> Tuple[str, ...]:
    value = _env(name, "")
    return tuple(item.strip() for item in value.split(separator) if item.strip())


def normalize_selif_path(selif_path: str) -> str:
    """Strip slashes from the direct-download segment, defaulting to 'selif'."""
    selif_path = (selif_path or "").strip("/")
    return selif_path or "selif"


def site_path_from_url(site_url: str) -> str:
    """Derive the mount path from the public site URL ('/' when unset)."""
    if not site_url:
        return "/"
    path = urlparse(site_url).path or "/"
    if not path.endswith("/"):
        path += "/"
    return path


@dataclass(frozen=True)
class Settings:
    """
    Immutable application configuration.

    Every field maps to FILEDROP_<FIELD_NAME_UPPERCASE> in the environment
    (see from_env for the exact names).
    """

    # Storage
    files_path: str = "files/"
    meta_path: str = "meta/"
    min_free_space_gb: float = 0.0
    s3_bucket: str = ""
    s3_region: str = ""
    s3_endpoint: str = ""
    s3_force_path_style: bool = False

    # Uploads
    max_size: int = DEFAULT_MAX_SIZE
    max_expiry: int = 0
    default_expiry: Optional[int] = None
    default_expiry_cli: int = 0
    forbidden_extensions: Tuple[str, ...] = field(default_factory=tuple)

    # HTTP surface
    site_url: str = ""
    selif_path: str = "selif"
    access_cookie_expiry: int = 0
    anyone_can_delete: bool = False
    allow_hotlink: bool = False
    no_direct_agents: bool = False
    content_security_policy: str = DEFAULT_CONTENT_SECURITY_POLICY
    file_content_security_policy: str = DEFAULT_FILE_CONTENT_SECURITY_POLICY
    referrer_policy: str = "same-origin"
    file_referrer_policy: str = "same-origin"
    x_frame_options: str = "SAMEORIGIN"
    add_headers: Tuple[str, ...] = field(default_factory=tuple)

    # Background cleanup
    cleanup_every_minutes: int = 0

    # Logging
    log_level: str = "INFO"
    no_logs: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build Settings from FILEDROP_* environment variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        default_expiry = _env("DEFAULT_EXPIRY")
        return cls(
            files_path=_env("FILES_PATH", "files/"),
            meta_path=_env("META_PATH", "meta/"),
            min_free_space_gb=_env_float("MIN_FREE_SPACE_GB", 0.0),
            s3_bucket=_env("S3_BUCKET", ""),
            s3_region=_env("S3_REGION", ""),
            s3_endpoint=_env("S3_ENDPOINT", ""),
            s3_force_path_style=_env_bool("S3_FORCE_PATH_STYLE"),
            max_size=_env_int("MAX_SIZE", DEFAULT_MAX_SIZE),
            max_expiry=_env_int("MAX_EXPIRY", 0),
            default_expiry=int(default_expiry) if default_expiry not in (None, "") else None,
            default_expiry_cli=_env_int("DEFAULT_EXPIRY_CLI", 0),
            forbidden_extensions=tuple(
                ext.lower().lstrip(".") for ext in _env_list("FORBIDDEN_EXTENSIONS")
            ),
            site_url=_env("SITE_URL", ""),
            selif_path=normalize_selif_path(_env("SELIF_PATH", "selif")),
            access_cookie_expiry=_env_int("ACCESS_COOKIE_EXPIRY", 0),
            anyone_can_delete=_env_bool("ANYONE_CAN_DELETE"),
            allow_hotlink=_env_bool("ALLOW_HOTLINK"),
            no_direct_agents=_env_bool("NO_DIRECT_AGENTS"),
            content_security_policy=_env(
                "CONTENT_SECURITY_POLICY", DEFAULT_CONTENT_SECURITY_POLICY
            ),
            file_content_security_policy=_env(
                "FILE_CONTENT_SECURITY_POLICY", DEFAULT_FILE_CONTENT_SECURITY_POLICY
            ),
            referrer_policy=_env("REFERRER_POLICY", "same-origin"),
            file_referrer_policy=_env("FILE_REFERRER_POLICY", "same-origin"),
            x_frame_options=_env("X_FRAME_OPTIONS", "SAMEORIGIN"),
            add_headers=_env_list("ADD_HEADERS", separator="\n"),
            cleanup_every_minutes=_env_int("CLEANUP_EVERY_MINUTES", 0),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            no_logs=_env_bool("NO_LOGS"),
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with some fields replaced (tests, embedding)."""
        return replace(self, **changes)

    @property
    def site_path(self) -> str:
        return site_path_from_url(self.site_url)

    @property
    def effective_default_expiry(self) -> int:
        """Default expiry in seconds; falls back to max_expiry when unset."""
        if self.default_expiry is None:
            return self.max_expiry
        return self.default_expiry

    def expiry_policy(self) -> ExpiryPolicy:
        return ExpiryPolicy(
            default_expiry=self.effective_default_expiry,
            default_expiry_cli=self.default_expiry_cli,
            max_expiry=self.max_expiry,
        )

    def cookie_policy(self) -> AccessCookiePolicy:
        return AccessCookiePolicy(
            site_path=self.site_path,
            selif_path=self.selif_path,
            cookie_expiry=self.access_cookie_expiry,
        )
