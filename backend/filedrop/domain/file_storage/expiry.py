"""
Expiry Model

Pure functions and policy objects for object expiry.

An object is either active or expired. Expired objects are reaped lazily
when accessed and by the periodic sweep. Objects without an expiry never
expire; in memory this is ``None`` and on disk the reserved epoch
``NEVER_EXPIRE_EPOCH``.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional


# Ordinary expiries are always ``now + positive seconds``, so a negative
# epoch can never collide with one (and stays distinct from epoch 0).
NEVER_EXPIRE_EPOCH = -1


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def is_expired(expiry: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """
    Check whether an expiry timestamp has passed.

    Args:
        expiry: Absolute expiry time, or None for "never expires"
        now: Reference time (defaults to the current UTC time)

    Returns:
        True if the object is expired, False while it is active
    """
    if expiry is None:
        return False
    if now is None:
        now = utcnow()
    return now >= expiry


def expiry_to_epoch(expiry: Optional[datetime]) -> int:
    """
    Encode an expiry for persistence.

    Args:
        expiry: Absolute expiry time, or None for "never expires"

    Returns:
        Integer epoch seconds, or NEVER_EXPIRE_EPOCH
    """
    if expiry is None:
        return NEVER_EXPIRE_EPOCH
    return int(expiry.timestamp())


def expiry_from_epoch(value: int) -> Optional[datetime]:
    """
    Decode a persisted expiry.

    Args:
        value: Integer epoch seconds or NEVER_EXPIRE_EPOCH

    Returns:
        Aware UTC datetime, or None for "never expires"

    Raises:
        ValueError: If value is negative but not the sentinel
    """
    value = int(value)
    if value == NEVER_EXPIRE_EPOCH:
        return None
    if value < 0:
        raise ValueError(f"Invalid expiry epoch: {value}")
    return datetime.fromtimestamp(value, tz=timezone.utc)


@dataclass(frozen=True)
class ExpiryPolicy:
    """
    Configured expiry limits, in seconds.

    Attributes:
        default_expiry: Expiry used when the caller gives none (0 = never)
        default_expiry_cli: Default for scripted clients, overrides
            default_expiry when greater than zero
        max_expiry: Upper bound for any expiry (0 = unbounded)
    """
    default_expiry: int = 0
    default_expiry_cli: int = 0
    max_expiry: int = 0

    def resolve(self, requested: Optional[int], cli: bool = False) -> int:
        """
        Compute the effective expiry duration for an upload.

        A missing, zero or negative request means "use the default", never
        "no expiry". The result is clamped to max_expiry when one is set, so
        zero (never) only survives when neither a default nor a maximum is
        configured.

        Args:
            requested: Seconds requested by the caller, None if not supplied
            cli: Whether the upload came from a scripted client

        Returns:
            Expiry duration in seconds, 0 meaning never
        """
        fallback = self.default_expiry
        if cli and self.default_expiry_cli > 0:
            fallback = self.default_expiry_cli

        if requested is None or requested <= 0:
            seconds = fallback
        else:
            seconds = requested

        if self.max_expiry > 0 and (seconds == 0 or seconds > self.max_expiry):
            seconds = self.max_expiry

        return seconds

    def expiry_for(
        self,
        requested: Optional[int],
        cli: bool = False,
        now: Optional[datetime] = None,
    ) -> Optional[datetime]:
        """
        Compute the absolute expiry timestamp for an upload.

        Args:
            requested: Seconds requested by the caller, None if not supplied
            cli: Whether the upload came from a scripted client
            now: Reference time (defaults to the current UTC time)

        Returns:
            Absolute expiry, or None when the object never expires
        """
        seconds = self.resolve(requested, cli)
        if seconds == 0:
            return None
        if now is None:
            now = utcnow()
        return now + timedelta(seconds=seconds)


def parse_expiry_seconds(value: Optional[str]) -> Optional[int]:
    """
    Parse an expiry duration supplied as text by a client.

    Non-integer input is treated as "not supplied" so that the configured
    default applies.

    Args:
        value: Raw header or form value

    Returns:
        Parsed seconds, or None
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None
