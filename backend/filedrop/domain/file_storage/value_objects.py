"""
File Storage Value Objects

Immutable value objects for upload descriptors and generated secrets.
"""

import secrets
import string
from dataclasses import dataclass
from typing import BinaryIO, Optional


SLUG_LENGTH = 10
SLUG_ALPHABET = string.ascii_lowercase + string.digits

DELETE_KEY_LENGTH = 30
DELETE_KEY_ALPHABET = string.ascii_letters + string.digits


def generate_slug() -> str:
    """
    Generate the random component of a storage key.

    Returns:
        SLUG_LENGTH characters from [a-z0-9]
    """
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(SLUG_LENGTH))


@dataclass(frozen=True)
class DeleteKey:
    """
    Value object representing a delete key.

    Generated keys are DELETE_KEY_LENGTH alphanumeric characters; keys
    supplied by clients are accepted as-is.
    """
    value: str

    @classmethod
    def generate(cls) -> "DeleteKey":
        """
        Generate a new random delete key.

        Returns:
            New DeleteKey instance
        """
        return cls("".join(secrets.choice(DELETE_KEY_ALPHABET) for _ in range(DELETE_KEY_LENGTH)))

    def matches(self, candidate: Optional[str]) -> bool:
        """Constant-time comparison against a client-supplied key."""
        if not candidate:
            return False
        return secrets.compare_digest(self.value.encode(), candidate.encode())

    def __str__(self) -> str:
        return self.value


@dataclass
class UploadRequest:
    """
    Upload descriptor handed to the upload pipeline.

    Attributes:
        src: Unseekable byte source
        filename: Client-declared filename (may be empty)
        size: Declared size hint, None when unknown (not authoritative)
        expiry: Requested expiry in seconds, None when not supplied
        delete_key: Client-chosen delete key, empty to generate one
        access_key: Access key protecting the object, empty for public
        cli: Whether the request came from a scripted client
    """
    src: BinaryIO
    filename: str = ""
    size: Optional[int] = None
    expiry: Optional[int] = None
    delete_key: str = ""
    access_key: str = ""
    cli: bool = False
