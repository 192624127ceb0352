"""
Content Inspector

Derives size, SHA-256 hash and mimetype from a content stream in a single
pass, optionally copying the bytes to a destination while doing so.

Mimetype detection looks at the leading MIME_DETECT_LIMIT bytes only and
uses libmagic (python-magic); the client's filename plays no part.
"""

import hashlib
import mimetypes
from dataclasses import dataclass
from typing import BinaryIO, Optional

import magic


# Leading bytes examined for mimetype detection (also the sniffing window
# used by the upload pipeline when a filename has no extension)
MIME_DETECT_LIMIT = 3072
CHUNK_SIZE = 64 * 1024

DEFAULT_MIMETYPE = "application/octet-stream"
DEFAULT_EXTENSION = "file"

# Preferred extensions where mimetypes.guess_extension is ambiguous or
# platform dependent
_EXTENSION_OVERRIDES = {
    "text/plain": "txt",
    "text/html": "html",
    "text/x-python": "py",
    "text/x-script.python": "py",
    "text/x-shellscript": "sh",
    "text/x-c": "c",
    "text/csv": "csv",
    "application/json": "json",
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "application/pdf": "pdf",
    "application/gzip": "gz",
    "application/x-gzip": "gz",
    "application/x-bzip2": "bz2",
    "application/x-xz": "xz",
    "application/x-tar": "tar",
    "application/zip": "zip",
    "application/x-rar": "rar",
    "application/vnd.rar": "rar",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "audio/mpeg": "mp3",
    "audio/ogg": "ogg",
    DEFAULT_MIMETYPE: DEFAULT_EXTENSION,
}


@dataclass(frozen=True)
class ContentSummary:
    """Facts derived from the content bytes of an upload."""
    size: int
    content_hash: str
    mimetype: str


def detect_mimetype(header: bytes) -> str:
    """
    Detect a mimetype from leading content bytes.

    Args:
        header: Up to MIME_DETECT_LIMIT leading bytes

    Returns:
        Detected mimetype, DEFAULT_MIMETYPE when nothing matches
    """
    if not header:
        return DEFAULT_MIMETYPE
    detected = magic.from_buffer(header[:MIME_DETECT_LIMIT], mime=True)
    return detected or DEFAULT_MIMETYPE


def extension_for_mimetype(mimetype: str) -> str:
    """
    Map a mimetype to a canonical extension.

    Args:
        mimetype: Detected mimetype

    Returns:
        Extension without leading dot, DEFAULT_EXTENSION if none is known
    """
    if mimetype in _EXTENSION_OVERRIDES:
        return _EXTENSION_OVERRIDES[mimetype]
    guessed = mimetypes.guess_extension(mimetype, strict=False)
    if not guessed or len(guessed) < 2:
        return DEFAULT_EXTENSION
    return guessed[1:]


class ContentInspector:
    """
    Incremental hasher and sniffer.

    Feed chunks with update(); summary() returns the result.
    """

    def __init__(self):
        self._hasher = hashlib.sha256()
        self._header = bytearray()
        self._size = 0

    def update(self, chunk: bytes) -> None:
        self._hasher.update(chunk)
        self._size += len(chunk)
        missing = MIME_DETECT_LIMIT - len(self._header)
        if missing > 0:
            self._header.extend(chunk[:missing])

    @property
    def size(self) -> int:
        return self._size

    def summary(self) -> ContentSummary:
        return ContentSummary(
            size=self._size,
            content_hash=self._hasher.hexdigest(),
            mimetype=detect_mimetype(bytes(self._header)),
        )


def copy_and_inspect(src: BinaryIO, dst: Optional[BinaryIO] = None) -> ContentSummary:
    """
    Read a stream to the end, inspecting and optionally copying it.

    Args:
        src: Source stream, read sequentially
        dst: Optional destination the bytes are written to

    Returns:
        ContentSummary for every byte read

    Raises:
        OSError: On read or write failures
    """
    inspector = ContentInspector()
    while True:
        chunk = src.read(CHUNK_SIZE)
        if not chunk:
            break
        inspector.update(chunk)
        if dst is not None:
            dst.write(chunk)
    return inspector.summary()
