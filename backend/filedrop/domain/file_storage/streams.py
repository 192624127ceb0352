"""
Stream Wrappers

Readers used by the upload pipeline on top of unseekable sources.
"""

import io
from typing import BinaryIO

from ..errors import FileTooLargeError


def read_window(src: BinaryIO, size: int) -> bytes:
    """
    Read up to ``size`` bytes, retrying short reads until EOF.

    Unseekable sources (sockets, pipes) may return fewer bytes than asked
    for without being exhausted.

    Args:
        src: Source stream
        size: Maximum number of bytes to read

    Returns:
        The bytes read, shorter than size only at EOF
    """
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = src.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


class PrefixedReader(io.RawIOBase):
    """
    Present an already-read prefix followed by the rest of a stream.

    Used to hand back the bytes consumed for sniffing so that the backend
    sees the content exactly once, in order.
    """

    def __init__(self, prefix: bytes, src: BinaryIO):
        self._prefix = memoryview(prefix)
        self._offset = 0
        self._src = src

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        view = memoryview(buffer).cast("B")
        if self._offset < len(self._prefix):
            n = min(len(view), len(self._prefix) - self._offset)
            view[:n] = self._prefix[self._offset:self._offset + n]
            self._offset += n
            return n

        data = self._src.read(len(view))
        if not data:
            return 0
        n = len(data)
        view[:n] = data
        return n


class BoundedReader(io.RawIOBase):
    """
    Enforce a maximum size on an inbound stream.

    Raises FileTooLargeError as soon as more than ``limit`` bytes have been
    read, so oversize uploads are aborted mid-transfer regardless of the
    size the client declared.
    """

    def __init__(self, src: BinaryIO, limit: int):
        self._src = src
        self._limit = limit
        self._read = 0

    @property
    def bytes_read(self) -> int:
        return self._read

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        view = memoryview(buffer).cast("B")
        # Ask for one byte past the limit so overflow is detectable
        want = min(len(view), self._limit - self._read + 1)
        if want <= 0:
            want = 1
        data = self._src.read(want)
        if not data:
            return 0
        self._read += len(data)
        if self._read > self._limit:
            raise FileTooLargeError(
                f"Upload exceeds maximum size of {self._limit} bytes"
            )
        n = len(data)
        view[:n] = data
        return n
