"""
Upload Application Service

Turns an unseekable, size-bounded byte stream into a stored object with a
freshly allocated key.
"""

import logging
import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, FrozenSet, Iterable, Optional
from urllib.parse import unquote, urlparse

import httpx

from filedrop.domain.errors import (
    FileEmptyError,
    FilenameTooLongError,
    FileTooLargeError,
    ForbiddenExtensionError,
    ProhibitedFilenameError,
    RemoteFetchError,
)
from filedrop.domain.file_storage.entities import UploadResult
from filedrop.domain.file_storage.expiry import ExpiryPolicy, utcnow
from filedrop.domain.file_storage.filenames import (
    MAX_FILENAME_LENGTH,
    is_blacklisted,
    split_filename,
    strip_markup,
)
from filedrop.domain.file_storage.storage_repository import IStorageBackend
from filedrop.domain.file_storage.streams import BoundedReader, PrefixedReader, read_window
from filedrop.domain.file_storage.value_objects import DeleteKey, UploadRequest, generate_slug
from filedrop.infrastructure.content_inspector import (
    MIME_DETECT_LIMIT,
    detect_mimetype,
    extension_for_mimetype,
)

logger = logging.getLogger(__name__)

REMOTE_FETCH_TIMEOUT = 10.0


@dataclass(frozen=True)
class UploadPolicy:
    """
    Limits applied to every upload.

    Attributes:
        max_size: Maximum content size in bytes
        forbidden_extensions: Extensions (lower-case, no dot) that are refused
        expiry: Expiry defaults and maximum
    """
    max_size: int
    forbidden_extensions: FrozenSet[str] = field(default_factory=frozenset)
    expiry: ExpiryPolicy = field(default_factory=ExpiryPolicy)

    @classmethod
    def build(
        cls,
        max_size: int,
        forbidden_extensions: Iterable[str] = (),
        expiry: Optional[ExpiryPolicy] = None,
    ) -> "UploadPolicy":
        return cls(
            max_size=max_size,
            forbidden_extensions=frozenset(e.lower().lstrip(".") for e in forbidden_extensions),
            expiry=expiry or ExpiryPolicy(),
        )


class UploadService:
    """
    Application service for the upload pipeline.

    Validates the request, derives an extension (sniffing content when the
    filename has none), allocates a key and hands the stream to the backend.
    """

    def __init__(
        self,
        storage: IStorageBackend,
        policy: UploadPolicy,
        slug_factory: Callable[[], str] = generate_slug,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize UploadService.

        Args:
            storage: Storage backend receiving the content
            policy: Size, extension and expiry limits
            slug_factory: Source of random key slugs
            clock: Source of the current time
        """
        self.storage = storage
        self.policy = policy
        self.slug_factory = slug_factory
        self.clock = clock

    def process_upload(self, request: UploadRequest) -> UploadResult:
        """
        Run the upload pipeline.

        Args:
            request: Upload descriptor

        Returns:
            UploadResult with the allocated key and stored metadata

        Raises:
            FileTooLargeError: If the declared size exceeds the maximum
            FilenameTooLongError: If the filename exceeds 255 characters
            FileEmptyError: If the source yields no bytes
            ForbiddenExtensionError: If the extension is forbidden
            ProhibitedFilenameError: If the key is a reserved filename
            StorageError: Propagated unchanged from the backend
        """
        if request.size is not None and request.size > self.policy.max_size:
            raise FileTooLargeError(
                f"Declared size {request.size} exceeds maximum of {self.policy.max_size} bytes"
            )

        if len(request.filename) > MAX_FILENAME_LENGTH:
            raise FilenameTooLongError(
                f"Filename is {len(request.filename)} characters, maximum is {MAX_FILENAME_LENGTH}"
            )
        filename = strip_markup(request.filename)

        barename, extension = split_filename(filename)

        src = request.src
        if not extension:
            header = read_window(src, MIME_DETECT_LIMIT)
            if not header:
                raise FileEmptyError("Empty upload")
            extension = extension_for_mimetype(detect_mimetype(header))
            src = PrefixedReader(header, src)

        if extension in self.policy.forbidden_extensions:
            raise ForbiddenExtensionError(f"Extension '{extension}' is forbidden")

        key = self._allocate_key(extension)

        if is_blacklisted(key):
            raise ProhibitedFilenameError(f"Prohibited filename: {key}")

        expiry = self.policy.expiry.expiry_for(request.expiry, request.cli, self.clock())

        delete_key = request.delete_key or DeleteKey.generate().value

        original_name = filename if barename else key

        metadata = self.storage.put(
            key,
            original_name,
            src,
            expiry,
            delete_key,
            request.access_key,
        )

        logger.info(
            f"Stored upload {key} ({metadata.size} bytes, {metadata.mimetype}, "
            f"expires {'never' if expiry is None else expiry.isoformat()})"
        )
        return UploadResult(key=key, metadata=metadata)

    def _allocate_key(self, extension: str) -> str:
        # Best effort: another writer may take the key between exists() and put()
        while True:
            key = f"{self.slug_factory()}.{extension}"
            if not self.storage.exists(key):
                return key
            logger.debug(f"Key collision on {key}, retrying")

    def upload_from_url(
        self,
        url: str,
        delete_key: str = "",
        access_key: str = "",
        expiry: Optional[int] = None,
        client: Optional[httpx.Client] = None,
    ) -> UploadResult:
        """
        Fetch a remote URL and store its body as a new upload.

        The upload is named after the last segment of the URL path and uses
        the scripted-client expiry defaults.

        Args:
            url: Absolute http(s) URL
            delete_key: Client-chosen delete key, empty to generate one
            access_key: Access key protecting the object
            expiry: Requested expiry in seconds
            client: httpx client to use (tests)

        Returns:
            UploadResult

        Raises:
            RemoteFetchError: If the URL is invalid or cannot be retrieved
            FileTooLargeError: If the body exceeds the maximum size
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise RemoteFetchError(f"Unsupported URL: {url}")

        filename = posixpath.basename(unquote(parsed.path))

        owns_client = client is None
        if owns_client:
            client = httpx.Client(timeout=REMOTE_FETCH_TIMEOUT, follow_redirects=True)

        try:
            with client.stream("GET", url) as response:
                if response.status_code >= 400:
                    raise RemoteFetchError(
                        f"Remote server answered {response.status_code} for {url}"
                    )
                declared = response.headers.get("Content-Length")
                request = UploadRequest(
                    src=BoundedReader(_ResponseReader(response), self.policy.max_size),
                    filename=filename,
                    size=int(declared) if declared and declared.isdigit() else None,
                    expiry=expiry,
                    delete_key=delete_key,
                    access_key=access_key,
                    cli=True,
                )
                logger.info(f"Republishing remote file {url}")
                return self.process_upload(request)
        except httpx.HTTPError as e:
            raise RemoteFetchError(f"Could not retrieve {url}: {e}", e)
        finally:
            if owns_client:
                client.close()


class _ResponseReader:
    """Adapt a streamed httpx response to a read(n) interface."""

    def __init__(self, response: httpx.Response):
        self._chunks = response.iter_bytes()
        self._buffer = b""
        self._done = False

    def read(self, size: int = -1) -> bytes:
        while not self._done and (size < 0 or len(self._buffer) < size):
            try:
                self._buffer += next(self._chunks)
            except StopIteration:
                self._done = True
        if size < 0:
            data, self._buffer = self._buffer, b""
        else:
            data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data
