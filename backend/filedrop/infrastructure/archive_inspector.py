"""
Archive Inspector

Lists the entries of tar (plain, gzip or bzip2 wrapped), zip and rar
archives so they can be shown next to the file. Listing needs random
access, so it runs against the stored copy on the local backend only.
"""

import logging
import tarfile
import zipfile
from typing import BinaryIO, List

import rarfile

logger = logging.getLogger(__name__)


TAR_MIMETYPES = frozenset({"application/x-tar"})
GZIP_MIMETYPES = frozenset({"application/gzip", "application/x-gzip"})
BZIP2_MIMETYPES = frozenset({"application/x-bzip", "application/bzip2", "application/x-bzip2"})
ZIP_MIMETYPES = frozenset({"application/zip", "application/x-zip", "application/x-zip-compressed"})
RAR_MIMETYPES = frozenset({"application/x-rar", "application/x-rar-compressed", "application/vnd.rar"})

ARCHIVE_MIMETYPES = TAR_MIMETYPES | GZIP_MIMETYPES | BZIP2_MIMETYPES | ZIP_MIMETYPES | RAR_MIMETYPES


def _list_tar(fileobj: BinaryIO, mode: str) -> List[str]:
    entries = []
    with tarfile.open(fileobj=fileobj, mode=mode) as archive:
        for member in archive:
            if member.isdir():
                entries.append(member.name + "/")
            elif member.isreg():
                entries.append(member.name)
    return entries


def _list_zip(fileobj: BinaryIO) -> List[str]:
    with zipfile.ZipFile(fileobj) as archive:
        return archive.namelist()


def _list_rar(fileobj: BinaryIO) -> List[str]:
    entries = []
    with rarfile.RarFile(fileobj) as archive:
        for info in archive.infolist():
            if info.is_dir():
                entries.append(info.filename.rstrip("/") + "/")
            else:
                entries.append(info.filename)
    return entries


def list_archive_entries(mimetype: str, fileobj: BinaryIO) -> List[str]:
    """
    List the entries of an archive.

    Gzip and bzip2 content is assumed to wrap a tar archive. Anything that
    fails to parse yields an empty list: archive listings are informational
    and must not fail an upload.

    Args:
        mimetype: Detected mimetype of the content
        fileobj: Seekable stream positioned anywhere

    Returns:
        Sorted entry names, empty for non-archives or unreadable archives
    """
    if mimetype not in ARCHIVE_MIMETYPES:
        return []

    fileobj.seek(0)
    try:
        if mimetype in TAR_MIMETYPES:
            entries = _list_tar(fileobj, "r:")
        elif mimetype in GZIP_MIMETYPES:
            entries = _list_tar(fileobj, "r:gz")
        elif mimetype in BZIP2_MIMETYPES:
            entries = _list_tar(fileobj, "r:bz2")
        elif mimetype in ZIP_MIMETYPES:
            entries = _list_zip(fileobj)
        else:
            entries = _list_rar(fileobj)
    except (tarfile.TarError, zipfile.BadZipFile, rarfile.Error, OSError, EOFError) as e:
        logger.debug(f"Could not list {mimetype} archive entries: {e}")
        return []
    finally:
        fileobj.seek(0)

    return sorted(entries)
