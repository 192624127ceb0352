"""
Filename Handling

Splitting client filenames into a sanitized bare-name and extension, and
the list of filenames the server reserves for itself.
"""

import re
from typing import Tuple

from markupsafe import Markup, escape


MAX_FILENAME_LENGTH = 255

# Sensitive default filenames that an upload must never occupy
FILENAME_BLACKLIST = frozenset({
    "favicon.ico",
    "index.htm",
    "index.html",
    "index.php",
    "robots.txt",
    "crossdomain.xml",
})

COMPRESSED_EXTENSIONS = frozenset({".bz2", ".gz", ".xz"})
ARCHIVE_EXTENSIONS = frozenset({".tar"})

_BARE_RE = re.compile(r"[^A-Za-z0-9\-]")
_EXT_RE = re.compile(r"[^A-Za-z0-9\-\.]")


def strip_markup(filename: str) -> str:
    """
    Remove markup from a client filename.

    Tags and comments are stripped. striptags() unescapes entities, so the
    remaining text is escaped again to keep encoded markup inert.

    Args:
        filename: Raw client filename

    Returns:
        Filename with markup removed and the rest HTML-escaped
    """
    return str(escape(Markup(filename).striptags()))


def _last_extension(name: str) -> str:
    """Return the suffix from the last dot of the final path segment."""
    dot = name.rfind(".")
    if dot < 0 or dot < name.rfind("/"):
        return ""
    return name[dot:]


def split_filename(filename: str) -> Tuple[str, str]:
    """
    Split a filename into sanitized bare-name and extension.

    A ``.tar`` followed by a compression suffix is kept as one extension.

    Examples:
        >>> split_filename("test.jpg.gz")
        ('testjpg', 'gz')
        >>> split_filename("test.tar.gz")
        ('test', 'tar.gz')

    Args:
        filename: Client filename (already stripped of markup)

    Returns:
        Tuple of (bare_name, extension), extension without leading dot
    """
    filename = filename.strip().lower()

    extension = _last_extension(filename)
    barename = filename[:len(filename) - len(extension)]
    if extension in COMPRESSED_EXTENSIONS:
        inner = _last_extension(barename)
        if inner in ARCHIVE_EXTENSIONS:
            barename = barename[:len(barename) - len(inner)]
            extension = inner + extension

    extension = _EXT_RE.sub("", extension).strip("-.")
    barename = _BARE_RE.sub("", barename).strip("-")

    return barename, extension


def is_blacklisted(key: str) -> bool:
    """Check a storage key against the reserved filenames (case-insensitive)."""
    return key.lower() in FILENAME_BLACKLIST
