"""Filesystem-backed file providers and wildcard file discovery.

Purpose
-------
Implement the :class:`lib_wildcard_config.application.ports.DirectoryFileProvider`
protocol over a real directory. This adapter is the only component that touches
the filesystem layout: it reads files for the child providers, enumerates the
files matching a wildcard, and issues polling change tokens.

Contents
--------
* :class:`PhysicalFileProvider` – rooted at one directory.
* :class:`NullFileProvider` – contains nothing and cannot be enumerated.
* :func:`discover_files` – single-level glob over a directory, sorted.
* :func:`literal_pattern` – pattern matching exactly one file name.

System Role
-----------
Feeds sorted file lists into
:meth:`lib_wildcard_config.application.wildcard.WildcardConfigurationProvider.load`
so merge precedence does not depend on the platform's directory order.
"""

from __future__ import annotations

import fnmatch
import glob
from pathlib import Path, PurePosixPath

from ...domain.errors import InvalidArgument, NotFound
from ...observability import log_debug
from .watch import NEVER_CHANGES, ChangeToken, PollingChangeToken

_WILDCARDS = ("*", "?", "[")


class PhysicalFileProvider:
    """Serve files below a physical *root* directory.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> for name in ("b.json", "a.json", "notes.txt"):
    ...     _ = (Path(tmp.name) / name).write_text("{}", encoding="utf-8")
    >>> PhysicalFileProvider(tmp.name).glob("*.json")
    ['a.json', 'b.json']
    >>> tmp.cleanup()
    """

    def __init__(self, root: str | Path, *, poll_interval: float = 4.0) -> None:
        resolved = Path(root).expanduser().resolve()
        if not resolved.is_dir():
            raise NotFound(f"Directory not found: {root}")
        self._root = resolved
        self.poll_interval = poll_interval

    @property
    def root(self) -> str:
        return str(self._root)

    def read_bytes(self, subpath: str) -> bytes:
        """Return the contents of *subpath*, raising :class:`NotFound` when it is not a file."""

        file_path = self._root / subpath
        if not file_path.is_file():
            raise NotFound(f"Configuration file not found: {file_path}")
        payload = file_path.read_bytes()
        log_debug("config_file_read", source="file", path=str(file_path), size=len(payload))
        return payload

    def glob(self, pattern: str) -> list[str]:
        return discover_files(self._root, pattern)

    def watch(self, pattern: str) -> ChangeToken:
        """Return a token that flips when files matching *pattern* are added, removed or modified."""

        return PollingChangeToken(lambda: self._fingerprint(pattern), interval=self.poll_interval)

    def _fingerprint(self, pattern: str) -> tuple[tuple[str, int, int], ...]:
        entries = []
        for name in discover_files(self._root, pattern):
            try:
                stat = (self._root / name).stat()
            except FileNotFoundError:
                continue
            entries.append((name, stat.st_mtime_ns, stat.st_size))
        return tuple(entries)

    def __repr__(self) -> str:
        return f"PhysicalFileProvider({self.root!r})"


class NullFileProvider:
    """A file provider with no files; it cannot back a wildcard source."""

    def read_bytes(self, subpath: str) -> bytes:
        raise NotFound(f"Configuration file not found: {subpath}")

    def watch(self, pattern: str) -> ChangeToken:
        return NEVER_CHANGES


def discover_files(root: Path, pattern: str) -> list[str]:
    """Return files in one directory below *root* whose names match *pattern*, sorted.

    Why
    ----
    Directory enumeration order differs between platforms and filesystems.
    Sorting by name makes "first discovered file wins" reproducible.

    What
    ----
    *pattern* may carry a literal directory prefix (``conf/app.*.json``); only
    the final segment may hold ``*``/``?``/``[...]`` wildcards. Results are
    POSIX-style paths relative to *root*. A missing directory yields no matches.

    Raises
    ------
    InvalidArgument
        For empty patterns, ``**``, wildcards in directory segments, or patterns
        escaping *root*.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> sub = Path(tmp.name) / "conf"
    >>> sub.mkdir()
    >>> for name in ("app.b.json", "app.a.json", "app.json"):
    ...     _ = (sub / name).write_text("{}", encoding="utf-8")
    >>> discover_files(Path(tmp.name), "conf/app.?.json")
    ['conf/app.a.json', 'conf/app.b.json']
    >>> tmp.cleanup()
    """

    if not pattern:
        raise InvalidArgument("pattern must not be empty")
    if "**" in pattern:
        raise InvalidArgument(f"Recursive patterns are not supported: {pattern}")
    relative = PurePosixPath(pattern.replace("\\", "/"))
    directory_parts = relative.parts[:-1]
    if relative.is_absolute() or ".." in directory_parts:
        raise InvalidArgument(f"Pattern must stay below the base directory: {pattern}")
    if any(token in part for part in directory_parts for token in _WILDCARDS):
        raise InvalidArgument(f"Wildcards are only supported in the file name: {pattern}")

    directory = root.joinpath(*directory_parts)
    if not directory.is_dir():
        return []
    matches = sorted(
        entry.name for entry in directory.iterdir() if entry.is_file() and fnmatch.fnmatch(entry.name, relative.name)
    )
    prefix = "/".join(directory_parts)
    return [f"{prefix}/{name}" if prefix else name for name in matches]


def literal_pattern(subpath: str) -> str:
    """Return a pattern for :func:`discover_files` that matches exactly *subpath*.

    Wildcard characters in the file name are escaped so a file called
    ``appsettings.[prod].json`` can watch itself.

    Examples
    --------
    >>> literal_pattern("conf/appsettings.[prod].json")
    'conf/appsettings.[[]prod].json'
    """

    relative = PurePosixPath(subpath.replace("\\", "/"))
    return str(relative.parent / glob.escape(relative.name))
