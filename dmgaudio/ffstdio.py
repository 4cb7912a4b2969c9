"""A stdio-style file interface over a volume rooted in a host directory.

Paths follow FAT conventions: an optional ``0:`` drive prefix, ``/`` or
``\\`` separators, and a current directory per volume. Failures raise
:class:`~dmgaudio.fresult.FatError` with the matching result code.
"""

from __future__ import annotations

import os
import re
from contextlib import contextmanager
from dataclasses import dataclass
from enum import IntFlag
from pathlib import PurePosixPath
from typing import BinaryIO, Iterator

from .fresult import FatError, FResult

SEEK_SET = 0
SEEK_CUR = 1
SEEK_END = 2

MAX_FILENAME = 250
_MAX_NAME_COMPONENT = 255
_INVALID_NAME_CHARS = frozenset('"*:<>?|\x7f')
_SEPARATORS = re.compile(r"[/\\]+")


class ModeFlags(IntFlag):
    """Open mode flags of the file system."""

    OPEN_EXISTING = 0x00
    READ = 0x01
    WRITE = 0x02
    CREATE_NEW = 0x04
    CREATE_ALWAYS = 0x08
    OPEN_ALWAYS = 0x10
    OPEN_APPEND = 0x30


_CREATING = ModeFlags.CREATE_NEW | ModeFlags.CREATE_ALWAYS | ModeFlags.OPEN_ALWAYS

_MODES = {
    "r": ModeFlags.READ,
    "r+": ModeFlags.READ | ModeFlags.WRITE,
    "w": ModeFlags.CREATE_ALWAYS | ModeFlags.WRITE,
    "w+": ModeFlags.CREATE_ALWAYS | ModeFlags.WRITE | ModeFlags.READ,
    "a": ModeFlags.OPEN_APPEND | ModeFlags.WRITE,
    "a+": ModeFlags.OPEN_APPEND | ModeFlags.WRITE | ModeFlags.READ,
    "wx": ModeFlags.CREATE_NEW | ModeFlags.WRITE,
    "w+x": ModeFlags.CREATE_NEW | ModeFlags.WRITE | ModeFlags.READ,
}


def mode_flags(mode: str) -> ModeFlags:
    """Translate a stdio mode string into open flags; unknown modes give 0."""
    return _MODES.get(mode, ModeFlags(0))


@contextmanager
def _host_errors(filename: str | None = None) -> Iterator[None]:
    """Turn host OS errors into file system result codes."""
    try:
        yield
    except FatError:
        raise
    except FileNotFoundError as exc:
        raise FatError(FResult.NO_FILE, filename) from exc
    except FileExistsError as exc:
        raise FatError(FResult.EXIST, filename) from exc
    except NotADirectoryError as exc:
        raise FatError(FResult.NO_PATH, filename) from exc
    except (PermissionError, IsADirectoryError) as exc:
        raise FatError(FResult.DENIED, filename) from exc
    except OSError as exc:
        raise FatError(FResult.DISK_ERR, filename) from exc


@dataclass(frozen=True)
class FindData:
    """One directory entry returned by :meth:`Volume.find`."""

    name: str
    size: int
    is_directory: bool


class FFile:
    """An open file on a :class:`Volume`."""

    def __init__(self, handle: BinaryIO, flags: ModeFlags, name: str) -> None:
        self._handle: BinaryIO | None = handle
        self._flags = flags
        self.name = name

    def __enter__(self) -> FFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._handle is not None:
            self.close()

    @property
    def closed(self) -> bool:
        return self._handle is None

    def _file(self) -> BinaryIO:
        if self._handle is None:
            raise FatError(FResult.INVALID_OBJECT, self.name)
        return self._handle

    def _readable(self) -> BinaryIO:
        handle = self._file()
        if not self._flags & ModeFlags.READ:
            raise FatError(FResult.DENIED, self.name)
        return handle

    def _writable(self) -> BinaryIO:
        handle = self._file()
        if not self._flags & ModeFlags.WRITE:
            raise FatError(FResult.DENIED, self.name)
        return handle

    def close(self) -> None:
        """Close the file; closing it again is an error."""
        handle = self._file()
        self._handle = None
        with _host_errors(self.name):
            handle.close()

    def read(self, size: int, items: int) -> bytes:
        """Read up to ``size * items`` bytes."""
        if size <= 0:
            raise ValueError(f"item size must be positive: {size}")
        if items < 0:
            raise ValueError(f"item count must not be negative: {items}")
        handle = self._readable()
        wanted = size * items
        chunks = []
        with _host_errors(self.name):
            while wanted:
                chunk = handle.read(wanted)
                if not chunk:
                    break
                chunks.append(chunk)
                wanted -= len(chunk)
        return b"".join(chunks)

    def write(self, data: bytes, size: int = 1) -> int:
        """Write ``data``; return the number of whole ``size``-byte items written."""
        if size <= 0:
            raise ValueError(f"item size must be positive: {size}")
        handle = self._writable()
        view = memoryview(bytes(data))
        written = 0
        with _host_errors(self.name):
            while written < len(view):
                count = handle.write(view[written:])
                if not count:
                    break
                written += count
        return written // size

    def putc(self, char: int) -> int:
        """Write one byte (the low 8 bits of ``char``) and return ``char``."""
        handle = self._writable()
        with _host_errors(self.name):
            count = handle.write(bytes((char & 0xFF,)))
        if count != 1:
            raise FatError(FResult.DISK_ERR, self.name)
        return char

    def getc(self) -> int | None:
        """Read one byte; return ``None`` at end of file."""
        handle = self._readable()
        with _host_errors(self.name):
            data = handle.read(1)
        return data[0] if data else None

    def gets(self, count: int) -> str | None:
        """Read a line of at most ``count - 1`` characters.

        The newline is kept. Returns ``None`` when nothing could be read.
        """
        handle = self._readable()
        line = bytearray()
        with _host_errors(self.name):
            while len(line) < count - 1:
                data = handle.read(1)
                if not data:
                    break
                line += data
                if data == b"\n":
                    break
        if not line:
            return None
        return line.decode("latin-1")

    def tell(self) -> int:
        """Return the current read/write position."""
        handle = self._file()
        with _host_errors(self.name):
            return handle.tell()

    def length(self) -> int:
        """Return the size of the file in bytes."""
        handle = self._file()
        with _host_errors(self.name):
            return os.fstat(handle.fileno()).st_size

    def eof(self) -> bool:
        """Tell whether the position is at or past the end of the file."""
        return self.tell() >= self.length()

    def seek(self, offset: int, whence: int = SEEK_SET) -> int:
        """Move the position and return it.

        A file open for writing grows when the position passes its end; a
        read-only file stops at its end.
        """
        if whence == SEEK_SET:
            target = offset
        elif whence == SEEK_CUR:
            target = self.tell() + offset
        elif whence == SEEK_END:
            target = self.length() + offset
        else:
            raise ValueError(f"bad whence: {whence}")
        if target < 0:
            raise ValueError(f"seek before start of file: {target}")
        handle = self._file()
        size = self.length()
        with _host_errors(self.name):
            if target > size:
                if self._flags & ModeFlags.WRITE:
                    handle.truncate(target)
                else:
                    target = size
            handle.seek(target)
        return target

    def seteof(self) -> None:
        """Cut the file off at the current position."""
        handle = self._writable()
        with _host_errors(self.name):
            handle.truncate(handle.tell())


class Volume:
    """A volume whose contents live under a host directory."""

    def __init__(self, root: str | os.PathLike[str]) -> None:
        root = os.fspath(root)
        if not os.path.isdir(root):
            raise FatError(FResult.NO_FILESYSTEM, root)
        self._root = root
        self._cwd = PurePosixPath("/")

    def _resolve(self, path: str) -> PurePosixPath:
        rest = path
        if ":" in path:
            drive, rest = path.split(":", 1)
            if drive != "0":
                raise FatError(FResult.INVALID_DRIVE, path)
        if rest.startswith(("/", "\\")):
            parts: list[str] = []
        else:
            parts = list(self._cwd.parts[1:])
        for name in _SEPARATORS.split(rest):
            if name in ("", "."):
                continue
            if name == "..":
                if parts:
                    parts.pop()
                continue
            if len(name) > _MAX_NAME_COMPONENT or any(
                ch in _INVALID_NAME_CHARS or ord(ch) < 0x20 for ch in name
            ):
                raise FatError(FResult.INVALID_NAME, path)
            parts.append(name)
        return PurePosixPath("/", *parts)

    def _host(self, target: PurePosixPath) -> str:
        return os.path.join(self._root, *target.parts[1:])

    def _not_root(self, target: PurePosixPath, path: str) -> None:
        if target == PurePosixPath("/"):
            raise FatError(FResult.INVALID_NAME, path)

    def _require_parent(self, target: PurePosixPath, path: str) -> None:
        if not os.path.isdir(self._host(target.parent)):
            raise FatError(FResult.NO_PATH, path)

    def _existing(self, path: str) -> tuple[PurePosixPath, str]:
        target = self._resolve(path)
        self._not_root(target, path)
        self._require_parent(target, path)
        host = self._host(target)
        if not os.path.lexists(host):
            raise FatError(FResult.NO_FILE, path)
        return target, host

    def open(self, path: str, mode: str) -> FFile:
        """Open a file with a stdio mode string."""
        return self._open(path, mode_flags(mode))

    def _open(self, path: str, flags: ModeFlags) -> FFile:
        target = self._resolve(path)
        self._not_root(target, path)
        self._require_parent(target, path)
        host = self._host(target)
        exists = os.path.exists(host)
        if exists and os.path.isdir(host):
            raise FatError(FResult.DENIED if flags & _CREATING else FResult.NO_FILE, path)
        if exists and flags & ModeFlags.CREATE_NEW:
            raise FatError(FResult.EXIST, path)
        if not exists and not flags & _CREATING:
            raise FatError(FResult.NO_FILE, path)

        if not exists or flags & ModeFlags.CREATE_ALWAYS:
            host_mode = "w+b"
        elif flags & ModeFlags.WRITE:
            host_mode = "r+b"
        else:
            host_mode = "rb"
        with _host_errors(path):
            handle = open(host, host_mode, buffering=0)
            if (flags & ModeFlags.OPEN_APPEND) == ModeFlags.OPEN_APPEND:
                handle.seek(0, os.SEEK_END)
        return FFile(handle, flags, path)

    def stat(self, path: str) -> int:
        """Return the size of an object; directories report 0."""
        _, host = self._existing(path)
        with _host_errors(path):
            return 0 if os.path.isdir(host) else os.path.getsize(host)

    def chdir(self, path: str) -> None:
        """Change the current directory."""
        target = self._resolve(path)
        if not os.path.isdir(self._host(target)):
            raise FatError(FResult.NO_PATH, path)
        self._cwd = target

    def getcwd(self) -> str:
        """Return the current directory, without a drive prefix."""
        return str(self._cwd)

    def mkdir(self, path: str) -> None:
        """Create a directory; an existing object of that name is accepted."""
        target = self._resolve(path)
        self._not_root(target, path)
        self._require_parent(target, path)
        host = self._host(target)
        if os.path.lexists(host):
            return
        with _host_errors(path):
            os.mkdir(host)

    def _unlink(self, path: str) -> None:
        target, host = self._existing(path)
        with _host_errors(path):
            if os.path.isdir(host):
                if target == self._cwd or os.listdir(host):
                    raise FatError(FResult.DENIED, path)
                os.rmdir(host)
            else:
                os.remove(host)

    def rmdir(self, path: str) -> None:
        """Remove an empty directory (or a file)."""
        self._unlink(path)

    def remove(self, path: str) -> None:
        """Remove a file (or an empty directory)."""
        self._unlink(path)

    def rename(self, old: str, new: str, delete_if_exists: bool = False) -> None:
        """Rename an object, optionally deleting what already has the new name."""
        if delete_if_exists:
            try:
                self._unlink(new)
            except FatError:
                pass
        _, old_host = self._existing(old)
        new_target = self._resolve(new)
        self._not_root(new_target, new)
        self._require_parent(new_target, new)
        new_host = self._host(new_target)
        if os.path.lexists(new_host):
            raise FatError(FResult.EXIST, new)
        with _host_errors(old):
            os.rename(old_host, new_host)

    def truncate(self, path: str, size: int) -> FFile:
        """Set a file's size, padding with zero bytes, and return it open.

        The file is created if missing and left positioned at ``size``.
        """
        if size < 0:
            raise ValueError(f"size must not be negative: {size}")
        handle = self._open(path, ModeFlags.OPEN_APPEND | ModeFlags.WRITE)
        try:
            missing = size - handle.tell()
            if missing > 0 and handle.write(bytes(missing)) != missing:
                raise FatError(FResult.DISK_ERR, path)
            handle.seek(size)
            handle.seteof()
        except BaseException:
            handle.close()
            raise
        return handle

    def find(self, directory: str = "") -> Iterator[FindData]:
        """Iterate over the entries of a directory (the current one if empty)."""
        target = self._resolve(directory) if directory else self._cwd
        host = self._host(target)
        if not os.path.isdir(host):
            raise FatError(FResult.NO_PATH, directory)
        with _host_errors(directory):
            with os.scandir(host) as entries:
                found = [
                    FindData(
                        name=entry.name,
                        size=0 if entry.is_dir() else entry.stat().st_size,
                        is_directory=entry.is_dir(),
                    )
                    for entry in entries
                ]
        found.sort(key=lambda item: item.name)
        return iter(found)

    def delete_node(self, path: str) -> None:
        """Delete a directory together with everything inside it."""
        target = self._resolve(path)
        if not os.path.isdir(self._host(target)):
            raise FatError(FResult.NO_PATH, path)
        base = str(target)
        for entry in self.find(base):
            child = str(target / entry.name)
            if entry.is_directory:
                self.delete_node(child)
            else:
                self._unlink(child)
        self._unlink(base)