"""File system result codes, their descriptions and errno equivalents."""

from __future__ import annotations

import errno
from enum import IntEnum


class FResult(IntEnum):
    """Result codes of file system operations."""

    OK = 0
    DISK_ERR = 1
    INT_ERR = 2
    NOT_READY = 3
    NO_FILE = 4
    NO_PATH = 5
    INVALID_NAME = 6
    DENIED = 7
    EXIST = 8
    INVALID_OBJECT = 9
    WRITE_PROTECTED = 10
    INVALID_DRIVE = 11
    NOT_ENABLED = 12
    NO_FILESYSTEM = 13
    MKFS_ABORTED = 14
    TIMEOUT = 15
    LOCKED = 16
    NOT_ENOUGH_CORE = 17
    TOO_MANY_OPEN_FILES = 18
    INVALID_PARAMETER = 19


_DESCRIPTIONS = {
    FResult.OK: "Succeeded",
    FResult.DISK_ERR: "A hard error occurred in the low level disk I/O layer",
    FResult.INT_ERR: "Assertion failed",
    FResult.NOT_READY: "The physical drive cannot work",
    FResult.NO_FILE: "Could not find the file",
    FResult.NO_PATH: "Could not find the path",
    FResult.INVALID_NAME: "The path name format is invalid",
    FResult.DENIED: "Access denied due to prohibited access or directory full",
    FResult.EXIST: "Access denied due to prohibited access (exists)",
    FResult.INVALID_OBJECT: "The file/directory object is invalid",
    FResult.WRITE_PROTECTED: "The physical drive is write protected",
    FResult.INVALID_DRIVE: "The logical drive number is invalid",
    FResult.NOT_ENABLED: "The volume has no work area (mount)",
    FResult.NO_FILESYSTEM: "There is no valid FAT volume",
    FResult.MKFS_ABORTED: "The f_mkfs() aborted due to any problem",
    FResult.TIMEOUT: "Could not get a grant to access the volume within defined period",
    FResult.LOCKED: "The operation is rejected according to the file sharing policy",
    FResult.NOT_ENOUGH_CORE: "LFN working buffer could not be allocated",
    FResult.TOO_MANY_OPEN_FILES: "Number of open files > FF_FS_LOCK",
    FResult.INVALID_PARAMETER: "Given parameter is invalid",
}

_ERRNOS = {
    FResult.OK: 0,
    FResult.DISK_ERR: errno.EIO,
    FResult.INT_ERR: errno.EIO,
    FResult.NOT_READY: errno.EIO,
    FResult.NO_FILE: errno.ENOENT,
    FResult.NO_PATH: errno.ENOENT,
    FResult.INVALID_NAME: errno.ENAMETOOLONG,
    FResult.DENIED: errno.EACCES,
    FResult.EXIST: errno.EEXIST,
    FResult.INVALID_OBJECT: errno.EIO,
    FResult.WRITE_PROTECTED: errno.EACCES,
    FResult.INVALID_DRIVE: errno.ENOENT,
    FResult.NOT_ENABLED: errno.ENOENT,
    FResult.NO_FILESYSTEM: errno.ENOENT,
    FResult.MKFS_ABORTED: errno.EIO,
    FResult.TIMEOUT: errno.EIO,
    FResult.LOCKED: errno.EACCES,
    FResult.NOT_ENOUGH_CORE: errno.ENOMEM,
    FResult.TOO_MANY_OPEN_FILES: errno.ENFILE,
    FResult.INVALID_PARAMETER: errno.ENOSYS,
}


def _lookup(result: int) -> FResult | None:
    try:
        return FResult(result)
    except ValueError:
        return None


def describe(result: int) -> str:
    """Return a human-readable description of a result code."""
    code = _lookup(result)
    return _DESCRIPTIONS[code] if code is not None else "Unknown"


def to_errno(result: int) -> int:
    """Return the errno value matching a result code, or -1 if unknown."""
    code = _lookup(result)
    return _ERRNOS[code] if code is not None else -1


class FatError(OSError):
    """A file system operation failed with a non-OK result code."""

    def __init__(self, result: int, filename: str | None = None) -> None:
        if filename is None:
            super().__init__(to_errno(result), describe(result))
        else:
            super().__init__(to_errno(result), describe(result), filename)
        code = _lookup(result)
        self.result: FResult | int = code if code is not None else result