import errno

import pytest

from dmgaudio.fresult import FatError, FResult, describe, to_errno


def test_describe_known_codes():
    assert describe(FResult.OK) == "Succeeded"
    assert describe(FResult.NO_FILE) == "Could not find the file"
    assert describe(FResult.TOO_MANY_OPEN_FILES) == "Number of open files > FF_FS_LOCK"
    assert describe(FResult.INVALID_PARAMETER) == "Given parameter is invalid"


def test_describe_accepts_plain_int():
    assert describe(int(FResult.EXIST)) == describe(FResult.EXIST)


def test_describe_unknown_code():
    assert describe(100) == "Unknown"
    assert describe(-5) == "Unknown"


def test_every_code_has_a_description():
    texts = {describe(code) for code in FResult}
    assert "Unknown" not in texts
    assert len(texts) == len(FResult)


@pytest.mark.parametrize(
    "code,expected",
    [
        (FResult.OK, 0),
        (FResult.DISK_ERR, errno.EIO),
        (FResult.NO_PATH, errno.ENOENT),
        (FResult.INVALID_NAME, errno.ENAMETOOLONG),
        (FResult.DENIED, errno.EACCES),
        (FResult.EXIST, errno.EEXIST),
        (FResult.LOCKED, errno.EACCES),
        (FResult.NOT_ENOUGH_CORE, errno.ENOMEM),
        (FResult.TOO_MANY_OPEN_FILES, errno.ENFILE),
        (FResult.INVALID_PARAMETER, errno.ENOSYS),
    ],
)
def test_to_errno(code, expected):
    assert to_errno(code) == expected


def test_to_errno_unknown():
    assert to_errno(100) == -1


def test_fat_error_carries_result():
    err = FatError(FResult.NO_FILE, "missing.txt")
    assert err.result is FResult.NO_FILE
    assert err.errno == errno.ENOENT
    assert err.strerror == "Could not find the file"
    assert err.filename == "missing.txt"


def test_fat_error_unknown_result():
    err = FatError(100)
    assert err.result == 100
    assert err.errno == -1
    assert err.strerror == "Unknown"