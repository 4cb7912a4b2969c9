import errno

import pytest

from dmgaudio.ffstdio import (
    SEEK_CUR,
    SEEK_END,
    SEEK_SET,
    FindData,
    ModeFlags,
    Volume,
    mode_flags,
)
from dmgaudio.fresult import FatError, FResult


@pytest.fixture
def vol(tmp_path):
    return Volume(tmp_path)


def _make(vol, path, data):
    with vol.open(path, "w") as f:
        f.write(data)


def test_mode_flags_known_modes():
    assert mode_flags("r") == ModeFlags.READ
    assert mode_flags("r+") == ModeFlags.READ | ModeFlags.WRITE
    assert mode_flags("w") == ModeFlags.CREATE_ALWAYS | ModeFlags.WRITE
    assert mode_flags("a+") == ModeFlags.OPEN_APPEND | ModeFlags.WRITE | ModeFlags.READ
    assert mode_flags("w+x") == ModeFlags.CREATE_NEW | ModeFlags.WRITE | ModeFlags.READ


def test_mode_flags_unknown_is_zero():
    assert mode_flags("rb") == 0


def test_missing_root_raises(tmp_path):
    with pytest.raises(FatError) as exc:
        Volume(tmp_path / "nowhere")
    assert exc.value.result == FResult.NO_FILESYSTEM


def test_write_then_read_round_trip(vol, tmp_path):
    with vol.open("data.bin", "w") as f:
        assert f.write(b"abcdef", 2) == 3
    assert (tmp_path / "data.bin").read_bytes() == b"abcdef"
    with vol.open("data.bin", "r") as f:
        assert f.read(4, 1) == b"abcd"
        assert f.read(4, 3) == b"ef"
        assert f.eof()


def test_open_missing_file(vol):
    with pytest.raises(FatError) as exc:
        vol.open("missing.txt", "r")
    assert exc.value.result == FResult.NO_FILE
    assert exc.value.errno == errno.ENOENT


def test_open_missing_parent(vol):
    with pytest.raises(FatError) as exc:
        vol.open("nodir/file.txt", "w")
    assert exc.value.result == FResult.NO_PATH


def test_create_new_on_existing(vol):
    _make(vol, "x.txt", b"1")
    with pytest.raises(FatError) as exc:
        vol.open("x.txt", "wx")
    assert exc.value.result == FResult.EXIST


def test_append_mode(vol):
    _make(vol, "log.txt", b"one")
    with vol.open("log.txt", "a") as f:
        assert f.tell() == 3
        f.write(b"two")
    assert vol.stat("log.txt") == 6


def test_read_on_write_only_is_denied(vol):
    with vol.open("w.txt", "w") as f:
        with pytest.raises(FatError) as exc:
            f.read(1, 1)
    assert exc.value.result == FResult.DENIED


def test_putc_getc(vol):
    with vol.open("c.bin", "w+") as f:
        assert f.putc(0x141) == 0x141
        f.seek(0)
        assert f.getc() == 0x41
        assert f.getc() is None


def test_gets_lines_and_limit(vol):
    _make(vol, "lines.txt", b"hello\nworld")
    with vol.open("lines.txt", "r") as f:
        assert f.gets(100) == "hello\n"
        assert f.gets(3) == "wo"
        assert f.gets(100) == "rld"
        assert f.gets(100) is None


def test_seek_variants(vol):
    _make(vol, "s.bin", b"0123456789")
    with vol.open("s.bin", "r") as f:
        assert f.seek(-3, SEEK_END) == 7
        assert f.read(1, 3) == b"789"
        f.seek(2, SEEK_SET)
        assert f.seek(1, SEEK_CUR) == 3
        with pytest.raises(ValueError):
            f.seek(-1, SEEK_SET)
        with pytest.raises(ValueError):
            f.seek(0, 7)
        assert f.seek(50, SEEK_SET) == f.length()


def test_seek_past_end_grows_writable_file(vol):
    with vol.open("g.bin", "w+") as f:
        f.write(b"ab")
        f.seek(5)
        assert f.length() == 5
        f.seek(0)
        assert f.read(1, 5) == b"ab\x00\x00\x00"


def test_seteof_cuts_file(vol):
    _make(vol, "t.bin", b"abcdef")
    with vol.open("t.bin", "r+") as f:
        f.seek(2)
        f.seteof()
        assert f.length() == 2
    assert vol.stat("t.bin") == 2


def test_closed_file_is_invalid(vol):
    f = vol.open("z.txt", "w")
    f.close()
    with pytest.raises(FatError) as exc:
        f.tell()
    assert exc.value.result == FResult.INVALID_OBJECT
    with pytest.raises(FatError):
        f.close()


def test_stat_root_is_invalid_name(vol):
    with pytest.raises(FatError) as exc:
        vol.stat("/")
    assert exc.value.result == FResult.INVALID_NAME


def test_mkdir_chdir_getcwd(vol):
    vol.mkdir("music")
    vol.mkdir("music")  # already there is accepted
    assert vol.getcwd() == "/"
    vol.chdir("0:/music")
    assert vol.getcwd() == "/music"
    _make(vol, "song.gbs", b"xyz")
    assert vol.stat("/music/song.gbs") == 3
    vol.chdir("..")
    assert vol.getcwd() == "/"


def test_chdir_missing(vol):
    with pytest.raises(FatError) as exc:
        vol.chdir("nope")
    assert exc.value.result == FResult.NO_PATH


def test_invalid_drive_and_name(vol):
    with pytest.raises(FatError) as exc:
        vol.open("1:/a.txt", "w")
    assert exc.value.result == FResult.INVALID_DRIVE
    with pytest.raises(FatError) as exc:
        vol.open("bad?name", "w")
    assert exc.value.result == FResult.INVALID_NAME


def test_remove_and_rmdir(vol, tmp_path):
    vol.mkdir("d")
    _make(vol, "d/f.txt", b"1")
    with pytest.raises(FatError) as exc:
        vol.rmdir("d")
    assert exc.value.result == FResult.DENIED
    vol.remove("d/f.txt")
    vol.rmdir("d")
    assert not (tmp_path / "d").exists()
    with pytest.raises(FatError) as exc:
        vol.remove("d")
    assert exc.value.result == FResult.NO_FILE


def test_rename(vol):
    _make(vol, "a.txt", b"aa")
    _make(vol, "b.txt", b"bbbb")
    with pytest.raises(FatError) as exc:
        vol.rename("a.txt", "b.txt", False)
    assert exc.value.result == FResult.EXIST
    vol.rename("a.txt", "b.txt", True)
    assert vol.stat("b.txt") == 2
    with pytest.raises(FatError) as exc:
        vol.stat("a.txt")
    assert exc.value.result == FResult.NO_FILE


def test_truncate_grows_and_shrinks(vol, tmp_path):
    f = vol.truncate("pad.bin", 4)
    assert f.tell() == 4
    f.close()
    assert (tmp_path / "pad.bin").read_bytes() == b"\x00" * 4
    _make(vol, "long.bin", b"abcdef")
    with vol.truncate("long.bin", 3) as g:
        assert g.length() == 3
    assert (tmp_path / "long.bin").read_bytes() == b"abc"


def test_find_lists_entries(vol):
    vol.mkdir("dir")
    _make(vol, "dir/one.txt", b"12345")
    vol.mkdir("dir/sub")
    entries = list(vol.find("dir"))
    assert entries == [
        FindData(name="one.txt", size=5, is_directory=False),
        FindData(name="sub", size=0, is_directory=True),
    ]
    assert vol.getcwd() == "/"


def test_find_missing_directory(vol):
    with pytest.raises(FatError) as exc:
        vol.find("ghost")
    assert exc.value.result == FResult.NO_PATH


def test_delete_node_removes_tree(vol, tmp_path):
    vol.mkdir("top")
    vol.mkdir("top/mid")
    _make(vol, "top/a.txt", b"a")
    _make(vol, "top/mid/b.txt", b"b")
    vol.delete_node("top")
    assert not (tmp_path / "top").exists()
    with pytest.raises(FatError) as exc:
        vol.delete_node("top")
    assert exc.value.result == FResult.NO_PATH