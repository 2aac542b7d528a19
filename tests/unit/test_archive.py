from __future__ import annotations

import io
import os
import stat
import zipfile
from pathlib import Path

import pytest

from sky_install.errors import CorruptArchiveError, UnexpectedArchiveLayoutError
from sky_install.progress import NullProgress
from sky_install.security.archive import make_writable, sanitize_filename, unzip
from sky_install.util.cursor import PathCursor


class CountingProgress(NullProgress):
    def __init__(self) -> None:
        self.total: int | None = None
        self.advanced = 0

    def set_total(self, total: int) -> None:
        self.total = total

    def advance(self, n: int = 1) -> None:
        self.advanced += n


def _files_under(root: Path) -> list[Path]:
    return [p for p in root.rglob("*") if p.is_file()]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("a/b/c.txt", Path("a/b/c.txt")),
        ("../../etc/passwd", Path("etc/passwd")),
        ("/abs/path", Path("abs/path")),
        ("a/./b//c", Path("a/b/c")),
        ("C:\\windows\\system32", Path("windows/system32")),
        ("good.txt\0../../evil", Path("good.txt")),
        ("..", Path()),
        ("D:", Path()),
        ("a/b:/c", Path("a", "b:", "c")),
        ("../C:/x", Path("x")),
        ("/", Path()),
    ],
)
def test_sanitize_filename(raw: str, expected: Path) -> None:
    assert sanitize_filename(raw) == expected


def test_roundtrip_without_flatten(tmp_path, sample_tree, pack_dir, read_tree) -> None:
    dest = tmp_path / "out"
    progress = CountingProgress()

    with PathCursor(dest) as cd:
        unzip(pack_dir(sample_tree), cd, flatten=False, progress=progress)
        assert cd.path == dest

    assert read_tree(dest) == read_tree(sample_tree)
    assert (dest / "empty").is_dir()
    # 3 directories + 3 files
    assert progress.total == progress.advanced == 6


def test_flatten_strips_shared_top_level_dir(tmp_path, sample_tree, pack_dir, read_tree) -> None:
    dest = tmp_path / "D"
    payload = pack_dir(sample_tree, prefix="libfoo-1.0")

    with PathCursor(dest) as cd:
        unzip(payload, cd, flatten=True, progress=NullProgress())

    assert read_tree(dest) == read_tree(sample_tree)
    assert not (dest / "libfoo-1.0").exists()


def test_flatten_rejects_entry_outside_prefix(tmp_path, zip_entries) -> None:
    payload = zip_entries(
        {
            "libfoo-1.0/": None,
            "libfoo-1.0/a.txt": b"a",
            "other/b.txt": b"b",
        }
    )
    with pytest.raises(UnexpectedArchiveLayoutError):
        with PathCursor(tmp_path / "D") as cd:
            unzip(payload, cd, flatten=True, progress=NullProgress())


def test_flatten_rejects_file_that_is_the_prefix(tmp_path, zip_entries) -> None:
    payload = zip_entries({"README": b"top-level file"})
    with pytest.raises(UnexpectedArchiveLayoutError):
        with PathCursor(tmp_path / "D") as cd:
            unzip(payload, cd, flatten=True, progress=NullProgress())


@pytest.mark.parametrize(
    "name",
    [
        "../escape.txt",
        "../../../../tmp/escape.txt",
        "/etc/escape.txt",
        "C:/escape.txt",
        "..\\..\\escape.txt",
        "safe/../../escape.txt",
        "null.txt\0/../../escape",
    ],
)
def test_adversarial_names_stay_inside_destination(tmp_path, zip_entries, name) -> None:
    dest = tmp_path / "jail" / "dest"
    with PathCursor(dest) as cd:
        unzip(zip_entries({name: b"x"}), cd, flatten=False, progress=NullProgress())

    written = _files_under(tmp_path)
    assert len(written) == 1
    resolved = written[0].resolve()
    assert resolved.is_relative_to(dest.resolve())


def test_entries_with_no_usable_name_are_skipped(tmp_path, zip_entries) -> None:
    dest = tmp_path / "D"
    progress = CountingProgress()
    payload = zip_entries({"../": None, "/": None, "kept.txt": b"k"})

    with PathCursor(dest) as cd:
        unzip(payload, cd, flatten=False, progress=progress)

    assert [p.name for p in _files_under(dest)] == ["kept.txt"]
    assert progress.total == progress.advanced == 3


def test_zero_entry_archive(tmp_path) -> None:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w"):
        pass
    progress = CountingProgress()

    with PathCursor(tmp_path / "D") as cd:
        unzip(buf.getvalue(), cd, flatten=True, progress=progress)

    assert progress.total == 0
    assert progress.advanced == 0


def test_corrupt_payload(tmp_path) -> None:
    with pytest.raises(CorruptArchiveError):
        with PathCursor(tmp_path) as cd:
            unzip(b"definitely not a zip", cd, flatten=False, progress=NullProgress())


def test_damaged_member_data_is_corrupt_archive(tmp_path, zip_entries, damage_member) -> None:
    payload = zip_entries({"top/": None, "top/a.txt": b"hello world " * 64})
    payload = damage_member(payload, "top/a.txt")

    with pytest.raises(CorruptArchiveError, match="top/a.txt"):
        with PathCursor(tmp_path / "D") as cd:
            unzip(payload, cd, flatten=True, progress=NullProgress())


def test_cursor_restored_after_failure(tmp_path, zip_entries) -> None:
    payload = zip_entries({"top/": None, "elsewhere/x": b"x"})
    with PathCursor(tmp_path) as cd:
        cd.push("D")
        with pytest.raises(UnexpectedArchiveLayoutError):
            unzip(payload, cd, flatten=True, progress=NullProgress())
        assert cd.path == tmp_path / "D"
    assert cd.path == tmp_path


@pytest.mark.skipif(os.name != "posix", reason="POSIX permission bits")
def test_unix_permissions_applied_without_setuid(tmp_path) -> None:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as z:
        info = zipfile.ZipInfo("bin/tool.sh")
        info.create_system = 3
        info.external_attr = (stat.S_IFREG | stat.S_ISUID | 0o755) << 16
        z.writestr(info, "#!/bin/sh\necho hi\n")
        plain = zipfile.ZipInfo("data.txt")
        plain.create_system = 0
        z.writestr(plain, "no unix mode")

    with PathCursor(tmp_path) as cd:
        unzip(buf.getvalue(), cd, flatten=False, progress=NullProgress())

    mode = stat.S_IMODE((tmp_path / "bin" / "tool.sh").stat().st_mode)
    assert mode == 0o755
    assert (tmp_path / "data.txt").read_text() == "no unix mode"


def test_make_writable_clears_readonly_files(tmp_path) -> None:
    (tmp_path / "d").mkdir()
    f = tmp_path / "d" / "ro.txt"
    f.write_text("x")
    os.chmod(f, stat.S_IREAD)

    make_writable(tmp_path)

    assert f.stat().st_mode & stat.S_IWRITE
