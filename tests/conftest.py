from __future__ import annotations

import io
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest


def _zip_entries(entries: dict[str, bytes | None]) -> bytes:
    """Build a zip in memory; a ``None`` payload writes a directory entry."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        for name, data in entries.items():
            if data is None:
                z.writestr(zipfile.ZipInfo(name), b"")
            else:
                z.writestr(name, data)
    return buf.getvalue()


def _pack_dir(root: Path, prefix: str = "") -> bytes:
    """Zip every file and directory under *root*, sorted, optionally under *prefix*/."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as z:
        if prefix:
            z.writestr(zipfile.ZipInfo(prefix.rstrip("/") + "/"), b"")
        for p in sorted(root.rglob("*")):
            arc = p.relative_to(root).as_posix()
            if prefix:
                arc = f"{prefix.rstrip('/')}/{arc}"
            if p.is_dir():
                z.writestr(zipfile.ZipInfo(arc + "/"), b"")
            else:
                z.write(p, arcname=arc)
    return buf.getvalue()


def _damage_member(payload: bytes, name: str, n: int = 8) -> bytes:
    """Overwrite the first *n* bytes of *name*'s compressed data with 0xFF."""
    with zipfile.ZipFile(io.BytesIO(payload)) as z:
        offset = z.getinfo(name).header_offset
    data = bytearray(payload)
    # Local file header: 30 fixed bytes, then the name and extra field.
    name_len = int.from_bytes(data[offset + 26 : offset + 28], "little")
    extra_len = int.from_bytes(data[offset + 28 : offset + 30], "little")
    start = offset + 30 + name_len + extra_len
    data[start : start + n] = b"\xff" * n
    return bytes(data)


def _read_tree(root: Path) -> dict[str, bytes]:
    """Map relative posix path -> bytes for every file under *root*."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes() for p in root.rglob("*") if p.is_file()
    }


@pytest.fixture
def read_tree() -> Callable[[Path], dict[str, bytes]]:
    return _read_tree


@pytest.fixture
def zip_entries() -> Callable[[dict[str, bytes | None]], bytes]:
    return _zip_entries


@pytest.fixture
def pack_dir() -> Callable[..., bytes]:
    return _pack_dir


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    src = tmp_path / "sample"
    (src / "lib" / "nested").mkdir(parents=True)
    (src / "empty").mkdir()
    (src / "README.md").write_text("# sample\n", encoding="utf-8")
    (src / "lib" / "a.js").write_text("goog.provide('a');\n", encoding="utf-8")
    (src / "lib" / "nested" / "b.bin").write_bytes(bytes(range(256)) * 4)
    return src


@pytest.fixture
def damage_member() -> Callable[..., bytes]:
    return _damage_member
