"""Safe zip extraction from an in-memory payload.

Guards against common archive attacks:
- Zip Slip (``../`` traversal): parent references are dropped from names
- Absolute paths and drive letters: root and drive markers are dropped
- Embedded NUL bytes: names are cut at the first NUL
- setuid/setgid bits: stripped when applying entry permissions

Offending components are removed rather than rejected, so ``../../etc/x``
lands at ``<dest>/etc/x``. Entries whose name sanitizes to nothing are
skipped.
"""

from __future__ import annotations

import io
import os
import re
import shutil
import stat
import zipfile
import zlib
from pathlib import Path

from sky_install.errors import CorruptArchiveError, UnexpectedArchiveLayoutError
from sky_install.logging import get_logger
from sky_install.progress import ProgressSink
from sky_install.util.cursor import PathCursor

log = get_logger(__name__)

_SEPARATORS = re.compile(r"[\\/]")
_DRIVE = re.compile(r"^[A-Za-z]:$")
_UNIX_CREATE_SYSTEM = 3


def _is_within(base: Path, target: Path) -> bool:
    try:
        target.relative_to(base)
        return True
    except ValueError:
        return False


def sanitize_filename(filename: str) -> Path:
    """Map a raw archive member name to a safe relative path.

    Returns ``Path()`` (no parts) when nothing usable is left.
    """
    filename = filename.split("\0", 1)[0]
    parts = [p for p in _SEPARATORS.split(filename) if p not in {"", ".", ".."}]
    if parts and _DRIVE.match(parts[0]):
        parts = parts[1:]
    return Path(*parts)


def _entry_mode(info: zipfile.ZipInfo) -> int | None:
    if info.create_system != _UNIX_CREATE_SYSTEM:
        return None
    mode = stat.S_IMODE(info.external_attr >> 16)
    return mode or None


def unzip(
    payload: bytes | bytearray,
    path_root: PathCursor,
    flatten: bool,
    progress: ProgressSink,
) -> None:
    """Extract the zip in *payload* into the directory at *path_root*.

    With *flatten* the archive's shared top-level directory (taken from the
    first entry) is stripped, so ``foo-1.0/src/a.c`` lands at
    ``<path_root>/src/a.c``. This is ``unzip foo.zip && mv foo-1.0/* . &&
    rmdir foo-1.0`` in one step.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(payload))
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise CorruptArchiveError(f"cannot read zip archive: {e}") from e

    with archive:
        infos = archive.infolist()

        parent = Path()
        if flatten and infos:
            parent = sanitize_filename(infos[0].filename)

        progress.set_total(len(infos))
        base = path_root.snapshot().resolve()

        for info in infos:
            outpath = sanitize_filename(info.filename)
            if not outpath.parts:
                log.warning("skipping archive entry with unusable name %r", info.filename)
                progress.advance(1)
                continue

            if flatten:
                try:
                    outpath = outpath.relative_to(parent)
                except ValueError as e:
                    raise UnexpectedArchiveLayoutError(
                        f"entry {info.filename!r} is outside top-level directory '{parent}'"
                    ) from e

            is_dir = info.filename.endswith(("/", "\\"))
            if not outpath.parts and not is_dir:
                raise UnexpectedArchiveLayoutError(
                    f"file entry {info.filename!r} is the archive's top-level directory"
                )

            with path_root.layer() as cd:
                cd.push(outpath)
                target = cd.path

                if not _is_within(base, target.resolve()):
                    # Only reachable through a symlink already present in the destination.
                    raise UnexpectedArchiveLayoutError(
                        f"entry {info.filename!r} escapes destination '{base}'"
                    )

                if is_dir:
                    target.mkdir(parents=True, exist_ok=True)
                else:
                    target.parent.mkdir(parents=True, exist_ok=True)
                    _write_member(archive, info, target)

            progress.advance(1)


def _write_member(archive: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path) -> None:
    try:
        with archive.open(info) as src, open(target, "wb") as out:
            shutil.copyfileobj(src, out)
    except (zipfile.BadZipFile, EOFError, zlib.error, NotImplementedError, RuntimeError) as e:
        # RuntimeError: encrypted member. NotImplementedError: unsupported compression.
        raise CorruptArchiveError(f"cannot decompress {info.filename!r}: {e}") from e

    mode = _entry_mode(info)
    if mode is not None and os.name == "posix":
        os.chmod(target, mode & ~stat.S_ISUID & ~stat.S_ISGID)


def make_writable(target: str | os.PathLike[str]) -> None:
    """Clear the read-only attribute on every file below *target*.

    Directories are left alone. Needed on Windows before an extracted tree can
    be moved or deleted.
    """
    for dirpath, _dirnames, filenames in os.walk(target):
        for name in filenames:
            path = os.path.join(dirpath, name)
            mode = os.stat(path).st_mode
            if not mode & stat.S_IWRITE:
                os.chmod(path, mode | stat.S_IWRITE)
