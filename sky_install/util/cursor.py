"""Scoped path navigation.

A ``PathCursor`` keeps track of how many segments it appended to a shared base
path and removes exactly that many when its scope ends, whether the scope is
left normally or through an exception::

    with PathCursor(root) as cd:
        cd.push("viz", "js")
        for name in names:
            with cd.layer() as sub:
                sub.push(name)
                do_something(sub.path)
    # cd.path == root again

Layers share the parent's backing path but keep their own depth, so a loop
body or a helper can descend without hand-written bookkeeping. Each layer
only undoes its own pushes.

Pushing ``..`` or an absolute path is rejected: popping such segments back
off would not restore the original directory. ``.`` components are dropped
by ``pathlib`` and are neither counted nor appended.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePath

from sky_install.errors import CursorUnderflowError


class _SharedPath:
    """The mutable path a cursor and all of its layers operate on."""

    __slots__ = ("path",)

    def __init__(self, path: Path) -> None:
        self.path = path

    def push(self, part: str) -> None:
        self.path = self.path / part

    def pop(self) -> None:
        self.path = self.path.parent


class PathCursor(os.PathLike):
    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._shared = _SharedPath(Path(path))
        self._depth = 0

    @classmethod
    def _from_shared(cls, shared: _SharedPath) -> PathCursor:
        cursor = cls.__new__(cls)
        cursor._shared = shared
        cursor._depth = 0
        return cursor

    # -- navigation ------------------------------------------------------

    def push(self, *segments: str | os.PathLike[str]) -> None:
        """Append *segments* to the shared path.

        Raises ``ValueError`` (before touching the path) if any segment is
        absolute or contains ``..``.
        """
        parts: list[str] = []
        for seg in segments:
            pure = PurePath(seg)
            if pure.anchor:
                raise ValueError(f"cannot push absolute path {str(seg)!r}")
            if ".." in pure.parts:
                raise ValueError(f"cannot push parent reference in {str(seg)!r}")
            parts.extend(pure.parts)
        for part in parts:
            self._shared.push(part)
        self._depth += len(parts)

    def pop(self) -> None:
        if self._depth == 0:
            raise CursorUnderflowError(
                "Cannot pop off PathCursor, going below original directory"
            )
        self._depth -= 1
        self._shared.pop()

    def layer(self) -> PathCursor:
        """Return a child cursor over the same path with its own depth."""
        return PathCursor._from_shared(self._shared)

    # -- views -----------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._shared.path

    @property
    def depth(self) -> int:
        return self._depth

    def snapshot(self) -> Path:
        return Path(self._shared.path)

    def __fspath__(self) -> str:
        return os.fspath(self._shared.path)

    def __truediv__(self, other: str | os.PathLike[str]) -> Path:
        return self._shared.path / other

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PathCursor):
            return self.path == other.path
        if isinstance(other, (str, os.PathLike)):
            return self.path == Path(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PathCursor({str(self.path)!r}, depth={self._depth})"

    # -- scope -----------------------------------------------------------

    def close(self) -> None:
        while self._depth:
            self._depth -= 1
            self._shared.pop()

    def __enter__(self) -> PathCursor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
