"""Resolve where a fetched resource is saved."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class NameOrPath:
    """Either a name under ``<scaii_dir>/git/`` or an explicit save path."""

    name: str | None = None
    save_path: Path | None = None

    @classmethod
    def from_path_or_default(cls, path: str | None, name: str) -> NameOrPath:
        if path is not None:
            return cls(save_path=Path(path))
        return cls(name=name)

    @classmethod
    def try_from_path_or_name(cls, path: str | None, name: str | None) -> NameOrPath:
        if path is not None and name is None:
            return cls(save_path=Path(path))
        if name is not None and path is None:
            return cls(name=name)
        raise ValueError("exactly one of a save path or a name is required")

    def to_path(self, scaii_dir: Path) -> Path:
        if self.save_path is not None:
            return self.save_path
        return scaii_dir / "git" / str(self.name)
