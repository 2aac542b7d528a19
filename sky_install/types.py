"""Shared Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from sky_install.constants import DEFAULT_BRANCH, DEFAULT_TIMEOUT


class LibrarySpec(BaseModel):
    """A zip-packaged library bundled with the core checkout.

    ``dest`` is relative to the checkout root. When ``keep`` is set, only that
    sub-tree of the unpacked archive is kept: it is moved to ``rename_to`` and
    ``dest`` is deleted afterwards.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    url: str
    size_hint: int = 0
    dest: tuple[str, ...]
    flatten: bool = True
    keep: str | None = None
    rename_to: tuple[str, ...] | None = None
    sha256: str | None = None


class LibraryOverride(BaseModel):
    url: str | None = None
    sha256: str | None = None


class InstallConfig(BaseModel):
    default_branch: str = DEFAULT_BRANCH
    timeout: float = DEFAULT_TIMEOUT
    libraries: dict[str, LibraryOverride] = Field(default_factory=dict)

    def apply(self, spec: LibrarySpec) -> LibrarySpec:
        override = self.libraries.get(spec.name)
        if override is None:
            return spec
        return spec.model_copy(update=override.model_dump(exclude_none=True))
