"""Exception hierarchy for sky-install.

Everything raised on purpose derives from ``SkyInstallError`` so the CLI can
catch the whole error surface with one ``except`` clause.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class SkyInstallError(Exception):
    """Base exception for all sky-install failures."""


class DestinationExistsError(SkyInstallError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f"Directory '{path}' exists (Hint: rerun this command with '--force' to overwrite)"
        )


class CannotCleanError(SkyInstallError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"cannot clean target directory: '{path}'")


class CannotCreateError(SkyInstallError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"cannot create target path: '{path}'")


class CloneError(SkyInstallError):
    def __init__(self, url: str, branch: str, reason: str) -> None:
        self.url = url
        self.branch = branch
        super().__init__(f"git clone of {url}@{branch} failed: {reason}")


class NetworkError(SkyInstallError):
    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"fetching {url} failed: {reason}")


class ChecksumMismatchError(SkyInstallError, ValueError):
    """Downloaded payload does not match the expected SHA-256."""


class ArchiveError(SkyInstallError):
    """Base for zip payload problems."""


class CorruptArchiveError(ArchiveError):
    """The payload is not a readable zip archive."""


class UnexpectedArchiveLayoutError(ArchiveError):
    """An entry does not live under the archive's shared top-level directory."""


class CursorUnderflowError(SkyInstallError):
    """A ``PathCursor`` was popped below the path it started from.

    This is a programming error, not something a user can fix.
    """


class ReservedNameError(SkyInstallError):
    pass


class ConfigError(SkyInstallError):
    pass


class JobError(SkyInstallError):
    """A single resource job failed during *phase*.

    The underlying exception is available as ``__cause__``.
    """

    def __init__(self, resource: str, phase: str, reason: str) -> None:
        self.resource = resource
        self.phase = phase
        super().__init__(f"{resource}: {phase} failed: {reason}")


class AggregateError(SkyInstallError):
    """Failures collected from jobs that ran concurrently."""

    def __init__(self, errors: Iterable[BaseException]) -> None:
        self.errors: tuple[BaseException, ...] = tuple(errors)
        super().__init__(self._render())

    def _render(self) -> str:
        lines = [f"{len(self.errors)} job(s) failed:"]
        for i, err in enumerate(self.errors):
            lines.append(f"  [{i}] {err}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)
