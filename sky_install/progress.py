"""Progress reporting surfaces.

Jobs only see the small ``ProgressSink`` protocol. ``RichProgressSink`` binds
one task of a shared ``rich.progress.Progress``, which renders several tasks
at once and serialises updates from worker threads.
"""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
)


class ProgressSink(Protocol):
    def set_total(self, total: int) -> None: ...

    def advance(self, n: int = 1) -> None: ...

    def set_message(self, message: str) -> None: ...

    def finish(self, message: str) -> None: ...


class NullProgress:
    """Discards every update."""

    def set_total(self, total: int) -> None:
        pass

    def advance(self, n: int = 1) -> None:
        pass

    def set_message(self, message: str) -> None:
        pass

    def finish(self, message: str) -> None:
        pass


class RichProgressSink:
    def __init__(self, progress: Progress, label: str) -> None:
        self.progress = progress
        self.label = label
        self.task_id: TaskID = progress.add_task(label, total=None, status="waiting")
        self._total = 0

    def set_total(self, total: int) -> None:
        self._total = total
        self.progress.update(self.task_id, total=total, completed=0)

    def advance(self, n: int = 1) -> None:
        self.progress.advance(self.task_id, n)

    def set_message(self, message: str) -> None:
        self.progress.update(self.task_id, status=message)

    def finish(self, message: str) -> None:
        self.progress.update(
            self.task_id, total=self._total, completed=self._total, status=message
        )


def make_progress(console: Console | None = None) -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold cyan]{task.description:<16}"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("{task.fields[status]}"),
        console=console,
    )
