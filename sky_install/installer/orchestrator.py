"""Run independent resource jobs in parallel and collect every failure.

Each worker returns its exception as a value instead of raising it, so a
failing job never takes its siblings down. The orchestrator waits for all of
them, then raises a single ``AggregateError`` if anything went wrong.
Failures are listed in completion order, which varies between runs.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Protocol

from rich.console import Console

from sky_install.errors import AggregateError
from sky_install.logging import get_logger
from sky_install.progress import ProgressSink, RichProgressSink, make_progress

log = get_logger(__name__)


class ResourceJob(Protocol):
    name: str
    progress: ProgressSink

    def run(self) -> None: ...


class State(enum.Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    JOINING = "joining"
    DONE = "done"


def _run_job(job: ResourceJob) -> BaseException | None:
    try:
        job.run()
    except Exception as e:
        log.error("%s failed: %s", job.name, e)
        job.progress.finish("failed")
        return e
    return None


class ConcurrentOrchestrator:
    def __init__(self, jobs: Sequence[ResourceJob], *, console: Console | None = None) -> None:
        self.jobs = list(jobs)
        self.console = console
        self.state = State.NOT_STARTED
        self.errors: list[BaseException] = []

    def run(self) -> None:
        if self.state is not State.NOT_STARTED:
            raise RuntimeError("orchestrator has already run")

        progress = make_progress(self.console)
        for job in self.jobs:
            job.progress = RichProgressSink(progress, job.name)
        progress.start()
        try:
            self.state = State.RUNNING
            if self.jobs:
                with ThreadPoolExecutor(
                    max_workers=len(self.jobs), thread_name_prefix="sky-job"
                ) as ex:
                    futures = [ex.submit(_run_job, job) for job in self.jobs]
                    for fut in as_completed(futures):
                        err = fut.result()
                        if err is not None:
                            self.errors.append(err)
            self.state = State.JOINING
        finally:
            try:
                progress.stop()
            except Exception as e:
                self.errors.append(e)

        self.state = State.DONE
        if self.errors:
            raise AggregateError(self.errors)
