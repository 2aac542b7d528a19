"""Resource jobs: one fetch-and-place unit of work per external resource."""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console

from sky_install import constants
from sky_install.errors import JobError
from sky_install.fetch.http import fetch, new_buffer
from sky_install.git.clone import clone
from sky_install.installer.orchestrator import ConcurrentOrchestrator
from sky_install.logging import get_logger
from sky_install.progress import NullProgress, ProgressSink
from sky_install.security.archive import make_writable, unzip
from sky_install.signing.checks import verify_sha256
from sky_install.types import LibrarySpec
from sky_install.util.cursor import PathCursor

log = get_logger(__name__)

CLOSURE_LIBRARY = LibrarySpec(
    name=constants.CLOSURE_LIB_NAME,
    url=constants.CLOSURE_LIB_URL,
    size_hint=constants.CLOSURE_LIB_BYTES,
    dest=(*constants.VIZ_JS_DIR, "closure-library"),
    flatten=True,
)

# The release zip holds the whole protobuf source tree; only js/ is used.
PROTOBUF_JS = LibrarySpec(
    name=constants.PROTOBUF_JS_NAME,
    url=constants.PROTOBUF_JS_URL,
    size_hint=constants.PROTOBUF_JS_BYTES,
    dest=(*constants.VIZ_JS_DIR, "protobuf-js-3.5.1"),
    flatten=True,
    keep="js",
    rename_to=(*constants.VIZ_JS_DIR, "protobuf"),
)

BUNDLED_LIBRARIES: tuple[LibrarySpec, ...] = (CLOSURE_LIBRARY, PROTOBUF_JS)


@contextmanager
def _phase(resource: str, phase: str) -> Iterator[None]:
    try:
        yield
    except JobError:
        raise
    except Exception as e:
        raise JobError(resource, phase, str(e) or type(e).__name__) from e


class LibraryJob:
    """Download a zip, unpack it below *root* and move it into place.

    A job runs at most once.
    """

    def __init__(
        self,
        spec: LibrarySpec,
        root: Path,
        progress: ProgressSink | None = None,
        *,
        timeout: float = constants.DEFAULT_TIMEOUT,
    ) -> None:
        self.spec = spec
        self.root = Path(root)
        self.progress = progress or NullProgress()
        self.timeout = timeout
        self._consumed = False

    @property
    def name(self) -> str:
        return self.spec.name

    def run(self) -> None:
        if self._consumed:
            raise RuntimeError(f"job {self.name} has already run")
        self._consumed = True

        spec = self.spec
        log.info("starting %s from %s", spec.name, spec.url)

        self.progress.set_message("downloading")
        with _phase(spec.name, "download"):
            payload = fetch(spec.url, new_buffer(spec.size_hint), timeout=self.timeout)
            if spec.sha256:
                verify_sha256(payload, expected=spec.sha256)

        with PathCursor(self.root) as cd:
            self.progress.set_message("unpacking")
            with _phase(spec.name, "unpack"), cd.layer() as staging:
                staging.push(*spec.dest)
                staging.path.mkdir(parents=True, exist_ok=True)
                unzip(payload, staging, spec.flatten, self.progress)
                if os.name == "nt":
                    make_writable(staging)

            if spec.keep is not None and spec.rename_to is not None:
                self.progress.set_message("moving")
                with _phase(spec.name, "relocate"):
                    self._relocate(cd)

        self.progress.finish("done")
        log.info("finished %s", spec.name)

    def _relocate(self, cd: PathCursor) -> None:
        spec = self.spec
        # Layers share one backing path, so they are entered one after the other.
        with cd.layer() as staging:
            staging.push(*spec.dest)
            staging_dir = staging.snapshot()

        source = staging_dir / spec.keep
        if not source.is_dir():
            raise FileNotFoundError(f"{spec.keep!r} not found in unpacked {spec.name}")

        with cd.layer() as final:
            final.push(*spec.rename_to)
            if final.path.exists():
                shutil.rmtree(final.path)
            final.path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(final.path))

        shutil.rmtree(staging_dir)


class CloneJob:
    """Clone a repository; core checkouts also receive the bundled libraries."""

    def __init__(
        self,
        url: str,
        branch: str,
        target: Path,
        *,
        is_core: bool = False,
        libraries: tuple[LibrarySpec, ...] = BUNDLED_LIBRARIES,
        timeout: float = constants.DEFAULT_TIMEOUT,
        console: Console | None = None,
    ) -> None:
        self.url = url
        self.branch = branch
        self.target = Path(target)
        self.is_core = is_core
        self.libraries = libraries
        self.timeout = timeout
        self.console = console

    def run(self) -> None:
        log.info("cloning %s (%s) into %s", self.url, self.branch, self.target)
        with _phase(self.url, "clone"):
            clone(self.url, self.branch, self.target)

        if self.is_core:
            fetch_bundled_libraries(
                self.target, self.libraries, timeout=self.timeout, console=self.console
            )


def fetch_bundled_libraries(
    root: Path,
    libraries: tuple[LibrarySpec, ...] = BUNDLED_LIBRARIES,
    *,
    timeout: float = constants.DEFAULT_TIMEOUT,
    console: Console | None = None,
) -> None:
    """Fetch every bundled library into the checkout at *root* concurrently.

    Raises ``AggregateError`` listing every job that failed; jobs that
    succeeded leave their files in place.
    """
    jobs = [LibraryJob(spec, root, timeout=timeout) for spec in libraries]
    ConcurrentOrchestrator(jobs, console=console).run()
