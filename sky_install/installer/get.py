"""``get``: fetch a SCAII resource (core, RTS or a backend) from git.

Before anything touches the network the destination is checked: an existing
directory is an error unless ``force`` is set, in which case it is removed
first.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

from sky_install import constants
from sky_install.errors import (
    CannotCleanError,
    CannotCreateError,
    DestinationExistsError,
    ReservedNameError,
)
from sky_install.installer.jobs import BUNDLED_LIBRARIES, CloneJob
from sky_install.logging import get_logger
from sky_install.security.archive import make_writable
from sky_install.types import InstallConfig
from sky_install.util.names import NameOrPath

log = get_logger(__name__)


@dataclass(frozen=True)
class Get:
    url: str
    branch: str
    name_path: NameOrPath
    force: bool = False
    is_core: bool = False

    @classmethod
    def new_core(cls, save_path: str | None, branch: str, force: bool) -> Get:
        return cls(
            url=constants.CORE_URL,
            branch=branch,
            name_path=NameOrPath.from_path_or_default(save_path, constants.CORE_NAME),
            force=force,
            is_core=True,
        )

    @classmethod
    def new_rts(cls, save_path: str | None, branch: str, force: bool) -> Get:
        return cls(
            url=constants.RTS_URL,
            branch=branch,
            name_path=NameOrPath.from_path_or_default(save_path, constants.RTS_NAME),
            force=force,
        )

    @classmethod
    def new_backend(cls, name_path: NameOrPath, branch: str, force: bool, url: str) -> Get:
        if name_path.name in constants.RESERVED_NAMES:
            raise ReservedNameError(
                f"Use of reserved resource name {name_path.name} "
                f"(Note: reserved names are {', '.join(sorted(constants.RESERVED_NAMES))})"
            )
        return cls(url=url, branch=branch, name_path=name_path, force=force)

    def get(
        self,
        scaii_dir: Path | None = None,
        *,
        config: InstallConfig | None = None,
        console: Console | None = None,
    ) -> Path:
        """Clone into the resolved destination and return it."""
        scaii_dir = scaii_dir if scaii_dir is not None else constants.SCAII_HOME
        install_path = self.name_path.to_path(scaii_dir)
        config = config or InstallConfig()

        _prepare_destination(install_path, force=self.force)

        libraries = tuple(config.apply(spec) for spec in BUNDLED_LIBRARIES)
        CloneJob(
            self.url,
            self.branch,
            install_path,
            is_core=self.is_core,
            libraries=libraries,
            timeout=config.timeout,
            console=console,
        ).run()
        return install_path


def _prepare_destination(install_path: Path, *, force: bool) -> None:
    if install_path.exists():
        if not force:
            raise DestinationExistsError(install_path)
        log.info("removing existing %s", install_path)
        try:
            _remove_tree(install_path)
        except OSError as e:
            raise CannotCleanError(install_path) from e

    try:
        install_path.mkdir(parents=True)
    except OSError as e:
        raise CannotCreateError(install_path) from e


def _remove_tree(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        if os.name == "nt":
            # git pack files are read-only; Windows refuses to delete them as-is.
            make_writable(path)
        shutil.rmtree(path)
    else:
        path.unlink()
