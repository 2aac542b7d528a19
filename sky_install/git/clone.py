"""git clone through the ``git`` executable."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from sky_install.errors import CloneError


def clone(url: str, branch: str, target: Path) -> None:
    """Clone *branch* of *url* into *target* (which may exist if empty)."""
    git = shutil.which("git")
    if git is None:
        raise CloneError(url, branch, "git executable not found on PATH")

    cmd = [git, "clone", "-b", branch, url, str(target)]
    try:
        p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True)
    except OSError as e:
        raise CloneError(url, branch, str(e)) from e
    if p.returncode != 0:
        tail = (p.stdout or "").strip().splitlines()[-1:] or [f"exit code {p.returncode}"]
        raise CloneError(url, branch, tail[0])
