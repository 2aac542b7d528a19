"""Backend source parsing.

``https://…/repo.git@ref`` names a branch inline:
- https://github.com/org/backend.git@develop -> (https://github.com/org/backend.git, develop)
- https://github.com/org/backend             -> (https://github.com/org/backend, None)
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass(frozen=True)
class GitSource:
    repo: str
    ref: str | None = None


def _looks_like_url(s: str) -> bool:
    u = urlparse(s)
    return u.scheme in {"http", "https", "ssh", "git", "file"} and bool(u.netloc or u.scheme == "file")


def parse_git_source(source: str) -> GitSource:
    if not _looks_like_url(source):
        raise ValueError(f"not a repository URL: {source!r}")
    path = urlparse(source).path
    # Only an '@' after the host part can be a ref; user@host is left alone.
    if "@" in path:
        repo, ref = source.rsplit("@", 1)
        if ref:
            return GitSource(repo, ref)
    return GitSource(source)
