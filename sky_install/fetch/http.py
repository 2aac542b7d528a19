"""Single-shot HTTP(S) downloads into a reusable byte buffer."""

from __future__ import annotations

import httpx

from sky_install.constants import DEFAULT_TIMEOUT
from sky_install.errors import NetworkError


def new_buffer(size_hint: int = 0) -> bytearray:
    """Pre-allocate a buffer for a payload of roughly *size_hint* bytes."""
    return bytearray(max(size_hint, 0))


def fetch(
    url: str,
    buf: bytearray | None = None,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    client: httpx.Client | None = None,
) -> bytearray:
    """Fetch *url* into a byte buffer, following redirects.

    If *buf* is given its existing capacity is reused: the payload overwrites
    it from the start, it grows only when the payload is larger, and it is
    truncated to the payload size. The buffer is always handed back to the
    caller so it can be passed to the next call.

    Raises ``NetworkError`` on any transport or HTTP status failure.
    """
    if buf is None:
        buf = bytearray()

    try:
        if client is None:
            with httpx.Client(follow_redirects=True, timeout=timeout) as own:
                filled = _read_into(own, url, buf)
        else:
            filled = _read_into(client, url, buf)
    except httpx.HTTPError as e:
        raise NetworkError(url, str(e) or type(e).__name__) from e

    del buf[filled:]
    return buf


def _read_into(client: httpx.Client, url: str, buf: bytearray) -> int:
    filled = 0
    with client.stream("GET", url, follow_redirects=True) as r:
        r.raise_for_status()
        for chunk in r.iter_bytes():
            end = filled + len(chunk)
            if end <= len(buf):
                buf[filled:end] = chunk
            else:
                # Fill what is left of the preallocated room, append the rest.
                room = len(buf) - filled
                buf[filled:] = chunk[:room]
                buf.extend(chunk[room:])
            filled = end
    return filled
