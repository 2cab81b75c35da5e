"""Look up the public IP address of this host."""

from __future__ import annotations

import requests

DEFAULT_URL = "https://icanhazip.com"

_CONNECT_TIMEOUT = 10
_READ_TIMEOUT = 30


def get_ip(url: str = DEFAULT_URL, session: requests.Session | None = None) -> str:
    """Fetch ``url`` and return its body, which holds the caller's IP address."""
    getter = session if session is not None else requests
    response = getter.get(url, timeout=(_CONNECT_TIMEOUT, _READ_TIMEOUT))
    return response.text.strip()