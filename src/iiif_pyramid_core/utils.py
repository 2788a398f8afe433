"""Common helpers shared by the resolver and the addressing code."""

from __future__ import annotations

import re

DEFAULT_HEADERS = {
    "User-Agent": "iiif-pyramid/0.3 (+https://iiif.io/api/image/)",
    "Accept": "application/ld+json,application/json;q=0.9,*/*;q=0.5",
    "Accept-Language": "en-US,en;q=0.9",
}

_INFO_JSON_SUFFIX = re.compile(r"/info\.json/?$")


def strip_info_json(url: str) -> str:
    """Return the image service base URL without `/info.json` or trailing slashes."""
    return _INFO_JSON_SUFFIX.sub("", str(url or "").strip()).rstrip("/")


def format_number(value: float) -> str:
    """Render a pixel value for a URL path, dropping a redundant `.0`."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
