"""Fetch info.json sources once each and turn them into viewer tile sources.

String sources are fetched in parallel; everything else is passed through
untouched. A single 401 anywhere aborts the batch with an auth result, since
a multi-image view is only meaningful when every image is accessible. Any
other failure passes the original URL through so the viewer's own error
handling takes over. Nothing is retried.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any

import requests
from requests import RequestException
from tqdm import tqdm

from .config_manager import get_config_manager
from .exceptions import AuthRequiredError, DescriptorUnavailableError
from .logger import get_logger, preview_body
from .pyramid import Viewport, adapt
from .utils import DEFAULT_HEADERS

logger = get_logger(__name__)

AUTH_ERROR_TYPE = "auth"


@dataclass(frozen=True)
class TileSourceResolution:
    """Outcome of :func:`resolve_tile_sources`.

    Either `ok=True` with `resolved` (same length and order as the input) or
    `ok=False` with `error={"type": "auth"}` and no resolved list.
    """

    ok: bool
    resolved: list[Any] | None = None
    error: dict[str, str] | None = None

    @classmethod
    def success(cls, resolved: list[Any]) -> TileSourceResolution:
        return cls(ok=True, resolved=resolved)

    @classmethod
    def auth_required(cls) -> TileSourceResolution:
        return cls(ok=False, error={"type": AUTH_ERROR_TYPE})

    def as_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"ok": True, "resolved": self.resolved}
        return {"ok": False, "error": dict(self.error or {})}


def fetch_descriptor(url: str, session: Any = None, timeout: float | None = None) -> Any:
    """GET one info.json and return its decoded JSON body.

    Raises:
        AuthRequiredError: the server answered 401.
        DescriptorUnavailableError: network failure, non-2xx status, or a body
            that is not JSON.
    """
    getter = session.get if session is not None else requests.get
    try:
        response = getter(url, headers=DEFAULT_HEADERS, timeout=timeout)
    except (RequestException, OSError) as exc:
        raise DescriptorUnavailableError(url, str(exc)) from exc

    status = getattr(response, "status_code", 0)
    if status == 401:
        raise AuthRequiredError(url)
    if not 200 <= status < 300:
        raise DescriptorUnavailableError(url, f"HTTP {status}")

    try:
        return response.json()
    except ValueError as exc:
        preview = preview_body(getattr(response, "text", "") or "")
        logger.debug("Body of %s is not JSON: %s", url, preview)
        raise DescriptorUnavailableError(url, f"invalid JSON: {exc}") from exc


def _resolve_one(url: str, viewport: Viewport | None, session: Any, timeout: float) -> Any:
    try:
        data = fetch_descriptor(url, session=session, timeout=timeout)
    except DescriptorUnavailableError as exc:
        logger.warning("Passing source through unresolved: %s", exc)
        return url
    logger.debug("Fetched descriptor %s", url)
    return adapt(data, url, viewport)


def resolve_tile_sources(
    sources: Sequence[Any],
    viewport: Viewport | Any = None,
    *,
    session: Any = None,
    timeout: float | None = None,
    max_workers: int | None = None,
    show_progress: bool = False,
) -> TileSourceResolution:
    """Resolve a batch of sources for a deep-zoom viewer.

    Each distinct string URL is fetched exactly once, in parallel; the call
    returns after every fetch has settled. In-flight requests are not
    cancelled if the caller stops waiting.
    """
    cm = get_config_manager()
    if timeout is None:
        timeout = cm.get_int_setting("network.request_timeout", 15)
    if max_workers is None:
        max_workers = cm.get_int_setting("network.resolver_workers", 8)
    parsed_viewport = Viewport.parse(viewport)

    urls = list(dict.fromkeys(s for s in sources if isinstance(s, str)))
    results: dict[str, Any] = {}
    auth_failures: list[str] = []

    if urls:
        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(urls)))) as executor:
            future_to_url = {
                executor.submit(_resolve_one, url, parsed_viewport, session, timeout): url for url in urls
            }
            for future in tqdm(
                as_completed(future_to_url), total=len(urls), disable=not show_progress, desc="info.json"
            ):
                url = future_to_url[future]
                try:
                    results[url] = future.result()
                except AuthRequiredError:
                    auth_failures.append(url)
                except Exception:
                    logger.warning("Unexpected failure resolving %s, passing it through", url, exc_info=True)
                    results[url] = url

    if auth_failures:
        logger.warning("Authentication required for %d source(s): %s", len(auth_failures), ", ".join(auth_failures))
        return TileSourceResolution.auth_required()

    resolved = [results[s] if isinstance(s, str) else s for s in sources]
    return TileSourceResolution.success(resolved)
