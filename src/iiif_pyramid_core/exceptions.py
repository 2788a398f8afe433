"""Error taxonomy for descriptor resolution and tile-source construction."""

from __future__ import annotations


class AuthRequiredError(RuntimeError):
    """An info.json endpoint answered 401; the whole batch must be abandoned."""

    def __init__(self, url: str):
        super().__init__(f"Authentication required for {url}")
        self.url = url


class DescriptorUnavailableError(RuntimeError):
    """One info.json could not be fetched or parsed; the source is passed through."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Descriptor unavailable at {url}: {reason}")
        self.url = url
        self.reason = reason


class MalformedDescriptorError(ValueError):
    """A parsed descriptor cannot be turned into a tile source."""
