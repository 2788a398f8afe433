"""Test bootstrap.

Ensures the src packages are importable, pins settings to the built-in
defaults and sends each test's log file to its own temporary folder.
"""

from __future__ import annotations

import contextlib
import copy
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists() and str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def _drop_log_handlers(logger_mod):
    for handler in list(logger_mod.app_logger.handlers):
        logger_mod.app_logger.removeHandler(handler)
        with contextlib.suppress(Exception):
            handler.close()


@pytest.fixture(autouse=True)
def _isolated_config_and_logs(tmp_path):
    """Yield the shared config manager reset to defaults, logging into `tmp_path`."""
    from iiif_pyramid_core import logger as logger_mod
    from iiif_pyramid_core.config_manager import DEFAULT_CONFIG_JSON, get_config_manager

    cm = get_config_manager()
    cm.data.clear()
    cm.data.update(copy.deepcopy(DEFAULT_CONFIG_JSON))

    _drop_log_handlers(logger_mod)
    logger_mod.setup_logging(log_dir=tmp_path / "logs")

    yield cm

    _drop_log_handlers(logger_mod)


class FakeResponse:
    """Minimal stand-in for `requests.Response`."""

    def __init__(self, *, json_data=None, status_code: int = 200, text: str = "", invalid_json: bool = False):
        self._json_data = json_data
        self.status_code = status_code
        self.text = text
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._json_data


class FakeSession:
    """Session double that serves canned responses keyed by URL and records calls."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls: list[str] = []

    def get(self, url, headers=None, timeout=None):  # noqa: ARG002
        self.calls.append(url)
        outcome = self.routes.get(url)
        if outcome is None:
            return FakeResponse(status_code=404)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def fake_session():
    return FakeSession()


LEVEL0_V3_INFO = {
    "@context": "http://iiif.io/api/image/3/context.json",
    "id": "https://example.org/iiif/image",
    "type": "ImageService3",
    "width": 4000,
    "height": 3000,
    "profile": "level0",
    "tiles": [{"width": 2048, "scaleFactors": [1, 2, 4]}],
}


@pytest.fixture
def level0_info():
    return copy.deepcopy(LEVEL0_V3_INFO)
