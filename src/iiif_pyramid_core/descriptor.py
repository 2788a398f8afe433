"""Parsing of IIIF Image API `info.json` payloads into an immutable descriptor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .config_manager import get_config_manager
from .exceptions import MalformedDescriptorError
from .logger import get_logger
from .profiles import ComplianceLevel, classify_profile
from .utils import strip_info_json

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImageDescriptor:
    """The subset of an info.json that drives tiling decisions."""

    id: str
    width: int
    height: int
    version: int = 2
    profile: Any = None
    tile_width: int | None = None
    tile_height: int | None = None
    scale_factors: tuple[int, ...] = ()
    tile_format: str = "jpg"

    @property
    def compliance(self) -> ComplianceLevel:
        return classify_profile(self.profile)

    @property
    def is_level0(self) -> bool:
        return self.compliance is ComplianceLevel.LEVEL0


def _context_strings(data: dict[str, Any]) -> list[str]:
    context = data.get("@context")
    if isinstance(context, str):
        return [context]
    if isinstance(context, list):
        return [c for c in context if isinstance(c, str)]
    return []


def detect_version(data: dict[str, Any]) -> int:
    """Detect the Image API major version (1, 2 or 3) of a descriptor.

    `@context` wins, then the v3 `type`, then an explicit `version` key.
    Defaults to 2.
    """
    for ctx in _context_strings(data):
        if "/image/3/" in ctx:
            return 3
        if "/image/2/" in ctx:
            return 2
        if "/image/1/" in ctx or "/1.1/" in ctx or "/1.0/" in ctx:
            return 1

    if data.get("type") == "ImageService3":
        return 3

    version = data.get("version")
    if isinstance(version, int) and version in (1, 2, 3):
        return version

    return 2


def _positive_int(value: Any, *, allow_str: bool = True) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    elif isinstance(value, str):
        if not allow_str:
            return None
        try:
            value = int(value.strip())
        except ValueError:
            return None
    elif not isinstance(value, int):
        return None
    return value if value > 0 else None


def _collect_scale_factors(raw_factors: Any, sink: list[int]) -> None:
    if isinstance(raw_factors, (int, float)) and not isinstance(raw_factors, bool):
        raw_factors = [raw_factors]
    if not isinstance(raw_factors, (list, tuple)):
        return
    for value in raw_factors:
        factor = _positive_int(value, allow_str=False)
        if factor is None:
            logger.debug("Dropping invalid scale factor %r", value)
            continue
        if factor not in sink:
            sink.append(factor)


def _tile_spec(data: dict[str, Any]) -> tuple[int | None, int | None, list[int]]:
    tile_w: int | None = None
    tile_h: int | None = None
    factors: list[int] = []

    tiles = data.get("tiles")
    if isinstance(tiles, dict):
        tiles = [tiles]
    if isinstance(tiles, list):
        specs = [t for t in tiles if isinstance(t, dict)]
        if specs:
            tile_w = _positive_int(specs[0].get("width"))
            tile_h = _positive_int(specs[0].get("height")) or tile_w
        for spec in specs:
            _collect_scale_factors(spec.get("scaleFactors") or spec.get("scale_factors"), factors)

    if tile_w is None:
        # Image API 1.x
        tile_w = _positive_int(data.get("tile_width"))
        tile_h = _positive_int(data.get("tile_height")) or tile_w
        if tile_w is None and tile_h is not None:
            tile_w = tile_h

    if not factors:
        _collect_scale_factors(data.get("scale_factors") or data.get("scaleFactors"), factors)

    return tile_w, tile_h, sorted(factors)


def _tile_format(data: dict[str, Any]) -> str:
    preferred = data.get("preferredFormats")
    if isinstance(preferred, list) and preferred and isinstance(preferred[0], str) and preferred[0].strip():
        return preferred[0].strip()
    return str(get_config_manager().get_setting("tiling.tile_format", "jpg") or "jpg")


def parse_descriptor(data: Any, url: str | None = None) -> ImageDescriptor:
    """Build an :class:`ImageDescriptor` from a decoded info.json payload.

    `url` is the address the payload was fetched from; it supplies the image
    id when the payload carries neither `id` nor `@id`.

    Raises:
        MalformedDescriptorError: when width/height are not positive integers
            or no id can be recovered.
    """
    if not isinstance(data, dict):
        raise MalformedDescriptorError(f"descriptor must be an object, got {type(data).__name__}")

    width = _positive_int(data.get("width"))
    height = _positive_int(data.get("height"))
    if not width or not height:
        raise MalformedDescriptorError(
            f"descriptor needs positive width/height, got {data.get('width')!r}x{data.get('height')!r}"
        )

    raw_id = data.get("id") or data.get("@id") or url
    if not isinstance(raw_id, str) or not raw_id.strip():
        raise MalformedDescriptorError("descriptor has no id and no source url")

    tile_w, tile_h, factors = _tile_spec(data)

    return ImageDescriptor(
        id=strip_info_json(raw_id),
        width=width,
        height=height,
        version=detect_version(data),
        profile=data.get("profile"),
        tile_width=tile_w,
        tile_height=tile_h,
        scale_factors=tuple(factors),
        tile_format=_tile_format(data),
    )
