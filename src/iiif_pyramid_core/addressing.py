"""Pure region/size arithmetic for IIIF Image API request URLs.

Every function here is side-effect free; URLs follow
`{id}/{region}/{size}/{rotation}/{quality}.{format}`.
"""

from __future__ import annotations

import math
from typing import NamedTuple

from .utils import format_number

IIIF_ROTATION = "0"


class Region(NamedTuple):
    """A rectangle in full-resolution image pixels."""

    x: float
    y: float
    width: float
    height: float

    def token(self) -> str:
        return ",".join(format_number(v) for v in self)


class DisplaySize(NamedTuple):
    width: float
    height: float


def build_image_url(base_id: str, region: str, size: str, quality: str, fmt: str = "jpg") -> str:
    """Join the IIIF path segments onto the service base id."""
    return f"{base_id.rstrip('/')}/{region}/{size}/{IIIF_ROTATION}/{quality}.{fmt}"


def level_dimensions(width: int, height: int, scale: float) -> tuple[int, int]:
    """Whole-image pixel size at a level scale (1.0 = native)."""
    return int(math.ceil(width * scale)), int(math.ceil(height * scale))


def tile_quality(version: int) -> str:
    """Quality token used for per-tile requests."""
    return "native" if version == 1 else "default"


def full_image_quality(version: int) -> str:
    """Quality token used for whole-image requests."""
    return "default" if version == 3 else "native"


def full_image_size_token(
    level_width: int,
    level_height: int,
    width: int,
    height: int,
    *,
    version: int,
    level0: bool,
) -> str:
    """Size token for a whole-image request at `level_width` x `level_height`.

    Level-0 servers only get a width (`"w,"`), since they may reject a
    width/height pair that does not match their own aspect rounding.
    """
    if version == 3:
        if level_width == width and level_height == height:
            return "max"
        if level0:
            return f"{level_width},"
        return f"{level_width},{level_height}"
    if level_width == width:
        return "full"
    return f"{level_width},"


def full_image_url(
    base_id: str,
    width: int,
    height: int,
    scale: float,
    *,
    version: int,
    level0: bool,
    tile_format: str = "jpg",
) -> str:
    """Whole-image URL (`region=full`) scaled by `scale`."""
    level_width, level_height = level_dimensions(width, height, scale)
    size = full_image_size_token(level_width, level_height, width, height, version=version, level0=level0)
    return build_image_url(base_id, "full", size, full_image_quality(version), tile_format)


def tile_region(x: int, y: int, cover_width: float, cover_height: float, width: int, height: int) -> Region | None:
    """Region of the full-resolution image covered by tile `(x, y)`.

    `cover_width`/`cover_height` are the tile edge lengths in full-resolution
    pixels. Edge tiles are clipped to the image; tiles starting outside the
    image, or with negative coordinates, yield `None`.
    """
    if x < 0 or y < 0:
        return None
    min_x = x * cover_width
    min_y = y * cover_height
    if min_x >= width or min_y >= height:
        return None
    region_w = min(cover_width, width - min_x)
    region_h = min(cover_height, height - min_y)
    if region_w <= 0 or region_h <= 0:
        return None
    return Region(min_x, min_y, region_w, region_h)


def scaled_size_token(scaled_width: int, scaled_height: int, width: int, height: int, version: int) -> str:
    """Size token for a tiled request whose output is `scaled_width` x `scaled_height`."""
    if version == 3:
        if scaled_width == width and scaled_height == height:
            return "max"
        return f"{scaled_width},{scaled_height}"
    if scaled_width == width:
        return "full"
    return f"{scaled_width},"


def zoom_scale_factor(z: int) -> float:
    """Downsampling factor for a tile-layer zoom (0 = native, -1 = half size)."""
    return 2.0 ** (-z)


def zoom_tile_region(x: int, y: int, z: int, tile_size: int, width: int, height: int) -> Region | None:
    """Full-resolution region a tile-layer tile covers at zoom `z`."""
    cover = tile_size * zoom_scale_factor(z)
    return tile_region(x, y, cover, cover, width, height)


def zoom_size_width(region: Region, z: int) -> int:
    """Requested output width of a tile-layer tile.

    Rounded up so the full region's data is present at fractional
    boundaries; :func:`edge_display_size` corrects the visual oversize.
    """
    return int(math.ceil(region.width / zoom_scale_factor(z)))


def edge_display_size(
    x: int,
    y: int,
    z: int,
    tile_size: int,
    width: int,
    height: int,
    *,
    max_native_zoom: int = 0,
) -> DisplaySize:
    """Exact on-screen size of a loaded tile-layer tile.

    Interior tiles keep the nominal `tile_size`; right/bottom edge tiles get
    `region / scale`, which can be fractional. Zooms above `max_native_zoom`
    are computed at `max_native_zoom`.
    """
    native_z = min(z, max_native_zoom)
    scale = 2.0 ** (max_native_zoom - native_z)
    cover = tile_size * scale

    region_w = min(cover, width - x * cover)
    region_h = min(cover, height - y * cover)
    style_w = region_w / scale
    style_h = region_h / scale

    if style_w < tile_size or style_h < tile_size:
        return DisplaySize(style_w, style_h)
    return DisplaySize(float(tile_size), float(tile_size))
