"""Zoom-indexed IIIF tile layer for hosts that manage their own map view.

Zoom 0 is native resolution (one map unit per image pixel); zoom -1 is
half size, -2 quarter size, and so on. Zooms above 0 reuse native tiles.
"""

from __future__ import annotations

import math
from typing import Any

from PIL import Image

from .addressing import DisplaySize, build_image_url, edge_display_size, zoom_size_width, zoom_tile_region
from .config_manager import get_config_manager
from .logger import get_logger
from .utils import strip_info_json

logger = get_logger(__name__)


def _layer_tile_size(data: dict[str, Any], fallback: int) -> int:
    tiles = data.get("tiles")
    if isinstance(tiles, list) and tiles and isinstance(tiles[0], dict) and tiles[0].get("width"):
        return int(tiles[0]["width"])
    if data.get("tile_width"):
        return int(data["tile_width"])
    return fallback


class IIIFTileLayer:
    """Tile addressing for a zoom-indexed layer over one IIIF image."""

    max_native_zoom = 0

    def __init__(
        self,
        data: dict[str, Any],
        *,
        tile_size: int | None = None,
        min_zoom: int | None = None,
        max_zoom: int | None = None,
    ):
        cm = get_config_manager()
        self.data = data
        self.width = int(data["width"])
        self.height = int(data["height"])
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")

        self.tile_size = tile_size or _layer_tile_size(data, cm.get_int_setting("layer.tile_size", 256))
        self.max_zoom = cm.get_int_setting("layer.max_zoom", 3) if max_zoom is None else max_zoom

        configured_min = cm.get_int_setting("layer.min_zoom", -6) if min_zoom is None else min_zoom
        # Zoom at which the whole image fits in one tile.
        fit_zoom = -int(math.ceil(math.log2(max(self.width, self.height) / self.tile_size)))
        self.min_zoom = min(configured_min, fit_zoom)

        base = data.get("@id") or data.get("id") or ""
        self.base_url = strip_info_json(base)

    def get_tile_url(self, x: int, y: int, z: int) -> str:
        """IIIF URL for tile `(x, y)` at zoom `z`, or `""` when the tile lies outside the image."""
        region = zoom_tile_region(x, y, z, self.tile_size, self.width, self.height)
        if region is None:
            return ""
        size_w = zoom_size_width(region, z)
        if size_w <= 0:
            return ""
        return build_image_url(self.base_url, region.token(), f"{size_w},", "default", "jpg")

    def tile_display_size(self, x: int, y: int, z: int) -> DisplaySize:
        """On-screen size for a loaded tile.

        Edge tiles shrink to exactly the area they cover so the rounded-up
        request size never stretches past the image edge.
        """
        return edge_display_size(
            x, y, z, self.tile_size, self.width, self.height, max_native_zoom=self.max_native_zoom
        )

    def is_edge_tile(self, x: int, y: int, z: int) -> bool:
        size = self.tile_display_size(x, y, z)
        return size.width < self.tile_size or size.height < self.tile_size

    def fit_loaded_tile(self, image: Image.Image, x: int, y: int, z: int) -> Image.Image:
        """Resize a loaded tile image to its corrected display size.

        Interior tiles and tiles already at the right size are returned as-is.
        """
        size = self.tile_display_size(x, y, z)
        target = (max(1, int(round(size.width))), max(1, int(round(size.height))))
        if image.size == target:
            return image
        logger.debug("Resizing tile (%s, %s, %s) from %s to %s", x, y, z, image.size, target)
        return image.resize(target)
