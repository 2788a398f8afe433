"""Level-0 pyramid policy: which levels are tiled, whole-image, or hidden.

A Level-0 IIIF server answers only a fixed set of sizes. A deep-zoom viewer
assumes every level between `min_level` and `max_level` is tiled, so the
native pyramid is wrapped in a :class:`PolicyTileSource` that:

- hides levels the server cannot answer and redirects their URLs to the
  lowest genuinely tiled level;
- collapses levels that cannot (or need not) be tiled into a single
  whole-image request.

The policy table is computed once per descriptor/viewport pair and never
mutated. Tiling-capable services get their native tile source unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, NamedTuple

from .addressing import full_image_url, level_dimensions
from .descriptor import ImageDescriptor, parse_descriptor
from .exceptions import MalformedDescriptorError
from .logger import get_logger
from .tile_source import NativeTileSource, TileCount, TileSource

logger = get_logger(__name__)

NO_LEVEL = -1


class LevelPolicy(str, Enum):
    TILED = "tiled"
    FULL_IMAGE = "full_image"
    HIDDEN = "hidden"


class Viewport(NamedTuple):
    width: int
    height: int

    @classmethod
    def parse(cls, value: Any) -> Viewport | None:
        """Accept a `Viewport`, a `(w, h)` pair, a `{"width", "height"}` dict or `"WxH"`."""
        if value is None or isinstance(value, Viewport):
            return value
        if isinstance(value, str):
            parts = value.lower().replace(" ", "").split("x")
            if len(parts) != 2:
                raise ValueError(f"Invalid viewport {value!r}, expected WIDTHxHEIGHT")
            return cls(int(parts[0]), int(parts[1]))
        if isinstance(value, Mapping):
            return cls(int(value["width"]), int(value["height"]))
        width, height = value
        return cls(int(width), int(height))

    @property
    def usable(self) -> bool:
        return self.width > 0 and self.height > 0


def advertised_levels(source: TileSource) -> frozenset[int]:
    """Levels whose scale factor `2**(max_level - level)` the server advertises.

    An empty `scale_factors` means no restriction: every level qualifies.
    """
    if not source.scale_factors:
        return frozenset(source.levels())
    factors = set(source.scale_factors)
    return frozenset(level for level in source.levels() if 2 ** (source.max_level - level) in factors)


def _advertises(max_level: int, scale_factors: tuple[int, ...], level: int) -> bool:
    if not scale_factors:
        return True
    exponent = max_level - level
    if exponent < 0:
        return False
    return 2**exponent in scale_factors


def is_advertised(source: TileSource, level: int) -> bool:
    """Whether the server answers `level`; with restricted scale factors, levels above `max_level` never are."""
    return _advertises(source.max_level, source.scale_factors, level)


def tiled_only_min_level(source: TileSource) -> int:
    """Lowest advertised level whose native grid has more than one tile.

    Returns :data:`NO_LEVEL` when scale factors are unrestricted or every
    advertised level is a single tile.
    """
    if not source.scale_factors:
        return NO_LEVEL
    for level in source.levels():
        if not is_advertised(source, level):
            continue
        tiles = source.get_num_tiles(level)
        if tiles.x > 1 or tiles.y > 1:
            return level
    return NO_LEVEL


def fit_max_level(source: TileSource, viewport: Viewport | None) -> int:
    """Highest level whose whole scaled image fits inside `viewport`."""
    if viewport is None or not viewport.usable:
        return NO_LEVEL
    best = NO_LEVEL
    for level in source.levels():
        level_width, level_height = level_dimensions(source.width, source.height, source.get_level_scale(level))
        if level_width <= viewport.width and level_height <= viewport.height:
            best = level
    return best


@dataclass(frozen=True)
class LevelPolicyTable:
    """Immutable per-level policy for one descriptor/viewport pair."""

    tiled_only_min_level: int
    fit_max_level: int
    advertised: frozenset[int]
    single_tile: frozenset[int]
    max_level: int = 0
    scale_factors: tuple[int, ...] = ()
    policies: Mapping[int, LevelPolicy] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def has_threshold(self) -> bool:
        return self.tiled_only_min_level != NO_LEVEL

    def policy(self, level: int, *, single_tile: bool = False) -> LevelPolicy:
        """Policy for `level`.

        Levels outside the native pyramid are classified on the fly; pass
        `single_tile` for them since the table holds no grid there.
        """
        known = self.policies.get(level)
        if known is not None:
            return known
        return _classify_level(
            level,
            threshold=self.tiled_only_min_level,
            fit_level=self.fit_max_level,
            advertised=_advertises(self.max_level, self.scale_factors, level),
            single_tile=single_tile,
        )


def _classify_level(
    level: int,
    *,
    threshold: int,
    fit_level: int,
    advertised: bool,
    single_tile: bool,
) -> LevelPolicy:
    if threshold != NO_LEVEL:
        # Below the threshold no request shape exists; above it only
        # advertised scale factors can be tiled.
        if level < threshold or not advertised:
            return LevelPolicy.HIDDEN
        return LevelPolicy.TILED
    if fit_level != NO_LEVEL and level <= fit_level:
        return LevelPolicy.FULL_IMAGE
    if not advertised or single_tile:
        return LevelPolicy.FULL_IMAGE
    return LevelPolicy.TILED


def compute_level_policies(source: TileSource, viewport: Viewport | None = None) -> LevelPolicyTable:
    """Derive the :class:`LevelPolicyTable` for `source` displayed in `viewport`."""
    threshold = tiled_only_min_level(source)
    fit_level = fit_max_level(source, viewport)
    advertised = advertised_levels(source)

    single_tile = set()
    policies: dict[int, LevelPolicy] = {}
    for level in source.levels():
        tiles = source.get_num_tiles(level)
        if tiles.x == 1 and tiles.y == 1:
            single_tile.add(level)
        policies[level] = _classify_level(
            level,
            threshold=threshold,
            fit_level=fit_level,
            advertised=level in advertised,
            single_tile=level in single_tile,
        )

    return LevelPolicyTable(
        tiled_only_min_level=threshold,
        fit_max_level=fit_level,
        advertised=advertised,
        single_tile=frozenset(single_tile),
        max_level=source.max_level,
        scale_factors=tuple(source.scale_factors),
        policies=MappingProxyType(policies),
    )


class PolicyTileSource(TileSource):
    """A native tile source seen through a :class:`LevelPolicyTable`."""

    def __init__(self, native: NativeTileSource, table: LevelPolicyTable):
        self.native = native
        self.table = table
        self.id = native.id
        self.width = native.width
        self.height = native.height
        self.max_level = native.max_level
        self.profile = native.profile
        self.version = native.version
        self.scale_factors = native.scale_factors
        self.tile_format = native.tile_format
        self.tile_width = native.tile_width
        self.tile_height = native.tile_height
        if table.has_threshold:
            self.min_level = max(native.min_level, table.tiled_only_min_level)
        else:
            self.min_level = native.min_level

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.native!r}, threshold={self.table.tiled_only_min_level})"

    @property
    def descriptor(self) -> ImageDescriptor:
        return self.native.descriptor

    def level_policy(self, level: int) -> LevelPolicy:
        if level in self.table.policies:
            return self.table.policies[level]
        tiles = self.native.get_num_tiles(level)
        return self.table.policy(level, single_tile=tiles.x == 1 and tiles.y == 1)

    def get_num_tiles(self, level: int) -> TileCount:
        policy = self.level_policy(level)
        if policy is LevelPolicy.HIDDEN:
            return TileCount(0, 0)
        if policy is LevelPolicy.FULL_IMAGE:
            return TileCount(1, 1)
        return self.native.get_num_tiles(level)

    def get_tile_url(self, level: int, x: int, y: int) -> str:
        policy = self.level_policy(level)
        if policy is LevelPolicy.HIDDEN:
            # The viewer may still probe hidden levels; answer with the
            # threshold level's tile rather than an unanswerable request.
            return self.native.get_tile_url(self.table.tiled_only_min_level, x, y)
        if policy is LevelPolicy.FULL_IMAGE:
            return self.get_full_image_url(level)
        return self.native.get_tile_url(level, x, y)

    def get_full_image_url(self, level: int) -> str:
        return full_image_url(
            self.id,
            self.width,
            self.height,
            self.get_level_scale(level),
            version=self.version,
            level0=self.is_level0,
            tile_format=self.tile_format,
        )


def wrap_tile_source(native: NativeTileSource, viewport: Viewport | None = None) -> TileSource:
    """Apply the Level-0 policy to `native` when its profile calls for it."""
    if not native.is_level0:
        return native
    table = compute_level_policies(native, viewport)
    logger.debug(
        "Level-0 policy for %s: threshold=%s fit=%s %s",
        native.id,
        table.tiled_only_min_level,
        table.fit_max_level,
        {level: policy.value for level, policy in table.policies.items()},
    )
    return PolicyTileSource(native, table)


def adapt(
    descriptor: ImageDescriptor | dict[str, Any],
    url: str | None = None,
    viewport: Viewport | Any = None,
) -> TileSource | Any:
    """Turn an info.json payload (or parsed descriptor) into a tile source.

    `url` is the info.json address, used to recover the image id when the
    payload omits it. A payload that cannot be turned into a tile source is
    returned unchanged.
    """
    try:
        parsed = descriptor if isinstance(descriptor, ImageDescriptor) else parse_descriptor(descriptor, url)
        native = NativeTileSource(parsed)
    except MalformedDescriptorError as exc:
        logger.info("Returning raw descriptor for %s: %s", url or "inline source", exc)
        return descriptor
    return wrap_tile_source(native, Viewport.parse(viewport))
