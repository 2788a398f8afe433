import pytest

from iiif_pyramid_core.descriptor import ImageDescriptor, detect_version, parse_descriptor
from iiif_pyramid_core.exceptions import MalformedDescriptorError
from iiif_pyramid_core.profiles import ComplianceLevel


def test_parse_v3_descriptor(level0_info):
    desc = parse_descriptor(level0_info)

    assert isinstance(desc, ImageDescriptor)
    assert desc.id == "https://example.org/iiif/image"
    assert (desc.width, desc.height) == (4000, 3000)
    assert desc.version == 3
    assert desc.tile_width == desc.tile_height == 2048
    assert desc.scale_factors == (1, 2, 4)
    assert desc.compliance is ComplianceLevel.LEVEL0
    assert desc.is_level0


def test_id_recovered_from_request_url_when_missing():
    desc = parse_descriptor({"width": 1000, "height": 800}, "https://example.org/iiif/image/info.json")

    assert desc.id == "https://example.org/iiif/image"
    assert desc.tile_width is None
    assert desc.scale_factors == ()


def test_info_json_suffix_stripped_from_embedded_id():
    desc = parse_descriptor({"@id": "https://example.org/iiif/abc/info.json", "width": 10, "height": 10})
    assert desc.id == "https://example.org/iiif/abc"


def test_v2_descriptor_with_profile_list_and_rectangular_tiles():
    desc = parse_descriptor(
        {
            "@context": "http://iiif.io/api/image/2/context.json",
            "@id": "https://example.org/iiif/v2/",
            "width": 6000,
            "height": 4000,
            "profile": ["http://iiif.io/api/image/2/level2.json", {"formats": ["jpg", "png"]}],
            "tiles": [{"width": 512, "height": 256, "scaleFactors": [1, 2, 4, 8, 16]}],
            "sizes": [{"width": 375, "height": 250}, {"width": 187, "height": 125}],
        }
    )

    assert desc.id == "https://example.org/iiif/v2"
    assert desc.version == 2
    assert (desc.tile_width, desc.tile_height) == (512, 256)
    assert desc.scale_factors == (1, 2, 4, 8, 16)
    assert not desc.is_level0


def test_scale_factors_gathered_from_every_tiles_entry():
    desc = parse_descriptor(
        {
            "id": "https://example.org/iiif/multi",
            "width": 5000,
            "height": 5000,
            "tiles": [{"width": 256, "scaleFactors": [1, 2]}, {"width": 1024, "scaleFactors": [4, 8, 2]}],
        }
    )
    assert desc.tile_width == 256
    assert desc.scale_factors == (1, 2, 4, 8)


def test_legacy_top_level_scale_factors_and_tile_width():
    desc = parse_descriptor(
        {
            "@context": "http://library.stanford.edu/iiif/image-api/1.1/context.json",
            "@id": "https://example.org/iiif/v1",
            "width": 2000,
            "height": 1000,
            "tile_width": 512,
            "scale_factors": [1, 2, 4],
        }
    )
    assert desc.version == 1
    assert desc.tile_width == desc.tile_height == 512
    assert desc.scale_factors == (1, 2, 4)


def test_invalid_scale_factors_are_dropped():
    desc = parse_descriptor(
        {"id": "x", "width": 100, "height": 100, "scale_factors": [1, 0, -2, "4", 2.5, True, 8, 8]}
    )
    assert desc.scale_factors == (1, 8)


def test_preferred_format_overrides_configured_default():
    desc = parse_descriptor({"id": "x", "width": 1, "height": 1, "preferredFormats": ["webp", "jpg"]})
    assert desc.tile_format == "webp"


def test_configured_tile_format_used_by_default(_isolated_config_and_logs):
    _isolated_config_and_logs.data["settings"]["tiling"]["tile_format"] = "png"
    desc = parse_descriptor({"id": "x", "width": 1, "height": 1})
    assert desc.tile_format == "png"


@pytest.mark.parametrize(
    "payload",
    [
        {"id": "x", "width": 0, "height": 100},
        {"id": "x", "width": 100},
        {"id": "x", "width": "wide", "height": 100},
        {"id": "x", "width": -5, "height": 100},
        {"width": 100, "height": 100},
    ],
)
def test_malformed_descriptors_raise(payload):
    with pytest.raises(MalformedDescriptorError):
        parse_descriptor(payload)


def test_non_object_payload_raises():
    with pytest.raises(MalformedDescriptorError):
        parse_descriptor(["not", "a", "descriptor"], "https://example.org/info.json")


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"@context": "http://iiif.io/api/image/3/context.json"}, 3),
        ({"@context": ["http://example.org/extension.json", "http://iiif.io/api/image/3/context.json"]}, 3),
        ({"@context": "http://iiif.io/api/image/2/context.json"}, 2),
        ({"@context": "http://library.stanford.edu/iiif/image-api/1.1/context.json"}, 1),
        ({"type": "ImageService3"}, 3),
        ({"version": 3}, 3),
        ({"version": "3"}, 2),
        ({}, 2),
    ],
)
def test_detect_version(payload, expected):
    assert detect_version(payload) == expected


def test_only_tiling_fields_are_kept(level0_info):
    with_extras = dict(level0_info, sizes=[{"width": 500, "height": 375}], rights="http://example.org/rights")
    assert parse_descriptor(with_extras) == parse_descriptor(level0_info)
