import pytest

from iiif_pyramid_core.profiles import ComplianceLevel, classify_profile, is_level0_profile, profile_head


@pytest.mark.parametrize(
    "profile",
    [
        "level0",
        "http://iiif.io/api/image/2/level0.json",
        "https://iiif.io/api/image/3/level0.json",
        "http://library.stanford.edu/iiif/image-api/1.1/compliance.html#level0",
        ["http://iiif.io/api/image/2/level0.json", {"formats": ["jpg"]}],
    ],
)
def test_level0_shapes(profile):
    assert classify_profile(profile) is ComplianceLevel.LEVEL0
    assert is_level0_profile(profile)


@pytest.mark.parametrize(
    "profile",
    [
        "level1",
        "level2",
        "http://iiif.io/api/image/2/level2.json",
        "http://iiif.io/api/image/2/level0.json/extra",
        ["http://iiif.io/api/image/2/level1.json", {"supports": ["regionByPx"]}],
        [{"formats": ["jpg"]}, "http://iiif.io/api/image/2/level0.json"],
        [],
        None,
        42,
    ],
)
def test_non_level0_shapes(profile):
    assert classify_profile(profile) is ComplianceLevel.LEVEL1_PLUS
    assert not is_level0_profile(profile)


def test_profile_head_takes_first_string_only():
    assert profile_head("level2") == "level2"
    assert profile_head(["http://iiif.io/api/image/2/level1.json", {}]) == "http://iiif.io/api/image/2/level1.json"
    assert profile_head([{"formats": []}]) is None
    assert profile_head(None) is None


def test_surrounding_whitespace_is_ignored():
    assert is_level0_profile("  level0 ")
