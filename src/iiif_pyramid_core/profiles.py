"""IIIF compliance-level detection for `profile` values found in info.json."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ComplianceLevel(str, Enum):
    """Whether a service can answer arbitrary regions or only whole-image sizes."""

    LEVEL0 = "level0"
    LEVEL1_PLUS = "level1+"


def profile_head(profile: Any) -> str | None:
    """Return the leading string of a profile.

    v3 descriptors carry a bare string (`"level0"`), v2 descriptors a list
    whose first entry is the compliance URL followed by feature dicts.
    """
    if isinstance(profile, str):
        return profile
    if isinstance(profile, (list, tuple)) and profile and isinstance(profile[0], str):
        return profile[0]
    return None


def classify_profile(profile: Any) -> ComplianceLevel:
    """Map any known profile shape to a :class:`ComplianceLevel`.

    Recognised Level-0 shapes:
    - `"level0"`
    - `"http://iiif.io/api/image/2/level0.json"`
    - `"http://library.stanford.edu/iiif/image-api/1.1/compliance.html#level0"`
    """
    head = profile_head(profile)
    if not head:
        return ComplianceLevel.LEVEL1_PLUS
    head = head.strip()
    if head == "level0" or head.endswith("/level0.json") or head.endswith("#level0"):
        return ComplianceLevel.LEVEL0
    return ComplianceLevel.LEVEL1_PLUS


def is_level0_profile(profile: Any) -> bool:
    """Shorthand for `classify_profile(profile) is ComplianceLevel.LEVEL0`."""
    return classify_profile(profile) is ComplianceLevel.LEVEL0
