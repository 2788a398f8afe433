"""Level policy and region addressing for IIIF Image API tile pyramids."""

__version__ = "0.3.0"
