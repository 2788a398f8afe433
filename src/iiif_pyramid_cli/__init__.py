"""Command-line entry point for iiif-pyramid."""
