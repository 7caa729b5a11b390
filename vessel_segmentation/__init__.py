# vessel_segmentation — Retinal Vessel Extraction
"""
Classical morphological extraction of blood vessels from fundus photographs.

Submodules:
    extractor      — VesselExtractor pipeline and configuration preset
    preprocessing  — Single-stage image helpers
    visualization  — Interactive preview, two-up composite, stage figures
    utils          — Shared helper functions
    cli            — Command-line entry point
"""

from .extractor import CONFIG_DEFAULT, VesselExtractor, get_config

__all__ = ["CONFIG_DEFAULT", "VesselExtractor", "get_config"]
