# -*- coding: utf-8 -*-
"""
Retinal Vessel Extraction — Morphological Contour Pipeline
===========================================================

A classical image processing pipeline that turns a colour fundus photograph
into a binary mask of vessel-like structures.

    1. **Lightness CLAHE** — the L* channel of CIE L*a*b* is contrast-limited
       equalized (clip limit 3) and replicated back to three channels.

    2. **Alternating Sequential Filter** — opening followed by closing with
       square structuring elements of side 5, 11 and 23.  Each pass removes
       features narrower than its element, so the result approximates the
       vessel-free background.

    3. **Background Subtraction** — subtracting the enhanced image from the
       background estimate leaves the vessels bright; a second CLAHE pass
       stretches the difference.

    4. **Median + Mean Threshold** — a 3x3 median removes impulse noise, then
       every pixel at or above the global mean is marked as vessel.

    5. **Blob Rejection** — contours enclosing less than 25 px² are erased,
       followed by a final 3x3 median.
"""

from collections import OrderedDict
from typing import Any, Callable, Dict, Optional

import cv2
import numpy as np

from .preprocessing import (
    create_clahe,
    lightness_channel,
    median_denoise,
    replicate_channel,
    to_bgr,
    validate_image,
)
from .visualization import show_image

# ──────────────────────────────────────────────────────────────────────────────
# Hyperparameter Preset
# ──────────────────────────────────────────────────────────────────────────────
#   morph_radii      — structuring-element radii, side length is 2*r + 1.
#                      Must be strictly increasing.
#   clahe_clip_limit — contrast limit shared by both CLAHE passes.
#   min_blob_area    — contours enclosing less than this are erased.

CONFIG_DEFAULT = {
    "morph_radii": (2, 5, 11),
    "clahe_clip_limit": 3.0,
    "clahe_grid_size": (8, 8),
    "median_ksize": 3,
    "min_blob_area": 25.0,
}

Display = Callable[[np.ndarray, str], None]


def get_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return a copy of the default configuration with *overrides* applied.

    Raises
    ------
    ValueError
        On unknown keys or out-of-range values.
    """
    cfg = dict(CONFIG_DEFAULT)
    if overrides:
        unknown = set(overrides) - set(CONFIG_DEFAULT)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        cfg.update(overrides)

    radii = tuple(cfg["morph_radii"])
    if not radii or any(r < 1 for r in radii):
        raise ValueError(f"morph_radii must be positive, got {radii}")
    if any(b <= a for a, b in zip(radii, radii[1:])):
        raise ValueError(f"morph_radii must be strictly increasing, got {radii}")
    cfg["morph_radii"] = radii

    ksize = cfg["median_ksize"]
    if ksize < 3 or ksize % 2 == 0:
        raise ValueError(f"median_ksize must be odd and >= 3, got {ksize}")
    if cfg["clahe_clip_limit"] <= 0:
        raise ValueError("clahe_clip_limit must be positive")
    return cfg


def structuring_element(radius: int) -> np.ndarray:
    """Square structuring element of side ``2 * radius + 1``, centred."""
    size = 2 * radius + 1
    return cv2.getStructuringElement(cv2.MORPH_RECT, (size, size),
                                     (radius, radius))


# ──────────────────────────────────────────────────────────────────────────────
# Extractor
# ──────────────────────────────────────────────────────────────────────────────

class VesselExtractor:
    """Extract vessel masks from BGR fundus photographs.

    Parameters
    ----------
    show : bool
        Pass intermediate images to *display* while extracting.
    display : callable, optional
        ``display(image, title)``; blocks until the preview is dismissed.
        Defaults to an OpenCV window.
    config : dict, optional
        Overrides for :data:`CONFIG_DEFAULT`.
    """

    def __init__(self, show: bool = False, display: Optional[Display] = None,
                 config: Optional[Dict[str, Any]] = None):
        self.config = get_config(config)
        self._show = show
        self._display = display if display is not None else show_image
        self.structuring_elements = [
            structuring_element(r) for r in self.config["morph_radii"]
        ]
        self._clahe = create_clahe(self.config["clahe_clip_limit"],
                                   tuple(self.config["clahe_grid_size"]))

    def preview(self, image: np.ndarray, title: str) -> None:
        """Hand *image* to the display callback when previews are enabled."""
        if self._show:
            self._display(image, title)

    def clahe(self, image: np.ndarray, channel_index: int = 0) -> np.ndarray:
        """Equalize one channel of *image*; returns a single channel."""
        if image.ndim == 3:
            image = cv2.extractChannel(image, channel_index)
        return self._clahe.apply(image)

    def color_filter(self, image: np.ndarray) -> np.ndarray:
        """Contrast-enhance the lightness channel.

        Grayscale input is promoted to BGR first.  Returns a 3-channel image
        whose channels are all the equalized L* plane.
        """
        img_bgr = to_bgr(image)
        equalized = self._clahe.apply(lightness_channel(img_bgr))
        return replicate_channel(equalized, 3)

    def erosion(self, image: np.ndarray, se: np.ndarray,
                iterations: int = 1) -> np.ndarray:
        """Morphological opening: strips bright detail smaller than *se*."""
        return cv2.morphologyEx(image, cv2.MORPH_OPEN, se,
                                iterations=iterations)

    def dilation(self, image: np.ndarray, se: np.ndarray,
                 iterations: int = 1) -> np.ndarray:
        """Morphological closing: fills dark detail smaller than *se*."""
        return cv2.morphologyEx(image, cv2.MORPH_CLOSE, se,
                                iterations=iterations)

    def large_arteries(self, image: np.ndarray) -> np.ndarray:
        """Suppress the background so that vessels become bright.

        Opening then closing with each structuring element in increasing
        order yields a vessel-free background estimate.  The input is
        subtracted from it (saturating at 0) and the difference equalized.
        """
        close = image.copy()
        for se in self.structuring_elements:
            opened = self.erosion(close, se)
            close = self.dilation(opened, se)

        background_removed = cv2.subtract(close, image)
        return self.clahe(background_removed)

    def threshold(self, image: np.ndarray) -> np.ndarray:
        """Binarize at the global mean: ``pixel >= mean`` becomes 255.

        A flat image is entirely at its mean and comes back all 255.
        """
        if image.ndim == 3:
            image = cv2.extractChannel(image, 0)
        if image.size == 0:
            return np.zeros_like(image)
        mean = cv2.mean(image)[0]
        return np.where(image >= mean, 255, 0).astype(np.uint8)

    def remove_blobs(self, binary_image: np.ndarray) -> np.ndarray:
        """Erase every contour enclosing less than ``min_blob_area``."""
        result = binary_image.copy()
        contours, _ = cv2.findContours(binary_image, cv2.RETR_TREE,
                                       cv2.CHAIN_APPROX_SIMPLE)
        min_area = self.config["min_blob_area"]
        for cnt in contours:
            if cv2.contourArea(cnt) < min_area:
                cv2.drawContours(result, [cnt], -1, 0, thickness=-1)
        return result

    def extract_stages(self, image: np.ndarray) -> "OrderedDict[str, np.ndarray]":
        """Run the pipeline and keep every intermediate image.

        Returns
        -------
        OrderedDict
            ``{stage_name: image}`` in pipeline order; the last entry,
            ``"output"``, is the final binary mask.
        """
        validate_image(image)
        ksize = self.config["median_ksize"]
        stages = OrderedDict()

        stages["color_filter"] = self.color_filter(image)

        stages["large_arteries"] = self.large_arteries(stages["color_filter"])
        self.preview(stages["large_arteries"], "extract(): large_arteries_img")

        stages["median"] = median_denoise(stages["large_arteries"], ksize)

        stages["threshold"] = self.threshold(stages["median"])
        self.preview(stages["threshold"], "extract(): threshold")

        stages["remove_blobs"] = self.remove_blobs(stages["threshold"])
        self.preview(stages["remove_blobs"], "extract(): cleaned")

        stages["output"] = median_denoise(stages["remove_blobs"], ksize)
        return stages

    def extract(self, image: np.ndarray) -> np.ndarray:
        """Segment vessels from a fundus photograph.

        Parameters
        ----------
        image : np.ndarray
            BGR colour image ``(H, W, 3)`` or grayscale ``(H, W)``, uint8.

        Returns
        -------
        np.ndarray
            Binary mask ``(H, W)`` with values in ``{0, 255}``.
        """
        return self.extract_stages(image)["output"]
