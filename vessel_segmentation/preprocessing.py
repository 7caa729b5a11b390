# -*- coding: utf-8 -*-
"""
preprocessing.py — Single-Stage Helpers for Retinal Fundus Images
==================================================================

Small, composable building blocks used by :class:`VesselExtractor`.  Each
function takes an image (ndarray) and returns a new image; inputs are never
modified in place.
"""

import cv2
import numpy as np
from typing import Tuple


def validate_image(image: np.ndarray) -> np.ndarray:
    """Check that *image* is an 8-bit grayscale or 3-channel array.

    Raises
    ------
    ValueError
        If the array has the wrong dtype or shape.
    """
    if not isinstance(image, np.ndarray):
        raise ValueError(f"Expected a numpy array, got {type(image).__name__}")
    if image.dtype != np.uint8:
        raise ValueError(f"Expected dtype uint8, got {image.dtype}")
    if image.ndim == 2 or (image.ndim == 3 and image.shape[2] == 3):
        return image
    raise ValueError(f"Expected an (H, W) or (H, W, 3) image, "
                     f"got shape {image.shape}")


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Return a 3-channel BGR version of a grayscale or BGR image."""
    validate_image(image)
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image


def lightness_channel(img_bgr: np.ndarray) -> np.ndarray:
    """Extract the L* channel of the CIE L*a*b* colour space.

    L* approximates perceived lightness independently of hue, which keeps
    the red-dominated fundus background from swamping the vessel contrast.

    Parameters
    ----------
    img_bgr : np.ndarray
        Input image in BGR format (H, W, 3).

    Returns
    -------
    np.ndarray
        Single-channel image (H, W), dtype uint8.
    """
    lab = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2Lab)
    return lab[:, :, 0].copy()


def create_clahe(clip_limit: float = 3.0,
                 grid_size: Tuple[int, int] = (8, 8)):
    """Build a reusable CLAHE operator.

    Contrast-Limited Adaptive Histogram Equalization divides the image into
    tiles and equalizes each tile's histogram independently, with a clip
    limit to prevent over-amplification of noise.

    Parameters
    ----------
    clip_limit : float
        Threshold for contrast limiting (higher = more contrast).
    grid_size : tuple of int
        Number of tiles in each dimension.
    """
    return cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=grid_size)


def replicate_channel(channel: np.ndarray, count: int = 3) -> np.ndarray:
    """Stack a single channel *count* times into a multi-channel image."""
    return cv2.merge([channel] * count)


def median_denoise(image: np.ndarray, ksize: int = 3) -> np.ndarray:
    """Suppress impulse (salt-and-pepper) noise with a median filter.

    The median filter replaces each pixel with the median of its neighbourhood,
    effectively removing outlier pixels while preserving edges better than
    a mean filter.

    Parameters
    ----------
    image : np.ndarray
        Grayscale image (H, W).
    ksize : int
        Kernel size (must be odd and ≥ 1).
    """
    if ksize < 3:
        return image.copy()  # ksize=1 is a no-op
    return cv2.medianBlur(image, ksize)


def foreground_area(binary: np.ndarray) -> int:
    """Count the non-zero pixels of a binary mask."""
    return int(cv2.countNonZero(binary))
