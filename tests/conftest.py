"""Shared synthetic fixtures."""

import cv2
import numpy as np
import pytest


@pytest.fixture
def large_disk():
    """(center, radius) of a disk well above the blob-area limit."""
    return (40, 40), 10


@pytest.fixture
def small_disk():
    """(center, radius) of a disk below the blob-area limit."""
    return (100, 100), 2


@pytest.fixture
def disks_image(large_disk, small_disk):
    """Grayscale image with one large and one tiny dark disk."""
    img = np.full((128, 128), 200, dtype=np.uint8)
    for center, radius in (large_disk, small_disk):
        cv2.circle(img, center, radius, 40, thickness=-1)
    return img


@pytest.fixture
def fundus_image():
    """Small BGR fundus-like image: reddish disc crossed by dark vessels."""
    rng = np.random.default_rng(1234)
    img = np.zeros((96, 112, 3), dtype=np.uint8)
    cv2.circle(img, (56, 48), 44, (40, 90, 180), thickness=-1)
    vessel = (20, 40, 90)
    cv2.line(img, (20, 20), (90, 70), vessel, thickness=3)
    cv2.line(img, (56, 8), (50, 88), vessel, thickness=2)
    cv2.line(img, (30, 75), (85, 30), vessel, thickness=1)
    noise = rng.integers(-6, 7, size=img.shape)
    return np.clip(img.astype(np.int16) + noise, 0, 255).astype(np.uint8)


@pytest.fixture
def fundus_path(tmp_path, fundus_image):
    path = tmp_path / "fundus.png"
    assert cv2.imwrite(str(path), fundus_image)
    return path
