"""Tests for the vessel extraction pipeline."""

import cv2
import numpy as np
import pytest

from vessel_segmentation import CONFIG_DEFAULT, VesselExtractor, get_config
from vessel_segmentation.preprocessing import foreground_area


def _disk_mask(shape, center, radius):
    mask = np.zeros(shape, dtype=np.uint8)
    cv2.circle(mask, center, radius, 255, thickness=-1)
    return mask > 0


def test_structuring_elements():
    ex = VesselExtractor()
    sizes = [se.shape for se in ex.structuring_elements]
    assert sizes == [(5, 5), (11, 11), (23, 23)]
    for se in ex.structuring_elements:
        assert np.all(se == 1)


def test_get_config_returns_copy():
    cfg = get_config()
    cfg["min_blob_area"] = 1.0
    assert CONFIG_DEFAULT["min_blob_area"] == 25.0


@pytest.mark.parametrize("overrides", [
    {"bogus": 1},
    {"morph_radii": (5, 2)},
    {"morph_radii": (0, 2)},
    {"median_ksize": 4},
    {"clahe_clip_limit": 0},
])
def test_invalid_config(overrides):
    with pytest.raises(ValueError):
        VesselExtractor(config=overrides)


def test_color_filter_replicates_channel(fundus_image):
    out = VesselExtractor().color_filter(fundus_image)
    assert out.shape == fundus_image.shape
    assert out.dtype == np.uint8
    assert np.array_equal(out[:, :, 0], out[:, :, 1])
    assert np.array_equal(out[:, :, 0], out[:, :, 2])


def test_color_filter_accepts_grayscale(disks_image):
    out = VesselExtractor().color_filter(disks_image)
    assert out.shape == disks_image.shape + (3,)


def test_color_filter_does_not_mutate(fundus_image):
    before = fundus_image.copy()
    VesselExtractor().color_filter(fundus_image)
    assert np.array_equal(before, fundus_image)


def test_erosion_removes_small_bright_detail():
    img = np.zeros((20, 20), dtype=np.uint8)
    img[8:11, 8:11] = 255
    ex = VesselExtractor()
    assert not ex.erosion(img, ex.structuring_elements[0]).any()


def test_dilation_fills_small_dark_detail():
    img = np.full((20, 20), 255, dtype=np.uint8)
    img[8:11, 8:11] = 0
    ex = VesselExtractor()
    assert np.all(ex.dilation(img, ex.structuring_elements[0]) == 255)


def test_large_arteries_highlights_dark_structures(disks_image, large_disk):
    ex = VesselExtractor()
    out = ex.large_arteries(ex.color_filter(disks_image))
    assert out.shape == disks_image.shape
    inside = _disk_mask(out.shape, *large_disk)
    assert out[inside].mean() > out[~inside].mean()


def test_threshold_uses_mean():
    img = np.array([[0, 100], [200, 50]], dtype=np.uint8)
    out = VesselExtractor().threshold(img)
    assert out.tolist() == [[0, 255], [255, 0]]


def test_threshold_includes_pixels_equal_to_mean():
    img = np.array([[0, 100], [100, 200]], dtype=np.uint8)
    out = VesselExtractor().threshold(img)
    assert out.tolist() == [[0, 255], [255, 255]]


def _asymmetric_mask():
    img = np.zeros((10, 10), dtype=np.uint8)
    img[1:4, 2:5] = 255
    img[7, 7] = 255
    return img


@pytest.mark.parametrize("img", [
    _asymmetric_mask(),
    np.full((10, 10), 255, dtype=np.uint8),
])
def test_threshold_reproduces_binary_image(img):
    out = VesselExtractor().threshold(img)
    assert np.array_equal(out, img)


def test_threshold_flat_image_is_all_foreground():
    img = np.full((8, 8), 17, dtype=np.uint8)
    assert np.all(VesselExtractor().threshold(img) == 255)


def test_remove_blobs_erases_only_small_contours():
    img = np.zeros((40, 40), dtype=np.uint8)
    img[2:5, 2:5] = 255
    img[20:30, 20:30] = 255
    out = VesselExtractor().remove_blobs(img)
    assert not out[0:8, 0:8].any()
    assert np.array_equal(out[20:30, 20:30], img[20:30, 20:30])


def test_full_mask_survives_threshold_and_blob_removal():
    ex = VesselExtractor()
    img = np.full((16, 16), 255, dtype=np.uint8)
    assert np.array_equal(ex.remove_blobs(ex.threshold(img)), img)


def test_remove_blobs_does_not_mutate_input():
    img = np.zeros((20, 20), dtype=np.uint8)
    img[2:4, 2:4] = 255
    before = img.copy()
    VesselExtractor().remove_blobs(img)
    assert np.array_equal(img, before)


def test_remove_blobs_never_increases_area():
    rng = np.random.default_rng(7)
    ex = VesselExtractor()
    for _ in range(5):
        img = ((rng.random((64, 64)) > 0.6) * 255).astype(np.uint8)
        out = ex.remove_blobs(img)
        assert out.shape == img.shape
        assert foreground_area(out) <= foreground_area(img)


def test_extract_returns_binary_mask(fundus_image):
    out = VesselExtractor().extract(fundus_image)
    assert out.shape == fundus_image.shape[:2]
    assert out.dtype == np.uint8
    assert set(np.unique(out)) <= {0, 255}


def test_extract_is_deterministic(fundus_image):
    ex = VesselExtractor()
    assert np.array_equal(ex.extract(fundus_image), ex.extract(fundus_image))
    assert np.array_equal(ex.extract(fundus_image),
                          VesselExtractor().extract(fundus_image))


def test_extract_keeps_large_disk_and_drops_small_one(disks_image, large_disk,
                                                     small_disk):
    out = VesselExtractor().extract(disks_image)
    large = _disk_mask(out.shape, *large_disk)
    small = _disk_mask(out.shape, *small_disk)
    assert out[large].any()
    assert not out[small].any()


def test_extract_stages_order(fundus_image):
    stages = VesselExtractor().extract_stages(fundus_image)
    assert list(stages) == ["color_filter", "large_arteries", "median",
                            "threshold", "remove_blobs", "output"]
    for img in stages.values():
        assert img.shape[:2] == fundus_image.shape[:2]


def test_extract_rejects_bad_input():
    ex = VesselExtractor()
    with pytest.raises(ValueError):
        ex.extract(np.zeros((10, 10, 3), dtype=np.float32))
    with pytest.raises(ValueError):
        ex.extract(np.zeros((10, 10, 4), dtype=np.uint8))


def test_show_passes_intermediates_to_display(fundus_image):
    shown = []
    ex = VesselExtractor(show=True,
                         display=lambda img, title: shown.append(title))
    ex.extract(fundus_image)
    assert shown == ["extract(): large_arteries_img", "extract(): threshold",
                     "extract(): cleaned"]


def test_display_not_called_without_show(fundus_image):
    shown = []
    ex = VesselExtractor(display=lambda img, title: shown.append(title))
    ex.extract(fundus_image)
    assert shown == []
