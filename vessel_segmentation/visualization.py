# -*- coding: utf-8 -*-
"""
visualization.py — Previews and Figures for Vessel Extraction
==============================================================

Interactive previews use an OpenCV window; saved figures use matplotlib with
the non-interactive Agg backend so they work on headless machines.
"""

import cv2
import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from typing import Dict

from .preprocessing import foreground_area

PALETTE = {
    "bg":    "#F8FAFC",
    "text":  "#1E293B",
}

# q, ESC, SPACE
DISMISS_KEYS = {ord("q"), 27, ord(" ")}


# ──────────────────────────────────────────────────────────────────────────────
# Interactive Preview
# ──────────────────────────────────────────────────────────────────────────────

def show_image(image: np.ndarray, title: str) -> None:
    """Show *image* in a window and block until q, ESC or SPACE is pressed."""
    cv2.imshow(title, image)
    key = -1
    while key not in DISMISS_KEYS:
        key = cv2.waitKey(10) & 0xFF
    cv2.destroyWindow(title)


# ──────────────────────────────────────────────────────────────────────────────
# Composites
# ──────────────────────────────────────────────────────────────────────────────

def make_two_up(original_bgr: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """Place the original and the mask side by side.

    Parameters
    ----------
    original_bgr : np.ndarray
        Source image (H×W×3, or H×W grayscale).
    mask : np.ndarray
        Binary mask (H×W), values {0, 255}.

    Returns
    -------
    np.ndarray
        BGR image of shape (H, 2W, 3).
    """
    if original_bgr.shape[:2] != mask.shape[:2]:
        raise ValueError(f"Size mismatch: {original_bgr.shape[:2]} vs "
                         f"{mask.shape[:2]}")
    left = original_bgr
    if left.ndim == 2:
        left = cv2.cvtColor(left, cv2.COLOR_GRAY2BGR)
    right = cv2.cvtColor(mask, cv2.COLOR_GRAY2BGR)
    return cv2.hconcat([left, right])


# ──────────────────────────────────────────────────────────────────────────────
# Pipeline Stage Figure
# ──────────────────────────────────────────────────────────────────────────────

STAGE_COLUMNS = 3


def stage_caption(name: str, image: np.ndarray) -> str:
    """Caption a stage; binary masks also report their foreground share."""
    if image.ndim == 2 and np.isin(image, (0, 255)).all():
        share = 100.0 * foreground_area(image) / max(image.size, 1)
        return f"{name}\n{share:.1f}% foreground"
    return name


def visualize_pipeline_stages(stages: Dict[str, np.ndarray],
                              save_path: str,
                              title: str = "Vessel Extraction Stages") -> None:
    """Save every intermediate image of one extraction as a single figure.

    Stages fill a grid row by row, ``STAGE_COLUMNS`` per row, in the order
    they were produced.  Colour stages are shown in RGB, single-channel
    stages on a fixed 0-255 gray scale so that masks are comparable.
    """
    rows = -(-len(stages) // STAGE_COLUMNS)
    fig, axes = plt.subplots(rows, STAGE_COLUMNS,
                             figsize=(3.6 * STAGE_COLUMNS, 3.4 * rows),
                             squeeze=False)
    fig.patch.set_facecolor(PALETTE["bg"])
    for ax in axes.flat:
        ax.axis("off")

    for ax, (name, img) in zip(axes.flat, stages.items()):
        if img.ndim == 3:
            ax.imshow(cv2.cvtColor(img, cv2.COLOR_BGR2RGB))
        else:
            ax.imshow(img, cmap="gray", vmin=0, vmax=255)
        ax.set_title(stage_caption(name, img), fontsize=9,
                     color=PALETTE["text"])

    fig.suptitle(title, fontsize=12, fontweight="bold", color=PALETTE["text"])
    fig.tight_layout()
    fig.savefig(save_path, dpi=150)
    plt.close(fig)
