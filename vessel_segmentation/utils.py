# -*- coding: utf-8 -*-
"""
utils.py — Shared Utility Functions
=====================================
"""

import os
import time
import functools

import cv2
import numpy as np


def ensure_parent_directory(path: str) -> None:
    """Create the directory that will hold *path*, if it has one."""
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)


def read_image(path: str) -> np.ndarray:
    """Load an image from disk in BGR order.

    Raises
    ------
    FileNotFoundError
        If the file is missing or OpenCV cannot decode it.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"{path} input does not exist")
    img = cv2.imread(path, cv2.IMREAD_COLOR)
    if img is None:
        raise FileNotFoundError(f"{path} could not be read")
    return img


def describe_image(label: str, image: np.ndarray) -> str:
    """One-line summary: label, size as ``[W x H]`` and channel count."""
    h, w = image.shape[:2]
    channels = 1 if image.ndim == 2 else image.shape[2]
    return f"{label} [{w} x {h}] {channels}"


def timer(func=None, *, label=None):
    """Report how long each call of *func* takes, in milliseconds.

    Usable bare (``@timer``), with a label (``@timer(label="extract")``) or
    by wrapping a bound method directly (``timer(ex.extract_stages)``).  The
    line is printed even when the call raises.
    """
    if func is None:
        return functools.partial(timer, label=label)
    name = label or func.__name__

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = 1000.0 * (time.perf_counter() - start)
            print(f"  [{name}] {elapsed_ms:.1f} ms")
    return wrapper
