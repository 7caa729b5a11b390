#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
segment_vessels.py — Retinal Vessel Extraction
===============================================

Usage
-----
    python segment_vessels.py [-h] [-s] [<input_img> <output_img>]*
"""

import sys

from vessel_segmentation.cli import main

if __name__ == "__main__":
    sys.exit(main())
