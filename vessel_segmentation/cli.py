# -*- coding: utf-8 -*-
"""
cli.py — Command-Line Vessel Extraction
========================================

Reads each ``<input_img> <output_img>`` pair, extracts the vessel mask and
writes a two-up composite (original left, mask right).

Usage
-----
    vessel-segmentation fundus.png fundus_vessels.png

    # Several pairs, previewing intermediate stages (q / SPACE / ESC closes):
    vessel-segmentation -s a.png a_out.png b.png b_out.png

    # Save a figure with every pipeline stage next to the outputs:
    vessel-segmentation --stages-dir results/stages a.png a_out.png
"""

import argparse
import os
import sys
from typing import List, Optional

import cv2

from .extractor import VesselExtractor
from .utils import describe_image, ensure_parent_directory, read_image, timer
from .visualization import make_two_up, visualize_pipeline_stages

USAGE = ("%(prog)s [-h] [-s] [-v] [--stages-dir DIR] "
         "[<input_img> <output_img>]*")

EPILOG = """\
Paths that begin with "-" must follow a "--" separator:
    %(prog)s -s -- -left.png -left_out.png
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vessel-segmentation",
        usage=USAGE,
        description="Segment blood vessels from retinal fundus photographs.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    parser.add_argument(
        "-h", "--help", action="store_true",
        help="print help")
    parser.add_argument(
        "-s", "--show", action="store_true",
        help="show images. Press 'q', SPACE, or ESC to close window.")
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="print image sizes and stage timings")
    parser.add_argument(
        "--stages-dir", metavar="DIR",
        help="save a figure of every pipeline stage into DIR")
    parser.add_argument(
        "images", nargs="*", metavar="<input_img> <output_img>",
        help="input image that is read and processed, followed by the "
             "path where the output image is written")
    return parser


def parse_args(argv: Optional[List[str]] = None):
    """Parse *argv*; an unpaired image path is a usage error (exit 2)."""
    if argv is None:
        argv = sys.argv[1:]
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)
    # some argparse releases pass the separator through
    if args.images[:1] == ["--"]:
        del args.images[0]
    if len(args.images) % 2 == 1:
        parser.error(f"Wrong number of arguments, argc={len(argv) + 1}")
    return parser, args


def report_error(parser: argparse.ArgumentParser, message: str) -> None:
    """Print usage and *message* to standard error."""
    parser.print_usage(sys.stderr)
    print(message, file=sys.stderr)


def process_image(parser: argparse.ArgumentParser, ex: VesselExtractor,
                  input_path: str, output_path: str,
                  stages_dir: Optional[str] = None,
                  verbose: bool = False) -> bool:
    """Read *input_path*, extract vessels and write the two-up composite.

    Returns ``True`` on success, ``False`` if the input is unreadable or the
    output was not written.
    """
    try:
        input_img = read_image(input_path)
    except FileNotFoundError as exc:
        report_error(parser, str(exc))
        return False

    if verbose:
        print("  " + describe_image(input_path, input_img))

    extract_stages = timer(ex.extract_stages) if verbose else ex.extract_stages
    stages = extract_stages(input_img)
    output_img = stages["output"]

    if verbose:
        for name, img in stages.items():
            print("    " + describe_image(name, img))

    if stages_dir:
        os.makedirs(stages_dir, exist_ok=True)
        stem = os.path.splitext(os.path.basename(input_path))[0]
        fig_path = os.path.join(stages_dir, f"{stem}_stages.png")
        visualize_pipeline_stages(stages, fig_path, title=f"Vessel Extraction: {stem}")
        print(f"  [FIG] Pipeline stages  ->  {fig_path}")

    ex.preview(output_img, output_path)

    twoup = make_two_up(input_img, output_img)
    try:
        ensure_parent_directory(output_path)
        written = cv2.imwrite(output_path, twoup)
    except (cv2.error, OSError) as exc:
        print(f"Error: Failed to write {output_path}: {exc}", file=sys.stderr)
        return False
    if not written or not os.path.exists(output_path):
        print(f"Error: Failed to write {output_path}", file=sys.stderr)
        return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point; returns the process exit status."""
    parser, args = parse_args(argv)

    if args.help:
        parser.print_help()

    pairs = list(zip(args.images[0::2], args.images[1::2]))
    if not pairs:
        return 0

    ex = VesselExtractor(show=args.show)
    for i, (input_path, output_path) in enumerate(pairs, 1):
        if not process_image(parser, ex, input_path, output_path,
                             stages_dir=args.stages_dir,
                             verbose=args.verbose):
            return 1
        print(f"  [{i}/{len(pairs)}] {input_path}  ->  {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
