#!/usr/bin/env python3
"""
Overlap Stitch - join overlapping images into a single composite
Main entry point for the stitching pipeline
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from tqdm import tqdm

from overlap_stitch.core.builder import (
    DEFAULT_MATCH_MODE,
    DEFAULT_WINDOW_SIZE,
    ImageStitcherBuilder,
)
from overlap_stitch.models.errors import ConfigurationError
from overlap_stitch.models.params import Direction, MatchMode, Order
from overlap_stitch.utils.io import ImageLoader, ResultExporter
from overlap_stitch.utils.logging import setup_logging


def _option(enum_type):
    """argparse type for an option enum, reporting the accepted tokens"""
    def parse(value: str):
        try:
            return enum_type.parse(value)
        except ConfigurationError as e:
            raise argparse.ArgumentTypeError(str(e))

    parse.__name__ = enum_type.__name__
    return parse


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Overlap Stitch - find where overlapping images meet and join them"
    )

    parser.add_argument(
        "-f", "--files-to-stitch",
        type=Path,
        nargs="+",
        required=True,
        help="Images to stitch, in order when --order is ordered"
    )

    parser.add_argument(
        "-d", "--direction",
        type=_option(Direction),
        required=True,
        help="v|vertical, h|horizontal or s|sideways"
    )

    parser.add_argument(
        "-o", "--order",
        type=_option(Order),
        required=True,
        help="o|ordered or u|unordered"
    )

    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output file path (default: ./stitched-<date>-<hour>-<minute>_<second>.png)"
    )

    parser.add_argument(
        "-w", "--window-size",
        type=int,
        default=DEFAULT_WINDOW_SIZE,
        help=f"Rows compared per candidate offset (default: {DEFAULT_WINDOW_SIZE})"
    )

    parser.add_argument(
        "-m", "--match-mode",
        type=_option(MatchMode),
        default=DEFAULT_MATCH_MODE,
        help="n|normal or e|edges (default: edges)"
    )

    parser.add_argument(
        "-c", "--crop-padding",
        type=int,
        default=None,
        help="Border pixels ignored while matching and stitching (default: 0)"
    )

    parser.add_argument(
        "--num-threads",
        type=int,
        default=None,
        help="Number of threads to use (None for auto)"
    )

    parser.add_argument(
        "--export-positions",
        action="store_true",
        help="Write the stitch positions to JSON next to the output"
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write the log to this file"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def default_output_path(now: datetime) -> Path:
    return Path(
        f"./stitched-{now.date()}-{now.hour}-{now.minute}_{now.second}.png"
    )


def main(argv=None) -> int:
    args = parse_arguments(argv)

    log_level = logging.DEBUG if args.debug else logging.INFO
    logger = setup_logging(log_level, args.log_file)

    if len(args.files_to_stitch) < 2:
        logger.error("Need at least 2 files to stitch")
        return 1

    output_path = args.output_dir or default_output_path(datetime.now())

    loader = ImageLoader()
    images = []

    for path in tqdm(args.files_to_stitch, desc="Loading images"):
        try:
            image, metadata = loader.load_image(path)
        except (FileNotFoundError, ValueError) as e:
            logger.error(f"Failed to load file: {e}")
            return 1

        logger.debug(
            f"Loaded {metadata.filename}: {metadata.width}x{metadata.height}, "
            f"{metadata.channels} channel(s), {metadata.bit_depth}-bit, "
            f"{metadata.megapixels:.2f} MP"
        )
        images.append(image)

    logger.info("Running with config:")
    logger.info(f"Number of files: {len(images)}")
    logger.info(f"Direction: {args.direction}")
    logger.info(f"Order: {args.order}")
    logger.info(f"Window size: {args.window_size}")
    logger.info(f"Match mode: {args.match_mode}")
    logger.info(f"Output path: {output_path}")

    try:
        stitcher = (
            ImageStitcherBuilder()
            .images(images)
            .direction(args.direction)
            .order(args.order)
            .window_size(args.window_size)
            .match_mode(args.match_mode)
            .crop(args.crop_padding)
            .num_threads(args.num_threads)
            .build(show_progress=True)
        )
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    final_image, positions = stitcher.run()

    for position in positions:
        logger.info(f"Stitch region: x={position.x}, y={position.y}")

    exporter = ResultExporter(output_path)
    exporter.save_composite(final_image)

    if args.export_positions:
        positions_path = exporter.export_positions(positions)
        logger.info(f"Positions exported to: {positions_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
