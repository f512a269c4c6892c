#!/usr/bin/env python3
"""
Radial Panorama Stitching CLI
Command-line interface for stitching images taken by rotating a camera
about its optical center.

Usage:
    python -m radialpano.panorama_cli image1.jpg image2.jpg image3.jpg [options]
"""

import argparse
import logging
import os
import sys
import time

from . import config
from .compositing import crop_black_borders
from .errors import LoadFailure, StitchError
from .image_io import read_images, show_image, write_image
from .panorama_stitcher import PanoramaStitcher
from .projection import SURFACES
from .visualization import draw_correspondences


def print_banner():
    """Print banner."""
    print("\nRadial Panorama Stitcher")
    print("Spherical / cylindrical projection + translation RANSAC\n")


def build_parser():
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description='Stitch images taken from a rotating camera into a panorama'
    )

    parser.add_argument(
        'images',
        nargs='+',
        help='Input images (left to right order)'
    )

    parser.add_argument(
        '-o', '--output',
        default='panorama.jpg',
        help='Output panorama image path (default: panorama.jpg)'
    )

    parser.add_argument(
        '--focal-length',
        type=float,
        default=config.DEFAULT_FOCAL_LENGTH,
        help=f'Focal length in pixels (default: {config.DEFAULT_FOCAL_LENGTH:g})'
    )

    parser.add_argument(
        '--projection',
        choices=sorted(SURFACES),
        default=config.DEFAULT_PROJECTION,
        help=f'Projection surface (default: {config.DEFAULT_PROJECTION})'
    )

    parser.add_argument(
        '--tolerance',
        type=float,
        default=config.DEFAULT_TOLERANCE,
        help=f'RANSAC per-axis tolerance in pixels (default: {config.DEFAULT_TOLERANCE:g})'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=config.DEFAULT_SEED,
        help=f'RANSAC random seed (default: {config.DEFAULT_SEED})'
    )

    parser.add_argument(
        '--trials',
        type=int,
        default=None,
        help='RANSAC trials per pair (default: one per correspondence)'
    )

    parser.add_argument(
        '--match-ratio',
        type=float,
        default=config.DEFAULT_MATCH_RATIO,
        help=f'Keep matches scoring below this multiple of the best '
             f'(default: {config.DEFAULT_MATCH_RATIO:g})'
    )

    parser.add_argument(
        '--max-features',
        type=int,
        default=config.DEFAULT_MAX_FEATURES,
        help=f'Maximum keypoints per image (default: {config.DEFAULT_MAX_FEATURES})'
    )

    parser.add_argument(
        '--interpolation',
        choices=['bilinear', 'nearest'],
        default=config.DEFAULT_INTERPOLATION,
        help=f'Interpolation for canvas placement (default: {config.DEFAULT_INTERPOLATION})'
    )

    parser.add_argument(
        '--crop',
        action='store_true',
        help='Crop empty canvas borders before saving'
    )

    parser.add_argument(
        '--show',
        action='store_true',
        help='Open the panorama in an image viewer when done'
    )

    parser.add_argument(
        '--matches-dir',
        default=None,
        help='Write a correspondence visualization per image pair to this directory'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose logging'
    )

    return parser


def main(argv=None):
    """Main function for CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    print_banner()

    # Create output directory
    output_dir = os.path.dirname(args.output)
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir)

    print(f"Input images: {len(args.images)}")

    try:
        images = read_images(args.images)
    except LoadFailure as e:
        print(f"Error reading images: {e}", file=sys.stderr)
        return 1

    for i, img in enumerate(images):
        print(f"  Image {i+1}: {img.shape}")

    try:
        stitcher = PanoramaStitcher(
            projection_params={
                'focal_length': args.focal_length,
                'mode': args.projection,
            },
            detector_params={
                'max_features': args.max_features,
            },
            matcher_params={
                'distance_ratio': args.match_ratio,
            },
            ransac_params={
                'tolerance': args.tolerance,
                'seed': args.seed,
                'num_trials': args.trials,
            },
            interpolation=args.interpolation,
            keep_correspondences=args.matches_dir is not None,
        )
    except ValueError as e:
        print(f"Invalid parameters: {e}", file=sys.stderr)
        return 1

    start_time = time.time()

    try:
        result = stitcher.stitch(images)
    except (StitchError, ValueError) as e:
        print(f"\nError during stitching: {e}", file=sys.stderr)
        return 1

    elapsed_time = time.time() - start_time

    panorama = result.panorama
    if args.crop:
        panorama = crop_black_borders(panorama)

    try:
        write_image(args.output, panorama)
        if args.matches_dir:
            _write_match_visualizations(args.matches_dir, stitcher, images, result)
    except IOError as e:
        print(f"Error saving output: {e}", file=sys.stderr)
        return 1

    print("\nSuccess!")
    print(f"  Panorama saved to: {args.output}")
    print(f"  Final size: {panorama.shape}")
    print(f"  Processing time: {elapsed_time:.2f} seconds")

    if args.show:
        show_image(panorama, title='panorama')

    return 0


def _write_match_visualizations(directory, stitcher, images, result):
    """Save one correspondence drawing per adjacent pair."""
    os.makedirs(directory, exist_ok=True)
    projected = [stitcher.projector.project(img) for img in images]

    for i, correspondences in enumerate(result.correspondences, start=1):
        vis = draw_correspondences(projected[i], projected[i - 1], correspondences)
        path = os.path.join(directory, f"matches_{i - 1:02d}_{i:02d}.png")
        write_image(path, vis)
        print(f"  Matches for pair ({i - 1}, {i}) saved to: {path}")


if __name__ == '__main__':
    sys.exit(main())
