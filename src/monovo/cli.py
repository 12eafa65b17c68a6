"""Command line entry point: relative pose between two image files.

Usage:
    monovo-pose frame_a.png frame_b.png
    monovo-pose frame_a.png frame_b.png --config pipeline.yaml --seed 7
    monovo-pose frame_a.png frame_b.png --visualize
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from .config import PipelineConfig
from .errors import MonoVOError
from .io.image_io import load_image
from .pipeline import VisualOdometryPipeline

EXIT_OK = 0
EXIT_NO_POSE = 1
EXIT_INPUT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="monovo-pose",
        description="Estimate the relative camera pose between two frames.",
    )
    parser.add_argument("image_a", type=Path, help="First frame")
    parser.add_argument("image_b", type=Path, help="Second frame")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file with pipeline parameters (default: built-in defaults)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the random seed",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--visualize",
        action="store_true",
        help="Send the result to a Rerun viewer",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the pipeline on two image files and print the result."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = PipelineConfig.from_yaml(args.config) if args.config else PipelineConfig()
        if args.seed is not None:
            config = config.replace(seed=args.seed)
        image_a = load_image(args.image_a)
        image_b = load_image(args.image_b)
        result = VisualOdometryPipeline(config).run(image_a, image_b)
    except (FileNotFoundError, ValueError, MonoVOError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR

    t = result.timing
    print(f"Keypoints:  A={len(result.frame_a)} B={len(result.frame_b)}")
    print(f"Matches:    {len(result.matches)}")
    if result.essential is not None:
        print(
            f"Essential:  {result.essential.status.value} "
            f"({result.essential.num_inliers} inliers)"
        )
    print(
        f"Timing:     detect {t.detection_ms:.1f}ms, describe {t.description_ms:.1f}ms, "
        f"match {t.matching_ms:.1f}ms, geometry {t.geometry_ms:.1f}ms, "
        f"total {t.total_ms:.1f}ms"
    )

    if args.visualize:
        from .visualization import RerunVisualizer

        RerunVisualizer("monovo-pose").log_result(result, image_a, image_b)

    if result.pose is None:
        print("Pose:       not found")
        return EXIT_NO_POSE

    pose = result.pose
    direction = pose.direction
    print(f"Rotation:   {np.degrees(pose.rotation_angle):.2f} deg")
    with np.printoptions(precision=4, suppress=True):
        print(pose.rotation)
    print(
        f"Direction:  [{direction[0]:.4f}, {direction[1]:.4f}, {direction[2]:.4f}]"
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
