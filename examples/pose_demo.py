#!/usr/bin/env python3
"""Demo script for two-frame relative pose estimation over an image sequence.

Runs the pipeline on consecutive frame pairs of a directory of images
(for example a EuRoC cam0/data folder) and prints keypoint, match and
timing statistics per pair.

Usage:
    uv run python examples/pose_demo.py

Requirements:
    - Image sequence in data/euroc/MH_01_easy/mav0/cam0/data/
"""

from pathlib import Path

import numpy as np

from monovo import PipelineConfig, RerunVisualizer, VisualOdometryPipeline, load_image


def main() -> None:
    """Run the two-frame pose demo."""
    # Configuration
    image_dir = Path("data/euroc/MH_01_easy/mav0/cam0/data")
    frame_step = 2  # Distance between the two frames of a pair
    max_pairs = 50  # Set to None for the whole sequence
    config = PipelineConfig(blur_sigma=1.0, threshold=25)

    image_paths = sorted(image_dir.glob("*.png"))
    pairs = list(zip(image_paths, image_paths[frame_step:]))
    if max_pairs is not None:
        pairs = pairs[:max_pairs]

    # Initialize
    print("Initializing two-frame pipeline...")
    pipeline = VisualOdometryPipeline(config)
    visualizer = RerunVisualizer("monovo-demo")

    print(f"Processing {len(pairs)} frame pairs...")
    print()

    print(
        f"{'Pair':>5} {'KpA':>6} {'KpB':>6} {'Match':>6} {'Inlr':>5} "
        f"{'Status':^30} | {'Detect':>7} {'Match':>6} {'Geom':>6} {'Total':>7} | "
        f"{'Angle':>6}"
    )
    print("-" * 110)

    found = 0
    total_ms = 0.0

    for i, (path_a, path_b) in enumerate(pairs):
        image_a = load_image(path_a)
        image_b = load_image(path_b)

        result = pipeline.run(image_a, image_b)
        t = result.timing
        total_ms += t.total_ms

        # Visualize every 10th pair
        if i % 10 == 0:
            visualizer.log_result(result, image_a, image_b)

        angle = "-"
        if result.pose is not None:
            found += 1
            angle = f"{np.degrees(result.pose.rotation_angle):5.2f}d"

        essential = result.essential
        print(
            f"{i:5d} {len(result.frame_a):6d} {len(result.frame_b):6d} "
            f"{len(result.matches):6d} {essential.num_inliers:5d} "
            f"{essential.status.value:^30} | "
            f"{t.detection_ms:6.1f}ms {t.matching_ms:5.1f}ms {t.geometry_ms:5.1f}ms "
            f"{t.total_ms:6.1f}ms | {angle:>6}"
        )

    # Summary
    n_pairs = max(len(pairs), 1)
    print()
    print("=" * 80)
    print("SUMMARY")
    print("=" * 80)
    print(f"Pairs processed:  {len(pairs)}")
    print(f"Poses recovered:  {found} ({100 * found / n_pairs:.1f}%)")
    print(f"Average time:     {total_ms / n_pairs:.1f} ms per pair")
    print()
    print("Done! Check Rerun viewer.")


if __name__ == "__main__":
    main()
