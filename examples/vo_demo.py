#!/usr/bin/env python3
"""Demo script for monocular visual odometry with timing diagnostics.

Usage:
    uv run python examples/vo_demo.py data/sequence
    uv run python examples/vo_demo.py video.mp4 --config config.yaml --no-viewer
"""

import argparse
import logging

import numpy as np

from slamlite import (
    CameraIntrinsics,
    FrameReader,
    RerunVisualizer,
    SlamConfig,
    TrackingStatus,
    VisualOdometry,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run SLAM-lite on an image sequence")
    parser.add_argument("source", help="Image directory or video file")
    parser.add_argument("--config", help="Pipeline configuration YAML")
    parser.add_argument("--intrinsics", help="YAML file with 'intrinsics: [fx, fy, cx, cy]'")
    parser.add_argument("--scale", type=float, default=0.5, help="Processing downscale")
    parser.add_argument("--max-frames", type=int, default=None)
    parser.add_argument("--no-viewer", action="store_true", help="Disable Rerun viewer")
    parser.add_argument("--verbose", action="store_true", help="Log per-frame decisions")
    return parser.parse_args()


def main() -> None:
    """Run the visual odometry demo."""
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    # Initialize
    print("Initializing visual odometry pipeline...")
    config = SlamConfig.from_yaml(args.config) if args.config else SlamConfig()
    intrinsics = CameraIntrinsics.from_yaml(args.intrinsics) if args.intrinsics else None
    reader = FrameReader(args.source, scale=args.scale)
    vo = VisualOdometry(config=config, intrinsics=intrinsics)
    visualizer = None if args.no_viewer else RerunVisualizer("python-slamlite-vo")

    print(f"Processing {len(reader)} frames...")
    print()

    # Column headers
    print(
        f"{'Frame':>6} {'Status':^14} {'Feat':>5} {'Track':>5} {'Inlr':>5} "
        f"{'New':>5} {'Map':>7} | "
        f"{'Track':>7} {'Motion':>7} {'Total':>7} | "
        f"{'Position'}"
    )
    print("-" * 110)

    # Statistics
    status_counts = {status: 0 for status in TrackingStatus}
    timing_totals = {"track": 0.0, "motion": 0.0, "total": 0.0}

    for i, (rgba, width, height) in enumerate(reader):
        if args.max_frames is not None and i >= args.max_frames:
            break

        result = vo.process_frame(rgba, width, height)
        status_counts[result.tracking_status] += 1

        if visualizer is not None:
            visualizer.log_vo_frame(result, image=rgba, intrinsics=vo.intrinsics)
            if i % 5 == 0:
                visualizer.log_trajectory(vo.get_trajectory_positions())

        t = result.timing
        timing_totals["track"] += t.tracking_ms
        timing_totals["motion"] += t.motion_ms
        timing_totals["total"] += t.total_ms

        # Print progress every 20 frames or when tracking is not OK
        should_print = (i % 20 == 0) or not result.is_tracking_ok
        if should_print:
            pos = result.position
            print(
                f"{i:6d} {result.tracking_status.value:^14} {result.num_features:5d} "
                f"{result.num_tracked:5d} {result.num_inliers:5d} "
                f"{result.new_points:5d} {len(result.map_points):7d} | "
                f"{t.tracking_ms:5.1f}ms {t.motion_ms:5.1f}ms {t.total_ms:5.1f}ms | "
                f"[{pos[0]:7.2f}, {pos[1]:7.2f}, {pos[2]:7.2f}]"
            )

    reader.close()

    # Final statistics
    n_frames = max(vo.num_frames, 1)
    positions = vo.get_trajectory_positions()
    path_length = 0.0
    if len(positions) > 1:
        path_length = float(np.linalg.norm(np.diff(positions, axis=0), axis=1).sum())

    print()
    print("=" * 80)
    print("SUMMARY")
    print("=" * 80)
    print(f"Frames processed:  {vo.num_frames}")
    print(f"Map points:        {vo.num_map_points}")
    for status, count in status_counts.items():
        print(f"{status.value + ':':<18} {count} ({100 * count / n_frames:.1f}%)")
    print(f"Path length:       {path_length:.2f} (arbitrary units)")
    print()
    print("Average timing per frame:")
    print(f"  Tracking:  {timing_totals['track'] / n_frames:6.1f} ms")
    print(f"  Motion:    {timing_totals['motion'] / n_frames:6.1f} ms")
    print(f"  Total:     {timing_totals['total'] / n_frames:6.1f} ms")
    print()

    pos = vo.current_pose.position
    print(f"Final position: [{pos[0]:.2f}, {pos[1]:.2f}, {pos[2]:.2f}]")


if __name__ == "__main__":
    main()
