"""Rerun-based visualization of a two-frame pipeline run."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import rerun as rr
import rerun.blueprint as rrb

from ..frontend.matcher import matches_to_arrays
from ..io.image_io import grayscale_to_rgba

if TYPE_CHECKING:
    from ..frontend.pose import Pose
    from ..image import Image
    from ..pipeline import FrameArtifacts, PipelineResult


class RerunVisualizer:
    """Rerun-based visualization for two-frame visual odometry.

    Entity hierarchy:
        frame_a/
            image       - Input frame A
            blurred     - Preprocessed frame A
            keypoints   - All detected keypoints (green)
            matched     - Matched keypoints (red)
        frame_b/
            image       - Input frame B
            keypoints   - All detected keypoints (green)
            matched     - Matched keypoints (red)
        world/
            camera_a    - Reference camera at the origin
            camera_b    - Relative pose of camera B (unit baseline)
    """

    def __init__(self, app_name: str = "monovo", spawn: bool = True) -> None:
        """Initialize Rerun visualization.

        Args:
            app_name: Name for the Rerun application window
            spawn: If True, automatically spawn the Rerun viewer
        """
        rr.init(app_name, spawn=spawn)
        self._setup_coordinate_system()
        self._setup_layout()

    def _setup_coordinate_system(self) -> None:
        """Use camera conventions (X-right, Y-down, Z-forward)."""
        rr.log("world", rr.ViewCoordinates.RDF, static=True)

    def _setup_layout(self) -> None:
        """Configure the viewer layout."""
        blueprint = rrb.Blueprint(
            rrb.Vertical(
                contents=[
                    rrb.Horizontal(
                        contents=[
                            rrb.Spatial2DView(name="Frame A", origin="frame_a"),
                            rrb.Spatial2DView(name="Frame B", origin="frame_b"),
                        ]
                    ),
                    rrb.Spatial3DView(name="Relative pose", origin="world"),
                ]
            )
        )
        rr.send_blueprint(blueprint)

    def log_images(self, image_a: Image, image_b: Image) -> None:
        """Log the two input frames."""
        rr.log("frame_a/image", rr.Image(image_a.as_array()))
        rr.log("frame_b/image", rr.Image(image_b.as_array()))

    def log_frame(self, entity: str, frame: FrameArtifacts) -> None:
        """Log one frame's keypoints and, if kept, its blurred buffer.

        Args:
            entity: Root entity path ("frame_a" or "frame_b")
            frame: Per-frame pipeline artifacts
        """
        if frame.preprocessed is not None:
            rr.log(
                f"{entity}/blurred",
                rr.Image(grayscale_to_rgba(frame.preprocessed, frame.width, frame.height)),
            )

        if len(frame) > 0:
            points = frame.features.points
            rr.log(
                f"{entity}/keypoints",
                rr.Points2D(points, colors=[[0, 255, 0]], radii=2.0),  # Green
            )

    def log_matches(self, result: PipelineResult) -> None:
        """Log matched keypoints (red) in both frames."""
        if len(result.matches) == 0:
            return

        points_a, points_b = matches_to_arrays(result.matches)
        rr.log(
            "frame_a/matched",
            rr.Points2D(points_a, colors=[[255, 0, 0]], radii=3.0),  # Red
        )
        rr.log(
            "frame_b/matched",
            rr.Points2D(points_b, colors=[[255, 0, 0]], radii=3.0),  # Red
        )

    def log_pose(self, pose: Pose) -> None:
        """Log both cameras; camera B is placed at the inverse of the pose."""
        rr.log("world/camera_a", rr.Transform3D(translation=np.zeros(3), mat3x3=np.eye(3)))

        # Pose maps A coordinates into B; camera B's center in A is -R^T t
        camera_b = pose.inverse()
        rr.log(
            "world/camera_b",
            rr.Transform3D(translation=camera_b.translation, mat3x3=camera_b.rotation),
        )
        rr.log(
            "world/baseline",
            rr.LineStrips3D(
                [[np.zeros(3), camera_b.translation]],
                colors=[[255, 255, 0]],  # Yellow
                radii=0.01,
            ),
        )

    def log_result(
        self,
        result: PipelineResult,
        image_a: Image | None = None,
        image_b: Image | None = None,
    ) -> None:
        """Log a complete pipeline run.

        Args:
            result: Output of the pipeline
            image_a: Optional input frame A
            image_b: Optional input frame B
        """
        if image_a is not None and image_b is not None:
            self.log_images(image_a, image_b)

        self.log_frame("frame_a", result.frame_a)
        self.log_frame("frame_b", result.frame_b)
        self.log_matches(result)

        if result.pose is not None:
            self.log_pose(result.pose)
