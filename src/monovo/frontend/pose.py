"""Relative camera pose between two views."""

from __future__ import annotations

from dataclasses import dataclass

import cv2
import numpy as np


@dataclass
class Pose:
    """Rotation and scale-free translation of view B relative to view A.

    A point X_a in camera A coordinates maps to camera B as

        X_b = R @ X_a + t

    A monocular pair fixes the translation only up to scale; poses
    recovered from an essential matrix carry a unit translation.

    Attributes:
        rotation: 3x3 orthonormal rotation matrix (det = +1)
        translation: 3D translation direction
    """

    rotation: np.ndarray  # 3x3 rotation matrix
    translation: np.ndarray  # (3,) translation vector

    def __post_init__(self) -> None:
        """Validate and normalize inputs."""
        self.rotation = np.asarray(self.rotation, dtype=np.float64)
        self.translation = np.asarray(self.translation, dtype=np.float64).flatten()

        if self.rotation.shape != (3, 3):
            raise ValueError(f"Rotation must be 3x3, got {self.rotation.shape}")
        if self.translation.shape != (3,):
            raise ValueError(
                f"Translation must be (3,), got {self.translation.shape}"
            )

    @classmethod
    def identity(cls) -> Pose:
        """Create the identity pose (no rotation, zero translation)."""
        return cls(rotation=np.eye(3), translation=np.zeros(3))

    @classmethod
    def from_Rt(cls, R: np.ndarray, t: np.ndarray) -> Pose:
        """Create a Pose from a rotation matrix and translation vector."""
        return cls(rotation=R, translation=t)

    def to_matrix(self) -> np.ndarray:
        """Convert to 4x4 homogeneous transformation matrix.

        Returns:
            4x4 transformation matrix [[R, t], [0, 1]]
        """
        T = np.eye(4, dtype=np.float64)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.translation
        return T

    def to_rvec_tvec(self) -> tuple[np.ndarray, np.ndarray]:
        """Convert to OpenCV Rodrigues vector and translation.

        Returns:
            Tuple of (rvec, tvec) where rvec is 3D Rodrigues vector
        """
        rvec, _ = cv2.Rodrigues(self.rotation)
        return rvec.flatten(), self.translation.copy()

    def inverse(self) -> Pose:
        """Return the pose of view A relative to view B: [R^T, -R^T @ t]."""
        R_inv = self.rotation.T
        t_inv = -R_inv @ self.translation
        return Pose(rotation=R_inv, translation=t_inv)

    def is_rotation_valid(self, atol: float = 1e-6) -> bool:
        """Return True if R^T R = I and det(R) = +1 within atol."""
        R = self.rotation
        return bool(
            np.isfinite(R).all()
            and np.allclose(R.T @ R, np.eye(3), atol=atol)
            and abs(np.linalg.det(R) - 1.0) < atol
        )

    @property
    def rotation_angle(self) -> float:
        """Return the rotation angle in radians [0, pi]."""
        rvec, _ = self.to_rvec_tvec()
        return float(np.linalg.norm(rvec))

    @property
    def direction(self) -> np.ndarray:
        """Return the translation normalized to unit length (zero if degenerate)."""
        norm = np.linalg.norm(self.translation)
        if norm < 1e-12:
            return np.zeros(3)
        return self.translation / norm

    def __repr__(self) -> str:
        """Return string representation."""
        t = self.direction
        return (
            f"Pose(angle={np.degrees(self.rotation_angle):.2f}deg, "
            f"t=[{t[0]:.3f}, {t[1]:.3f}, {t[2]:.3f}])"
        )
