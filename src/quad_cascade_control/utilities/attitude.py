from __future__ import annotations

import torch

from .math_utils import (
    euler_to_quaternion,
    quaternion_to_matrix,
    yaw_from_quaternion,
    yaw_to_quaternion,
)


class Attitude:
    """
    Batched vehicle orientation exposing the rotation matrix entries used by
    the cascade controller through named accessors.

    The attitude is stored as a (w, x, y, z) quaternion describing the
    rotation from the body frame to the world (NED) frame. The rotation
    matrix is computed lazily and cached, since a single control step reads
    it from several control stages.
    """

    def __init__(self, quat: torch.Tensor):
        """
        Args:
            quat (torch.Tensor): Attitude quaternions of shape (N, 4) in a
                (w, x, y, z) format.
        """
        self.quat = quat
        self._rot: torch.Tensor | None = None

    @classmethod
    def from_euler(
        cls, roll: torch.Tensor, pitch: torch.Tensor, yaw: torch.Tensor
    ) -> Attitude:
        return cls(euler_to_quaternion(roll, pitch, yaw))

    @classmethod
    def from_yaw(cls, yaw: torch.Tensor) -> Attitude:
        return cls(yaw_to_quaternion(yaw))

    def rotation_matrix(self) -> torch.Tensor:
        """Body-to-world rotation matrices of shape (N, 3, 3)."""
        if self._rot is None:
            self._rot = quaternion_to_matrix(self.quat)

        return self._rot

    def yaw(self) -> torch.Tensor:
        """Heading angles in radians of shape (N,)."""
        return yaw_from_quaternion(self.quat)

    def tilt(self) -> torch.Tensor:
        """
        World-frame X and Y components of the body Z axis, i.e., the `R[0, 2]`
        and `R[1, 2]` entries, with shape (N, 2).
        """
        return self.rotation_matrix()[:, :2, 2]

    def body_z_tilt(self) -> torch.Tensor:
        """
        Projection of the body Z axis onto the world Z (down) axis, i.e., the
        `R[2, 2]` entry, with shape (N,). Equals 1 for a level vehicle and
        approaches 0 near 90 degrees of tilt.
        """
        return self.rotation_matrix()[:, 2, 2]
