import torch

from quad_cascade_control.controllers.cascade.cascade_controller_config import (  # noqa: E501
    CascadeCtrlTrajectoryPoint,
)
from quad_cascade_control.utilities.attitude import Attitude


class StaticTrajectory:
    """
    A trajectory source that returns the same target for every queried
    simulation time.

    Targets can be replaced with `set_target` to command a sequence of hover
    setpoints.
    """

    def __init__(
        self,
        target_pos: torch.Tensor,
        target_yaw: torch.Tensor,
        target_vel: torch.Tensor | None = None,
        target_acc: torch.Tensor | None = None,
    ):
        """
        Args:
            target_pos (torch.Tensor): The target positions (NED) of shape
                (N, 3).
            target_yaw (torch.Tensor): The target yaw angles in radians of
                shape (N,).
            target_vel (torch.Tensor | None): The target velocities of shape
                (N, 3). Defaults to zero.
            target_acc (torch.Tensor | None): The feed-forward accelerations
                of shape (N, 3). Defaults to zero.
        """
        self.set_target(target_pos, target_yaw, target_vel, target_acc)

    def set_target(
        self,
        target_pos: torch.Tensor,
        target_yaw: torch.Tensor,
        target_vel: torch.Tensor | None = None,
        target_acc: torch.Tensor | None = None,
    ) -> None:
        if target_vel is None:
            target_vel = torch.zeros_like(target_pos)
        if target_acc is None:
            target_acc = torch.zeros_like(target_pos)

        self.target_pos = target_pos
        self.target_yaw = target_yaw
        self.target_vel = target_vel
        self.target_acc = target_acc
        self.target_attitude = Attitude.from_yaw(target_yaw)

    def get_trajectory_point(
        self, sim_time: float
    ) -> CascadeCtrlTrajectoryPoint:
        return CascadeCtrlTrajectoryPoint(
            pos=self.target_pos,
            vel=self.target_vel,
            acc=self.target_acc,
            attitude=self.target_attitude,
            time=sim_time,
        )
