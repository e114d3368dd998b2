from __future__ import annotations

import math

import torch
import torch.nn.functional as F

from quad_cascade_control.controllers.cascade.cascade_controller_config import (  # noqa: E501
    GRAVITY,
    CascadeControllerGains,
    CascadeCtrlDroneState,
)
from quad_cascade_control.utilities.attitude import Attitude
from quad_cascade_control.utilities.math_utils import (
    quaternion_multiply,
    quaternion_to_matrix,
)


class QuadrotorDynamics:
    """
    A vectorized rigid-body model of an X-configuration quadcopter in a
    North-East-Down (NED) world frame.

    The model takes individual rotor thrusts as inputs, using the same rotor
    layout as the cascade controller mixer:

        1: front left (clockwise)       2: front right (counterclockwise)
        3: rear left (counterclockwise) 4: rear right (clockwise)

    The state is propagated with a semi-implicit Euler integration step. The
    model also serves as a perfect state estimator through `get_state`.
    """

    def __init__(
        self,
        mass: float,
        inertia: tuple[float, float, float],
        arm_length: float,
        kappa: float,
        num_envs: int,
        device: torch.device | str = "cpu",
        init_pos: torch.Tensor | None = None,
        init_quat: torch.Tensor | None = None,
    ):
        """
        Args:
            mass (float): The drone mass [kg].
            inertia (tuple[float, float, float]): The diagonal moments of
                inertia (Jxx, Jyy, Jzz) [kg m^2].
            arm_length (float): The distance from the drone center to each
                rotor [m].
            kappa (float): The rotor yaw moment coefficient (yaw moment per
                unit of thrust) [m].
            num_envs (int): The number of simulated drones.
            device (torch.device | str): The device to run the simulation on.
            init_pos (torch.Tensor | None): The initial positions of shape
                (`num_envs`, 3). Defaults to the origin.
            init_quat (torch.Tensor | None): The initial attitude quaternions
                of shape (`num_envs`, 4) in a (w, x, y, z) format. Defaults to
                a level attitude facing north.
        """
        self.mass = mass
        self.inertia = torch.tensor(inertia, dtype=torch.float, device=device)
        self.perp_arm_length = arm_length / math.sqrt(2)
        self.kappa = kappa
        self.num_envs = num_envs
        self.device = device

        self.gravity = torch.tensor(
            [0.0, 0.0, GRAVITY], dtype=torch.float, device=self.device
        )

        self.reset(init_pos=init_pos, init_quat=init_quat)

    @classmethod
    def from_gains(
        cls,
        gains: CascadeControllerGains,
        num_envs: int,
        device: torch.device | str = "cpu",
        init_pos: torch.Tensor | None = None,
        init_quat: torch.Tensor | None = None,
    ) -> QuadrotorDynamics:
        """Create a model from the vehicle parameters in a gain set."""
        return cls(
            mass=gains.mass,
            inertia=(gains.ixx, gains.iyy, gains.izz),
            arm_length=gains.arm_length,
            kappa=gains.kappa,
            num_envs=num_envs,
            device=device,
            init_pos=init_pos,
            init_quat=init_quat,
        )

    def reset(
        self,
        init_pos: torch.Tensor | None = None,
        init_quat: torch.Tensor | None = None,
    ) -> None:
        """Reset every drone to rest at the given pose."""
        if init_pos is None:
            init_pos = torch.zeros(
                (self.num_envs, 3), dtype=torch.float, device=self.device
            )
        if init_quat is None:
            init_quat = torch.zeros(
                (self.num_envs, 4), dtype=torch.float, device=self.device
            )
            init_quat[:, 0] = 1.0

        self.pos = init_pos.clone()
        self.quat = init_quat.clone()
        self.vel = torch.zeros(
            (self.num_envs, 3), dtype=torch.float, device=self.device
        )
        self.ang_vel = torch.zeros(
            (self.num_envs, 3), dtype=torch.float, device=self.device
        )

    def get_state(self) -> CascadeCtrlDroneState:
        return CascadeCtrlDroneState(
            pos=self.pos.clone(),
            vel=self.vel.clone(),
            attitude=Attitude(self.quat.clone()),
            ang_vel=self.ang_vel.clone(),
        )

    def step(self, rotor_thrusts: torch.Tensor, dt: float) -> None:
        """
        Advance the simulation by one time step.

        Args:
            rotor_thrusts (torch.Tensor): The rotor thrusts in Newtons of
                shape (`num_envs`, 4).
            dt (float): The integration time step in seconds.
        """
        f1, f2, f3, f4 = rotor_thrusts.unbind(-1)

        # Total thrust and body moments (inverse of the controller mixer)
        total_thrust = f1 + f2 + f3 + f4
        moment = torch.stack(
            [
                self.perp_arm_length * (f1 - f2 + f3 - f4),
                self.perp_arm_length * (f1 + f2 - f3 - f4),
                -self.kappa * (f1 - f2 - f3 + f4),
            ],
            dim=-1,
        )

        # Translational dynamics. Thrust acts along the body -Z axis.
        thrust_body = torch.zeros_like(self.pos)
        thrust_body[:, 2] = -total_thrust
        R = quaternion_to_matrix(self.quat)
        thrust_world = torch.bmm(R, thrust_body.unsqueeze(-1)).squeeze(-1)
        acc = thrust_world / self.mass + self.gravity

        self.vel = self.vel + acc * dt
        self.pos = self.pos + self.vel * dt

        # Rotational dynamics (Euler's equations for a diagonal inertia)
        gyroscopic = torch.linalg.cross(
            self.ang_vel, self.inertia * self.ang_vel
        )
        ang_acc = (moment - gyroscopic) / self.inertia
        self.ang_vel = self.ang_vel + ang_acc * dt

        # Attitude kinematics: q_dot = 0.5 * q * [0, w]
        omega_quat = torch.cat(
            [torch.zeros_like(self.ang_vel[:, :1]), self.ang_vel], dim=1
        )
        quat_dot = 0.5 * quaternion_multiply(self.quat, omega_quat)
        self.quat = F.normalize(self.quat + quat_dot * dt, dim=1)
