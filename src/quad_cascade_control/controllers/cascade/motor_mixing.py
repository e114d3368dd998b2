import math

import torch

from .cascade_controller_config import CascadeControllerGains


def generate_motor_commands(
    coll_thrust_cmd: torch.Tensor,
    moment_cmd: torch.Tensor,
    gains: CascadeControllerGains,
) -> torch.Tensor:
    """
    Convert a collective thrust and 3-axis moment command into individual
    rotor thrusts for an X-configuration quadcopter.

    The roll and pitch moments are converted into forces using the
    perpendicular distance from each rotor to the body X and Y axes
    (`arm_length / sqrt(2)`), and the yaw moment using the rotor yaw moment
    coefficient `kappa`. The rotor thrusts are then obtained as:

        f_1 = ( p + q + r + c) / 4  (front left,  clockwise)
        f_2 = (-p + q - r + c) / 4  (front right, counterclockwise)
        f_3 = ( p - q - r + c) / 4  (rear left,   counterclockwise)
        f_4 = (-p - q + r + c) / 4  (rear right,  clockwise)
    where:
    - p: The roll moment divided by the perpendicular arm distance.
    - q: The pitch moment divided by the perpendicular arm distance.
    - r: The negated yaw moment divided by `kappa`.
    - c: The collective thrust.

    Each rotor thrust is clamped to the [`min_motor_thrust`,
    `max_motor_thrust`] range.

    Args:
        coll_thrust_cmd (torch.Tensor): The collective thrust commands in
            Newtons of shape (N,).
        moment_cmd (torch.Tensor): The moment commands in Nm of shape (N, 3).
        gains (CascadeControllerGains): The vehicle geometry and motor thrust
            limits.

    Returns:
        torch.Tensor: The rotor thrusts in Newtons of shape (N, 4).
    """
    perp_arm_length = gains.arm_length / math.sqrt(2)

    p = moment_cmd[:, 0] / perp_arm_length
    q = moment_cmd[:, 1] / perp_arm_length
    r = -moment_cmd[:, 2] / gains.kappa
    c = coll_thrust_cmd

    rotor_thrusts = torch.stack(
        [
            (p + q + r + c) / 4,
            (-p + q - r + c) / 4,
            (p - q - r + c) / 4,
            (-p - q + r + c) / 4,
        ],
        dim=1,
    )

    return torch.clamp(
        rotor_thrusts, gains.min_motor_thrust, gains.max_motor_thrust
    )
