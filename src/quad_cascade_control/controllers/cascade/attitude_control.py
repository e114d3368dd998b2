import torch

from quad_cascade_control.utilities.attitude import Attitude
from quad_cascade_control.utilities.math_utils import wrap_yaw_error

from .cascade_controller_config import CascadeControllerGains


def roll_pitch_control(
    acc_cmd: torch.Tensor,
    attitude: Attitude,
    coll_thrust_cmd: torch.Tensor,
    gains: CascadeControllerGains,
) -> torch.Tensor:
    """
    Compute desired roll and pitch body rates from a desired horizontal
    acceleration, the current attitude and the collective thrust command.

    The desired acceleration is converted into a commanded tilt of the body
    Z axis (the `R[0, 2]` and `R[1, 2]` rotation matrix entries), limited to
    `max_tilt_angle`. A proportional controller on the tilt error yields
    world-frame tilt rates, which are mapped into body roll and pitch rates
    using the current rotation matrix.

    Vehicles with a non-positive thrust command receive zero body rates.

    Args:
        acc_cmd (torch.Tensor): The desired accelerations (NED) of shape
            (N, 3). Only the horizontal components are used.
        attitude (Attitude): The current vehicle attitude.
        coll_thrust_cmd (torch.Tensor): The collective thrust commands in
            Newtons of shape (N,).
        gains (CascadeControllerGains): The controller gains and limits.

    Returns:
        torch.Tensor: The desired body rates (p, q, r) of shape (N, 3). The
            yaw rate component is always zero.
    """
    R = attitude.rotation_matrix()

    # Convert thrust to a collective acceleration. Non-positive thrust
    # commands are replaced to keep the masked-out results finite.
    has_thrust = coll_thrust_cmd > 0
    coll_acc = torch.where(
        has_thrust,
        coll_thrust_cmd / gains.mass,
        torch.ones_like(coll_thrust_cmd),
    )

    # Commanded and actual tilt of the body Z axis
    tilt_cmd = acc_cmd[:, :2] / -coll_acc.unsqueeze(-1)
    tilt_cmd = torch.clamp(
        tilt_cmd, -gains.max_tilt_angle, gains.max_tilt_angle
    )
    tilt_error = tilt_cmd - attitude.tilt()
    tilt_rate_cmd = gains.kp_bank * tilt_error

    # Map world-frame tilt rates into body roll and pitch rates
    roll_rate = (
        R[:, 1, 0] * tilt_rate_cmd[:, 0] - R[:, 0, 0] * tilt_rate_cmd[:, 1]
    ) / R[:, 2, 2]
    pitch_rate = (
        R[:, 1, 1] * tilt_rate_cmd[:, 0] - R[:, 0, 1] * tilt_rate_cmd[:, 1]
    ) / R[:, 2, 2]

    pqr_cmd = torch.zeros_like(acc_cmd)
    pqr_cmd[:, 0] = torch.where(
        has_thrust, roll_rate, torch.zeros_like(roll_rate)
    )
    pqr_cmd[:, 1] = torch.where(
        has_thrust, pitch_rate, torch.zeros_like(pitch_rate)
    )

    return pqr_cmd


def yaw_control(
    yaw_cmd: torch.Tensor, yaw: torch.Tensor, gains: CascadeControllerGains
) -> torch.Tensor:
    """
    Compute a desired yaw rate with a proportional controller on the
    shortest-path yaw error.

    Args:
        yaw_cmd (torch.Tensor): The commanded yaw angles in radians of shape
            (N,).
        yaw (torch.Tensor): The current yaw angles in radians of shape (N,).
        gains (CascadeControllerGains): The controller gains.

    Returns:
        torch.Tensor: The desired yaw rates in rad/s of shape (N,).
    """
    yaw_error = wrap_yaw_error(yaw_cmd, yaw)

    return gains.kp_yaw * yaw_error


def body_rate_control(
    pqr_cmd: torch.Tensor, pqr: torch.Tensor, gains: CascadeControllerGains
) -> torch.Tensor:
    """
    Compute a 3-axis moment command from desired and current body rates.

    Each axis is controlled independently with a proportional controller
    scaled by the axis moment of inertia, assuming a diagonal inertia tensor.

    Args:
        pqr_cmd (torch.Tensor): The desired body rates of shape (N, 3).
        pqr (torch.Tensor): The current body rates of shape (N, 3).
        gains (CascadeControllerGains): The controller gains and vehicle
            inertia.

    Returns:
        torch.Tensor: The moment commands in Nm of shape (N, 3).
    """
    inertia = torch.tensor(
        [gains.ixx, gains.iyy, gains.izz],
        dtype=pqr.dtype,
        device=pqr.device,
    )
    kp_pqr = torch.tensor(gains.kp_pqr, dtype=pqr.dtype, device=pqr.device)

    pqr_error = pqr_cmd - pqr

    return inertia * kp_pqr * pqr_error
