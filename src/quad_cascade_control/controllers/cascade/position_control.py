import torch

from quad_cascade_control.utilities.attitude import Attitude

from .cascade_controller_config import GRAVITY, CascadeControllerGains


def lateral_position_control(
    pos_cmd: torch.Tensor,
    vel_cmd: torch.Tensor,
    pos: torch.Tensor,
    vel: torch.Tensor,
    acc_cmd_ff: torch.Tensor,
    gains: CascadeControllerGains,
) -> torch.Tensor:
    """
    Compute a desired horizontal acceleration from the desired lateral
    position, velocity and feed-forward acceleration, and the current
    position and velocity.

    The controller is a PD controller on the horizontal position: a
    proportional term on the position error and a derivative term on the
    velocity error, added to the feed-forward acceleration. The commanded
    velocity is limited to `max_speed_xy` before computing the velocity
    error, and the resulting acceleration is limited to `max_accel_xy`.

    Note:
        There is no integral term, so constant horizontal disturbances are
        not rejected in steady state.

    Args:
        pos_cmd (torch.Tensor): The desired positions (NED) of shape (N, 3).
            The vertical component is ignored.
        vel_cmd (torch.Tensor): The desired velocities (NED) of shape (N, 3).
            The vertical component is ignored.
        pos (torch.Tensor): The current positions (NED) of shape (N, 3).
        vel (torch.Tensor): The current velocities (NED) of shape (N, 3).
        acc_cmd_ff (torch.Tensor): The feed-forward accelerations (NED) of
            shape (N, 3). The vertical component is ignored.
        gains (CascadeControllerGains): The controller gains and limits.

    Returns:
        torch.Tensor: The desired accelerations of shape (N, 3), with a zero
            vertical component.
    """
    # Discard any incoming vertical components
    pos_cmd = pos_cmd.clone()
    pos_cmd[:, 2] = pos[:, 2]
    vel_cmd = vel_cmd.clone()
    vel_cmd[:, 2] = 0.0
    acc_cmd = acc_cmd_ff.clone()
    acc_cmd[:, 2] = 0.0

    # Proportional term
    pos_error = pos_cmd - pos
    proportional_term = gains.kp_pos_xy * pos_error

    # Derivative term on the speed-limited velocity command
    vel_cmd = torch.clamp(vel_cmd, -gains.max_speed_xy, gains.max_speed_xy)
    vel_error = vel_cmd - vel
    derivative_term = gains.kp_vel_xy * vel_error

    acc_cmd = acc_cmd + proportional_term + derivative_term
    acc_cmd = torch.clamp(acc_cmd, -gains.max_accel_xy, gains.max_accel_xy)
    acc_cmd[:, 2] = 0.0

    return acc_cmd


def altitude_control(
    pos_z_cmd: torch.Tensor,
    vel_z_cmd: torch.Tensor,
    pos_z: torch.Tensor,
    vel_z: torch.Tensor,
    attitude: Attitude,
    acc_z_cmd: torch.Tensor,
    dt: float,
    integrated_error: torch.Tensor,
    gains: CascadeControllerGains,
) -> tuple[torch.Tensor, torch.Tensor]:
    """
    Compute a collective thrust command from the desired and current
    vertical position and velocity, and a vertical feed-forward acceleration.

    The vertical acceleration command is computed with a PID controller on
    the altitude and converted into a collective thrust by compensating
    gravity and dividing by the body Z axis projection onto the world Z axis.

    Note:
        The integral of the altitude error is accumulated on every call and
        is never clamped, so it can wind up while the thrust is saturated.
        The tilt compensation is unbounded near 90 degrees of tilt.

    Args:
        pos_z_cmd (torch.Tensor): The desired vertical positions (NED, down
            positive) of shape (N,).
        vel_z_cmd (torch.Tensor): The desired vertical velocities of shape
            (N,).
        pos_z (torch.Tensor): The current vertical positions of shape (N,).
        vel_z (torch.Tensor): The current vertical velocities of shape (N,).
        attitude (Attitude): The current vehicle attitude.
        acc_z_cmd (torch.Tensor): The vertical feed-forward accelerations of
            shape (N,).
        dt (float): The control time step in seconds.
        integrated_error (torch.Tensor): The accumulated altitude error of
            shape (N,).
        gains (CascadeControllerGains): The controller gains and limits.

    Returns:
        tuple[torch.Tensor, torch.Tensor]: The collective thrust commands in
            Newtons of shape (N,), and the updated accumulated altitude error
            of shape (N,).
    """
    # Proportional term
    pos_z_error = pos_z_cmd - pos_z
    proportional_term = gains.kp_pos_z * pos_z_error

    # Derivative term
    vel_z_cmd = torch.clamp(
        vel_z_cmd, -gains.max_descent_rate, gains.max_ascent_rate
    )
    vel_z_error = vel_z_cmd - vel_z
    derivative_term = gains.kp_vel_z * vel_z_error

    # Integral term
    integrated_error = integrated_error + pos_z_error * dt
    integral_term = gains.ki_pos_z * integrated_error

    acc_z = proportional_term + derivative_term + integral_term + acc_z_cmd

    # Thrust points along the body -Z axis and NED Z points down, so a lower
    # Z acceleration requires more thrust
    coll_acc = (GRAVITY - acc_z) / attitude.body_z_tilt()
    thrust = gains.mass * coll_acc
    thrust = torch.clamp(
        thrust, 4 * gains.min_motor_thrust, 4 * gains.max_motor_thrust
    )

    return thrust, integrated_error
