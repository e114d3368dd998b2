import logging

import torch

from .attitude_control import (
    body_rate_control,
    roll_pitch_control,
    yaw_control,
)
from .cascade_controller_config import (
    CascadeControllerGains,
    CascadeControllerState,
    CascadeCtrlDroneState,
    CascadeCtrlTrajectoryPoint,
    StateEstimator,
    TrajectorySource,
)
from .motor_mixing import generate_motor_commands
from .position_control import altitude_control, lateral_position_control

logger = logging.getLogger(__name__)

# Fraction of the motor thrust range reserved for attitude control
THRUST_MARGIN_RATIO = 0.1


class DroneCascadeController:
    """
    A cascaded quadcopter controller that outputs individual rotor thrusts.

    Each control step runs a fixed pipeline: an altitude controller computes
    the collective thrust, a lateral position controller computes a desired
    horizontal acceleration, a roll-pitch controller turns it into desired
    body rates, a yaw controller fills in the desired yaw rate, a body rate
    controller computes a moment command, and a mixer distributes the thrust
    and moment commands across the four rotors. The controller supports
    multiple independent drones in parallel across vectorized environments.

    The accumulated altitude error of the altitude controller is the only
    state kept between control steps.
    """

    def __init__(
        self,
        gains: CascadeControllerGains,
        num_envs: int,
        device: torch.device | str = "cpu",
        trajectory_source: TrajectorySource | None = None,
        state_estimator: StateEstimator | None = None,
    ):
        """
        Initialize the cascade controller.

        Args:
            gains (CascadeControllerGains): The controller gains, vehicle
                parameters and limits.
            num_envs (int): The number of drone environments the controller is
                used in (i.e., the number of drones simulated in a vectorized
                environment).
            device (torch.device | str): The device to run the controller on.
            trajectory_source (TrajectorySource | None): The source of
                trajectory points queried by `run_control`.
            state_estimator (StateEstimator | None): The source of vehicle
                state estimates queried by `run_control`.
        """
        self.gains = gains
        self.num_envs = num_envs
        self.device = device
        self.trajectory_source = trajectory_source
        self.state_estimator = state_estimator

        # Collective thrust limits leaving a margin for attitude control
        thrust_margin = THRUST_MARGIN_RATIO * (
            gains.max_motor_thrust - gains.min_motor_thrust
        )
        self.min_coll_thrust = 4 * (gains.min_motor_thrust + thrust_margin)
        self.max_coll_thrust = 4 * (gains.max_motor_thrust - thrust_margin)

        self.integrated_altitude_error = torch.zeros(
            (self.num_envs,), dtype=torch.float, device=self.device
        )

        logger.debug(
            f"Created cascade controller for {num_envs} envs on {device}"
        )

    def compute(
        self,
        state_measurement: CascadeCtrlDroneState,
        trajectory_point: CascadeCtrlTrajectoryPoint,
        dt: float,
    ) -> torch.Tensor:
        """
        Compute rotor thrust commands from the measured drone state and the
        trajectory point to track.

        Args:
            state_measurement (CascadeCtrlDroneState): The measured drone
                state.
            trajectory_point (CascadeCtrlTrajectoryPoint): The desired drone
                state and feed-forward acceleration.
            dt (float): The time elapsed since the previous control step in
                seconds.

        Returns:
            torch.Tensor: The rotor thrusts in Newtons of shape
                (`num_envs`, 4).
        """
        # Collective thrust from the altitude controller
        coll_thrust_cmd, self.integrated_altitude_error = altitude_control(
            pos_z_cmd=trajectory_point.pos[:, 2],
            vel_z_cmd=trajectory_point.vel[:, 2],
            pos_z=state_measurement.pos[:, 2],
            vel_z=state_measurement.vel[:, 2],
            attitude=state_measurement.attitude,
            acc_z_cmd=trajectory_point.acc[:, 2],
            dt=dt,
            integrated_error=self.integrated_altitude_error,
            gains=self.gains,
        )

        # Reserve some thrust margin for attitude control
        coll_thrust_cmd = torch.clamp(
            coll_thrust_cmd, self.min_coll_thrust, self.max_coll_thrust
        )

        # Desired horizontal acceleration
        acc_cmd = lateral_position_control(
            pos_cmd=trajectory_point.pos,
            vel_cmd=trajectory_point.vel,
            pos=state_measurement.pos,
            vel=state_measurement.vel,
            acc_cmd_ff=trajectory_point.acc,
            gains=self.gains,
        )

        # Desired body rates
        pqr_cmd = roll_pitch_control(
            acc_cmd=acc_cmd,
            attitude=state_measurement.attitude,
            coll_thrust_cmd=coll_thrust_cmd,
            gains=self.gains,
        )
        pqr_cmd[:, 2] = yaw_control(
            yaw_cmd=trajectory_point.attitude.yaw(),
            yaw=state_measurement.attitude.yaw(),
            gains=self.gains,
        )

        # Moment command and rotor thrusts
        moment_cmd = body_rate_control(
            pqr_cmd=pqr_cmd, pqr=state_measurement.ang_vel, gains=self.gains
        )

        return generate_motor_commands(
            coll_thrust_cmd=coll_thrust_cmd,
            moment_cmd=moment_cmd,
            gains=self.gains,
        )

    def run_control(self, dt: float, sim_time: float) -> torch.Tensor:
        """
        Run a control step by querying the trajectory source for the
        trajectory point at `sim_time` and the state estimator for the current
        drone state.

        Args:
            dt (float): The time elapsed since the previous control step in
                seconds.
            sim_time (float): The current simulation time in seconds.

        Returns:
            torch.Tensor: The rotor thrusts in Newtons of shape
                (`num_envs`, 4).

        Raises:
            ValueError: If the controller was created without a trajectory
                source or a state estimator.
        """
        if self.trajectory_source is None or self.state_estimator is None:
            raise ValueError(
                "A trajectory source and a state estimator must be provided "
                "to run the controller with `run_control`."
            )

        trajectory_point = self.trajectory_source.get_trajectory_point(
            sim_time
        )
        state_measurement = self.state_estimator.get_state()

        return self.compute(
            state_measurement=state_measurement,
            trajectory_point=trajectory_point,
            dt=dt,
        )

    def reset(self, envs_idx: torch.Tensor | list[int] | None = None) -> None:
        """
        Reset the internal state of the controller.

        This clears the accumulated altitude error of the selected
        environments, or of all of them if `envs_idx` is `None`.
        """
        if envs_idx is None:
            self.integrated_altitude_error.zero_()
        else:
            self.integrated_altitude_error[envs_idx] = 0.0

        logger.debug("Reset cascade controller integral state")

    def get_state(self) -> CascadeControllerState:
        """
        Return the current cascade controller state.

        Returns:
            CascadeControllerState: The internal state of the controller.
        """
        return {
            "integrated_altitude_error": (
                self.integrated_altitude_error.clone()
            ),
        }

    def load_state(self, state: CascadeControllerState) -> None:
        """
        Restore the cascade controller state from a given state dictionary.

        Args:
            state (CascadeControllerState): The state to which the
                controller is restored.
        """
        self.integrated_altitude_error = state[
            "integrated_altitude_error"
        ].clone()
