import logging
import os
from dataclasses import dataclass

import numpy as np
import torch

from quad_cascade_control.controllers.cascade.cascade_controller import (
    DroneCascadeController,
)
from quad_cascade_control.controllers.cascade.cascade_controller_config import (  # noqa: E501
    CascadeControllerGains,
    StateEstimator,
    TrajectorySource,
    load_cascade_controller_gains,
)
from quad_cascade_control.envs.quadrotor_dynamics import QuadrotorDynamics
from quad_cascade_control.utilities.config_utils import (
    flatten_config,
    load_yaml_config,
)

logger = logging.getLogger(__name__)

# Config file path for cascade controller parameters
CASCADE_CONTROLLER_CONFIG_PATH = os.path.join(
    os.path.dirname(__file__),
    "../../../configs/controllers/cascade/cascade_controller_params.yaml",
)


@dataclass
class CascadeSimulationData:
    times: np.ndarray  # (T,)
    positions: np.ndarray  # (T, N, 3)
    yaws: np.ndarray  # (T, N)
    rotor_thrusts: np.ndarray  # (T, N, 4)
    target_positions: np.ndarray  # (T, N, 3)
    target_yaws: np.ndarray  # (T, N)


def load_cascade_controller_gains_from_yaml(
    config_path: str | None = None, name: str = "QuadControlParams"
) -> CascadeControllerGains:
    # Load cascade controller config from YAML file
    if config_path is None:
        config_path = CASCADE_CONTROLLER_CONFIG_PATH

    controller_config = load_yaml_config(config_path)

    return load_cascade_controller_gains(
        flatten_config(controller_config), name=name
    )


def create_drone_cascade_controller(
    num_envs: int,
    device: torch.device | str = "cpu",
    config_path: str | None = None,
    trajectory_source: TrajectorySource | None = None,
    state_estimator: StateEstimator | None = None,
) -> DroneCascadeController:
    """
    Create a cascade controller using the gains defined in a YAML config
    file.

    Args:
        num_envs (int): The number of drones controlled in parallel.
        device (torch.device | str): The device to run the controller on.
        config_path (str | None): The path to the controller YAML config
            file. Defaults to the packaged cascade controller parameters.
        trajectory_source (TrajectorySource | None): The trajectory source
            used by `DroneCascadeController.run_control`.
        state_estimator (StateEstimator | None): The state estimator used
            by `DroneCascadeController.run_control`.

    Returns:
        DroneCascadeController: The created cascade controller.
    """
    gains = load_cascade_controller_gains_from_yaml(config_path)

    # Create drone cascade controller
    controller = DroneCascadeController(
        gains=gains,
        num_envs=num_envs,
        device=device,
        trajectory_source=trajectory_source,
        state_estimator=state_estimator,
    )

    return controller


def simulate_cascade_control(
    controller: DroneCascadeController,
    dynamics: QuadrotorDynamics,
    duration: float,
    dt: float,
    start_time: float = 0.0,
) -> CascadeSimulationData:
    """
    Simulate drones tracking a trajectory in closed loop with a cascade
    controller.

    On each step, the controller queries its trajectory source and state
    estimator through `run_control`, and the resulting rotor thrusts are
    applied to the drone dynamics model.

    Args:
        controller (DroneCascadeController): The cascade controller. Must
            have a trajectory source and a state estimator.
        dynamics (QuadrotorDynamics): The simulated drone dynamics.
        duration (float): The simulation duration in seconds.
        dt (float): The control and simulation time step in seconds.
        start_time (float): The simulation time of the first step.

    Returns:
        CascadeSimulationData: The recorded drone and target trajectories
            and the applied rotor thrusts.

    Raises:
        ValueError: If the controller lacks a trajectory source or a state
            estimator, or if `duration` is shorter than `dt`.
    """
    if controller.trajectory_source is None:
        raise ValueError(
            "The controller must have a trajectory source to be simulated."
        )

    num_steps = int(round(duration / dt))
    if num_steps < 1:
        raise ValueError(
            "The simulation duration must span at least one time step."
        )

    logger.info(
        f"Simulating cascade control for {num_steps} steps "
        f"({controller.num_envs} drones)"
    )

    times = []
    positions = []
    yaws = []
    rotor_thrusts = []
    target_positions = []
    target_yaws = []
    non_finite_reported = False

    with torch.no_grad():
        for step in range(num_steps):
            sim_time = start_time + step * dt

            thrusts = controller.run_control(dt=dt, sim_time=sim_time)
            dynamics.step(thrusts, dt)

            state = dynamics.get_state()
            is_finite = bool(torch.isfinite(state.pos).all())
            if not is_finite and not non_finite_reported:
                logger.warning(
                    f"Non-finite drone state reached at t={sim_time:.3f} s"
                )
                non_finite_reported = True

            target = controller.trajectory_source.get_trajectory_point(
                sim_time
            )

            times.append(sim_time + dt)
            positions.append(state.pos.cpu().numpy())
            yaws.append(state.attitude.yaw().cpu().numpy())
            rotor_thrusts.append(thrusts.cpu().numpy())
            target_positions.append(target.pos.cpu().numpy())
            target_yaws.append(target.attitude.yaw().cpu().numpy())

    logger.info("Cascade control simulation finished")

    return CascadeSimulationData(
        times=np.array(times),
        positions=np.stack(positions),
        yaws=np.stack(yaws),
        rotor_thrusts=np.stack(rotor_thrusts),
        target_positions=np.stack(target_positions),
        target_yaws=np.stack(target_yaws),
    )
