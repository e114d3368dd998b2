import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, TypedDict

import torch

from quad_cascade_control.utilities.attitude import Attitude

logger = logging.getLogger(__name__)

GRAVITY = 9.81  # Gravity [m/s^2]


@dataclass(frozen=True)
class CascadeControllerGains:
    # Position and velocity gains
    kp_pos_xy: float
    kp_pos_z: float
    ki_pos_z: float
    kp_vel_xy: float
    kp_vel_z: float
    # Attitude and body rate gains
    kp_bank: float
    kp_yaw: float
    kp_pqr: tuple[float, float, float]
    # Vehicle physical parameters
    mass: float  # [kg]
    ixx: float  # [kg m^2]
    iyy: float
    izz: float
    arm_length: float  # Distance from the center to each rotor [m]
    kappa: float  # Rotor yaw moment coefficient [m]
    # Limits
    min_motor_thrust: float  # [N]
    max_motor_thrust: float
    max_descent_rate: float  # [m/s]
    max_ascent_rate: float
    max_speed_xy: float
    max_accel_xy: float  # [m/s^2]
    max_tilt_angle: float


class CascadeControllerState(TypedDict):
    integrated_altitude_error: torch.Tensor


@dataclass
class CascadeCtrlDroneState:
    pos: torch.Tensor  # Position (NED)
    vel: torch.Tensor  # Linear velocity (NED)
    attitude: Attitude  # Body-to-world orientation
    ang_vel: torch.Tensor  # Body angular rates (p, q, r)


@dataclass
class CascadeCtrlTrajectoryPoint:
    pos: torch.Tensor  # Desired position (NED)
    vel: torch.Tensor  # Desired velocity
    acc: torch.Tensor  # Feed-forward acceleration
    attitude: Attitude  # Desired attitude (only the yaw is tracked)
    time: float = 0.0


class TrajectorySource(Protocol):
    def get_trajectory_point(
        self, sim_time: float
    ) -> CascadeCtrlTrajectoryPoint: ...


class StateEstimator(Protocol):
    def get_state(self) -> CascadeCtrlDroneState: ...


# Parameter keys mapped to (gain field name, default value)
CASCADE_CONTROLLER_PARAM_DEFAULTS: dict[str, tuple[str, Any]] = {
    "kpPosXY": ("kp_pos_xy", 0.0),
    "kpPosZ": ("kp_pos_z", 0.0),
    "KiPosZ": ("ki_pos_z", 0.0),
    "kpVelXY": ("kp_vel_xy", 0.0),
    "kpVelZ": ("kp_vel_z", 0.0),
    "kpBank": ("kp_bank", 0.0),
    "kpYaw": ("kp_yaw", 0.0),
    "kpPQR": ("kp_pqr", (0.0, 0.0, 0.0)),
    "Mass": ("mass", 1.0),
    "Ixx": ("ixx", 0.001),
    "Iyy": ("iyy", 0.001),
    "Izz": ("izz", 0.002),
    "L": ("arm_length", 0.1),
    "kappa": ("kappa", 0.01),
    "minMotorThrust": ("min_motor_thrust", 0.0),
    "maxMotorThrust": ("max_motor_thrust", 100.0),
    "maxDescentRate": ("max_descent_rate", 100.0),
    "maxAscentRate": ("max_ascent_rate", 100.0),
    "maxSpeedXY": ("max_speed_xy", 100.0),
    "maxHorizAccel": ("max_accel_xy", 100.0),
    "maxTiltAngle": ("max_tilt_angle", 100.0),
}

# Alternative parameter key spellings
CASCADE_CONTROLLER_PARAM_ALIASES = {
    "kiPosZ": "KiPosZ",
    "maxAccelXY": "maxHorizAccel",
}


def load_cascade_controller_gains(
    params: Mapping[str, Any], name: str = "QuadControlParams"
) -> CascadeControllerGains:
    """
    Build the cascade controller gains from a flat parameter mapping.

    Parameters are looked up as `"<name>.<key>"` (e.g.,
    `"QuadControlParams.kpPosXY"`). Missing keys fall back to their default
    values.

    Args:
        params (Mapping[str, Any]): A flat mapping from dot-separated
            parameter keys to scalar or 3-element list values.
        name (str): The name of the parameter set to load.

    Returns:
        CascadeControllerGains: The loaded controller gains.

    Raises:
        ValueError: If `kpPQR` does not contain exactly three values, if the
            minimum motor thrust exceeds the maximum motor thrust, or if the
            vehicle mass is not positive.
    """
    # Resolve alias keys to their canonical names
    resolved_params = dict(params)
    for alias, key in CASCADE_CONTROLLER_PARAM_ALIASES.items():
        alias_key = f"{name}.{alias}"
        canonical_key = f"{name}.{key}"
        if alias_key in resolved_params:
            resolved_params.setdefault(
                canonical_key, resolved_params[alias_key]
            )

    gain_values: dict[str, Any] = {}
    param_defaults = CASCADE_CONTROLLER_PARAM_DEFAULTS
    for key, (field_name, default) in param_defaults.items():
        full_key = f"{name}.{key}"
        if full_key not in resolved_params:
            logger.debug(f"Parameter {full_key} not found, using {default}")
            gain_values[field_name] = default
        else:
            gain_values[field_name] = resolved_params[full_key]

    kp_pqr = tuple(float(value) for value in gain_values.pop("kp_pqr"))
    if len(kp_pqr) != 3:
        raise ValueError(
            f"`kpPQR` must contain 3 values (one per body axis), got "
            f"{len(kp_pqr)}."
        )

    scalar_values = {
        field_name: float(value) for field_name, value in gain_values.items()
    }

    if scalar_values["min_motor_thrust"] > scalar_values["max_motor_thrust"]:
        raise ValueError(
            "`minMotorThrust` must not be greater than `maxMotorThrust`."
        )

    if scalar_values["mass"] <= 0:
        raise ValueError("`Mass` must be positive.")

    gains = CascadeControllerGains(kp_pqr=kp_pqr, **scalar_values)

    logger.info(f"Loaded cascade controller gains from {name}")

    return gains
