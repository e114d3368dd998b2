import pytest

from quad_cascade_control.controllers.cascade.cascade_controller_config import (  # noqa: E501
    CascadeControllerGains,
)

from .mocks import (
    MockStateEstimator,
    MockTrajectorySource,
    make_drone_state,
    make_trajectory_point,
)


@pytest.fixture
def gains() -> CascadeControllerGains:
    return CascadeControllerGains(
        kp_pos_xy=4.0,
        kp_pos_z=16.0,
        ki_pos_z=20.0,
        kp_vel_xy=4.0,
        kp_vel_z=8.0,
        kp_bank=12.0,
        kp_yaw=2.0,
        kp_pqr=(50.0, 50.0, 10.0),
        mass=0.5,
        ixx=0.0023,
        iyy=0.0023,
        izz=0.0046,
        arm_length=0.17,
        kappa=0.016,
        min_motor_thrust=0.1,
        max_motor_thrust=4.5,
        max_descent_rate=2.0,
        max_ascent_rate=5.0,
        max_speed_xy=5.0,
        max_accel_xy=12.0,
        max_tilt_angle=0.7,
    )


@pytest.fixture
def dummy_flat_params() -> dict[str, object]:
    return {
        "QuadControlParams.kpPosXY": 3.0,
        "QuadControlParams.kpPosZ": 20.0,
        "QuadControlParams.KiPosZ": 40.0,
        "QuadControlParams.kpVelXY": 12.0,
        "QuadControlParams.kpVelZ": 9.0,
        "QuadControlParams.kpBank": 10.0,
        "QuadControlParams.kpYaw": 3.0,
        "QuadControlParams.kpPQR": [60.0, 60.0, 8.0],
        "QuadControlParams.Mass": 0.5,
        "QuadControlParams.L": 0.17,
        "QuadControlParams.Ixx": 0.0023,
        "QuadControlParams.Iyy": 0.0023,
        "QuadControlParams.Izz": 0.0046,
        "QuadControlParams.kappa": 0.016,
        "QuadControlParams.minMotorThrust": 0.1,
        "QuadControlParams.maxMotorThrust": 4.5,
        "QuadControlParams.maxDescentRate": 2.0,
        "QuadControlParams.maxAscentRate": 5.0,
        "QuadControlParams.maxSpeedXY": 5.0,
        "QuadControlParams.maxHorizAccel": 12.0,
        "QuadControlParams.maxTiltAngle": 0.7,
    }


@pytest.fixture
def hover_state():
    return make_drone_state(num_envs=2, pos=[0.0, 0.0, -1.0])


@pytest.fixture
def hover_trajectory_point():
    return make_trajectory_point(num_envs=2, pos=[0.0, 0.0, -1.0])


@pytest.fixture
def mock_trajectory_source(hover_trajectory_point) -> MockTrajectorySource:
    return MockTrajectorySource(hover_trajectory_point)


@pytest.fixture
def mock_state_estimator(hover_state) -> MockStateEstimator:
    return MockStateEstimator(hover_state)
