import math

import torch
from torch.testing import assert_close

from quad_cascade_control.controllers.cascade.cascade_controller_config import (  # noqa: E501
    GRAVITY,
    CascadeControllerGains,
)
from quad_cascade_control.controllers.cascade.motor_mixing import (
    generate_motor_commands,
)
from quad_cascade_control.envs.quadrotor_dynamics import QuadrotorDynamics


def test_quadrotor_dynamics_initial_state(
    gains: CascadeControllerGains,
) -> None:
    init_pos = torch.tensor([[1.0, 2.0, -3.0], [0.0, 0.0, -1.0]])

    dynamics = QuadrotorDynamics.from_gains(
        gains, num_envs=2, init_pos=init_pos
    )
    state = dynamics.get_state()

    assert_close(state.pos, init_pos)
    assert_close(state.vel, torch.zeros((2, 3)))
    assert_close(state.ang_vel, torch.zeros((2, 3)))
    assert_close(state.attitude.yaw(), torch.zeros(2))
    assert_close(state.attitude.body_z_tilt(), torch.ones(2))


def test_quadrotor_dynamics_free_fall(gains: CascadeControllerGains) -> None:
    dynamics = QuadrotorDynamics.from_gains(gains, num_envs=1)

    dynamics.step(torch.zeros((1, 4)), dt=0.1)

    # NED: gravity accelerates the drone downward (+Z)
    assert_close(dynamics.vel, torch.tensor([[0.0, 0.0, GRAVITY * 0.1]]))
    assert_close(dynamics.pos, torch.tensor([[0.0, 0.0, GRAVITY * 0.01]]))


def test_quadrotor_dynamics_hover(gains: CascadeControllerGains) -> None:
    dynamics = QuadrotorDynamics.from_gains(gains, num_envs=2)
    hover_thrusts = torch.full((2, 4), gains.mass * GRAVITY / 4)

    for _ in range(100):
        dynamics.step(hover_thrusts, dt=0.01)

    assert_close(dynamics.pos, torch.zeros((2, 3)), rtol=0.0, atol=1e-5)
    assert_close(dynamics.ang_vel, torch.zeros((2, 3)))


def test_quadrotor_dynamics_inverts_mixer(
    gains: CascadeControllerGains,
) -> None:
    dynamics = QuadrotorDynamics.from_gains(gains, num_envs=1)
    moment_cmd = torch.tensor([[0.01, -0.02, 0.005]])

    rotor_thrusts = generate_motor_commands(
        coll_thrust_cmd=torch.tensor([gains.mass * GRAVITY]),
        moment_cmd=moment_cmd,
        gains=gains,
    )
    dt = 0.001
    dynamics.step(rotor_thrusts, dt=dt)

    # Starting at rest, the angular acceleration is the commanded moment
    # divided by the moment of inertia
    inertia = torch.tensor([gains.ixx, gains.iyy, gains.izz])
    assert_close(
        dynamics.ang_vel, moment_cmd / inertia * dt, rtol=1e-4, atol=1e-6
    )
    assert_close(dynamics.vel, torch.zeros((1, 3)), rtol=0.0, atol=1e-6)


def test_quadrotor_dynamics_yaw_rotation(
    gains: CascadeControllerGains,
) -> None:
    dynamics = QuadrotorDynamics.from_gains(gains, num_envs=1)
    dynamics.ang_vel = torch.tensor([[0.0, 0.0, 0.5]])
    hover_thrusts = torch.full((1, 4), gains.mass * GRAVITY / 4)

    dt = 0.001
    for _ in range(1000):
        dynamics.step(hover_thrusts, dt=dt)

    # Constant yaw rate (no gyroscopic coupling about a single axis)
    state = dynamics.get_state()
    assert_close(
        state.attitude.yaw(), torch.tensor([0.5]), rtol=0.0, atol=1e-3
    )
    assert_close(torch.linalg.norm(state.attitude.quat, dim=1), torch.ones(1))
    assert math.isclose(
        state.attitude.body_z_tilt().item(), 1.0, abs_tol=1e-5
    )


def test_quadrotor_dynamics_reset(gains: CascadeControllerGains) -> None:
    dynamics = QuadrotorDynamics.from_gains(gains, num_envs=1)
    dynamics.step(torch.zeros((1, 4)), dt=0.1)

    dynamics.reset(init_pos=torch.tensor([[0.0, 0.0, -2.0]]))

    assert_close(dynamics.pos, torch.tensor([[0.0, 0.0, -2.0]]))
    assert_close(dynamics.vel, torch.zeros((1, 3)))
