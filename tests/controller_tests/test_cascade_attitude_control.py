import math

import pytest
import torch
from torch.testing import assert_close

from quad_cascade_control.controllers.cascade.attitude_control import (
    body_rate_control,
    roll_pitch_control,
    yaw_control,
)
from quad_cascade_control.controllers.cascade.cascade_controller_config import (  # noqa: E501
    CascadeControllerGains,
)
from quad_cascade_control.utilities.attitude import Attitude


def level_attitude(num_envs: int = 1) -> Attitude:
    return Attitude.from_yaw(torch.zeros(num_envs))


def test_roll_pitch_control_zero_acceleration(
    gains: CascadeControllerGains,
) -> None:
    pqr_cmd = roll_pitch_control(
        acc_cmd=torch.zeros((2, 3)),
        attitude=level_attitude(2),
        coll_thrust_cmd=torch.full((2,), 4.905),
        gains=gains,
    )

    assert_close(pqr_cmd, torch.zeros((2, 3)))


@pytest.mark.parametrize(
    "acc_cmd, expected_pqr_cmd",
    [
        # Forward acceleration requires pitching nose down
        ([1.0, 0.0, 0.0], [0.0, -1.2, 0.0]),
        # Rightward acceleration requires rolling right
        ([0.0, 1.0, 0.0], [1.2, 0.0, 0.0]),
    ],
)
def test_roll_pitch_control_level_attitude(
    gains: CascadeControllerGains,
    acc_cmd: list[float],
    expected_pqr_cmd: list[float],
) -> None:
    # 5 N of thrust on a 0.5 kg drone is a 10 m/s^2 collective acceleration,
    # so a 1 m/s^2 acceleration command is a 0.1 tilt command
    pqr_cmd = roll_pitch_control(
        acc_cmd=torch.tensor([acc_cmd]),
        attitude=level_attitude(),
        coll_thrust_cmd=torch.tensor([5.0]),
        gains=gains,
    )

    assert_close(pqr_cmd, torch.tensor([expected_pqr_cmd]))


def test_roll_pitch_control_limits_tilt(
    gains: CascadeControllerGains,
) -> None:
    pqr_cmd = roll_pitch_control(
        acc_cmd=torch.tensor([[20.0, 0.0, 0.0]]),
        attitude=level_attitude(),
        coll_thrust_cmd=torch.tensor([5.0]),
        gains=gains,
    )

    expected_pitch_rate = gains.kp_bank * -gains.max_tilt_angle
    assert_close(pqr_cmd, torch.tensor([[0.0, expected_pitch_rate, 0.0]]))


def test_roll_pitch_control_tilted_attitude_holds_commanded_tilt(
    gains: CascadeControllerGains,
) -> None:
    # A drone already tilted as required by the acceleration command
    roll = torch.tensor([0.2])
    attitude = Attitude.from_euler(roll, torch.zeros(1), torch.zeros(1))
    coll_acc = 10.0
    acc_y = -coll_acc * attitude.tilt()[0, 1].item()

    pqr_cmd = roll_pitch_control(
        acc_cmd=torch.tensor([[0.0, acc_y, 0.0]]),
        attitude=attitude,
        coll_thrust_cmd=torch.tensor([coll_acc * gains.mass]),
        gains=gains,
    )

    assert_close(pqr_cmd, torch.zeros((1, 3)), rtol=0.0, atol=1e-5)


@pytest.mark.parametrize("thrust", [0.0, -1.0])
def test_roll_pitch_control_non_positive_thrust(
    gains: CascadeControllerGains, thrust: float
) -> None:
    pqr_cmd = roll_pitch_control(
        acc_cmd=torch.tensor([[3.0, -3.0, 0.0]]),
        attitude=Attitude.from_euler(
            torch.tensor([0.3]), torch.tensor([-0.2]), torch.tensor([1.0])
        ),
        coll_thrust_cmd=torch.tensor([thrust]),
        gains=gains,
    )

    assert torch.all(torch.isfinite(pqr_cmd))
    assert_close(pqr_cmd, torch.zeros((1, 3)))


def test_roll_pitch_control_mixed_thrust_batch(
    gains: CascadeControllerGains,
) -> None:
    pqr_cmd = roll_pitch_control(
        acc_cmd=torch.tensor([[1.0, 0.0, 0.0], [1.0, 0.0, 0.0]]),
        attitude=level_attitude(2),
        coll_thrust_cmd=torch.tensor([5.0, 0.0]),
        gains=gains,
    )

    assert_close(
        pqr_cmd, torch.tensor([[0.0, -1.2, 0.0], [0.0, 0.0, 0.0]])
    )


def test_yaw_control_wraps_error(gains: CascadeControllerGains) -> None:
    yaw_rate_cmd = yaw_control(
        yaw_cmd=torch.tensor([1.5 * math.pi]),
        yaw=torch.tensor([0.0]),
        gains=gains,
    )

    # The shortest path error is -pi/2, not 3pi/2
    assert_close(yaw_rate_cmd, torch.tensor([gains.kp_yaw * -math.pi / 2]))


@pytest.mark.parametrize(
    "yaw_cmd, yaw, expected_error",
    [
        (0.1, -0.1, 0.2),
        (-0.1, 0.1, -0.2),
        (2 * math.pi + 0.3, 0.0, 0.3),
        (math.pi - 0.1, -math.pi + 0.1, -0.2),
    ],
)
def test_yaw_control_proportional_error(
    gains: CascadeControllerGains,
    yaw_cmd: float,
    yaw: float,
    expected_error: float,
) -> None:
    yaw_rate_cmd = yaw_control(
        yaw_cmd=torch.tensor([yaw_cmd]),
        yaw=torch.tensor([yaw]),
        gains=gains,
    )

    assert_close(
        yaw_rate_cmd,
        torch.tensor([gains.kp_yaw * expected_error]),
        rtol=0.0,
        atol=1e-5,
    )


def test_body_rate_control(gains: CascadeControllerGains) -> None:
    moment_cmd = body_rate_control(
        pqr_cmd=torch.tensor([[1.0, 2.0, 3.0]]),
        pqr=torch.tensor([[0.0, 1.0, 1.0]]),
        gains=gains,
    )

    expected_moment_cmd = torch.tensor(
        [
            [
                gains.ixx * gains.kp_pqr[0] * 1.0,
                gains.iyy * gains.kp_pqr[1] * 1.0,
                gains.izz * gains.kp_pqr[2] * 2.0,
            ]
        ]
    )
    assert_close(moment_cmd, expected_moment_cmd)


def test_body_rate_control_zero_error(gains: CascadeControllerGains) -> None:
    pqr = torch.tensor([[0.4, -0.2, 1.0], [0.0, 0.0, 0.0]])

    moment_cmd = body_rate_control(pqr_cmd=pqr, pqr=pqr, gains=gains)

    assert_close(moment_cmd, torch.zeros((2, 3)))
