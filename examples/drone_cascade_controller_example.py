"""
Drone Control using a Cascade Controller

This script demonstrates the control of drones simulated with a rigid-body
quadcopter model (`QuadrotorDynamics`) using a cascade controller
(`DroneCascadeController`) that tracks a sequence of hover targets and
outputs individual rotor thrusts.
"""

import argparse
import logging
import math

import matplotlib.pyplot as plt
import torch

from quad_cascade_control.envs.quadrotor_dynamics import QuadrotorDynamics
from quad_cascade_control.utilities.control_data_plotting import (
    plot_tracking_data,
)
from quad_cascade_control.utilities.drone_cascade_controller import (
    create_drone_cascade_controller,
    simulate_cascade_control,
)
from quad_cascade_control.utilities.trajectory import StaticTrajectory


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Drone cascade controller example"
    )

    parser.add_argument(
        "--num_envs", type=int, default=1, help="The number of parallel envs."
    )
    parser.add_argument(
        "--config_path",
        type=str,
        default=None,
        help="The path to the cascade controller YAML config file.",
    )
    parser.add_argument(
        "--dt", type=float, default=0.005, help="The control time step [s]."
    )
    parser.add_argument(
        "--hover_time",
        type=float,
        default=4.0,
        help="The time spent tracking each target [s].",
    )
    parser.add_argument(
        "--target_pos_noise",
        action="store_true",
        help="Enable the addition of noise to target positions.",
    )
    parser.add_argument(
        "--save_plot",
        type=str,
        default=None,
        help="Save the tracking plot of the first drone to this path.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging."
    )

    return parser.parse_args()


def main() -> None:
    args = parse_args()
    num_envs = args.num_envs
    dt = args.dt

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    print("--- Drone Cascade Controller Example ---")
    print("-" * 40)

    # Define a sequence of target positions (north, east, down) and yaw
    # angles (radians)
    target_pos_list = [
        [0.0, 0.0, -1.5],
        [1.0, 1.0, -1.0],
        [-1.0, -1.0, -1.5],
        [0.0, 0.0, -0.5],
        [0.5, 0.5, -1.5],
    ]
    target_yaw_list = [0.0, 1.5 * math.pi, -0.5 * math.pi, 0.0, 2 * math.pi]

    target_pos_tensor_list = torch.tensor(target_pos_list, dtype=torch.float)
    target_yaw_tensor_list = torch.tensor(target_yaw_list, dtype=torch.float)

    # Create trajectory source, drone dynamics and cascade controller
    print("Creating drone cascade controller")

    trajectory = StaticTrajectory(
        target_pos=target_pos_tensor_list[0].repeat(num_envs, 1),
        target_yaw=target_yaw_tensor_list[0].expand(num_envs),
    )
    controller = create_drone_cascade_controller(
        num_envs=num_envs,
        config_path=args.config_path,
        trajectory_source=trajectory,
    )

    init_pos = torch.zeros((num_envs, 3), dtype=torch.float)
    init_pos[:, 2] = -1.0
    dynamics = QuadrotorDynamics.from_gains(
        controller.gains, num_envs=num_envs, init_pos=init_pos
    )
    controller.state_estimator = dynamics

    # Command drones to hover at each target
    print("Drone cascade control simulation")

    noise_scale = 0.5  # Noise scale for target positions
    num_targets = len(target_pos_tensor_list)
    sim_data_list = []
    for i in range(num_targets):
        target_pos = target_pos_tensor_list[i].repeat(num_envs, 1)
        target_yaw = target_yaw_tensor_list[i].expand(num_envs)

        print(
            f"  [{i + 1}/{num_targets}] Hovering at target pos: "
            f"{target_pos_tensor_list[i].tolist()}, yaw: "
            f"{target_yaw_tensor_list[i].item():6.4f}"
        )

        # Add noise to target positions to show independent control behavior
        if args.target_pos_noise:
            target_pos += 2 * noise_scale * (torch.rand_like(target_pos) - 0.5)
            print("         * Added target position noise")

        trajectory.set_target(target_pos=target_pos, target_yaw=target_yaw)

        sim_data = simulate_cascade_control(
            controller=controller,
            dynamics=dynamics,
            duration=args.hover_time,
            dt=dt,
            start_time=i * args.hover_time,
        )
        sim_data_list.append(sim_data)

        final_error = abs(
            sim_data.positions[-1] - sim_data.target_positions[-1]
        ).max()
        print(f"         Final position error: {final_error:.4f} m")

    print("Control simulation finished.")

    if args.save_plot:
        for i, sim_data in enumerate(sim_data_list):
            fig = plot_tracking_data(
                sim_data,
                thrust_bounds=(
                    controller.gains.min_motor_thrust,
                    controller.gains.max_motor_thrust,
                ),
                title=f"Cascade Control Tracking (target {i + 1})",
            )
            save_path = args.save_plot.replace(".png", f"_{i + 1}.png")
            fig.savefig(save_path)
            plt.close(fig)
            print(f"Saved tracking plot to {save_path}")


if __name__ == "__main__":
    main()
