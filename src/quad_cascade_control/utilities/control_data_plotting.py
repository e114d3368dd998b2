from typing import Any

import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from .drone_cascade_controller import CascadeSimulationData

POSITION_LABELS = ["North [m]", "East [m]", "Down [m]"]


def plot_tracking_data(
    sim_data: CascadeSimulationData,
    env_idx: int = 0,
    thrust_bounds: tuple[float, float] | None = None,
    drone_line_params: dict[str, Any] | None = None,
    setpoint_line_params: dict[str, Any] | None = None,
    bounds_line_params: dict[str, Any] | None = None,
    figsize: tuple[int, int] = (14, 8),
    dpi: int = 100,
    fontsize: int = 10,
    title: str | None = "Cascade Control Tracking",
) -> Figure:
    """
    Plot the position, yaw and rotor thrust trajectories of a single drone
    from a closed-loop cascade control simulation.

    The figure contains two rows of subplots: the first row shows the North,
    East and Down positions against their setpoints, and the second row shows
    the yaw angle against its setpoint and the rotor thrusts with their
    bounds.

    Args:
        sim_data (CascadeSimulationData): The recorded simulation data.
        env_idx (int): The index of the drone to plot.
        thrust_bounds (tuple[float, float] | None): The (min, max) rotor
            thrust bounds drawn as horizontal lines, if provided.
        drone_line_params (dict[str, Any] | None): Matplotlib properties for
            the drone trajectory lines.
        setpoint_line_params (dict[str, Any] | None): Matplotlib properties
            for the setpoint lines.
        bounds_line_params (dict[str, Any] | None): Matplotlib properties for
            the thrust bound lines.
        figsize (tuple[int, int]): The (width, height) dimensions of the
            created Matplotlib figure.
        dpi (int): The DPI resolution of the figure.
        fontsize (int): The fontsize for labels, legends and axes ticks.
        title (str | None): The title for the created plot figure.

    Returns:
        Figure: The created Matplotlib figure.
    """
    if drone_line_params is None:
        drone_line_params = {"color": "tab:blue", "linewidth": 1.5}
    if setpoint_line_params is None:
        setpoint_line_params = {
            "color": "tab:red",
            "linestyle": "--",
            "linewidth": 1.0,
        }
    if bounds_line_params is None:
        bounds_line_params = {"color": "tab:orange", "linestyle": ":"}

    times = sim_data.times

    fig, axs = plt.subplots(2, 3, figsize=figsize, dpi=dpi)

    # Position tracking
    for i, label in enumerate(POSITION_LABELS):
        ax = axs[0, i]
        ax.plot(
            times,
            sim_data.positions[:, env_idx, i],
            label="Drone",
            **drone_line_params,
        )
        ax.plot(
            times,
            sim_data.target_positions[:, env_idx, i],
            label="Setpoint",
            **setpoint_line_params,
        )
        ax.set_ylabel(label, fontsize=fontsize)

    # Yaw tracking
    ax = axs[1, 0]
    ax.plot(
        times,
        sim_data.yaws[:, env_idx],
        label="Drone",
        **drone_line_params,
    )
    ax.plot(
        times,
        sim_data.target_yaws[:, env_idx],
        label="Setpoint",
        **setpoint_line_params,
    )
    ax.set_ylabel("Yaw [rad]", fontsize=fontsize)

    # Rotor thrusts
    ax = axs[1, 1]
    num_rotors = sim_data.rotor_thrusts.shape[-1]
    for rotor_idx in range(num_rotors):
        ax.plot(
            times,
            sim_data.rotor_thrusts[:, env_idx, rotor_idx],
            label=f"Rotor {rotor_idx + 1}",
        )
    if thrust_bounds is not None:
        for bound in thrust_bounds:
            ax.axhline(bound, **bounds_line_params)
    ax.set_ylabel("Thrust [N]", fontsize=fontsize)

    # Leave the last subplot for the legend of the thrust subplot
    axs[1, 2].axis("off")
    handles, labels = ax.get_legend_handles_labels()
    axs[1, 2].legend(handles, labels, loc="center", fontsize=fontsize)

    for ax in axs.flat[:5]:
        ax.set_xlabel("Time [s]", fontsize=fontsize)
        ax.tick_params(axis="both", labelsize=fontsize)
        ax.grid(True)
    axs[0, 0].legend(fontsize=fontsize)

    if title:
        fig.suptitle(title, fontsize=fontsize + 2)

    fig.tight_layout()

    return fig
