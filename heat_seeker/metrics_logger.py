import json
import logging
import os
from datetime import datetime

import numpy as np
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def save_run_metrics(sim, output_dir=None):
    """
    Save trajectory, mission summary and plots for a finished run.

    Args:
        sim: HeatSearchSimulation after some ticks
        output_dir: target directory; a timestamped results_* folder if None

    Returns:
        The directory the files were written to
    """
    if output_dir is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_dir = f'results_{timestamp}'
    os.makedirs(output_dir, exist_ok=True)

    history = sim.robot.history
    dt = sim.cfg.tick_dt
    times = [i * dt for i in range(len(history['x']))]

    # 1. Trajectory
    trajectory = {
        'time': times,
        'trajectory': {
            'x': history['x'],
            'z': history['z'],
            'heading': history['heading'],
        },
        'coverage': sim.coverage_history,
    }
    with open(os.path.join(output_dir, 'trajectory.json'), 'w') as f:
        json.dump(trajectory, f, indent=2)

    # 2. Mission summary
    xs = np.asarray(history['x'])
    zs = np.asarray(history['z'])
    total_distance = float(np.sum(np.hypot(np.diff(xs), np.diff(zs)))) if len(xs) > 1 else 0.0
    with open(os.path.join(output_dir, 'mission_summary.txt'), 'w') as f:
        f.write("Heat Search Mission Summary\n")
        f.write("===========================\n\n")
        f.write(f"Mode: {sim.robot.mode.value}\n")
        f.write(f"Pattern: {sim.robot.pattern.value}\n")
        f.write(f"Ticks: {sim.tick_count}\n")
        f.write(f"Targets Found: {sim.targets_found}\n")
        f.write(f"Pattern Coverage: {sim.coverage:.1f}%\n")
        f.write(f"Area Explored: {sim.explored:.1f}%\n")
        f.write(f"Total Distance: {total_distance:.2f}m\n")
        f.write(f"Final Status: {sim.status}\n")

    # 3. Plots
    plt.figure(figsize=(10, 6))
    plt.plot(times[1:], sim.coverage_history)
    plt.title('Search Coverage Progress')
    plt.xlabel('Time [s]')
    plt.ylabel('Coverage [%]')
    plt.grid(True)
    plt.savefig(os.path.join(output_dir, 'coverage_progress.png'))

    h = sim.arena.half_extent
    plt.figure(figsize=(8, 8))
    plt.plot(history['x'], history['z'])
    for obstacle in sim.arena.obstacles:
        plt.gca().add_patch(plt.Circle((obstacle.x, obstacle.z), obstacle.radius,
                                       color='gray', alpha=0.5))
    plt.xlim(-h, h)
    plt.ylim(-h, h)
    plt.title('Rover Trajectory')
    plt.xlabel('X [m]')
    plt.ylabel('Z [m]')
    plt.gca().set_aspect('equal')
    plt.grid(True)
    plt.savefig(os.path.join(output_dir, 'trajectory_2d.png'))

    plt.close('all')
    logger.info("Run metrics saved in %s", output_dir)
    return output_dir
