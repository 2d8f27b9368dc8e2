import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Circle, Rectangle

from heat_seeker.objects.heat_sources import HeatCategory
from heat_seeker.sensors.thermal_lidar import RayKind

CATEGORY_COLORS = {
    HeatCategory.HUMAN: 'red',
    HeatCategory.ANIMAL: 'orange',
    HeatCategory.FIRE: 'darkred',
    HeatCategory.VEHICLE: 'purple',
    HeatCategory.ELECTRONIC: 'gold',
}


class Renderer2D:
    """Top-down matplotlib view of a HeatSearchSimulation."""

    def __init__(self, sim, show_rays=True, show_fog=True):
        self.sim = sim
        self.show_rays = show_rays
        self.show_fog = show_fog
        self.fig, self.ax = plt.subplots(figsize=(10, 10))

    def _setup_axes(self):
        h = self.sim.arena.half_extent
        self.ax.set_xlim(-h, h)
        self.ax.set_ylim(-h, h)
        self.ax.set_aspect('equal')
        self.ax.grid(True)
        self.ax.set_xlabel('X (m)')
        self.ax.set_ylabel('Z (m)')
        self.ax.set_title(f'Heat Search - {self.sim.status}')

    def draw_robot(self, robot):
        """Draw the rover body and its heading arrow"""
        self.ax.add_patch(Circle((robot.x, robot.z), 0.6, color='skyblue', alpha=0.9))
        arrow_len = 1.2
        dx = arrow_len * np.sin(robot.heading)
        dz = arrow_len * np.cos(robot.heading)
        self.ax.arrow(robot.x, robot.z, dx, dz,
                      head_width=0.4, head_length=0.5, fc='red', ec='red')

    def draw_rays(self, robot, snapshot):
        for record in snapshot.records:
            color = 'limegreen' if record.kind is RayKind.CLEAR else 'gray'
            if record.has_heat:
                color = 'orangered'
            ex = robot.x + np.sin(record.angle) * record.distance
            ez = robot.z + np.cos(record.angle) * record.distance
            self.ax.plot([robot.x, ex], [robot.z, ez], color=color, linewidth=0.4, alpha=0.4)

    def draw(self):
        """Redraw the whole scene on the figure"""
        sim = self.sim
        arena = sim.arena
        self.ax.clear()
        self._setup_axes()
        h = arena.half_extent

        if self.show_fog:
            # Dark where the sensor fan has not swept yet
            fog = np.where(sim.coverage_map.explored, np.nan, 1.0)
            self.ax.imshow(fog, extent=(-h, h, -h, h), origin='lower',
                           cmap='Greys', vmin=0, vmax=2, alpha=0.35)

        limit = arena.inner_limit
        self.ax.add_patch(Rectangle((-limit, -limit), 2 * limit, 2 * limit,
                                    fill=False, edgecolor='black', linewidth=2))

        for obstacle in arena.obstacles:
            self.ax.add_patch(Circle((obstacle.x, obstacle.z), obstacle.radius,
                                     color='gray', alpha=0.7))

        locked = sim.tracker.locked_target(sim.world)
        for target in sim.world.target_list():
            self.ax.add_patch(Circle((target.x, target.z), target.size,
                                     color=CATEGORY_COLORS[target.category], alpha=0.8))
            if locked is not None and target.target_id == locked.target_id:
                self.ax.add_patch(Circle((target.x, target.z), sim.cfg.capture_radius,
                                         fill=False, edgecolor='red', linestyle='--'))

        if self.show_rays:
            self.draw_rays(sim.robot, sim.snapshot)

        history = sim.robot.history
        self.ax.plot(history['x'], history['z'], 'b-', linewidth=1, alpha=0.6)
        self.draw_robot(sim.robot)

    def render(self, pause=0.01):
        self.draw()
        plt.pause(pause)

    def save(self, path):
        self.draw()
        self.fig.savefig(path)

    def close(self):
        plt.close(self.fig)
