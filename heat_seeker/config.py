from dataclasses import dataclass, replace as _dc_replace
import math
from typing import Optional


class ConfigurationError(ValueError):
    """Raised when a configuration value cannot produce a working simulation."""


# ============================================================================
# CONFIGURATION
# ============================================================================
@dataclass
class SimulationConfig:
    """Simulation configuration parameters (mutable UI surface)"""
    # Arena
    field_size: float = 40.0          # side length of the square arena
    wall_margin: float = 1.0          # points this close to the boundary are walls
    obstacle_clearance: float = 2.5   # effective obstacle radius
    num_obstacles: int = 4
    num_targets: int = 4
    placement_attempts: int = 30
    obstacle_spawn_margin: float = 12.0   # obstacles sampled in (fs - margin)
    obstacle_robot_clearance: float = 5.0
    obstacle_wall_clearance: float = 5.0
    target_spawn_margin: float = 10.0
    target_robot_clearance: float = 4.0
    target_obstacle_clearance: float = 5.0
    robot_spawn_margin: float = 6.0
    robot_spawn_heading: float = -math.pi / 2

    # Sensor (thermal lidar)
    sensor_range: float = 15.0
    sensor_rays: int = 140
    sensor_fov: float = math.pi / 1.5
    ray_step: float = 0.15
    heat_detection_radius: float = 2.5
    proximity_heat_range: float = 8.0
    see_through_obstacles: bool = False
    best_path_ratio: float = 0.6
    emergency_exit_ratio: float = 0.8
    scan_interval: float = 0.06       # seconds between executed scans
    heat_order: str = "farthest"      # "farthest" | "nearest"

    # Fog-of-war coverage map
    coverage_resolution: float = 0.5
    coverage_reveal_radius: float = 1.3

    # Target tracker
    detection_range: float = 20.0
    always_detect_radius: float = 5.0
    bearing_tolerance: float = math.pi / 4
    lock_margin: float = 1.0
    capture_radius: float = 2.5
    human_speed_multiplier: float = 2.5
    target_speed_multiplier: float = 2.0
    approach_tolerance: float = math.pi / 2

    # Coverage planner
    grid_spacing: float = 5.0
    grid_inset: float = 3.0
    grid_completion_radius: float = 2.0
    grid_direction_tolerance: float = math.pi / 3
    spiral_start_radius: float = 2.0
    spiral_reanchor_radius: float = 1.5
    spiral_radius_growth: float = 0.05
    spiral_angle_step: float = 0.08
    spiral_direction_tolerance: float = math.pi / 2.5
    spiral_min_clearance: float = 2.5
    spiral_escape_factor: float = 3.0
    perimeter_inset: float = 4.0
    perimeter_waypoints: int = 18
    perimeter_completion_radius: float = 2.5
    patrol_min_steps: int = 50
    patrol_step_spread: int = 70
    patrol_repick_min_steps: int = 20
    patrol_repick_spread: int = 30
    patrol_direction_tolerance: float = math.pi / 3
    patrol_min_clearance: float = 2.0

    # Motion
    robot_speed: float = 0.15
    smoothing_factor: float = 0.25
    stuck_epsilon: float = 0.02
    stuck_threshold: int = 40
    fallback_rotation: float = math.pi / 6
    manual_turn_rate: float = 0.12
    manual_speed_multiplier: float = 2.0

    # Supervisor
    no_path_threshold: int = 15
    rotation_step: float = math.pi / 4
    rotation_extension: float = math.pi / 3
    rotation_gain: float = 0.15
    rotation_tolerance: float = 0.1
    rotation_exit_clear_count: int = 2
    rotation_dwell_ticks: int = 60

    # Runtime
    tick_dt: float = 1.0 / 60.0
    seed: Optional[int] = None

    def __post_init__(self):
        self.validate()

    @property
    def half_extent(self) -> float:
        return self.field_size / 2.0

    def validate(self):
        """Check the values that would make the pipeline meaningless."""
        if self.field_size < 20:
            raise ConfigurationError(f"field_size must be >= 20 (got {self.field_size})")
        if self.sensor_rays < 1:
            raise ConfigurationError(f"sensor_rays must be >= 1 (got {self.sensor_rays})")
        for name in ("sensor_range", "ray_step", "robot_speed", "coverage_resolution", "tick_dt"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive (got {getattr(self, name)})")
        if self.sensor_range < self.ray_step:
            raise ConfigurationError("sensor_range must cover at least one ray step")
        if not 0 < self.smoothing_factor <= 1:
            raise ConfigurationError(
                f"smoothing_factor must be in (0, 1] (got {self.smoothing_factor})"
            )
        if self.heat_order not in ("farthest", "nearest"):
            raise ConfigurationError(f"unknown heat_order {self.heat_order!r}")
        if self.num_obstacles < 0 or self.num_targets < 0:
            raise ConfigurationError("obstacle and target counts cannot be negative")
        return self

    def replace(self, **changes) -> "SimulationConfig":
        """Return a validated copy with some fields changed."""
        return _dc_replace(self, **changes)
