import math

import pytest

from heat_seeker.config import SimulationConfig
from heat_seeker.control.motion_controller import MotionController
from heat_seeker.env.arena import Arena
from heat_seeker.objects.heat_sources import Obstacle
from heat_seeker.robot.rover import OperatingMode, RobotState
from heat_seeker.sensors.thermal_lidar import PerceptionSnapshot, RayKind, RayRecord


@pytest.fixture
def motion(cfg):
    return MotionController(cfg, Arena(40.0, 1.0, [Obstacle(5.0, 5.0)]))


def record(index, angle, clear_distance, kind=RayKind.CLEAR, **flags):
    return RayRecord(index, angle, clear_distance, clear_distance, kind,
                     quality=clear_distance / 15.0, **flags)


def test_direction_priority(motion):
    records = [
        record(0, -0.5, 5.0),
        record(1, 0.2, 13.0),
        record(2, 0.4, 10.0, has_heat=True),
        record(3, 0.6, 4.0, has_heat=True, has_human=True),
    ]
    snap = PerceptionSnapshot(records=records)
    assert motion.best_available_direction(snap, 0.0) == 0.6

    no_human = PerceptionSnapshot(records=records[:3])
    assert motion.best_available_direction(no_human, 0.0, seek_heat=True) == 0.4
    assert motion.best_available_direction(no_human, 0.0) == 0.2

    # Long exit ray ranked below a mid-range path: only the emergency flag picks it
    mixed = PerceptionSnapshot(records=[
        RayRecord(0, -0.4, 11.0, 11.0, RayKind.CLEAR, quality=0.95),
        RayRecord(1, 0.8, 13.5, 13.5, RayKind.CLEAR, quality=0.9),
    ])
    assert motion.best_available_direction(mixed, 0.0) == -0.4
    motion.emergency_maneuver = True
    assert motion.best_available_direction(mixed, 0.0) == 0.8
    assert motion.best_available_direction(no_human, 0.0, seek_heat=True) == 0.4

    short = PerceptionSnapshot(records=[record(0, -0.3, 5.0), record(1, 0.3, 7.0)])
    motion.emergency_maneuver = False
    assert motion.best_available_direction(short, 0.0) == 0.3


def test_fallback_rotation_when_nothing_is_clear(motion):
    blocked = PerceptionSnapshot(records=[record(0, 0.0, 1.0, kind=RayKind.WALL)])
    assert motion.best_available_direction(blocked, 1.0) == pytest.approx(1.0 + math.pi / 6)


def test_blocked_positions_are_rejected(motion):
    state = RobotState.spawn(0.0, 0.0, 0.0)
    assert not motion.update_target_position(state, 19.5, 0.0, 1.2)
    assert (state.target_x, state.target_z) == (0.0, 0.0)
    assert state.target_heading == 1.2

    assert not motion.update_target_position(state, 5.5, 5.5)
    assert motion.update_target_position(state, 1.0, -1.0)
    assert (state.target_x, state.target_z) == (1.0, -1.0)


def test_smoothing_moves_a_quarter_of_the_way(motion):
    state = RobotState.spawn(0.0, 0.0, 0.0)
    motion.resync(state)
    motion.command_step(state, math.pi / 2, 1.0)
    motion.smooth(state)
    assert state.x == pytest.approx(0.25)
    assert state.z == pytest.approx(0.0, abs=1e-9)
    assert state.heading == pytest.approx(math.pi / 8)


def test_heading_takes_the_short_way_round(motion):
    state = RobotState.spawn(0.0, 0.0, 3.0)
    motion.resync(state)
    state.target_heading = -3.0
    motion.smooth(state)
    assert state.heading > 3.0
    assert -math.pi <= state.heading <= math.pi


def test_stuck_emergency_fires_after_threshold(motion):
    state = RobotState.spawn(2.0, -3.0, 0.0)
    motion.resync(state)
    for _ in range(40):
        motion.smooth(state)
    assert not motion.emergency_maneuver
    assert motion.stuck_counter == 40

    motion.smooth(state)
    assert motion.emergency_maneuver
    assert motion.stuck_counter == 0

    motion.command_step(state, 0.0, 1.0)
    motion.smooth(state)
    motion.smooth(state)
    assert not motion.emergency_maneuver


def test_manual_mode_is_never_stuck(motion):
    state = RobotState.spawn(0.0, 0.0, 0.0, mode=OperatingMode.MANUAL)
    motion.resync(state)
    for _ in range(100):
        motion.smooth(state)
    assert motion.stuck_counter == 0
    assert not motion.emergency_maneuver
