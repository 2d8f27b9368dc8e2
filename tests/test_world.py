import json
import math

import numpy as np
import pytest

from heat_seeker.config import SimulationConfig
from heat_seeker.env.world import LayoutError, World
from heat_seeker.objects.heat_sources import HeatCategory, Target


def test_generated_world_respects_placement_rules():
    cfg = SimulationConfig(seed=11)
    world = World.generate(cfg, np.random.default_rng(11))
    sx, sz = world.spawn
    limit = (cfg.field_size - cfg.robot_spawn_margin) / 2
    assert abs(sx) <= limit and abs(sz) <= limit
    assert world.spawn_heading == pytest.approx(-math.pi / 2)
    assert len(world.arena.obstacles) == cfg.num_obstacles
    assert len(world.targets) == cfg.num_targets

    for obstacle in world.arena.obstacles:
        assert math.hypot(obstacle.x - sx, obstacle.z - sz) > 5.0
    for target in world.target_list():
        assert target.distance_to(sx, sz) > 4.0
        for obstacle in world.arena.obstacles:
            assert math.hypot(obstacle.x - target.x, obstacle.z - target.z) >= 5.0


def test_target_defaults_come_from_category():
    target = Target(3, 1.0, 2.0, HeatCategory.FIRE)
    assert target.temperature == 200.0
    assert target.size == 1.0
    assert not target.is_human
    assert Target(4, 0.0, 0.0, HeatCategory.HUMAN).is_human


def test_ids_are_never_reused(make_world, cfg):
    world = make_world()
    first = world.add_target(5.0, 5.0, HeatCategory.FIRE)
    second = world.add_target(-5.0, 5.0, HeatCategory.VEHICLE)
    world.capture(first.target_id, cfg, (0.0, 0.0))

    assert world.get_target(first.target_id) is None
    assert world.get_target(second.target_id) is second
    assert len(world.targets) == 2
    assert first.target_id not in world.targets
    assert max(world.targets) > second.target_id


def test_targets_within_uses_strict_radius(make_world):
    world = make_world()
    near = world.add_target(0.0, 2.0, HeatCategory.ANIMAL)
    world.add_target(0.0, 2.5, HeatCategory.ANIMAL)
    assert world.targets_within(0.0, 0.0, 2.5) == [near]


def test_layout_save_and_load(tmp_path):
    cfg = SimulationConfig(seed=5)
    world = World.generate(cfg, np.random.default_rng(5))
    path = tmp_path / "layouts" / "scene.json"
    world.save_layout(str(path))

    loaded = World.load_layout(str(path))
    assert loaded.arena.field_size == world.arena.field_size
    assert loaded.spawn == pytest.approx(world.spawn)
    assert [(o.x, o.z) for o in loaded.arena.obstacles] == \
        [(o.x, o.z) for o in world.arena.obstacles]
    assert [t.category for t in loaded.target_list()] == \
        [t.category for t in world.target_list()]


def test_malformed_layout_raises(tmp_path):
    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{not json")
    with pytest.raises(LayoutError):
        World.load_layout(str(bad_json))

    missing = tmp_path / "missing.json"
    missing.write_text(json.dumps({"obstacles": []}))
    with pytest.raises(LayoutError):
        World.load_layout(str(missing))
