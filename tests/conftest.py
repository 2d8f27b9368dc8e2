import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from heat_seeker.clock import SimulatedClock
from heat_seeker.config import SimulationConfig
from heat_seeker.env.arena import Arena
from heat_seeker.env.world import World
from heat_seeker.search_supervisor import HeatSearchSimulation


@pytest.fixture
def cfg():
    return SimulationConfig(seed=0)


@pytest.fixture
def make_world():
    """Empty world factory: no targets, optional obstacles."""
    def _make(field_size=40.0, spawn=(0.0, 0.0), heading=0.0, obstacles=None, seed=0):
        arena = Arena(field_size, 1.0, obstacles)
        return World(arena, spawn=spawn, spawn_heading=heading, rng=np.random.default_rng(seed))
    return _make


@pytest.fixture
def make_sim(cfg):
    def _make(world, config=None):
        config = config if config is not None else cfg
        return HeatSearchSimulation(config, world=world, clock=SimulatedClock(),
                                    rng=np.random.default_rng(0))
    return _make
