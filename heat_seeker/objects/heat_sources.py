"""
Entities that populate the search arena.
Supports: circular obstacles and prioritised heat targets.
Each entity exposes its ground position (x, z) and a `contains(x, z)`
method for spatial queries.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

import numpy as np


# ==========================================================
# Heat categories
# ==========================================================
class HeatCategory(Enum):
    """Heat signature categories; rank 1 is the highest priority."""
    HUMAN = (1, "Human Survivor", "HUMAN", 37.0, 0.8)
    ANIMAL = (2, "Injured Animal", "ANIMAL", 39.0, 0.6)
    FIRE = (3, "Fire Source", "FIRE", 200.0, 1.0)
    VEHICLE = (4, "Vehicle Heat", "VEHICLE", 85.0, 0.9)
    ELECTRONIC = (5, "Electronic Device", "ELECTRONIC", 45.0, 0.5)

    def __init__(self, rank, label, short_name, temperature, size):
        self.rank = rank
        self.label = label
        self.short_name = short_name
        self.temperature = temperature
        self.size = size

    def outranks(self, other: "HeatCategory") -> bool:
        return self.rank < other.rank

    @classmethod
    def top(cls) -> "HeatCategory":
        return min(cls, key=lambda c: c.rank)

    @classmethod
    def from_label(cls, label: str) -> "HeatCategory":
        for category in cls:
            if label in (category.label, category.name, category.short_name):
                return category
        raise ValueError(f"unknown heat category {label!r}")


# ==========================================================
# Obstacle
# ==========================================================
@dataclass
class Obstacle:
    """Static circular obstacle; `radius` is the blocking clearance."""
    x: float
    z: float
    radius: float = 2.5
    shape: str = "box"     # box | cylinder | cone, display only
    size: float = 1.0

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.z

    def contains(self, x: float, z: float) -> bool:
        return float(np.hypot(x - self.x, z - self.z)) < self.radius


# ==========================================================
# Heat target
# ==========================================================
@dataclass
class Target:
    """Heat signature the robot seeks out and captures."""
    target_id: int
    x: float
    z: float
    category: HeatCategory
    temperature: float = 0.0
    size: float = 0.0

    def __post_init__(self):
        if not self.temperature:
            self.temperature = self.category.temperature
        if not self.size:
            self.size = self.category.size

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.z

    @property
    def is_human(self) -> bool:
        return self.category is HeatCategory.top()

    def distance_to(self, x: float, z: float) -> float:
        return float(np.hypot(self.x - x, self.z - z))
