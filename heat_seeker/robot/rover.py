from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class OperatingMode(Enum):
    AUTO = "auto"
    MANUAL = "manual"
    SEARCH_RESCUE = "search-rescue"

    def next(self) -> "OperatingMode":
        members = list(OperatingMode)
        return members[(members.index(self) + 1) % len(members)]


class SearchPattern(Enum):
    GRID = "search-grid"
    SPIRAL = "spiral-search"
    PERIMETER = "perimeter-sweep"
    RANDOM = "random-patrol"

    def next(self) -> "SearchPattern":
        members = list(SearchPattern)
        return members[(members.index(self) + 1) % len(members)]

    @classmethod
    def parse(cls, text: str) -> "SearchPattern":
        aliases = {"grid": cls.GRID, "spiral": cls.SPIRAL,
                   "perimeter": cls.PERIMETER, "random": cls.RANDOM}
        if text in aliases:
            return aliases[text]
        return cls(text)


@dataclass
class ManualInput:
    """Keyboard-style drive flags, set by an external input collaborator."""
    forward: bool = False
    backward: bool = False
    left: bool = False
    right: bool = False

    def clear(self):
        self.forward = self.backward = self.left = self.right = False


@dataclass
class RobotState:
    """Actual pose, commanded pose and operating selections of the rover."""
    x: float = 0.0
    z: float = 0.0
    heading: float = 0.0
    target_x: float = 0.0
    target_z: float = 0.0
    target_heading: float = 0.0
    mode: OperatingMode = OperatingMode.AUTO
    pattern: SearchPattern = SearchPattern.GRID
    # Trajectory history for visualization / metrics
    history: Dict[str, List[float]] = field(
        default_factory=lambda: {'x': [], 'z': [], 'heading': []})

    @classmethod
    def spawn(cls, x: float, z: float, heading: float, **kwargs) -> "RobotState":
        state = cls(x=x, z=z, heading=heading, **kwargs)
        state.resync()
        state.record()
        return state

    def pose(self):
        """Return current robot pose"""
        return self.x, self.z, self.heading

    def resync(self):
        """Point the commanded pose at the actual pose."""
        self.target_x, self.target_z = self.x, self.z
        self.target_heading = self.heading

    def record(self):
        self.history['x'].append(self.x)
        self.history['z'].append(self.z)
        self.history['heading'].append(self.heading)
