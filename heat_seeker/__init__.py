"""Heat-seeking search rover simulation."""
from heat_seeker.config import ConfigurationError, SimulationConfig
from heat_seeker.search_supervisor import HeatSearchSimulation, NavState, TickResult

__version__ = "0.1.0"
