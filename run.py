#!/usr/bin/env python3
"""
Main entry point for the heat search rover simulation.
"""
import sys

from heat_seeker.simulation_runner import main

if __name__ == "__main__":
    sys.exit(main())
