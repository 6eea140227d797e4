#!/usr/bin/env python3
"""
Seigniorage Treasury Simulation Runner

Convenience script to run the simulation from the repository root. All
command-line arguments are forwarded to seigniorage_sim.main.
"""

import sys

from seigniorage_sim.main import main

if __name__ == "__main__":
    sys.exit(main())
