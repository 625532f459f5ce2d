#!/usr/bin/env python3
"""Run the Diet Sync API."""

import sys
import os

# Add dietsync to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dietsync.main import run

if __name__ == "__main__":
    run()
