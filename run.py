#!/usr/bin/env python3
"""
Heart failure survival study: one command to run everything.

Usage:
    python run.py                      # Fetch the UCI dataset and run
    python run.py path/to/records.csv  # Run on a local copy
"""

import sys

from heart_failure_study.__main__ import main


if __name__ == "__main__":
    argv = ["--data", sys.argv[1]] if len(sys.argv) > 1 else []
    sys.exit(main(argv))
