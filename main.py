"""NEXUS Research

Simple CLI for running company and deep research.
"""

import sys

from nexus.cli import main

if __name__ == "__main__":
    sys.exit(main())
