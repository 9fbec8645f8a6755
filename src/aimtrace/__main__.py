"""
Entry point for running aimtrace as a module: python -m aimtrace
"""

import sys
from .cli import main

if __name__ == "__main__":
    sys.exit(main())
