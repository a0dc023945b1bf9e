#!/usr/bin/env python3
"""
Python Client Binding Generator

Generates ctypes structures, enums, dataclasses and client mixins from a
native protocol schema.

Usage:
    python generate_bindings.py --output bindings.py
    python generate_bindings.py schema.json --output bindings.py --runtime-module .lib
"""

import sys
from pathlib import Path

# Add parent directory to path so clientgen package can be found
sys.path.insert(0, str(Path(__file__).parent.parent))

from clientgen.cli import main


if __name__ == "__main__":
    sys.exit(main())
