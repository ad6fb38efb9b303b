#!/usr/bin/env python3
"""
ActionLens - analytics over user action logs

Application entry point that bootstraps the CLI interface.
This script provides a convenient way to run the tool from the project root.
"""

import sys
from pathlib import Path

# Add src directory to path for development
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from actionlens.cli import app

if __name__ == "__main__":
    app()
