#!/usr/bin/env python3
"""
Volume Monitor - Entry Point
This script ensures proper module paths before importing the main application.
"""
import asyncio
import sys
from pathlib import Path

# Get the absolute path to the project root directory
project_root = Path(__file__).parent.resolve()

# Add to Python path if not already there
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


def run() -> int:
    """Console script entry point."""
    from main import main

    try:
        return asyncio.run(main())
    except KeyboardInterrupt:
        print("\nMonitor stopped by user")
        return 0


if __name__ == "__main__":
    print(f"Project root: {project_root}")
    print("Starting Volume Monitor...\n")
    sys.exit(run())
