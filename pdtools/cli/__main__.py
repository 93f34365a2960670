"""
Entry point for running pdmanager as a module.

Usage:
    python -m pdtools.cli [command] [options]
"""

from .manager import main

if __name__ == '__main__':
    main()
