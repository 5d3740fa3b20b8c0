"""
Entry point for running the vsetup CLI as a module.

Usage: python -m vsetup.cli [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
