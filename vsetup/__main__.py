"""
Entry point for running vsetup as a module.

Usage: python -m vsetup [options]
"""

from vsetup.cli.parser import main

if __name__ == "__main__":
    main()
