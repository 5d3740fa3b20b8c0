"""
vsetup - install and update the V programming language toolchain.
"""

__version__ = "0.1.0"
