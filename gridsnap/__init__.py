"""
gridsnap - Window-tiling engine for desktop shells.

Run with:  python -m gridsnap --help
"""

__version__ = "0.1.0"
