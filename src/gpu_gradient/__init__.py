"""Procedural two-axis gradient rendered by a WGPU compute kernel"""

__version__ = "0.1.0"
