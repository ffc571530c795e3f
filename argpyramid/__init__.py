"""
argpyramid: structured-argument pyramids.

Main interface: PyramidEditor
"""

__version__ = "0.1.0"

from .core.mutation import PyramidEditor
from .core.state import load_nodes, save_nodes

__all__ = ["PyramidEditor", "load_nodes", "save_nodes"]
