"""Render-ready views of a pyramid tree."""

from .geometry import Rect, route_step, union
from .scene import Scene, SceneEdge, build_edges, build_scene, node_rect

__all__ = [
    "Rect",
    "Scene",
    "SceneEdge",
    "build_edges",
    "build_scene",
    "node_rect",
    "route_step",
    "union",
]
