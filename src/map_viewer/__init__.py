"""Waypoint Map Viewer - Interactive visualization for waypoint graphs."""

from src.map_viewer.transformer import compute_edge_lines, compute_node_positions, compute_route_lines
from src.map_viewer.viewer import create_figure, export_html, WaypointInfo

__all__ = [
    "compute_node_positions",
    "compute_edge_lines",
    "compute_route_lines",
    "create_figure",
    "export_html",
    "WaypointInfo",
]
