"""Plotly-based interactive visualization for waypoint graphs."""

from dataclasses import dataclass, field
from typing import Optional

import plotly.graph_objects as go

from src.map_viewer.transformer import (
    Segment,
    compute_edge_lines,
    compute_node_positions,
    compute_reference_link,
    compute_route_lines,
)
from src.waypoints.graph import WaypointGraph
from src.waypoints.names import NameDirectory
from src.waypoints.pathfinder import Route
from src.waypoints.provider import Vector3


@dataclass
class WaypointInfo:
    """Extracted waypoint metadata for display."""

    id: int
    position: Vector3
    degree: int
    names: list[str] = field(default_factory=list)
    on_route: bool = False

    @property
    def label(self) -> str:
        return self.names[0] if self.names else str(self.id)


def extract_waypoint_info(
    graph: WaypointGraph,
    names: NameDirectory,
    positions: dict[int, Vector3],
    route: Optional[Route] = None,
) -> list[WaypointInfo]:
    """
    Extract displayable metadata for every positioned waypoint.

    Args:
        graph: Waypoint graph
        names: Name directory of the graph
        positions: Dict mapping node id to position
        route: Route whose waypoints should be flagged

    Returns:
        List of WaypointInfo in node id order
    """
    route_nodes = set(route.nodes) if route is not None and route.reachable else set()
    return [
        WaypointInfo(
            id=node_id,
            position=position,
            degree=len(graph.neighbors(node_id)),
            names=names.names_for(node_id),
            on_route=node_id in route_nodes,
        )
        for node_id, position in sorted(positions.items())
    ]


def create_figure(
    graph: WaypointGraph,
    names: NameDirectory,
    route: Optional[Route] = None,
    reference: Optional[Vector3] = None,
    title: str = "Waypoint Map",
    show_edges: bool = True,
    show_waypoint_labels: bool = False,
) -> go.Figure:
    """
    Create interactive 3D Plotly figure of a waypoint graph.

    Every waypoint drawn is marked rendered on the graph.

    Args:
        graph: Waypoint graph
        names: Name directory of the graph
        route: Route to highlight
        reference: Current (camera) position, linked to the route start
        title: Figure title
        show_edges: Whether to show edge lines
        show_waypoint_labels: Whether to label unnamed waypoints too

    Returns:
        Plotly Figure object ready for display
    """
    positions = compute_node_positions(graph)
    infos = extract_waypoint_info(graph, names, positions, route)

    named_infos = [info for info in infos if info.names]
    regular_infos = [info for info in infos if not info.names]

    fig = go.Figure()

    if show_edges:
        _add_lines_to_figure(
            fig,
            compute_edge_lines(graph, positions),
            color="rgb(150, 150, 150)",
            width=2,
            name="Edges",
        )

    if route is not None:
        route_lines = compute_route_lines(route, positions)
        link = compute_reference_link(reference, route, positions)
        if link is not None:
            route_lines.append(link)
        if route_lines:
            _add_lines_to_figure(fig, route_lines, color="rgb(0, 206, 209)", width=8, name="Route")

    if regular_infos:
        _add_waypoints_to_figure(
            fig,
            regular_infos,
            color="rgb(65, 105, 225)",  # Royal blue
            name="Waypoints",
            marker_size=6,
            show_labels=show_waypoint_labels,
        )

    # Named waypoints are destinations, always labelled
    if named_infos:
        _add_waypoints_to_figure(
            fig,
            named_infos,
            color="rgb(50, 205, 50)",  # Lime green
            name="Named Waypoints",
            marker_size=12,
            show_labels=True,
        )

    if reference is not None:
        _add_reference_to_figure(fig, reference)

    for info in infos:
        graph.mark_rendered(info.id)

    fig.update_layout(
        title=title,
        scene=dict(
            xaxis_title="X (m)",
            yaxis_title="Y (m)",
            zaxis_title="Z (m)",
            aspectmode="data",
        ),
        showlegend=True,
        legend=dict(
            yanchor="top",
            y=0.99,
            xanchor="left",
            x=0.01,
            itemclick="toggle",
            itemdoubleclick="toggleothers",
        ),
        margin=dict(l=0, r=0, t=80, b=0),
        updatemenus=_create_toggle_buttons(fig),
    )

    return fig


def _create_toggle_buttons(fig: go.Figure) -> list[dict]:
    """
    Create a dropdown menu for visibility control.

    Uses explicit visibility arrays since Plotly doesn't support "toggle".
    """
    trace_names = [trace.name for trace in fig.data]
    num_traces = len(trace_names)

    buttons = [
        dict(label="All Visible", method="restyle", args=[{"visible": [True] * num_traces}]),
    ]
    for i, name in enumerate(trace_names):
        visible: list = ["legendonly"] * num_traces
        visible[i] = True
        buttons.append(dict(label=f"Only {name}", method="restyle", args=[{"visible": visible}]))

    return [
        dict(
            type="dropdown",
            direction="down",
            buttons=buttons,
            pad={"r": 10, "t": 10},
            showactive=True,
            x=0.0,
            xanchor="left",
            y=1.15,
            yanchor="top",
        )
    ]


def _add_waypoints_to_figure(
    fig: go.Figure,
    infos: list[WaypointInfo],
    color: str,
    name: str,
    marker_size: int = 8,
    show_labels: bool = True,
) -> None:
    """Add waypoint markers with hover information."""
    hover_texts = []
    for info in infos:
        text = f"<b>{info.label}</b><br>"
        text += f"ID: {info.id}<br>"
        if info.names:
            text += f"Names: {', '.join(info.names)}<br>"
        text += f"Position: ({info.position[0]:.2f}, {info.position[1]:.2f}, {info.position[2]:.2f})<br>"
        text += f"Edges: {info.degree}"
        if info.on_route:
            text += "<br>On route"
        hover_texts.append(text)

    fig.add_trace(
        go.Scatter3d(
            x=[info.position[0] for info in infos],
            y=[info.position[1] for info in infos],
            z=[info.position[2] for info in infos],
            mode="markers+text" if show_labels else "markers",
            marker=dict(
                size=[marker_size + 4 if info.on_route else marker_size for info in infos],
                color=color,
                opacity=0.9,
            ),
            text=[info.label if show_labels else "" for info in infos],
            textposition="top center",
            textfont=dict(size=14, color="black"),
            hovertext=hover_texts,
            hoverinfo="text",
            name=name,
        )
    )


def _add_lines_to_figure(
    fig: go.Figure,
    lines: list[Segment],
    color: str,
    width: int,
    name: str,
) -> None:
    """Add line segments as one trace, separated by None gaps."""
    x: list[float | None] = []
    y: list[float | None] = []
    z: list[float | None] = []

    for start, end in lines:
        x.extend([start[0], end[0], None])
        y.extend([start[1], end[1], None])
        z.extend([start[2], end[2], None])

    fig.add_trace(
        go.Scatter3d(
            x=x,
            y=y,
            z=z,
            mode="lines",
            line=dict(color=color, width=width),
            hoverinfo="skip",
            name=name,
        )
    )


def _add_reference_to_figure(fig: go.Figure, reference: Vector3) -> None:
    fig.add_trace(
        go.Scatter3d(
            x=[reference[0]],
            y=[reference[1]],
            z=[reference[2]],
            mode="markers",
            marker=dict(size=9, color="rgb(255, 165, 0)", symbol="diamond", opacity=0.9),
            hovertext=[f"<b>You</b><br>Position: ({reference[0]:.2f}, {reference[1]:.2f}, {reference[2]:.2f})"],
            hoverinfo="text",
            name="Current Position",
        )
    )


def show_figure(fig: go.Figure) -> None:
    """Display figure in browser."""
    fig.show()


def export_html(fig: go.Figure, output_path: str) -> None:
    """Export figure as standalone HTML file."""
    fig.write_html(output_path, include_plotlyjs=True, full_html=True)
