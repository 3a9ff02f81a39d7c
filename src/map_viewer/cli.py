"""Command-line interface for the waypoint map viewer."""

import argparse
import asyncio
import logging
import sys

from src.logging_config import setup_logging
from src.map_viewer.viewer import create_figure, export_html, show_figure
from src.waypoints.graphnav import import_graphnav_map, load_map
from src.waypoints.session import WaypointSession


def main() -> None:
    """Main entry point for map viewer CLI."""
    parser = argparse.ArgumentParser(
        description="Waypoint Map Viewer - Interactive visualization for saved waypoint maps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # View a saved session in the browser
  uv run python -m src.map_viewer maps/session/

  # Show the route to "kitchen" from where you are standing
  uv run python -m src.map_viewer maps/session/ --goto kitchen --from 0.5 1.0 0

  # Import a GraphNav recording with anchoring and label every waypoint
  uv run python -m src.map_viewer maps/map_catacombs_01/ --graphnav -a --show-labels

  # Export to HTML file
  uv run python -m src.map_viewer maps/session/ --export map.html
        """,
    )

    parser.add_argument(
        "path",
        type=str,
        help="Path to a saved session directory (or GraphNav map with --graphnav)",
    )
    parser.add_argument(
        "--graphnav",
        action="store_true",
        help="Treat PATH as a GraphNav map directory",
    )
    parser.add_argument(
        "-a",
        "--anchoring",
        action="store_true",
        help="Use GraphNav anchoring (seed frame) if available",
    )
    parser.add_argument(
        "--goto",
        type=str,
        metavar="DEST",
        help="Destination name or waypoint number to route to",
    )
    parser.add_argument(
        "--from",
        dest="origin",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        help="Current position used as the route origin",
    )
    parser.add_argument(
        "--export",
        type=str,
        metavar="FILE",
        help="Export to HTML file instead of opening browser",
    )
    parser.add_argument(
        "--no-edges",
        action="store_true",
        help="Hide edge connections",
    )
    parser.add_argument(
        "--show-labels",
        action="store_true",
        help="Show labels on all waypoints (default: only named waypoints)",
    )
    parser.add_argument(
        "--title",
        type=str,
        default=None,
        help="Custom title for the visualization",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging()
    if args.verbose:
        logging.getLogger("src").setLevel(logging.DEBUG)

    logger = logging.getLogger(__name__)

    session = WaypointSession(data_dir=args.path)
    try:
        logger.info(f"Loading map from {args.path}")
        if args.graphnav:
            import_graphnav_map(load_map(args.path), session.editor, use_anchoring=args.anchoring)
        else:
            session.store.load(session.editor)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.origin:
        session.provider.set_reference_position(tuple(args.origin))

    route = None
    if args.goto:
        async def report(msg: str) -> None:
            print(msg)

        route = asyncio.run(session.navigate(args.goto, report))
        if route is None:
            sys.exit(1)

    title = args.title or f"Waypoint Map: {args.path}"
    fig = create_figure(
        session.graph,
        session.names,
        route=route,
        reference=session.provider.reference_position(),
        title=title,
        show_edges=not args.no_edges,
        show_waypoint_labels=args.show_labels,
    )

    if args.export:
        logger.info(f"Exporting to {args.export}")
        export_html(fig, args.export)
        print(f"Exported to {args.export}")
    else:
        logger.info("Opening in browser")
        show_figure(fig)


if __name__ == "__main__":
    main()
