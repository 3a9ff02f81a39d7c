"""Allow running the viewer with `python -m src.map_viewer`."""

from src.map_viewer.cli import main

main()
