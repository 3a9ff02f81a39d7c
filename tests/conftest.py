"""
Shared pytest fixtures for waypoint map tests.

This module provides reusable fixtures that are automatically discovered
by pytest. Fixtures here are available to all test files.

Educational notes for new developers:
- Fixtures are functions that provide test data or set up test state
- @pytest.fixture decorator marks a function as a fixture
- Fixtures can depend on other fixtures (dependency injection)
- tmp_path is a built-in fixture giving each test its own empty directory
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from bosdyn.api.graph_nav import map_pb2

from src.waypoints.editor import GraphEditor
from src.waypoints.graph import WaypointGraph
from src.waypoints.names import NameDirectory
from src.waypoints.provider import AnchorSpatialProvider
from src.waypoints.session import WaypointSession


@pytest.fixture
def mock_status_callback() -> AsyncMock:
    """
    Create a mock async callback for status updates.

    This fixture provides a callable that records all status messages
    sent during a test, useful for verifying user feedback behavior.

    Example:
        async def test_place(session, mock_status_callback):
            await session.place_node((0.0, 0.0, 0.0), mock_status_callback)
            first_msg = mock_status_callback.call_args_list[0][0][0]
            assert "Placed" in first_msg
    """
    return AsyncMock()


@pytest.fixture
def provider() -> AnchorSpatialProvider:
    """In-memory Spatial Provider with the floor at z = 0."""
    return AnchorSpatialProvider()


@pytest.fixture
def graph(provider) -> WaypointGraph:
    """Empty waypoint graph backed by the in-memory provider."""
    return WaypointGraph(provider)


@pytest.fixture
def names(graph) -> NameDirectory:
    return NameDirectory(graph)


@pytest.fixture
def editor(graph, names) -> GraphEditor:
    return GraphEditor(graph, names)


@pytest.fixture
def line_graph(editor):
    """
    Three waypoints on the x axis, 0 - 1 - 2, at x = 0, 3 and 8.

    Returns the editor; node ids are 0, 1 and 2.
    """
    for x in (0.0, 3.0, 8.0):
        editor.place_node((x, 0.0, 0.0))
    editor.graph.add_edge(0, 1)
    editor.graph.add_edge(1, 2)
    return editor


@pytest.fixture
def session(tmp_path) -> WaypointSession:
    """Waypoint session saving into a per-test temporary directory."""
    return WaypointSession(data_dir=str(tmp_path / "session"))


@pytest.fixture
def graphnav_graph() -> map_pb2.Graph:
    """
    Build a small GraphNav graph proto.

    Three waypoints chained by two edges, each edge 2 m along x:
    "aula-lobby-xyz-123" (named "entrance") -> "triangle-vast-abc-456"
    (named "triangle") -> "short" (unnamed, too short for a short code).
    """
    graph = map_pb2.Graph()
    for waypoint_id, name in (
        ("aula-lobby-xyz-123", "entrance"),
        ("triangle-vast-abc-456", "triangle"),
        ("short", ""),
    ):
        waypoint = graph.waypoints.add()
        waypoint.id = waypoint_id
        waypoint.annotations.name = name

    for from_id, to_id in (
        ("aula-lobby-xyz-123", "triangle-vast-abc-456"),
        ("triangle-vast-abc-456", "short"),
    ):
        edge = graph.edges.add()
        edge.id.from_waypoint = from_id
        edge.id.to_waypoint = to_id
        edge.from_tform_to.position.x = 2.0
        edge.from_tform_to.rotation.w = 1.0

    return graph


@pytest.fixture
def mock_telegram_update():
    """
    Create a mock Telegram Update object.

    Returns a MagicMock that simulates an incoming Telegram update
    with user information and message capabilities.
    """
    update = MagicMock()
    update.effective_user.mention_html.return_value = "<b>TestUser</b>"
    update.effective_user.id = 12345
    update.message.reply_text = AsyncMock()
    update.message.reply_html = AsyncMock()
    update.message.reply_document = AsyncMock()
    update.message.text = "test message"
    return update


@pytest.fixture
def mock_telegram_context(session):
    """
    Create a mock Telegram Context object.

    bot_data holds a real session, the way post_init sets it up.
    """
    context = MagicMock()
    context.bot_data = {"session": session}
    context.args = []
    return context


@pytest.fixture
def mock_callback_query():
    """
    Create a mock Telegram callback query for inline button presses.

    Returns a MagicMock that simulates a callback query with
    answer and edit capabilities.
    """
    query = MagicMock()
    query.answer = AsyncMock()
    query.edit_message_text = AsyncMock()
    query.data = "goto_kitchen"
    return query
