#!/usr/bin/env python
# pylint: disable=unused-argument

"""
Telegram Bot for building and navigating a waypoint map.

Users place waypoints, connect them, name them and ask for the shortest
route to a destination. Coordinates are typed as three numbers (x y z) or
as two numbers (a floor-plan tap, resolved through the Spatial Provider's
hit test).
"""

import asyncio
import logging
import os
import tempfile
from typing import Optional

from dotenv import load_dotenv
from telegram import ForceReply, Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import BadRequest, NetworkError
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters, CallbackQueryHandler

from src.logging_config import setup_logging
from src.map_viewer.viewer import create_figure, export_html
from src.waypoints.provider import AnchorSpatialProvider, Vector3, to_vector3
from src.waypoints.session import WaypointSession

# Initialize logging (safe to call multiple times)
setup_logging()

logger = logging.getLogger(__name__)

# Configuration constants
SESSION_KEY = "session"
CALLBACK_DATA_PREFIX = "goto_"
MAX_CALLBACK_DATA_BYTES = 64  # Telegram limit
MAP_FILENAME = "waypoint_map.html"

HELP_TEXT = (
    "Waypoint Map Bot\n\n"
    "Editing:\n"
    "/place x y z - Place a waypoint\n"
    "/link x1 y1 z1 x2 y2 z2 - Connect the waypoints at two points\n"
    "/unlink x1 y1 z1 x2 y2 z2 - Disconnect two waypoints\n"
    "/remove x y z - Remove the waypoint at a point\n"
    "/name <name> [number] - Name the last placed (or given) waypoint\n"
    "/reset - Clear the whole map\n\n"
    "Navigation:\n"
    "/here x y z - Set your current position\n"
    "/goto [destination] - Route to a name or waypoint number\n"
    "/map - Get the map as an interactive HTML file\n\n"
    "Storage:\n"
    "/save - Save the map\n"
    "/load - Load the saved map\n"
    "/status - Show map status\n\n"
    "Points may also be given as x y (a tap on the floor plan).\n"
    "/help - Show this help message"
)


def parse_points(args: list[str], count: int, session: WaypointSession) -> Optional[list[Vector3]]:
    """
    Parse command arguments into `count` points.

    Three numbers per point are taken as a 3D position; two numbers per point
    are a floor-plan tap passed through the provider's hit test.

    Returns:
        The points, or None if the arguments don't fit either form or a tap
        misses
    """
    try:
        values = [float(arg) for arg in args]
    except ValueError:
        return None

    if len(values) == count * 3:
        try:
            return [to_vector3(values[i:i + 3]) for i in range(0, len(values), 3)]
        except ValueError:
            return None
    if len(values) == count * 2:
        points = []
        for i in range(0, len(values), 2):
            point = session.provider.hit_test((values[i], values[i + 1]))
            if point is None:
                return None
            points.append(point)
        return points
    return None


def _get_session(context: ContextTypes.DEFAULT_TYPE) -> WaypointSession:
    session = context.bot_data.get(SESSION_KEY)
    if session is None:
        session = WaypointSession()
        context.bot_data[SESSION_KEY] = session
    return session


def _reply_status(update: Update):
    async def send_status(msg: str) -> None:
        if not update.message:
            return
        await update.message.reply_text(msg)

    return send_status


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Send a message when the command /start is issued."""
    user = update.effective_user
    if not update.message or not user:
        return
    await update.message.reply_html(
        rf"Hi {user.mention_html()}! Send /help to see what I can do.",
        reply_markup=ForceReply(selective=True),
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Send a message when the command /help is issued."""
    if not update.message:
        return
    await update.message.reply_text(HELP_TEXT)


async def place(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Place a waypoint."""
    if not update.message:
        return
    session = _get_session(context)
    points = parse_points(context.args or [], 1, session)
    if points is None:
        await update.message.reply_text("Usage: /place x y z")
        return
    await session.place_node(points[0], _reply_status(update))


async def link(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Connect the waypoints nearest to two points."""
    if not update.message:
        return
    session = _get_session(context)
    points = parse_points(context.args or [], 2, session)
    if points is None:
        await update.message.reply_text("Usage: /link x1 y1 z1 x2 y2 z2")
        return
    await session.add_edge(points[0], points[1], _reply_status(update))


async def unlink(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Disconnect the waypoints nearest to two points."""
    if not update.message:
        return
    session = _get_session(context)
    points = parse_points(context.args or [], 2, session)
    if points is None:
        await update.message.reply_text("Usage: /unlink x1 y1 z1 x2 y2 z2")
        return
    await session.remove_edge(points[0], points[1], _reply_status(update))


async def remove(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Remove the waypoint nearest to a point."""
    if not update.message:
        return
    session = _get_session(context)
    points = parse_points(context.args or [], 1, session)
    if points is None:
        await update.message.reply_text("Usage: /remove x y z")
        return
    await session.remove_node(points[0], _reply_status(update))


async def name(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Name the last placed waypoint, or the waypoint number given last."""
    if not update.message:
        return
    args = list(context.args or [])
    node_id = None
    if len(args) >= 2 and args[-1].isdigit():
        node_id = int(args.pop())
    if not args:
        await update.message.reply_text("Usage: /name <name> [number]")
        return
    session = _get_session(context)
    await session.name_node(" ".join(args), _reply_status(update), node_id=node_id)


async def here(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Set the user's current position, the origin of every route."""
    if not update.message:
        return
    session = _get_session(context)
    points = parse_points(context.args or [], 1, session)
    if points is None:
        await update.message.reply_text("Usage: /here x y z")
        return
    session.provider.set_reference_position(points[0])
    await update.message.reply_text(
        f"Current position set to ({points[0][0]:.2f}, {points[0][1]:.2f}, {points[0][2]:.2f})"
    )


async def goto(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route to the given destination, or offer the named waypoints as buttons."""
    if not update.message:
        return
    session = _get_session(context)

    if context.args:
        destination = " ".join(context.args)
        logger.info(f"User requested route to: {destination}")
        await session.navigate(destination, _reply_status(update))
        return

    keyboard = []
    row = []
    for waypoint_name, _ in session.names.items():
        callback_data = f"{CALLBACK_DATA_PREFIX}{waypoint_name}"
        if len(callback_data.encode("utf-8")) > MAX_CALLBACK_DATA_BYTES:
            continue
        row.append(InlineKeyboardButton(waypoint_name.title(), callback_data=callback_data))
        if len(row) == 2:
            keyboard.append(row)
            row = []
    if row:
        keyboard.append(row)

    if not keyboard:
        await update.message.reply_text(
            "No named waypoints yet. Use /goto <number> or name one with /name."
        )
        return

    reply_markup = InlineKeyboardMarkup(keyboard)
    await update.message.reply_text("Where do you want to go?", reply_markup=reply_markup)


async def goto_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle goto button presses and route to the selected waypoint."""
    if not update.callback_query:
        return

    query = update.callback_query
    await query.answer()

    if not query.data:
        return

    destination = query.data[len(CALLBACK_DATA_PREFIX):]
    session = context.bot_data.get(SESSION_KEY)
    if session is None:
        await query.edit_message_text("No map loaded. Place waypoints or use /load first.")
        return

    async def send_status(msg: str):
        try:
            await query.edit_message_text(msg)
        except BadRequest as e:
            # Expected: message not modified or deleted
            logger.debug(f"Could not update status message: {e}")

    logger.info(f"User picked destination: {destination}")
    route = await session.navigate(destination, send_status)
    if route is None:
        logger.info(f"No route to {destination}")


async def save(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Save the map."""
    if not update.message:
        return
    await _get_session(context).save(_reply_status(update))


async def load(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Load the saved map, replacing the current one."""
    if not update.message:
        return
    await _get_session(context).load(_reply_status(update))


async def reset(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Clear the whole map."""
    if not update.message:
        return
    logger.info("User initiated /reset")
    await _get_session(context).reset(_reply_status(update))


async def status(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Show current map status."""
    if not update.message:
        return

    info = _get_session(context).get_status()
    lines = ["Map Status:\n"]
    lines.append(f"Waypoints: {info['waypoints']}")
    lines.append(f"Edges: {info['edges']}")
    lines.append(f"Names: {info['names']}")
    if info["last_placed"] is not None:
        lines.append(f"Last placed: {info['last_placed']}")
    reference = info["reference"]
    if reference is not None:
        lines.append(f"You are at: ({reference[0]:.2f}, {reference[1]:.2f}, {reference[2]:.2f})")
    else:
        lines.append("You are at: unknown (use /here)")
    lines.append(f"Saved map: {'Yes' if info['has_saved_map'] else 'No'}")

    await update.message.reply_text("\n".join(lines))


async def map_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Send the map, with the last route, as an interactive HTML file."""
    if not update.message:
        return

    session = _get_session(context)
    if len(session.graph) == 0:
        await update.message.reply_text("The map has no waypoints yet.")
        return

    fig = create_figure(
        session.graph,
        session.names,
        route=session.last_route,
        reference=session.provider.reference_position(),
    )
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = os.path.join(tmp_dir, MAP_FILENAME)
        await asyncio.to_thread(export_html, fig, path)
        with open(path, "rb") as html_file:
            await update.message.reply_document(html_file, filename=MAP_FILENAME)


async def unknown_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Inform the user that the command was not found."""
    if not update.message:
        return
    await update.message.reply_text(
        "Sorry, I didn't understand that command.\n\n"
        "Available commands:\n"
        "/place - Place a waypoint\n"
        "/goto - Route to a destination\n"
        "/help - Get help"
    )


async def post_init(application: Application) -> None:
    """Create the session and load the saved map if there is one."""
    floor_height = float(os.getenv("WAYPOINT_FLOOR_HEIGHT", "0"))
    session = WaypointSession(provider=AnchorSpatialProvider(floor_height=floor_height))
    application.bot_data[SESSION_KEY] = session

    async def log_status(msg: str):
        logger.info(f"Startup: {msg}")

    if session.store.has_saved_map():
        logger.info(f"Loading saved map from {session.store.directory}")
        await session.load(log_status)
    else:
        logger.info("No saved map, starting empty")


async def post_shutdown(application: Application) -> None:
    """Drop the in-memory session when the bot shuts down."""
    application.bot_data[SESSION_KEY] = None
    logger.info("Shutdown complete")


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors - log network errors concisely, others with full traceback."""
    if isinstance(context.error, NetworkError):
        logger.warning(f"Network error (will retry): {context.error}")
    else:
        logger.exception("Unhandled exception:", exc_info=context.error)


def main() -> None:
    """Start the bot."""
    load_dotenv()
    token = os.getenv("TELEGRAM_BOT_TOKEN")
    if not token:
        raise ValueError("TELEGRAM_BOT_TOKEN not found in environment variables")

    application = (
        Application.builder()
        .token(token)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Editing commands
    application.add_handler(CommandHandler("place", place))
    application.add_handler(CommandHandler("link", link))
    application.add_handler(CommandHandler("unlink", unlink))
    application.add_handler(CommandHandler("remove", remove))
    application.add_handler(CommandHandler("name", name))
    application.add_handler(CommandHandler("reset", reset))

    # Navigation commands
    application.add_handler(CommandHandler("here", here))
    application.add_handler(CommandHandler("goto", goto))
    application.add_handler(CallbackQueryHandler(goto_callback, pattern=f"^{CALLBACK_DATA_PREFIX}"))
    application.add_handler(CommandHandler("map", map_command))

    # Storage commands
    application.add_handler(CommandHandler("save", save))
    application.add_handler(CommandHandler("load", load))
    application.add_handler(CommandHandler("status", status))

    # General commands
    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("help", help_command))

    # handle unknown commands
    application.add_handler(MessageHandler(filters.COMMAND, unknown_command))

    application.add_error_handler(error_handler)

    logger.info("Starting waypoint bot...")

    # Run the bot until the user presses Ctrl-C
    application.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
