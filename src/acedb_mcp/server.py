"""MCP server entry point for an ACeDB socket server.

Exposes tools, resources, and prompts via the Model Context Protocol
using the official Python MCP SDK with stdio transport. The server holds
at most one session at a time.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import SETTINGS, load_settings
from .protocol.framing import ENCODING
from .session import Session, connect as open_session, connection_info

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "acedb",
    instructions="MCP server for querying an ACeDB database over its socket protocol",
)

DEFAULT_STREAM_LIMIT = 64 * 1024

# Global session state
_session: Session | None = None


def _get_session() -> Session:
    """Get the active session, raising if not connected."""
    if _session is None or _session.defunct:
        raise RuntimeError(
            "Not connected to an ACeDB server. Use the 'connect' tool first."
        )
    return _session


def _session_summary(session: Session) -> dict[str, Any]:
    summary: dict[str, Any] = {}
    info = connection_info(session)
    if info is not None:
        summary["host"] = info.host
        summary["port"] = info.port
    summary.update(session.server_config.to_dict())
    return summary


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def connect(
    host: str | None = None,
    port: int | None = None,
    user: str | None = None,
    password: str | None = None,
) -> dict[str, Any]:
    """Connect and log in to an ACeDB socket server.

    Any argument left out falls back to the ACEDB_HOST, ACEDB_PORT,
    ACEDB_USER and ACEDB_PASSWORD settings.
    """
    global _session
    if _session is not None and not _session.defunct:
        return {
            "connected": True,
            "message": "Already connected",
            **_session_summary(_session),
        }

    if _session is not None:
        _session.dispose()
        _session = None

    _session = open_session(
        host or SETTINGS.host,
        port or SETTINGS.port,
        user or SETTINGS.user,
        password or SETTINGS.password,
    )
    return {"connected": True, **_session_summary(_session)}


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Close the connection to the server."""
    global _session
    if _session is None:
        return {"disconnected": True}
    _session.dispose()
    _session = None
    return {"disconnected": True}


@mcp.tool()
def session_status() -> dict[str, Any]:
    """Report whether a session is open and what the server announced."""
    if _session is None:
        return {"connected": False}
    return {
        "connected": not _session.defunct,
        "defunct": _session.defunct,
        "transactions": _session.epoch,
        **_session_summary(_session),
    }


# ─── QUERY TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def query(command: str) -> dict[str, Any]:
    """Run one server command and return the whole reply.

    Args:
        command: An ACeDB command line, e.g. "find Locus unc*" or "show -a".
    """
    if not command.strip():
        return {"error": "Command must not be empty"}

    reply = _get_session().transact(command)
    return {"command": command, "reply": reply, "length": len(reply)}


@mcp.tool()
def query_stream(command: str, max_bytes: int = DEFAULT_STREAM_LIMIT) -> dict[str, Any]:
    """Run a command whose reply may be large, keeping at most max_bytes.

    The reply is read part by part. Parts beyond the limit are still read
    from the server and discarded so the session stays usable.

    Args:
        command: An ACeDB command line.
        max_bytes: Maximum number of reply bytes to return (default 65536).
    """
    if not command.strip():
        return {"error": "Command must not be empty"}
    if max_bytes <= 0:
        return {"error": "max_bytes must be positive"}

    stream = _get_session().transact_stream(command)
    kept = bytearray()
    total = 0
    for chunk in stream:
        total += len(chunk)
        room = max_bytes - len(kept)
        if room > 0:
            kept.extend(chunk[:room])

    return {
        "command": command,
        "reply": kept.decode(ENCODING),
        "parts": stream.parts_read,
        "total_bytes": total,
        "truncated": total > max_bytes,
    }


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("acedb://session/info")
def resource_session_info() -> str:
    """Server endpoint and the capability fields it reported."""
    if _session is None or _session.defunct:
        return json.dumps({"connected": False})
    return json.dumps({"connected": True, **_session_summary(_session)})


@mcp.resource("acedb://session/status")
def resource_session_status() -> str:
    """Connection state and transaction count."""
    connected = _session is not None and not _session.defunct
    transactions = _session.epoch if _session is not None else 0
    return json.dumps({"connected": connected, "transactions": transactions})


# ─── PROMPTS ─────────────────────────────────────────────────────────

@mcp.prompt()
def browse_class(class_name: str, pattern: str = "*") -> str:
    """Explore the objects of one class in the database.

    Args:
        class_name: ACeDB class, e.g. "Locus" or "Sequence".
        pattern: Object name pattern (default "*").
    """
    return f"""Use the query tool to run "find {class_name} {pattern}" and report how many
objects were found. Then run "list" to see their names.

For a few representative objects:
- Run "find {class_name} <name>" followed by "show -a"
- Summarize the tags and values each object carries

Use query_stream instead of query for commands that may return a lot of data."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    settings = load_settings()
    logging.basicConfig(level=settings.log_level)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
