"""MCP server entry point for NetSDR-style receivers.

Exposes the client session as tools via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .config import (
    DEFAULT_BIT_DEPTH,
    DEFAULT_HOST,
    DEFAULT_SAMPLE_PATH,
    SessionConfig,
)
from .protocol.parser import parse_response
from .session import ClientSession, ControlResponse
from .transport.tcp_connection import DEFAULT_CONTROL_PORT
from .transport.udp_connection import DEFAULT_DATA_PORT

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "netsdr",
    instructions="MCP server for controlling a NetSDR-style receiver and capturing I/Q samples",
)

# Global session state
_session: ClientSession | None = None


def _get_session() -> ClientSession:
    """Get the active session, raising if not connected."""
    if _session is None or not _session.connected:
        raise RuntimeError(
            "Not connected to receiver. Use the 'connect' tool first."
        )
    return _session


def _describe(response: ControlResponse | None) -> dict[str, Any]:
    if response is None:
        return {"error": "No response from receiver"}
    result: dict[str, Any] = {"raw": response.raw.hex(" ")}
    if response.message is None:
        result["error"] = "Failed to decode response"
        return result
    result["type"] = response.message.message_type.name
    result["code"] = response.message.code.name
    result["response"] = repr(parse_response(response.message))
    return result


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
async def connect(
    host: str = DEFAULT_HOST,
    control_port: int = DEFAULT_CONTROL_PORT,
    data_port: int = DEFAULT_DATA_PORT,
    bit_depth: int = DEFAULT_BIT_DEPTH,
    sample_path: str = DEFAULT_SAMPLE_PATH,
) -> dict[str, Any]:
    """Open the control connection to a receiver.

    Args:
        host: Receiver IP address or hostname.
        control_port: TCP control port (default 50000).
        data_port: Local UDP port for I/Q data (default 60000).
        bit_depth: Bits per sample in the data stream (default 16).
        sample_path: File that received samples are appended to.
    """
    global _session
    if _session is not None and _session.connected:
        return {"connected": True, "message": "Already connected"}

    config = SessionConfig(
        host=host,
        control_port=control_port,
        data_port=data_port,
        bit_depth=bit_depth,
        sample_path=sample_path,
    )
    session = ClientSession.create(config)
    await session.connect()
    _session = session
    return {"connected": True, "host": host, "control_port": control_port}


@mcp.tool()
async def disconnect() -> dict[str, bool]:
    """Close both receiver connections."""
    global _session
    if _session is None:
        return {"disconnected": True}
    await _session.close()
    _session = None
    return {"disconnected": True}


@mcp.tool()
def get_status() -> dict[str, Any]:
    """Report connection, streaming, and sample counters."""
    if _session is None:
        return {"connected": False}
    return _session.status().to_dict()


# ─── RECEIVER TOOLS ───────────────────────────────────────────────────

@mcp.tool()
async def set_frequency(frequency: int, channel: int = 0) -> dict[str, Any]:
    """Tune a receiver channel.

    Args:
        frequency: Frequency in Hz. Sent as-is; the receiver validates it.
        channel: Receiver channel ID.
    """
    session = _get_session()
    return _describe(await session.change_frequency(frequency, channel))


@mcp.tool()
async def get_frequency(channel: int = 0) -> dict[str, Any]:
    """Read the current frequency of a receiver channel."""
    session = _get_session()
    parsed = await session.request_frequency(channel)
    if parsed is None:
        return {"error": "No frequency in response"}
    return {"channel": parsed.channel, "frequency": parsed.frequency}


@mcp.tool()
async def set_sample_rate(rate: int, channel: int = 0) -> dict[str, Any]:
    """Set the I/Q output sample rate.

    Args:
        rate: Sample rate in Hz.
        channel: Data channel ID.
    """
    session = _get_session()
    try:
        response = await session.set_sample_rate(rate, channel)
    except ValueError as e:
        return {"error": str(e)}
    return _describe(response)


@mcp.tool()
async def start_iq() -> dict[str, Any]:
    """Start I/Q streaming. Samples are appended to the sample file."""
    session = _get_session()
    result = _describe(await session.start_iq())
    result["iq_started"] = session.iq_started
    return result


@mcp.tool()
async def stop_iq() -> dict[str, Any]:
    """Stop I/Q streaming."""
    session = _get_session()
    result = _describe(await session.stop_iq())
    result["iq_started"] = session.iq_started
    return result


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
