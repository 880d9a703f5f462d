"""Telemetry push connection management."""

from streaming.connection import ConnectionState, StreamConnectionManager

__all__ = ["ConnectionState", "StreamConnectionManager"]
