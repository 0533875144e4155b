"""Telepath: AI-assisted short links from a chat conversation."""

__version__ = "1.0.0"
