"""Telepath command-line interface and configuration loading."""
