"""Utility helpers for Telepath."""
