"""Formatting and logging helpers."""
