"""Shared helpers for the route relay services."""
