"""Utility modules for indexwright."""
