"""Utility modules for omnivolt."""
