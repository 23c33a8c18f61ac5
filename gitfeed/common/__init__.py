"""Shared helpers used across gitfeed packages."""
