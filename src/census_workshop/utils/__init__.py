"""
Utility functions for the Census workshop toolkit.

This package contains configuration, error types, data validation
and the plotting helpers used by the lessons.
"""
