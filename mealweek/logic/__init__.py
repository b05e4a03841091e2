"""Core business logic layer.

Subpackages:
- weeks: week arithmetic, calendar window and meal list partitioning
"""
__all__ = ["weeks"]
