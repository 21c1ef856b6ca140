"""
Test support utilities for rebecca tests.

Record types and driver helpers shared across test modules that don't fit
as pytest fixtures.
"""
