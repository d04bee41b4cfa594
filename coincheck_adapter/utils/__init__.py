"""
Generic utility functions shared across modules.

Includes the clock abstraction, numeric rounding helpers, logging setup and
the adapter's error classes.
"""
