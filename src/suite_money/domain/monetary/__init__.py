"""Monetary domain package.

This package contains the Currency and Money value types, the immutable
currency Registry with its classification hierarchies, currency resolution,
registry merging, proportional allocation, and the scoped rounding context
used by Money arithmetic.
"""
