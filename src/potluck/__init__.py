"""
Potluck grocery aggregation package.

The package combines per-recipe ingredient lists for a shared cooking event into a single
shopping list, optionally reconciled by a semantic merge service, and caches the merged
result per event.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
