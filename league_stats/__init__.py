"""
League Statistics Engine.

Computes season, head-to-head, all-time, trend and championship statistics
for fantasy sports leagues from stored weekly results.
"""

__version__ = '1.0.0'
