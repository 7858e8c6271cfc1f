"""
Geospatial input records.
"""

from .pour_points import PourPoint, PourPointTable

__all__ = ["PourPoint", "PourPointTable"]
