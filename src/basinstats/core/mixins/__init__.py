"""
Core mixins for basinstats components.
"""

from .timing import TimingMixin

__all__ = ["TimingMixin"]
