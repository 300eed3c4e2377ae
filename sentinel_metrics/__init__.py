"""Sentinel metric store package.

Exports for testing and module access.
"""

from sentinel_metrics import lib, models

__all__ = ['lib', 'models']
