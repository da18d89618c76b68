"""
Modules Package for the Right Angle measurement package.

Contains result aggregation and the step instruction catalogue.
"""

from .aggregator import ResultAggregator, DEFAULT_ROM_FALLBACK

__all__ = [
    'ResultAggregator', 'DEFAULT_ROM_FALLBACK',
]
