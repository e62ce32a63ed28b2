"""
distinction - Python Library for Distinct-Element Estimation in Streams
"""

from distinction.lib.random_source import RandomSource
from distinction.lib.cvm import CVMSketch, compute_threshold, find_n_distinct

__version__ = '0.1.0'

__all__ = [
    'RandomSource',
    'CVMSketch',
    'compute_threshold',
    'find_n_distinct'
]
