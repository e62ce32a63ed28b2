from .abstractsketch import AbstractSketch
from .random_source import RandomSource
from .cvm import CVMSketch, SampleSet, compute_threshold, find_n_distinct, validate_parameters

__all__ = [
    'AbstractSketch',
    'RandomSource',
    'CVMSketch',
    'SampleSet',
    'compute_threshold',
    'find_n_distinct',
    'validate_parameters'
]
