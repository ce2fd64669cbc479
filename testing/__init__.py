"""
Testing module for ViralBites.

Contains sample inputs, pytest suites, and a live search runner.
"""

from testing.sample_inputs import (
    get_sample_candidates,
    get_sample_searches,
    get_single_sample,
)

__all__ = [
    "get_sample_candidates",
    "get_sample_searches",
    "get_single_sample",
]
