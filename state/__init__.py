"""
State Module for the Projection Distortion Explorer.

The position store keeps marker positions, hovered city, animation tags
and distances mutually consistent; the readout helpers turn its distance
matrix into what the user sees.
"""

from state.store import PositionStore, tags_are_consistent
from state.readout import pair_readout, layout_error, total_error_display, is_solved

__all__ = [
    "PositionStore",
    "tags_are_consistent",
    "pair_readout",
    "layout_error",
    "total_error_display",
    "is_solved",
]
