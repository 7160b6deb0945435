"""
Visualization Module
====================

Ground truth and belief map rendering.
"""

from .monitor import (
    TerrainVisualizer,
    create_frame_callback,
)

__all__ = [
    'TerrainVisualizer',
    'create_frame_callback',
]
