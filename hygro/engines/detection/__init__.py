"""Event detection engines."""

from hygro.engines.detection.change_points import (
    detect_change_points,
    change_confidence,
    change_magnitude,
    spatial_density,
    merge_nearby_changes,
)

__all__ = [
    'detect_change_points',
    'change_confidence',
    'change_magnitude',
    'spatial_density',
    'merge_nearby_changes',
]
