"""
Monitoring module for backup rotation.

Exposes per-run rotation metrics in Prometheus format.
"""

from .rotation_metrics import RotationMetrics

__all__ = [
    'RotationMetrics'
]
