"""
utils: Image loading, statistics and logging helpers for the metrics package
"""

from .image_io import load_and_pair_images, load_image, find_image_files, match_by_filename
from .stats import summarise_metrics, compute_basic_stats, compute_confidence_interval, RunningStats
from .logging_setup import configure_logger

__all__ = [
    'load_and_pair_images',
    'load_image',
    'find_image_files',
    'match_by_filename',
    'summarise_metrics',
    'compute_basic_stats',
    'compute_confidence_interval',
    'RunningStats',
    'configure_logger',
]
