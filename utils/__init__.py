"""Utilities for the election simulation."""

from .utils import (
    setup_logging,
    save_results,
    PerformanceMonitor,
    create_performance_report,
    format_duration,
    get_system_info
)

__all__ = [
    'setup_logging',
    'save_results',
    'PerformanceMonitor',
    'create_performance_report',
    'format_duration',
    'get_system_info'
]
