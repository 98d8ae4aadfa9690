"""
Backup Rotator - generational retention for timestamped backup files.

This package contains the rotation pipeline (scan, classify, link, prune),
its configuration and CLI, and the monitoring hooks used around a run.
"""

__version__ = "0.1.0"
__author__ = "Taamir Ransome"
__email__ = "taamir@example.com"
