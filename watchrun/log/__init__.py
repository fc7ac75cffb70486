"""
Logging module for watchrun.
This module provides the logging setup and the optional Loki log shipper.
"""

from .setup import setup_logging
from .handler import LokiHandler

__all__ = ["setup_logging", "LokiHandler"]
