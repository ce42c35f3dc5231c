"""
Configuration management module for the Ops Console framework.

This module provides configuration loading and validation capabilities for
multi-environment deployments (development and production).
"""

from .config_loader import ConfigLoader
from .settings import BulkSettings, PLATFORM_MAX_UNIT_SIZE

__all__ = ["ConfigLoader", "BulkSettings", "PLATFORM_MAX_UNIT_SIZE"]
