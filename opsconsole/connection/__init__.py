"""
Connection module for the Ops Console framework.

This module provides hosted document store connectivity and authentication.
"""

from .auth_handler import AuthHandler
from .arcgis_connector import ArcGISConnector

__all__ = [
    'AuthHandler',
    'ArcGISConnector',
]
