"""
ArcGIS connector for the Ops Console framework.

This module provides the hosted feature service connection with retry logic
and timeout handling.
"""

from typing import Optional
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type
from func_timeout import func_timeout, FunctionTimedOut
from arcgis.gis import GIS

from .auth_handler import AuthHandler
from ..config import ConfigLoader
from ..exceptions import OpsConnectionError, OpsAuthenticationError
from ..utils import get_logger

logger = get_logger(__name__)

CONNECT_TIMEOUT_SECONDS = 30


class ArcGISConnector:
    """
    ArcGIS connection manager with retry logic and timeout handling.
    
    Holds one authenticated GIS session for an environment; the feature
    layer document store resolves collections through it.
    """
    
    def __init__(self, config_loader: ConfigLoader, environment: str = "development"):
        """
        Initialize the ArcGIS connector.
        
        Args:
            config_loader: ConfigLoader instance for accessing configuration
            environment: Environment whose credentials and URL are used
        """
        self.config_loader = config_loader
        self.environment = environment
        self.auth_handler = AuthHandler(config_loader)
        self._gis: Optional[GIS] = None
        logger.debug(f"ArcGISConnector initialized for {environment}")
    
    def connect(self) -> GIS:
        """
        Establish connection to ArcGIS with retry logic, reusing an open session.

        Returns:
            GIS: Connected GIS instance

        Raises:
            OpsConnectionError: If connection fails after retries
            OpsAuthenticationError: If authentication fails
        """
        if self.is_connected():
            return self._gis
        
        try:
            return self._connect_with_retry()
        except FunctionTimedOut:
            raise OpsConnectionError("Connection timeout - ArcGIS service may be unavailable")
        except (OpsAuthenticationError, OpsConnectionError):
            raise
        except Exception as e:
            error_msg = f"Failed to connect to ArcGIS: {str(e)}"
            logger.error(error_msg)
            raise OpsConnectionError(error_msg)

    # Only transient network errors are retried; auth and validation failures are not
    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=4, max=10),
        retry=retry_if_exception_type(ConnectionError),
        reraise=True
    )
    def _connect_with_retry(self) -> GIS:
        url, username, password = self.auth_handler.get_credentials(self.environment)

        logger.info(f"Attempting connection to ArcGIS at {url}")

        def _connect_with_timeout():
            return GIS(url, username, password)

        gis = func_timeout(CONNECT_TIMEOUT_SECONDS, _connect_with_timeout)

        self._validate_connection(gis)

        self._gis = gis
        logger.info(f"Successfully connected to {gis.properties.portalHostname}")
        return gis

    def _validate_connection(self, gis: GIS) -> None:
        """
        Validate the GIS connection is working.
        
        Raises:
            OpsConnectionError: If validation fails
        """
        try:
            portal_name = gis.properties.portalName
        except Exception as e:
            raise OpsConnectionError(f"Connection validation failed: {str(e)}")
        
        if not portal_name:
            raise OpsConnectionError("Unable to access portal properties")
        
        logger.debug(f"Connection validation passed for portal: {portal_name}")
    
    def get_gis(self) -> GIS:
        """
        Get the connected GIS instance.
        
        Raises:
            OpsConnectionError: If not connected
        """
        if not self._gis:
            raise OpsConnectionError("Not connected to ArcGIS - call connect() first")
        return self._gis
    
    def is_connected(self) -> bool:
        """Check if currently connected to ArcGIS."""
        return self._gis is not None
    
    def disconnect(self) -> None:
        """Disconnect from ArcGIS."""
        if self._gis:
            self._gis = None
            logger.info("Disconnected from ArcGIS")
