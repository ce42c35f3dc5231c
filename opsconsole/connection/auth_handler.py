"""
Authentication handler for hosted store connections.

This module loads username/password credentials for the hosted ArcGIS
feature services from environment variables, per deployment environment.
"""

import os
from typing import Dict, List, Tuple

from ..config import ConfigLoader
from ..exceptions import OpsAuthenticationError
from ..utils import get_logger

logger = get_logger(__name__)

CREDENTIAL_VARIABLES: Dict[str, Tuple[str, str]] = {
    "development": ("ARCGIS_DEV_USERNAME", "ARCGIS_DEV_PASSWORD"),
    "production": ("ARCGIS_PROD_USERNAME", "ARCGIS_PROD_PASSWORD"),
}


class AuthHandler:
    """
    Handles authentication credentials for hosted store connections.
    
    Credentials are read from environment variables only and are never logged.
    """
    
    def __init__(self, config_loader: ConfigLoader):
        """
        Initialize the authentication handler.
        
        Args:
            config_loader: ConfigLoader instance for accessing configuration
        """
        self.config_loader = config_loader
        logger.debug("AuthHandler initialized")
    
    def get_credentials(self, environment: str) -> Tuple[str, str, str]:
        """
        Get credentials for an environment from environment variables.
        
        Args:
            environment: Environment name (development/production)
            
        Returns:
            Tuple of (url, username, password)
            
        Raises:
            OpsAuthenticationError: If credentials are missing or invalid
        """
        try:
            username_var, password_var = self.get_required_environment_variables(environment)
            
            env_config = self.config_loader.load_environment_config(environment)
            arcgis_url = env_config.get('arcgis_url')
            if not arcgis_url:
                raise OpsAuthenticationError(f"ArcGIS URL not found in {environment} configuration")
            
            username = os.getenv(username_var)
            password = os.getenv(password_var)
            
            if not username:
                raise OpsAuthenticationError(f"{username_var} environment variable not set")
            
            if not password:
                raise OpsAuthenticationError(f"{password_var} environment variable not set")
            
            self._validate_credentials(username, password)
            
            logger.info(f"Loaded {environment} credentials from environment variables")
            return arcgis_url, username, password
            
        except OpsAuthenticationError:
            raise
        except Exception as e:
            logger.error(f"Failed to load {environment} credentials")
            raise OpsAuthenticationError(f"Error loading {environment} credentials: {str(e)}")
    
    def _validate_credentials(self, username: str, password: str) -> None:
        """
        Validate credential basic requirements.
        
        Raises:
            OpsAuthenticationError: If credentials are invalid
        """
        if not username.strip():
            raise OpsAuthenticationError("Username cannot be empty")
        
        if not password.strip():
            raise OpsAuthenticationError("Password cannot be empty")
    
    def validate_environment_variables(self, environment: str) -> Dict[str, bool]:
        """
        Report which credential environment variables are set.
        
        Returns:
            Dictionary mapping variable name to whether it is set
        """
        validation_results = {}
        
        for var in self.get_required_environment_variables(environment):
            is_set = bool(os.getenv(var))
            validation_results[var] = is_set
            
            if is_set:
                logger.debug(f"Environment variable {var} is set")
            else:
                logger.warning(f"Environment variable {var} is not set")
        
        return validation_results
    
    def get_required_environment_variables(self, environment: str) -> List[str]:
        """
        Get the credential environment variable names for an environment.
        
        Raises:
            OpsAuthenticationError: If the environment has no credential mapping
        """
        if environment not in CREDENTIAL_VARIABLES:
            raise OpsAuthenticationError(
                f"No credential variables defined for environment '{environment}'"
            )
        return list(CREDENTIAL_VARIABLES[environment])
