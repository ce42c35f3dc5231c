"""
Configuration loader for the Ops Console framework.

This module provides the ConfigLoader class that handles loading and validating
JSON configuration files for multi-environment deployments.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional
from functools import lru_cache

from pydantic import ValidationError

from .settings import BulkSettings
from ..exceptions import OpsConfigurationError, OpsValidationError
from ..utils import get_logger

REQUIRED_ENVIRONMENT_KEYS = ["arcgis_url", "collections", "logging", "bulk_operations"]


class ConfigLoader:
    """
    Configuration loader and validator for the Ops Console tooling.
    
    This class handles loading environment-specific configuration from JSON files,
    validating required fields, and providing typed access to engine settings.
    """
    
    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the configuration loader.
        
        Args:
            config_dir: Directory containing configuration files (defaults to 'config/')
        """
        self.logger = get_logger(__name__)
        self.config_dir = Path(config_dir) if config_dir else Path("config")
    
    @lru_cache(maxsize=2)
    def load_environment_config(self, environment: str) -> Dict[str, Any]:
        """
        Load configuration for a specific environment.
        
        Args:
            environment: Environment name (development/production)
            
        Returns:
            Dictionary containing environment-specific configuration merged with shared config
            
        Raises:
            OpsConfigurationError: If configuration cannot be loaded
            OpsValidationError: If configuration structure is invalid
        """
        env_config_path = self.config_dir / "environment_config.json"
        
        if not env_config_path.exists():
            raise OpsConfigurationError(
                f"Environment configuration file not found: {env_config_path}"
            )
        
        try:
            with open(env_config_path, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise OpsConfigurationError(
                f"Invalid JSON in environment configuration: {str(e)}"
            )
        except OSError as e:
            raise OpsConfigurationError(
                f"Failed to load environment configuration: {str(e)}"
            )
        
        self._validate_environment_config(config_data, environment)
        
        env_config = dict(config_data["environments"][environment])
        
        shared_config = config_data.get("shared", {})
        if shared_config:
            # Environment-specific collections override shared ones key by key
            merged_collections = dict(shared_config.get("collections", {}))
            merged_collections.update(env_config.get("collections", {}))
            env_config["collections"] = merged_collections
            
            for key, value in shared_config.items():
                if key == "collections":
                    continue
                if key not in env_config:
                    env_config[key] = value
                elif isinstance(value, dict) and isinstance(env_config[key], dict):
                    env_config[key] = {**value, **env_config[key]}
        
        env_config["_validation"] = config_data.get("validation", {})
        
        self.logger.info(f"Loaded configuration for environment: {environment}")
        return env_config
    
    def get_collection_config(self, environment: str, collection_name: str) -> Dict[str, Any]:
        """
        Get store configuration for a named collection.
        
        Args:
            environment: Environment name
            collection_name: Collection name (projects, equipment, incidents, ...)
            
        Returns:
            Dictionary with at least ``item_id`` and ``key_field``
            
        Raises:
            OpsConfigurationError: If the collection is not configured
        """
        collections = self.load_environment_config(environment)["collections"]
        
        if collection_name not in collections:
            raise OpsConfigurationError(
                f"Collection '{collection_name}' not found in {environment} configuration",
                {"available": sorted(collections)}
            )
        
        collection_config = collections[collection_name]
        if isinstance(collection_config, str):
            collection_config = {"item_id": collection_config}
        
        return {"key_field": "OBJECTID", "layer_index": 0, **collection_config}
    
    def get_bulk_settings(self, environment: str) -> BulkSettings:
        """
        Get typed bulk operation settings for an environment.
        
        Raises:
            OpsConfigurationError: If the settings are out of range
        """
        raw_settings = self.load_environment_config(environment).get("bulk_operations", {})
        try:
            return BulkSettings(**raw_settings)
        except ValidationError as e:
            raise OpsConfigurationError(
                f"Invalid bulk_operations settings for {environment}: {e}"
            )
    
    def validate_environment_variables(self, environment: str) -> None:
        """
        Validate that required environment variables are set.
        
        Args:
            environment: Environment name to validate
            
        Raises:
            OpsValidationError: If required environment variables are missing
        """
        env_config = self.load_environment_config(environment)
        required_vars = env_config.get("_validation", {}).get("required_environment_variables", {})
        if isinstance(required_vars, dict):
            required_vars = required_vars.get(environment, [])
        
        missing_vars = [var for var in required_vars if not os.getenv(var)]
        
        if missing_vars:
            raise OpsValidationError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )
        
        self.logger.info(f"Environment variables validated for: {environment}")
    
    def _validate_environment_config(self, config_data: Dict[str, Any], environment: str) -> None:
        """
        Validate environment configuration structure.
        
        Args:
            config_data: Configuration data to validate
            environment: Environment name to validate
            
        Raises:
            OpsValidationError: If configuration is invalid
        """
        if "environments" not in config_data:
            raise OpsValidationError("Missing 'environments' key in configuration")
        
        if environment not in config_data["environments"]:
            available_envs = list(config_data["environments"].keys())
            raise OpsValidationError(
                f"Environment '{environment}' not found. Available: {available_envs}"
            )
        
        env_config = config_data["environments"][environment]
        shared_config = config_data.get("shared", {})
        
        for key in REQUIRED_ENVIRONMENT_KEYS:
            if key not in env_config and key not in shared_config:
                raise OpsValidationError(
                    f"Missing required key '{key}' in {environment} configuration"
                )
        
        all_collections = {**shared_config.get("collections", {}), **env_config.get("collections", {})}
        for name, collection_config in all_collections.items():
            if isinstance(collection_config, dict) and "item_id" not in collection_config:
                raise OpsValidationError(
                    f"Collection '{name}' in {environment} configuration is missing 'item_id'"
                )
    
    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self.load_environment_config.cache_clear()
        self.logger.info("Configuration cache cleared")
