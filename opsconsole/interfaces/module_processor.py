"""Ops Console Module Processor Interface

This module defines the abstract base class and data models that processing
modules implement so admin tooling can run them in a uniform way.
"""

from abc import ABC, abstractmethod
from pydantic import BaseModel, Field
from typing import Optional, Dict, List, Any
from datetime import datetime


class ProcessingResult(BaseModel):
    """Result data model for module processing operations.
    
    Standardizes the return value of a processing run: overall success, record
    counts, error details and module-specific metadata.
    """
    
    success: bool = Field(..., description="Whether the processing completed without failures")
    records_processed: int = Field(ge=0, description="Number of records processed")
    records_failed: int = Field(0, ge=0, description="Number of records that could not be processed")
    errors: List[str] = Field(default_factory=list, description="List of error messages if any")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Additional processing metadata")
    execution_time: float = Field(ge=0.0, description="Processing execution time in seconds")


class ModuleStatus(BaseModel):
    """Status data model for module health and configuration reporting."""
    
    module_name: str = Field(..., description="Name of the processing module")
    is_configured: bool = Field(..., description="Whether the module is properly configured")
    last_run: Optional[datetime] = Field(None, description="Timestamp of the last processing run")
    status: str = Field(..., description="Current module status: 'ready', 'running', 'error', 'disabled'")
    health_check: bool = Field(..., description="Result of the most recent health check")


class ModuleProcessor(ABC):
    """Abstract base class for Ops Console processing modules.
    
    Concrete modules inherit from this class and implement every abstract
    method according to their processing requirements.
    """
    
    @abstractmethod
    def __init__(self, config_loader):
        """Initialize module with shared configuration.
        
        Args:
            config_loader: ConfigLoader instance providing access to framework configuration
        """
        pass
    
    @abstractmethod
    def validate_configuration(self) -> bool:
        """Validate module-specific configuration.
        
        Returns:
            bool: True if configuration is valid and complete, False otherwise
        """
        pass
    
    @abstractmethod
    def process(self, dry_run: bool = False) -> ProcessingResult:
        """Execute module processing logic.
        
        Implementations must respect the dry_run flag and avoid making changes
        to the live store when it is set.
        
        Args:
            dry_run: If True, perform all processing logic without making actual changes
            
        Returns:
            ProcessingResult: Standardized result object with success status, metrics, and errors
        """
        pass
    
    @abstractmethod
    def get_status(self) -> ModuleStatus:
        """Get current module processing status.
        
        Returns:
            ModuleStatus: Current module status and health information
        """
        pass
