"""
Ops Console Framework Core Package

This package contains the shared infrastructure for the operations console
back-office tooling: configuration, exceptions, logging, connection handling
and the processing module interface.
"""

from .interfaces import ModuleProcessor, ProcessingResult, ModuleStatus

__version__ = "1.0.0"
__all__ = ['ModuleProcessor', 'ProcessingResult', 'ModuleStatus']
