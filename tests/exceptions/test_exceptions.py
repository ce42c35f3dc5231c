"""
Unit tests for custom exceptions module.

This module contains tests for the framework exception classes, their
context handling, and the bulk operation exceptions built on them.
"""

import pytest
from opsconsole.exceptions import (
    OpsBaseException,
    OpsConfigurationError,
    OpsValidationError,
    OpsAuthenticationError,
    OpsConnectionError,
    OpsProcessingError,
)
from modules.bulk_operations.exceptions import (
    ExportError,
    MutationValidationError,
    ChunkCommitFailure,
    StoreAccessError,
)


class TestOpsBaseException:
    """Test suite for OpsBaseException class."""
    
    def test_base_exception_without_context(self):
        """Test OpsBaseException without context."""
        exception = OpsBaseException("Test error message")
        
        assert str(exception) == "Test error message"
        assert exception.message == "Test error message"
        assert exception.context == {}
    
    def test_base_exception_with_context(self):
        """Test OpsBaseException with context."""
        context = {"collection": "projects", "chunk": 2}
        exception = OpsBaseException("Test error message", context)
        
        assert exception.message == "Test error message"
        assert exception.context == context
        assert "collection=projects" in str(exception)
        assert "chunk=2" in str(exception)
    
    def test_base_exception_with_none_context(self):
        """Test OpsBaseException with None context."""
        exception = OpsBaseException("Test error message", None)
        
        assert str(exception) == "Test error message"
        assert exception.context == {}


class TestExceptionHierarchy:
    """Test suite for the framework exception hierarchy."""
    
    @pytest.mark.parametrize("exception_class", [
        OpsConfigurationError,
        OpsValidationError,
        OpsAuthenticationError,
        OpsConnectionError,
        OpsProcessingError,
    ])
    def test_framework_exceptions_inherit_base(self, exception_class):
        """Test that every framework exception is an OpsBaseException."""
        exception = exception_class("error")
        
        assert isinstance(exception, OpsBaseException)
        assert isinstance(exception, Exception)
    
    def test_configuration_error_can_be_caught_as_base_exception(self):
        """Test that OpsConfigurationError can be caught as OpsBaseException."""
        with pytest.raises(OpsBaseException) as exc_info:
            raise OpsConfigurationError("Test configuration error")
        
        assert isinstance(exc_info.value, OpsConfigurationError)


class TestBulkOperationExceptions:
    """Test suite for bulk operation exceptions."""
    
    def test_export_error_is_configuration_error(self):
        """Test that an empty export spec is reported as a configuration error."""
        assert isinstance(ExportError("no fields"), OpsConfigurationError)
    
    def test_mutation_validation_error_is_validation_error(self):
        """Test that mutator failures are validation errors."""
        assert isinstance(MutationValidationError("missing id"), OpsValidationError)
    
    def test_chunk_commit_failure_carries_keys(self):
        """Test that ChunkCommitFailure records the keys of the rejected unit."""
        failure = ChunkCommitFailure("rejected", ["a", "b"])
        
        assert isinstance(failure, OpsProcessingError)
        assert failure.keys == ["a", "b"]
        assert str(failure) == "rejected"
    
    def test_chunk_commit_failure_defaults_to_no_keys(self):
        """Test ChunkCommitFailure without keys."""
        assert ChunkCommitFailure("rejected").keys == []
    
    def test_store_access_error_is_processing_error(self):
        """Test StoreAccessError inheritance."""
        assert isinstance(StoreAccessError("missing"), OpsProcessingError)
    
    def test_store_errors_name_their_collection(self):
        """Test that store errors carry the collection in their context."""
        failure = ChunkCommitFailure("rejected", ["a"], collection="projects")
        missing = StoreAccessError("missing", collection="capas")
        
        assert failure.collection == "projects"
        assert str(failure) == "rejected (Context: collection=projects)"
        assert missing.context == {"collection": "capas"}


class TestAddContext:
    """Test suite for OpsBaseException.add_context."""
    
    def test_add_context_merges_and_skips_none(self):
        """Test that add_context keeps existing values and ignores None."""
        exception = OpsProcessingError("rejected", {"collection": "projects"})
        
        returned = exception.add_context(chunk=3, environment=None)
        
        assert returned is exception
        assert exception.context == {"collection": "projects", "chunk": 3}
        assert exception.message == "rejected"
    
    def test_collection_defaults_to_none(self):
        """Test the collection property without context."""
        assert OpsBaseException("error").collection is None
