"""BulkOperationsProcessor Implementation

Runs one bulk job (a mutation or an export over a collection) through the
ModuleProcessor interface so admin tooling can validate, dry-run and
execute it uniformly.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from opsconsole.config import ConfigLoader
from opsconsole.connection import ArcGISConnector, AuthHandler
from opsconsole.exceptions import OpsBaseException
from opsconsole.interfaces import ModuleProcessor, ModuleStatus, ProcessingResult
from .arcgis_store import FeatureLayerDocumentStore
from .bulk_api import (AIRCRAFT, CAPAS, EQUIPMENT, INCIDENTS, OPERATORS, PROJECTS,
                       TRAINING_RECORDS, BulkOperations)
from .executor import BatchExecutor
from .export import TabularExporter, render_csv, render_json
from .models import AggregateResult
from .store import DocumentStore, InMemoryDocumentStore

logger = logging.getLogger(__name__)

MUTATING_ACTIONS = ("status", "archive", "assign", "soft-delete", "restore")
EXPORT_ACTIONS = ("export-json", "export-csv")


class BulkJob(BaseModel):
    """A single bulk request against one collection."""
    action: Literal["status", "archive", "assign", "soft-delete", "restore",
                    "export-json", "export-csv"] = Field(..., description="Operation to run")
    collection: str = Field(..., min_length=1, description="Target collection")
    ids: List[str] = Field(default_factory=list, description="Record ids; exports use all records when empty")
    status: Optional[str] = Field(None, description="New status for the status action")
    user_id: Optional[str] = Field(None, description="Acting user for attribution")
    assignee_id: Optional[str] = Field(None, description="Assignee id for the assign action")
    assignee_name: Optional[str] = Field(None, description="Assignee display name for the assign action")
    export_fields: List[str] = Field(default_factory=list, description="CSV columns as 'path' or 'path:Label'")
    filename: Optional[str] = Field(None, description="Export base filename; defaults to the collection")
    
    @property
    def is_mutation(self) -> bool:
        return self.action in MUTATING_ACTIONS
    
    def field_specs(self) -> List[Dict[str, Optional[str]]]:
        specs = []
        for entry in self.export_fields:
            path, _, label = entry.partition(":")
            specs.append({"path": path, "label": label or None})
        return specs


class BulkOperationsProcessor(ModuleProcessor):
    """Processor running a BulkJob against the configured document store.
    
    Dry runs of mutating jobs use an in-memory store seeded with the job's
    ids, so chunking and patches are exercised without touching the live
    service. Exports are read-only and always read the live store; a dry-run
    export renders the document without writing it.
    """
    
    def __init__(self, config_loader: ConfigLoader, job: Optional[BulkJob] = None,
                 environment: str = "development",
                 store_factory: Optional[Callable[[], DocumentStore]] = None):
        self.config_loader = config_loader
        self.job = job
        self.environment = environment
        self._uses_live_store = store_factory is None
        self._store_factory = store_factory or self._connect_live_store
        self._connector: Optional[ArcGISConnector] = None
        self._last_run: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._configuration_valid: Optional[bool] = None
        logger.info(f"BulkOperationsProcessor initialized for {environment}")
    
    def validate_configuration(self) -> bool:
        if self._configuration_valid is not None:
            return self._configuration_valid
        
        try:
            self.config_loader.get_bulk_settings(self.environment)
            if self.job is not None:
                self.config_loader.get_collection_config(self.environment, self.job.collection)
            self._configuration_valid = True
        except OpsBaseException as e:
            logger.error(f"Configuration validation failed: {e}")
            self._last_error = str(e)
            self._configuration_valid = False
        
        return self._configuration_valid
    
    def process(self, dry_run: bool = False) -> ProcessingResult:
        start_time = time.perf_counter()
        
        if self.job is None:
            return ProcessingResult(success=False, records_processed=0,
                                    errors=["No bulk job to process"], execution_time=0.0)
        
        metadata: Dict[str, Any] = {
            "action": self.job.action,
            "collection": self.job.collection,
            "environment": self.environment,
            "dry_run": dry_run,
        }
        
        try:
            processing_result = self._run_job(dry_run, metadata, start_time)
        except OpsBaseException as e:
            logger.error(f"Bulk job failed: {e}")
            self._last_error = str(e)
            return ProcessingResult(
                success=False,
                records_processed=0,
                records_failed=len(self.job.ids),
                errors=[str(e)],
                metadata=metadata,
                execution_time=time.perf_counter() - start_time
            )
        finally:
            self._close_connection()
        
        self._last_run = datetime.now()
        self._last_error = None if processing_result.success else "; ".join(processing_result.errors)
        return processing_result
    
    def _run_job(self, dry_run: bool, metadata: Dict[str, Any], start_time: float) -> ProcessingResult:
        if self.job.is_mutation:
            result = self._run_mutation(dry_run)
            metadata["result"] = result.model_dump()
            metadata["summary"] = result.summary()
            return ProcessingResult(
                success=result.is_complete(),
                records_processed=result.total,
                records_failed=result.failed,
                errors=result.validation_errors + result.errors,
                metadata=metadata,
                execution_time=time.perf_counter() - start_time
            )
        
        record_count, output = self._run_export(dry_run)
        metadata["output"] = output
        return ProcessingResult(
            success=True,
            records_processed=record_count,
            metadata=metadata,
            execution_time=time.perf_counter() - start_time
        )
    
    def get_status(self) -> ModuleStatus:
        configured = self.validate_configuration()
        if not configured:
            status = "error"
        elif self._last_error:
            status = "error"
        else:
            status = "ready"
        return ModuleStatus(
            module_name="bulk_operations",
            is_configured=configured,
            last_run=self._last_run,
            status=status,
            health_check=configured and self._last_error is None and self._credentials_available()
        )
    
    def _credentials_available(self) -> bool:
        if not self._uses_live_store:
            return True
        try:
            return all(AuthHandler(self.config_loader).validate_environment_variables(self.environment).values())
        except OpsBaseException as e:
            logger.warning(f"Cannot check credentials: {e}")
            return False
    
    def _run_mutation(self, dry_run: bool) -> AggregateResult:
        settings = self.config_loader.get_bulk_settings(self.environment)
        if dry_run:
            store: DocumentStore = InMemoryDocumentStore({self.job.collection: {key: {} for key in self.job.ids}})
            logger.info(f"DRY RUN: {self.job.action} on {len(self.job.ids)} {self.job.collection} records")
        else:
            store = self._store_factory()
        
        operations = BulkOperations(BatchExecutor.from_settings(store, settings))
        return self._dispatch(operations)
    
    def _dispatch(self, operations: BulkOperations) -> AggregateResult:
        job = self.job
        ids = job.ids
        
        if job.action == "status":
            if not job.status:
                return AggregateResult.validation_failure(len(ids), ["status is required"])
            status_methods = {
                PROJECTS: lambda: operations.update_project_status(ids, job.status, job.user_id),
                INCIDENTS: lambda: operations.update_incident_status(ids, job.status, job.user_id),
                CAPAS: lambda: operations.update_capa_status(ids, job.status, job.user_id),
                EQUIPMENT: lambda: operations.update_equipment_status(ids, job.status),
                AIRCRAFT: lambda: operations.update_aircraft_status(ids, job.status),
                OPERATORS: lambda: operations.update_operator_status(ids, job.status),
                TRAINING_RECORDS: lambda: operations.update_training_status(ids, job.status),
            }
            if job.collection in status_methods:
                return status_methods[job.collection]()
            return operations.update_fields(ids, job.collection, status=job.status)
        
        if job.action == "archive":
            if job.collection != PROJECTS:
                return AggregateResult.validation_failure(len(ids), ["Only projects can be archived"])
            return operations.archive_projects(ids, job.user_id)
        
        if job.action == "assign":
            assign_methods = {
                PROJECTS: operations.assign_client,
                INCIDENTS: operations.assign_investigator,
                CAPAS: operations.assign_capa_owner,
            }
            if job.collection not in assign_methods:
                return AggregateResult.validation_failure(
                    len(ids), [f"Assignment is not supported for {job.collection}"]
                )
            return assign_methods[job.collection](ids, job.assignee_id, job.assignee_name)
        
        if job.action == "soft-delete":
            return operations.soft_delete(ids, job.collection, job.user_id)
        
        return operations.restore(ids, job.collection)
    
    def _run_export(self, dry_run: bool):
        records = self._store_factory().fetch_records(self.job.collection)
        if self.job.ids:
            wanted = set(self.job.ids)
            records = [record for record in records if record.get("id") in wanted]
        
        if dry_run:
            if self.job.action == "export-json":
                document = render_json(records)
            else:
                document = render_csv(records, self.job.field_specs())
            logger.info(f"DRY RUN: rendered {len(records)} records ({len(document)} characters)")
            return len(records), None
        
        settings = self.config_loader.get_bulk_settings(self.environment)
        exporter = TabularExporter(settings.export_dir)
        filename = self.job.filename or self.job.collection
        if self.job.action == "export-json":
            path = exporter.export_json(records, filename)
        else:
            path = exporter.export_csv(records, self.job.field_specs(), filename)
        return len(records), str(path)
    
    def _connect_live_store(self) -> DocumentStore:
        if self._connector is None:
            self._connector = ArcGISConnector(self.config_loader, self.environment)
        self._connector.connect()
        return FeatureLayerDocumentStore(self._connector, self.config_loader, self.environment)
    
    def _close_connection(self) -> None:
        if self._connector is not None and self._connector.is_connected():
            self._connector.disconnect()
        self._connector = None
