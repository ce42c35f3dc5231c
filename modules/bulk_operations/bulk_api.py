"""Bulk Operations API

One entry point per domain object class, each composing a lifecycle mutator
with the batch executor. Every entry point returns an AggregateResult;
callers report "N succeeded, M failed" rather than a single success flag.

Missing identifiers are reported as a validation failure result and
nothing is submitted to the store.
"""

import logging
from typing import Any, Callable, Dict, Sequence

from .exceptions import MutationValidationError
from .executor import BatchExecutor
from .models import AggregateResult
from . import mutators

logger = logging.getLogger(__name__)

PROJECTS = "projects"
EQUIPMENT = "equipment"
AIRCRAFT = "aircraft"
OPERATORS = "operators"
INCIDENTS = "incidents"
TRAINING_RECORDS = "trainingRecords"
CAPAS = "capas"


def _attributed_status(new_status: str, user_id: str, record_history: bool = False) -> Dict[str, Any]:
    mutators.require_value(user_id, "user_id")
    return mutators.status_transition_patch(new_status, actor=user_id, record_history=record_history)


class BulkOperations:
    """Bulk status, assignment and lifecycle updates over a BatchExecutor."""
    
    def __init__(self, executor: BatchExecutor):
        self.executor = executor
    
    def _apply(self, collection_name: str, ids: Sequence[str],
               build_patch: Callable[[], Dict[str, Any]]) -> AggregateResult:
        try:
            if not collection_name or not str(collection_name).strip():
                raise MutationValidationError("Collection name is required")
            items = mutators.build_mutation_items(ids, build_patch())
        except MutationValidationError as e:
            item_count = len(ids) if ids is not None and not isinstance(ids, str) else 0
            logger.warning(f"Rejected bulk update of {collection_name or '<no collection>'}: {e.message}")
            return AggregateResult.validation_failure(item_count, [e.message])
        
        return self.executor.execute(collection_name, items)
    
    # Projects
    
    def update_project_status(self, project_ids: Sequence[str], new_status: str, user_id: str) -> AggregateResult:
        return self._apply(PROJECTS, project_ids,
                           lambda: _attributed_status(new_status, user_id))
    
    def archive_projects(self, project_ids: Sequence[str], user_id: str) -> AggregateResult:
        return self._apply(PROJECTS, project_ids, lambda: mutators.archive_patch(user_id))
    
    def assign_client(self, project_ids: Sequence[str], client_id: str, client_name: str) -> AggregateResult:
        return self._apply(PROJECTS, project_ids,
                           lambda: mutators.assignment_patch("clientId", "clientName", client_id, client_name))
    
    # Equipment
    
    def update_equipment_status(self, equipment_ids: Sequence[str], new_status: str) -> AggregateResult:
        return self._apply(EQUIPMENT, equipment_ids, lambda: mutators.status_transition_patch(new_status))
    
    def update_equipment_category(self, equipment_ids: Sequence[str], category: str) -> AggregateResult:
        def build():
            mutators.require_value(category, "category")
            return mutators.field_patch(category=category)
        return self._apply(EQUIPMENT, equipment_ids, build)
    
    def update_maintenance_date(self, equipment_ids: Sequence[str], next_service_date: Any) -> AggregateResult:
        def build():
            mutators.require_value(next_service_date, "nextServiceDate")
            return mutators.field_patch(nextServiceDate=next_service_date)
        return self._apply(EQUIPMENT, equipment_ids, build)
    
    # Aircraft
    
    def update_aircraft_status(self, aircraft_ids: Sequence[str], new_status: str) -> AggregateResult:
        return self._apply(AIRCRAFT, aircraft_ids, lambda: mutators.status_transition_patch(new_status))
    
    # Operators
    
    def update_operator_status(self, operator_ids: Sequence[str], new_status: str) -> AggregateResult:
        return self._apply(OPERATORS, operator_ids, lambda: mutators.status_transition_patch(new_status))
    
    def assign_role(self, operator_ids: Sequence[str], role: str) -> AggregateResult:
        def build():
            mutators.require_value(role, "role")
            return mutators.field_patch(role=role)
        return self._apply(OPERATORS, operator_ids, build)
    
    # Incidents
    
    def update_incident_status(self, incident_ids: Sequence[str], new_status: str, user_id: str) -> AggregateResult:
        return self._apply(INCIDENTS, incident_ids,
                           lambda: _attributed_status(new_status, user_id, record_history=True))
    
    def assign_investigator(self, incident_ids: Sequence[str], investigator_id: str,
                            investigator_name: str) -> AggregateResult:
        def build():
            patch = mutators.assignment_patch("investigatorId", "investigatorName",
                                              investigator_id, investigator_name)
            patch["status"] = mutators.INVESTIGATING_STATUS
            return patch
        return self._apply(INCIDENTS, incident_ids, build)
    
    # Training
    
    def update_training_status(self, record_ids: Sequence[str], new_status: str) -> AggregateResult:
        return self._apply(TRAINING_RECORDS, record_ids, lambda: mutators.status_transition_patch(new_status))
    
    # CAPA
    
    def update_capa_status(self, capa_ids: Sequence[str], new_status: str, user_id: str) -> AggregateResult:
        return self._apply(CAPAS, capa_ids,
                           lambda: _attributed_status(new_status, user_id))
    
    def assign_capa_owner(self, capa_ids: Sequence[str], owner_id: str, owner_name: str) -> AggregateResult:
        return self._apply(CAPAS, capa_ids,
                           lambda: mutators.assignment_patch("ownerId", "ownerName", owner_id, owner_name))
    
    # Any collection
    
    def update_fields(self, ids: Sequence[str], collection_name: str, **fields: Any) -> AggregateResult:
        return self._apply(collection_name, ids, lambda: mutators.field_patch(**fields))
    
    def soft_delete(self, ids: Sequence[str], collection_name: str, user_id: str) -> AggregateResult:
        return self._apply(collection_name, ids, lambda: mutators.soft_delete_patch(user_id))
    
    def restore(self, ids: Sequence[str], collection_name: str) -> AggregateResult:
        return self._apply(collection_name, ids, mutators.restore_patch)
