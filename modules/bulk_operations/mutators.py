"""Lifecycle Mutators

Pure factories that turn a domain intent (status change, assignment,
soft delete, restore, ...) into the field patch applied to each record.
They perform no I/O; the bulk API feeds their output to the batch executor.

The soft-delete flag fields are written only by ``soft_delete_patch`` and
``restore_patch``, and restore is their exact field-level inverse.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from .exceptions import MutationValidationError
from .models import LIFECYCLE_FIELDS, LifecycleState, MutationItem
from .store import SERVER_TIMESTAMP

ARCHIVED_STATUS = "archived"
INVESTIGATING_STATUS = "investigating"


def require_value(value: Any, name: str) -> None:
    """Raise MutationValidationError when ``value`` is missing or blank."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MutationValidationError(f"{name} is required")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def status_transition_patch(status: str, actor: Optional[str] = None,
                            record_history: bool = False,
                            now: Callable[[], str] = _utc_now_iso) -> Dict[str, Any]:
    """Patch for a status change, attributed to ``actor`` when one is given.
    
    With ``record_history`` the patch also carries a ``statusHistory`` entry
    stamped with the client clock.
    """
    require_value(status, "status")
    patch: Dict[str, Any] = {"status": status}
    if actor is not None:
        require_value(actor, "actor")
        patch["statusUpdatedBy"] = actor
        patch["statusUpdatedAt"] = SERVER_TIMESTAMP
    if record_history:
        require_value(actor, "actor")
        patch["statusHistory"] = {
            "status": status,
            "updatedBy": actor,
            "updatedAt": now(),
        }
    return patch


def archive_patch(actor: str) -> Dict[str, Any]:
    require_value(actor, "actor")
    return {
        "status": ARCHIVED_STATUS,
        "archivedBy": actor,
        "archivedAt": SERVER_TIMESTAMP,
    }


def assignment_patch(id_field: str, name_field: str,
                     assignee_id: str, assignee_name: str) -> Dict[str, Any]:
    """Patch that sets an assignee id and display name together."""
    require_value(assignee_id, id_field)
    require_value(assignee_name, name_field)
    return {id_field: assignee_id, name_field: assignee_name}


def field_patch(**fields: Any) -> Dict[str, Any]:
    """Generic partial update. Lifecycle flag fields are not accepted here."""
    if not fields:
        raise MutationValidationError("At least one field is required")
    lifecycle_fields = sorted(set(fields) & set(LIFECYCLE_FIELDS))
    if lifecycle_fields:
        raise MutationValidationError(
            f"Fields {lifecycle_fields} can only change through soft delete or restore"
        )
    return dict(fields)


def soft_delete_patch(actor: str) -> Dict[str, Any]:
    require_value(actor, "actor")
    return {
        "isDeleted": True,
        "deletedBy": actor,
        "deletedAt": SERVER_TIMESTAMP,
    }


def restore_patch() -> Dict[str, Any]:
    return {
        "isDeleted": False,
        "deletedBy": None,
        "deletedAt": None,
    }


def lifecycle_patch(state: LifecycleState, actor: Optional[str] = None) -> Dict[str, Any]:
    """Patch that moves a record into ``state``."""
    if LifecycleState(state) is LifecycleState.DELETED:
        return soft_delete_patch(actor)
    return restore_patch()


def build_mutation_items(ids: Sequence[str], patch: Dict[str, Any]) -> List[MutationItem]:
    """One MutationItem per id, each holding its own copy of ``patch``.

    An empty id list yields no items.
    """
    if ids is None or isinstance(ids, str):
        raise MutationValidationError("A list of record ids is required")

    blank = [position for position, key in enumerate(ids)
             if not isinstance(key, str) or not key.strip()]
    if blank:
        raise MutationValidationError(
            f"Record ids must be non-empty strings (invalid at positions {blank})"
        )
    return [MutationItem(key=key, patch=dict(patch)) for key in ids]
