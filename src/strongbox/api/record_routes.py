# Record API - CRUD for the caller's secrets
#
# All endpoints require a bearer token and act only on records owned by
# the token's identity. A foreign record answers 404, same as a missing one.
# The password field is returned encrypted; nothing here decrypts it.

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel

from ..errors import ValidationError
from ..vault import RecordPatch, RecordStore
from .security import AccessGate, Caller, get_access_gate, require_caller

router = APIRouter(prefix="/api/v1/data", tags=["data"])


# Request Models
class CreateRecordRequest(BaseModel):
    name: Optional[str] = None
    login: Optional[str] = None
    password: Optional[str] = None
    metadata: Optional[Any] = None


class UpdateRecordRequest(BaseModel):
    # null or empty string means "leave unchanged"
    name: Optional[str] = None
    login: Optional[str] = None
    password: Optional[str] = None
    metadata: Optional[Any] = None


def get_record_store(request: Request) -> RecordStore:
    return request.app.state.record_store


def _parse_record_id(record_id: str) -> str:
    try:
        return str(uuid.UUID(record_id))
    except ValueError as e:
        raise ValidationError("Invalid record ID") from e


# Endpoints

@router.get("")
def list_records(
    caller: Caller = Depends(require_caller),
    store: RecordStore = Depends(get_record_store),
):
    """List all records owned by the caller."""
    return [record.to_dict() for record in store.list_by_owner(caller.identity_id)]


@router.get("/{record_id}")
def get_record(
    record_id: str,
    caller: Caller = Depends(require_caller),
    store: RecordStore = Depends(get_record_store),
    gate: AccessGate = Depends(get_access_gate),
):
    """Get one record by ID."""
    record_id = _parse_record_id(record_id)
    with gate.conceal_ownership():
        record = store.get(record_id, caller.identity_id)
    return record.to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_record(
    request: CreateRecordRequest,
    caller: Caller = Depends(require_caller),
    store: RecordStore = Depends(get_record_store),
):
    """Create a record. The password is encrypted before storage."""
    record = store.create(
        owner_id=caller.identity_id,
        name=request.name or "",
        login=request.login or "",
        raw_password=request.password or "",
        metadata=request.metadata,
    )
    return record.to_dict()


@router.put("/{record_id}")
def update_record(
    record_id: str,
    request: UpdateRecordRequest,
    caller: Caller = Depends(require_caller),
    store: RecordStore = Depends(get_record_store),
    gate: AccessGate = Depends(get_access_gate),
):
    """Update a record. Empty fields keep their stored values."""
    record_id = _parse_record_id(record_id)
    patch = RecordPatch(
        name=request.name,
        login=request.login,
        password=request.password,
        metadata=request.metadata,
    )
    with gate.conceal_ownership():
        record = store.update(record_id, caller.identity_id, patch)
    return record.to_dict()


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_record(
    record_id: str,
    caller: Caller = Depends(require_caller),
    store: RecordStore = Depends(get_record_store),
    gate: AccessGate = Depends(get_access_gate),
):
    """Delete a record."""
    record_id = _parse_record_id(record_id)
    with gate.conceal_ownership():
        store.delete(record_id, caller.identity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
