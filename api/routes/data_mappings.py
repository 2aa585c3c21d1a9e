"""
api/routes/data_mappings.py -- Owner-scoped CRUD routes for data mappings.

Routes:
  GET    /data-mappings        -- list caller's records, newest first (optional filters)
  POST   /data-mappings        -- create record; 201 {success, message, data: {id}}
  GET    /data-mappings/{id}   -- single record
  PUT    /data-mappings/{id}   -- replace editable fields
  DELETE /data-mappings/{id}   -- delete record

Owner scoping:
  The owner id passed to the store always comes from the verified token
  (get_current_identity), never from the request body or query string.
  A record owned by another user produces exactly the same 404 as a missing
  one -- same code, same message.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.models import (
    CreatedId,
    DataMappingCreatedResponse,
    DataMappingIn,
    DataMappingListResponse,
    DataMappingOut,
    DataMappingResponse,
    SuccessResponse,
)
from auth.dependencies import get_current_identity
from auth.models import Identity
from core.errors import NotFoundError
from mappings.models import MappingFilter
from mappings.store import DataMappingStore

# Every route on this router requires a valid bearer token. The handlers
# still declare Depends(get_current_identity) to receive the identity;
# FastAPI resolves it once per request.
router = APIRouter(prefix="/data-mappings", dependencies=[Depends(get_current_identity)])

_NOT_FOUND = "Data mapping not found."


def _store(request: Request) -> DataMappingStore:
    return request.app.state.context.mappings


@router.get("", response_model=DataMappingListResponse)
def list_mappings(
    request: Request,
    search: str = "",
    department: Optional[list[str]] = Query(default=None),
    data_subject: Optional[list[str]] = Query(default=None, alias="dataSubject"),
    identity: Identity = Depends(get_current_identity),
) -> DataMappingListResponse:
    """Return the caller's records, newest first.

    Query params:
      search      -- case-insensitive match on title or description
      department  -- repeatable; keep records in any of these departments
      dataSubject -- repeatable; keep records listing any of these subject types
    """
    filters = MappingFilter(search=search, departments=department or [], data_subjects=data_subject or [])
    mappings = _store(request).list(identity.user_id, filters)
    return DataMappingListResponse(data=[DataMappingOut.from_mapping(m) for m in mappings])


@router.post("", response_model=DataMappingCreatedResponse, status_code=201)
def create_mapping(
    request: Request,
    body: DataMappingIn,
    identity: Identity = Depends(get_current_identity),
) -> DataMappingCreatedResponse:
    """Create a record owned by the caller. Title and department are required."""
    mapping_id = _store(request).create(identity.user_id, body.to_fields())
    return DataMappingCreatedResponse(data=CreatedId(id=mapping_id))


@router.get("/{mapping_id}", response_model=DataMappingResponse)
def get_mapping(
    request: Request,
    mapping_id: int,
    identity: Identity = Depends(get_current_identity),
) -> DataMappingResponse:
    mapping = _store(request).get(identity.user_id, mapping_id)
    if mapping is None:
        raise NotFoundError(_NOT_FOUND)
    return DataMappingResponse(data=DataMappingOut.from_mapping(mapping))


@router.put("/{mapping_id}", response_model=SuccessResponse)
def update_mapping(
    request: Request,
    mapping_id: int,
    body: DataMappingIn,
    identity: Identity = Depends(get_current_identity),
) -> SuccessResponse:
    """Replace a record's editable fields. Omitted optional fields are cleared."""
    if not _store(request).update(identity.user_id, mapping_id, body.to_fields()):
        raise NotFoundError(_NOT_FOUND)
    return SuccessResponse(message="Data mapping updated successfully.")


@router.delete("/{mapping_id}", response_model=SuccessResponse)
def delete_mapping(
    request: Request,
    mapping_id: int,
    identity: Identity = Depends(get_current_identity),
) -> SuccessResponse:
    if not _store(request).delete(identity.user_id, mapping_id):
        raise NotFoundError(_NOT_FOUND)
    return SuccessResponse(message="Data mapping deleted successfully.")
