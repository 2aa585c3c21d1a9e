"""
mappings/store.py -- SQLAlchemy Core persistence layer for data mapping records.

Pattern: Repository + Data Mapper. DataMappingStore is the repository;
_row_to_mapping is the mapper. Route handlers never touch SQL directly.

Owner scoping:
  Every public method takes owner_id as its first positional argument, and
  every statement that reads or writes an existing row filters on both the
  record id and user_id. A row owned by someone else is indistinguishable
  from a missing one: get() returns None, update()/delete() return False.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = DataMappingStore(engine)
    mapping_id = store.create(owner_id, DataMappingFields(title="CRM", department="Sales"))
    rows = store.list(owner_id)
    store.update(owner_id, mapping_id, DataMappingFields(title="CRM", department="IT/IS"))
    store.delete(owner_id, mapping_id)
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text, or_
from sqlalchemy.engine import Engine

from core.database import metadata
from core.errors import ValidationError
from mappings.models import DataMapping, DataMappingFields, MappingFilter

logger = logging.getLogger("datamap.mappings")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

data_mappings = Table(
    "data_mappings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("department", String(255), nullable=False),
    Column("data_subject_type", Text, nullable=False, server_default=""),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def clean_fields(fields: DataMappingFields) -> dict:
    """Validate client fields and return column values for insert/update.

    title and department must be present and not blank. description and
    data_subject_type default to "" when absent. Values are stored exactly as
    submitted -- blank-checking does not strip what gets written.
    """
    if not fields.title or not fields.title.strip() or not fields.department or not fields.department.strip():
        raise ValidationError("Title and department are required.")
    return {
        "title": fields.title,
        "department": fields.department,
        "description": fields.description or "",
        "data_subject_type": fields.data_subject_type or "",
    }


def split_subject_types(value: str) -> list[str]:
    """Split a delimited data_subject_type into its non-empty parts."""
    return [part.strip() for part in value.split(",") if part.strip()]


def _matches_subjects(mapping: DataMapping, wanted: set[str]) -> bool:
    return any(part.casefold() in wanted for part in split_subject_types(mapping.data_subject_type))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class DataMappingStore:
    """Owner-scoped repository for DataMapping records."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create(self, owner_id: int, fields: DataMappingFields) -> int:
        """Insert a record owned by owner_id and return its new ID.

        Raises ValidationError if title or department is missing or blank.
        """
        values = clean_fields(fields)
        with self.engine.connect() as conn:
            result = conn.execute(data_mappings.insert().values(**values, user_id=owner_id, created_at=_now_iso()))
            conn.commit()
            mapping_id = result.inserted_primary_key[0]
        logger.info("Created data mapping id=%d for user_id=%d", mapping_id, owner_id)
        return mapping_id

    def list(self, owner_id: int, filters: Optional[MappingFilter] = None) -> list[DataMapping]:
        """Return owner_id's records, newest first.

        created_at ties (same microsecond) fall back to id so the order is
        still deterministic.
        """
        stmt = data_mappings.select().where(data_mappings.c.user_id == owner_id)
        if filters is not None:
            if filters.search.strip():
                term = filters.search.strip()
                stmt = stmt.where(
                    or_(
                        data_mappings.c.title.icontains(term, autoescape=True),
                        data_mappings.c.description.icontains(term, autoescape=True),
                    )
                )
            if filters.departments:
                stmt = stmt.where(data_mappings.c.department.in_(filters.departments))
        stmt = stmt.order_by(data_mappings.c.created_at.desc(), data_mappings.c.id.desc())

        with self.engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        mappings = [_row_to_mapping(r) for r in rows]

        # Delimited values can't be matched reliably in SQL; the rows are
        # already owner-scoped, so filter them here.
        if filters is not None and filters.data_subjects:
            wanted = {s.strip().casefold() for s in filters.data_subjects if s.strip()}
            mappings = [m for m in mappings if _matches_subjects(m, wanted)]
        return mappings

    def get(self, owner_id: int, mapping_id: int) -> Optional[DataMapping]:
        """Return the record if it exists AND belongs to owner_id, else None."""
        with self.engine.connect() as conn:
            row = conn.execute(
                data_mappings.select().where(
                    (data_mappings.c.id == mapping_id) & (data_mappings.c.user_id == owner_id)
                )
            ).fetchone()
        return _row_to_mapping(row) if row is not None else None

    def update(self, owner_id: int, mapping_id: int, fields: DataMappingFields) -> bool:
        """Replace the editable fields of an owned record.

        Absent optional fields are reset to "". Returns True if an owned row
        matched, False if the record is missing or belongs to someone else.
        Raises ValidationError under the same rules as create().
        """
        values = clean_fields(fields)
        with self.engine.connect() as conn:
            result = conn.execute(
                data_mappings.update()
                .where((data_mappings.c.id == mapping_id) & (data_mappings.c.user_id == owner_id))
                .values(**values)
            )
            conn.commit()
        return result.rowcount > 0

    def delete(self, owner_id: int, mapping_id: int) -> bool:
        """Delete an owned record. Returns False if missing or not owned."""
        with self.engine.connect() as conn:
            result = conn.execute(
                data_mappings.delete().where(
                    (data_mappings.c.id == mapping_id) & (data_mappings.c.user_id == owner_id)
                )
            )
            conn.commit()
        deleted = result.rowcount > 0
        if deleted:
            logger.info("Deleted data mapping id=%d for user_id=%d", mapping_id, owner_id)
        return deleted


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_mapping(row) -> DataMapping:
    return DataMapping(
        id=row.id,
        title=row.title,
        description=row.description or "",
        department=row.department,
        data_subject_type=row.data_subject_type or "",
        user_id=row.user_id,
        created_at=row.created_at,
    )
