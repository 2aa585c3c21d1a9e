"""
mappings/models.py -- Domain dataclasses for data mapping records.

These are pure data containers with zero logic. Validation and the owner
scoping rule live in mappings/store.py.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class DataMapping:
    """A record describing which department handles which kind of personal data.

    data_subject_type is free-form and may hold several values joined with
    commas, e.g. "Customers, Employees".

    id is None before the record is written to the database.
    """

    title: str
    department: str
    user_id: int
    description: str = ""
    data_subject_type: str = ""
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass
class DataMappingFields:
    """Client-editable fields for create and update. None means absent."""

    title: Optional[str] = None
    department: Optional[str] = None
    description: Optional[str] = None
    data_subject_type: Optional[str] = None


@dataclass
class MappingFilter:
    """Optional narrowing for DataMappingStore.list().

    search        -- case-insensitive substring of title or description
    departments   -- keep rows whose department is one of these
    data_subjects -- keep rows whose data_subject_type lists any of these
    """

    search: str = ""
    departments: list[str] = field(default_factory=list)
    data_subjects: list[str] = field(default_factory=list)
