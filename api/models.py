"""
API request and response models for DataMap REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
mappings/models.py, which own the internal domain representation. Route
handlers map between the two.

Request models are deliberately lenient (every field Optional): required-field
rules live in the service and repository, which raise ValidationError so the
client gets the 400 envelope described in api/main.py rather than a
framework-shaped error.

Record payloads use camelCase on the wire (dataSubjectType, userId,
createdAt); Python code uses snake_case. alias_generator=to_camel maps
between them and populate_by_name lets tests and handlers use either.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import Identity
from mappings.models import DataMapping, DataMappingFields

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Request body for POST /api/auth/register and /api/auth/login."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=255)


class UserInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str

    @classmethod
    def from_identity(cls, identity: Identity) -> "UserInfo":
        return cls(id=identity.user_id, email=identity.email)


class AuthResponse(BaseModel):
    """Response body for register and login."""

    model_config = ConfigDict(frozen=True)

    message: str
    token: str
    user: UserInfo


class ProfileResponse(BaseModel):
    """Response body for GET /api/profile."""

    model_config = ConfigDict(frozen=True)

    user: UserInfo


# ---------------------------------------------------------------------------
# Data mappings
# ---------------------------------------------------------------------------


class DataMappingIn(BaseModel):
    """Request body for POST and PUT /api/data-mappings.

    dataSubjectType accepts a single string or a list of strings; a list is
    joined with ", " into the stored delimited form. Any userId the client
    sends is ignored -- ownership comes from the bearer token only.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    department: Optional[str] = None
    data_subject_type: Optional[Union[str, list[str]]] = None

    @field_validator("data_subject_type", mode="after")
    @classmethod
    def join_subject_list(cls, value: Optional[Union[str, list[str]]]) -> Optional[str]:
        if isinstance(value, list):
            return ", ".join(v.strip() for v in value if v.strip())
        return value

    def to_fields(self) -> DataMappingFields:
        return DataMappingFields(
            title=self.title,
            department=self.department,
            description=self.description,
            data_subject_type=self.data_subject_type,
        )


class DataMappingOut(BaseModel):
    """One record as returned to its owner."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: int
    title: str
    description: str
    department: str
    data_subject_type: str
    user_id: int
    created_at: str

    @classmethod
    def from_mapping(cls, mapping: DataMapping) -> "DataMappingOut":
        """Factory Method: domain dataclass -> API model."""
        return cls(
            id=mapping.id,
            title=mapping.title,
            description=mapping.description,
            department=mapping.department,
            data_subject_type=mapping.data_subject_type,
            user_id=mapping.user_id,
            created_at=mapping.created_at,
        )


class CreatedId(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int


class DataMappingListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: list[DataMappingOut]


class DataMappingResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: DataMappingOut


class DataMappingCreatedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str = "Data mapping created successfully."
    data: CreatedId


class SuccessResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str
    version: str
    timestamp: str
    components: dict[str, str]
