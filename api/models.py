"""
API request and response models for EventReg REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
events/models.py, which own the internal domain representation. Route
handlers map between the two.

Request models for auth flows only enforce JSON types. Content rules (email
format, password length, ...) belong to auth.validation so that every
violation is reported together in one ValidationError.

Response models are built field by field. No response model has a password
or hash field, so a stored hash cannot leak through serialization.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import Account
from auth.validation import EMAIL_RE, is_encodable
from events.models import Event
from registrations.models import Registration

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class FieldError(BaseModel):
    """One violated input rule."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    fields: Optional[list[FieldError]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdate(BaseModel):
    """Request body for PUT /api/v1/users/{id}. Only sent fields are applied."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of an account. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    avatar: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_account(cls, account: Account) -> "UserResponse":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            avatar=account.avatar,
            bio=account.bio,
            created_at=account.created_at,
        )


class AuthResponse(BaseModel):
    """Response for register and login."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse
    token: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class _TextBody(BaseModel):
    """Request body whose strings must be storable as UTF-8.

    JSON allows lone surrogates such as "\\ud800"; they are rejected here
    with a 422 instead of failing later inside the database driver.
    """

    @field_validator("*")
    @classmethod
    def reject_unencodable(cls, value):
        if isinstance(value, str) and not is_encodable(value):
            raise ValueError("contains characters that cannot be encoded as UTF-8")
        return value


class EventCreate(_TextBody):
    """Request body for POST /api/v1/events.

    There is no organizer field: the organizer is always the caller.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    date: str = Field(min_length=1, max_length=64)
    location: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=5000)
    price: str = Field(min_length=1, max_length=50)
    image: str = Field(pattern=r"^https?://\S+$", max_length=2048)
    category: str = Field(min_length=1, max_length=50)
    is_public: bool = True


class EventUpdate(_TextBody):
    """Request body for PUT /api/v1/events/{id}. Only sent fields are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    date: Optional[str] = Field(default=None, min_length=1, max_length=64)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    price: Optional[str] = Field(default=None, min_length=1, max_length=50)
    image: Optional[str] = Field(default=None, pattern=r"^https?://\S+$", max_length=2048)
    category: Optional[str] = Field(default=None, min_length=1, max_length=50)
    is_public: Optional[bool] = None


class EventResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    date: str
    location: str
    description: str
    price: str
    image: str
    category: str
    organizer_id: int
    is_public: bool

    @classmethod
    def from_event(cls, event: Event) -> "EventResponse":
        return cls(
            id=event.id,
            title=event.title,
            date=event.date,
            location=event.location,
            description=event.description,
            price=event.price,
            image=event.image,
            category=event.category,
            organizer_id=event.organizer_id,
            is_public=event.is_public,
        )


# ---------------------------------------------------------------------------
# Registrations
# ---------------------------------------------------------------------------


class RegistrationCreate(_TextBody):
    """Request body for POST /api/v1/registrations.

    There is no user field: the registrant is always the caller.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    event_id: int
    full_name: str = Field(min_length=2, max_length=100)
    email: str = Field(pattern=EMAIL_RE.pattern, max_length=255)
    ticket_type: Literal["standard", "vip", "student"] = "standard"


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    event_id: int
    user_id: int
    full_name: str
    email: str
    ticket_type: str
    registration_date: str

    @classmethod
    def from_registration(cls, registration: Registration) -> "RegistrationResponse":
        return cls(
            id=registration.id,
            event_id=registration.event_id,
            user_id=registration.user_id,
            full_name=registration.full_name,
            email=registration.email,
            ticket_type=registration.ticket_type,
            registration_date=registration.registration_date,
        )
