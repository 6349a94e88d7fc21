# ============================================================================
# HEALTH MODELS
# ============================================================================
# STATUS: Core - Status, Check and Response types
# PURPOSE: application/health+json document model and JSON codec
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Models

Pydantic models for the health+json wire format
(https://inadarei.github.io/rfc-healthcheck/).

Status Hierarchy (worst wins):
- pass: All systems operational
- warn: Operational with warnings
- fail: Unhealthy

Optional fields are omitted from the encoded JSON when empty, so a
default Response encodes to exactly {"status":"pass"}.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import IO, Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    Field,
    SerializerFunctionWrapHandler,
    ValidationError,
    field_validator,
    model_serializer,
)

from healthjson.core.errors import DecodeError

COMPONENT_TYPE_COMPONENT = "component"
COMPONENT_TYPE_DATASTORE = "datastore"
COMPONENT_TYPE_SYSTEM = "system"


class Status(str, Enum):
    """Health status values, ordered pass < warn < fail."""
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"

    @property
    def rank(self) -> int:
        """Severity used for 'worst wins' ordering."""
        order = {
            Status.PASS: 0,
            Status.WARN: 1,
            Status.FAIL: 2,
        }
        return order[self]

    def __lt__(self, other):
        if not isinstance(other, Status):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Status):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Status):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Status):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: str) -> "Status":
        """
        Decode a status token.

        Raises:
            ValueError: If token is not pass, warn or fail
        """
        for status in cls:
            if status.value == token:
                return status
        raise ValueError(f"unsupported value: {token!r}")

    @classmethod
    def worst(cls, *statuses: "Status") -> "Status":
        """Aggregate statuses (worst wins); no statuses is a pass."""
        return max(statuses, key=lambda s: s.rank, default=cls.PASS)


def worst_status(status: Status, *statuses: Status) -> Status:
    """Return the worst of one or more statuses."""
    return Status.worst(status, *statuses)


def _coerce_status(value: Any) -> Any:
    if isinstance(value, str) and not isinstance(value, Status):
        return Status.parse(value)
    return value


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, (str, list, dict)) and not value


def _omit_empty(data: Dict[str, Any], keep_falsy: tuple = ()) -> Dict[str, Any]:
    result = {}
    for key, value in data.items():
        if key == "status":
            result[key] = value
        elif key in keep_falsy:
            if value is not None:
                result[key] = value
        elif not _is_empty(value):
            result[key] = value
    return result


class Check(BaseModel):
    """
    A single health observation produced by a checker.

    ``observed_value`` may be any JSON value; it is only omitted when
    None. ``time`` is encoded as an RFC 3339 timestamp; naive datetimes
    are taken to be UTC.
    """
    component_id: Optional[str] = Field(None, alias="componentId")
    component_type: Optional[str] = Field(None, alias="componentType")
    observed_value: Any = Field(None, alias="observedValue")
    observed_unit: Optional[str] = Field(None, alias="observedUnit")
    status: Status = Status.PASS
    affected_endpoints: List[str] = Field(default_factory=list, alias="affectedEndpoints")
    time: Optional[datetime] = None
    output: Optional[str] = None
    links: List[str] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "examples": [
                {
                    "componentId": "6fd416e0-8920-410f-9c7b-c479000f7227",
                    "componentType": "datastore",
                    "observedValue": 250,
                    "observedUnit": "ms",
                    "status": "pass",
                    "time": "2026-10-19T12:00:00Z",
                }
            ]
        },
    }

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value: Any) -> Any:
        return _coerce_status(value)

    @field_validator("time")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_serializer(mode="wrap")
    def serialize_omit_empty(self, handler: SerializerFunctionWrapHandler) -> Dict[str, Any]:
        return _omit_empty(handler(self), keep_falsy=("observedValue", "observed_value"))

    @classmethod
    def from_panic(cls, exc: BaseException) -> "Check":
        """Synthetic fail check for a checker that raised."""
        message = str(exc) or type(exc).__name__
        return cls(status=Status.FAIL, output=f"panic: {message}")

    def set_observed_time(self, duration: Union[timedelta, float]) -> None:
        """
        Record a duration as the observed value, in nanoseconds.

        Args:
            duration: timedelta, or elapsed seconds as a float
        """
        if isinstance(duration, timedelta):
            nanos = (
                (duration.days * 86400 + duration.seconds) * 1_000_000_000
                + duration.microseconds * 1000
            )
        else:
            nanos = int(round(duration * 1_000_000_000))
        self.observed_value = nanos
        self.observed_unit = "ns"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return self.model_dump(mode="json", by_alias=True)


class Response(BaseModel):
    """
    Aggregated health response.

    ``status`` is the worst status of all checks added through
    add_checks(); checks are keyed by the name they were registered as.
    """
    status: Status = Status.PASS
    version: Optional[str] = None
    release_id: Optional[str] = Field(None, alias="releaseId")
    notes: List[str] = Field(default_factory=list)
    output: Optional[str] = None
    checks: Dict[str, List[Check]] = Field(default_factory=dict)
    links: List[str] = Field(default_factory=list)
    service_id: Optional[str] = Field(None, alias="serviceID")
    description: Optional[str] = None

    model_config = {"populate_by_name": True}

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value: Any) -> Any:
        return _coerce_status(value)

    @model_serializer(mode="wrap")
    def serialize_omit_empty(self, handler: SerializerFunctionWrapHandler) -> Dict[str, Any]:
        return _omit_empty(handler(self))

    def add_checks(self, name: str, *checks: Check) -> None:
        """
        Append checks under ``name`` and fold their statuses into the
        response status.
        """
        self.status = Status.worst(self.status, *(c.status for c in checks))
        self.checks.setdefault(name, []).extend(c.model_copy(deep=True) for c in checks)

    def good(self) -> bool:
        """True if the status is pass or warn."""
        return self.status in (Status.PASS, Status.WARN)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        """Compact health+json encoding."""
        return self.model_dump_json(by_alias=True)

    def write(self, stream: IO[str]) -> int:
        """Write the JSON encoding to a text stream."""
        return stream.write(self.to_json())

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "Response":
        """
        Decode a health+json document.

        Raises:
            DecodeError: On malformed JSON or an unsupported status
        """
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise DecodeError(f"failed to decode health response: {e}") from e

    @classmethod
    def read(cls, stream: IO) -> "Response":
        """Decode a health+json document from a stream."""
        return cls.from_json(stream.read())


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "COMPONENT_TYPE_COMPONENT",
    "COMPONENT_TYPE_DATASTORE",
    "COMPONENT_TYPE_SYSTEM",
    "Status",
    "Check",
    "Response",
    "worst_status",
]
