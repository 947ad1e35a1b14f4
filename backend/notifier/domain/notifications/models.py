"""Notification domain models."""
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator


class NotificationType(str, Enum):
    """Notification types produced by triggers and schedulers."""

    DAILY_REMINDER = "daily_reminder"
    PRICE_DROP = "price_drop"
    CAR_SOLD = "car_sold"
    VIEW_MILESTONE = "view_milestone"
    INACTIVE_REMINDER = "inactive_reminder"
    GENERIC = "generic"


class _PayloadBase(BaseModel):
    """Fields every trigger writes into pending_notifications.data."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: Optional[str] = None
    message: Optional[str] = None
    screen: Optional[str] = None


class DailyReminderPayload(_PayloadBase):
    type: Literal["daily_reminder"]
    hour: Optional[int] = None
    time_of_day: Optional[str] = Field(default=None, alias="timeOfDay")
    metadata: dict[str, Any] = Field(default_factory=dict)


class PriceDropPayload(_PayloadBase):
    type: Literal["price_drop"]
    car_id: Optional[Union[int, str]] = Field(default=None, alias="carId")


class CarSoldPayload(_PayloadBase):
    type: Literal["car_sold"]
    car_id: Optional[Union[int, str]] = Field(default=None, alias="carId")
    sold_car_ids: list[Union[int, str]] = Field(default_factory=list, alias="soldCarIds")


class ViewMilestonePayload(_PayloadBase):
    type: Literal["view_milestone"]
    car_id: Optional[Union[int, str]] = Field(default=None, alias="carId")
    milestone: Optional[int] = None


class InactiveReminderPayload(_PayloadBase):
    type: Literal["inactive_reminder"]


class GenericPayload(_PayloadBase):
    type: Literal["generic"]


EventPayload = Annotated[
    Union[
        DailyReminderPayload,
        PriceDropPayload,
        CarSoldPayload,
        ViewMilestonePayload,
        InactiveReminderPayload,
        GenericPayload,
    ],
    Field(discriminator="type"),
]

_payload_adapter: TypeAdapter[EventPayload] = TypeAdapter(EventPayload)


class UnknownPayload(_PayloadBase):
    """Payload of an event whose type has no template; never dispatched."""

    type: str


def _text(value: Any) -> Optional[str]:
    """Scalar metadata as text; missing values and nested structures give None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    return value if isinstance(value, str) else str(value)


class PendingEvent(BaseModel):
    """A row of pending_notifications as delivered by the database webhook."""

    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    type: str
    data: dict[str, Any] = Field(default_factory=dict)
    processed: bool = False

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _coerce_ids(cls, v: Any) -> Any:
        # bigint ids arrive as JSON numbers
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("data", mode="before")
    @classmethod
    def _null_data(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def title(self) -> Optional[str]:
        return _text(self.data.get("title"))

    @property
    def message(self) -> Optional[str]:
        return _text(self.data.get("message"))

    @property
    def notification_type(self) -> Optional[NotificationType]:
        """Known NotificationType, or None for types without a template."""
        try:
            return NotificationType(self.type)
        except ValueError:
            return None

    def payload(self) -> Union[EventPayload, UnknownPayload]:
        """Typed view of data, keyed by the event type."""
        values = {**self.data, "title": self.title, "message": self.message, "type": self.type}
        if self.notification_type is not None:
            try:
                return _payload_adapter.validate_python(values)
            except ValidationError:
                # Malformed optional fields degrade to the untyped view rather than failing the event
                pass
        return UnknownPayload.model_construct(**values)


class PushMessage(BaseModel):
    """One outgoing push message for one destination token."""

    to: str
    title: str
    body: str
    sound: Optional[str] = "default"
    channel_id: str = "default"
    priority: str = "high"
    badge: Optional[int] = 1
    data: dict[str, Any] = Field(default_factory=dict)

    def to_gateway(self) -> dict[str, Any]:
        """Serialize to the Expo push API message shape."""
        body: dict[str, Any] = {
            "to": self.to,
            "title": self.title,
            "body": self.body,
            "data": self.data,
            "channelId": self.channel_id,
            "priority": self.priority,
        }
        if self.sound is not None:
            body["sound"] = self.sound
        if self.badge is not None:
            body["badge"] = self.badge
        return body


# Gateway error codes meaning the destination will never accept pushes again
PERMANENT_TOKEN_ERRORS = frozenset({"DeviceNotRegistered"})


class PushTicket(BaseModel):
    """Synchronous acknowledgment for one sent message."""

    model_config = ConfigDict(extra="allow")

    status: str
    id: Optional[str] = None
    message: Optional[str] = None
    details: Optional[dict[str, Any]] = None

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    @property
    def error_code(self) -> Optional[str]:
        return (self.details or {}).get("error")

    @property
    def is_permanent_token_error(self) -> bool:
        return self.is_error and self.error_code in PERMANENT_TOKEN_ERRORS


class PushReceipt(BaseModel):
    """Asynchronous delivery outcome for a previously acknowledged ticket."""

    model_config = ConfigDict(extra="allow")

    status: str
    message: Optional[str] = None
    details: Optional[dict[str, Any]] = None

    @property
    def is_error(self) -> bool:
        return self.status == "error"

    @property
    def error_code(self) -> Optional[str]:
        return (self.details or {}).get("error")

    @property
    def is_permanent_token_error(self) -> bool:
        return self.is_error and self.error_code in PERMANENT_TOKEN_ERRORS


class SentTicket(BaseModel):
    """A ticket paired with the message it acknowledges."""

    token: str
    ticket: PushTicket


class DispatchStatus(str, Enum):
    ALREADY_PROCESSED = "already_processed"
    DUPLICATE = "duplicate"
    NO_TOKENS = "no_tokens"
    NO_VALID_MESSAGES = "no_valid_messages"
    SENT = "sent"


class DispatchResult(BaseModel):
    """Outcome of processing one PendingEvent."""

    status: DispatchStatus
    notification_id: Optional[str] = None
    tickets: list[dict[str, Any]] = Field(default_factory=list)
    messages_built: int = 0


class NotificationRecord(BaseModel):
    """A persisted notification, as published to realtime listeners."""

    id: str
    user_id: str
    type: str
    title: Optional[str] = None
    message: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    created_at: Optional[datetime] = None
