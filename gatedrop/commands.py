"""
Typed requests for the job lifecycle engine.

Each engine operation has one command class. Request bodies are parsed and
validated here, at the HTTP boundary, so the engine only ever sees
well-formed commands. ``operation`` is the tag the engine dispatches on.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Optional

from gatedrop.errors import ValidationError
from gatedrop.models import JobStatus
from gatedrop.utils import parse_datetime, sanitize_string, to_money

MAX_TITLE_LENGTH = 120
MAX_LOCATION_LENGTH = 255
MAX_TEXT_LENGTH = 2000


def _body(data):
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _text(data, field, max_length, required=True):
    value = data.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError("{} is required".format(field))
        return None
    if not isinstance(value, str):
        raise ValidationError("{} must be a string".format(field))
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError("{} must be at most {} characters".format(field, max_length))
    return sanitize_string(value)


def _user_id(data, field):
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("{} is required".format(field))
    return value.strip()


@dataclass(frozen=True)
class CreateJob:
    operation: ClassVar[str] = "create_job"

    requester_id: str
    title: str
    description: str
    pickup_location: str
    drop_location: str
    fee: Decimal
    payment_id: str
    deadline: Optional[datetime] = None

    @classmethod
    def from_request(cls, caller_id, data):
        """
        Body: {
            "title": "Parcel from main gate",
            "description": "Amazon box, medium",
            "pickup_location": "Main Gate",
            "drop_location": "Hostel B, Room 214",
            "fee": 50,
            "payment_id": "pay_123",
            "deadline": "2025-03-15T18:30:00Z"   (optional)
        }
        """
        data = _body(data)

        fee = to_money(data.get("fee"))
        if fee is None:
            raise ValidationError("fee must be a number")

        deadline = None
        if data.get("deadline"):
            deadline = parse_datetime(data["deadline"])
            if deadline is None:
                raise ValidationError("deadline must be an ISO-8601 datetime")

        return cls(
            requester_id=caller_id,
            title=_text(data, "title", MAX_TITLE_LENGTH),
            description=_text(data, "description", MAX_TEXT_LENGTH),
            pickup_location=_text(data, "pickup_location", MAX_LOCATION_LENGTH),
            drop_location=_text(data, "drop_location", MAX_LOCATION_LENGTH),
            fee=fee,
            payment_id=_text(data, "payment_id", 255),
            deadline=deadline,
        )


@dataclass(frozen=True)
class Apply:
    operation: ClassVar[str] = "apply"

    job_id: str
    runner_id: str


@dataclass(frozen=True)
class CancelBid:
    operation: ClassVar[str] = "cancel_bid"

    job_id: str
    runner_id: str


@dataclass(frozen=True)
class ChooseRunner:
    operation: ClassVar[str] = "choose_runner"

    job_id: str
    requester_id: str
    runner_id: str

    @classmethod
    def from_request(cls, job_id, caller_id, data):
        """Body: {"runner_id": "<applicant user id>"}"""
        data = _body(data)
        return cls(job_id=job_id, requester_id=caller_id, runner_id=_user_id(data, "runner_id"))


@dataclass(frozen=True)
class MarkPickedUp:
    operation: ClassVar[str] = "mark_picked_up"

    job_id: str
    runner_id: str


@dataclass(frozen=True)
class MarkDelivered:
    operation: ClassVar[str] = "mark_delivered"

    job_id: str
    runner_id: str


_STATUS_COMMANDS = {
    JobStatus.PICKED_UP: MarkPickedUp,
    JobStatus.DELIVERED_BY_RUNNER: MarkDelivered,
}


def status_update_from_request(job_id, caller_id, data):
    """Body: {"status": "picked_up" | "delivered_by_runner"}"""
    data = _body(data)
    command_cls = _STATUS_COMMANDS.get(data.get("status"))
    if command_cls is None:
        raise ValidationError(
            "status must be one of: {}".format(", ".join(_STATUS_COMMANDS))
        )
    return command_cls(job_id=job_id, runner_id=caller_id)


@dataclass(frozen=True)
class ConfirmDelivery:
    operation: ClassVar[str] = "confirm_delivery"

    job_id: str
    requester_id: str


@dataclass(frozen=True)
class Rate:
    operation: ClassVar[str] = "rate"

    job_id: str
    requester_id: str
    stars: int

    @classmethod
    def from_request(cls, job_id, caller_id, data):
        """Body: {"rating": 4}"""
        data = _body(data)
        stars = data.get("rating", data.get("stars"))
        if isinstance(stars, str) and stars.strip().isdigit():
            stars = int(stars.strip())
        if not isinstance(stars, int) or isinstance(stars, bool) or not 1 <= stars <= 5:
            raise ValidationError("rating must be a whole number between 1 and 5")
        return cls(job_id=job_id, requester_id=caller_id, stars=stars)


@dataclass(frozen=True)
class CancelDelivery:
    operation: ClassVar[str] = "cancel_delivery"

    job_id: str
    runner_id: str


@dataclass(frozen=True)
class Report:
    operation: ClassVar[str] = "report"

    job_id: str
    requester_id: str
    reason: Optional[str] = None

    @classmethod
    def from_request(cls, job_id, caller_id, data):
        """Body: {"reason": "Runner never showed up"}"""
        data = _body(data)
        return cls(
            job_id=job_id,
            requester_id=caller_id,
            reason=_text(data, "reason", MAX_TEXT_LENGTH, required=False),
        )
