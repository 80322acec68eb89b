"""
Data validators using Pydantic
"""
import re
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from pokerroom.core.exceptions import ValidationError

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6


class RoomCodeValidator(BaseModel):
    """Room code validator, normalizes to uppercase"""
    code: str = Field(..., description="Room code")

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        code = v.strip().upper()
        if len(code) != ROOM_CODE_LENGTH:
            raise ValueError(f'Room code must be {ROOM_CODE_LENGTH} characters')
        if any(ch not in ROOM_CODE_ALPHABET for ch in code):
            raise ValueError('Room code contains invalid characters')
        return code


class ParticipantNameValidator(BaseModel):
    """Participant name validator"""
    name: str = Field(..., min_length=1, max_length=50, description="Participant name")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()


class StoryTitleValidator(BaseModel):
    """Story title validator"""
    title: str = Field(..., min_length=1, max_length=500, description="Story title")

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError('Story title cannot be empty')
        return v.strip()


class ExternalLinkValidator(BaseModel):
    """Optional external link (ticket URL)"""
    link: Optional[str] = Field(None, max_length=2000)

    @field_validator('link')
    @classmethod
    def validate_link(cls, v):
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not re.match(r'^https?://', v, re.IGNORECASE):
            raise ValueError('Link must start with http:// or https://')
        return v


class EstimateValidator(BaseModel):
    """Final estimate validator"""
    value: float = Field(..., ge=0, description="Estimate value")


class TimerValidator(BaseModel):
    """Timer validator"""
    max_seconds: int = 3600
    seconds: int = Field(..., ge=1, description="Timer in seconds")

    @field_validator('seconds')
    @classmethod
    def validate_seconds(cls, v, info):
        max_seconds = info.data.get('max_seconds', 3600)
        if v > max_seconds:
            raise ValueError(f'Timer cannot exceed {max_seconds} seconds')
        return v


class IssueKeyValidator(BaseModel):
    """Issue tracker key validator (PROJ-123)"""
    issue_key: str = Field(..., min_length=3, max_length=50)

    @field_validator('issue_key')
    @classmethod
    def validate_issue_key(cls, v):
        key = v.strip().upper()
        if not re.match(r'^[A-Z][A-Z0-9]+-\d+$', key):
            raise ValueError(f'Invalid issue key: {v}')
        return key


def _message(error: PydanticValidationError) -> str:
    first = error.errors()[0] if error.errors() else {}
    message = first.get("msg", str(error))
    return message.replace("Value error, ", "")


def normalize_room_code(code: str) -> str:
    try:
        return RoomCodeValidator(code=code or "").code
    except PydanticValidationError as e:
        raise ValidationError(_message(e)) from e


def validate_participant_name(name: str) -> str:
    try:
        return ParticipantNameValidator(name=name or "").name
    except PydanticValidationError as e:
        raise ValidationError(_message(e)) from e


def validate_story_title(title: str) -> str:
    try:
        return StoryTitleValidator(title=title or "").title
    except PydanticValidationError as e:
        raise ValidationError(_message(e)) from e


def validate_external_link(link: Optional[str]) -> Optional[str]:
    try:
        return ExternalLinkValidator(link=link).link
    except PydanticValidationError as e:
        raise ValidationError(_message(e)) from e


def validate_estimate(value) -> float:
    if isinstance(value, bool):
        raise ValidationError('Estimate must be a number')
    try:
        return EstimateValidator(value=value).value
    except PydanticValidationError as e:
        raise ValidationError(f'Invalid estimate: {_message(e)}') from e


def validate_timer(seconds: int, max_seconds: int) -> int:
    try:
        return TimerValidator(seconds=seconds, max_seconds=max_seconds).seconds
    except PydanticValidationError as e:
        raise ValidationError(_message(e)) from e


def validate_issue_key(issue_key: str) -> str:
    try:
        return IssueKeyValidator(issue_key=issue_key or "").issue_key
    except PydanticValidationError as e:
        raise ValidationError(_message(e)) from e


def validate_vote_value(value, scale: Iterable[float]) -> float:
    """Votes must be members of the allowed scale"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f'Invalid vote value: {value!r}')
    allowed: List[float] = list(scale)
    if value not in allowed:
        raise ValidationError(f'Vote {value} is not part of the allowed scale')
    return value
