"""Pydantic schemas for the tool-call endpoint and each tool's arguments."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ToolName(str, Enum):
    """The closed set of tools the voice agent can call."""

    CHECK_SERVICE_AREA = "checkServiceArea"
    BOOK_VIRTUAL_ESTIMATE = "bookVirtualEstimate"
    SEND_PHOTO_LINK = "sendPhotoLink"
    ESCALATE_CALL = "escalateCall"


class ToolInvocation(BaseModel):
    """Body of ``POST /vapi-tool``.

    Both fields are left untyped: the dispatcher resolves the tool name before
    it looks at the arguments, so an unrecognised tool always gets the
    ``Unknown tool`` answer whatever the shape of the rest of the body.
    """

    tool: Any = None
    arguments: Any = None


# ── Tool arguments ───────────────────────────────────────────────────


class ToolArguments(BaseModel):
    # Voice agents sometimes send zips and phone numbers as JSON numbers
    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


class ServiceAreaArgs(ToolArguments):
    zip: str | None = None


class BookingRequest(ToolArguments):
    """Caller details for a virtual estimate.  Presence is the only check."""

    caller_name: str
    caller_phone: str
    caller_email: str | None = None
    job_type: str
    address_line1: str
    city: str
    state: str
    zip: str
    rooms_or_areas: str | None = None
    issues: str | None = None
    notes: str | None = None


class PhotoLinkArgs(ToolArguments):
    to_number: str
    form_url: str


class EscalationArgs(ToolArguments):
    caller_name: str
    caller_phone: str
    callback_window: str
    reason: str | None = None


TOOL_ARGUMENTS: dict[ToolName, type[ToolArguments]] = {
    ToolName.CHECK_SERVICE_AREA: ServiceAreaArgs,
    ToolName.BOOK_VIRTUAL_ESTIMATE: BookingRequest,
    ToolName.SEND_PHOTO_LINK: PhotoLinkArgs,
    ToolName.ESCALATE_CALL: EscalationArgs,
}


# ── Results ──────────────────────────────────────────────────────────


class ServiceAreaResult(BaseModel):
    in_area_guess: bool
    needs_manual_verification: bool


class BookingConfirmation(BaseModel):
    ok: bool = True
    start: str = Field(..., description="UTC start, e.g. 2026-10-19T21:30:00.000Z")
    end: str = Field(..., description="UTC end")
    event_id: str
    meet_link: str = ""


class OkResult(BaseModel):
    ok: bool = True


class ErrorResult(BaseModel):
    error: str
