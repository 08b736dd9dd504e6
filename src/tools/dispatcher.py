"""Route a tool call to its handler and wrap the outcome in one envelope.

``ToolDispatcher.dispatch`` never raises: every path ends in a
``ToolResult`` whose ``status_code`` is what the HTTP layer returns and
whose ``payload`` is the JSON body.  Upstream and unexpected failures are
logged with their traceback and reported as a generic ``Server error``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as ArgumentsError

from src.api.schemas import (
    TOOL_ARGUMENTS,
    BookingRequest,
    ErrorResult,
    EscalationArgs,
    OkResult,
    PhotoLinkArgs,
    ServiceAreaArgs,
    ToolArguments,
    ToolName,
)
from src.config import Settings
from src.errors import (
    InternalError,
    NoAvailability,
    ToolError,
    UpstreamError,
    ValidationError,
)
from src.scheduling.booking import BookingService
from src.services.calendar_gateway import GoogleCalendarGateway
from src.services.notification_gateway import LeadConnectorGateway
from src.tools.notifications import EscalationNotifier, PhotoLinkNotifier
from src.tools.service_area import check_service_area

logger = logging.getLogger(__name__)

NO_AVAILABILITY_MESSAGE = "No availability in next 3 weeks"
UNKNOWN_TOOL_MESSAGE = "Unknown tool"


@dataclass(frozen=True)
class ToolResult:
    status_code: int
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, result: BaseModel) -> ToolResult:
        return cls(200, result.model_dump())

    @classmethod
    def from_error(cls, exc: ToolError) -> ToolResult:
        return cls(exc.status_code, ErrorResult(error=exc.public_message).model_dump())


class ToolDispatcher:
    def __init__(
        self,
        booking: BookingService,
        photo_link: PhotoLinkNotifier,
        escalation: EscalationNotifier,
    ):
        self._booking = booking
        self._photo_link = photo_link
        self._escalation = escalation
        self._handlers: dict[ToolName, Callable[[Any], BaseModel]] = {
            ToolName.CHECK_SERVICE_AREA: self._check_service_area,
            ToolName.BOOK_VIRTUAL_ESTIMATE: self._book_virtual_estimate,
            ToolName.SEND_PHOTO_LINK: self._send_photo_link,
            ToolName.ESCALATE_CALL: self._escalate_call,
        }

    @property
    def handled_tools(self) -> frozenset[ToolName]:
        return frozenset(self._handlers)

    # ── Handlers ─────────────────────────────────────────────────────

    def _check_service_area(self, args: ServiceAreaArgs) -> BaseModel:
        return check_service_area(args.zip)

    def _book_virtual_estimate(self, args: BookingRequest) -> BaseModel:
        return self._booking.book(args)

    def _send_photo_link(self, args: PhotoLinkArgs) -> BaseModel:
        self._photo_link.notify(args)
        return OkResult()

    def _escalate_call(self, args: EscalationArgs) -> BaseModel:
        self._escalation.notify(args)
        return OkResult()

    # ── Routing ──────────────────────────────────────────────────────

    @staticmethod
    def _resolve(tool: Any) -> ToolName:
        try:
            return ToolName(tool)
        except ValueError:
            raise ValidationError(
                f"Unknown tool {tool!r}", public_message=UNKNOWN_TOOL_MESSAGE,
            ) from None

    @staticmethod
    def _parse_arguments(name: ToolName, arguments: Any) -> ToolArguments:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise InternalError(
                f"arguments for {name.value} is {type(arguments).__name__}, not an object"
            )
        try:
            return TOOL_ARGUMENTS[name].model_validate(dict(arguments))
        except ArgumentsError as exc:
            invalid = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
            raise ValidationError(f"Invalid arguments for {name.value}: {invalid}") from exc

    def dispatch(self, tool: Any, arguments: Any, *, request_id: str = "-") -> ToolResult:
        """Run one tool invocation and return its response envelope."""
        try:
            name = self._resolve(tool)
            args = self._parse_arguments(name, arguments)
            logger.info("[%s] Running tool %s", request_id, name.value)
            return ToolResult.ok(self._handlers[name](args))

        except NoAvailability:
            logger.info("[%s] No availability for %s", request_id, tool)
            return ToolResult.ok(ErrorResult(error=NO_AVAILABILITY_MESSAGE))
        except ValidationError as exc:
            logger.warning("[%s] Rejected tool call: %s", request_id, exc)
            return ToolResult.from_error(exc)
        except UpstreamError as exc:
            logger.exception("[%s] Upstream failure in %s", request_id, tool)
            return ToolResult.from_error(exc)
        except InternalError as exc:
            logger.error("[%s] Malformed tool call: %s", request_id, exc)
            return ToolResult.from_error(exc)
        except Exception as exc:
            logger.exception("[%s] Unexpected error in %s", request_id, tool)
            return ToolResult.from_error(InternalError(str(exc)))


def create_tool_dispatcher(settings: Settings) -> ToolDispatcher:
    """Wire the production gateways into a dispatcher."""
    calendar = GoogleCalendarGateway(settings)
    sms = LeadConnectorGateway(settings)
    return ToolDispatcher(
        booking=BookingService(calendar, settings),
        photo_link=PhotoLinkNotifier(sms),
        escalation=EscalationNotifier(sms, settings.escalation_number),
    )
