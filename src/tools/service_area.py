"""Service-area guess from a ZIP code.

The painting crew covers the Richmond, VA area, whose ZIPs start with 231
or 232.  Anything else is flagged for a human to confirm rather than
rejected outright.
"""

from __future__ import annotations

from src.api.schemas import ServiceAreaResult

IN_AREA_PREFIXES = ("232", "231")


def check_service_area(zip_code: str | None) -> ServiceAreaResult:
    in_area = bool(zip_code) and zip_code.startswith(IN_AREA_PREFIXES)
    return ServiceAreaResult(in_area_guess=in_area, needs_manual_verification=not in_area)
