"""Refresh Painting tool server — the backend behind the voice receptionist.

Architecture Overview
=====================

The voice agent (Vapi) calls one HTTP endpoint, ``POST /vapi-tool``, with a
``{tool, arguments}`` body.  The request passes a shared-secret check and is
handed to the **ToolDispatcher**, which validates the arguments for the named
tool and runs one of four handlers:

1. **checkServiceArea** — pure ZIP-prefix guess, no I/O.
2. **bookVirtualEstimate** — finds the earliest free evening slot (Mon–Thu,
   next 21 days, 15-minute buffers) on Google Calendar and books it with a
   Meet link.
3. **sendPhotoLink** — texts the caller a photo-upload link.
4. **escalateCall** — texts a callback request to the on-call number.

Every outcome comes back as one envelope: 200 with the tool payload (or the
spoken soft failure ``No availability in next 3 weeks``), 400 for unknown
tools or missing arguments, 401 for a bad key, 500 for provider faults.

Key Design Decisions
--------------------
- **No local state**: the calendar is the source of truth; availability is
  recomputed on every booking.
- **Greedy search**: one free/busy query per candidate slot, in order, first
  free slot wins.  A failed query fails the booking.
- **Best-effort SMS**: notification failures are logged, never reported.
- **Known gap**: two simultaneous bookings can claim the same slot.

Package Structure
-----------------
- ``src/config.py`` — ``Settings`` loaded once from env / SSM
- ``src/errors.py`` — error taxonomy and HTTP status mapping
- ``src/server.py`` — FastAPI application
- ``src/main.py`` — CLI for one-off tool calls
- ``src/services/`` — Google Calendar and SMS gateways, metrics
- ``src/scheduling/`` — availability search and booking
- ``src/tools/`` — tool handlers and the dispatcher
- ``src/api/`` — routes and Pydantic schemas
"""
