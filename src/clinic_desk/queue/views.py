"""Queue API views for the front-desk terminals."""

import logging
from uuid import UUID

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from clinic_desk.conf import get_setting
from clinic_desk.exceptions import ClinicDeskError, InvalidPayloadError
from clinic_desk.http import (
    acting_user,
    error_response,
    get_from_payload,
    parse_json,
    resolve_doctor,
)

from . import graph, selectors, services
from .board import QueueBoard
from .models import QueueEntry

logger = logging.getLogger(__name__)


@require_GET
def api_queue(request):
    """API: Today's queue as seen through this terminal's board."""
    board = QueueBoard.from_session(request.session)

    changed = False
    if "status" in request.GET:
        try:
            board.set_filter(request.GET["status"] or None)
        except ValueError as e:
            return JsonResponse({"error": str(e)}, status=400)
        changed = True

    now = timezone.now()
    entries = list(selectors.get_todays_queue())

    # Hidden ids from earlier days would otherwise pile up in the session
    if board.prune(entries) or changed:
        board.save(request.session)

    return JsonResponse({
        "entries": [selectors.serialize_entry(e, now) for e in board.visible(entries)],
        "stats": selectors.get_queue_stats(now=now),
        "current_number": selectors.get_current_number(entries),
        "board": board.as_dict(),
        "paused": board.paused,
        "refresh_seconds": get_setting("QUEUE_REFRESH_SECONDS"),
    })


@csrf_exempt
@require_POST
def api_call_next(request):
    """API: Start a consultation with the next (or a chosen) patient."""
    board = QueueBoard.from_session(request.session)
    try:
        data = parse_json(request)
        entry = None
        if data.get("entry_id"):
            entry = get_from_payload(QueueEntry, "entry_id", data["entry_id"])
        called = services.call_next_patient(
            doctor=resolve_doctor(request, data),
            by_user=acting_user(request),
            entry=entry,
            board=board,
        )
    except ClinicDeskError as e:
        return error_response(e)

    return JsonResponse({"entry": selectors.serialize_entry(called)})


@csrf_exempt
@require_POST
def api_toggle_pause(request):
    """API: Pause or resume calling on this terminal."""
    board = QueueBoard.from_session(request.session)
    paused = board.toggle_pause()
    board.save(request.session)
    logger.info("Queue board %s", "paused" if paused else "resumed")
    return JsonResponse({"paused": paused, "board": board.as_dict()})


@csrf_exempt
@require_POST
def api_transition(request, entry_id: UUID):
    """API: Change an entry's status.

    Body: {"status": "...", "version": <observed version, optional>}
    """
    entry = get_object_or_404(QueueEntry, pk=entry_id)
    try:
        data = parse_json(request)
        to_status = data.get("status")
        if to_status not in graph.QUEUE_STATUSES:
            raise InvalidPayloadError(f"Unknown queue status '{to_status}'")
        if data.get("version") is not None:
            try:
                entry.version = int(data["version"])
            except (TypeError, ValueError):
                raise InvalidPayloadError("version must be an integer")
        updated = services.transition_entry(
            entry,
            to_status,
            by_user=acting_user(request),
            doctor=resolve_doctor(request, data) if to_status == graph.IN_CONSULTATION else None,
        )
    except ClinicDeskError as e:
        return error_response(e)

    return JsonResponse({"entry": selectors.serialize_entry(updated)})


@csrf_exempt
@require_POST
def api_remove(request, entry_id: UUID):
    """API: Optimistically hide and cancel an entry."""
    entry = get_object_or_404(QueueEntry, pk=entry_id)
    board = QueueBoard.from_session(request.session)
    try:
        data = parse_json(request)
        cancelled = board.remove_entry(
            entry, by_user=acting_user(request), reason=data.get("reason", "")
        )
    except ClinicDeskError as e:
        return error_response(e)
    finally:
        board.save(request.session)

    return JsonResponse({"entry": selectors.serialize_entry(cancelled), "board": board.as_dict()})
