"""Registration API views."""

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from clinic_desk.exceptions import ClinicDeskError
from clinic_desk.http import acting_user, error_response, parse_json
from clinic_desk.queue.selectors import (
    get_estimated_wait_minutes,
    get_queue_position,
    serialize_entry,
)

from .services import register_walk_in


@csrf_exempt
@require_POST
def api_register(request):
    """API: Register a walk-in patient and queue them."""
    try:
        data = parse_json(request)
        result = register_walk_in(data, registered_by=acting_user(request))
    except ClinicDeskError as e:
        return error_response(e)

    entry = result.entry
    return JsonResponse({
        "created": result.created,
        "patient": {
            "id": str(result.patient.pk),
            "patient_id": result.patient.patient_id,
            "name": result.patient.full_name,
        },
        "entry": serialize_entry(entry),
        "queue_position": get_queue_position(entry),
        "estimated_wait_minutes": get_estimated_wait_minutes(entry),
    }, status=201)
