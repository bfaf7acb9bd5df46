from __future__ import annotations

import json
import logging

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from . import services, storage
from .conf import recording_setting
from .exceptions import RecordingError
from .session import wall_clock_ms

logger = logging.getLogger(__name__)


class BadRequest(Exception):
    pass


def _truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@method_decorator(csrf_exempt, name='dispatch')
class JsonApiView(View):
    """
    Base view translating recording errors into JSON responses.
    """

    def dispatch(self, request, *args, **kwargs):
        try:
            return super().dispatch(request, *args, **kwargs)
        except BadRequest as e:
            return JsonResponse({'success': False, 'error': str(e)}, status=400)
        except RecordingError as e:
            if e.status_code >= 500:
                logger.error(f"{type(e).__name__} on {request.path}: {e}")
            else:
                logger.info(f"{type(e).__name__} on {request.path}: {e}")
            return JsonResponse(
                {'success': False, 'error': e.message, 'code': type(e).__name__},
                status=e.status_code,
            )

    def json_body(self, request):
        if not request.body:
            return {}
        try:
            data = json.loads(request.body)
        except json.JSONDecodeError:
            raise BadRequest('Invalid JSON')
        if not isinstance(data, dict):
            raise BadRequest('Expected a JSON object')
        return data


class RecordingStatusView(JsonApiView):
    def get(self, request, bus_id, *args, **kwargs):
        return JsonResponse({'success': True, 'data': storage.recording_status(bus_id)})


class ToggleRecordingView(JsonApiView):
    enabled = True

    def post(self, request, *args, **kwargs):
        data = self.json_body(request)
        bus_id = data.get('bus_id')
        if not bus_id:
            raise BadRequest('Bus ID is required')
        storage.set_recording_enabled(str(bus_id), self.enabled)
        state = 'enabled' if self.enabled else 'disabled'
        return JsonResponse({'success': True, 'message': f'Route recording {state} successfully'})


class RecordedRoutesView(JsonApiView):
    def get(self, request, bus_id, *args, **kwargs):
        limit = int(recording_setting('RECORDED_ROUTES_LIMIT'))
        return JsonResponse({'success': True, 'data': storage.recorded_routes(bus_id, limit=limit)})


class SaveRecordedRouteView(JsonApiView):
    """
    Stores a route assembled by the client itself, e.g. after an offline
    recording.
    """

    def post(self, request, *args, **kwargs):
        data = self.json_body(request)
        if not data.get('bus_id') or not data.get('driver_id'):
            raise BadRequest('Bus ID and Driver ID are required')
        try:
            route = storage.store_route(
                bus_id=str(data['bus_id']),
                driver_id=str(data['driver_id']),
                route_points=list(data.get('route_points') or []),
                bus_stops=list(data.get('bus_stops') or []),
                distance_km=float(data.get('distance_km') or 0.0),
                recorded_at_ms=int(data.get('recorded_at_ms') or wall_clock_ms()),
                start_point=data.get('start_point'),
                end_point=data.get('end_point'),
            )
        except (TypeError, ValueError) as e:
            raise BadRequest(f'Invalid route data: {e}')
        return JsonResponse(
            {
                'success': True,
                'message': 'Route saved successfully',
                'data': {'route_id': str(route.pk), 'message': 'Route recorded and submitted for review'},
            }
        )


class StartSessionView(JsonApiView):
    def post(self, request, *args, **kwargs):
        data = self.json_body(request)
        bus_id = data.get('bus_id')
        driver_id = data.get('driver_id')
        if not bus_id or not driver_id:
            raise BadRequest('Bus ID and Driver ID are required')
        try:
            initial_fixes = services.parse_fixes(data.get('initial_fixes') or [])
        except (TypeError, ValueError) as e:
            raise BadRequest(str(e))

        session = services.open_session(
            bus_id=str(bus_id),
            driver_id=str(driver_id),
            location_permission=_truthy(data.get('location_permission', False)),
            initial_fixes=initial_fixes,
            battery_optimized=_truthy(data.get('battery_optimized', False)),
        )
        return JsonResponse(
            {'success': True, 'message': 'Route recording started!', 'data': session.snapshot()},
            status=201,
        )


class SessionView(JsonApiView):
    def get(self, request, bus_id, *args, **kwargs):
        return JsonResponse({'success': True, 'data': services.get_recording_snapshot(bus_id)})


class SubmitFixesView(JsonApiView):
    def post(self, request, bus_id, *args, **kwargs):
        session = services.get_session(bus_id)
        data = self.json_body(request)
        try:
            fixes = services.parse_fixes(data.get('fixes') or [])
        except (TypeError, ValueError) as e:
            raise BadRequest(str(e))

        decisions = services.submit_fixes(session, fixes)
        outcomes = [decision.to_dict() if decision else {'outcome': 'dropped'} for decision in decisions]
        return JsonResponse(
            {
                'success': True,
                'data': {
                    'decisions': outcomes,
                    'poor_signal_alert': any(o.get('poor_signal_alert') for o in outcomes),
                    'session': session.snapshot(),
                },
            }
        )


class CheckpointListView(JsonApiView):
    def post(self, request, bus_id, *args, **kwargs):
        session = services.get_session(bus_id)
        data = self.json_body(request)
        try:
            stop = session.mark_checkpoint(str(data.get('name') or ''))
        except ValueError as e:
            raise BadRequest(str(e))
        return JsonResponse(
            {'success': True, 'message': f'Bus stop "{stop.name}" added!', 'data': stop.to_dict()},
            status=201,
        )


class CheckpointDetailView(JsonApiView):
    def delete(self, request, bus_id, stop_id, *args, **kwargs):
        session = services.get_session(bus_id)
        try:
            session.remove_checkpoint(stop_id)
        except KeyError:
            return JsonResponse({'success': False, 'error': 'Bus stop not found'}, status=404)
        return JsonResponse({'success': True, 'data': session.snapshot()})


class BatteryModeView(JsonApiView):
    def post(self, request, bus_id, *args, **kwargs):
        session = services.get_session(bus_id)
        data = self.json_body(request)
        config = session.set_battery_optimized(_truthy(data.get('enabled', False)))
        return JsonResponse({'success': True, 'data': config.to_dict()})


class StopSessionView(JsonApiView):
    def post(self, request, bus_id, *args, **kwargs):
        session = services.get_session(bus_id)
        data = self.json_body(request)
        # On PersistenceFailure the session stays registered with its pending
        # payload, so posting here again retries the save.
        result = session.stop(save_without_stops=_truthy(data.get('save_without_stops', False)))
        services.discard_session(bus_id)
        payload = result.payload
        return JsonResponse(
            {
                'success': True,
                'message': 'Route saved successfully',
                'data': {'route_id': result.route_id, 'route': payload.to_dict()},
            }
        )


class CancelSessionView(JsonApiView):
    def post(self, request, bus_id, *args, **kwargs):
        session = services.get_session(bus_id)
        session.cancel()
        services.discard_session(bus_id)
        return JsonResponse({'success': True, 'message': 'Recording has been discarded.'})
