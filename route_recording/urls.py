from django.urls import path
from .views import (
    BatteryModeView, CancelSessionView, CheckpointDetailView, CheckpointListView,
    RecordedRoutesView, RecordingStatusView, SaveRecordedRouteView, SessionView,
    StartSessionView, StopSessionView, SubmitFixesView, ToggleRecordingView,
)

app_name = "route_recording"

urlpatterns = [
    path("api/recording-status/<str:bus_id>/", RecordingStatusView.as_view(), name="recording-status"),
    path("api/enable-recording/", ToggleRecordingView.as_view(enabled=True), name="enable-recording"),
    path("api/disable-recording/", ToggleRecordingView.as_view(enabled=False), name="disable-recording"),
    path("api/recorded/<str:bus_id>/", RecordedRoutesView.as_view(), name="recorded-routes"),
    path("api/save-recorded/", SaveRecordedRouteView.as_view(), name="save-recorded"),
    path("api/sessions/", StartSessionView.as_view(), name="start-session"),
    path("api/sessions/<str:bus_id>/", SessionView.as_view(), name="session"),
    path("api/sessions/<str:bus_id>/fixes/", SubmitFixesView.as_view(), name="session-fixes"),
    path("api/sessions/<str:bus_id>/checkpoints/", CheckpointListView.as_view(), name="session-checkpoints"),
    path(
        "api/sessions/<str:bus_id>/checkpoints/<str:stop_id>/",
        CheckpointDetailView.as_view(),
        name="session-checkpoint",
    ),
    path("api/sessions/<str:bus_id>/battery/", BatteryModeView.as_view(), name="session-battery"),
    path("api/sessions/<str:bus_id>/stop/", StopSessionView.as_view(), name="session-stop"),
    path("api/sessions/<str:bus_id>/cancel/", CancelSessionView.as_view(), name="session-cancel"),
]
