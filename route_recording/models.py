from django.db import models


class Bus(models.Model):
    bus_id = models.CharField(max_length=50, unique=True)
    license_plate = models.CharField(max_length=20, blank=True, default='')
    driver_name = models.CharField(max_length=100, blank=True, default='')
    route_recording_enabled = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.bus_id


class RecordedRoute(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('active', 'Active'),
    ]
    bus = models.ForeignKey(Bus, on_delete=models.CASCADE, related_name='recorded_routes')
    driver_id = models.CharField(max_length=100)
    start_point = models.JSONField(null=True, blank=True)
    end_point = models.JSONField(null=True, blank=True)
    route_points = models.JSONField(default=list)
    bus_stops = models.JSONField(default=list)
    distance_km = models.FloatField(default=0.0)
    recorded_at = models.DateTimeField()
    summary = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-recorded_at']

    def __str__(self):
        return f"{self.bus} @ {self.recorded_at:%Y-%m-%d %H:%M}"

    def as_dict(self):
        return {
            "id": str(self.pk),
            "bus_id": self.bus.bus_id,
            "driver_id": self.driver_id,
            "start_point": self.start_point,
            "end_point": self.end_point,
            "route_points": self.route_points,
            "bus_stops": self.bus_stops,
            "distance_km": self.distance_km,
            "recorded_at": self.recorded_at.isoformat(),
            "summary": self.summary,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
