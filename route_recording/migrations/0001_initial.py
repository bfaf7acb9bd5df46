import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Bus',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('bus_id', models.CharField(max_length=50, unique=True)),
                ('license_plate', models.CharField(blank=True, default='', max_length=20)),
                ('driver_name', models.CharField(blank=True, default='', max_length=100)),
                ('route_recording_enabled', models.BooleanField(default=False)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name='RecordedRoute',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('driver_id', models.CharField(max_length=100)),
                ('start_point', models.JSONField(blank=True, null=True)),
                ('end_point', models.JSONField(blank=True, null=True)),
                ('route_points', models.JSONField(default=list)),
                ('bus_stops', models.JSONField(default=list)),
                ('distance_km', models.FloatField(default=0.0)),
                ('recorded_at', models.DateTimeField()),
                ('summary', models.JSONField(blank=True, default=dict)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('active', 'Active')], default='pending', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('bus', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='recorded_routes', to='route_recording.bus')),
            ],
            options={
                'ordering': ['-recorded_at'],
            },
        ),
    ]
