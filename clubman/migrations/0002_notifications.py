# Program notifications and per-customer read marker

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("clubman", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="customer",
            name="last_notification_read_at",
            field=models.DateTimeField(blank=True, null=True, verbose_name="notificaciones leídas en"),
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=200, verbose_name="título")),
                ("message", models.TextField(verbose_name="mensaje")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="creada en")),
                (
                    "program",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to="clubman.program",
                        verbose_name="programa",
                    ),
                ),
            ],
            options={
                "verbose_name": "notificación",
                "verbose_name_plural": "notificaciones",
                "ordering": ["-created_at", "-pk"],
            },
        ),
    ]
