# Initial schema for programs, customers and the loyalty ledger

from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Program",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "owner_ref",
                    models.CharField(
                        db_index=True,
                        help_text="ID externo del negocio dueño del programa",
                        max_length=100,
                        verbose_name="propietario",
                    ),
                ),
                ("business_name", models.CharField(max_length=200, verbose_name="nombre del negocio")),
                ("description", models.TextField(blank=True, verbose_name="descripción")),
                (
                    "points_percentage",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Puntos ganados por cada 100 de consumo (0 = sin puntos)",
                        verbose_name="porcentaje de puntos",
                    ),
                ),
                ("enable_first_visit_gift", models.BooleanField(default=False, verbose_name="regalo de bienvenida")),
                ("first_visit_gift_text", models.CharField(blank=True, max_length=200, verbose_name="texto del regalo")),
                ("theme_color", models.CharField(blank=True, max_length=20, verbose_name="color")),
                ("logo_url", models.CharField(blank=True, max_length=500, verbose_name="logo")),
                ("card_design", models.JSONField(blank=True, default=dict, verbose_name="diseño de tarjeta")),
                ("is_active", models.BooleanField(default=True, verbose_name="activo")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="creado en")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="actualizado en")),
            ],
            options={
                "verbose_name": "programa de lealtad",
                "verbose_name_plural": "programas de lealtad",
                "ordering": ["business_name"],
            },
        ),
        migrations.CreateModel(
            name="Promotion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("image_url", models.CharField(max_length=500, verbose_name="imagen")),
                ("title", models.CharField(blank=True, max_length=200, verbose_name="título")),
                ("description", models.TextField(blank=True, verbose_name="descripción")),
                ("terms", models.TextField(blank=True, verbose_name="términos")),
                ("is_active", models.BooleanField(default=True, verbose_name="activa")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="creada en")),
                (
                    "program",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="promotions",
                        to="clubman.program",
                        verbose_name="programa",
                    ),
                ),
            ],
            options={
                "verbose_name": "promoción",
                "verbose_name_plural": "promociones",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Tier",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, verbose_name="nombre")),
                ("order", models.PositiveIntegerField(default=0, verbose_name="orden")),
                ("required_visits", models.PositiveIntegerField(default=0, verbose_name="visitas requeridas")),
                ("required_points", models.PositiveIntegerField(default=0, verbose_name="puntos requeridos")),
                ("color", models.CharField(blank=True, max_length=20, verbose_name="color")),
                ("benefits", models.TextField(blank=True, verbose_name="beneficios")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="creado en")),
                (
                    "program",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tiers",
                        to="clubman.program",
                        verbose_name="programa",
                    ),
                ),
            ],
            options={
                "verbose_name": "nivel",
                "verbose_name_plural": "niveles",
                "ordering": ["program", "order", "pk"],
            },
        ),
        migrations.CreateModel(
            name="Reward",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, verbose_name="nombre")),
                ("description", models.TextField(blank=True, verbose_name="descripción")),
                ("cost_in_visits", models.PositiveIntegerField(default=0, verbose_name="costo en visitas")),
                ("cost_in_points", models.PositiveIntegerField(default=0, verbose_name="costo en puntos")),
                ("validity_days", models.PositiveIntegerField(blank=True, null=True, verbose_name="vigencia (días)")),
                ("is_active", models.BooleanField(default=True, verbose_name="activo")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="creado en")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="actualizado en")),
                (
                    "program",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rewards",
                        to="clubman.program",
                        verbose_name="programa",
                    ),
                ),
            ],
            options={
                "verbose_name": "premio",
                "verbose_name_plural": "premios",
                "ordering": ["program", "cost_in_visits", "cost_in_points"],
            },
        ),
        migrations.AddConstraint(
            model_name="reward",
            constraint=models.UniqueConstraint(
                condition=models.Q(description="__SYSTEM_GIFT__", is_active=True),
                fields=("program",),
                name="clubman_one_active_gift_per_program",
            ),
        ),
        migrations.CreateModel(
            name="Rule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200, verbose_name="nombre")),
                ("description", models.TextField(blank=True, verbose_name="descripción")),
                ("trigger", models.CharField(max_length=20, verbose_name="disparador")),
                ("conditions", models.JSONField(blank=True, default=dict, verbose_name="condiciones")),
                ("is_active", models.BooleanField(default=True, verbose_name="activa")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="creada en")),
                (
                    "program",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="rules",
                        to="clubman.program",
                        verbose_name="programa",
                    ),
                ),
                (
                    "reward",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="rules",
                        to="clubman.reward",
                        verbose_name="premio",
                    ),
                ),
            ],
            options={
                "verbose_name": "regla",
                "verbose_name_plural": "reglas",
                "ordering": ["program", "pk"],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("phone", models.CharField(max_length=30, verbose_name="teléfono")),
                (
                    "token",
                    models.CharField(
                        blank=True,
                        editable=False,
                        max_length=64,
                        null=True,
                        unique=True,
                        verbose_name="token de acceso",
                    ),
                ),
                ("name", models.CharField(blank=True, max_length=200, verbose_name="nombre")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email")),
                ("photo_url", models.CharField(blank=True, max_length=500, verbose_name="foto")),
                ("birthday", models.DateField(blank=True, null=True, verbose_name="cumpleaños")),
                (
                    "external_user_id",
                    models.CharField(blank=True, db_index=True, max_length=100, verbose_name="usuario externo"),
                ),
                ("is_phone_verified", models.BooleanField(default=False, verbose_name="teléfono verificado")),
                ("total_visits", models.PositiveIntegerField(default=0, verbose_name="visitas totales")),
                ("current_visits", models.PositiveIntegerField(default=0, verbose_name="visitas actuales")),
                ("total_points", models.PositiveIntegerField(default=0, verbose_name="puntos totales")),
                ("current_points", models.PositiveIntegerField(default=0, verbose_name="puntos actuales")),
                ("average_rating", models.FloatField(default=0.0, verbose_name="calificación promedio")),
                ("rating_count", models.PositiveIntegerField(default=0, verbose_name="calificaciones")),
                ("last_visit_date", models.DateTimeField(blank=True, null=True, verbose_name="última visita")),
                ("otp_code", models.CharField(blank=True, max_length=6, verbose_name="código OTP")),
                ("otp_expires_at", models.DateTimeField(blank=True, null=True, verbose_name="OTP expira")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="creado en")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="actualizado en")),
                (
                    "program",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="customers",
                        to="clubman.program",
                        verbose_name="programa",
                    ),
                ),
                (
                    "tier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="customers",
                        to="clubman.tier",
                        verbose_name="nivel",
                    ),
                ),
            ],
            options={
                "verbose_name": "cliente",
                "verbose_name_plural": "clientes",
                "ordering": ["-last_visit_date", "pk"],
            },
        ),
        migrations.AddConstraint(
            model_name="customer",
            constraint=models.UniqueConstraint(
                fields=("program", "phone"),
                name="clubman_customer_program_phone",
            ),
        ),
        migrations.CreateModel(
            name="Visit",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("staff_id", models.CharField(blank=True, max_length=100, verbose_name="staff")),
                ("rating", models.PositiveSmallIntegerField(blank=True, null=True, verbose_name="calificación")),
                ("comment", models.TextField(blank=True, verbose_name="comentario")),
                (
                    "spend_amount",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0"),
                        max_digits=12,
                        verbose_name="consumo",
                    ),
                ),
                ("points_earned", models.PositiveIntegerField(default=0, verbose_name="puntos ganados")),
                ("visit_date", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="fecha")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="visits",
                        to="clubman.customer",
                        verbose_name="cliente",
                    ),
                ),
                (
                    "program",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="visits",
                        to="clubman.program",
                        verbose_name="programa",
                    ),
                ),
            ],
            options={
                "verbose_name": "visita",
                "verbose_name_plural": "visitas",
                "ordering": ["-visit_date"],
            },
        ),
        migrations.AddIndex(
            model_name="visit",
            index=models.Index(fields=["customer", "-visit_date"], name="clubman_visit_cust_date_idx"),
        ),
        migrations.CreateModel(
            name="Redemption",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "status",
                    models.CharField(
                        choices=[("PENDING", "Pendiente"), ("REDEEMED", "Entregado")],
                        db_index=True,
                        default="PENDING",
                        max_length=20,
                        verbose_name="estado",
                    ),
                ),
                ("redemption_code", models.CharField(max_length=16, unique=True, verbose_name="código")),
                (
                    "source",
                    models.CharField(
                        choices=[
                            ("UNLOCK", "Desbloqueo"),
                            ("WELCOME_GIFT", "Regalo de bienvenida"),
                            ("RULE", "Regla"),
                        ],
                        default="UNLOCK",
                        max_length=20,
                        verbose_name="origen",
                    ),
                ),
                ("points_spent", models.PositiveIntegerField(default=0, verbose_name="puntos usados")),
                ("staff_id", models.CharField(blank=True, max_length=100, verbose_name="entregado por")),
                ("redeemed_at", models.DateTimeField(blank=True, null=True, verbose_name="entregado en")),
                ("evidence_ref", models.CharField(blank=True, max_length=500, verbose_name="evidencia")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="creado en")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="redemptions",
                        to="clubman.customer",
                        verbose_name="cliente",
                    ),
                ),
                (
                    "program",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="redemptions",
                        to="clubman.program",
                        verbose_name="programa",
                    ),
                ),
                (
                    "reward",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="redemptions",
                        to="clubman.reward",
                        verbose_name="premio",
                    ),
                ),
            ],
            options={
                "verbose_name": "canje",
                "verbose_name_plural": "canjes",
                "ordering": ["-created_at"],
            },
        ),
        migrations.AddIndex(
            model_name="redemption",
            index=models.Index(fields=["customer", "reward"], name="clubman_redemp_cust_rew_idx"),
        ),
        migrations.CreateModel(
            name="LoyaltyEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("VISIT", "Visita"),
                            ("SPEND", "Consumo"),
                            ("REFERRAL", "Referido"),
                            ("TIER_UP", "Subió de nivel"),
                            ("ADJUSTMENT", "Ajuste"),
                            ("REWARD_UNLOCKED", "Premio desbloqueado"),
                            ("REWARD_REDEEMED", "Premio entregado"),
                        ],
                        db_index=True,
                        max_length=30,
                        verbose_name="tipo",
                    ),
                ),
                ("metadata", models.JSONField(blank=True, default=dict, verbose_name="metadatos")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, verbose_name="creado en")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="events",
                        to="clubman.customer",
                        verbose_name="cliente",
                    ),
                ),
                (
                    "program",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="events",
                        to="clubman.program",
                        verbose_name="programa",
                    ),
                ),
            ],
            options={
                "verbose_name": "evento de lealtad",
                "verbose_name_plural": "eventos de lealtad",
                "ordering": ["-created_at", "-pk"],
            },
        ),
        migrations.AddIndex(
            model_name="loyaltyevent",
            index=models.Index(
                fields=["customer", "event_type", "-created_at"],
                name="clubman_event_cust_type_idx",
            ),
        ),
    ]
