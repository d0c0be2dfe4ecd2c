"""Clubman admin.

Configuration models are editable. Ledger models (Visit, Redemption,
LoyaltyEvent) are read-only here: they change only through
clubman.services.
"""

from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html

from clubman.models import (
    Customer,
    LoyaltyEvent,
    Notification,
    Program,
    Promotion,
    Redemption,
    Reward,
    Rule,
    Tier,
    Visit,
)


class ReadOnlyAdminMixin:
    """Ledger rows are written by services only."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ===========================================
# Program Admin
# ===========================================


class TierInline(admin.TabularInline):
    model = Tier
    extra = 0
    fields = ["order", "name", "required_visits", "required_points", "color"]
    ordering = ["order", "pk"]


class RewardInline(admin.TabularInline):
    model = Reward
    extra = 0
    fields = ["name", "cost_in_visits", "cost_in_points", "validity_days", "is_active"]


class PromotionInline(admin.TabularInline):
    model = Promotion
    extra = 0
    fields = ["title", "image_url", "is_active"]


@admin.register(Program)
class ProgramAdmin(admin.ModelAdmin):
    list_display = [
        "business_name",
        "owner_ref",
        "program_type_display",
        "points_percentage",
        "enable_first_visit_gift",
        "customer_count",
        "is_active",
    ]
    list_filter = ["is_active", "enable_first_visit_gift"]
    search_fields = ["business_name", "owner_ref"]
    readonly_fields = ["created_at", "updated_at"]
    inlines = [TierInline, RewardInline, PromotionInline]

    fieldsets = [
        ("Negocio", {"fields": ["owner_ref", "business_name", "description", "is_active"]}),
        ("Puntos", {"fields": ["points_percentage"]}),
        ("Regalo de bienvenida", {"fields": ["enable_first_visit_gift", "first_visit_gift_text"]}),
        (
            "Tarjeta",
            {
                "fields": ["theme_color", "logo_url", "card_design"],
                "classes": ["collapse"],
            },
        ),
        (
            "Metadata",
            {
                "fields": ["created_at", "updated_at"],
                "classes": ["collapse"],
            },
        ),
    ]

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        from clubman.services.program import sync_welcome_gift

        sync_welcome_gift(obj.pk)

    def program_type_display(self, obj):
        return obj.program_type.label

    program_type_display.short_description = "Tipo"

    def customer_count(self, obj):
        return obj.customers.count()

    customer_count.short_description = "Clientes"


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ["title", "program", "created_at"]
    list_filter = ["program"]
    search_fields = ["title", "message"]
    raw_id_fields = ["program"]
    readonly_fields = ["created_at"]
    date_hierarchy = "created_at"

    def save_model(self, request, obj, form, change):
        if change:
            super().save_model(request, obj, form, change)
            return
        from clubman.services.notifications import send

        sent = send(obj.program_id, obj.title, obj.message)
        obj.pk = sent.pk
        obj.created_at = sent.created_at


@admin.register(Rule)
class RuleAdmin(admin.ModelAdmin):
    list_display = ["name", "program", "trigger", "reward", "is_active"]
    list_filter = ["trigger", "is_active"]
    search_fields = ["name", "program__business_name"]
    raw_id_fields = ["program", "reward"]


@admin.register(Reward)
class RewardAdmin(admin.ModelAdmin):
    list_display = ["name", "program", "cost_display", "is_active"]
    list_filter = ["is_active"]
    search_fields = ["name", "program__business_name"]
    raw_id_fields = ["program"]

    def cost_display(self, obj):
        if obj.is_welcome_gift:
            return "Regalo"
        if obj.is_points_mode:
            return f"{obj.cost_in_points} pts"
        return f"{obj.cost_in_visits} visitas"

    cost_display.short_description = "Costo"


# ===========================================
# Customer Admin
# ===========================================


class RedemptionInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = Redemption
    extra = 0
    fields = ["redemption_code", "reward", "status", "source", "points_spent", "redeemed_at"]
    readonly_fields = fields
    ordering = ["-created_at"]


class RecentEventsInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = LoyaltyEvent
    extra = 0
    fields = ["event_type", "metadata", "created_at"]
    readonly_fields = fields
    ordering = ["-created_at"]
    max_num = 10
    verbose_name_plural = "Eventos (últimos 10)"


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = [
        "display_name",
        "phone",
        "program",
        "tier_badge",
        "current_visits",
        "current_points",
        "last_visit_date",
    ]
    list_filter = ["program", "tier", "is_phone_verified"]
    search_fields = ["name", "phone", "email", "external_user_id"]
    raw_id_fields = ["program"]
    readonly_fields = [
        "token",
        "tier",
        "total_visits",
        "current_visits",
        "total_points",
        "current_points",
        "average_rating",
        "rating_count",
        "last_visit_date",
        "last_notification_read_at",
        "created_at",
        "updated_at",
    ]
    inlines = [RedemptionInline, RecentEventsInline]

    fieldsets = [
        ("Identificación", {"fields": ["program", "phone", "name", "email", "token"]}),
        ("Perfil", {"fields": ["photo_url", "birthday", "external_user_id", "is_phone_verified"]}),
        (
            "Saldo",
            {
                "fields": [
                    "tier",
                    ("total_visits", "current_visits"),
                    ("total_points", "current_points"),
                    ("average_rating", "rating_count"),
                    "last_visit_date",
                    "last_notification_read_at",
                ]
            },
        ),
        (
            "Metadata",
            {
                "fields": ["created_at", "updated_at"],
                "classes": ["collapse"],
            },
        ),
    ]

    def tier_badge(self, obj):
        if not obj.tier_id:
            return "-"
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:3px; font-size:11px;">{}</span>',
            obj.tier.color or "#6c757d",
            obj.tier.name,
        )

    tier_badge.short_description = "Nivel"


# ===========================================
# Ledger Admin (read-only)
# ===========================================


@admin.register(Visit)
class VisitAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["visit_date", "customer_link", "staff_id", "spend_amount", "points_earned", "rating"]
    list_filter = ["program"]
    search_fields = ["customer__phone", "customer__name", "staff_id"]
    date_hierarchy = "visit_date"

    def customer_link(self, obj):
        url = reverse("admin:clubman_customer_change", args=[obj.customer_id])
        return format_html('<a href="{}">{}</a>', url, obj.customer.display_name)

    customer_link.short_description = "Cliente"


@admin.register(Redemption)
class RedemptionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["redemption_code", "customer", "reward", "status_badge", "source", "created_at"]
    list_filter = ["status", "source", "program"]
    search_fields = ["redemption_code", "customer__phone", "customer__name"]
    date_hierarchy = "created_at"

    def status_badge(self, obj):
        color = "#28a745" if obj.is_redeemed else "#ffc107"
        return format_html('<span style="color:{}">{}</span>', color, obj.get_status_display())

    status_badge.short_description = "Estado"


@admin.register(LoyaltyEvent)
class LoyaltyEventAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ["created_at", "customer", "event_type", "program"]
    list_filter = ["event_type", "program"]
    search_fields = ["customer__phone", "customer__name"]
    date_hierarchy = "created_at"
