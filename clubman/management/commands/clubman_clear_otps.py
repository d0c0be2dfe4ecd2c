"""Management command to clear expired one-time passwords."""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from clubman.models import Customer


class Command(BaseCommand):
    help = "Clear OTP codes that expired more than --grace minutes ago"

    def add_arguments(self, parser):
        parser.add_argument(
            "--grace",
            type=int,
            default=0,
            help="Keep codes expired less than this many minutes ago",
        )

    def handle(self, *args, **options):
        cutoff = timezone.now() - timedelta(minutes=options["grace"])
        cleared = Customer.objects.filter(otp_expires_at__lt=cutoff).update(
            otp_code="",
            otp_expires_at=None,
        )
        self.stdout.write(self.style.SUCCESS(f"Cleared {cleared} expired OTP codes."))
