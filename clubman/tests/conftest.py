"""Pytest fixtures for Clubman tests."""

from datetime import timedelta

import pytest
from django.utils import timezone

from clubman.models import GIFT_SENTINEL, Customer, Program, Reward, Tier


class FakeSession:
    """In-memory SessionStore."""

    def __init__(self):
        self.token = None

    def set_session(self, token):
        self.token = token

    def get_session_token(self):
        return self.token

    def clear_session(self):
        self.token = None


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def program(db):
    """Visits-only program (no points)."""
    return Program.objects.create(
        owner_ref="owner-1",
        business_name="Café Central",
    )


@pytest.fixture
def points_program(db):
    """Program earning 10 points per 100 spent."""
    return Program.objects.create(
        owner_ref="owner-2",
        business_name="Taquería Norte",
        points_percentage=10,
    )


@pytest.fixture
def customer(program):
    return Customer.objects.create(
        program=program,
        phone="+52 55 1234 5678",
        name="Ana",
        token="tok-ana",
    )


@pytest.fixture
def points_customer(points_program):
    return Customer.objects.create(
        program=points_program,
        phone="5550001111",
        name="Luis",
        token="tok-luis",
    )


@pytest.fixture
def tiers(program):
    """Bronze (base), Silver at 5 visits, Gold at 10 visits."""
    return [
        Tier.objects.create(program=program, name="Bronce", order=0),
        Tier.objects.create(program=program, name="Plata", order=1, required_visits=5),
        Tier.objects.create(program=program, name="Oro", order=2, required_visits=10),
    ]


@pytest.fixture
def ladder_reward(program):
    """Visits-mode reward at 3 visits."""
    return Reward.objects.create(program=program, name="Café gratis", cost_in_visits=3)


@pytest.fixture
def points_reward(points_program):
    """Points-mode reward costing 50 points."""
    return Reward.objects.create(program=points_program, name="Postre", cost_in_points=50)


@pytest.fixture
def welcome_gift(program):
    program.enable_first_visit_gift = True
    program.first_visit_gift_text = "Galleta de regalo"
    program.save()
    return Reward.objects.create(
        program=program,
        name="Galleta de regalo",
        description=GIFT_SENTINEL,
    )


@pytest.fixture
def rewind_last_visit():
    """Move a customer's last visit back in time to clear the cooldown."""

    def _rewind(customer, minutes=61):
        Customer.objects.filter(pk=customer.pk).update(
            last_visit_date=timezone.now() - timedelta(minutes=minutes)
        )
        customer.refresh_from_db()

    return _rewind
