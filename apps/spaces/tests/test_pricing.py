from datetime import date, time
from decimal import Decimal

import pytest

from apps.spaces.models import BookingSettings, ExceptionalClosure, PricingTier, SpaceConfiguration
from apps.spaces.services import (
    PricingError,
    business_days_until,
    calculate_deposit_cents,
    calculate_price,
    charge_percentage_for,
    find_closure,
    get_cancellation_policy,
)


@pytest.fixture
def meeting_room(db):
    space = SpaceConfiguration.objects.create(
        space_type="meeting-room-glass",
        name="Salle Verrière",
        min_capacity=1,
        max_capacity=12,
        hourly_price=Decimal("30.00"),
        daily_price=Decimal("180.00"),
        per_person=False,
        is_exclusive=True,
    )
    PricingTier.objects.create(
        space=space,
        min_people=1,
        max_people=4,
        hourly_rate=Decimal("25.00"),
        daily_rate=Decimal("150.00"),
        extra_person_hourly=Decimal("5.00"),
        extra_person_daily=Decimal("20.00"),
    )
    return space


@pytest.fixture
def open_space(db):
    return SpaceConfiguration.objects.create(
        space_type="open-space",
        name="Open space",
        min_capacity=1,
        max_capacity=40,
        hourly_price=Decimal("6.00"),
        daily_price=Decimal("29.00"),
        weekly_price=Decimal("99.00"),
        monthly_price=Decimal("290.00"),
        per_person=True,
    )


def test_tier_within_range_uses_tier_rate(meeting_room):
    quote = calculate_price(
        meeting_room, "hourly", number_of_people=3, start_time=time(9, 0), end_time=time(11, 0)
    )
    assert quote.total_price == Decimal("50.00")
    assert quote.duration_unit == "hours"
    assert quote.tier is not None


def test_tier_exceeded_adds_extra_person_rate(meeting_room):
    quote = calculate_price(
        meeting_room, "hourly", number_of_people=6, start_time=time(9, 0), end_time=time(10, 30)
    )
    # 25 * 1.5 + (6 - 4) * 5 * 1.5
    assert quote.base_price == Decimal("37.50")
    assert quote.extra_charge == Decimal("15.00")
    assert quote.total_price == Decimal("52.50")


def test_daily_tier_ignores_duration(meeting_room):
    quote = calculate_price(meeting_room, "daily", number_of_people=2)
    assert quote.total_price == Decimal("150.00")
    assert quote.duration_unit == "days"


def test_per_person_multiplier_without_tiers(open_space):
    quote = calculate_price(open_space, "daily", number_of_people=3)
    assert quote.total_price == Decimal("87.00")


def test_weekly_and_monthly_durations(open_space):
    weekly = calculate_price(open_space, "weekly", number_of_people=1)
    monthly = calculate_price(open_space, "monthly", number_of_people=1)
    assert weekly.duration == Decimal("7.00")
    assert monthly.duration == Decimal("30.00")
    assert monthly.total_price == Decimal("290.00")


def test_capacity_is_enforced(meeting_room):
    with pytest.raises(PricingError):
        calculate_price(meeting_room, "daily", number_of_people=13)


def test_hourly_requires_positive_duration(open_space):
    with pytest.raises(PricingError):
        calculate_price(open_space, "hourly", number_of_people=1, start_time=time(10), end_time=time(10))


def test_deposit_without_policy_holds_full_price(open_space):
    assert calculate_deposit_cents(open_space, Decimal("87.50")) == 8750


def test_deposit_percentage_with_minimum(open_space):
    open_space.deposit_enabled = True
    open_space.deposit_percentage = Decimal("30")
    open_space.deposit_minimum_amount = 2000
    assert calculate_deposit_cents(open_space, Decimal("200.00")) == 6000
    assert calculate_deposit_cents(open_space, Decimal("50.00")) == 2000


def test_deposit_fixed_amount_beats_percentage(open_space):
    open_space.deposit_enabled = True
    open_space.deposit_percentage = Decimal("50")
    open_space.deposit_fixed_amount = 5000
    assert calculate_deposit_cents(open_space, Decimal("400.00")) == 5000


def test_business_days_skip_weekends():
    friday = date(2025, 3, 7)
    assert business_days_until(date(2025, 3, 10), today=friday) == 1
    assert business_days_until(date(2025, 3, 14), today=friday) == 5
    assert business_days_until(friday, today=friday) == 0


@pytest.mark.django_db
def test_default_policies_and_override():
    meeting = get_cancellation_policy("salle-etage")
    assert [tier["days_before_booking"] for tier in meeting] == [22, 15, 8, 0]
    assert charge_percentage_for(meeting, 10) == 50
    assert charge_percentage_for(get_cancellation_policy("open-space"), 4) == 50

    settings_obj = BookingSettings.load()
    settings_obj.open_space_cancellation_policy = [
        {"days_before_booking": 0, "charge_percentage": 20},
        {"days_before_booking": 2, "charge_percentage": 0},
    ]
    settings_obj.save()
    policy = get_cancellation_policy("open-space")
    assert charge_percentage_for(policy, 1) == 20
    assert charge_percentage_for(policy, 5) == 0


@pytest.mark.django_db
def test_partial_closure_only_blocks_overlapping_slots():
    day = date(2025, 6, 2)
    ExceptionalClosure.objects.create(
        date=day, reason="Travaux", is_full_day=False, start_time=time(14), end_time=time(18)
    )
    assert find_closure(day, "open-space", time(9), time(12)) is None
    assert find_closure(day, "open-space", time(13), time(15)) is not None
