from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from orderflow.core.config import get_settings
from orderflow.services.clock import local_wall_clock, resolve_timezone
from orderflow.services.sold_out import ResetMode, SkipReason, evaluate, is_due
from orderflow.services.stores.base import TenantSnapshot

START = datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc)


def hourly(start: datetime, hours: int) -> list[datetime]:
    return [start + timedelta(hours=h) for h in range(hours)]


def sweep(tenant: TenantSnapshot, ticks: list[datetime]) -> list[datetime]:
    """Apply is_due at every tick, stamping the tenant like the executor does."""
    resets = []
    for tick in ticks:
        if is_due(tick, tenant):
            resets.append(tick)
            tenant = replace(tenant, last_sold_out_reset_at=tick)
    return resets


ZONES = [
    TenantSnapshot(id="utc", timezone="UTC"),
    TenantSnapshot(id="ny", timezone="America/New_York"),
    TenantSnapshot(id="kolkata", timezone="Asia/Kolkata"),
    TenantSnapshot(id="chatham", timezone="Pacific/Chatham"),
    TenantSnapshot(id="offset", utc_offset_minutes=-210),
]


@pytest.mark.parametrize("tenant", ZONES, ids=lambda t: t.id)
def test_exactly_one_reset_per_day_at_local_midnight(tenant: TenantSnapshot) -> None:
    resets = sweep(tenant, hourly(START, 24))

    assert len(resets) == 1
    tz = resolve_timezone(tenant.timezone, tenant.utc_offset_minutes)
    assert local_wall_clock(resets[0], tz).hour == 0


@pytest.mark.parametrize("tenant", ZONES, ids=lambda t: t.id)
def test_exactly_one_reset_when_reset_yesterday(tenant: TenantSnapshot) -> None:
    tz = resolve_timezone(tenant.timezone, tenant.utc_offset_minutes)
    midnight_tick = next(t for t in hourly(START, 24) if local_wall_clock(t, tz).hour == 0)
    tenant = replace(tenant, last_sold_out_reset_at=midnight_tick - timedelta(days=1))

    assert sweep(tenant, hourly(START, 24)) == [midnight_tick]


def test_dst_end_day_has_one_reset() -> None:
    tenant = TenantSnapshot(id="ny", timezone="America/New_York")
    resets = sweep(tenant, hourly(datetime(2026, 10, 31, 12, tzinfo=timezone.utc), 48))

    assert resets == [
        datetime(2026, 11, 1, 4, tzinfo=timezone.utc),
        datetime(2026, 11, 2, 5, tzinfo=timezone.utc),
    ]


def test_same_instant_twice_is_noop() -> None:
    now = datetime(2026, 10, 19, 4, 0, tzinfo=timezone.utc)
    tenant = TenantSnapshot(id="ny", timezone="America/New_York")

    assert is_due(now, tenant)
    stamped = replace(tenant, last_sold_out_reset_at=now)
    assert not is_due(now, stamped)
    assert evaluate(now, stamped, ResetMode.SMART) == (False, SkipReason.ALREADY_RESET)


def test_missed_midnight_is_caught_up() -> None:
    tenant = TenantSnapshot(
        id="ny",
        timezone="America/New_York",
        last_sold_out_reset_at=datetime(2026, 10, 18, 4, 0, tzinfo=timezone.utc),
    )
    # The 04:00Z tick (local midnight) never ran; 07:00Z is 03:00 local
    late_tick = datetime(2026, 10, 19, 7, 0, tzinfo=timezone.utc)

    assert is_due(late_tick, tenant)
    assert not is_due(late_tick, tenant, catch_up=False)


def test_multi_day_outage_is_caught_up_once() -> None:
    tenant = TenantSnapshot(
        id="utc",
        timezone="UTC",
        last_sold_out_reset_at=datetime(2026, 10, 15, 0, 5, tzinfo=timezone.utc),
    )
    resets = sweep(tenant, hourly(datetime(2026, 10, 19, 10, tzinfo=timezone.utc), 10))

    assert resets == [datetime(2026, 10, 19, 10, tzinfo=timezone.utc)]


def test_never_reset_tenant_waits_for_midnight() -> None:
    tenant = TenantSnapshot(id="ny", timezone="America/New_York")
    noon_local = datetime(2026, 10, 19, 16, 0, tzinfo=timezone.utc)

    assert evaluate(noon_local, tenant, ResetMode.SMART) == (False, SkipReason.NOT_DUE)


def test_all_mode_ignores_the_clock() -> None:
    tenant = TenantSnapshot(
        id="ny",
        timezone="America/New_York",
        last_sold_out_reset_at=datetime(2026, 10, 19, 4, 0, tzinfo=timezone.utc),
    )
    noon_local = datetime(2026, 10, 19, 16, 0, tzinfo=timezone.utc)

    assert evaluate(noon_local, tenant, ResetMode.ALL) == (True, None)


def test_inactive_tenant_is_never_due() -> None:
    tenant = TenantSnapshot(id="closed", timezone="UTC", is_active=False)

    assert evaluate(START, tenant, ResetMode.ALL) == (False, SkipReason.INACTIVE)


def test_unknown_timezone_falls_back_to_utc() -> None:
    tenant = TenantSnapshot(id="bad", timezone="Mars/Olympus_Mons")

    assert is_due(datetime(2026, 10, 19, 0, 30, tzinfo=timezone.utc), tenant)
    assert not is_due(datetime(2026, 10, 19, 5, 0, tzinfo=timezone.utc), tenant)


def test_tenant_without_timezone_uses_configured_default(monkeypatch) -> None:
    monkeypatch.setattr(get_settings(), "default_timezone", "America/New_York")
    tenant = TenantSnapshot(id="no-tz")

    # 04:00Z is midnight in New York (EDT), 00:00Z is 20:00 the day before
    assert is_due(datetime(2026, 10, 19, 4, 0, tzinfo=timezone.utc), tenant)
    assert not is_due(START, tenant)


def test_configured_default_does_not_override_tenant_offset(monkeypatch) -> None:
    monkeypatch.setattr(get_settings(), "default_timezone", "America/New_York")
    tenant = TenantSnapshot(id="offset", utc_offset_minutes=0)

    assert is_due(START, tenant)


def test_unknown_default_timezone_falls_back_to_utc(monkeypatch) -> None:
    monkeypatch.setattr(get_settings(), "default_timezone", "Nowhere/Special")

    assert is_due(START, TenantSnapshot(id="no-tz"))
