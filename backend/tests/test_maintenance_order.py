"""维修单作业时长与费用计算"""
from datetime import datetime, timedelta
from decimal import Decimal

from fleet_erp.services.maintenance_order import (
    calculate_order_cost, calculate_total_minutes, material_total, round_quantity
)

T0 = datetime(2026, 5, 4, 8, 0, 0)


def at(minutes: float) -> datetime:
    return T0 + timedelta(minutes=minutes)


class TestTotalMinutes:

    def test_pause_excluded(self):
        events = [
            ("STARTED", at(0)),
            ("PAUSED", at(30)),
            ("RESUMED", at(90)),
            ("COMPLETED", at(100)),
        ]
        assert calculate_total_minutes(events) == 40

    def test_each_session_floored(self):
        events = [
            ("STARTED", at(0)),
            ("PAUSED", at(10.9)),
            ("RESUMED", at(20)),
            ("COMPLETED", at(30.9)),
        ]
        assert calculate_total_minutes(events) == 20

    def test_open_session_runs_until_now(self):
        assert calculate_total_minutes([("STARTED", at(0))], now=at(45)) == 45

    def test_repeated_start_closes_previous_session(self):
        events = [("STARTED", at(0)), ("STARTED", at(15)), ("CANCELLED", at(20))]
        assert calculate_total_minutes(events) == 20

    def test_no_sessions(self):
        assert calculate_total_minutes([]) == 0
        assert calculate_total_minutes([("PAUSED", at(5))]) == 0


class TestOrderCost:

    def test_services_and_materials(self):
        assert calculate_order_cost([200.555, 10], [Decimal("89.75")]) == Decimal("300.31")

    def test_stored_total_kept_without_items(self):
        assert calculate_order_cost([], [], Decimal("150.46")) == Decimal("150.46")
        assert calculate_order_cost([], []) == Decimal("0.00")

    def test_items_override_stored_total(self):
        assert calculate_order_cost([5], [], Decimal("150.46")) == Decimal("5.00")

    def test_material_total(self):
        assert material_total(2.5, 35.9) == Decimal("89.75")
        assert material_total(0.3333, 10) == Decimal("3.33")
        assert round_quantity(1.23456) == Decimal("1.235")
