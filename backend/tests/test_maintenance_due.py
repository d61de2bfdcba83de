"""保养到期计算"""
import pytest

from fleet_erp.services.maintenance_due import (
    STATUS_DUE,
    STATUS_OK,
    STATUS_WARNING,
    build_due_items,
    calculate_due_status,
    resolve_last_change_km,
    resolve_reference_km,
)


class TestCalculateDueStatus:

    @pytest.mark.parametrize("reference_km, expected", [
        (0, STATUS_OK),
        (8999, STATUS_OK),
        (9000, STATUS_WARNING),
        (9999, STATUS_WARNING),
        (10000, STATUS_DUE),
        (25000, STATUS_DUE),
    ])
    def test_boundaries(self, reference_km, expected):
        assert calculate_due_status(reference_km, 0, 10000, warning_ratio=0.1) == expected

    def test_uses_last_change_as_base(self):
        assert calculate_due_status(55000, 50000, 10000, warning_ratio=0.1) == STATUS_OK
        assert calculate_due_status(59500, 50000, 10000, warning_ratio=0.1) == STATUS_WARNING

    def test_default_ratio_from_settings(self, monkeypatch):
        from fleet_erp.core.config import settings
        monkeypatch.setattr(settings, "MAINTENANCE_WARNING_RATIO", 0.5)
        assert calculate_due_status(5000, 0, 10000) == STATUS_WARNING


class TestResolveKm:

    def test_reference_prefers_marking(self):
        assert resolve_reference_km(1200, 5000) == 1200

    def test_reference_falls_back_to_current(self):
        assert resolve_reference_km(None, 5000) == 5000
        assert resolve_reference_km(None, None) == 0

    def test_last_change_prefers_label(self):
        assert resolve_last_change_km(800, 1200, 5000) == 800

    def test_last_change_fallback_chain(self):
        assert resolve_last_change_km(None, 1200, 5000) == 1200
        assert resolve_last_change_km(None, None, 5000) == 5000
        assert resolve_last_change_km(None, None, None) == 0


def test_build_due_items():
    items = build_due_items(
        9500,
        [(1, "机油", 10000, 0), (2, "滤芯", 20000, 0), (3, "皮带", 5000, 4000)],
        warning_ratio=0.1,
    )
    assert [(i.id, i.next_change_km, i.status) for i in items] == [
        (1, 10000, STATUS_WARNING),
        (2, 20000, STATUS_OK),
        (3, 9000, STATUS_DUE),
    ]
    assert items[0].name == "机油"
