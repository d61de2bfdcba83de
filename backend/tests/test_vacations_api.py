"""假期 API 与状态同步任务"""
from datetime import date

from fleet_erp.services.scheduler import sync_vacation_statuses

API = "/api/v1/vacations"


def vacation_payload(employee: dict, start: str, end: str, days: int, **extra) -> dict:
    return {
        "employee_id": employee["id"],
        "branch_id": employee["branch_id"],
        "start_date": start,
        "end_date": end,
        "days": days,
        **extra,
    }


class TestCreateVacation:

    async def test_create_planned(self, client, employee_factory):
        employee = await employee_factory("王五")
        response = await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-01-05", "2026-01-14", 10, sold_days=5, net_total=2345.678,
        ))
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "PLANNED"
        assert body["employee_name"] == "王五"
        assert body["net_total"] == 2345.68

    async def test_start_must_precede_end(self, client, employee_factory):
        employee = await employee_factory("王五")
        response = await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-01-14", "2026-01-14", 1,
        ))
        assert response.status_code == 400

    async def test_days_must_match_period(self, client, employee_factory):
        employee = await employee_factory("王五")
        response = await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-01-05", "2026-01-14", 9,
        ))
        assert response.status_code == 400

    async def test_sold_days_limits(self, client, employee_factory):
        employee = await employee_factory("王五")
        response = await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-01-01", "2026-01-30", 30, sold_days=11,
        ))
        assert response.status_code == 400

        response = await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-01-01", "2026-01-05", 5, sold_days=6,
        ))
        assert response.status_code == 400

    async def test_overlap_rejected_unless_cancelled(self, client, employee_factory):
        employee = await employee_factory("王五")
        first = (await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-02-01", "2026-02-10", 10,
        ))).json()

        overlapping = vacation_payload(employee, "2026-02-10", "2026-02-19", 10)
        assert (await client.post(f"{API}/", json=overlapping)).status_code == 400

        await client.put(f"{API}/{first['id']}", json={"status": "CANCELLED"})
        assert (await client.post(f"{API}/", json=overlapping)).status_code == 200

    async def test_other_employee_may_overlap(self, client, employee_factory):
        first = await employee_factory("王五")
        second = await employee_factory("赵六")
        await client.post(f"{API}/", json=vacation_payload(first, "2026-02-01", "2026-02-10", 10))
        response = await client.post(f"{API}/", json=vacation_payload(second, "2026-02-01", "2026-02-10", 10))
        assert response.status_code == 200


class TestUpdateAndDelete:

    async def test_update_keeps_rules(self, client, employee_factory):
        employee = await employee_factory("王五")
        vacation = (await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-03-01", "2026-03-10", 10,
        ))).json()

        response = await client.put(f"{API}/{vacation['id']}", json={"end_date": "2026-03-15"})
        assert response.status_code == 400

        response = await client.put(f"{API}/{vacation['id']}", json={"end_date": "2026-03-15", "days": 15})
        assert response.status_code == 200
        assert response.json()["days"] == 15

    async def test_update_null_keeps_required_fields(self, client, employee_factory):
        employee = await employee_factory("王五")
        vacation = (await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-03-01", "2026-03-10", 10, advance_13th=True,
        ))).json()

        response = await client.put(f"{API}/{vacation['id']}", json={
            "advance_13th": None, "start_date": None, "days": None,
            "status": None, "observations": "改期待定",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["advance_13th"] is True
        assert body["start_date"] == "2026-03-01"
        assert body["days"] == 10
        assert body["status"] == "PLANNED"
        assert body["observations"] == "改期待定"

    async def test_completed_cannot_be_edited(self, client, employee_factory):
        employee = await employee_factory("王五")
        vacation = (await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-03-01", "2026-03-10", 10,
        ))).json()
        await client.put(f"{API}/{vacation['id']}", json={"status": "COMPLETED"})

        response = await client.put(f"{API}/{vacation['id']}", json={"observations": "x"})
        assert response.status_code == 400
        assert (await client.delete(f"{API}/{vacation['id']}")).status_code == 400

    async def test_delete_planned(self, client, employee_factory):
        employee = await employee_factory("王五")
        vacation = (await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-03-01", "2026-03-10", 10,
        ))).json()
        assert (await client.delete(f"{API}/{vacation['id']}")).status_code == 200
        assert (await client.get(f"{API}/{vacation['id']}")).status_code == 404


class TestVacationStatusSync:

    async def test_sync_advances_statuses(self, client, session_factory, employee_factory):
        employee = await employee_factory("王五")
        started = (await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-04-01", "2026-04-10", 10,
        ))).json()
        finished = (await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-03-01", "2026-03-10", 10,
        ))).json()
        future = (await client.post(f"{API}/", json=vacation_payload(
            employee, "2026-05-01", "2026-05-10", 10,
        ))).json()

        async with session_factory() as session:
            counts = await sync_vacation_statuses(session, today=date(2026, 4, 5))
        assert counts == {"started": 1, "completed": 1}

        assert (await client.get(f"{API}/{started['id']}")).json()["status"] == "IN_PROGRESS"
        assert (await client.get(f"{API}/{finished['id']}")).json()["status"] == "COMPLETED"
        assert (await client.get(f"{API}/{future['id']}")).json()["status"] == "PLANNED"

        # 进行中的假期不可删除
        assert (await client.delete(f"{API}/{started['id']}")).status_code == 400

        async with session_factory() as session:
            counts = await sync_vacation_statuses(session, today=date(2026, 4, 11))
        assert counts == {"started": 0, "completed": 1}

    async def test_sync_endpoint(self, client):
        response = await client.post("/api/v1/system/vacations/sync")
        assert response.status_code == 200
        assert response.json() == {"started": 0, "completed": 0}

    async def test_scheduler_status_when_not_started(self, client):
        response = await client.get("/api/v1/system/scheduler")
        assert response.status_code == 200
        assert response.json()["running"] is False
