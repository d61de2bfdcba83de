"""维修单：新建、作业流转、完成与取消"""
from datetime import datetime

from tests.utils import operator_headers

API = "/api/v1/maintenance-orders"


async def create_product(client, branch_id: int, name: str = "刹车油", unit_price: float = 35.9) -> dict:
    response = await client.post("/api/v1/products/", json={
        "branch_id": branch_id, "name": name, "unit_price": unit_price,
    })
    assert response.status_code == 200, response.text
    return response.json()


async def create_order(client, vehicle: dict, **extra) -> dict:
    response = await client.post(f"{API}/", json={
        "vehicle_id": vehicle["id"],
        "branch_id": vehicle["branch_id"],
        "type": "CORRECTIVE",
        **extra,
    })
    assert response.status_code == 200, response.text
    return response.json()


def events(order: dict) -> list:
    return [entry["event"] for entry in order["timeline"]]


class TestCreateOrder:

    async def test_create_with_children(self, client, branch, vehicle, employee_factory):
        mechanic = await employee_factory("老周")
        product = await create_product(client, branch.id)

        order = await create_order(
            client, vehicle,
            km_at_entry=12000,
            description="刹车异响",
            workers=[{"employee_id": mechanic["id"], "is_responsible": True}],
            services=[{"description": "更换刹车片", "cost": 200.555}],
            materials=[{"product_id": product["id"], "quantity": 2.5}],
        )
        assert order["order_number"] == f"OM-{datetime.now().year}-001"
        assert order["status"] == "OPEN"
        assert order["status_display"] == "待开始"
        assert order["branch_name"] == "总部"
        assert order["vehicle_plate"] == "ABC1234"
        assert order["workers"][0]["employee_name"] == "老周"
        assert order["workers"][0]["is_responsible"] is True
        assert order["services"][0]["cost"] == 200.56
        material = order["materials"][0]
        assert material["unit_cost"] == 35.9
        assert material["total_cost"] == 89.75
        assert order["total_cost"] == 290.31
        assert events(order) == ["STARTED"]

        detail = (await client.get(f"/api/v1/vehicles/{vehicle['id']}")).json()
        assert detail["status"] == "MAINTENANCE"
        assert detail["current_km"] == 12000

        history = (await client.get(f"/api/v1/vehicles/{vehicle['id']}/status-history")).json()
        assert history[0]["status"] == "MAINTENANCE"
        assert history[0]["maintenance_order_id"] == order["id"]

    async def test_changed_items_create_label(self, client, vehicle):
        oil_id = vehicle["replacement_items"][0]["id"]
        await create_order(client, vehicle, km_at_entry=9800, replacement_items_changed=[oil_id])

        labels = (await client.get("/api/v1/maintenance-labels/", params={"vehicle_id": vehicle["id"]})).json()
        assert labels["total"] == 1
        items = labels["data"][0]["items"]
        assert [(i["replacement_item_id"], i["last_change_km"]) for i in items] == [(oil_id, 9800)]

    async def test_rejects_items_not_on_vehicle(self, client, vehicle):
        response = await client.post(f"{API}/", json={
            "vehicle_id": vehicle["id"], "branch_id": vehicle["branch_id"],
            "type": "PREVENTIVE", "replacement_items_changed": [4242],
        })
        assert response.status_code == 400

    async def test_vehicle_must_belong_to_branch(self, client, other_branch, vehicle):
        response = await client.post(f"{API}/", json={
            "vehicle_id": vehicle["id"], "branch_id": other_branch.id, "type": "PREVENTIVE",
        })
        assert response.status_code == 404

        response = await client.post(f"{API}/", json={
            "vehicle_id": 999, "branch_id": vehicle["branch_id"], "type": "PREVENTIVE",
        })
        assert response.status_code == 404

    async def test_worker_and_product_of_other_branch(self, client, other_branch, vehicle, employee_factory):
        outsider = await employee_factory("外援", branch_id=other_branch.id)
        response = await client.post(f"{API}/", json={
            "vehicle_id": vehicle["id"], "branch_id": vehicle["branch_id"], "type": "CORRECTIVE",
            "workers": [{"employee_id": outsider["id"]}],
        })
        assert response.status_code == 404

        product = await create_product(client, other_branch.id)
        response = await client.post(f"{API}/", json={
            "vehicle_id": vehicle["id"], "branch_id": vehicle["branch_id"], "type": "CORRECTIVE",
            "materials": [{"product_id": product["id"], "quantity": 1}],
        })
        assert response.status_code == 404

        # 校验失败不改变车辆状态
        detail = (await client.get(f"/api/v1/vehicles/{vehicle['id']}")).json()
        assert detail["status"] == "ACTIVE"

    async def test_invalid_type(self, client, vehicle):
        response = await client.post(f"{API}/", json={
            "vehicle_id": vehicle["id"], "branch_id": vehicle["branch_id"], "type": "COSMETIC",
        })
        assert response.status_code == 422


class TestOrderLifecycle:

    async def test_start_pause_resume_complete(self, client, branch, vehicle):
        order = await create_order(
            client, vehicle, km_at_entry=15000,
            services=[{"description": "更换离合器", "cost": 480}],
        )
        order_id = order["id"]

        assert (await client.post(f"{API}/{order_id}/pause")).status_code == 400

        started = (await client.post(f"{API}/{order_id}/start")).json()
        assert started["status"] == "IN_PROGRESS"
        paused = (await client.post(f"{API}/{order_id}/pause", json={"notes": "等配件"})).json()
        assert paused["status"] == "PAUSED"
        assert paused["timeline"][-1]["notes"] == "等配件"
        resumed = (await client.post(f"{API}/{order_id}/start")).json()
        assert events(resumed) == ["STARTED", "STARTED", "PAUSED", "RESUMED"]

        response = await client.post(f"{API}/{order_id}/complete")
        assert response.status_code == 200
        completed = response.json()
        assert completed["status"] == "COMPLETED"
        assert completed["total_cost"] == 480
        assert completed["total_time_minutes"] == 0
        assert events(completed)[-1] == "COMPLETED"

        detail = (await client.get(f"/api/v1/vehicles/{vehicle['id']}")).json()
        assert detail["status"] == "ACTIVE"
        assert detail["current_km"] == 15000

        history = (await client.get(f"/api/v1/vehicles/{vehicle['id']}/status-history")).json()
        linked = {h["status"] for h in history if h["maintenance_order_id"] == order_id}
        assert linked == {"MAINTENANCE", "ACTIVE"}

        payables = (await client.get("/api/v1/accounts-payable/")).json()
        assert payables["total"] == 1
        payable = payables["data"][0]
        assert payable["description"] == f"维修单 {order['order_number']} - ABC1234"
        assert payable["amount"] == 480
        assert payable["origin_type"] == "MAINTENANCE"
        assert payable["origin_id"] == order_id
        assert payable["status"] == "PENDING"

    async def test_closed_order_is_locked(self, client, vehicle):
        order = await create_order(client, vehicle)
        await client.post(f"{API}/{order['id']}/complete")

        assert (await client.post(f"{API}/{order['id']}/complete")).status_code == 400
        assert (await client.post(f"{API}/{order['id']}/cancel")).status_code == 400
        assert (await client.post(f"{API}/{order['id']}/start")).status_code == 400
        assert (await client.put(f"{API}/{order['id']}", json={"description": "x"})).status_code == 400

    async def test_complete_without_cost_has_no_payable(self, client, vehicle):
        order = await create_order(client, vehicle)
        completed = (await client.post(f"{API}/{order['id']}/complete")).json()
        assert completed["total_cost"] == 0
        assert (await client.get("/api/v1/accounts-payable/")).json()["total"] == 0

    async def test_cancel_releases_vehicle(self, client, vehicle):
        order = await create_order(client, vehicle, services=[{"description": "检查", "cost": 50}])
        response = await client.post(f"{API}/{order['id']}/cancel", json={"notes": "客户撤回"})
        assert response.status_code == 200
        cancelled = response.json()
        assert cancelled["status"] == "CANCELLED"
        assert cancelled["timeline"][-1]["notes"] == "客户撤回"

        detail = (await client.get(f"/api/v1/vehicles/{vehicle['id']}")).json()
        assert detail["status"] == "ACTIVE"
        assert (await client.get("/api/v1/accounts-payable/")).json()["total"] == 0

    async def test_actions_record_audit_entries(self, client, vehicle):
        order = await create_order(client, vehicle)
        await client.post(f"{API}/{order['id']}/complete")

        logs = (await client.get("/api/v1/audit-logs/", params={"resource_type": "maintenance_order"})).json()
        assert sorted(log["action"] for log in logs["data"]) == ["complete", "create"]

    async def test_complete_requires_permission(self, client, branch, vehicle):
        order = await create_order(client, vehicle)
        headers = operator_headers(branch.id, "maintenance.update")
        assert (await client.post(f"{API}/{order['id']}/start", headers=headers)).status_code == 200
        assert (await client.post(f"{API}/{order['id']}/complete", headers=headers)).status_code == 403
        assert (await client.post(f"{API}/{order['id']}/cancel", headers=headers)).status_code == 403


class TestUpdateAndDelete:

    async def test_update_replaces_services(self, client, vehicle, employee_factory):
        order = await create_order(client, vehicle, services=[{"description": "旧项目", "cost": 100}])
        mechanic = await employee_factory("老周")

        response = await client.put(f"{API}/{order['id']}", json={
            "observations": "追加检查",
            "services": [{"description": "更换轮胎", "cost": 600}, {"description": "动平衡", "cost": 80}],
            "workers": [{"employee_id": mechanic["id"]}],
        })
        assert response.status_code == 200
        body = response.json()
        assert [s["description"] for s in body["services"]] == ["更换轮胎", "动平衡"]
        assert body["total_cost"] == 680
        assert body["observations"] == "追加检查"
        assert [w["employee_id"] for w in body["workers"]] == [mechanic["id"]]

    async def test_duplicate_worker(self, client, vehicle, employee_factory):
        mechanic = await employee_factory("老周")
        order = await create_order(client, vehicle)
        response = await client.put(f"{API}/{order['id']}", json={
            "workers": [{"employee_id": mechanic["id"]}, {"employee_id": mechanic["id"]}],
        })
        assert response.status_code == 400

    async def test_soft_delete(self, client, vehicle):
        order = await create_order(client, vehicle)
        response = await client.delete(f"{API}/{order['id']}")
        assert response.status_code == 200
        assert response.json()["message"] == "维修单已删除"
        assert (await client.get(f"{API}/{order['id']}")).status_code == 404
        assert (await client.post(f"{API}/{order['id']}/start")).status_code == 404
