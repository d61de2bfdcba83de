"""保养标签、到期计算与路边更换登记"""
from datetime import datetime

from tests.utils import operator_headers

API = "/api/v1/maintenance-labels"


async def mark(client, vehicle_id: int, branch_id: int, km: int):
    response = await client.post("/api/v1/vehicle-markings/", json={
        "vehicle_id": vehicle_id, "branch_id": branch_id, "km": km,
    })
    assert response.status_code == 200, response.text


def statuses(due: dict) -> dict:
    return {item["product_name"]: item["status"] for item in due["items"]}


class TestMaintenanceDue:

    async def test_new_vehicle_is_ok(self, client, vehicle):
        due = (await client.get(f"{API}/due/{vehicle['id']}")).json()
        assert due["reference_km"] == 0
        assert statuses(due) == {"机油": "ok", "滤芯": "ok"}
        oil = due["items"][0]
        assert oil["product_id"] == vehicle["replacement_items"][0]["id"]
        assert oil["next_change_km"] == 10000

    async def test_warning_then_due(self, client, branch, vehicle):
        label = await client.post(f"{API}/", json={"vehicle_id": vehicle["id"], "branch_id": branch.id})
        assert label.status_code == 200
        assert [i["last_change_km"] for i in label.json()["items"]] == [0, 0]

        await mark(client, vehicle["id"], branch.id, 9500)
        due = (await client.get(f"{API}/due/{vehicle['id']}")).json()
        assert due["reference_km"] == 9500
        assert statuses(due) == {"机油": "warning", "滤芯": "ok"}

        await mark(client, vehicle["id"], branch.id, 10000)
        due = (await client.get(f"{API}/due/{vehicle['id']}")).json()
        assert statuses(due) == {"机油": "due", "滤芯": "ok"}

    async def test_without_label_last_change_follows_marking(self, client, branch, vehicle):
        await mark(client, vehicle["id"], branch.id, 9500)
        due = (await client.get(f"{API}/due/{vehicle['id']}")).json()
        assert [i["last_change_km"] for i in due["items"]] == [9500, 9500]
        assert statuses(due) == {"机油": "ok", "滤芯": "ok"}

    async def test_unknown_vehicle(self, client):
        assert (await client.get(f"{API}/due/999")).status_code == 404


class TestLabels:

    async def test_create_with_selected_items(self, client, branch, vehicle):
        filter_id = vehicle["replacement_items"][1]["id"]
        response = await client.post(f"{API}/", json={
            "vehicle_id": vehicle["id"], "branch_id": branch.id, "product_ids": [filter_id],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["vehicle_plate"] == "ABC1234"
        assert [i["replacement_item_id"] for i in body["items"]] == [filter_id]
        assert body["items"][0]["next_change_km"] == 20000

        listing = (await client.get(f"{API}/", params={"vehicle_id": vehicle["id"]})).json()
        assert listing["total"] == 1

    async def test_item_not_on_vehicle(self, client, branch, vehicle):
        response = await client.post(f"{API}/", json={
            "vehicle_id": vehicle["id"], "branch_id": branch.id, "product_ids": [12345],
        })
        assert response.status_code == 400

    async def test_vehicle_without_items(self, client, branch):
        created = await client.post("/api/v1/vehicles/", json={
            "branch_id": branch.id, "plates": [{"type": "CAVALO", "plate": "NOI0001"}],
        })
        response = await client.post(f"{API}/", json={
            "vehicle_id": created.json()["id"], "branch_id": branch.id,
        })
        assert response.status_code == 400

    async def test_delete(self, client, branch, vehicle):
        label = (await client.post(f"{API}/", json={
            "vehicle_id": vehicle["id"], "branch_id": branch.id,
        })).json()
        assert (await client.delete(f"{API}/{label['id']}")).status_code == 200
        assert (await client.get(f"{API}/{label['id']}")).status_code == 404

    async def test_removed_replacement_item_drops_label_items(self, client, branch, vehicle):
        await client.post(f"{API}/", json={"vehicle_id": vehicle["id"], "branch_id": branch.id})
        oil = vehicle["replacement_items"][0]
        await client.put(f"/api/v1/vehicles/{vehicle['id']}", json={
            "replacement_items": [{"id": oil["id"], "name": oil["name"], "replace_every_km": 10000}],
        })
        label = (await client.get(f"{API}/")).json()["data"][0]
        assert [i["replacement_item_id"] for i in label["items"]] == [oil["id"]]


class TestRegisterChange:

    async def test_creates_label_order_and_payable(self, client, branch, vehicle):
        oil_id, filter_id = (r["id"] for r in vehicle["replacement_items"])
        response = await client.post(f"{API}/register-change", json={
            "vehicle_id": vehicle["id"],
            "branch_id": branch.id,
            "change_km": 10200,
            "items": [
                {"replacement_item_id": oil_id, "cost": 150.456},
                {"replacement_item_id": filter_id, "cost": -10},
            ],
        })
        assert response.status_code == 200
        order_id = response.json()["order_id"]

        order = (await client.get(f"/api/v1/maintenance-orders/{order_id}")).json()
        assert order["order_number"] == f"OM-{datetime.now().year}-001"
        assert order["type"] == "PREVENTIVE"
        assert order["status"] == "COMPLETED"
        assert order["km_at_entry"] == 10200
        assert order["total_cost"] == 150.46

        detail = (await client.get(f"/api/v1/vehicles/{vehicle['id']}")).json()
        assert detail["current_km"] == 10200

        history = (await client.get(f"/api/v1/vehicles/{vehicle['id']}/status-history")).json()
        assert history[0]["maintenance_order_id"] == order_id

        payables = (await client.get("/api/v1/accounts-payable/")).json()
        assert payables["total"] == 1
        payable = payables["data"][0]
        assert payable["amount"] == 150.46
        assert payable["origin_type"] == "MAINTENANCE"
        assert payable["origin_id"] == order_id
        assert payable["status"] == "PENDING"

        due = (await client.get(f"{API}/due/{vehicle['id']}")).json()
        assert [i["last_change_km"] for i in due["items"]] == [10200, 10200]

    async def test_order_numbers_increment(self, client, branch, vehicle):
        oil_id = vehicle["replacement_items"][0]["id"]
        payload = {
            "vehicle_id": vehicle["id"], "branch_id": branch.id, "change_km": 500,
            "items": [{"replacement_item_id": oil_id}],
        }
        first = (await client.post(f"{API}/register-change", json=payload)).json()["order_id"]
        payload["change_km"] = 900
        second = (await client.post(f"{API}/register-change", json=payload)).json()["order_id"]

        numbers = [
            (await client.get(f"/api/v1/maintenance-orders/{order_id}")).json()["order_number"]
            for order_id in (first, second)
        ]
        year = datetime.now().year
        assert numbers == [f"OM-{year}-001", f"OM-{year}-002"]

        # 无费用不生成应付
        assert (await client.get("/api/v1/accounts-payable/")).json()["total"] == 0

    async def test_rejects_unknown_or_duplicate_items(self, client, branch, vehicle):
        oil_id = vehicle["replacement_items"][0]["id"]
        base = {"vehicle_id": vehicle["id"], "branch_id": branch.id, "change_km": 100}

        response = await client.post(f"{API}/register-change", json={
            **base, "items": [{"replacement_item_id": 777}],
        })
        assert response.status_code == 400

        response = await client.post(f"{API}/register-change", json={
            **base, "items": [{"replacement_item_id": oil_id}, {"replacement_item_id": oil_id}],
        })
        assert response.status_code == 400

        response = await client.post(f"{API}/register-change", json={**base, "items": []})
        assert response.status_code == 422

    async def test_records_audit_entry(self, client, branch, vehicle):
        oil_id = vehicle["replacement_items"][0]["id"]
        await client.post(f"{API}/register-change", json={
            "vehicle_id": vehicle["id"], "branch_id": branch.id, "change_km": 100,
            "items": [{"replacement_item_id": oil_id, "cost": 10}],
        })
        logs = (await client.get("/api/v1/audit-logs/", params={"resource_type": "maintenance_order"})).json()
        assert logs["total"] == 1
        assert logs["data"][0]["action_display"] == "创建"

    async def test_operator_cannot_register_for_other_branch(self, client, other_branch, branch, vehicle):
        headers = operator_headers(other_branch.id, "maintenance-labels.register-change")
        response = await client.post(f"{API}/register-change", headers=headers, json={
            "vehicle_id": vehicle["id"], "branch_id": branch.id, "change_km": 100,
            "items": [{"replacement_item_id": vehicle["replacement_items"][0]["id"]}],
        })
        assert response.status_code == 403


class TestMaintenanceOrderQueries:

    async def register_change(self, client, vehicle: dict, branch_id: int, km: int) -> int:
        response = await client.post(f"{API}/register-change", json={
            "vehicle_id": vehicle["id"], "branch_id": branch_id, "change_km": km,
            "items": [{"replacement_item_id": vehicle["replacement_items"][0]["id"]}],
        })
        assert response.status_code == 200, response.text
        return response.json()["order_id"]

    async def test_list_filters(self, client, branch, other_branch, vehicle):
        north = (await client.post("/api/v1/vehicles/", json={
            "branch_id": other_branch.id,
            "plates": [{"type": "CAVALO", "plate": "NTH0001"}],
            "replacement_items": [{"name": "机油", "replace_every_km": 10000}],
        })).json()
        first = await self.register_change(client, vehicle, branch.id, 100)
        second = await self.register_change(client, vehicle, branch.id, 200)
        north_order = await self.register_change(client, north, other_branch.id, 300)
        open_order = (await client.post("/api/v1/maintenance-orders/", json={
            "vehicle_id": vehicle["id"], "branch_id": branch.id, "type": "CORRECTIVE",
        })).json()["id"]

        orders = "/api/v1/maintenance-orders/"
        listing = (await client.get(orders, params={"branch_id": branch.id})).json()
        assert listing["total"] == 3
        assert {o["id"] for o in listing["data"]} == {first, second, open_order}

        listing = (await client.get(orders, params={"vehicle_id": north["id"]})).json()
        assert [o["id"] for o in listing["data"]] == [north_order]

        listing = (await client.get(orders, params={"status": "COMPLETED"})).json()
        assert listing["total"] == 3
        listing = (await client.get(orders, params={"status": "OPEN"})).json()
        assert [o["id"] for o in listing["data"]] == [open_order]

        listing = (await client.get(orders, params={"limit": 2})).json()
        assert listing["total"] == 4
        assert listing["total_pages"] == 2
        assert len(listing["data"]) == 2

    async def test_unknown_order(self, client):
        assert (await client.get("/api/v1/maintenance-orders/999")).status_code == 404

    async def test_order_of_other_branch_hidden(self, client, branch, other_branch, vehicle):
        order_id = await self.register_change(client, vehicle, branch.id, 100)
        headers = operator_headers(other_branch.id, "maintenance.view")
        response = await client.get(f"/api/v1/maintenance-orders/{order_id}", headers=headers)
        assert response.status_code == 403

        listing = (await client.get("/api/v1/maintenance-orders/", headers=headers)).json()
        assert listing["total"] == 0
