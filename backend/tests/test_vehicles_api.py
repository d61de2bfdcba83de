"""车辆与到站登记 API"""
from datetime import datetime, timedelta

from tests.utils import ADMIN_HEADERS, operator_headers

API = "/api/v1/vehicles"


class TestCreateVehicle:

    async def test_plates_normalized_and_primary_plate(self, vehicle):
        assert vehicle["plate"] == "ABC1234"
        assert [p["plate"] for p in vehicle["plates"]] == ["CAR-0001", "ABC1234"]
        assert vehicle["status"] == "ACTIVE"
        assert vehicle["status_display"] == "运行中"
        assert vehicle["current_km"] == 0
        assert [r["name"] for r in vehicle["replacement_items"]] == ["机油", "滤芯"]

    async def test_without_plates(self, client, branch):
        response = await client.post(f"{API}/", json={"branch_id": branch.id, "plates": []})
        assert response.status_code == 400

    async def test_invalid_plate_type(self, client, branch):
        response = await client.post(f"{API}/", json={
            "branch_id": branch.id,
            "plates": [{"type": "TRATOR", "plate": "XYZ9999"}],
        })
        assert response.status_code == 400

    async def test_duplicate_plate_type(self, client, branch):
        response = await client.post(f"{API}/", json={
            "branch_id": branch.id,
            "plates": [
                {"type": "CAVALO", "plate": "AAA1111"},
                {"type": "CAVALO", "plate": "BBB2222"},
            ],
        })
        assert response.status_code == 400

    async def test_plate_in_use_in_branch(self, client, branch, vehicle):
        response = await client.post(f"{API}/", json={
            "branch_id": branch.id,
            "plates": [{"type": "CAVALO", "plate": "abc1234"}],
        })
        assert response.status_code == 409

    async def test_same_plate_allowed_in_other_branch(self, client, other_branch, vehicle):
        response = await client.post(f"{API}/", json={
            "branch_id": other_branch.id,
            "plates": [{"type": "CAVALO", "plate": "ABC1234"}],
        })
        assert response.status_code == 200

    async def test_unknown_branch(self, client):
        response = await client.post(f"{API}/", json={
            "branch_id": 999,
            "plates": [{"type": "CAVALO", "plate": "ZZZ0000"}],
        })
        assert response.status_code == 404

    async def test_initial_km_writes_history(self, client, branch):
        response = await client.post(f"{API}/", json={
            "branch_id": branch.id,
            "current_km": 120000,
            "plates": [{"type": "CAVALO", "plate": "KMS1200"}],
        })
        vehicle_id = response.json()["id"]
        history = (await client.get(f"{API}/{vehicle_id}/status-history")).json()
        assert len(history) == 1
        assert history[0]["km"] == 120000


class TestVehicleKmAndStatus:

    async def test_km_cannot_decrease(self, client, vehicle):
        vehicle_id = vehicle["id"]
        response = await client.patch(f"{API}/{vehicle_id}/km", json={"km": 5000})
        assert response.status_code == 200
        assert response.json()["current_km"] == 5000

        response = await client.patch(f"{API}/{vehicle_id}/km", json={"km": 4000})
        assert response.status_code == 400

    async def test_status_change_recorded(self, client, vehicle):
        vehicle_id = vehicle["id"]
        response = await client.patch(f"{API}/{vehicle_id}/status", json={"status": "MAINTENANCE"})
        assert response.status_code == 200
        assert response.json()["status_display"] == "维修中"

        history = (await client.get(f"{API}/{vehicle_id}/status-history")).json()
        assert history[0]["status"] == "MAINTENANCE"

    async def test_invalid_status(self, client, vehicle):
        response = await client.patch(f"{API}/{vehicle['id']}/status", json={"status": "FLYING"})
        assert response.status_code == 400


class TestVehicleQueries:

    async def test_list_search_by_plate(self, client, vehicle):
        response = await client.get(f"{API}/", params={"plate": "car"})
        body = response.json()
        assert body["total"] == 1
        assert body["data"][0]["id"] == vehicle["id"]

        response = await client.get(f"{API}/", params={"plate": "nothing"})
        assert response.json()["total"] == 0

    async def test_update_replaces_plates_and_items(self, client, vehicle):
        oil = vehicle["replacement_items"][0]
        response = await client.put(f"{API}/{vehicle['id']}", json={
            "plates": [{"type": "CAVALO", "plate": "NEW0001"}],
            "replacement_items": [
                {"id": oil["id"], "name": "机油", "replace_every_km": 15000},
                {"name": "刹车片", "replace_every_km": 30000},
            ],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["plate"] == "NEW0001"
        assert len(body["plates"]) == 1
        items = {r["name"]: r for r in body["replacement_items"]}
        assert items["机油"]["id"] == oil["id"]
        assert items["机油"]["replace_every_km"] == 15000
        assert "滤芯" not in items

    async def test_update_null_keeps_required_fields(self, client, vehicle):
        response = await client.put(f"{API}/{vehicle['id']}", json={
            "active": None, "branch_id": None, "color": "白色",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["active"] is True
        assert body["branch_id"] == vehicle["branch_id"]
        assert body["color"] == "白色"

    async def test_soft_delete(self, client, vehicle):
        response = await client.delete(f"{API}/{vehicle['id']}")
        assert response.status_code == 200
        assert (await client.get(f"{API}/{vehicle['id']}")).status_code == 404
        assert (await client.get(f"{API}/")).json()["total"] == 0


class TestVehicleAccess:

    async def test_missing_permission(self, client, branch):
        headers = operator_headers(branch.id, "vehicles.view")
        response = await client.post(f"{API}/", headers=headers, json={
            "plates": [{"type": "CAVALO", "plate": "PER0001"}],
        })
        assert response.status_code == 403

    async def test_operator_uses_own_branch(self, client, branch):
        headers = operator_headers(branch.id, "vehicles.create")
        response = await client.post(f"{API}/", headers=headers, json={
            "plates": [{"type": "CAVALO", "plate": "OWN0001"}],
        })
        assert response.status_code == 200
        assert response.json()["branch_id"] == branch.id

    async def test_other_branch_hidden(self, client, other_branch, vehicle):
        headers = operator_headers(other_branch.id, "vehicles.view")
        response = await client.get(f"{API}/{vehicle['id']}", headers=headers)
        assert response.status_code == 403

        response = await client.get(f"{API}/", headers=headers)
        assert response.json()["total"] == 0

        response = await client.get(f"{API}/{vehicle['id']}", headers=ADMIN_HEADERS)
        assert response.status_code == 200


class TestVehicleMarkings:

    async def test_marking_updates_vehicle_km(self, client, branch, vehicle):
        response = await client.post("/api/v1/vehicle-markings/", json={
            "vehicle_id": vehicle["id"], "branch_id": branch.id, "km": 15000,
        })
        assert response.status_code == 200
        marking = response.json()
        assert marking["vehicle_plate"] == "ABC1234"
        assert marking["branch_name"] == "总部"

        detail = (await client.get(f"{API}/{vehicle['id']}")).json()
        assert detail["current_km"] == 15000

        history = (await client.get(f"{API}/{vehicle['id']}/status-history")).json()
        assert history[0]["km"] == 15000

        listing = (await client.get("/api/v1/vehicle-markings/", params={"vehicle_id": vehicle["id"]})).json()
        assert listing["total"] == 1

    async def test_marking_unknown_vehicle(self, client, branch):
        response = await client.post("/api/v1/vehicle-markings/", json={
            "vehicle_id": 404, "branch_id": branch.id, "km": 10,
        })
        assert response.status_code == 404

    async def test_marking_list_date_range(self, client, branch, vehicle):
        await client.post("/api/v1/vehicle-markings/", json={
            "vehicle_id": vehicle["id"], "branch_id": branch.id, "km": 800,
        })
        today = datetime.utcnow().date()
        api = "/api/v1/vehicle-markings/"

        listing = (await client.get(api, params={"start_date": today.isoformat(), "end_date": today.isoformat()})).json()
        assert listing["total"] == 1
        assert listing["data"][0]["km"] == 800

        yesterday = (today - timedelta(days=1)).isoformat()
        tomorrow = (today + timedelta(days=1)).isoformat()
        assert (await client.get(api, params={"end_date": yesterday})).json()["total"] == 0
        assert (await client.get(api, params={"start_date": tomorrow})).json()["total"] == 0
        assert (await client.get(api, params={"start_date": yesterday, "end_date": tomorrow})).json()["total"] == 1
