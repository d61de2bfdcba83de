"""费用登记与支出流水"""
from datetime import datetime
from decimal import Decimal

from fleet_erp.models import Expense
from tests.utils import operator_headers

API = "/api/v1/expenses"


async def create_expense(client, branch_id: int, **extra) -> dict:
    payload = {
        "branch_id": branch_id,
        "type": "MEAL",
        "amount": 45.5,
        "description": "出车午餐",
        "expense_date": "2026-05-04T12:00:00",
        **extra,
    }
    response = await client.post(f"{API}/", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


class TestCreateExpense:

    async def test_creates_expense_transaction(self, client, branch, employee_factory):
        driver = await employee_factory("司机老李")
        expense = await create_expense(
            client, branch.id, employee_id=driver["id"], amount=88.885, document_number=" NF-12 ",
        )
        assert expense["amount"] == 88.89
        assert expense["type_display"] == "餐费"
        assert expense["employee_name"] == "司机老李"
        assert expense["branch_name"] == "总部"
        assert expense["document_number"] == "NF-12"

        transaction = (await client.get(
            f"/api/v1/financial-transactions/{expense['financial_transaction_id']}"
        )).json()
        assert transaction["type"] == "EXPENSE"
        assert transaction["amount"] == 88.89
        assert transaction["origin_type"] == "HR"
        assert transaction["origin_id"] == expense["id"]
        assert transaction["document_number"] == "NF-12"
        assert transaction["transaction_date"].startswith("2026-05-04T12:00")
        assert transaction["notes"] == "费用 餐费 - 员工: 司机老李"

    async def test_wallet_not_debited(self, client, branch):
        await create_expense(client, branch.id)
        wallet = (await client.get(f"/api/v1/wallet/{branch.id}")).json()
        assert wallet["balance"] == 0

    async def test_employee_must_be_active_in_branch(self, client, branch, other_branch, employee_factory):
        outsider = await employee_factory("外援", branch_id=other_branch.id)
        response = await client.post(f"{API}/", json={
            "branch_id": branch.id, "employee_id": outsider["id"], "type": "TRANSPORT",
            "amount": 10, "description": "车费", "expense_date": "2026-05-04T08:00:00",
        })
        assert response.status_code == 404

    async def test_validation(self, client, branch):
        base = {"branch_id": branch.id, "description": "x", "expense_date": "2026-05-04T08:00:00"}
        assert (await client.post(f"{API}/", json={**base, "type": "FUEL", "amount": 1})).status_code == 422
        assert (await client.post(f"{API}/", json={**base, "type": "OTHER", "amount": 0})).status_code == 422
        response = await client.post(f"{API}/", json={**base, "branch_id": 999, "type": "OTHER", "amount": 1})
        assert response.status_code == 404

    async def test_records_audit_entry(self, client, branch):
        await create_expense(client, branch.id)
        logs = (await client.get("/api/v1/audit-logs/", params={"resource_type": "expense"})).json()
        assert logs["total"] == 1


class TestExpenseQueries:

    async def test_filters_and_order(self, client, branch, other_branch, employee_factory):
        driver = await employee_factory("司机老李")
        early = await create_expense(client, branch.id, expense_date="2026-05-01T09:00:00")
        late = await create_expense(
            client, branch.id, type="ACCOMMODATION", employee_id=driver["id"],
            expense_date="2026-05-20T21:00:00",
        )
        await create_expense(client, other_branch.id, expense_date="2026-05-10T09:00:00")

        listing = (await client.get(f"{API}/", params={"branch_id": branch.id})).json()
        assert [e["id"] for e in listing] == [late["id"], early["id"]]

        listing = (await client.get(f"{API}/", params={"employee_id": driver["id"]})).json()
        assert [e["id"] for e in listing] == [late["id"]]

        listing = (await client.get(f"{API}/", params={"type": "MEAL"})).json()
        assert len(listing) == 2

        listing = (await client.get(f"{API}/", params={"start_date": "2026-05-02", "end_date": "2026-05-20"})).json()
        assert len(listing) == 2
        assert late["id"] in [e["id"] for e in listing]

    async def test_unknown_expense(self, client):
        assert (await client.get(f"{API}/999")).status_code == 404

    async def test_operator_sees_own_branch(self, client, branch, other_branch):
        mine = await create_expense(client, branch.id)
        theirs = await create_expense(client, other_branch.id)
        headers = operator_headers(branch.id, "expenses.view")

        listing = (await client.get(f"{API}/", headers=headers)).json()
        assert [e["id"] for e in listing] == [mine["id"]]
        assert (await client.get(f"{API}/{theirs['id']}", headers=headers)).status_code == 403


class TestUpdateAndDelete:

    async def test_posted_expense_is_locked(self, client, branch):
        expense = await create_expense(client, branch.id)
        assert (await client.put(f"{API}/{expense['id']}", json={"amount": 1})).status_code == 400
        assert (await client.delete(f"{API}/{expense['id']}")).status_code == 400

    async def test_unposted_expense_editable(self, client, session_factory, branch):
        async with session_factory() as session:
            expense = Expense(
                company_id=1, branch_id=branch.id, type="OTHER", amount=Decimal("12.00"),
                description="旧系统导入", expense_date=datetime(2026, 4, 30),
            )
            session.add(expense)
            await session.commit()
            expense_id = expense.id

        response = await client.put(f"{API}/{expense_id}", json={
            "amount": 15.255, "description": None, "type": "TRANSPORT",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["amount"] == 15.26
        assert body["description"] == "旧系统导入"
        assert body["type"] == "TRANSPORT"

        assert (await client.delete(f"{API}/{expense_id}")).status_code == 200
        assert (await client.get(f"{API}/{expense_id}")).status_code == 404
