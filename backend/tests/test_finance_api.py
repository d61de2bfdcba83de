"""应付/应收、钱包与财务流水"""
from datetime import datetime, timedelta

from tests.utils import ADMIN_HEADERS, operator_headers

PAYABLE = "/api/v1/accounts-payable"
RECEIVABLE = "/api/v1/accounts-receivable"
WALLET = "/api/v1/wallet"


def due_in(days: int) -> str:
    return (datetime.utcnow() + timedelta(days=days)).isoformat()


async def create_account(client, api: str, branch_id: int, amount: float, days: int = 10, **extra) -> dict:
    response = await client.post(f"{api}/", json={
        "branch_id": branch_id,
        "description": "测试账款",
        "amount": amount,
        "due_date": due_in(days),
        **extra,
    })
    assert response.status_code == 200, response.text
    return response.json()


async def set_balance(client, branch_id: int, amount: float):
    response = await client.post(f"{WALLET}/adjust", headers=ADMIN_HEADERS, json={
        "branch_id": branch_id, "new_balance": amount, "adjustment_type": "INITIAL",
    })
    assert response.status_code == 200, response.text
    return response.json()


class TestAccountsPayable:

    async def test_pay_requires_sufficient_balance(self, client, branch):
        account = await create_account(client, PAYABLE, branch.id, 100)

        response = await client.post(f"{PAYABLE}/{account['id']}/pay")
        assert response.status_code == 400
        assert "余额不足" in response.json()["detail"]
        assert "100.00" in response.json()["detail"]

    async def test_pay_debits_wallet(self, client, branch):
        account = await create_account(client, PAYABLE, branch.id, 120.5, origin_type="EXPENSE")
        await set_balance(client, branch.id, 500)

        response = await client.post(f"{PAYABLE}/{account['id']}/pay")
        assert response.status_code == 200
        paid = response.json()
        assert paid["status"] == "PAID"
        assert paid["status_display"] == "已支付"
        assert paid["payment_date"] is not None

        wallet = (await client.get(f"{WALLET}/", params={"branch_id": branch.id})).json()
        assert wallet["balance"] == 379.5

        transactions = (await client.get("/api/v1/financial-transactions/", params={"type": "EXPENSE"})).json()
        assert transactions["total"] == 1
        assert transactions["data"][0]["id"] == paid["financial_transaction_id"]
        assert transactions["data"][0]["amount"] == 120.5

    async def test_paid_account_is_locked(self, client, branch):
        account = await create_account(client, PAYABLE, branch.id, 50)
        await set_balance(client, branch.id, 50)
        await client.post(f"{PAYABLE}/{account['id']}/pay")

        assert (await client.post(f"{PAYABLE}/{account['id']}/pay")).status_code == 400
        assert (await client.post(f"{PAYABLE}/{account['id']}/cancel")).status_code == 400
        assert (await client.delete(f"{PAYABLE}/{account['id']}")).status_code == 400
        assert (await client.put(f"{PAYABLE}/{account['id']}", json={"amount": 10})).status_code == 400

    async def test_cancelled_cannot_be_paid(self, client, branch):
        account = await create_account(client, PAYABLE, branch.id, 50)
        await set_balance(client, branch.id, 100)

        response = await client.post(f"{PAYABLE}/{account['id']}/cancel")
        assert response.json()["status"] == "CANCELLED"
        assert (await client.post(f"{PAYABLE}/{account['id']}/cancel")).status_code == 400
        assert (await client.post(f"{PAYABLE}/{account['id']}/pay")).status_code == 400

    async def test_delete_pending(self, client, branch):
        account = await create_account(client, PAYABLE, branch.id, 50)
        assert (await client.delete(f"{PAYABLE}/{account['id']}")).status_code == 200
        assert (await client.get(f"{PAYABLE}/{account['id']}")).status_code == 404

    async def test_summary(self, client, branch):
        await create_account(client, PAYABLE, branch.id, 100, days=-3)
        await create_account(client, PAYABLE, branch.id, 40, days=5)
        cancelled = await create_account(client, PAYABLE, branch.id, 70)
        await client.post(f"{PAYABLE}/{cancelled['id']}/cancel")
        paid = await create_account(client, PAYABLE, branch.id, 30)
        await set_balance(client, branch.id, 30)
        await client.post(f"{PAYABLE}/{paid['id']}/pay")

        summary = (await client.get(f"{PAYABLE}/summary", params={"branch_id": branch.id})).json()
        assert summary["pending"] == {"count": 2, "amount": 140}
        assert summary["overdue"] == {"count": 1, "amount": 100}
        assert summary["settled"] == {"count": 1, "amount": 30}
        assert summary["cancelled"] == {"count": 1, "amount": 70}

    async def test_list_filters(self, client, branch, other_branch):
        await create_account(client, PAYABLE, branch.id, 10, days=1)
        await create_account(client, PAYABLE, branch.id, 20, days=30)
        await create_account(client, PAYABLE, other_branch.id, 30)

        listing = (await client.get(f"{PAYABLE}/", params={"branch_id": branch.id})).json()
        assert listing["total"] == 2
        assert [a["amount"] for a in listing["data"]] == [10, 20]

        listing = (await client.get(f"{PAYABLE}/", params={"end_date": due_in(2)})).json()
        assert listing["total"] == 1

    async def test_update_null_keeps_required_fields(self, client, branch):
        account = await create_account(client, PAYABLE, branch.id, 75)

        response = await client.put(f"{PAYABLE}/{account['id']}", json={
            "amount": None, "description": None, "due_date": None, "notes": "分两期",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["amount"] == 75
        assert body["description"] == "测试账款"
        assert body["due_date"] == account["due_date"]
        assert body["notes"] == "分两期"

    async def test_overdue_flag_and_bucket(self, client, branch):
        overdue = await create_account(client, PAYABLE, branch.id, 60, days=-1)
        assert overdue["is_overdue"] is True
        upcoming = await create_account(client, PAYABLE, branch.id, 15, days=3)
        assert upcoming["is_overdue"] is False

        summary = (await client.get(f"{PAYABLE}/summary")).json()
        assert summary["overdue"] == {"count": 1, "amount": 60}
        assert summary["pending"] == {"count": 2, "amount": 75}

    async def test_unknown_branch(self, client):
        response = await client.post(f"{PAYABLE}/", json={
            "branch_id": 999, "description": "x", "amount": 1, "due_date": due_in(1),
        })
        assert response.status_code == 404


class TestAccountsReceivable:

    async def test_receive_credits_wallet(self, client, branch):
        account = await create_account(client, RECEIVABLE, branch.id, 250.25)

        response = await client.post(f"{RECEIVABLE}/{account['id']}/receive")
        assert response.status_code == 200
        received = response.json()
        assert received["status"] == "RECEIVED"
        assert received["received_date"] is not None

        wallet = (await client.get(f"{WALLET}/{branch.id}")).json()
        assert wallet["balance"] == 250.25

        transaction = (await client.get(
            f"/api/v1/financial-transactions/{received['financial_transaction_id']}"
        )).json()
        assert transaction["type"] == "INCOME"

    async def test_received_account_is_locked(self, client, branch):
        account = await create_account(client, RECEIVABLE, branch.id, 10)
        await client.post(f"{RECEIVABLE}/{account['id']}/receive")

        assert (await client.post(f"{RECEIVABLE}/{account['id']}/receive")).status_code == 400
        assert (await client.post(f"{RECEIVABLE}/{account['id']}/cancel")).status_code == 400
        assert (await client.delete(f"{RECEIVABLE}/{account['id']}")).status_code == 400

    async def test_update_null_keeps_required_fields(self, client, branch):
        account = await create_account(client, RECEIVABLE, branch.id, 33.3)
        response = await client.put(f"{RECEIVABLE}/{account['id']}", json={
            "amount": None, "due_date": None, "document_number": "NF-77",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["amount"] == 33.3
        assert body["due_date"] == account["due_date"]
        assert body["document_number"] == "NF-77"

    async def test_summary_counts_received(self, client, branch):
        account = await create_account(client, RECEIVABLE, branch.id, 10)
        await client.post(f"{RECEIVABLE}/{account['id']}/receive")
        await create_account(client, RECEIVABLE, branch.id, 5, days=-1)

        summary = (await client.get(f"{RECEIVABLE}/summary")).json()
        assert summary["settled"] == {"count": 1, "amount": 10}
        assert summary["overdue"] == {"count": 1, "amount": 5}


class TestWallet:

    async def test_new_branch_starts_at_zero(self, client, branch):
        wallet = (await client.get(f"{WALLET}/{branch.id}")).json()
        assert wallet["balance"] == 0
        assert wallet["branch_name"] == "总部"

    async def test_unknown_branch(self, client):
        assert (await client.get(f"{WALLET}/999")).status_code == 404

    async def test_adjust_records_history(self, client, branch):
        await set_balance(client, branch.id, 100)
        response = await client.post(f"{WALLET}/adjust", json={
            "branch_id": branch.id, "new_balance": 80.555, "reason": "盘点差异",
        })
        assert response.status_code == 200
        assert response.json()["balance"] == 80.56

        history = (await client.get(f"{WALLET}/adjustments", params={"branch_id": branch.id})).json()
        assert [(h["previous_balance"], h["new_balance"]) for h in history] == [(100, 80.56), (0, 100)]
        assert history[0]["adjustment_type"] == "CORRECTION"

        logs = (await client.get("/api/v1/audit-logs/", params={"resource_type": "wallet"})).json()
        assert logs["total"] == 2

    async def test_adjust_admin_only(self, client, branch):
        headers = operator_headers(branch.id, "wallet.adjust")
        response = await client.post(f"{WALLET}/adjust", headers=headers, json={"new_balance": 1})
        assert response.status_code == 403

    async def test_check(self, client, branch):
        await set_balance(client, branch.id, 50)
        check = (await client.get(f"{WALLET}/check", params={"branch_id": branch.id, "amount": 50})).json()
        assert check["sufficient"] is True
        check = (await client.get(f"{WALLET}/check", params={"branch_id": branch.id, "amount": 50.01})).json()
        assert check["sufficient"] is False

    async def test_operator_sees_own_branch(self, client, branch, other_branch):
        await set_balance(client, branch.id, 42)
        headers = operator_headers(branch.id, "wallet.view")
        wallet = (await client.get(f"{WALLET}/", headers=headers)).json()
        assert wallet["balance"] == 42
        response = await client.get(f"{WALLET}/{other_branch.id}", headers=headers)
        assert response.status_code == 403


class TestFinancialTransactions:

    async def test_unknown_transaction(self, client):
        assert (await client.get("/api/v1/financial-transactions/999")).status_code == 404

    async def test_list_by_branch(self, client, branch, other_branch):
        for branch_id in (branch.id, other_branch.id):
            account = await create_account(client, RECEIVABLE, branch_id, 10)
            await client.post(f"{RECEIVABLE}/{account['id']}/receive")

        listing = (await client.get("/api/v1/financial-transactions/", params={"branch_id": other_branch.id})).json()
        assert listing["total"] == 1
        assert listing["data"][0]["branch_id"] == other_branch.id
        assert listing["total_pages"] == 1
