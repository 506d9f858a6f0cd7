"""
Payments Tests

Razorpay calls go through httpx.MockTransport; no network access.
"""

import json

import httpx
import pytest

from tilechat.core.exceptions import (
    InvalidPlan,
    InvalidSignature,
    PaymentGatewayError,
    PaymentVerificationError,
)
from tilechat.payments import (
    InMemoryTransactionStore,
    RazorpayGateway,
    SQLTransactionStore,
    TransactionRecord,
    compute_signature,
    verify_payment_signature,
)
from tilechat.payments.transactions import STATUS_CREATED, STATUS_PAID
from tilechat.quota import InMemoryQuotaGate
from tilechat.services.payment_service import PaymentService

KEY_ID = "rzp_test_key"
SECRET = "rzp_test_secret"


def _order_transport(captured, status_code=200, order_id="order_ABC123"):
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={"error": {"description": "Authentication failed"}})
        body = json.loads(request.content)
        return httpx.Response(200, json={
            "id": order_id,
            "entity": "order",
            "amount": body["amount"],
            "currency": body["currency"],
            "status": "created",
        })
    return httpx.MockTransport(handler)


class TestSignature:

    def test_valid_signature(self):
        signature = compute_signature("order_1", "pay_1", SECRET)

        assert verify_payment_signature("order_1", "pay_1", signature, SECRET)

    def test_tampered_signature(self):
        signature = compute_signature("order_1", "pay_1", SECRET)

        assert not verify_payment_signature("order_1", "pay_2", signature, SECRET)
        assert not verify_payment_signature("order_1", "pay_1", signature, "other-secret")
        assert not verify_payment_signature("order_1", "pay_1", None, SECRET)

    def test_missing_secret_never_verifies(self):
        assert not verify_payment_signature("order_1", "pay_1", "anything", "")


class TestRazorpayGateway:

    @pytest.mark.asyncio
    async def test_create_order(self):
        captured = []
        gateway = RazorpayGateway(KEY_ID, SECRET, transport=_order_transport(captured))

        order = await gateway.create_order(29900, notes={"userId": "u1", "plan": "lite"})

        assert order["id"] == "order_ABC123"
        request = captured[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/orders"
        assert request.headers["authorization"].startswith("Basic ")
        body = json.loads(request.content)
        assert body["amount"] == 29900
        assert body["currency"] == "INR"
        assert body["notes"] == {"userId": "u1", "plan": "lite"}
        assert body["receipt"].startswith("rcpt_")

    @pytest.mark.asyncio
    async def test_rejected_order(self):
        gateway = RazorpayGateway(KEY_ID, SECRET, transport=_order_transport([], status_code=401))

        with pytest.raises(PaymentGatewayError) as exc_info:
            await gateway.create_order(9900)

        assert "Authentication failed" in exc_info.value.details

    @pytest.mark.asyncio
    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        gateway = RazorpayGateway(KEY_ID, SECRET, transport=httpx.MockTransport(handler))

        with pytest.raises(PaymentGatewayError):
            await gateway.create_order(9900)

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        with pytest.raises(PaymentGatewayError):
            await RazorpayGateway("", "").create_order(9900)


@pytest.fixture
def quota_gate():
    return InMemoryQuotaGate(free_token_limit=1000)


@pytest.fixture
def transactions():
    return InMemoryTransactionStore()


@pytest.fixture
def service(quota_gate, transactions):
    gateway = RazorpayGateway(KEY_ID, SECRET, transport=_order_transport([]))
    return PaymentService(gateway, transactions, quota_gate, bonus_tokens=200000)


class TestPaymentService:

    @pytest.mark.asyncio
    async def test_create_order_records_transaction(self, service, transactions):
        order = await service.create_order("user-1", "pro")

        record = await transactions.get(order["id"])
        assert record.user_id == "user-1"
        assert record.amount == 59900
        assert record.plan == "pro"
        assert record.status == STATUS_CREATED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("plan", ["gold", "", None])
    async def test_unknown_plan(self, service, plan):
        with pytest.raises(InvalidPlan):
            await service.create_order("user-1", plan)

    @pytest.mark.asyncio
    async def test_verify_grants_bonus(self, service, quota_gate, transactions):
        order = await service.create_order("user-1", "lite")
        signature = compute_signature(order["id"], "pay_1", SECRET)

        ceiling = await service.verify_payment("user-1", order["id"], "pay_1", signature)

        assert ceiling == 201000
        assert await quota_gate.get_ceiling("user-1") == 201000
        record = await transactions.get(order["id"])
        assert record.status == STATUS_PAID
        assert record.payment_id == "pay_1"

    @pytest.mark.asyncio
    async def test_replayed_verification_grants_once(self, service, quota_gate):
        order = await service.create_order("user-1", "lite")
        signature = compute_signature(order["id"], "pay_1", SECRET)

        await service.verify_payment("user-1", order["id"], "pay_1", signature)
        ceiling = await service.verify_payment("user-1", order["id"], "pay_1", signature)

        assert ceiling == 201000

    @pytest.mark.asyncio
    async def test_unrecorded_order_grants_once(self, service, quota_gate, transactions):
        signature = compute_signature("order_unrecorded", "pay_1", SECRET)

        for _ in range(3):
            ceiling = await service.verify_payment("user-1", "order_unrecorded", "pay_1", signature)

        assert ceiling == 201000
        assert await quota_gate.get_ceiling("user-1") == 201000
        record = await transactions.get("order_unrecorded")
        assert record.status == STATUS_PAID
        assert record.user_id == "user-1"
        assert record.payment_id == "pay_1"

    @pytest.mark.asyncio
    async def test_unrecorded_order_grants_once_with_sql_store(self, db, quota_gate):
        gateway = RazorpayGateway(KEY_ID, SECRET, transport=_order_transport([]))
        service = PaymentService(gateway, SQLTransactionStore(db=db), quota_gate)
        signature = compute_signature("order_unrecorded", "pay_1", SECRET)

        await service.verify_payment("user-1", "order_unrecorded", "pay_1", signature)
        ceiling = await service.verify_payment("user-1", "order_unrecorded", "pay_1", signature)

        assert ceiling == 201000

    @pytest.mark.asyncio
    async def test_grant_goes_to_order_owner(self, service, quota_gate):
        order = await service.create_order("buyer", "college")
        signature = compute_signature(order["id"], "pay_1", SECRET)

        await service.verify_payment("someone-else", order["id"], "pay_1", signature)

        assert await quota_gate.get_ceiling("buyer") == 201000
        assert await quota_gate.get_ceiling("someone-else") == 1000

    @pytest.mark.asyncio
    async def test_bad_signature(self, service, quota_gate):
        order = await service.create_order("user-1", "lite")

        with pytest.raises(InvalidSignature):
            await service.verify_payment("user-1", order["id"], "pay_1", "deadbeef")

        assert await quota_gate.get_ceiling("user-1") == 1000

    @pytest.mark.asyncio
    async def test_store_failure_is_wrapped(self, quota_gate):
        class BrokenStore(InMemoryTransactionStore):
            async def mark_paid(self, order_id, payment_id):
                raise RuntimeError("db down")

        gateway = RazorpayGateway(KEY_ID, SECRET, transport=_order_transport([]))
        service = PaymentService(gateway, BrokenStore(), quota_gate)
        signature = compute_signature("order_X", "pay_1", SECRET)

        with pytest.raises(PaymentVerificationError) as exc_info:
            await service.verify_payment("user-1", "order_X", "pay_1", signature)

        assert exc_info.value.details == "db down"


class TestSQLTransactionStore:

    @pytest.mark.asyncio
    async def test_record_and_mark_paid(self, db):
        store = SQLTransactionStore(db=db)
        await store.record_order(TransactionRecord(
            user_id="user-1", order_id="order_1", amount=9900,
            currency="INR", status=STATUS_CREATED, plan="college",
        ))

        previous = await store.mark_paid("order_1", "pay_1")
        current = await store.get("order_1")

        assert previous.status == STATUS_CREATED
        assert current.status == STATUS_PAID
        assert current.payment_id == "pay_1"
        assert current.plan == "college"

    @pytest.mark.asyncio
    async def test_unknown_order(self, db):
        store = SQLTransactionStore(db=db)

        assert await store.mark_paid("order_missing", "pay_1") is None
        assert await store.get("order_missing") is None
