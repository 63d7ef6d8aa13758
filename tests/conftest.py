import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("PAYMENT_DELAY_SECONDS", "0")
os.environ.setdefault("PAYMENT_FAILURE_RATE", "0")

from donation_ledger.models.user import Actor, Role  # noqa: E402
from donation_ledger.services.notifications import InMemoryNotifier  # noqa: E402
from donation_ledger.services.store import DonationStore, get_store  # noqa: E402
from tests.helpers import StubPaymentGateway  # noqa: E402


@pytest.fixture
def payments() -> StubPaymentGateway:
    return StubPaymentGateway()


@pytest.fixture
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture
def store(payments, notifier) -> DonationStore:
    return DonationStore(payments=payments, notifier=notifier)


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="admin-1", role=Role.ADMIN)


@pytest.fixture
def donor() -> Actor:
    return Actor(user_id="donor-1", role=Role.DONOR)


@pytest.fixture
def business() -> Actor:
    return Actor(user_id="biz-1", role=Role.BUSINESS)


@pytest.fixture
def beneficiary() -> Actor:
    return Actor(user_id="ben-1", role=Role.BENEFICIARY)


@pytest_asyncio.fixture
async def client(store) -> AsyncGenerator[AsyncClient, None]:
    from donation_ledger.main import app
    app.dependency_overrides[get_store] = lambda: store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
