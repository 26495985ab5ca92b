from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
@pytest.fixture()
def shipping_fee(monkeypatch):
    """Charge a flat 5.00 shipping fee for the duration of the test."""
    monkeypatch.setitem(current_domain.config["custom"], "SHIPPING_FEE", "5.00")
    return "5.00"


# ---------------------------------------------------------------------------
# Persisted fixtures, created through their commands
# ---------------------------------------------------------------------------
@pytest.fixture()
def register_product():
    from ordering.product.catalog import RegisterProduct

    def _register(name="Widget", price="100.00", quantity=10, **overrides):
        return current_domain.process(
            RegisterProduct(name=name, price=price, quantity=quantity, **overrides),
            asynchronous=False,
        )

    return _register


@pytest.fixture()
def create_offer():
    from ordering.offer.management import CreateOffer

    def _create(code="SAVE10", offer_type="Percentage", value="10", **overrides):
        now = datetime.now(UTC)
        data = {
            "name": f"{code} promotion",
            "code": code,
            "offer_type": offer_type,
            "value": value,
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=30),
        }
        data.update(overrides)
        return current_domain.process(CreateOffer(**data), asynchronous=False)

    return _create


@pytest.fixture()
def shipping_address():
    return {
        "full_name": "Ada Lovelace",
        "phone_number": "+44 20 7946 0000",
        "street": "12 St James's Square",
        "city": "London",
        "state": "Greater London",
        "country": "GB",
        "zip_code": "SW1Y 4JH",
    }
