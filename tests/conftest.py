from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from accounts.models import User
from catalog.models import LeasePricing, RobotPricing
from customers.models import Client
from sales.models import Offer, OfferItem


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email="admin@test.com",
        password="testpass123",
        first_name="Admin",
        last_name="User",
        role=User.Role.ADMIN,
    )


@pytest.fixture
def manager_user(db):
    return User.objects.create_user(
        email="manager@test.com",
        password="testpass123",
        first_name="Manager",
        last_name="User",
        role=User.Role.MANAGER,
    )


@pytest.fixture
def sales_user(db):
    return User.objects.create_user(
        email="sales@test.com",
        password="testpass123",
        first_name="Sales",
        last_name="User",
        role=User.Role.SALES,
    )


@pytest.fixture
def service_user(db):
    return User.objects.create_user(
        email="service@test.com",
        password="testpass123",
        first_name="Service",
        last_name="User",
        role=User.Role.SERVICE,
    )


@pytest.fixture
def customer(db, sales_user):
    return Client.objects.create(
        name="Acme Logistics",
        nip="5250001009",
        primary_contact_email="buyer@acme.test",
        status=Client.Status.ACTIVE,
        assigned_salesperson=sales_user,
    )


@pytest.fixture
def make_offer(db, sales_user, customer):
    counter = {"n": 0}

    def factory(**kwargs):
        counter["n"] += 1
        kwargs.setdefault("offer_number", f"OF-TEST-{counter['n']:04d}")
        kwargs.setdefault("created_by", sales_user)
        kwargs.setdefault("client", customer)
        return Offer.objects.create(**kwargs)

    return factory


@pytest.fixture
def robot_pricing(db):
    return RobotPricing.objects.create(
        robot_model="BellaBot",
        sale_price_pln_net=Decimal("100.00"),
        evidence_price_pln_net=Decimal("60.00"),
        evidence_price_eur_net=Decimal("14.00"),
    )


@pytest.fixture
def lease_pricing(robot_pricing):
    return LeasePricing.objects.create(
        robot_pricing=robot_pricing,
        months=12,
        price_pln_net=Decimal("50.00"),
        evidence_price_pln_net=Decimal("30.00"),
    )


@pytest.fixture
def priced_offer(make_offer, robot_pricing, lease_pricing):
    offer = make_offer(stage=Offer.Stage.PROPOSAL_SENT)
    OfferItem.objects.create(
        offer=offer,
        robot_model="BellaBot",
        quantity=3,
        unit_price=Decimal("100.00"),
        contract_type=OfferItem.ContractType.PURCHASE,
    )
    OfferItem.objects.create(
        offer=offer,
        robot_model="BellaBot",
        quantity=2,
        unit_price=Decimal("50.00"),
        contract_type=OfferItem.ContractType.LEASE,
        lease_months=12,
    )
    return offer


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def sales_client(api_client, sales_user):
    api_client.force_authenticate(user=sales_user)
    return api_client


@pytest.fixture
def manager_client(api_client, manager_user):
    api_client.force_authenticate(user=manager_user)
    return api_client
