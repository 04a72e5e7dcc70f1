"""Unit tests for request schema validation."""

import pytest
from pydantic import ValidationError

from ecommerce_api.api.v1.affiliates.schemas import RegisterReferralRequest
from ecommerce_api.api.v1.orders.schemas import OrderCreate
from ecommerce_api.api.v1.payments.schemas import PaymentConfirm
from ecommerce_api.models import PaymentMethod


class TestPaymentConfirm:
    """Test manual payment confirmation input."""

    def test_bcp_payment_requires_operation_code(self):
        with pytest.raises(ValidationError):
            PaymentConfirm(order_id=1, method=PaymentMethod.BCP_CODE)

    def test_bank_transfer_without_code(self):
        payment = PaymentConfirm(order_id=1, method="bank_transfer", reference="TRX-99")

        assert payment.method == PaymentMethod.BANK_TRANSFER
        assert payment.bcp_code is None


class TestOrderCreate:
    """Test checkout input."""

    def test_address_is_required(self):
        with pytest.raises(ValidationError):
            OrderCreate()

    def test_new_address_phone_is_normalized(self):
        order = OrderCreate(shipping_address={
            "name": "Ana  Torres",
            "phone": "999 888 777",
            "region": "Lima",
            "city": "Lima",
            "address": "Av. Principal 123",
        })

        assert order.shipping_address.phone == "999888777"
        assert order.shipping_address.name == "Ana Torres"


class TestRegisterReferral:
    """Test sponsor registration input."""

    def test_region_is_required(self):
        with pytest.raises(ValidationError):
            RegisterReferralRequest(
                dni="71234567",
                full_name="Nuevo Afiliado",
                email="nuevo@example.com",
                phone="987654321",
                city="Lima",
                address="Jr. Las Flores 456",
            )

    def test_invalid_dni(self):
        with pytest.raises(ValidationError):
            RegisterReferralRequest(
                dni="71A34567",
                full_name="Nuevo Afiliado",
                email="nuevo@example.com",
                phone="987654321",
                region="Lima",
                city="Lima",
                address="Jr. Las Flores 456",
            )
