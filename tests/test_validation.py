from datetime import date
from decimal import Decimal

import pytest

from fintrack.db.core import InvestmentMovementType, ValidationError, money
from fintrack.crud.crud_transfer import derive_exchange_rate
from fintrack.crud.validation import parse_movement_kind, validate_period, validate_transfer
from fintrack.models.transfer import TransferCreate


class TestMovementKind:
    @pytest.mark.parametrize("raw", ["deposit", "Deposit", " DEPOSIT "])
    def test_deposit_any_case(self, raw):
        assert parse_movement_kind(raw) is InvestmentMovementType.DEPOSIT

    def test_withdrawal(self):
        assert parse_movement_kind("withdrawal") is InvestmentMovementType.WITHDRAWAL

    @pytest.mark.parametrize("raw", ["", "dividend", "deposits"])
    def test_other_kinds_rejected(self, raw):
        with pytest.raises(ValidationError):
            parse_movement_kind(raw)


class TestPeriod:
    def test_valid_period(self):
        validate_period(2026, 1)
        validate_period(2026, 12)

    def test_year_must_be_positive(self):
        with pytest.raises(ValidationError):
            validate_period(0, 5)


class TestTransferChecks:
    def test_zero_destination_rejected(self):
        with pytest.raises(ValidationError):
            validate_transfer(TransferCreate(
                transaction_date=date(2026, 2, 1), source_account_id=1, source_amount=Decimal("10"),
                dest_account_id=2, dest_amount=Decimal("0"),
            ))

    def test_rate_derivation(self):
        assert derive_exchange_rate(Decimal("3"), Decimal("10"), None) == Decimal("3.33333333")
        assert derive_exchange_rate(Decimal("3"), Decimal("10"), Decimal("0")) == Decimal("3.33333333")
        assert derive_exchange_rate(Decimal("3"), Decimal("10"), Decimal("2.5")) == Decimal("2.5")


class TestMoney:
    def test_rounds_half_up_to_cents(self):
        assert money(Decimal("2.345")) == Decimal("2.35")
        assert money(0.1 + 0.2) == Decimal("0.30")
        assert money(None) == Decimal("0.00")
