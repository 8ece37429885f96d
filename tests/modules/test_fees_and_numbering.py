"""Fee schedule and invoice number formatting."""

from decimal import Decimal

import pytest

from billing_kernel.exceptions import ValidationError
from billing_modules.invoicing.fees import FeeSchedule
from billing_modules.invoicing.numbering import format_invoice_number, organization_code


class TestFeeSchedule:

    @pytest.fixture
    def fees(self, billing_config):
        return FeeSchedule(billing_config)

    @pytest.mark.parametrize(
        "stage,pct",
        [
            ("CONCEPT", "10"),
            ("PRELIM", "25"),
            ("STATUTORY", "35"),
            ("TENDER", "60"),
            ("CONTRACT", "65"),
            ("CONSTRUCTION", "90"),
            ("COMPLETION", "100"),
        ],
    )
    def test_cumulative_percentages(self, fees, stage, pct):
        assert fees.cumulative_percentage(stage) == Decimal(pct)

    def test_stage_lookup_is_case_insensitive(self, fees):
        assert fees.cumulative_percentage("tender") == Decimal("60")

    def test_unknown_stage_is_zero(self, fees):
        assert fees.cumulative_percentage("GENERAL") == Decimal("0")

    def test_cumulative_fee(self, fees):
        assert fees.cumulative_fee("120000", "PRELIM") == Decimal("30000.00")

    def test_remaining_billable_nets_previous_invoices(self, fees):
        remaining = fees.remaining_billable("100000", "STATUTORY", Decimal("25000.00"))
        assert remaining == Decimal("10000.00")

    def test_remaining_billable_never_negative(self, fees):
        assert fees.remaining_billable("1000", "CONCEPT", Decimal("500")) == Decimal("0")

    def test_negative_budget_rejected(self, fees):
        with pytest.raises(ValidationError):
            fees.cumulative_fee("-1", "CONCEPT")


class TestInvoiceNumbering:

    @pytest.mark.parametrize(
        "name,code",
        [
            ("Acme Architects", "ACME"),
            ("a.b-c d/e", "ABCD"),
            ("K2", "K2OR"),
            ("", "ORG"),
            (None, "ORG"),
            ("!!!", "ORG"),
        ],
    )
    def test_organization_code(self, name, code):
        assert organization_code(name) == code

    def test_sequence_is_zero_padded(self):
        assert format_invoice_number("ACME", 2024, 7) == "ACME-2024-007"

    def test_sequence_beyond_padding_keeps_all_digits(self):
        assert format_invoice_number("ACME", 2024, 1234) == "ACME-2024-1234"

    def test_custom_padding(self):
        assert format_invoice_number("ACME", 2024, 7, padding=5) == "ACME-2024-00007"
