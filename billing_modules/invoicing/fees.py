"""
Stage-based fee schedule.

Projects are billed progressively: reaching a stage makes a cumulative
share of the total project fee billable.  Informational only; invoices
are still built from line items.
"""

from decimal import Decimal

from billing_config import BillingConfig
from billing_kernel.domain.values import HUNDRED, ZERO, quantize_money, to_decimal
from billing_kernel.exceptions import ValidationError


class FeeSchedule:
    """Cumulative fee percentages per project stage."""

    def __init__(self, config: BillingConfig):
        self._config = config

    def cumulative_percentage(self, stage: str) -> Decimal:
        """Share of the project fee billable once ``stage`` is reached; 0 if unknown."""
        return self._config.fee_percentage_for(stage) or ZERO

    def cumulative_fee(self, budget: Decimal | str | int, stage: str) -> Decimal:
        try:
            amount = to_decimal(budget)
        except ValueError as e:
            raise ValidationError(str(e), field="budget") from e
        if amount < 0:
            raise ValidationError(f"Budget cannot be negative: {amount}", field="budget")
        return quantize_money(amount * self.cumulative_percentage(stage) / HUNDRED)

    def remaining_billable(
        self,
        budget: Decimal | str | int,
        stage: str,
        previously_billed: Decimal,
    ) -> Decimal:
        """Fee due at ``stage`` net of what was already billed, never negative."""
        return max(ZERO, self.cumulative_fee(budget, stage) - previously_billed)
