"""
Typed Exception Hierarchy for the Billing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (an API layer, a scheduler, a CLI) must translate failures into
user-facing messages without parsing strings.  Every failure raised by the
billing core therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example - WRONG way:
    try:
        service.record_payment(invoice_id, amount, paid_on, actor_id)
    except Exception as e:
        if "full invoice amount" in str(e):
            ...

Example - RIGHT way:
    try:
        service.record_payment(invoice_id, amount, paid_on, actor_id)
    except AmountMismatchError as e:
        api_response(code=e.code, expected=e.expected, received=e.received)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BillingKernelError (base)
    |
    +-- ValidationError
    |   +-- PhaseNotBillableError
    |
    +-- InvalidStateError
    |
    +-- InvalidTransitionError
    |   +-- GuardFailedError
    |
    +-- AmountMismatchError
    |
    +-- NotFoundError
    |   +-- InvoiceNotFoundError
    |   +-- LineItemNotFoundError
    |   +-- DeliverableNotFoundError
    |   +-- PhaseNotFoundError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                      | When Raised
--------------------------|---------------------------------------------------
VALIDATION_ERROR          | Malformed input (negative quantity/price, bad dates)
PHASE_NOT_BILLABLE        | Invoice requested for a phase with open deliverables
INVALID_STATE             | Operation not allowed in current status
INVALID_TRANSITION        | Lifecycle transition not in the transition table
GUARD_FAILED              | Declared transition whose guard does not hold
AMOUNT_MISMATCH           | Payment amount != outstanding total
INVOICE_NOT_FOUND         | Invoice id unknown (or other organization)
LINE_ITEM_NOT_FOUND       | Line item id not on the invoice
DELIVERABLE_NOT_FOUND     | Deliverable unknown or owned by another phase
PHASE_NOT_FOUND           | Phase id unknown
OPTIMISTIC_LOCK_CONFLICT  | Invoice modified by a concurrent transaction
CONFIGURATION_ERROR       | Billing configuration file failed validation

===============================================================================
RETRY POLICY
===============================================================================

None of these represent transient faults and none are retried inside the
core.  ConcurrencyError is the one category a caller may choose to retry
after re-reading the invoice.
"""


class BillingKernelError(Exception):
    """
    Base exception for all billing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BILLING_KERNEL_ERROR"


# Input validation


class ValidationError(BillingKernelError):
    """Input failed validation (negative amounts, missing fields, bad dates)."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class PhaseNotBillableError(ValidationError):
    """Invoice requested for a phase whose deliverables are not all complete."""

    code: str = "PHASE_NOT_BILLABLE"

    def __init__(self, phase_id: str, complete: int, total: int):
        self.phase_id = phase_id
        self.complete = complete
        self.total = total
        super().__init__(
            f"Phase {phase_id} is not ready for invoicing: "
            f"{complete}/{total} deliverables complete",
            field="phase_id",
        )


# Lifecycle errors


class InvalidStateError(BillingKernelError):
    """Operation is not allowed while the entity is in its current status."""

    code: str = "INVALID_STATE"

    def __init__(self, entity_id: str, status: str, operation: str):
        self.entity_id = entity_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} invoice {entity_id} in status {status}"
        )


class InvalidTransitionError(BillingKernelError):
    """Requested status change is not in the invoice transition table."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        from_status: str,
        to_status: str,
        entity_id: str | None = None,
        message: str | None = None,
    ):
        self.from_status = from_status
        self.to_status = to_status
        self.entity_id = entity_id
        super().__init__(
            message or f"Invalid invoice transition {from_status} -> {to_status}"
        )


class GuardFailedError(InvalidTransitionError):
    """Transition is declared but its guard condition does not hold."""

    code: str = "GUARD_FAILED"

    def __init__(
        self,
        from_status: str,
        to_status: str,
        guard: str,
        entity_id: str | None = None,
    ):
        self.guard = guard
        super().__init__(
            from_status,
            to_status,
            entity_id=entity_id,
            message=(
                f"Invoice transition {from_status} -> {to_status} "
                f"blocked by guard {guard}"
            ),
        )


class AmountMismatchError(BillingKernelError):
    """Payment amount does not exactly equal the invoice total."""

    code: str = "AMOUNT_MISMATCH"

    def __init__(self, invoice_id: str, expected: str, received: str):
        self.invoice_id = invoice_id
        self.expected = expected
        self.received = received
        super().__init__(
            f"Payment must be for the full invoice amount on {invoice_id}: "
            f"expected {expected}, received {received}"
        )


# Lookup errors


class NotFoundError(BillingKernelError):
    """Base exception for missing referenced entities."""

    code: str = "NOT_FOUND"


class InvoiceNotFoundError(NotFoundError):
    """Invoice with given ID was not found."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Invoice not found: {invoice_id}")


class LineItemNotFoundError(NotFoundError):
    """Line item is not present on the invoice."""

    code: str = "LINE_ITEM_NOT_FOUND"

    def __init__(self, invoice_id: str, item_id: str):
        self.invoice_id = invoice_id
        self.item_id = item_id
        super().__init__(f"Line item {item_id} not found on invoice {invoice_id}")


class DeliverableNotFoundError(NotFoundError):
    """Deliverable does not exist or does not belong to the phase."""

    code: str = "DELIVERABLE_NOT_FOUND"

    def __init__(self, phase_id: str, deliverable_id: str):
        self.phase_id = phase_id
        self.deliverable_id = deliverable_id
        super().__init__(
            f"Deliverable {deliverable_id} not found in phase {phase_id}"
        )


class PhaseNotFoundError(NotFoundError):
    """Phase with given ID was not found."""

    code: str = "PHASE_NOT_FOUND"

    def __init__(self, phase_id: str):
        self.phase_id = phase_id
        super().__init__(f"Phase not found: {phase_id}")


# Concurrency


class ConcurrencyError(BillingKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Configuration


class ConfigurationError(BillingKernelError):
    """Billing configuration failed to load or validate."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(message)
