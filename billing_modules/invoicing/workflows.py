"""
Invoicing Workflows.

State machine for the client invoice lifecycle.  This table is the only
place the legal status changes are declared.
"""

from billing_kernel.domain.workflow import Guard, Transition, Workflow
from billing_kernel.logging_config import get_logger

logger = get_logger("modules.invoicing.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

PAST_DUE = Guard(
    name="past_due",
    description="Today is after the invoice due date",
)

FULL_PAYMENT_RECEIVED = Guard(
    name="full_payment_received",
    description="Payment amount equals the invoice total",
)


# -----------------------------------------------------------------------------
# Invoice Workflow
# -----------------------------------------------------------------------------

INVOICE_WORKFLOW = Workflow(
    name="client_invoice",
    description="Client invoice lifecycle",
    initial_state="draft",
    states=(
        "draft",
        "sent",
        "viewed",
        "overdue",
        "paid",
        "cancelled",
    ),
    transitions=(
        Transition("draft", "sent", action="mark_sent"),
        Transition("draft", "cancelled", action="cancel"),
        Transition("sent", "viewed", action="mark_viewed"),
        Transition("sent", "overdue", action="sweep_overdue", guard=PAST_DUE),
        Transition("sent", "cancelled", action="cancel"),
        Transition("sent", "paid", action="apply_payment", guard=FULL_PAYMENT_RECEIVED),
        Transition("viewed", "overdue", action="sweep_overdue", guard=PAST_DUE),
        Transition("viewed", "cancelled", action="cancel"),
        Transition("viewed", "paid", action="apply_payment", guard=FULL_PAYMENT_RECEIVED),
        Transition("overdue", "cancelled", action="cancel"),
        Transition("overdue", "paid", action="apply_payment", guard=FULL_PAYMENT_RECEIVED),
    ),
    terminal_states=("paid", "cancelled"),
)

logger.info(
    "invoice_workflow_registered",
    extra={
        "workflow_name": INVOICE_WORKFLOW.name,
        "state_count": len(INVOICE_WORKFLOW.states),
        "transition_count": len(INVOICE_WORKFLOW.transitions),
        "initial_state": INVOICE_WORKFLOW.initial_state,
    },
)
