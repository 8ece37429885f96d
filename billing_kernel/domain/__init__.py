"""
Pure domain layer.

This module contains value objects and helpers with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (other than SystemClock, the one sanctioned time boundary)

All domain objects are immutable and deterministic.
"""

from billing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from billing_kernel.domain.values import (
    ZERO,
    percentage,
    quantize_money,
    quantize_percent,
    to_decimal,
)
from billing_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Guard",
    "Transition",
    "Workflow",
    "ZERO",
    "percentage",
    "quantize_money",
    "quantize_percent",
    "to_decimal",
]
