"""
Billing Kernel

Shared foundation for the phase billing engine:
- Typed exceptions with machine-readable codes
- Structured JSON logging with request-scoped context
- Injectable clock for every "today" comparison
- Workflow value objects for document state machines
- SQLAlchemy base, engine and sequence allocation
"""

__version__ = "0.1.0"
