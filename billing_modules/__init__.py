"""
Billing modules: deliverable tracking, invoicing and reporting.

Each module follows the same layout:
- models.py: frozen dataclass value objects (no I/O)
- orm.py: SQLAlchemy persistence models with to_dto()
- service.py: the session-backed service that owns the transaction

Modules import from billing_kernel and billing_config, never the reverse.
"""
