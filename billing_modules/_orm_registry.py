"""
Module ORM Registry (``billing_modules._orm_registry``).

Responsibility
--------------
Ensure every SQLAlchemy model is imported so that ``Base.metadata``
contains its table before ``create_tables()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Called by ``billing_kernel.db.engine.
create_tables`` and by the test suite.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``billing_modules.*.orm`` module.

    This function is idempotent -- repeated calls are harmless.
    """
    # Kernel tables first (sequence counters)
    import billing_kernel.services.sequence_service  # noqa: F401
    # fmt: off
    import billing_modules.deliverables.orm  # noqa: F401
    import billing_modules.invoicing.orm  # noqa: F401
    # fmt: on
