"""Database helpers for bounded lock waits.

Every vendor spells "stop waiting for a row lock after N seconds"
differently.  ``bounded_lock_wait`` applies the configured
``LOCK_WAIT_TIMEOUT`` to the current transaction; ``is_lock_contention``
recognises the error a vendor raises once that bound (or a deadlock) hits.
"""

from __future__ import annotations

from django.conf import settings
from django.db import DatabaseError, connections

_CONTENTION_MARKERS = (
    "database is locked",
    "database table is locked",
    "lock timeout",
    "lock wait timeout",
    "could not obtain lock",
    "deadlock",
)


def bounded_lock_wait(using: str = "default") -> None:
    """Limit how long the current transaction waits on contended rows.

    Must be called inside ``transaction.atomic()``.  SQLite is bounded by
    the connection ``timeout`` option instead (see settings).

    MySQL has no transaction-scoped lock wait: ``innodb_lock_wait_timeout``
    is set for the session and stays on the connection after the
    transaction ends, so later transactions on the same connection keep
    the ``LOCK_WAIT_TIMEOUT`` bound even when they never call this helper.
    """
    connection = connections[using]
    timeout = float(settings.LOCK_WAIT_TIMEOUT)
    if connection.vendor == "postgresql":
        with connection.cursor() as cursor:
            cursor.execute(
                "SET LOCAL lock_timeout = %s", [f"{int(timeout * 1000)}ms"]
            )
    elif connection.vendor == "mysql":
        with connection.cursor() as cursor:
            cursor.execute(
                "SET SESSION innodb_lock_wait_timeout = %s", [max(1, int(timeout))]
            )


def is_lock_contention(exc: DatabaseError) -> bool:
    """Return ``True`` when *exc* means "gave up waiting for a lock"."""
    message = str(exc).lower()
    return any(marker in message for marker in _CONTENTION_MARKERS)
