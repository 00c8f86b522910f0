"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes. The
record store implementation is chosen from STORE_BACKEND; every manager is
built per request on top of it.
"""

from typing import Annotated, Iterator, Optional

from fastapi import Depends

import config
from core.exceptions import ConfigurationError
from utils.auth_backend import AuthBackend, StoreAuthBackend
from utils.dashboard_router import DashboardBuilder
from utils.json_store import JsonRecordStore
from utils.notifier import VerificationNotifier, create_notifier
from utils.record_store import RecordStore
from utils.ticket_manager import TicketManager
from utils.user_manager import UserManager

STORE_BACKENDS = ("sql", "json")

# Process-wide singletons
_json_store_instance: Optional[JsonRecordStore] = None
_notifier_instance: Optional[VerificationNotifier] = None


def check_store_backend() -> str:
    """Return STORE_BACKEND, refusing unknown values."""
    if config.STORE_BACKEND not in STORE_BACKENDS:
        raise ConfigurationError(
            f"Unknown STORE_BACKEND: {config.STORE_BACKEND}. "
            f"Expected one of: {', '.join(STORE_BACKENDS)}"
        )
    return config.STORE_BACKEND


def get_record_store() -> Iterator[RecordStore]:
    """Yield the configured RecordStore.

    The SQL store gets a request-scoped DB session that is closed afterwards.
    """
    global _json_store_instance
    if check_store_backend() == "json":
        if _json_store_instance is None:
            _json_store_instance = JsonRecordStore(config.JSON_STORE_PATH)
        yield _json_store_instance
        return

    from core.database import SessionLocal
    from utils.sql_store import SqlRecordStore

    db = SessionLocal()
    try:
        yield SqlRecordStore(db)
    finally:
        db.close()


def get_notifier() -> VerificationNotifier:
    """Get the verification notifier singleton."""
    global _notifier_instance
    if _notifier_instance is None:
        _notifier_instance = create_notifier()
    return _notifier_instance


def get_user_manager(store: RecordStore = Depends(get_record_store)) -> UserManager:
    return UserManager(store)


def get_ticket_manager(store: RecordStore = Depends(get_record_store)) -> TicketManager:
    return TicketManager(store)


def get_auth_backend(
    store: RecordStore = Depends(get_record_store),
    notifier: VerificationNotifier = Depends(get_notifier),
) -> AuthBackend:
    return StoreAuthBackend(store, notifier)


def get_dashboard_builder(
    store: RecordStore = Depends(get_record_store),
) -> DashboardBuilder:
    return DashboardBuilder(TicketManager(store), UserManager(store))


# Type aliases for dependency injection
RecordStoreDep = Annotated[RecordStore, Depends(get_record_store)]
UserManagerDep = Annotated[UserManager, Depends(get_user_manager)]
TicketManagerDep = Annotated[TicketManager, Depends(get_ticket_manager)]
AuthBackendDep = Annotated[AuthBackend, Depends(get_auth_backend)]
DashboardBuilderDep = Annotated[DashboardBuilder, Depends(get_dashboard_builder)]
