"""
Request-scoped dependencies: the store identity and the unit of work.

Store authorization is owned by the auth collaborator, which issues the
``store-id`` and ``store-role`` cookies.  This module only checks that they
are present and that a request does not address another store.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import timedelta

from fastapi import Cookie, HTTPException, Request, status

from inventory_kernel.db.engine import Database
from inventory_kernel.domain.clock import Clock
from inventory_kernel.services.inventory_services import InventoryServices


@dataclass(frozen=True)
class StoreIdentity:
    store_id: str
    role: str

    def authorize(self, requested_store_id: str | None) -> str:
        """The store a request acts on; 403 when it names a different store."""
        if requested_store_id is not None and requested_store_id != self.store_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Unauthorized for this store",
            )
        return self.store_id


def current_store(
    store_id: str | None = Cookie(default=None, alias="store-id"),
    store_role: str | None = Cookie(default=None, alias="store-role"),
) -> StoreIdentity:
    if not store_id or not store_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return StoreIdentity(store_id=store_id, role=store_role)


class InventoryGateway:
    """
    Long-lived collaborators shared by every request.

    ``unit_of_work()`` opens one database transaction and binds the kernel
    services to it.  It commits when the block exits normally and rolls back
    when it raises.
    """

    def __init__(
        self,
        database: Database,
        clock: Clock,
        hold_ttl: timedelta,
        case_sku_suffix: str,
        default_org_id: str | None = None,
    ):
        self.database = database
        self.clock = clock
        self._hold_ttl = hold_ttl
        self._case_sku_suffix = case_sku_suffix
        self._default_org_id = default_org_id

    @contextmanager
    def unit_of_work(self) -> Iterator[InventoryServices]:
        with self.database.session_scope() as session:
            yield InventoryServices(
                session,
                self.clock,
                hold_ttl=self._hold_ttl,
                case_sku_suffix=self._case_sku_suffix,
                default_org_id=self._default_org_id,
            )


def get_gateway(request: Request) -> InventoryGateway:
    return request.app.state.gateway
