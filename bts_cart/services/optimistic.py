"""Optimistic update tracking for the cart store.

The storefront applies a cart change immediately and confirms it with the
backend afterwards. Before the change it calls
``begin_optimistic_update``; on success ``commit_operation``, on failure
``rollback_operation`` restores the items captured at the start.

Pending operations and snapshots live in memory only.
"""
from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from bts_cart.core.constants import MAX_SNAPSHOTS
from bts_cart.core.logging_config import logger
from bts_cart.domain.cart import CartLineItem, CartState
from bts_cart.domain.operations import (
    CartSnapshot,
    PendingOperation,
    PendingOperationType,
    generate_operation_id,
)


class OptimisticUpdatesMixin:
    """Pending-operation bookkeeping. Requires ``_state`` and ``_commit``."""

    _state: CartState

    def _init_optimistic(self) -> None:
        self._pending: list[PendingOperation] = []
        self._snapshots: deque[CartSnapshot] = deque(maxlen=MAX_SNAPSHOTS)

    def _commit(self, state: CartState) -> None:
        raise NotImplementedError

    def _restore_items(self, items: Iterable[CartLineItem]) -> None:
        self._commit(CartState.from_items(items))

    def begin_optimistic_update(
        self, op_type: PendingOperationType | str, item_id: str | None = None
    ) -> str:
        """Record the current items and return an id for the pending operation."""
        operation = PendingOperation(
            id=generate_operation_id(),
            type=PendingOperationType(op_type),
            item_id=item_id,
            previous_items=self._state.line_items,
        )
        self._pending.append(operation)
        self._snapshots.append(CartSnapshot(items=self._state.line_items))
        return operation.id

    def commit_operation(self, operation_id: str) -> None:
        self._pending = [op for op in self._pending if op.id != operation_id]

    def rollback_operation(self, operation_id: str) -> bool:
        operation = next((op for op in self._pending if op.id == operation_id), None)
        if operation is None:
            return False

        logger.info("Rolling back cart operation %s (%s)", operation.id, operation.type.value)
        self._pending = [op for op in self._pending if op.id != operation_id]
        self._restore_items(operation.previous_items)
        return True

    def get_pending_operation(self, item_id: str) -> PendingOperation | None:
        for operation in self._pending:
            if operation.item_id == item_id:
                return operation
        return None

    def has_pending_operations(self) -> bool:
        return bool(self._pending)

    def clear_pending_operations(self) -> None:
        self._pending = []

    def create_snapshot(self) -> CartSnapshot:
        return CartSnapshot(items=self._state.line_items)

    def restore_snapshot(self, snapshot: CartSnapshot) -> None:
        self._restore_items(snapshot.items)

    @property
    def snapshots(self) -> tuple[CartSnapshot, ...]:
        return tuple(self._snapshots)
