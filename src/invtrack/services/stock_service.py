from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from invtrack.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from invtrack.domain.models import Batch, BatchAllocation, ExitResult
from invtrack.repositories.contracts import BatchRepository
from invtrack.repositories.unit_of_work import SqliteUnitOfWork, UnitOfWork

log = logging.getLogger("invtrack.stock")


def _to_quantity(value: object, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be a whole number.")
    if value <= 0:
        raise ValidationError(f"{label} must be > 0.")
    return value


def _to_unit_cost(value: object) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError("Unit cost must be a number.")
    try:
        cost = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"Unit cost must be a number. Received: {value!r}") from exc
    if not cost.is_finite():
        raise ValidationError("Unit cost must be a finite number.")
    if cost < 0:
        raise ValidationError("Unit cost must be >= 0.")
    return cost


def _match_clock(value: datetime, now: datetime, label: str) -> datetime:
    """Batch dates share the clock's awareness so FIFO order compares instants."""
    if not isinstance(value, datetime):
        raise ValidationError(f"{label} must be a datetime.")
    aware = now.tzinfo is not None
    if (value.tzinfo is not None) != aware:
        kind = "timezone-aware" if aware else "naive"
        raise ValidationError(f"{label} must be {kind}, like the ledger clock.")
    if aware:
        return value.astimezone(timezone.utc)
    return value


def _require_actor(actor: str) -> str:
    name = (actor or "").strip()
    if not name:
        raise ValidationError("An acting user is required.")
    return name


class StockLedger:
    """Batch ledger: stock entries, FIFO exits and stock queries.

    Stock is never stored on the product. It is the sum of the product's
    batches, and every withdrawal drains the oldest batches first.
    """

    def __init__(
        self,
        repo: BatchRepository,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.repo = repo
        self.uow_factory = uow_factory or (lambda: SqliteUnitOfWork(repo))
        self.clock = clock or getattr(repo, "clock", datetime.now)

    def register_entry(
        self,
        product_id: int,
        supplier_id: int,
        quantity: int,
        unit_cost: Decimal | float | int | str,
        entry_date: Optional[datetime] = None,
        expiration_date: Optional[datetime] = None,
        *,
        actor: str,
    ) -> int:
        qty = _to_quantity(quantity, "Quantity")
        cost = _to_unit_cost(unit_cost)
        actor = _require_actor(actor)
        now = self.clock()
        entry = _match_clock(entry_date or now, now, "Entry date")

        if expiration_date is not None:
            expiration_date = _match_clock(expiration_date, now, "Expiration date")
            if not expiration_date > entry:
                raise ValidationError("Expiration date must be after the entry date.")

        with self.uow_factory() as uow:
            product = uow.get_product(product_id)
            if product is None or product.audit.is_deleted:
                raise NotFoundError(f"Product {product_id} not found.")
            supplier = uow.get_supplier(supplier_id)
            if supplier is None or supplier.audit.is_deleted:
                raise NotFoundError(f"Supplier {supplier_id} not found.")
            if product.is_perishable and expiration_date is None:
                raise ValidationError(f"Product '{product.sku}' is perishable: an expiration date is required.")

            batch_id = uow.add_batch(product.id, supplier.id, qty, cost, entry, expiration_date, actor)

        log.info(
            "stock_entry_registered batch_id=%s product_id=%s supplier_id=%s qty=%s unit_cost=%s actor=%s",
            batch_id, product_id, supplier_id, qty, cost, actor,
        )
        return batch_id

    def get_total_stock(self, product_id: int) -> int:
        return self.repo.sum_batch_quantity(int(product_id))

    def try_register_exit(self, product_id: int, quantity_required: int, *, actor: str) -> ExitResult:
        """Withdraw stock FIFO inside one transaction.

        Returns a failed result, with nothing written, when the product's
        batches do not cover the request. Storage errors propagate and roll
        back every deduction made so far.
        """
        required = _to_quantity(quantity_required, "Quantity")
        actor = _require_actor(actor)

        with self.uow_factory() as uow:
            product = uow.get_product(product_id)
            if product is None or product.audit.is_deleted:
                raise NotFoundError(f"Product {product_id} not found.")

            batches = uow.fifo_candidates(product.id)
            available = sum(b.quantity for b in batches)
            if available < required:
                error = InsufficientStockError(product.id, available, required)
                log.warning(
                    "stock_exit_rejected product_id=%s requested=%s available=%s actor=%s",
                    product.id, required, available, actor,
                )
                return ExitResult(product_id=product.id, requested=required, error=error)

            allocations = self._deduct_fifo(uow, batches, required, actor)

        result = ExitResult(product_id=product.id, requested=required, allocations=tuple(allocations))
        log.info(
            "stock_exit_registered product_id=%s qty=%s batches=%s cost=%s actor=%s",
            product.id, required, [a.batch_id for a in allocations], result.cost_of_goods, actor,
        )
        return result

    def register_exit(self, product_id: int, quantity_required: int, *, actor: str) -> ExitResult:
        return self.try_register_exit(product_id, quantity_required, actor=actor).unwrap()

    @staticmethod
    def _deduct_fifo(uow: UnitOfWork, batches: list[Batch], required: int, actor: str) -> list[BatchAllocation]:
        remaining = required
        allocations: list[BatchAllocation] = []
        for batch in batches:
            if remaining == 0:
                break
            take = min(batch.quantity, remaining)
            uow.set_batch_quantity(batch.id, batch.quantity - take, actor)
            allocations.append(BatchAllocation(batch_id=batch.id, quantity=take, unit_cost=batch.unit_cost))
            remaining -= take
        return allocations

    def get_all_active_batches(self) -> list[Batch]:
        return self.repo.list_active_batches()

    def list_batches_for_product(self, product_id: int, include_exhausted: bool = True) -> list[Batch]:
        if self.repo.get_product_by_id(int(product_id)) is None:
            raise NotFoundError(f"Product {product_id} not found.")
        return self.repo.list_batches_for_product(int(product_id), include_exhausted=include_exhausted)
