"""
Bulk order service.

Paste → parse → validate → edit/delete → commit to cart, for one user's
editing session. Sessions are memory-only and discarded on close.

Collaborators are passed in, never looked up:
    validator: has validate_skus(skus, user_id, discount_percentage)
    cart: has add_line(user_id, CartLine)
Both are synchronous; calls to them run in a worker thread so the event
loop is free while the backend answers.
"""

import asyncio
from collections import Counter
from decimal import Decimal
from typing import Optional, Protocol
from uuid import uuid4
import structlog

from config import settings
from exceptions import (
    AppError,
    BulkRowNotFoundError,
    BulkSessionClosedError,
    CartLoginRequiredError,
    CartPricingError,
    CommitInProgressError,
    CommitInterruptedError,
    InvalidSKUError,
    NothingToCommitError,
    ValidationInProgressError,
    ValidationTimeoutError,
)
from models.bulk_order import (
    BulkRow,
    ReadinessCounts,
    RowStatus,
    UNMATCHED_SKU_MESSAGE,
    ValidationResult,
)
from models.cart import CartItem, CartLine
from parsers.bulk_paste_parser import parse_bulk_text

logger = structlog.get_logger(__name__)


class SkuValidator(Protocol):
    def validate_skus(
        self,
        skus: list[str],
        user_id: Optional[str] = None,
        discount_percentage: Optional[Decimal] = None
    ) -> list[ValidationResult]: ...


class CartInserter(Protocol):
    def add_line(self, user_id: Optional[str], line: CartLine) -> CartItem: ...


# ===================
# ROW-SET OPERATIONS
# ===================

def distinct_skus(rows: list[BulkRow]) -> list[str]:
    """Part numbers in first-seen order, each once."""
    return list(dict.fromkeys(row.sku_text for row in rows))


def apply_validation_results(
    rows: list[BulkRow],
    results: list[ValidationResult],
) -> list[BulkRow]:
    """
    Merge a validation response onto rows by exact part number.

    Rows whose part number is missing from the response become errors.
    """
    by_sku: dict[str, ValidationResult] = {}
    for result in results:
        by_sku.setdefault(result.sku, result)

    validated = []
    for row in rows:
        result = by_sku.get(row.sku_text)
        if result is None:
            validated.append(row.mark_error(UNMATCHED_SKU_MESSAGE))
        else:
            validated.append(row.apply_validation_result(result))
    return validated


def count_statuses(rows: list[BulkRow]) -> ReadinessCounts:
    """Per-status counts for a row set."""
    counts = Counter(row.status for row in rows)
    return ReadinessCounts(
        pending=counts[RowStatus.PENDING],
        valid=counts[RowStatus.VALID],
        warning=counts[RowStatus.WARNING],
        error=counts[RowStatus.ERROR],
        total=len(rows),
    )


def to_cart_line(row: BulkRow) -> CartLine:
    """Map a validated row to the cart's insertion shape."""
    return CartLine(
        catalog_id=row.resolved_catalog_id,
        sku=row.sku_text,
        description=row.description,
        price=row.unit_price or Decimal("0.00"),
        quantity=row.quantity,
        discounted_price=row.discounted_price or row.unit_price or Decimal("0.00"),
        in_stock=bool(row.in_stock),
    )


async def validate_rows(
    rows: list[BulkRow],
    validator: SkuValidator,
    user_id: Optional[str] = None,
    discount_percentage: Optional[Decimal] = None,
    timeout: Optional[float] = None,
) -> list[BulkRow]:
    """
    Validate a row set in one round-trip.

    Args:
        rows: Rows to validate
        validator: Catalog validation collaborator
        user_id: Acting user, None for anonymous
        discount_percentage: Passed through to the validator
        timeout: Seconds before giving up (default from settings)

    Returns:
        New rows with validation applied. Input rows are not modified.

    Raises:
        ValidationTimeoutError: If the round-trip takes longer than timeout
        CatalogValidationError: If the round-trip fails
    """
    if not rows:
        return rows

    timeout = timeout if timeout is not None else settings.validation_timeout_seconds
    skus = distinct_skus(rows)

    try:
        results = await asyncio.wait_for(
            asyncio.to_thread(validator.validate_skus, skus, user_id, discount_percentage),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        logger.error("bulk_validation_timed_out", sku_count=len(skus), timeout=timeout)
        raise ValidationTimeoutError(timeout) from e

    return apply_validation_results(rows, results)


async def commit_rows(
    rows: list[BulkRow],
    cart: CartInserter,
    user_id: Optional[str] = None,
) -> list[CartItem]:
    """
    Hand every valid/warning row to the cart, one insertion per row.

    Pending and error rows are left out without comment.

    Raises:
        NothingToCommitError: If no row is committable
        CommitInterruptedError: If an insertion fails; carries the ids of
            rows already inserted. A failure that is not an AppError is
            reported as CartPricingError.
    """
    committable = [row for row in rows if row.is_committable]
    if not committable:
        raise NothingToCommitError(count_statuses(rows).model_dump())

    added: list[CartItem] = []
    committed_ids: list[str] = []
    for row in committable:
        try:
            item = await asyncio.to_thread(cart.add_line, user_id, to_cart_line(row))
        except Exception as e:
            cause = e if isinstance(e, AppError) else CartPricingError(
                row.resolved_catalog_id or "", f"{type(e).__name__}: {e}"
            )
            logger.error(
                "bulk_commit_interrupted",
                row_id=row.id,
                committed=len(committed_ids),
                error=cause.code,
                error_type=type(e).__name__
            )
            raise CommitInterruptedError(cause, committed_ids, row.id) from e
        added.append(item)
        committed_ids.append(row.id)

    return added


# ===================
# SESSION
# ===================

class BulkOrderSession:
    """
    One user's bulk order editing session.

    Holds the row set and the validation flags. Only one validation may
    be in flight; edits made while it is in flight win over its result.
    """

    def __init__(
        self,
        validator: SkuValidator,
        cart: CartInserter,
        user_id: Optional[str] = None,
        discount_percentage: Optional[Decimal] = None,
        validation_timeout: Optional[float] = None,
        session_id: Optional[str] = None,
    ):
        self.id = session_id or str(uuid4())
        self.validator = validator
        self.cart = cart
        self.user_id = user_id
        self.discount_percentage = discount_percentage
        self.validation_timeout = validation_timeout

        self.rows: list[BulkRow] = []
        self.raw_text = ""
        self.validating = False
        self.committing = False
        self.validation_complete = False
        self.closed = False
        # Bumped by every paste and by close; stale responses compare against it
        self._generation = 0

    # ===================
    # INPUT
    # ===================

    def load_text(self, raw_text: str) -> list[BulkRow]:
        """Replace the whole row set with a new paste."""
        self._ensure_idle()
        self._generation += 1
        self.raw_text = raw_text or ""
        self.rows = parse_bulk_text(self.raw_text)
        self.validation_complete = False

        logger.info("bulk_session_loaded", session_id=self.id, rows=len(self.rows))
        return self.rows

    # ===================
    # VALIDATION
    # ===================

    async def validate(self) -> list[BulkRow]:
        """
        Validate the current rows.

        On completion, results land only on rows that were not edited,
        deleted or re-pasted while the call was out. If the session was
        closed meanwhile the response is dropped.

        Raises:
            ValidationInProgressError: If a validation is already running
            CatalogValidationError / ValidationTimeoutError: Round-trip failed;
                rows are left as they were
        """
        self._ensure_idle()
        if self.validating:
            raise ValidationInProgressError(self.id)
        if not self.rows:
            return self.rows

        snapshot = {row.id: row for row in self.rows}
        generation = self._generation
        self.validating = True

        logger.info(
            "bulk_validation_started",
            session_id=self.id,
            rows=len(snapshot),
            user_id=self.user_id
        )

        try:
            validated = await validate_rows(
                list(snapshot.values()),
                self.validator,
                user_id=self.user_id,
                discount_percentage=self.discount_percentage,
                timeout=self.validation_timeout,
            )
        except Exception as e:
            logger.error(
                "bulk_validation_failed",
                session_id=self.id,
                error=str(e),
                error_type=type(e).__name__
            )
            raise
        finally:
            self.validating = False

        if self.closed or generation != self._generation:
            logger.info("bulk_validation_response_discarded", session_id=self.id)
            return self.rows

        validated_by_id = {row.id: row for row in validated}
        stale = 0
        merged = []
        for row in self.rows:
            if snapshot.get(row.id) is row:
                merged.append(validated_by_id[row.id])
            else:
                stale += 1
                merged.append(row)
        self.rows = merged
        self.validation_complete = stale == 0

        counts = self.readiness_counts()
        logger.info(
            "bulk_validation_complete",
            session_id=self.id,
            valid=counts.valid,
            warning=counts.warning,
            error=counts.error,
            edited_in_flight=stale
        )
        return self.rows

    # ===================
    # EDITING
    # ===================

    def edit_row(self, row_id: str, sku_text: Optional[str] = None, quantity=None) -> BulkRow:
        """
        Correct a row's part number and/or quantity; it goes back to pending.

        Raises:
            BulkRowNotFoundError: If row_id is not in the session
            InvalidSKUError: If the new part number is empty once normalized
        """
        self._ensure_idle()
        index = self._index_of(row_id)

        try:
            edited = self.rows[index].edit(sku_text=sku_text, quantity=quantity)
        except ValueError as e:
            raise InvalidSKUError(sku_text or "") from e

        self.rows[index] = edited
        self.validation_complete = False

        logger.info("bulk_row_edited", session_id=self.id, row_id=row_id)
        return edited

    def delete_row(self, row_id: str) -> None:
        """Remove a row for good."""
        self._ensure_idle()
        index = self._index_of(row_id)
        del self.rows[index]
        logger.info("bulk_row_deleted", session_id=self.id, row_id=row_id)

    def readiness_counts(self) -> ReadinessCounts:
        return count_statuses(self.rows)

    # ===================
    # COMMIT
    # ===================

    async def commit(self) -> list[CartItem]:
        """
        Add valid and warning rows to the cart, then clear the session.

        While the insertions run the session is locked: another commit,
        a validation, a paste, an edit or a delete is refused. If the cart
        fails part-way, the rows already added are removed from the session
        so a retry does not add them twice.

        Raises:
            CommitInProgressError: If a commit is already running
            ValidationInProgressError: If a validation is outstanding
            CartLoginRequiredError: If the session has no user
            NothingToCommitError: If no row is valid or warning
            CommitInterruptedError: If a cart insertion fails
        """
        self._ensure_idle()
        if self.validating:
            raise ValidationInProgressError(self.id)
        if not self.user_id:
            raise CartLoginRequiredError()

        counts = self.readiness_counts()
        self.committing = True
        try:
            added = await commit_rows(self.rows, self.cart, self.user_id)
        except CommitInterruptedError as e:
            committed = set(e.committed_row_ids)
            self.rows = [row for row in self.rows if row.id not in committed]
            raise
        finally:
            self.committing = False

        logger.info(
            "bulk_order_committed",
            session_id=self.id,
            added=len(added),
            skipped=counts.total - len(added)
        )
        self._clear()
        return added

    # ===================
    # LIFECYCLE
    # ===================

    def close(self) -> None:
        """Discard the session; late validation responses are dropped."""
        if self.closed:
            return
        self._clear()
        self.closed = True
        logger.info("bulk_session_closed", session_id=self.id)

    def _clear(self) -> None:
        self._generation += 1
        self.rows = []
        self.raw_text = ""
        self.validation_complete = False

    def _ensure_idle(self) -> None:
        if self.closed:
            raise BulkSessionClosedError(self.id)
        if self.committing:
            raise CommitInProgressError(self.id)

    def _index_of(self, row_id: str) -> int:
        for index, row in enumerate(self.rows):
            if row.id == row_id:
                return index
        raise BulkRowNotFoundError(row_id)
