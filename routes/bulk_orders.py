"""
Bulk order API routes.

One session per paste: create from text, validate, correct rows, then
commit the valid ones to the cart.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
import structlog

from config import settings
from exceptions import BulkSessionNotFoundError
from models.bulk_order import (
    BulkOrderCreate,
    BulkRowPatch,
    BulkSessionResponse,
    BulkTextReplace,
)
from models.cart import CommitResponse
from routes.errors import handle_error
from services import bulk_session_store
from services.bulk_order_service import BulkOrderSession
from services.cart_service import CartService, get_cart_service
from services.catalog_validation_service import (
    CatalogValidationService,
    get_catalog_validation_service,
)
from services.rate_limit_service import RateLimiter, get_bulk_rate_limiter, rate_limit_key

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/bulk-orders", tags=["Bulk Orders"])


def session_response(session: BulkOrderSession) -> BulkSessionResponse:
    return BulkSessionResponse(
        session_id=session.id,
        user_id=session.user_id,
        rows=session.rows,
        counts=session.readiness_counts(),
        validating=session.validating,
        validation_complete=session.validation_complete,
    )


# ===================
# ROUTES
# ===================

@router.post("", response_model=BulkSessionResponse, status_code=201)
async def create_bulk_order(
    data: BulkOrderCreate,
    validator: CatalogValidationService = Depends(get_catalog_validation_service),
    cart: CartService = Depends(get_cart_service),
):
    """
    Start a bulk order from pasted text.

    Lines that cannot be read are skipped; the response lists only the
    rows that parsed.
    """
    try:
        session = BulkOrderSession(
            validator=validator,
            cart=cart,
            user_id=data.user_id,
            discount_percentage=data.discount_percentage,
            validation_timeout=settings.validation_timeout_seconds,
        )
        session.load_text(data.text)
        bulk_session_store.store_session(session)
        return session_response(session)

    except Exception as e:
        return handle_error(e)


@router.get("/{session_id}", response_model=BulkSessionResponse)
async def get_bulk_order(session_id: str):
    """
    Get the current state of a session.

    Raises:
        404: Session not found or expired
    """
    try:
        return session_response(bulk_session_store.require_session(session_id))
    except Exception as e:
        return handle_error(e)


@router.put("/{session_id}/text", response_model=BulkSessionResponse)
async def replace_bulk_text(session_id: str, data: BulkTextReplace):
    """
    Replace every row with a new paste.

    Raises:
        404: Session not found or expired
    """
    try:
        session = bulk_session_store.require_session(session_id)
        session.load_text(data.text)
        return session_response(session)
    except Exception as e:
        return handle_error(e)


@router.post("/{session_id}/validate", response_model=BulkSessionResponse)
async def validate_bulk_order(
    session_id: str,
    request: Request,
    limiter: RateLimiter = Depends(get_bulk_rate_limiter),
):
    """
    Validate all rows against the catalog in one round-trip.

    Raises:
        404: Session not found or expired
        409: Validation or commit already running
        429: Too many bulk validations
        503: Catalog unreachable (rows unchanged)
        504: Catalog did not answer in time (rows unchanged)
    """
    try:
        session = bulk_session_store.require_session(session_id)
        client_host = request.client.host if request.client else None
        limiter.check(rate_limit_key("bulk", session.user_id, client_host))

        await session.validate()
        return session_response(session)

    except Exception as e:
        return handle_error(e)


@router.patch("/{session_id}/rows/{row_id}", response_model=BulkSessionResponse)
async def edit_bulk_row(session_id: str, row_id: str, data: BulkRowPatch):
    """
    Correct a row. The row goes back to pending until revalidated.

    Raises:
        404: Session or row not found
        409: Rows are being added to the cart
        422: Part number empty after normalization
    """
    try:
        session = bulk_session_store.require_session(session_id)
        session.edit_row(row_id, sku_text=data.sku_text, quantity=data.quantity)
        return session_response(session)
    except Exception as e:
        return handle_error(e)


@router.delete("/{session_id}/rows/{row_id}", response_model=BulkSessionResponse)
async def delete_bulk_row(session_id: str, row_id: str):
    """
    Remove a row.

    Raises:
        404: Session or row not found
        409: Rows are being added to the cart
    """
    try:
        session = bulk_session_store.require_session(session_id)
        session.delete_row(row_id)
        return session_response(session)
    except Exception as e:
        return handle_error(e)


@router.post("/{session_id}/commit", response_model=CommitResponse)
async def commit_bulk_order(
    session_id: str,
    cart: CartService = Depends(get_cart_service),
):
    """
    Add every valid and warning row to the cart and clear the session.

    Raises:
        401: Anonymous session
        404: Session not found or expired
        409: Validation or commit still running
        422: Nothing valid to add
        503: Cart pricing failed part way (committed rows removed)
    """
    try:
        session = bulk_session_store.require_session(session_id)
        total = len(session.rows)
        added = await session.commit()

        return CommitResponse(
            session_id=session.id,
            added=added,
            skipped=total - len(added),
            cart=cart.get_cart(session.user_id) if session.user_id else None,
        )

    except Exception as e:
        return handle_error(e)


@router.delete("/{session_id}", status_code=204, response_class=Response)
async def close_bulk_order(session_id: str):
    """
    Discard a session.

    Raises:
        404: Session not found
    """
    try:
        if not bulk_session_store.delete_session(session_id):
            return handle_error(BulkSessionNotFoundError(session_id))
        logger.info("bulk_order_closed", session_id=session_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)
