"""
Catalog validation service.

Answers "which of these part numbers exist, and at what price" for a
bulk order, in one round-trip to the backend.

Primary path is the validate_bulk_skus RPC. If the RPC errors, the parts
table is queried directly and priced with the customer's discount.
"""

from decimal import Decimal
from typing import Any, Optional
import structlog

from config import get_supabase_client
from exceptions import CatalogValidationError
from models.bulk_order import ValidationResult
from utils.pricing import calc_discounted, to_money

logger = structlog.get_logger(__name__)

VALIDATE_RPC = "validate_bulk_skus"
PARTS_TABLE = "parts"
PARTS_COLUMNS = "id, part_number, part_description, list_price, in_stock"
NO_DESCRIPTION = "No description available"


class CatalogValidationService:
    """
    Bulk part number validation against the catalog.

    The client is injectable so the service can run against a mock.
    """

    def __init__(self, client=None):
        self.db = client if client is not None else get_supabase_client()

    def validate_skus(
        self,
        skus: list[str],
        user_id: Optional[str] = None,
        discount_percentage: Optional[Decimal] = None
    ) -> list[ValidationResult]:
        """
        Validate a batch of part numbers.

        Args:
            skus: Distinct normalized part numbers
            user_id: Acting user, None for anonymous
            discount_percentage: Used only by the fallback path

        Returns:
            One result per part number the catalog knows. Unknown part
            numbers are absent from the list.

        Raises:
            CatalogValidationError: If both the RPC and the fallback fail
        """
        if not skus:
            return []

        logger.info(
            "catalog_validation_started",
            sku_count=len(skus),
            anonymous=user_id is None
        )

        try:
            results = self._validate_via_rpc(skus, user_id)
            logger.info("catalog_validation_complete", path="rpc", matched=len(results))
            return results
        except Exception as e:
            logger.warning(
                "catalog_validation_rpc_failed",
                error=str(e),
                error_type=type(e).__name__
            )

        try:
            results = self._validate_via_parts_table(skus, discount_percentage)
            logger.info("catalog_validation_complete", path="fallback", matched=len(results))
            return results
        except Exception as e:
            logger.error(
                "catalog_validation_failed",
                sku_count=len(skus),
                error=str(e),
                error_type=type(e).__name__
            )
            raise CatalogValidationError(details={"sku_count": len(skus)}) from e

    # ===================
    # PATHS
    # ===================

    def _validate_via_rpc(self, skus: list[str], user_id: Optional[str]) -> list[ValidationResult]:
        response = self.db.rpc(
            VALIDATE_RPC,
            {"part_numbers": skus, "customer_id": user_id}
        ).execute()
        return [ValidationResult.model_validate(row) for row in (response.data or [])]

    def _validate_via_parts_table(
        self,
        skus: list[str],
        discount_percentage: Optional[Decimal]
    ) -> list[ValidationResult]:
        response = (
            self.db.table(PARTS_TABLE)
            .select(PARTS_COLUMNS)
            .in_("part_number", skus)
            .execute()
        )

        by_part_number: dict[str, dict[str, Any]] = {}
        for part in response.data or []:
            by_part_number.setdefault(part.get("part_number"), part)

        results = []
        for sku in skus:
            part = by_part_number.get(sku)
            if part is None:
                continue
            list_price = to_money(part.get("list_price"))
            results.append(ValidationResult(
                sku=sku,
                catalog_id=str(part.get("id") or ""),
                description=part.get("part_description") or NO_DESCRIPTION,
                price=list_price,
                discounted_price=calc_discounted(list_price, discount_percentage),
                in_stock=bool(part.get("in_stock")),
                status="ok",
            ))
        return results


# Singleton instance for convenience
_catalog_validation_service: Optional[CatalogValidationService] = None


def get_catalog_validation_service() -> CatalogValidationService:
    """Get or create CatalogValidationService instance."""
    global _catalog_validation_service
    if _catalog_validation_service is None:
        _catalog_validation_service = CatalogValidationService()
    return _catalog_validation_service
