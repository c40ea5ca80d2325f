"""
Unit tests for BulkRow transitions and ValidationResult mapping.
"""

from decimal import Decimal
import pytest
from pydantic import ValidationError as PydanticValidationError

from models.bulk_order import (
    BulkRow,
    BulkRowPatch,
    ReadinessCounts,
    RowStatus,
    ValidationResult,
    UNMATCHED_SKU_MESSAGE,
)
from tests.factories import BulkRowFactory, ValidationResultFactory


class TestBulkRowCreation:

    def test_new_row_is_pending_without_validation_fields(self):
        row = BulkRow.new("ABC123", 5)

        assert row.status == RowStatus.PENDING
        assert row.description is None
        assert row.unit_price is None
        assert row.resolved_catalog_id is None
        assert row.id.startswith("bulk-")

    def test_quantity_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            BulkRow.new("ABC123", 0)

    def test_direct_status_assignment_rejected(self):
        """Status only moves through the named transitions."""
        row = BulkRow.new("ABC123", 5)

        with pytest.raises(PydanticValidationError):
            row.status = RowStatus.VALID

        assert row.status == RowStatus.PENDING


class TestBulkRowTransitions:

    @pytest.mark.parametrize("make", [
        BulkRowFactory.create_valid,
        BulkRowFactory.create_warning,
        BulkRowFactory.create_error,
    ])
    def test_edit_resets_to_pending_and_clears_results(self, make):
        row = make(sku_text="ABC123", quantity=2)

        edited = row.edit(quantity=3)

        assert edited.status == RowStatus.PENDING
        assert edited.quantity == 3
        assert edited.description is None
        assert edited.unit_price is None
        assert edited.discounted_price is None
        assert edited.resolved_catalog_id is None
        assert edited.error_message is None
        assert edited.id == row.id

    def test_edit_with_empty_patch_still_resets(self):
        row = BulkRowFactory.create_valid()
        assert row.edit().status == RowStatus.PENDING

    def test_edit_does_not_change_original(self):
        row = BulkRowFactory.create_valid(sku_text="ABC123")
        row.edit(sku_text="DEF456")
        assert row.sku_text == "ABC123"
        assert row.status == RowStatus.VALID

    def test_edit_normalizes_sku(self):
        assert BulkRow.new("ABC", 1).edit(sku_text=" def/45 ").sku_text == "DEF45"

    @pytest.mark.parametrize("raw,expected", [("abc", 1), (0, 1), (-2, 1), ("7", 7)])
    def test_edit_clamps_quantity(self, raw, expected):
        assert BulkRow.new("ABC", 4).edit(quantity=raw).quantity == expected

    def test_edit_rejects_empty_sku(self):
        with pytest.raises(ValueError):
            BulkRow.new("ABC", 1).edit(sku_text="###")

    def test_apply_ok_result(self):
        row = BulkRow.new("ABC123", 5)
        result = ValidationResultFactory.create(
            "ABC123", price="10.00", discounted_price="8.50", catalog_id="part-1"
        )

        validated = row.apply_validation_result(result)

        assert validated.status == RowStatus.VALID
        assert validated.unit_price == Decimal("10.00")
        assert validated.discounted_price == Decimal("8.50")
        assert validated.resolved_catalog_id == "part-1"
        assert validated.in_stock is True
        assert validated.error_message is None
        assert validated.quantity == 5

    def test_apply_warn_result_keeps_message(self):
        row = BulkRow.new("ABC123", 1)
        result = ValidationResultFactory.create("ABC123", status="warn", message="Backordered")

        validated = row.apply_validation_result(result)

        assert validated.status == RowStatus.WARNING
        assert validated.error_message == "Backordered"

    @pytest.mark.parametrize("status", ["error", "discontinued", ""])
    def test_apply_other_status_is_error(self, status):
        row = BulkRow.new("ABC123", 1)
        result = ValidationResultFactory.create("ABC123", status=status, message="Discontinued")
        assert row.apply_validation_result(result).status == RowStatus.ERROR

    def test_ok_result_without_catalog_id_is_error(self):
        row = BulkRow.new("ABC123", 1)
        result = ValidationResultFactory.create("ABC123", catalog_id="")

        validated = row.apply_validation_result(result)

        assert validated.status == RowStatus.ERROR
        assert validated.error_message == UNMATCHED_SKU_MESSAGE
        assert validated.is_committable is False

    def test_mark_error_clears_stale_results(self):
        row = BulkRowFactory.create_valid()

        errored = row.mark_error(UNMATCHED_SKU_MESSAGE)

        assert errored.status == RowStatus.ERROR
        assert errored.error_message == UNMATCHED_SKU_MESSAGE
        assert errored.unit_price is None
        assert errored.resolved_catalog_id is None

    @pytest.mark.parametrize("make,expected", [
        (BulkRowFactory.create, False),
        (BulkRowFactory.create_valid, True),
        (BulkRowFactory.create_warning, True),
        (BulkRowFactory.create_error, False),
    ])
    def test_is_committable(self, make, expected):
        assert make().is_committable is expected


class TestValidationResult:

    def test_accepts_rpc_column_names(self, sample_validation_rows):
        result = ValidationResult.model_validate(sample_validation_rows[0])

        assert result.sku == "ABC123"
        assert result.catalog_id == "part-uuid-1"
        assert result.price == Decimal("10.00")
        assert result.discounted_price == Decimal("9.50")
        assert result.row_status == RowStatus.VALID

    def test_null_price_becomes_zero(self):
        result = ValidationResult.model_validate({"part_number": "A", "status": "ok", "price": None})
        assert result.price == Decimal("0.00")
        assert result.discounted_price is None

    def test_status_mapping_case_insensitive(self):
        assert ValidationResult(sku="A", status="WARN").row_status == RowStatus.WARNING

    def test_malformed_price_is_validation_error(self):
        with pytest.raises(PydanticValidationError):
            ValidationResult.model_validate({"part_number": "A", "status": "ok", "price": "call us"})


class TestBulkRowPatch:

    def test_quantity_junk_becomes_one(self):
        assert BulkRowPatch(quantity="lots").quantity == 1
        assert BulkRowPatch(quantity=-1).quantity == 1

    def test_sku_normalized(self):
        assert BulkRowPatch(sku_text="ab-1 c").sku_text == "AB-1C"

    def test_empty_sku_rejected(self):
        with pytest.raises(PydanticValidationError):
            BulkRowPatch(sku_text="  //  ")


class TestReadinessCounts:

    def test_can_commit_needs_valid_or_warning(self):
        assert ReadinessCounts(pending=2, error=1, total=3).can_commit is False
        assert ReadinessCounts(warning=1, total=1).can_commit is True

    def test_can_commit_serialized(self):
        assert ReadinessCounts(valid=1, total=1).model_dump()["can_commit"] is True
