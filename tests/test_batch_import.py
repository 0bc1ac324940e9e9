"""Tests for batch import of transaction records."""

from datetime import date
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import OperationalError

from spendtrack.domain.batch_import import handle_import_request, normalize_payload
from spendtrack.domain.entities import RuleKind
from spendtrack.domain.errors import InvalidEnvelopeError, ValidationError
from spendtrack.domain.fingerprint import fingerprint


def record(source_id, description="Coffee", amount="-4.50", date="2024-03-01", **extra):
    return {"sourceId": source_id, "date": date, "description": description, "amount": amount, **extra}


class TestNormalizePayload:
    def test_accepts_camel_case_aliases(self):
        payload = normalize_payload(
            {
                "sourceId": "3",
                "date": "15/03/2024",
                "description": "  Bakery ",
                "amount": "-12,50",
                "unitId": 2,
                "categoryId": "7",
                "sourceCategory": "Food",
                "allowDuplicate": True,
                "isIgnored": True,
                "tags": "Weekly Shop, food",
            }
        )

        assert payload["source_id"] == 3
        assert payload["date"] == "2024-03-15"
        assert payload["description"] == "Bakery"
        assert payload["amount"] == Decimal("-12.50")
        assert payload["unit_id"] == 2
        assert payload["category_id"] == 7
        assert payload["source_category"] == "Food"
        assert payload["allow_duplicate"] is True
        assert payload["ignore"] is True
        assert payload["tags"] == ["weekly-shop", "food"]

    def test_computes_fingerprint_when_missing(self):
        payload = normalize_payload(record(1))
        assert payload["fingerprint"] == fingerprint(1, "2024-03-01", "Coffee", Decimal("-4.50"))

    def test_keeps_supplied_fingerprint(self):
        assert normalize_payload(record(1, hash="abc"))["fingerprint"] == "abc"

    def test_no_source_means_no_fingerprint(self):
        assert normalize_payload(record(None))["fingerprint"] is None

    def test_numeric_amount(self):
        assert normalize_payload(record(1, amount=-3.2))["amount"] == Decimal("-3.2")

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"description": ""}, "Missing description"),
            ({"date": None}, "Missing date"),
            ({"date": "someday"}, "Could not parse date"),
            ({"amount": None}, "Missing amount"),
            ({"amount": "abc"}, "Could not parse amount"),
            ({"amount": True}, "Invalid amount"),
            ({"sourceId": "bank"}, "Invalid source_id"),
        ],
    )
    def test_rejects_bad_fields(self, overrides, message):
        with pytest.raises(ValidationError, match=message):
            normalize_payload({**record(1), **overrides})

    @pytest.mark.parametrize(
        "value, expected",
        [(True, True), (False, False), ("false", False), ("FALSE", False), ("true", True), ("0", False), (1, True), (None, False)],
    )
    def test_allow_duplicate_flag_parsing(self, value, expected):
        assert normalize_payload(record(1, allowDuplicate=value))["allow_duplicate"] is expected

    @pytest.mark.parametrize("value", ["maybe", 2, [True]])
    def test_rejects_unrecognized_flag(self, value):
        with pytest.raises(ValidationError, match="Invalid allow_duplicate"):
            normalize_payload(record(1, allowDuplicate=value))

    def test_rejects_non_object(self):
        with pytest.raises(ValidationError):
            normalize_payload(["2024-03-01", "Coffee", "-4.50"])


class TestImportBatch:
    def test_one_bad_record_does_not_stop_the_batch(self, batch_service, sample_source, temp_db):
        records = [
            record(sample_source.id, "First"),
            record(999, "Second"),
            record(sample_source.id, "Third"),
        ]

        result = batch_service.import_batch(records)

        assert result.imported == 2
        assert result.skipped == 0
        assert len(result.errors) == 1
        assert result.errors[0].index == 1
        assert result.errors[0].record == records[1]
        descriptions = {t.description for t in temp_db.list_transactions()[0]}
        assert descriptions == {"First", "Third"}

    def test_validation_failure_is_reported_per_record(self, batch_service, sample_source):
        result = batch_service.import_batch([record(sample_source.id, amount="n/a"), record(sample_source.id)])

        assert result.imported == 1
        assert [e.index for e in result.errors] == [0]
        assert "Could not parse amount" in result.errors[0].message

    def test_missing_source_is_a_record_error(self, batch_service):
        result = batch_service.import_batch([{"date": "2024-03-01", "description": "x", "amount": "-1"}])
        assert result.imported == 0
        assert len(result.errors) == 1

    def test_empty_batch_touches_nothing(self, batch_service, temp_db):
        with patch.object(temp_db, "create_transaction") as create:
            result = batch_service.import_batch([])

        assert (result.imported, result.skipped, result.errors) == (0, 0, [])
        create.assert_not_called()

    def test_non_list_is_invalid_envelope(self, batch_service):
        with pytest.raises(InvalidEnvelopeError, match="Invalid transaction data"):
            batch_service.import_batch({"date": "2024-03-01"})

    def test_duplicates_within_and_across_batches(self, batch_service, sample_source):
        dup = record(sample_source.id, "Dup")

        first = batch_service.import_batch([dup, dict(dup)])
        assert (first.imported, first.skipped) == (1, 1)

        second = batch_service.import_batch([dict(dup)])
        assert (second.imported, second.skipped) == (0, 1)

        forced = batch_service.import_batch([dict(dup, allowDuplicate=True)])
        assert (forced.imported, forced.skipped) == (1, 0)

    def test_missing_assignments_filled_from_rules(
        self, batch_service, classification_service, sample_source, sample_categories, sample_units, temp_db
    ):
        classification_service.create_rule(
            RuleKind.CATEGORY, "description", "contains", "coffee", sample_categories["Restaurants"]
        )
        classification_service.create_rule(
            RuleKind.UNIT, "source", "exact", str(sample_source.id), sample_units["Business"]
        )

        batch_service.import_batch(
            [
                record(sample_source.id, "Coffee"),
                record(sample_source.id, "Coffee beans", categoryId=sample_categories["Groceries"]),
            ]
        )

        by_description = {t.description: t for t in temp_db.list_transactions()[0]}
        assert by_description["Coffee"].category_id == sample_categories["Restaurants"]
        assert by_description["Coffee"].unit_id == sample_units["Business"]
        assert by_description["Coffee beans"].category_id == sample_categories["Groceries"]

    def test_supplied_fingerprint_already_stored_is_skipped(self, batch_service, sample_source, temp_db):
        temp_db.create_transaction(
            source_id=sample_source.id,
            date=date(2024, 1, 10),
            description="Earlier",
            amount=Decimal("-50"),
            fingerprint="dup",
        )
        incoming = {
            "date": "2024-01-15",
            "description": "Test",
            "amount": -50,
            "source_id": sample_source.id,
            "hash": "dup",
            "allowDuplicate": False,
        }

        result = batch_service.import_batch([incoming])

        assert (result.imported, result.skipped, result.errors) == (0, 1, [])
        assert temp_db.list_transactions()[1] == 1

    def test_lookup_failure_aborts_the_batch(self, batch_service, sample_source, temp_db):
        failure = OperationalError("SELECT", {}, Exception("database is locked"))
        with patch.object(temp_db, "get_transaction_by_fingerprint", side_effect=failure):
            with patch.object(temp_db, "create_transaction") as create:
                with pytest.raises(OperationalError):
                    batch_service.import_batch([record(sample_source.id), record(sample_source.id, "Tea")])

        create.assert_not_called()

    def test_progress_callback(self, batch_service, sample_source):
        progress = Mock()
        records = [record(sample_source.id, f"Item {i}") for i in range(5)]

        batch_service.import_batch(records, progress=progress, progress_every=2)

        assert [c.args for c in progress.call_args_list] == [(2, 5), (4, 5), (5, 5)]

    def test_check_duplicates(self, batch_service, sample_source):
        batch_service.import_batch([record(sample_source.id, "Known")])
        known = fingerprint(sample_source.id, "2024-03-01", "Known", "-4.50")

        assert batch_service.check_duplicates(["0000000000000000", known, ""]) == [known]


class TestHandleImportRequest:
    def test_success_with_partial_errors(self, batch_service, sample_source):
        status, body = handle_import_request(
            batch_service,
            {"transactions": [record(sample_source.id), {"description": "no date"}]},
        )

        assert status == 200
        assert body["success"] is True
        assert (body["imported"], body["skipped"], body["total"]) == (1, 0, 2)
        assert body["errors"][0]["index"] == 1

    @pytest.mark.parametrize("body", [{}, {"transactions": "nope"}, None])
    def test_invalid_envelope(self, batch_service, body):
        status, response = handle_import_request(batch_service, body)

        assert status == 400
        assert response["success"] is False
        assert "Invalid transaction data" in response["error"]

    def test_backend_failure(self, batch_service, sample_source, temp_db):
        failure = OperationalError("SELECT", {}, Exception("database is locked"))
        with patch.object(temp_db, "get_transaction_by_fingerprint", side_effect=failure):
            status, response = handle_import_request(
                batch_service, {"transactions": [record(sample_source.id), record(sample_source.id, "Tea")]}
            )

        assert status == 500
        assert response["success"] is False
        assert response["error"] == "Failed to import transactions"
        assert "database is locked" in response["details"]
