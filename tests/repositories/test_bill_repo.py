from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import text

from billbook.constants import REFERENCE_TZ
from billbook.exceptions import StorageError, ValidationError
from billbook.models.bill import LineItem


def _at(day: int, hour: int = 9, minute: int = 0) -> datetime:
    return datetime(2024, 6, day, hour, minute, tzinfo=REFERENCE_TZ)


class TestBillRepoSave:
    def test_save_and_get(self, bill_repo, sample_bill):
        saved = bill_repo.save(sample_bill())

        assert saved.invoice_number == "00001"
        assert saved.customer_name == "Ravi Kumar"
        assert saved.customer_phone == "9876543210"
        assert saved.date == "15/06/2024"
        assert [item.sno for item in saved.items] == [1, 2]
        assert saved.items[0].amount == Decimal("451.50")
        assert saved.total_amount == Decimal("551.50")
        assert saved.created_at == _at(15, 10, 30)
        assert saved.synced_to_google_drive is False
        assert saved.google_drive_file_id is None

    def test_get_by_invoice_number_not_found(self, bill_repo):
        assert bill_repo.get_by_invoice_number("99999") is None

    def test_get_returns_only_matching_bill(self, bill_repo, sample_bill):
        bill_repo.save(sample_bill(invoice_number="00001", customer_name="Ravi Kumar"))
        bill_repo.save(sample_bill(invoice_number="00002", customer_name="Priya Sharma"))

        first = bill_repo.get_by_invoice_number("00001")
        second = bill_repo.get_by_invoice_number("00002")

        assert first.customer_name == "Ravi Kumar"
        assert second.customer_name == "Priya Sharma"

    def test_save_existing_key_replaces_record(self, bill_repo, sample_bill):
        bill_repo.save(sample_bill())
        bill_repo.save(
            sample_bill(
                customer_name="Anita Rao",
                items=[LineItem(description="Frame", qty=Decimal("2"), rate=Decimal("75"))],
            )
        )

        fetched = bill_repo.get_by_invoice_number("00001")
        assert fetched.customer_name == "Anita Rao"
        assert len(fetched.items) == 1
        assert fetched.items[0].description == "Frame"
        assert fetched.total_amount == Decimal("150")
        assert len(bill_repo.get_all()) == 1

    def test_decimals_stored_exactly(self, bill_repo, db_connection, sample_bill):
        bill_repo.save(sample_bill())
        rows = db_connection.execute(
            text("SELECT qty, rate, amount FROM bill_items WHERE invoice_number = '00001' ORDER BY sno")
        ).fetchall()
        assert rows[0] == ("3", "150.50", "451.50")

    def test_repeated_item_stored_with_distinct_numbers(self, bill_repo, db_connection, sample_bill):
        item = LineItem(description="Frame", qty=1, rate=75)
        bill_repo.save(sample_bill(items=[item, item]))

        rows = db_connection.execute(
            text("SELECT sno FROM bill_items WHERE invoice_number = '00001' ORDER BY sno")
        ).fetchall()
        assert [row[0] for row in rows] == [1, 2]

    def test_failed_overwrite_keeps_previous_record(self, bill_repo, db_connection, sample_bill):
        bill_repo.save(sample_bill())
        db_connection.execute(
            text(
                "CREATE TRIGGER reject_item BEFORE INSERT ON bill_items "
                "WHEN NEW.description = 'Rejected' BEGIN SELECT RAISE(ABORT, 'rejected'); END"
            )
        )
        db_connection.commit()

        with pytest.raises(StorageError, match="Failed to save bill 00001"):
            bill_repo.save(sample_bill(items=[LineItem(description="Rejected", qty=1, rate=1)]))

        fetched = bill_repo.get_by_invoice_number("00001")
        assert [item.description for item in fetched.items] == ["Passport photos", "Lamination"]


class TestBillRepoOrdering:
    def test_get_all_empty(self, bill_repo):
        assert bill_repo.get_all() == []
        assert bill_repo.get_all_sorted() == []

    def test_get_all_sorted_newest_first(self, bill_repo, sample_bill):
        bill_repo.save(sample_bill(invoice_number="00001", created_at=_at(10)))
        bill_repo.save(sample_bill(invoice_number="00002", created_at=_at(12)))
        bill_repo.save(sample_bill(invoice_number="00003", created_at=_at(11)))

        sorted_numbers = [b.invoice_number for b in bill_repo.get_all_sorted()]
        assert sorted_numbers == ["00002", "00003", "00001"]
        assert sorted(sorted_numbers) == sorted(b.invoice_number for b in bill_repo.get_all())

    def test_sorting_uses_created_at_not_date(self, bill_repo, sample_bill):
        bill_repo.save(sample_bill(invoice_number="00001", date="31/12/2024", created_at=_at(1)))
        bill_repo.save(sample_bill(invoice_number="00002", date="01/01/2024", created_at=_at(2)))

        assert [b.invoice_number for b in bill_repo.get_all_sorted()] == ["00002", "00001"]

    def test_sorting_across_timezones(self, bill_repo, sample_bill):
        # 05:00 UTC is 10:30 in the reference zone, later than 10:00 there.
        bill_repo.save(sample_bill(invoice_number="00001", created_at=_at(15, 10, 0)))
        bill_repo.save(
            sample_bill(invoice_number="00002", created_at=datetime(2024, 6, 15, 5, 0, tzinfo=timezone.utc))
        )

        assert [b.invoice_number for b in bill_repo.get_all_sorted()] == ["00002", "00001"]

    def test_equal_timestamps_are_deterministic(self, bill_repo, sample_bill):
        for number in ("00003", "00001", "00002"):
            bill_repo.save(sample_bill(invoice_number=number, created_at=_at(15)))

        first = [b.invoice_number for b in bill_repo.get_all_sorted()]
        second = [b.invoice_number for b in bill_repo.get_all_sorted()]
        assert first == second == ["00001", "00002", "00003"]

    def test_get_latest_empty(self, bill_repo):
        assert bill_repo.get_latest() is None

    def test_get_latest_is_first_sorted(self, bill_repo, sample_bill):
        bill_repo.save(sample_bill(invoice_number="00009", created_at=_at(10)))
        bill_repo.save(sample_bill(invoice_number="00002", created_at=_at(14)))
        bill_repo.save(sample_bill(invoice_number="00005", created_at=_at(12)))

        latest = bill_repo.get_latest()
        assert latest.invoice_number == "00002"
        assert latest == bill_repo.get_all_sorted()[0]


class TestBillRepoSearch:
    @pytest.fixture(autouse=True)
    def _bills(self, bill_repo, sample_bill):
        bill_repo.save(sample_bill(invoice_number="00001", customer_name="Ravi Kumar", created_at=_at(10)))
        bill_repo.save(sample_bill(invoice_number="00002", customer_name="Priya Sharma", created_at=_at(11)))
        bill_repo.save(sample_bill(invoice_number="00003", customer_name="Kumar Stores", created_at=_at(12)))

    @pytest.mark.parametrize("term", ["ravi", "KUMAR", "avi kum", "Ravi Kumar"])
    def test_case_insensitive_substring(self, bill_repo, term):
        matches = [b.invoice_number for b in bill_repo.search_by_customer_name(term)]
        assert "00001" in matches

    def test_results_newest_first(self, bill_repo):
        matches = [b.invoice_number for b in bill_repo.search_by_customer_name("kumar")]
        assert matches == ["00003", "00001"]

    def test_no_match(self, bill_repo):
        assert bill_repo.search_by_customer_name("Suresh") == []

    @pytest.mark.parametrize("term", ["", "   "])
    def test_blank_term_matches_everything(self, bill_repo, term):
        assert len(bill_repo.search_by_customer_name(term)) == 3

    def test_unicode_case_folding(self, bill_repo, sample_bill):
        bill_repo.save(sample_bill(invoice_number="00004", customer_name="Straße Optics"))
        matches = [b.invoice_number for b in bill_repo.search_by_customer_name("STRASSE")]
        assert matches == ["00004"]


class TestBillRepoDateFilter:
    @pytest.fixture(autouse=True)
    def _bills(self, bill_repo, sample_bill):
        bill_repo.save(sample_bill(invoice_number="00001", date="01/01/2024", created_at=_at(1)))
        bill_repo.save(sample_bill(invoice_number="00002", date="15/06/2024", created_at=_at(2)))
        bill_repo.save(sample_bill(invoice_number="00003", date="31/12/2024", created_at=_at(3)))

    def test_range(self, bill_repo):
        result = bill_repo.filter_by_date_range("01/06/2024", "01/07/2024")
        assert [b.date for b in result] == ["15/06/2024"]

    def test_bounds_inclusive(self, bill_repo):
        result = bill_repo.filter_by_date_range("01/01/2024", "31/12/2024")
        assert [b.invoice_number for b in result] == ["00003", "00002", "00001"]

    def test_single_day(self, bill_repo):
        result = bill_repo.filter_by_date_range("31/12/2024", "31/12/2024")
        assert [b.invoice_number for b in result] == ["00003"]

    def test_compares_calendar_dates_not_strings(self, bill_repo):
        # '02/01/2025' < '31/12/2024' as text, but it is the later date.
        result = bill_repo.filter_by_date_range("30/12/2024", "02/01/2025")
        assert [b.invoice_number for b in result] == ["00003"]

    def test_reversed_range_is_empty(self, bill_repo):
        assert bill_repo.filter_by_date_range("01/07/2024", "01/06/2024") == []

    def test_malformed_bound(self, bill_repo):
        with pytest.raises(ValidationError):
            bill_repo.filter_by_date_range("2024-06-01", "01/07/2024")


class TestBillRepoStorageErrors:
    def test_reads_on_closed_connection(self, bill_repo, db_connection):
        db_connection.close()
        with pytest.raises(StorageError):
            bill_repo.get_all()
        with pytest.raises(StorageError):
            bill_repo.get_latest()
        with pytest.raises(StorageError):
            bill_repo.get_by_invoice_number("00001")

    def test_save_on_closed_connection(self, bill_repo, db_connection, sample_bill):
        db_connection.close()
        with pytest.raises(StorageError):
            bill_repo.save(sample_bill())

    def test_corrupt_record(self, bill_repo, db_connection):
        # A bill row without any items cannot be a valid Bill.
        db_connection.execute(
            text(
                "INSERT INTO bills (invoice_number, date, date_key, customer_name, created_at) "
                "VALUES ('00001', '15/06/2024', '2024-06-15', 'Ravi', '2024-06-15T05:00:00.000000+00:00')"
            )
        )
        db_connection.commit()
        with pytest.raises(StorageError, match="Corrupt bill record"):
            bill_repo.get_by_invoice_number("00001")
