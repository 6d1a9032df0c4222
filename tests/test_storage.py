"""
Tests for the contact store and CSV export.
"""

from datetime import datetime
from types import SimpleNamespace

import pytest

from cardscan.exceptions import ExportEmptyError, PersistenceFailure
from cardscan.export import contacts_to_csv, format_short_date
from cardscan.storage import ContactStore, utc_now


class TestContactStore:
    """Test cases for ContactStore."""

    @pytest.fixture
    def store(self, tmp_path):
        return ContactStore(f"sqlite:///{tmp_path / 'contacts.db'}")

    def test_save(self, store):
        contact = store.save(
            name="John Doe",
            company="Acme Corp",
            emails=["john@acme.com"],
            phones=["(555) 123-4567"],
            is_verified=True,
            confidence_score=100
        )

        assert contact["id"] is not None
        assert contact["name"] == "John Doe"
        assert contact["emails"] == ["john@acme.com"]
        assert contact["is_verified"] is True
        assert contact["confidence_score"] == 100
        assert contact["created_at"] is not None

    def test_defaults(self, store):
        contact = store.save(name="Jane Roe")

        assert contact["company"] is None
        assert contact["emails"] == []
        assert contact["phones"] == []
        assert contact["is_verified"] is False
        assert contact["confidence_score"] == 0

    def test_name_required(self, store):
        with pytest.raises(PersistenceFailure):
            store.save(name="", company="Acme Corp")

        with pytest.raises(PersistenceFailure):
            store.save(name=None)

        assert store.list_contacts() == []

    def test_list_newest_first(self, store):
        store.save(name="First")
        store.save(name="Second")
        store.save(name="Third")

        names = [c.name for c in store.list_contacts()]

        assert names == ["Third", "Second", "First"]

    def test_created_at_is_naive_utc(self, store):
        before = utc_now()
        store.save(name="Jane Roe")
        after = utc_now()

        created_at = store.list_contacts()[0].created_at

        assert created_at.tzinfo is None
        assert before <= created_at <= after

    def test_persists_across_instances(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'contacts.db'}"
        ContactStore(url).save(name="John Doe", phones=["555-123-4567"])

        contacts = ContactStore(url).list_contacts()

        assert len(contacts) == 1
        assert contacts[0].phones == ["555-123-4567"]


class TestExport:
    """Test cases for CSV export."""

    def test_format_short_date(self):
        assert format_short_date(datetime(2026, 3, 7, 15, 4)) == "3/7/2026"
        assert format_short_date(datetime(2025, 12, 25)) == "12/25/2025"
        assert format_short_date(None) == ""

    def test_contacts_to_csv(self):
        contacts = [
            SimpleNamespace(
                name="Jane Roe",
                company="Globex Corp",
                emails=["jane@globex.com", "j@globex.com"],
                phones=["555-987-6543"],
                created_at=datetime(2026, 3, 7)
            ),
            SimpleNamespace(
                name="John Doe",
                company=None,
                emails=[],
                phones=None,
                created_at=datetime(2026, 1, 2)
            ),
        ]

        csv_text = contacts_to_csv(contacts)

        assert csv_text == (
            "Name,Company,Emails,Phones,Created At\n"
            '"Jane Roe","Globex Corp","jane@globex.com | j@globex.com","555-987-6543","3/7/2026"\n'
            '"John Doe","","","","1/2/2026"\n'
        )

    def test_quotes_escaped(self):
        contacts = [
            SimpleNamespace(
                name='Bob "The Builder", Jr',
                company="Builders, Inc",
                emails=[],
                phones=[],
                created_at=datetime(2026, 5, 1)
            )
        ]

        lines = contacts_to_csv(contacts).splitlines()

        assert lines[1] == '"Bob ""The Builder"", Jr","Builders, Inc","","","5/1/2026"'

    def test_empty_export(self):
        with pytest.raises(ExportEmptyError):
            contacts_to_csv([])

    def test_export_from_store(self, tmp_path):
        store = ContactStore(f"sqlite:///{tmp_path / 'contacts.db'}")
        store.save(name="Older", emails=["old@acme.com"])
        store.save(name="Newer", company="Initech Ltd")

        lines = contacts_to_csv(store.list_contacts()).splitlines()

        assert lines[0] == "Name,Company,Emails,Phones,Created At"
        assert lines[1].startswith('"Newer","Initech Ltd"')
        assert lines[2].startswith('"Older","","old@acme.com"')
