"""Root conftest: in-memory SQLite engine and fixtures for the bill schema."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import Connection, create_engine, event, text
from sqlalchemy.engine import Engine

from billbook.constants import REFERENCE_TZ
from billbook.models.bill import Bill, LineItem

# Matches Alembic head: 3f2a9c1d7e4b (create bills and bill_items)
SCHEMA_DDL = """
CREATE TABLE bills (
    invoice_number TEXT PRIMARY KEY,
    date TEXT NOT NULL,
    date_key TEXT NOT NULL,
    customer_name TEXT NOT NULL,
    customer_phone TEXT,
    total_amount TEXT NOT NULL DEFAULT '0',
    created_at TEXT NOT NULL,
    synced_to_google_drive BOOLEAN NOT NULL DEFAULT 0,
    google_drive_file_id TEXT
);

CREATE INDEX ix_bills_created_at ON bills (created_at);

CREATE INDEX ix_bills_date_key ON bills (date_key);

CREATE INDEX ix_bills_customer_name ON bills (customer_name);

CREATE TABLE bill_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    invoice_number TEXT NOT NULL REFERENCES bills(invoice_number) ON DELETE CASCADE,
    sno INTEGER NOT NULL,
    description TEXT NOT NULL,
    qty TEXT NOT NULL DEFAULT '0',
    rate TEXT NOT NULL DEFAULT '0',
    amount TEXT NOT NULL DEFAULT '0'
);

CREATE INDEX ix_bill_items_invoice_number ON bill_items (invoice_number);
"""


@pytest.fixture()
def db_engine() -> Engine:
    engine = create_engine("sqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    return engine


@pytest.fixture()
def db_connection(db_engine: Engine) -> Connection:
    conn = db_engine.connect()
    for statement in SCHEMA_DDL.strip().split(";"):
        stmt = statement.strip()
        if stmt:
            conn.execute(text(stmt))
    conn.commit()
    yield conn
    conn.close()


def _sample_bill(**overrides) -> Bill:
    defaults = dict(
        invoice_number="00001",
        date="15/06/2024",
        customer_name="Ravi Kumar",
        customer_phone="9876543210",
        items=[
            LineItem(description="Passport photos", qty=Decimal("3"), rate=Decimal("150.50")),
            LineItem(description="Lamination", qty=Decimal("1"), rate=Decimal("100")),
        ],
        created_at=datetime(2024, 6, 15, 10, 30, tzinfo=REFERENCE_TZ),
    )
    defaults.update(overrides)
    return Bill(**defaults)


@pytest.fixture()
def sample_bill():
    return _sample_bill
