"""Convert bills to and from the plain record layout.

The record uses the camelCase keys of the browser app's database so that
exported backups can be loaded back in. Decimal values become JSON numbers and
timestamps ISO 8601 strings. Derived values in an incoming record (``amount``,
``totalAmount``) are ignored and recomputed.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from billbook.exceptions import ValidationError
from billbook.models.bill import Bill


def _number(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _decimal(value: Any) -> Decimal:
    """Blank or missing numbers read as zero, as in the bill form."""
    if value is None or value == "":
        return Decimal("0")
    return Decimal(str(value))


def serialize_bill(bill: Bill) -> dict:
    return {
        "invoiceNumber": bill.invoice_number,
        "date": bill.date,
        "customerName": bill.customer_name,
        "customerPhone": bill.customer_phone,
        "items": [
            {
                "sno": item.sno,
                "description": item.description,
                "qty": _number(item.qty),
                "rate": _number(item.rate),
                "amount": _number(item.amount),
            }
            for item in bill.items
        ],
        "totalAmount": _number(bill.total_amount),
        "createdAt": bill.created_at.isoformat(),
        "syncedToGoogleDrive": bill.synced_to_google_drive,
        "googleDriveFileId": bill.google_drive_file_id,
    }


def deserialize_bill(record: Mapping[str, Any]) -> Bill:
    """Build a Bill from a record. Raises ValidationError when the record is incomplete or invalid."""
    try:
        created_at = record.get("createdAt")
        fields: dict[str, Any] = {
            "invoice_number": record.get("invoiceNumber") or "",
            "customer_name": record.get("customerName") or "",
            "customer_phone": record.get("customerPhone"),
            "items": [
                {
                    "description": item.get("description") or "",
                    "qty": _decimal(item.get("qty")),
                    "rate": _decimal(item.get("rate")),
                }
                for item in record.get("items") or []
            ],
            "synced_to_google_drive": bool(record.get("syncedToGoogleDrive", False)),
            "google_drive_file_id": record.get("googleDriveFileId"),
        }
        if record.get("date"):
            fields["date"] = record["date"]
        if created_at:
            # Browser exports use a trailing 'Z' for UTC.
            fields["created_at"] = datetime.fromisoformat(str(created_at).replace("Z", "+00:00"))
        return Bill(**fields)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc
    except (ArithmeticError, ValueError, TypeError, AttributeError) as exc:
        raise ValidationError(f"Invalid bill record: {exc}") from exc
