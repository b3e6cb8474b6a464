from abc import ABC, abstractmethod

from billbook.models.bill import Bill


class BillRepository(ABC):
    """Keyed store of bills. ``invoice_number`` is the primary key.

    Reads never return partial results: they either succeed or raise
    ``StorageError``. A missing bill is ``None``, not an error.
    """

    @abstractmethod
    def save(self, bill: Bill) -> Bill:
        """Insert the bill, replacing any existing bill with the same invoice number."""
        ...

    @abstractmethod
    def get_by_invoice_number(self, invoice_number: str) -> Bill | None: ...

    @abstractmethod
    def get_all(self) -> list[Bill]: ...

    @abstractmethod
    def get_all_sorted(self) -> list[Bill]:
        """All bills, most recently created first."""
        ...

    @abstractmethod
    def get_latest(self) -> Bill | None:
        """The first bill of ``get_all_sorted()``, or None when empty."""
        ...

    @abstractmethod
    def search_by_customer_name(self, term: str) -> list[Bill]: ...

    @abstractmethod
    def filter_by_date_range(self, from_date: str, to_date: str) -> list[Bill]:
        """Bills whose ``date`` falls within ``from_date``..``to_date`` inclusive (DD/MM/YYYY)."""
        ...
