"""
Abstract interface for bill storage.

Every remote backend (relational, document, key-value) and the offline
store implement the same async contract, so the orchestrator can hold any
of them without knowing which one it got.
"""

from abc import ABC, abstractmethod

from quickbill.core.entities.bill import BillRecord


class IBillStore(ABC):
    """
    Abstract interface for bill persistence.

    Records are keyed by sNo; every save replaces the whole record.
    """

    name: str = "store"

    @abstractmethod
    async def initialize(self) -> None:
        """
        Connect and ensure the schema exists. Safe to call repeatedly.

        Raises:
            ConfigurationError: required connection parameters are absent
            BackendUnavailableError: the backend could not be reached
        """
        pass

    @abstractmethod
    async def save_record(self, record: BillRecord) -> BillRecord:
        """Insert or overwrite the record under its sNo and return it."""
        pass

    @abstractmethod
    async def fetch_all(self) -> list[BillRecord]:
        """All records, newest date first, then highest sNo first."""
        pass

    @abstractmethod
    async def fetch_by_customer(self, customer_name: str) -> list[BillRecord]:
        """Records whose customer name equals customer_name, ignoring case."""
        pass

    @abstractmethod
    async def delete_record(self, s_no: str) -> None:
        """Remove the record. Missing sNo is not an error."""
        pass

    @abstractmethod
    async def next_sequence_number(self) -> str:
        """
        Next free bill number.

        Returns:
            max stored numeric sNo + 1, zero-padded to four digits,
            or "0001" for an empty store
        """
        pass

    async def close(self) -> None:
        """Release connections. Default is a no-op."""
        return None
