"""Tests de l'attribution des numéros légaux."""

from datetime import date

import pytest

from facturation_bj.errors import AllocationConflict, DuplicateNumberError
from facturation_bj.models.enums import InvoiceStatus
from facturation_bj.models.invoice import Invoice
from facturation_bj.numbering.allocator import (
    SequenceAllocator,
    format_number,
    parse_ordinal,
    split_number,
)
from facturation_bj.storage.memory import MemoryInvoiceStore


def _issued(company_id: str, number: str) -> Invoice:
    return Invoice(
        company_id=company_id,
        client_id="k1",
        issue_date=date(2026, 3, 16),
        series=number.rsplit("-", 2)[0],
        number=number,
        status=InvoiceStatus.SENT,
    )


class TestFormatting:
    """Format ``{série}-{année}-{ordinal}``."""

    @pytest.mark.parametrize(
        "ordinal,expected",
        [(1, "FAC-2026-001"), (42, "FAC-2026-042"), (999, "FAC-2026-999"), (1000, "FAC-2026-1000")],
    )
    def test_format_number(self, ordinal, expected):
        assert format_number("FAC", 2026, ordinal) == expected

    def test_parse_ordinal(self):
        assert parse_ordinal("FAC-2026-012", "FAC", 2026) == 12
        assert parse_ordinal("FAC-2026-1000", "FAC", 2026) == 1000

    @pytest.mark.parametrize(
        "number",
        [None, "", "FAC-2025-001", "DEV-2026-001", "FAC-2026-", "FAC-2026-00A"],
    )
    def test_parse_ordinal_foreign(self, number):
        assert parse_ordinal(number, "FAC", 2026) is None

    def test_split_number(self):
        assert split_number("FAC-2026-007") == ("FAC", 2026, 7)
        assert split_number("MY-SERIES-2026-010") == ("MY-SERIES", 2026, 10)
        assert split_number("FAC2026007") is None


class TestSequenceAllocator:
    """Tests de l'allocateur avec le stockage mémoire."""

    def test_first_number(self):
        allocator = SequenceAllocator(MemoryInvoiceStore())
        assert allocator.allocate("c1", "FAC", 2026) == "FAC-2026-001"

    def test_next_after_max_numeric(self):
        """L'ordinal 1000 suit 999 (comparaison numérique)."""
        store = MemoryInvoiceStore()
        store.add_invoice(_issued("c1", "FAC-2026-999"))
        store.add_invoice(_issued("c1", "FAC-2026-100"))
        assert SequenceAllocator(store).allocate("c1", "FAC", 2026) == "FAC-2026-1000"

    def test_sequences_are_independent(self):
        store = MemoryInvoiceStore()
        store.add_invoice(_issued("c1", "FAC-2026-005"))
        store.add_invoice(_issued("c2", "FAC-2026-009"))
        store.add_invoice(_issued("c1", "FAC-2025-030"))
        allocator = SequenceAllocator(store)
        assert allocator.allocate("c1", "FAC", 2026) == "FAC-2026-006"
        assert allocator.allocate("c1", "DEV", 2026) == "DEV-2026-001"
        assert allocator.allocate("c1", "FAC", 2027) == "FAC-2027-001"

    def test_run_persists_allocated_number(self):
        store = MemoryInvoiceStore()
        allocator = SequenceAllocator(store)
        result = allocator.run(
            "c1", "FAC", 2026, lambda number: store.add_invoice(_issued("c1", number))
        )
        assert result.number == "FAC-2026-001"

    def test_run_retries_on_duplicate(self):
        store = MemoryInvoiceStore()
        attempts: list[str] = []

        def persist(number: str) -> str:
            attempts.append(number)
            if len(attempts) < 3:
                raise DuplicateNumberError(number)
            return number

        assert SequenceAllocator(store).run("c1", "FAC", 2026, persist) == "FAC-2026-001"
        assert len(attempts) == 3

    def test_run_gives_up(self):
        def persist(number: str) -> str:
            raise DuplicateNumberError(number)

        allocator = SequenceAllocator(MemoryInvoiceStore(), max_attempts=2)
        with pytest.raises(AllocationConflict, match="2 tentatives"):
            allocator.run("c1", "FAC", 2026, persist)

    def test_failed_attempt_rolls_back(self):
        """Une tentative en échec n'écrit rien."""
        store = MemoryInvoiceStore()
        calls = 0

        def persist(number: str) -> Invoice:
            nonlocal calls
            calls += 1
            stored = store.add_invoice(_issued("c1", number))
            if calls == 1:
                raise DuplicateNumberError(number)
            return stored

        SequenceAllocator(store).run("c1", "FAC", 2026, persist)
        assert store.max_ordinal("c1", "FAC", 2026) == 1
        assert calls == 2

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            SequenceAllocator(MemoryInvoiceStore(), max_attempts=0)

    def test_other_errors_propagate(self):
        def persist(number: str) -> str:
            raise RuntimeError("panne")

        with pytest.raises(RuntimeError):
            SequenceAllocator(MemoryInvoiceStore()).run("c1", "FAC", 2026, persist)
