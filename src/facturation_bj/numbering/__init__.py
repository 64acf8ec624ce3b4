"""Numérotation légale séquentielle des documents."""

from facturation_bj.numbering.allocator import (
    SequenceAllocator,
    format_number,
    parse_ordinal,
    split_number,
)

__all__ = [
    "SequenceAllocator",
    "format_number",
    "parse_ordinal",
    "split_number",
]
