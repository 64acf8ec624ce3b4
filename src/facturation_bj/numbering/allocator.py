"""Attribution des numéros légaux séquentiels.

FR: Un numéro a la forme ``{série}-{année}-{ordinal}`` avec un ordinal sur
    au moins trois chiffres (``FAC-2026-001``). L'ordinal suivant est lu
    dans la transaction d'écriture (maximum + 1) ; la contrainte d'unicité
    du stockage détecte les écrivains concurrents et l'attribution est
    relancée avec un maximum relu, un nombre borné de fois.
EN: Numbers look like ``{series}-{year}-{ordinal}``. The next ordinal is
    read inside the write transaction; the store's unique constraint
    detects concurrent writers and allocation is retried a bounded number
    of times.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from facturation_bj.errors import AllocationConflict, DuplicateNumberError

if TYPE_CHECKING:
    from facturation_bj.storage.base import BaseInvoiceStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def format_number(series: str, year: int, ordinal: int) -> str:
    """Formate un numéro légal.

    >>> format_number("FAC", 2026, 7)
    'FAC-2026-007'
    >>> format_number("FAC", 2026, 1000)
    'FAC-2026-1000'
    """
    return f"{series}-{year}-{ordinal:03d}"


def parse_ordinal(number: str | None, series: str, year: int) -> int | None:
    """Extrait l'ordinal d'un numéro s'il appartient à la série et l'année.

    FR: Retourne None pour un numéro d'une autre série, d'une autre année
        ou mal formé. Les ordinaux se comparent numériquement.
    EN: Returns None for another series, another year or a malformed number.
    """
    if not number:
        return None
    prefix = f"{series}-{year}-"
    if not number.startswith(prefix):
        return None
    tail = number[len(prefix):]
    if not tail.isdigit():
        return None
    return int(tail)


def split_number(number: str) -> tuple[str, int, int] | None:
    """Décompose un numéro en (série, année, ordinal), ou None."""
    parts = number.rsplit("-", 2)
    if len(parts) != 3:
        return None
    series, year, ordinal = parts
    if not series or not year.isdigit() or not ordinal.isdigit():
        return None
    return series, int(year), int(ordinal)


class SequenceAllocator:
    """Allocateur de numéros par (société, série, année).

    FR: Ne conserve aucun compteur : le maximum courant est relu dans la
        transaction à chaque tentative. Un échec avant validation ne laisse
        aucun trou puisque rien n'a été écrit.
    EN: Keeps no counter: the current maximum is read inside the
        transaction on every attempt. A failure before commit leaves no gap.
    """

    def __init__(self, store: "BaseInvoiceStore", max_attempts: int = 5) -> None:
        if max_attempts < 1:
            msg = f"max_attempts doit être >= 1 (reçu : {max_attempts})"
            raise ValueError(msg)
        self.store = store
        self.max_attempts = max_attempts

    def allocate(self, company_id: str, series: str, year: int) -> str:
        """Retourne le prochain numéro de la séquence.

        Doit être appelé à l'intérieur d'une transaction du stockage.
        """
        current = self.store.max_ordinal(company_id, series, year)
        return format_number(series, year, current + 1)

    def run(
        self,
        company_id: str,
        series: str,
        year: int,
        persist: Callable[[str], T],
    ) -> T:
        """Attribue un numéro et le persiste dans une même transaction.

        Args:
            company_id: Société émettrice.
            series: Série de numérotation.
            year: Année civile de la séquence.
            persist: Écrit le document avec le numéro reçu ; peut lever
                DuplicateNumberError si la contrainte d'unicité est violée.

        Returns:
            La valeur retournée par ``persist``.

        Raises:
            AllocationConflict: Toutes les tentatives ont échoué sur un
                numéro déjà pris.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                with self.store.atomic():
                    number = self.allocate(company_id, series, year)
                    return persist(number)
            except DuplicateNumberError:
                logger.warning(
                    "Numéro déjà attribué (société %s, série %s, année %s), "
                    "tentative %s/%s",
                    company_id,
                    series,
                    year,
                    attempt,
                    self.max_attempts,
                )

        msg = (
            f"Impossible d'attribuer un numéro {series}-{year} après "
            f"{self.max_attempts} tentatives"
        )
        raise AllocationConflict(msg)
