"""Montants monétaires en décimal à échelle fixe.

FR: Valeur monétaire sans erreur de virgule flottante binaire. L'échelle est
    fixée à 2 décimales et l'arrondi est « au demi supérieur » (ROUND_HALF_UP).
    L'arrondi n'est appliqué qu'une fois par champ dérivé, au moment où la
    valeur est stockée ou affichée ; les calculs intermédiaires conservent
    leur précision.
EN: Monetary value without binary floating point error. Fixed scale of
    2 decimal places, ROUND_HALF_UP rounding, applied once per derived field.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import total_ordering

from facturation_bj.errors import InvalidAmount

MONEY_SCALE = 2
MONEY_QUANTUM = Decimal("0.01")


def to_decimal(
    value: object,
    *,
    field: str = "montant",
    allow_negative: bool = False,
) -> Decimal:
    """Convertit une valeur en Decimal fini.

    FR: Accepte Decimal, int et chaînes numériques. Les flottants sont
        refusés car ils portent déjà une erreur de représentation.
    EN: Accepts Decimal, int and numeric strings. Floats are refused.

    Raises:
        InvalidAmount: Valeur non convertible, non finie, flottante, ou
            négative alors que ``allow_negative`` est faux.
    """
    if isinstance(value, bool) or isinstance(value, float):
        msg = f"{field} : valeur flottante ou booléenne refusée ({value!r})"
        raise InvalidAmount(msg)

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            msg = f"{field} : valeur non numérique ({value!r})"
            raise InvalidAmount(msg) from exc
    else:
        msg = f"{field} : type non supporté ({type(value).__name__})"
        raise InvalidAmount(msg)

    if not result.is_finite():
        msg = f"{field} : valeur non finie ({value!r})"
        raise InvalidAmount(msg)
    if not allow_negative and result < 0:
        msg = f"{field} : valeur négative interdite ({result})"
        raise InvalidAmount(msg)
    return result


def round_money(value: Decimal) -> Decimal:
    """Arrondit à l'échelle monétaire (0.01, au demi supérieur)."""
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


@total_ordering
@dataclass(frozen=True, slots=True)
class Money:
    """Montant monétaire immuable.

    FR: Enveloppe un Decimal. Les opérations ne font jamais d'arrondi
        implicite : appeler ``rounded()`` au point de stockage.
    EN: Wraps a Decimal. Operations never round implicitly: call
        ``rounded()`` at the storage point.
    """

    amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "amount", to_decimal(self.amount, allow_negative=True)
        )

    @classmethod
    def of(
        cls,
        value: object,
        *,
        field: str = "montant",
        allow_negative: bool = False,
    ) -> Money:
        """Construit un montant en validant son signe."""
        return cls(to_decimal(value, field=field, allow_negative=allow_negative))

    @classmethod
    def zero(cls) -> Money:
        return cls(Decimal("0"))

    @classmethod
    def total(cls, amounts: Iterable[Money]) -> Money:
        """Somme d'une suite de montants (zéro si vide)."""
        return cls(sum((m.amount for m in amounts), Decimal("0")))

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount + other.amount)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount - other.amount)

    def __neg__(self) -> Money:
        return Money(-self.amount)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount < other.amount

    def multiply(self, factor: object) -> Money:
        """Multiplie par un scalaire (quantité, coefficient)."""
        return Money(self.amount * to_decimal(factor, field="facteur", allow_negative=True))

    def percent(self, rate: object) -> Money:
        """Applique un pourcentage : ``self × rate / 100``."""
        return Money(
            self.amount * to_decimal(rate, field="taux", allow_negative=True) / Decimal("100")
        )

    def rounded(self) -> Money:
        """Montant arrondi à l'échelle monétaire."""
        return Money(round_money(self.amount))

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    def __str__(self) -> str:
        return str(round_money(self.amount))
