"""
Property transfer tax rate schedule.

Withholding tax percentages for buyers and sellers of immovable property,
keyed by value bracket and FBR filer status, plus the fixed government
charges (TMA and stamp duty) borne by every buyer.

Rates are sample figures for demonstration; adjust per FBR updates.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class FilerStatus(Enum):
    """Tax-filing compliance tier of a payer, as tracked by the FBR."""

    FILER = "filer"
    LATE_FILER = "lateFiler"
    NON_FILER = "nonFiler"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def tier(self) -> int:
        """0 for filers; higher tiers are taxed at higher rates."""
        return _STATUS_ORDER.index(self)

    @classmethod
    def parse(cls, value: "FilerStatus | str") -> "FilerStatus":
        """
        Resolve a status from a member, its value, name or label.

        Matching ignores case, spaces, dashes and underscores, so
        ``"late filer"``, ``"LATE_FILER"`` and ``"lateFiler"`` all resolve
        to ``LATE_FILER``.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unknown filer status: {value!r}")
        key = _normalize(value)
        for status in cls:
            if key in (
                _normalize(status.value),
                _normalize(status.name),
                _normalize(status.label),
            ):
                return status
        raise ValueError(f"Unknown filer status: {value!r}")


class Role(Enum):
    BUYER = "buyer"
    SELLER = "seller"


class Bracket(Enum):
    """Property value bracket; the threshold itself belongs to the lower one."""

    AT_OR_BELOW_THRESHOLD = "at_or_below"
    ABOVE_THRESHOLD = "above"


def _normalize(text: str) -> str:
    return "".join(ch for ch in text.lower() if ch not in " -_")


_STATUS_ORDER = (FilerStatus.FILER, FilerStatus.LATE_FILER, FilerStatus.NON_FILER)

_STATUS_LABELS = {
    FilerStatus.FILER: "Filer",
    FilerStatus.LATE_FILER: "Late Filer",
    FilerStatus.NON_FILER: "Non-Filer",
}


# ---------------------------------------------------------------------------
# Schedule constants
# ---------------------------------------------------------------------------

# 50 million PKR (5 crore). Values strictly above use the higher tables.
THRESHOLD = Decimal("50000000")

# Fixed buyer charges, percent of property value
TMA_RATE = Decimal("1")
STAMP_DUTY_RATE = Decimal("1")

# Miscellaneous fee added to the displayed combined total only
MISC_FEE = Decimal("500")

_RATE_DATA: dict[Bracket, dict[Role, dict[FilerStatus, str]]] = {
    Bracket.AT_OR_BELOW_THRESHOLD: {
        Role.BUYER: {
            FilerStatus.FILER: "1.5",
            FilerStatus.LATE_FILER: "4.5",
            FilerStatus.NON_FILER: "10.5",
        },
        Role.SELLER: {
            FilerStatus.FILER: "4.5",
            FilerStatus.LATE_FILER: "7.5",
            FilerStatus.NON_FILER: "11.5",
        },
    },
    Bracket.ABOVE_THRESHOLD: {
        Role.BUYER: {
            FilerStatus.FILER: "2",
            FilerStatus.LATE_FILER: "5.5",
            FilerStatus.NON_FILER: "14.5",
        },
        Role.SELLER: {
            FilerStatus.FILER: "5",
            FilerStatus.LATE_FILER: "8.5",
            FilerStatus.NON_FILER: "11.5",
        },
    },
}


class PropertyRateDatabase:
    """
    Immutable lookup of withholding tax percentages.

    Every rate is addressed by ``(bracket, role, status)``. The schedule is
    validated on construction: each table must define all three filer
    statuses, rates must be non-negative, and rates must not decrease from
    filer to late filer to non-filer.
    """

    def __init__(
        self,
        data: Mapping[Bracket, Mapping[Role, Mapping[FilerStatus, str]]] | None = None,
        threshold: Decimal = THRESHOLD,
    ) -> None:
        self._threshold = Decimal(threshold)
        self._rates: dict[tuple[Bracket, Role, FilerStatus], Decimal] = {}
        self._load_rates(_RATE_DATA if data is None else data)
        self.validate()

    def _load_rates(
        self,
        data: Mapping[Bracket, Mapping[Role, Mapping[FilerStatus, str]]],
    ) -> None:
        for bracket, roles in data.items():
            for role, table in roles.items():
                for status, pct in table.items():
                    self._rates[(bracket, role, status)] = Decimal(str(pct))

    @property
    def threshold(self) -> Decimal:
        return self._threshold

    def validate(self) -> None:
        """Raise ValueError if the schedule is incomplete or not monotonic."""
        for bracket in Bracket:
            for role in Role:
                previous: Decimal | None = None
                for status in _STATUS_ORDER:
                    key = (bracket, role, status)
                    if key not in self._rates:
                        raise ValueError(
                            f"Missing rate for {role.value} {status.value} "
                            f"({bracket.value} threshold)"
                        )
                    pct = self._rates[key]
                    if pct < 0:
                        raise ValueError(
                            f"Negative rate {pct} for {role.value} {status.value}"
                        )
                    if previous is not None and pct < previous:
                        raise ValueError(
                            f"{role.value} rates for {bracket.value} threshold "
                            f"decrease at {status.value}: {previous} -> {pct}"
                        )
                    previous = pct

    def is_above_threshold(self, property_value: Decimal) -> bool:
        return property_value > self._threshold

    def bracket_for(self, property_value: Decimal) -> Bracket:
        if self.is_above_threshold(property_value):
            return Bracket.ABOVE_THRESHOLD
        return Bracket.AT_OR_BELOW_THRESHOLD

    def rate(self, bracket: Bracket, role: Role, status: FilerStatus) -> Decimal:
        """Return the percentage for one schedule cell, e.g. Decimal('1.5')."""
        return self._rates[(bracket, role, FilerStatus.parse(status))]

    def table(self, bracket: Bracket, role: Role) -> Mapping[FilerStatus, Decimal]:
        """Read-only status -> percentage mapping for a bracket and role."""
        return MappingProxyType(
            {status: self._rates[(bracket, role, status)] for status in _STATUS_ORDER}
        )

    def rates_for(
        self, property_value: Decimal, role: Role
    ) -> Mapping[FilerStatus, Decimal]:
        """Return the table that applies to a property value."""
        return self.table(self.bracket_for(property_value), role)

    def all_tables(
        self,
    ) -> list[tuple[Bracket, Role, Mapping[FilerStatus, Decimal]]]:
        """Return every table in schedule order."""
        return [
            (bracket, role, self.table(bracket, role))
            for bracket in Bracket
            for role in Role
        ]

    @staticmethod
    def statuses() -> tuple[FilerStatus, ...]:
        """Filer statuses ordered from lowest to highest tier."""
        return _STATUS_ORDER
