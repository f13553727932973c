# src/models/currency.py

"""Currency model and change event."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Currency:
    """A display currency. ``rate`` is units per reference-currency unit."""

    code: str
    name: str
    symbol: str
    rate: float = 1.0

    def format(self, amount: float) -> str:
        return f"{self.symbol}{amount:,.2f}"


@dataclass(frozen=True)
class CurrencyChange:
    """Published when the active currency (or its rate) changes."""

    previous: Currency
    current: Currency

    @property
    def code_changed(self) -> bool:
        return self.previous.code != self.current.code
