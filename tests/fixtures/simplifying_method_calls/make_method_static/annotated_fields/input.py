from dataclasses import dataclass
from typing import ClassVar


@dataclass
class Item:
    price: float = 0.0
    TAX: ClassVar[float] = 0.2

    def _tax_rate(self):
        return self.TAX

    def _gross(self):
        return self.price * (1 + self.TAX)
