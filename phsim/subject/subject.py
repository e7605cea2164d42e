from dataclasses import dataclass

from phsim.core.constants import ACCLIMATIZATION_THRESHOLD


@dataclass
class Subject:
    """
    Subject characteristics fixed for the whole run.
    """
    height: float = 1.8          # m
    weight: float = 75.0         # kg
    acclimatization: int = 100   # % (0 or 100)
    drink: int = 1               # 1 = may drink freely
    model_variant: int = 0       # 0 = default (1), 1-4 ISO 7933 variants

    def __post_init__(self):
        self.normalize_flags()

    def normalize_flags(self):
        """Collapse acclimatization and drinking to their binary codes."""
        self.acclimatization = 0 if self.acclimatization == 0 else 100
        self.drink = 0 if self.drink == 0 else 1

    @property
    def is_acclimatized(self) -> bool:
        return self.acclimatization >= ACCLIMATIZATION_THRESHOLD

    @property
    def drinks_freely(self) -> bool:
        return self.drink == 1
