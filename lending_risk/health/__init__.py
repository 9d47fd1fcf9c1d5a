from .calculator import UnitCalculator
from .engine import HealthEngine

__all__ = ["HealthEngine", "UnitCalculator"]
