"""Risk and price core of a TON lending protocol client.

Applications embedding the core call ``configure_logging`` once at startup.
"""
from .assets import AssetStateStore, InterestAccrualModel
from .config import AppConfig, MasterParams, load_config
from .errors import (
    DecodeError,
    LendingRiskError,
    ProofConstructionError,
    QuorumError,
    TransportError,
)
from .health import HealthEngine, UnitCalculator
from .logging_setup import configure_logging
from .position import UserPosition
from .services import PriceAggregator

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "AssetStateStore",
    "DecodeError",
    "HealthEngine",
    "InterestAccrualModel",
    "LendingRiskError",
    "MasterParams",
    "PriceAggregator",
    "ProofConstructionError",
    "QuorumError",
    "TransportError",
    "UnitCalculator",
    "UserPosition",
    "configure_logging",
    "load_config",
]
