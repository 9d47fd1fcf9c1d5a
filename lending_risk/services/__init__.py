"""Service modules"""
from .aggregator import PriceAggregator

__all__ = ["PriceAggregator"]
