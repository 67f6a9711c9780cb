"""
Calculators Package

Provides the two allocation stages of a fee recalculation.
"""

from .areas import AreaAllocator, allocate_areas
from .fees import FeeDistributor, distribute_fees

__all__ = [
    "AreaAllocator",
    "FeeDistributor",
    "allocate_areas",
    "distribute_fees",
]
