"""
MAINTENANCE FEE ENGINE
Common-area allocation and maintenance fee distribution
"""

from .calculators import allocate_areas, distribute_fees
from .models import BuildingSettings, RecalculationInput, RecalculationResult, Unit
from .processor import FeeProcessor

__all__ = [
    'FeeProcessor',
    'RecalculationInput',
    'RecalculationResult',
    'BuildingSettings',
    'Unit',
    'allocate_areas',
    'distribute_fees',
]
