"""
Area Allocator

Distributes common area over units pro rata to their net area:
- floor standard area (corridors, shafts) within each floor group
- global amenity area across the whole building
"""

from dataclasses import replace
from decimal import Decimal

from ..floors import floor_key_of
from ..models import ZERO, BuildingSettings, Unit


class AreaAllocator:
    """Computes common-area shares and weighted billing area for every unit."""

    def allocate(self, units: list[Unit], settings: BuildingSettings) -> list[Unit]:
        """
        Allocate common areas over a building's units.

        For each unit:
            share_local_common    = floor_standard_sqm × net / floor net total
            share_global_common   = global_amenities_sqm × net / building net total
            total_gross_sqm       = net + local share + global share
            weighted_billing_area = total_gross_sqm × type factor

        A zero denominator yields a zero share. Returns new units in input order.
        """
        common = settings.common_areas
        financials = settings.financials

        total_building_net = self.total_net_sqm(units)
        floor_totals = self.floor_net_totals(units)

        allocated = []
        for unit in units:
            local_share = self._pro_rata(
                common.floor_standard_sqm, unit.net_sqm, floor_totals[floor_key_of(unit.code)]
            )
            global_share = self._pro_rata(common.global_amenities_sqm, unit.net_sqm, total_building_net)

            total_gross = unit.net_sqm + local_share + global_share
            type_factor = financials.type_factor_for(unit.unit_type)

            allocated.append(
                replace(
                    unit,
                    share_local_common=local_share,
                    share_global_common=global_share,
                    total_gross_sqm=total_gross,
                    type_factor=type_factor,
                    weighted_billing_area=total_gross * type_factor,
                )
            )
        return allocated

    @staticmethod
    def total_net_sqm(units: list[Unit]) -> Decimal:
        return sum((u.net_sqm for u in units), ZERO)

    @staticmethod
    def floor_net_totals(units: list[Unit]) -> dict[str, Decimal]:
        """Sum of net area per floor group."""
        totals: dict[str, Decimal] = {}
        for unit in units:
            key = floor_key_of(unit.code)
            totals[key] = totals.get(key, ZERO) + unit.net_sqm
        return totals

    @staticmethod
    def _pro_rata(pool: Decimal, part: Decimal, whole: Decimal) -> Decimal:
        if whole <= 0:
            return ZERO
        return pool * (part / whole)


def allocate_areas(units: list[Unit], settings: BuildingSettings) -> list[Unit]:
    """Allocate common areas using a default AreaAllocator."""
    return AreaAllocator().allocate(units, settings)
