"""
Fee Distributor

Turns allocated weighted areas into maintenance fees. Child units are billed
through their parent: their area rolls up into the parent and their own fee
is always zero.

Two calculation methods share the same roll-up:
- budget_based: a fixed annual budget is split pro rata to effective weight
- rate_based: a fixed price per square metre is applied to effective gross area
"""

from dataclasses import dataclass, replace
from decimal import Decimal

from ..models import ZERO, FeeDriver, Unit


@dataclass
class RolledUpArea:
    """Area of a billable unit including its direct children."""

    effective_gross_sqm: Decimal
    effective_weighted_billing_area: Decimal


class FeeDistributor:
    """Distributes fees over billable units."""

    def roll_up(self, units: list[Unit]) -> dict[str, RolledUpArea]:
        """
        Compute effective areas for every billable unit.

        Only direct children are added; a child of a child is not followed.
        """
        rolled = {
            u.code: RolledUpArea(
                effective_gross_sqm=u.total_gross_sqm,
                effective_weighted_billing_area=u.weighted_billing_area,
            )
            for u in units
            if u.is_billable
        }
        for unit in units:
            if unit.is_child and unit.billing_parent_code in rolled:
                parent = rolled[unit.billing_parent_code]
                parent.effective_gross_sqm += unit.total_gross_sqm
                parent.effective_weighted_billing_area += unit.weighted_billing_area
        return rolled

    def total_weight(self, units: list[Unit]) -> Decimal:
        """Sum of effective weighted area over billable units."""
        rolled = self.roll_up(units)
        return sum((r.effective_weighted_billing_area for r in rolled.values()), ZERO)

    def cost_per_point(self, units: list[Unit], budget: Decimal) -> Decimal:
        """Budget per unit of weighted area (zero when there is no weight)."""
        return self._cost_per_point(budget, self.total_weight(units))

    def distribute(self, units: list[Unit], budget: Decimal) -> list[Unit]:
        """
        Split a budget across billable units.

        cost_per_point = budget / Σ effective_weighted_billing_area
        fee            = effective_weighted_billing_area × cost_per_point
        """
        rolled = self.roll_up(units)
        total = sum((r.effective_weighted_billing_area for r in rolled.values()), ZERO)
        cost_per_point = self._cost_per_point(budget, total)

        return self._apply(
            units, rolled, lambda unit, area: area.effective_weighted_billing_area * cost_per_point
        )

    def distribute_by_rate(self, units: list[Unit], rate: Decimal) -> list[Unit]:
        """
        Price billable units at a fixed rate per square metre.

        fee = effective_gross_sqm × rate × type_factor of the billable unit
        """
        rolled = self.roll_up(units)
        return self._apply(
            units, rolled, lambda unit, area: area.effective_gross_sqm * rate * unit.type_factor
        )

    def distribute_for(self, units: list[Unit], driver: FeeDriver) -> list[Unit]:
        """Distribute using whichever method the fee driver selects."""
        if driver.is_budget_based:
            return self.distribute(units, driver.amount)
        return self.distribute_by_rate(units, driver.amount)

    def _apply(self, units: list[Unit], rolled: dict[str, RolledUpArea], price) -> list[Unit]:
        updated = []
        for unit in units:
            if unit.is_child:
                updated.append(
                    replace(
                        unit,
                        effective_gross_sqm=ZERO,
                        effective_weighted_billing_area=ZERO,
                        current_maintenance_fee=ZERO,
                    )
                )
                continue

            area = rolled[unit.code]
            updated.append(
                replace(
                    unit,
                    effective_gross_sqm=area.effective_gross_sqm,
                    effective_weighted_billing_area=area.effective_weighted_billing_area,
                    current_maintenance_fee=price(unit, area),
                )
            )
        return updated

    @staticmethod
    def _cost_per_point(budget: Decimal, total_weight: Decimal) -> Decimal:
        if total_weight <= 0:
            return ZERO
        return budget / total_weight


def distribute_fees(units: list[Unit], budget: Decimal) -> list[Unit]:
    """Distribute a budget using a default FeeDistributor."""
    return FeeDistributor().distribute(units, Decimal(str(budget)))
