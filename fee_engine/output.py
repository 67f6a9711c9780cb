"""
Output Builder

Constructs the final API response from a recalculation result.
"""

from decimal import Decimal

from .models import BUDGET_BASED, BuildingSettings, FeeSummary, RecalculationResult, Unit


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return round(float(value), 2)


def to_area(value: Decimal) -> float:
    """Convert Decimal to float with 4 decimal places."""
    return round(float(value), 4)


def _fmt(value) -> str:
    """Format a number for descriptions."""
    return f"{value:,.2f}"


class OutputBuilder:
    """Builds the final output response."""

    def build(self, result: RecalculationResult) -> dict:
        """Construct the complete response from a recalculation result."""
        return {
            "units": [self._build_unit(u) for u in result.units],
            "summary": self._build_summary(result.summary),
            "billing_groups": self._build_billing_groups(result.units),
            "updated_settings": self._build_settings(result.settings),
            "areas_recalculated": result.areas_recalculated,
            "warnings": list(result.warnings),
        }

    def _build_unit(self, unit: Unit) -> dict:
        return {
            "code": unit.code,
            "type": unit.unit_type,
            "billing_parent_code": unit.billing_parent_code,
            "owner": unit.owner,
            "net_sqm": to_area(unit.net_sqm),
            "share_local_common": to_area(unit.share_local_common),
            "share_global_common": to_area(unit.share_global_common),
            "total_gross_sqm": to_area(unit.total_gross_sqm),
            "type_factor": float(unit.type_factor),
            "weighted_billing_area": to_area(unit.weighted_billing_area),
            "effective_gross_sqm": to_area(unit.effective_gross_sqm),
            "effective_weighted_billing_area": to_area(unit.effective_weighted_billing_area),
            "current_maintenance_fee": to_money(unit.current_maintenance_fee),
        }

    def _build_summary(self, summary: FeeSummary) -> dict:
        """Build summary section with value and description for each field."""
        total_weight = to_area(summary.total_weight)
        total_fees = to_money(summary.total_fees)

        if summary.calculation_method == BUDGET_BASED:
            driver = {
                "value": to_money(summary.driving_amount),
                "description": "Annual budget shared across all billable units",
            }
            cost_per_point = {
                "value": round(float(summary.cost_per_point), 6),
                "description": (
                    f"budget ({_fmt(summary.driving_amount)}) / total weight ({_fmt(total_weight)}) "
                    f"= {float(summary.cost_per_point):,.6f} per weighted sqm"
                    if summary.total_weight > 0
                    else "No weighted area to bill - every fee is zero"
                ),
            }
        else:
            driver = {
                "value": to_money(summary.driving_amount),
                "description": "Rate per gross sqm, scaled by each billable unit's type factor",
            }
            cost_per_point = {
                "value": round(float(summary.cost_per_point), 6),
                "description": f"Fixed rate of {_fmt(summary.driving_amount)} per gross sqm",
            }

        return {
            "calculation_method": {
                "value": summary.calculation_method,
                "description": "Budget split pro rata to weighted area"
                if summary.calculation_method == BUDGET_BASED
                else "Fixed rate per square metre",
            },
            "driving_amount": driver,
            "total_net_sqm": {
                "value": to_area(summary.total_net_sqm),
                "description": "Sum of owned floor area over all units",
            },
            "total_gross_sqm": {
                "value": to_area(summary.total_gross_sqm),
                "description": "Net area plus allocated local and global common area",
            },
            "total_weight": {
                "value": total_weight,
                "description": (
                    f"Sum of effective weighted billing area over {summary.billable_units} billable units "
                    f"({summary.child_units} child units rolled into their parents)"
                ),
            },
            "cost_per_point": cost_per_point,
            "total_fees": {
                "value": total_fees,
                "description": f"Sum of maintenance fees over all units = {_fmt(total_fees)}",
            },
        }

    def _build_billing_groups(self, units: list[Unit]) -> dict:
        """Map each parent code to the codes of the units billed through it."""
        groups: dict[str, list[str]] = {}
        for unit in units:
            if unit.is_child:
                groups.setdefault(unit.billing_parent_code, []).append(unit.code)
        return groups

    def _build_settings(self, settings: BuildingSettings) -> dict:
        common = settings.common_areas
        financials = settings.financials
        return {
            "commonAreas": {
                "global_amenities_sqm": to_area(common.global_amenities_sqm),
                "floor_standard_sqm": to_area(common.floor_standard_sqm),
            },
            "financials": {
                "calculation_method": financials.calculation_method,
                "current_annual_budget": to_money(financials.current_annual_budget),
                "rate_per_sqm": to_money(financials.rate_per_sqm),
                "type_multipliers": {
                    name: float(factor) for name, factor in financials.type_multipliers.items()
                },
                "last_recalculation_date": financials.last_recalculation_date,
            },
        }
