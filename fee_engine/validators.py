"""
Input Validation for the Maintenance Fee Engine

Validates unit lists and building settings before processing begins.
Raises ValueError with clear messages for any constraint violations.
Billing-hierarchy inconsistencies are reported as warnings instead, since
they never stop a recalculation.
"""

from decimal import Decimal

from .models import CALCULATION_METHODS, BuildingSettings, RecalculationInput, Unit

# Areas leave the engine rounded to 4 places
WEIGHT_TOLERANCE = Decimal("0.0001")


class InputValidator:
    """Validates recalculation input according to business rules."""

    def validate(self, input_data: RecalculationInput) -> None:
        """
        Run all validations. Raises ValueError if any check fails.
        """
        self._validate_units(input_data.units)
        self._validate_common_areas(input_data.settings)
        self._validate_financials(input_data.settings)

    def validate_allocated(self, units: list[Unit]) -> None:
        """
        Check that units carry their allocated areas.

        Gross area includes net area, so an allocated unit never has less
        gross than net area, and its weight is its gross area times its
        type factor. Areas sent back by a client are rounded, hence the
        tolerance on the weight.
        """
        for unit in units:
            if unit.total_gross_sqm < unit.net_sqm:
                raise ValueError(
                    f"Unit {unit.code} has no allocated areas "
                    f"(total_gross_sqm {unit.total_gross_sqm} < net_sqm {unit.net_sqm}); "
                    f"run a full recalculation instead"
                )

            expected = unit.total_gross_sqm * unit.type_factor
            tolerance = WEIGHT_TOLERANCE * (1 + unit.type_factor)
            if abs(unit.weighted_billing_area - expected) > tolerance:
                raise ValueError(
                    f"Unit {unit.code} has inconsistent allocated areas "
                    f"(weighted_billing_area {unit.weighted_billing_area} != "
                    f"total_gross_sqm {unit.total_gross_sqm} x type_factor {unit.type_factor}); "
                    f"run a full recalculation instead"
                )

    def find_inconsistencies(self, units: list[Unit]) -> list[str]:
        """
        Describe billing references the roll-up cannot honour.

        The affected child area is not absorbed by any billable unit, so
        fees no longer add up to the budget.
        """
        by_code = {u.code: u for u in units}
        warnings = []

        for unit in units:
            if not unit.is_child:
                continue

            parent = by_code.get(unit.billing_parent_code)
            if unit.billing_parent_code == unit.code:
                warnings.append(f"Unit {unit.code} is its own billing parent; its area is not billed")
            elif parent is None:
                warnings.append(
                    f"Unit {unit.code} references unknown billing parent "
                    f"{unit.billing_parent_code}; its area is not billed"
                )
            elif parent.is_child:
                warnings.append(
                    f"Unit {unit.code} is billed to {parent.code}, which is itself billed to "
                    f"{parent.billing_parent_code}; only one level of billing parents is rolled up"
                )

        return warnings

    def _validate_units(self, units: list[Unit]) -> None:
        """Validate unit-level constraints."""
        seen = set()
        for unit in units:
            if not unit.code:
                raise ValueError("Unit code cannot be empty")

            if unit.code in seen:
                raise ValueError(f"Duplicate unit code: {unit.code}")
            seen.add(unit.code)

            if unit.net_sqm < 0:
                raise ValueError(f"net_sqm cannot be negative, got: {unit.net_sqm} for unit {unit.code}")

    def _validate_common_areas(self, settings: BuildingSettings) -> None:
        """Validate common-area constraints."""
        common = settings.common_areas
        if common.global_amenities_sqm < 0:
            raise ValueError(f"global_amenities_sqm cannot be negative, got: {common.global_amenities_sqm}")

        if common.floor_standard_sqm < 0:
            raise ValueError(f"floor_standard_sqm cannot be negative, got: {common.floor_standard_sqm}")

    def _validate_financials(self, settings: BuildingSettings) -> None:
        """Validate fee calculation settings."""
        financials = settings.financials
        if financials.calculation_method not in CALCULATION_METHODS:
            raise ValueError(
                f"Invalid calculation_method: {financials.calculation_method}. "
                f"Must be 'budget_based' or 'rate_based'"
            )

        if financials.current_annual_budget < 0:
            raise ValueError(
                f"current_annual_budget cannot be negative, got: {financials.current_annual_budget}"
            )

        if financials.rate_per_sqm < 0:
            raise ValueError(f"rate_per_sqm cannot be negative, got: {financials.rate_per_sqm}")

        for unit_type, factor in financials.type_multipliers.items():
            if factor < 0:
                raise ValueError(f"Type multiplier for {unit_type} cannot be negative, got: {factor}")
