"""
Fee Processor - Main Orchestrator

Coordinates the recalculation pipeline through discrete, testable steps.
"""

import json
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from .calculators import AreaAllocator, FeeDistributor
from .models import (
    ZERO,
    BuildingSettings,
    FeeDriver,
    FeeSummary,
    RecalculationInput,
    RecalculationResult,
    Unit,
)
from .output import OutputBuilder
from .validators import InputValidator


# Bad payloads surface as one of these; callers answer them with a 400
VALIDATION_ERRORS = (ValueError, KeyError, TypeError)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FeeProcessor:
    """
    Main orchestrator for maintenance fee recalculation.

    Implements a clear pipeline pattern:
    1. Validate Input
    2. Collect Billing Warnings
    3. Allocate Common Areas (skipped when only the fee driver changed)
    4. Distribute Fees
    5. Stamp Recalculation Date
    6. Build Summary
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self.validator = InputValidator()
        self.area_allocator = AreaAllocator()
        self.fee_distributor = FeeDistributor()
        self.output_builder = OutputBuilder()
        self.clock = clock or _utc_now

    def recalculate(self, input_data: RecalculationInput) -> RecalculationResult:
        """
        Recalculate areas and fees from raw units and settings.

        Args:
            input_data: Units and settings snapshot

        Returns:
            RecalculationResult with fully recomputed units
        """
        return self._run(input_data, allocate_areas=True)

    def redistribute(self, input_data: RecalculationInput) -> RecalculationResult:
        """
        Recalculate fees only, reusing each unit's allocated areas.

        Valid when nothing but the budget, rate or calculation method changed.
        """
        self.validator.validate_allocated(input_data.units)
        return self._run(input_data, allocate_areas=False)

    def apply_settings_change(
        self,
        units: List[Unit],
        old_settings: BuildingSettings,
        new_settings: BuildingSettings,
    ) -> RecalculationResult:
        """Run the shortest pipeline that reflects a settings change."""
        input_data = RecalculationInput(units=units, settings=new_settings)
        if self.needs_area_recalculation(old_settings, new_settings):
            return self.recalculate(input_data)
        return self.redistribute(input_data)

    @staticmethod
    def needs_area_recalculation(old_settings: BuildingSettings, new_settings: BuildingSettings) -> bool:
        """
        Area shares and weights depend on common areas and type multipliers;
        budget, rate and calculation method only affect fees.
        """
        return (
            old_settings.common_areas != new_settings.common_areas
            or old_settings.financials.type_multipliers != new_settings.financials.type_multipliers
        )

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Recalculate from raw dictionary input.

        Convenience method for API usage.
        """
        result = self.recalculate(RecalculationInput.from_dict(data))
        return self.output_builder.build(result)

    def redistribute_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Redistribute fees from raw dictionary input of allocated units."""
        result = self.redistribute(RecalculationInput.from_dict(data))
        return self.output_builder.build(result)

    def _run(self, input_data: RecalculationInput, allocate_areas: bool) -> RecalculationResult:
        # Step 1: Validate
        self.validator.validate(input_data)

        # Step 2: Collect billing warnings
        warnings = self.validator.find_inconsistencies(input_data.units)

        # Step 3: Allocate common areas
        units = input_data.units
        if allocate_areas:
            units = self.area_allocator.allocate(units, input_data.settings)

        # Step 4: Distribute fees
        driver = input_data.settings.financials.fee_driver
        units = self.fee_distributor.distribute_for(units, driver)

        # Step 5: Stamp recalculation date
        settings = self._stamp(input_data.settings)

        # Step 6: Build summary
        return RecalculationResult(
            units=units,
            settings=settings,
            summary=self._build_summary(units, driver),
            warnings=warnings,
            areas_recalculated=allocate_areas,
        )

    def _stamp(self, settings: BuildingSettings) -> BuildingSettings:
        """Return settings carrying the time of this recalculation."""
        financials = replace(settings.financials, last_recalculation_date=self.clock().isoformat())
        return replace(settings, financials=financials)

    def _build_summary(self, units: List[Unit], driver: FeeDriver) -> FeeSummary:
        billable = [u for u in units if u.is_billable]
        total_weight = self.fee_distributor.total_weight(units)

        if driver.is_budget_based:
            cost_per_point = self.fee_distributor.cost_per_point(units, driver.amount)
        else:
            cost_per_point = driver.amount

        return FeeSummary(
            calculation_method=driver.method,
            driving_amount=driver.amount,
            total_net_sqm=sum((u.net_sqm for u in units), ZERO),
            total_gross_sqm=sum((u.total_gross_sqm for u in units), ZERO),
            total_weight=total_weight,
            cost_per_point=cost_per_point,
            total_fees=sum((u.current_maintenance_fee for u in units), ZERO),
            billable_units=len(billable),
            child_units=len(units) - len(billable),
        )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def process_from_dict(input_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recalculate from Python dict and return Python dict.
    """
    processor = FeeProcessor()
    return processor.process_from_dict(input_data)


def process_from_json(json_input: str) -> str:
    """
    Recalculate from JSON string input and return JSON string output.
    """
    try:
        input_data = json.loads(json_input)
        processor = FeeProcessor()
        result = processor.process_from_dict(input_data)
        return json.dumps(result, indent=2)

    except VALIDATION_ERRORS as e:
        error_response = {"error": str(e), "status": "validation_failed"}
        return json.dumps(error_response, indent=2)
