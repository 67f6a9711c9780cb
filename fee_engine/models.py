"""
Domain Models for the Maintenance Fee Engine

These dataclasses provide type-safe representations of units, building
settings and recalculation results.
All areas, multipliers and monetary values use Decimal for precision.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation

from .floors import floor_key_of

BUDGET_BASED = "budget_based"
RATE_BASED = "rate_based"
CALCULATION_METHODS = (BUDGET_BASED, RATE_BASED)

DEFAULT_TYPE_FACTOR = Decimal("1.0")
ZERO = Decimal("0")


def to_decimal(value, field_name: str) -> Decimal:
    """Convert a JSON number (or numeric string) to Decimal."""
    if value is None:
        raise ValueError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be a number, got: {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{field_name} must be a number, got: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"{field_name} must be finite, got: {value!r}")
    return result


def require_dict(value, section: str) -> dict:
    """Reject payload sections that are not JSON objects."""
    if not isinstance(value, dict):
        raise ValueError(f"{section} must be an object, got: {type(value).__name__}")
    return value


# =============================================================================
# INPUT MODELS
# =============================================================================


@dataclass
class Unit:
    """A physical or billable space in the building."""

    code: str
    unit_type: str
    net_sqm: Decimal
    billing_parent_code: str | None = None  # None = independently billable
    owner: str | None = None

    # Derived, populated by AreaAllocator
    share_local_common: Decimal = ZERO
    share_global_common: Decimal = ZERO
    total_gross_sqm: Decimal = ZERO
    type_factor: Decimal = DEFAULT_TYPE_FACTOR
    weighted_billing_area: Decimal = ZERO

    # Derived, populated by FeeDistributor
    effective_gross_sqm: Decimal = ZERO
    effective_weighted_billing_area: Decimal = ZERO
    current_maintenance_fee: Decimal = ZERO

    @property
    def is_child(self) -> bool:
        return self.billing_parent_code is not None

    @property
    def is_billable(self) -> bool:
        return self.billing_parent_code is None

    @property
    def floor_key(self) -> str:
        return floor_key_of(self.code)

    def without_derived(self) -> "Unit":
        """Copy of this unit with every computed field reset."""
        return Unit(
            code=self.code,
            unit_type=self.unit_type,
            net_sqm=self.net_sqm,
            billing_parent_code=self.billing_parent_code,
            owner=self.owner,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "Unit":
        require_dict(data, "unit")
        code = data["code"]
        parent = data.get("billing_parent_code")
        unit = cls(
            code=str(code) if code is not None else "",
            unit_type=data["type"],
            net_sqm=to_decimal(data["net_sqm"], f"net_sqm of unit {code}"),
            # An empty parent reference means the unit bills on its own
            billing_parent_code=str(parent) if parent not in (None, "") else None,
            owner=data.get("owner"),
        )
        # Previously allocated units may carry their derived fields along
        # (fee-only redistribution); everything else starts from zero.
        derived = {}
        for name in (
            "share_local_common",
            "share_global_common",
            "total_gross_sqm",
            "type_factor",
            "weighted_billing_area",
        ):
            if data.get(name) is not None:
                derived[name] = to_decimal(data[name], f"{name} of unit {code}")
        return replace(unit, **derived) if derived else unit


@dataclass
class CommonAreas:
    """Shared area to be distributed over the units."""

    global_amenities_sqm: Decimal = ZERO
    floor_standard_sqm: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: dict) -> "CommonAreas":
        require_dict(data, "commonAreas")
        return cls(
            global_amenities_sqm=to_decimal(data.get("global_amenities_sqm", 0), "global_amenities_sqm"),
            floor_standard_sqm=to_decimal(data.get("floor_standard_sqm", 0), "floor_standard_sqm"),
        )


@dataclass
class FeeDriver:
    """The financial input that drives fee distribution.

    method is 'budget_based' (amount = annual budget shared over all weight)
    or 'rate_based' (amount = price per gross square metre).
    """

    method: str
    amount: Decimal

    @property
    def is_budget_based(self) -> bool:
        return self.method == BUDGET_BASED


@dataclass
class Financials:
    """Fee calculation configuration."""

    calculation_method: str = BUDGET_BASED
    current_annual_budget: Decimal = ZERO
    rate_per_sqm: Decimal = ZERO
    type_multipliers: dict[str, Decimal] = field(default_factory=dict)
    last_recalculation_date: str | None = None

    def type_factor_for(self, unit_type: str) -> Decimal:
        """Multiplier for a unit type; unknown types count as 1.0."""
        return self.type_multipliers.get(unit_type, DEFAULT_TYPE_FACTOR)

    @property
    def fee_driver(self) -> FeeDriver:
        if self.calculation_method == RATE_BASED:
            return FeeDriver(method=RATE_BASED, amount=self.rate_per_sqm)
        return FeeDriver(method=BUDGET_BASED, amount=self.current_annual_budget)

    @classmethod
    def from_dict(cls, data: dict) -> "Financials":
        require_dict(data, "financials")
        multipliers = {
            str(name): to_decimal(factor, f"type_multipliers.{name}")
            for name, factor in require_dict(data.get("type_multipliers") or {}, "type_multipliers").items()
            if factor is not None
        }

        # The settings screen collects quarterly expenses; a year is four quarters
        if data.get("current_annual_budget") is None and data.get("quarterly_expenses") is not None:
            budget = to_decimal(data["quarterly_expenses"], "quarterly_expenses") * 4
        else:
            budget = to_decimal(data.get("current_annual_budget", 0), "current_annual_budget")

        return cls(
            calculation_method=data.get("calculation_method", BUDGET_BASED),
            current_annual_budget=budget,
            rate_per_sqm=to_decimal(data.get("rate_per_sqm", 0), "rate_per_sqm"),
            type_multipliers=multipliers,
            last_recalculation_date=data.get("last_recalculation_date"),
        )


@dataclass
class BuildingSettings:
    """Building-wide settings consumed by the allocators."""

    common_areas: CommonAreas = field(default_factory=CommonAreas)
    financials: Financials = field(default_factory=Financials)

    @classmethod
    def from_dict(cls, data: dict) -> "BuildingSettings":
        require_dict(data, "settings")
        common = data.get("commonAreas", data.get("common_areas", {}))
        return cls(
            common_areas=CommonAreas.from_dict(common or {}),
            financials=Financials.from_dict(data.get("financials") or {}),
        )


@dataclass
class RecalculationInput:
    """Complete snapshot handed to the engine."""

    units: list[Unit]
    settings: BuildingSettings

    @classmethod
    def from_dict(cls, data: dict) -> "RecalculationInput":
        require_dict(data, "input")
        if not isinstance(data["units"], list):
            raise ValueError(f"units must be a list, got: {type(data['units']).__name__}")
        return cls(
            units=[Unit.from_dict(u) for u in data["units"]],
            settings=BuildingSettings.from_dict(data["settings"]),
        )


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass
class FeeSummary:
    """Building-level totals of a fee distribution."""

    calculation_method: str = BUDGET_BASED
    driving_amount: Decimal = ZERO
    total_net_sqm: Decimal = ZERO
    total_gross_sqm: Decimal = ZERO
    total_weight: Decimal = ZERO
    cost_per_point: Decimal = ZERO
    total_fees: Decimal = ZERO
    billable_units: int = 0
    child_units: int = 0


@dataclass
class RecalculationResult:
    """Final output of a recalculation."""

    units: list[Unit]
    settings: BuildingSettings
    summary: FeeSummary
    warnings: list[str] = field(default_factory=list)
    areas_recalculated: bool = True
