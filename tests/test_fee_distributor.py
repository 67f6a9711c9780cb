"""
Unit Tests for the Fee Distributor

Tests verify roll-up of child units, budget conservation and the rate-based method.
"""

from decimal import Decimal

import pytest

from fee_engine.calculators.fees import FeeDistributor, distribute_fees
from fee_engine.models import BUDGET_BASED, RATE_BASED, FeeDriver, Unit


def allocated_unit(code, gross, factor=1, parent=None, net=None):
    """A unit as it leaves the area allocator."""
    gross = Decimal(str(gross))
    factor = Decimal(str(factor))
    return Unit(
        code=code,
        unit_type="Flat",
        net_sqm=Decimal(str(net)) if net is not None else gross,
        billing_parent_code=parent,
        total_gross_sqm=gross,
        type_factor=factor,
        weighted_billing_area=gross * factor,
    )


def fees_by_code(units):
    return {u.code: u.current_maintenance_fee for u in units}


class TestRollUp:
    """Child weighted area is absorbed by the billing parent."""

    @pytest.fixture
    def distributor(self):
        return FeeDistributor()

    def test_parent_without_children(self, distributor):
        rolled = distributor.roll_up([allocated_unit("11", 100)])
        assert rolled["11"].effective_weighted_billing_area == Decimal("100")
        assert rolled["11"].effective_gross_sqm == Decimal("100")

    def test_children_added_to_parent(self, distributor):
        units = [
            allocated_unit("11", 100),
            allocated_unit("12", 40, parent="11"),
            allocated_unit("13", 25, factor=2, parent="11"),
        ]
        rolled = distributor.roll_up(units)

        assert set(rolled) == {"11"}
        assert rolled["11"].effective_weighted_billing_area == Decimal("190")
        assert rolled["11"].effective_gross_sqm == Decimal("165")

    def test_only_direct_children(self, distributor):
        """A grandchild is not rolled up through its (child) parent."""
        units = [
            allocated_unit("11", 100),
            allocated_unit("12", 40, parent="11"),
            allocated_unit("13", 30, parent="12"),
        ]
        rolled = distributor.roll_up(units)
        assert rolled["11"].effective_weighted_billing_area == Decimal("140")

    def test_orphan_child_is_not_rolled_up(self, distributor):
        units = [allocated_unit("11", 100), allocated_unit("12", 40, parent="99")]
        rolled = distributor.roll_up(units)
        assert rolled["11"].effective_weighted_billing_area == Decimal("100")
        assert "99" not in rolled

    def test_does_not_mutate_units(self, distributor):
        parent = allocated_unit("11", 100)
        distributor.roll_up([parent, allocated_unit("12", 40, parent="11")])
        assert parent.weighted_billing_area == Decimal("100")


class TestBudgetDistribution:
    """Budget is split pro rata to effective weighted area."""

    @pytest.fixture
    def distributor(self):
        return FeeDistributor()

    def test_worked_example(self, distributor):
        """1500 over 153.33 and 76.67 weighted sqm: 1000 and 500"""
        units = [
            allocated_unit("111", Decimal(100) + Decimal(80) * Decimal(100) / Decimal(150), net=100),
            allocated_unit("112", Decimal(50) + Decimal(80) * Decimal(50) / Decimal(150), net=50),
        ]
        result = distributor.distribute(units, Decimal("1500"))
        fees = fees_by_code(result)

        assert float(fees["111"]) == pytest.approx(1000.00, abs=0.01)
        assert float(fees["112"]) == pytest.approx(500.00, abs=0.01)
        assert float(fees["111"] + fees["112"]) == pytest.approx(1500)

    def test_cost_per_point(self, distributor):
        units = [allocated_unit("11", 100), allocated_unit("12", 100), allocated_unit("C1", 100, factor=2)]
        assert distributor.cost_per_point(units, Decimal("4000")) == Decimal("10")

    def test_type_factor_doubles_fee(self, distributor):
        units = [allocated_unit("11", 100), allocated_unit("12", 100), allocated_unit("C1", 100, factor=2)]
        fees = fees_by_code(distributor.distribute(units, Decimal("4000")))

        assert fees["11"] == Decimal("1000")
        assert fees["12"] == Decimal("1000")
        assert fees["C1"] == Decimal("2000")

    def test_budget_conserved(self, distributor):
        units = [
            allocated_unit("11", 97.3),
            allocated_unit("12", 143.05, factor=1.2),
            allocated_unit("13", 61.7, parent="12"),
            allocated_unit("C1", 88.8, factor=1.5),
            allocated_unit("O1", 12.5, parent="C1"),
        ]
        result = distributor.distribute(units, Decimal("250000"))
        total = sum(u.current_maintenance_fee for u in result)
        assert float(total) == pytest.approx(250000)

    def test_children_pay_nothing(self, distributor):
        units = [
            allocated_unit("11", 100),
            allocated_unit("12", 40, parent="11"),
            allocated_unit("21", 80),
            allocated_unit("22", 20, parent="21"),
        ]
        result = distributor.distribute(units, Decimal("10000"))

        for unit in result:
            if unit.is_child:
                assert unit.current_maintenance_fee == Decimal("0")
                assert unit.effective_weighted_billing_area == Decimal("0")

    def test_parent_fee_includes_children(self, distributor):
        units = [
            allocated_unit("11", 100),
            allocated_unit("12", 40, parent="11"),
            allocated_unit("21", 60),
        ]
        cost_per_point = distributor.cost_per_point(units, Decimal("2000"))
        fees = fees_by_code(distributor.distribute(units, Decimal("2000")))

        assert cost_per_point == Decimal("10")
        assert fees["11"] == (Decimal("100") + Decimal("40")) * cost_per_point
        assert fees["11"] == Decimal("1400")
        assert fees["21"] == Decimal("600")

    def test_effective_areas_recorded_on_parent(self, distributor):
        units = [allocated_unit("11", 100, factor=1.5), allocated_unit("12", 40, parent="11")]
        parent = distributor.distribute(units, Decimal("1000"))[0]

        assert parent.effective_gross_sqm == Decimal("140")
        assert parent.effective_weighted_billing_area == Decimal("190.0")

    def test_zero_total_weight(self, distributor):
        """Edge case: nothing to bill - every fee is 0, no exception."""
        units = [allocated_unit("11", 0), allocated_unit("12", 0)]
        result = distributor.distribute(units, Decimal("5000"))

        assert distributor.cost_per_point(units, Decimal("5000")) == Decimal("0")
        for unit in result:
            assert unit.current_maintenance_fee == Decimal("0")

    def test_zero_budget(self, distributor):
        result = distributor.distribute([allocated_unit("11", 100)], Decimal("0"))
        assert result[0].current_maintenance_fee == Decimal("0")

    def test_orphan_child_excluded_from_total(self, distributor):
        """The orphan's area is not billed; billable units still share the budget."""
        units = [allocated_unit("11", 100), allocated_unit("12", 100), allocated_unit("13", 50, parent="99")]
        fees = fees_by_code(distributor.distribute(units, Decimal("1000")))

        assert fees == {"11": Decimal("500"), "12": Decimal("500"), "13": Decimal("0")}

    def test_every_billable_unit_priced_from_rolled_up_area(self, distributor):
        """No billable unit falls back to its own area while its children go unbilled."""
        units = [allocated_unit("11", 100), allocated_unit("12", 100, parent="11"), allocated_unit("21", 200)]
        result = distributor.distribute(units, Decimal("4000"))

        for unit in result:
            if unit.is_billable:
                assert unit.current_maintenance_fee == unit.effective_weighted_billing_area * Decimal("10")
        assert fees_by_code(result)["11"] == Decimal("2000")

    def test_preserves_order(self, distributor):
        units = [allocated_unit("21", 10), allocated_unit("11", 10), allocated_unit("12", 10, parent="11")]
        result = distributor.distribute(units, Decimal("100"))
        assert [u.code for u in result] == ["21", "11", "12"]

    def test_module_function_accepts_plain_numbers(self):
        result = distribute_fees([allocated_unit("11", 100), allocated_unit("12", 100)], 1500)
        assert fees_by_code(result) == {"11": Decimal("750"), "12": Decimal("750")}


class TestRateDistribution:
    """Rate-based method prices effective gross area directly."""

    @pytest.fixture
    def distributor(self):
        return FeeDistributor()

    def test_rate_times_gross(self, distributor):
        result = distributor.distribute_by_rate([allocated_unit("11", 110)], Decimal("10"))
        assert result[0].current_maintenance_fee == Decimal("1100")

    def test_rate_scaled_by_type_factor(self, distributor):
        result = distributor.distribute_by_rate([allocated_unit("C1", 60, factor=2)], Decimal("10"))
        assert result[0].current_maintenance_fee == Decimal("1200")

    def test_children_rolled_into_parent_gross(self, distributor):
        units = [allocated_unit("11", 110), allocated_unit("12", 110, parent="11")]
        fees = fees_by_code(distributor.distribute_by_rate(units, Decimal("10")))

        assert fees["11"] == Decimal("2200")
        assert fees["12"] == Decimal("0")

    def test_parent_factor_applies_to_child_area(self, distributor):
        units = [allocated_unit("O1", 100, factor=1.5), allocated_unit("O2", 20, factor=3, parent="O1")]
        fees = fees_by_code(distributor.distribute_by_rate(units, Decimal("2")))
        assert fees["O1"] == Decimal("360.0")

    def test_zero_rate(self, distributor):
        result = distributor.distribute_by_rate([allocated_unit("11", 110)], Decimal("0"))
        assert result[0].current_maintenance_fee == Decimal("0")


class TestDriverDispatch:
    """The fee driver picks the distribution method."""

    @pytest.fixture
    def units(self):
        return [allocated_unit("11", 100), allocated_unit("12", 300, parent="11"), allocated_unit("21", 100)]

    def test_budget_driver(self, units):
        result = FeeDistributor().distribute_for(units, FeeDriver(method=BUDGET_BASED, amount=Decimal("1000")))
        assert fees_by_code(result) == {"11": Decimal("800"), "12": Decimal("0"), "21": Decimal("200")}

    def test_rate_driver(self, units):
        result = FeeDistributor().distribute_for(units, FeeDriver(method=RATE_BASED, amount=Decimal("3")))
        assert fees_by_code(result) == {"11": Decimal("1200"), "12": Decimal("0"), "21": Decimal("300")}
