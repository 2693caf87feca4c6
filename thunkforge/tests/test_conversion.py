# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Conversion planner rules."""

import enum
from collections.abc import Sequence
from decimal import Decimal
from fractions import Fraction
from typing import Any, Optional

import pytest

from thunkforge.conversion import ConversionKind, ConversionPlanner
from thunkforge.errors import CastError
from thunkforge.typeinfo import VOID, Ref


class Animal:
	pass


class Dog(Animal):
	pass


class Color(enum.Enum):
	RED = 1
	GREEN = 2


def test_identity_for_equal_types(planner):
	plan = planner.plan(int, int)
	assert plan.kind is ConversionKind.IDENTITY
	assert plan.operation is None


def test_upcast_is_implicit_and_reuses_the_value(planner):
	plan = planner.plan(Dog, Animal)
	assert plan.kind is ConversionKind.IMPLICIT_WIDEN
	dog = Dog()
	assert plan.apply(dog) is dog


def test_numeric_tower_widens_without_operation(planner):
	assert planner.plan(int, float).kind is ConversionKind.IMPLICIT_WIDEN
	assert planner.plan(int, complex).kind is ConversionKind.IMPLICIT_WIDEN
	assert planner.plan(float, complex).kind is ConversionKind.IMPLICIT_WIDEN
	assert planner.plan(bool, int).kind is ConversionKind.IMPLICIT_WIDEN


def test_float_to_int_truncates(planner):
	plan = planner.plan(float, int)
	assert plan.kind is ConversionKind.EXPLICIT_CONVERT
	assert plan.apply(3.9) == 3
	assert plan.apply(-3.9) == -3


def test_float_to_int_overflow_is_a_cast_error(planner):
	with pytest.raises(CastError):
		planner.plan(float, int).apply(float("inf"))


def test_decimal_and_fraction_conversions(planner):
	assert planner.plan(int, Decimal).apply(3) == Decimal(3)
	assert planner.plan(Fraction, float).apply(Fraction(1, 4)) == 0.25
	assert planner.plan(Fraction, Decimal).apply(Fraction(1, 2)) == Decimal("0.5")


@pytest.mark.parametrize(
	"src, dst",
	[
		(str, int),
		(complex, float),
		(Animal, Color),
		(int, str),
	],
)
def test_unrelated_types_are_impossible(planner, src, dst):
	plan = planner.plan(src, dst)
	assert plan.kind is ConversionKind.IMPOSSIBLE
	assert not plan.possible


def test_downcast_is_checked_at_call_time(planner):
	plan = planner.plan(Animal, Dog)
	assert plan.kind is ConversionKind.EXPLICIT_CONVERT
	dog = Dog()
	assert plan.apply(dog) is dog
	with pytest.raises(CastError) as info:
		plan.apply(Animal())
	assert info.value.target_type == "Dog"


def test_int_to_bool_is_a_checked_downcast(planner):
	plan = planner.plan(int, bool)
	assert plan.kind is ConversionKind.EXPLICIT_CONVERT
	assert plan.apply(True) is True
	with pytest.raises(CastError):
		plan.apply(1)


def test_unboxing_from_object_and_any(planner):
	plan = planner.plan(object, Dog)
	assert plan.kind is ConversionKind.EXPLICIT_CONVERT
	with pytest.raises(CastError):
		plan.apply("not a dog")
	# The runtime type picks the inner rule: int widens into float.
	assert planner.plan(Any, float).apply(2) == 2


def test_everything_widens_into_object(planner):
	assert planner.plan(Dog, object).kind is ConversionKind.IMPLICIT_WIDEN
	assert planner.plan(int, Any).kind is ConversionKind.IMPLICIT_WIDEN


def test_enum_from_int(planner):
	plan = planner.plan(int, Color)
	assert plan.kind is ConversionKind.EXPLICIT_CONVERT
	assert plan.apply(1) is Color.RED
	with pytest.raises(CastError):
		plan.apply(7)


def test_optional_unwrapping(planner):
	plan = planner.plan(Optional[int], int)
	assert plan.kind is ConversionKind.EXPLICIT_CONVERT
	assert plan.apply(5) == 5
	with pytest.raises(CastError):
		plan.apply(None)


def test_optional_wrapping(planner):
	assert planner.plan(int, Optional[float]).kind is ConversionKind.IMPLICIT_WIDEN
	assert planner.plan(type(None), Optional[int]).kind is ConversionKind.IMPLICIT_WIDEN
	assert planner.plan(type(None), int).kind is ConversionKind.IMPOSSIBLE
	assert planner.plan(Optional[int], Optional[float]).kind is ConversionKind.IMPLICIT_WIDEN


def test_optional_into_optional_keeps_none(planner):
	plan = planner.plan(Optional[float], Optional[int])
	assert plan.kind is ConversionKind.EXPLICIT_CONVERT
	assert plan.apply(None) is None
	assert plan.apply(2.5) == 2


def test_pipe_union_spelling_is_normalized(planner):
	assert planner.plan(int | None, Optional[int]).kind is ConversionKind.IDENTITY


def test_generic_aliases(planner):
	assert planner.plan(list[int], list).kind is ConversionKind.IMPLICIT_WIDEN
	assert planner.plan(list[int], Sequence[int]).kind is ConversionKind.IMPLICIT_WIDEN
	assert planner.plan(list[int], list[str]).kind is ConversionKind.IMPOSSIBLE
	checked = planner.plan(list, list[int])
	assert checked.kind is ConversionKind.EXPLICIT_CONVERT
	with pytest.raises(CastError):
		checked.apply((1, 2))


def test_by_ref_plans_on_element_types(planner):
	assert planner.plan_by_ref(Ref[int], Ref[int]).kind is ConversionKind.IDENTITY
	assert planner.plan_by_ref(Ref[bool], Ref[int]).kind is ConversionKind.IMPLICIT_WIDEN
	assert planner.plan_by_ref(int, Ref[float]).kind is ConversionKind.IMPLICIT_WIDEN


def test_result_into_void_is_discarded(planner):
	plan = planner.plan_result(int, VOID)
	assert plan.possible
	assert plan.discard
	assert plan.apply(5) is None
	assert planner.plan_result(VOID, VOID).kind is ConversionKind.IDENTITY


@pytest.mark.parametrize(
	"dst, expected",
	[
		(int, 0),
		(float, 0.0),
		(bool, False),
		(Decimal, Decimal(0)),
		(str, None),
		(Optional[int], None),
	],
)
def test_void_result_materializes_default(planner, dst, expected):
	plan = planner.plan_result(VOID, dst)
	assert plan.kind is ConversionKind.EXPLICIT_CONVERT
	assert plan.apply(None) == expected


def test_plans_are_memoized(planner):
	assert planner.plan(int, float) is planner.plan(int, float)
	assert planner.plan_result(int, VOID) is planner.plan_result(int, VOID)


def test_unmemoized_planner_keeps_no_tables():
	planner = ConversionPlanner(memoize=False)
	assert planner.plan(int, float).kind is ConversionKind.IMPLICIT_WIDEN
	assert planner.plan(int, float) is not planner.plan(int, float)
	assert not planner._plans and not planner._results


def test_unboxing_does_not_touch_shared_tables_when_called(planner):
	unbox = planner.plan(Any, Optional[float])
	before = dict(planner._plans)
	assert unbox.apply(2) == 2
	assert unbox.apply(2.5) == 2.5
	assert unbox.apply(None) is None
	with pytest.raises(CastError):
		unbox.apply("2")
	assert planner._plans == before
