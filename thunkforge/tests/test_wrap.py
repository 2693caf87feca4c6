# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Adapting existing thunks and annotated callables to other shapes."""

from typing import Callable

import pytest

from thunkforge.errors import ArgumentNull, InvalidShapeDescriptor
from thunkforge.shape import TargetShape
from thunkforge.typeinfo import Ref


def square(x: int) -> int:
	return x * x


def half(x: float) -> float:
	return x / 2


def bump(cell: Ref[int]) -> None:
	cell.value += 1


@pytest.fixture
def square_thunk(builder):
	return builder.create_thunk(Callable[[int], int], square)


def test_identical_shape_returns_the_same_thunk(builder, square_thunk):
	assert builder.wrap(Callable[[int], int], square_thunk) is square_thunk


def test_wrap_converts_each_slot_and_the_result(builder, square_thunk):
	wrapped = builder.wrap(Callable[[bool], float], square_thunk)
	assert wrapped.shape == TargetShape((bool,), float)
	assert wrapped(True) == 1
	assert wrapped.source is square_thunk


def test_wrap_rejects_other_arities_and_impossible_slots(builder, square_thunk):
	assert builder.wrap(Callable[[int, int], int], square_thunk) is None
	assert builder.wrap(Callable[[str], int], square_thunk) is None
	assert builder.wrap(Callable[[int], str], square_thunk) is None


def test_wrap_into_void_discards(builder, square_thunk):
	assert builder.wrap(Callable[[int], None], square_thunk)(3) is None


def test_wrap_annotated_callable(builder):
	wrapped = builder.wrap(Callable[[int], float], half)
	assert wrapped(3) == 1.5


def test_wrap_keeps_by_ref_rules(builder):
	same = builder.wrap(Callable[[Ref[int]], None], bump)
	cell = Ref(1)
	same(cell)
	assert cell.value == 2
	converted = builder.wrap(Callable[[Ref[bool]], None], bump)
	flag = Ref(False)
	converted(flag)
	assert flag.value is False


def test_wrap_validates_inputs(builder, square_thunk):
	with pytest.raises(ArgumentNull):
		builder.wrap(Callable[[int], int], None)
	with pytest.raises(InvalidShapeDescriptor):
		builder.wrap(Callable[..., int], square_thunk)

	def varargs(*xs: int) -> int:
		return len(xs)

	with pytest.raises(InvalidShapeDescriptor):
		builder.wrap(Callable[[int], int], varargs)
