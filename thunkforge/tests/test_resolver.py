# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Name-based resolution: category priority, accessors, scopes, overloads."""

from typing import Callable, Generic, TypeVar

import pytest

from thunkforge.compiler import UNBOUND
from thunkforge.errors import ArgumentNull
from thunkforge.members import MemberKind, SearchOptions
from thunkforge.resolver import MemberResolver, NotFoundReason
from thunkforge.shape import TargetShape

T = TypeVar("T")


class Widget:
	def __init__(self, size: int = 1) -> None:
		self._size = size

	def grow(self, by: int) -> int:
		self._size += by
		return self._size

	@staticmethod
	def unit() -> "Widget":
		return Widget()

	@property
	def area(self) -> int:
		return self._size * self._size


class Holder(Generic[T]):
	def peek(self) -> T:
		raise NotImplementedError


def shape(descriptor):
	return TargetShape.of(descriptor)


@pytest.fixture
def resolver(host, compiler):
	return MemberResolver(host, compiler)


@pytest.fixture
def table_resolver(table, compiler):
	return MemberResolver(table, compiler)


def test_procedure_wins_over_property_and_field(table, table_resolver):
	table.register_procedure(Widget, "size", lambda self: 1, result=int)
	table.register_property(Widget, "size", int, getter=lambda self: 2)
	table.register_field(Widget, "size", int)
	found = table_resolver.resolve(Widget, "size", shape(Callable[[Widget], int]))
	assert found
	assert found.target.kind is MemberKind.PROCEDURE


def test_property_then_field_when_procedures_are_excluded(table, table_resolver):
	table.register_procedure(Widget, "size", lambda self: 1, result=int)
	table.register_property(Widget, "size", int, getter=lambda self: 2)
	table.register_field(Widget, "size", int)
	getters = SearchOptions.GET_PROPERTY | SearchOptions.GET_FIELD
	found = table_resolver.resolve(Widget, "size", shape(Callable[[Widget], int]), getters)
	assert found.target.kind is MemberKind.PROPERTY_GETTER
	found = table_resolver.resolve(Widget, "size", shape(Callable[[Widget], int]), SearchOptions.GET_FIELD)
	assert found.target.kind is MemberKind.FIELD_GETTER


def test_static_candidates_come_before_instance_ones(table, table_resolver):
	table.register_procedure(Widget, "f", lambda self: 1, result=int)
	table.register_procedure(Widget, "f", lambda w: 2, params=[Widget], result=int, is_static=True)
	found = table_resolver.resolve(Widget, "f", shape(Callable[[Widget], int]))
	assert found.target.is_static


def test_binder_prefers_fewer_conversions(table, table_resolver):
	exact_int = table.register_procedure(Widget, "pick", lambda x: x, params=[int], result=int, is_static=True)
	exact_float = table.register_procedure(Widget, "pick", lambda x: x, params=[float], result=float, is_static=True)
	assert table_resolver.resolve(Widget, "pick", shape(Callable[[int], int])).target is exact_int
	assert table_resolver.resolve(Widget, "pick", shape(Callable[[float], float])).target is exact_float


def test_binder_tie_keeps_declaration_order(table, table_resolver):
	first = table.register_procedure(Widget, "pick", lambda x: x, params=[float], result=int, is_static=True)
	table.register_procedure(Widget, "pick", lambda x: x, params=[float], result=int, is_static=True)
	assert table_resolver.resolve(Widget, "pick", shape(Callable[[float], int])).target is first


def test_instance_procedure_with_receiver_in_shape(resolver):
	found = resolver.resolve(Widget, "grow", shape(Callable[[Widget, int], int]))
	assert found.target.name == "grow"
	assert found.bound is UNBOUND


def test_arity_decides_compatibility(resolver):
	miss = resolver.resolve(Widget, "grow", shape(Callable[[Widget], int]))
	assert not miss
	assert miss.reason is NotFoundReason.MEMBER_NOT_FOUND
	assert "needs 2 argument(s)" in miss.detail


def test_getter_and_setter_selection(resolver):
	getter = resolver.resolve(Widget, "area", shape(Callable[[Widget], int]))
	assert getter.target.kind is MemberKind.PROPERTY_GETTER
	miss = resolver.resolve(Widget, "area", shape(Callable[[Widget, int], None]))
	assert miss.reason is NotFoundReason.NO_SUCH_ACCESSOR


def test_unknown_name(resolver):
	miss = resolver.resolve(Widget, "missing", shape(Callable[[], int]))
	assert not miss
	assert miss.reason is NotFoundReason.MEMBER_NOT_FOUND
	assert miss.container == "Widget"


def test_constructor_name_ignores_member_mask(resolver):
	found = resolver.resolve(Widget, ".CTOR", shape(Callable[[int], Widget]), SearchOptions.GET_FIELD)
	assert found.target.kind is MemberKind.CONSTRUCTOR


def test_bound_none_searches_static_members_only(resolver):
	assert resolver.resolve(Widget, "unit", shape(Callable[[], Widget]), bound=None)
	assert not resolver.resolve(Widget, "grow", shape(Callable[[Widget, int], int]), bound=None)


def test_bound_value_searches_instance_members(resolver):
	widget = Widget(3)
	found = resolver.resolve(Widget, "grow", shape(Callable[[int], int]), bound=widget)
	assert found.bound is widget
	assert not resolver.resolve(Widget, "unit", shape(Callable[[], Widget]), bound=widget)


def test_open_generic_container(resolver):
	miss = resolver.resolve(Holder, "peek", shape(Callable[[Holder[int]], int]))
	assert miss.reason is NotFoundReason.OPEN_GENERIC
	assert resolver.resolve(Holder[int], "peek", shape(Callable[[Holder[int]], int]))


def test_null_inputs_raise(resolver):
	with pytest.raises(ArgumentNull):
		resolver.resolve(None, "grow", shape(Callable[[Widget, int], int]))
	with pytest.raises(ArgumentNull):
		resolver.resolve(Widget, None, shape(Callable[[Widget, int], int]))
