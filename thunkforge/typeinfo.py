#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Type model shared by the planner, the hosts and the compiler.

Types are plain Python annotations: classes, `typing.Any`, `Optional[...]` /
unions, parametrized aliases (`list[int]`, `Box[int]`) and `Ref[T]` for
by-reference slots. `normalize` folds the spellings that mean the same thing
(`None` vs `NoneType`, `int | None` vs `Optional[int]`) so plans can compare
types with `==` and memoize on them.
"""

from __future__ import annotations

import enum
import types
import typing
from abc import ABCMeta
from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, Generic, Tuple, TypeVar, Union

T = TypeVar("T")

NoneType = type(None)

# "No result" in a return slot. A value slot typed NoneType only ever holds None.
VOID = NoneType

# Numeric value types that materialize a zero instead of None.
_ZERO_DEFAULTS: Dict[type, Any] = {
	bool: False,
	int: 0,
	float: 0.0,
	complex: 0j,
	Decimal: Decimal(0),
	Fraction: Fraction(0),
}


@dataclass
class Ref(Generic[T]):
	"""
	A mutable single-value cell used for by-reference parameters.

	A member parameter annotated `Ref[int]` receives the cell itself; whatever
	the callee stores in `value` is visible to whoever holds the same cell.
	"""

	value: T


def normalize(tp: Any) -> Any:
	"""Return the canonical spelling of an annotation."""
	if tp is None:
		return NoneType
	if isinstance(tp, str):
		# Unresolvable forward reference; nothing better than Any is known.
		return Any
	if isinstance(tp, types.UnionType):
		return Union[tuple(normalize(a) for a in typing.get_args(tp))]
	origin = typing.get_origin(tp)
	if origin is Union:
		return Union[tuple(normalize(a) for a in typing.get_args(tp))]
	if origin is typing.ClassVar or origin is typing.Final or origin is typing.Annotated:
		args = typing.get_args(tp)
		return normalize(args[0]) if args else Any
	if tp is typing.ClassVar or tp is typing.Final:
		return Any
	return tp


def is_void(tp: Any) -> bool:
	return tp is NoneType


def is_top(tp: Any) -> bool:
	"""True for the types every value converts to without an operation."""
	return tp is object or tp is Any


def is_union(tp: Any) -> bool:
	return typing.get_origin(tp) is Union or isinstance(tp, types.UnionType)


def union_members(tp: Any) -> Tuple[Any, ...]:
	return tuple(typing.get_args(tp))


def is_optional(tp: Any) -> bool:
	return is_union(tp) and NoneType in union_members(tp)


def strip_optional(tp: Any) -> Any:
	"""Drop NoneType from a union; a single survivor is returned bare."""
	if not is_union(tp):
		return tp
	rest = tuple(m for m in union_members(tp) if m is not NoneType)
	if not rest:
		return NoneType
	if len(rest) == 1:
		return rest[0]
	return Union[rest]


def is_ref(tp: Any) -> bool:
	return tp is Ref or typing.get_origin(tp) is Ref


def ref_element(tp: Any) -> Any:
	args = typing.get_args(tp)
	return normalize(args[0]) if args else Any


def origin_of(tp: Any) -> Any:
	"""Return the runtime class behind an annotation (`list[int]` -> `list`)."""
	origin = typing.get_origin(tp)
	return origin if origin is not None else tp


def type_args(tp: Any) -> Tuple[Any, ...]:
	return tuple(typing.get_args(tp))


def is_class(tp: Any) -> bool:
	# Parametrized aliases pose as classes on some interpreters.
	return isinstance(tp, type) and typing.get_origin(tp) is None


def is_alias(tp: Any) -> bool:
	return typing.get_origin(tp) is not None and not is_union(tp)


def is_abstract_class(tp: Any) -> bool:
	return isinstance(tp, ABCMeta)


def safe_issubclass(sub: Any, sup: Any) -> bool:
	try:
		return is_class(sub) and is_class(sup) and issubclass(sub, sup)
	except TypeError:
		return False


def is_enum(tp: Any) -> bool:
	return safe_issubclass(tp, enum.Enum)


def default_value(tp: Any) -> Any:
	"""
	Value materialized when a "no result" member feeds a value-returning slot.

	Numeric value types get their zero; everything else (classes, optionals,
	Any) gets None.
	"""
	tp = normalize(tp)
	for cls, zero in _ZERO_DEFAULTS.items():
		if tp is cls:
			return zero
	return None


def free_typevars(tp: Any) -> Tuple[TypeVar, ...]:
	"""Collect TypeVars still unbound inside an annotation."""
	if isinstance(tp, TypeVar):
		return (tp,)
	params = getattr(tp, "__parameters__", None)
	if isinstance(params, tuple) and not is_class(tp):
		return tuple(p for p in params if isinstance(p, TypeVar))
	return ()


def substitute(tp: Any, mapping: Dict[TypeVar, Any]) -> Any:
	"""Replace TypeVars in `tp` using `mapping`; unknown TypeVars are kept."""
	if not mapping:
		return tp
	if isinstance(tp, TypeVar):
		return mapping.get(tp, tp)
	params = free_typevars(tp)
	if not params:
		return tp
	try:
		return normalize(tp[tuple(mapping.get(p, p) for p in params)])
	except TypeError:
		return tp


def split_container(container: Any) -> Tuple[Any, Dict[TypeVar, Any]]:
	"""
	Split a container into its runtime class and the TypeVar bindings it implies.

	`Box[int]` becomes `(Box, {T: int})`. Bindings inherited through
	parametrized bases (`class IntBox(Box[int])`) are included.
	"""
	mapping: Dict[TypeVar, Any] = {}
	cls = container
	origin = typing.get_origin(container)
	if origin is not None and isinstance(origin, type):
		cls = origin
		params = getattr(origin, "__parameters__", ())
		mapping.update(zip(params, typing.get_args(container)))
	if isinstance(cls, type):
		_collect_base_bindings(cls, mapping)
	return cls, mapping


def _collect_base_bindings(cls: type, mapping: Dict[TypeVar, Any]) -> None:
	for base in getattr(cls, "__orig_bases__", ()):
		origin = typing.get_origin(base)
		if origin is None or origin is Generic or not isinstance(origin, type):
			continue
		params = getattr(origin, "__parameters__", ())
		args = [substitute(a, mapping) for a in typing.get_args(base)]
		for param, arg in zip(params, args):
			mapping.setdefault(param, arg)
		_collect_base_bindings(origin, mapping)


def is_open_generic(container: Any) -> bool:
	"""True when a class (or alias) still has type parameters to bind."""
	if isinstance(container, type):
		return bool(getattr(container, "__parameters__", ()))
	return bool(free_typevars(container))


def close_open_generic(container: Any) -> Any:
	"""Bind every type parameter `container` still has to Any (`Box` -> `Box[Any]`)."""
	if isinstance(container, type):
		params = getattr(container, "__parameters__", ())
		if not params:
			return container
		try:
			return container[tuple(Any for _ in params)]
		except TypeError:
			return container
	return substitute(container, {tv: Any for tv in free_typevars(container)})


def type_name(tp: Any) -> str:
	"""Readable rendering used in messages and shape strings."""
	if tp is NoneType:
		return "None"
	if tp is Any:
		return "Any"
	if is_class(tp):
		return tp.__qualname__
	return repr(tp).replace("typing.", "")


__all__ = [
	"Ref",
	"VOID",
	"NoneType",
	"normalize",
	"is_void",
	"is_top",
	"is_union",
	"union_members",
	"is_optional",
	"strip_optional",
	"is_ref",
	"ref_element",
	"origin_of",
	"type_args",
	"is_class",
	"is_alias",
	"is_abstract_class",
	"safe_issubclass",
	"is_enum",
	"default_value",
	"free_typevars",
	"substitute",
	"split_container",
	"is_open_generic",
	"close_open_generic",
	"type_name",
]
