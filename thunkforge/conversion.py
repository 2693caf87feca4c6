#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Conversion planning for a single value slot.

`ConversionPlanner.plan(src, dst)` decides, once at build time, how a value
declared as `src` reaches a slot declared as `dst`:

- IDENTITY: the types are the same.
- IMPLICIT_WIDEN: the value is reused untouched (upcasts, ABC widening,
  numeric tower `int -> float -> complex`, joining an optional/union).
- EXPLICIT_CONVERT: an operation is recorded and applied on every call
  (narrowing numerics, Decimal/Fraction, enum-from-int, checked downcasts,
  unboxing from object/Any, optional unwrapping).
- IMPOSSIBLE: no path; callers treat the candidate as non-matching.

Result slots go through `plan_result`, which adds the "no result" rules:
a VOID destination discards anything, a VOID source feeding a value slot
materializes the destination's default value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum, auto
from fractions import Fraction
from typing import Any, Callable, Dict, List, Optional, Tuple

from thunkforge.errors import CastError
from thunkforge.typeinfo import (
	NoneType,
	default_value,
	is_abstract_class,
	is_alias,
	is_class,
	is_enum,
	is_ref,
	is_top,
	is_union,
	is_void,
	normalize,
	origin_of,
	ref_element,
	safe_issubclass,
	type_args,
	type_name,
	union_members,
)

logger = logging.getLogger(__name__)

Operation = Callable[[Any], Any]


class ConversionKind(Enum):
	IDENTITY = auto()
	IMPLICIT_WIDEN = auto()
	EXPLICIT_CONVERT = auto()
	IMPOSSIBLE = auto()


@dataclass(frozen=True)
class ConversionPlan:
	"""Decision for one value slot; `operation` is set only for EXPLICIT_CONVERT."""

	kind: ConversionKind
	source: Any
	dest: Any
	operation: Optional[Operation] = None
	# Result slots only: the produced value is dropped.
	discard: bool = False

	@property
	def possible(self) -> bool:
		return self.kind is not ConversionKind.IMPOSSIBLE

	@property
	def is_identity(self) -> bool:
		return self.kind is ConversionKind.IDENTITY

	@property
	def needs_operation(self) -> bool:
		return self.operation is not None

	def apply(self, value: Any) -> Any:
		if self.discard:
			return None
		if self.operation is None:
			return value
		return self.operation(value)


# Widening inside the numeric tower needs no runtime operation.
_NUMERIC_WIDEN: Tuple[Tuple[type, type], ...] = (
	(int, float),
	(int, complex),
	(float, complex),
)


def _fraction_to_decimal(value: Fraction) -> Decimal:
	return Decimal(value.numerator) / Decimal(value.denominator)


# (source, dest) -> operation for representational numeric conversions.
_NUMERIC_EXPLICIT: Dict[Tuple[type, type], Operation] = {
	(float, int): int,
	(int, Decimal): Decimal,
	(float, Decimal): Decimal,
	(Decimal, int): int,
	(Decimal, float): float,
	(int, Fraction): Fraction,
	(float, Fraction): Fraction,
	(Decimal, Fraction): Fraction,
	(Fraction, int): int,
	(Fraction, float): float,
	(Fraction, Decimal): _fraction_to_decimal,
}


def _cast_error(value: Any, dest: Any, message: str | None = None) -> CastError:
	return CastError(
		message or f"cannot convert {type_name(type(value))} value to {type_name(dest)}",
		value_type=type_name(type(value)),
		target_type=type_name(dest),
	)


def _checked_cast(dest: Any) -> Operation:
	"""Downcast: the value passes through if it is an instance of `dest`."""
	runtime_cls = origin_of(dest)

	def cast(value: Any) -> Any:
		try:
			ok = isinstance(value, runtime_cls)
		except TypeError as exc:
			raise _cast_error(value, dest) from exc
		if not ok:
			raise _cast_error(value, dest)
		return value

	return cast


def _guarded(op: Operation, dest: Any) -> Operation:
	"""Report arithmetic failures of a numeric conversion as cast errors."""

	def convert(value: Any) -> Any:
		try:
			return op(value)
		except (ArithmeticError, ValueError) as exc:
			raise _cast_error(value, dest, f"{value!r} does not fit {type_name(dest)}") from exc

	return convert


class ConversionPlanner:
	"""
	Plan conversions between annotated types.

	With `memoize` (the default) plans are kept per `(src, dst)` pair for the
	planner's lifetime, which also keeps those types alive. The planner is
	safe to share between threads (a racing miss only recomputes the same
	plan).
	"""

	def __init__(self, memoize: bool = True) -> None:
		self.memoize = memoize
		self._plans: Dict[Tuple[Any, Any], ConversionPlan] = {}
		self._results: Dict[Tuple[Any, Any], ConversionPlan] = {}

	def plan(self, src: Any, dst: Any) -> ConversionPlan:
		return self._memo(self._plans, self._plan, normalize(src), normalize(dst))

	def plan_result(self, src: Any, dst: Any) -> ConversionPlan:
		"""Plan a member's result into a shape's return slot."""
		return self._memo(self._results, self._plan_result, normalize(src), normalize(dst))

	def _memo(
		self,
		table: Dict[Tuple[Any, Any], ConversionPlan],
		compute: Callable[[Any, Any], ConversionPlan],
		src: Any,
		dst: Any,
	) -> ConversionPlan:
		if not self.memoize:
			return compute(src, dst)
		key = (src, dst)
		try:
			cached = table.get(key)
		except TypeError:
			return compute(src, dst)
		if cached is None:
			cached = compute(src, dst)
			table[key] = cached
		return cached

	def plan_by_ref(self, src: Any, dst: Any) -> ConversionPlan:
		"""Plan a by-reference slot on the referenced element types."""
		return self.plan(ref_element(src) if is_ref(src) else src, ref_element(dst) if is_ref(dst) else dst)

	def plan_value(self, value: Any, dst: Any) -> ConversionPlan:
		"""Plan a concrete value (e.g. a bound receiver) into `dst`."""
		return self.plan(type(value), dst)

	def _plan_result(self, src: Any, dst: Any) -> ConversionPlan:
		if is_void(dst):
			if is_void(src):
				return ConversionPlan(ConversionKind.IDENTITY, src, dst)
			return ConversionPlan(ConversionKind.IMPLICIT_WIDEN, src, dst, discard=True)
		if is_void(src):
			zero = default_value(dst)
			return ConversionPlan(ConversionKind.EXPLICIT_CONVERT, src, dst, operation=lambda _value: zero)
		return self.plan(src, dst)

	# -- planning ------------------------------------------------------------

	def _identity(self, src: Any, dst: Any) -> ConversionPlan:
		return ConversionPlan(ConversionKind.IDENTITY, src, dst)

	def _widen(self, src: Any, dst: Any) -> ConversionPlan:
		return ConversionPlan(ConversionKind.IMPLICIT_WIDEN, src, dst)

	def _explicit(self, src: Any, dst: Any, op: Operation) -> ConversionPlan:
		return ConversionPlan(ConversionKind.EXPLICIT_CONVERT, src, dst, operation=op)

	def _impossible(self, src: Any, dst: Any) -> ConversionPlan:
		return ConversionPlan(ConversionKind.IMPOSSIBLE, src, dst)

	def _plan(self, src: Any, dst: Any) -> ConversionPlan:
		if src == dst:
			return self._identity(src, dst)
		if is_top(dst):
			return self._widen(src, dst)
		if src is NoneType:
			if is_union(dst) and NoneType in union_members(dst):
				return self._widen(src, dst)
			return self._impossible(src, dst)
		if dst is NoneType:
			return self._impossible(src, dst)
		if is_top(src):
			return self._explicit(src, dst, self._dynamic_cast(dst))
		if is_union(src):
			return self._plan_from_union(src, dst)
		if is_union(dst):
			return self._plan_into_union(src, dst)
		if is_alias(src) or is_alias(dst):
			return self._plan_alias(src, dst)
		if is_class(src) and is_class(dst):
			return self._plan_classes(src, dst)
		logger.debug("no conversion rule for %s -> %s", type_name(src), type_name(dst))
		return self._impossible(src, dst)

	def _plan_classes(self, src: type, dst: type) -> ConversionPlan:
		if safe_issubclass(src, dst):
			return self._widen(src, dst)
		for narrow, wide in _NUMERIC_WIDEN:
			if safe_issubclass(src, narrow) and dst is wide:
				return self._widen(src, dst)
		for (from_cls, to_cls), op in _NUMERIC_EXPLICIT.items():
			if to_cls is dst and safe_issubclass(src, from_cls):
				return self._explicit(src, dst, _guarded(op, dst))
		if is_enum(dst) and safe_issubclass(src, int) and src is not bool:
			return self._explicit(src, dst, self._enum_from_value(dst))
		if safe_issubclass(dst, src):
			return self._explicit(src, dst, _checked_cast(dst))
		if is_abstract_class(src) or is_abstract_class(dst):
			# Capability interfaces: an unrelated class may still implement (or be registered for) them.
			return self._explicit(src, dst, _checked_cast(dst))
		return self._impossible(src, dst)

	def _plan_alias(self, src: Any, dst: Any) -> ConversionPlan:
		src_origin = origin_of(src)
		dst_origin = origin_of(dst)
		if not (is_class(src_origin) and is_class(dst_origin)):
			return self._impossible(src, dst)
		if not is_alias(dst):
			# list[int] -> list / Sequence: the parameters are simply forgotten.
			if safe_issubclass(src_origin, dst_origin):
				return self._widen(src, dst)
			if safe_issubclass(dst_origin, src_origin) or is_abstract_class(src_origin):
				return self._explicit(src, dst, _checked_cast(dst))
			return self._impossible(src, dst)
		if not is_alias(src):
			# Parameters cannot be checked without walking the value; only the origin is cast.
			if safe_issubclass(src_origin, dst_origin) or safe_issubclass(dst_origin, src_origin):
				return self._explicit(src, dst, _checked_cast(dst))
			return self._impossible(src, dst)
		if type_args(src) != type_args(dst):
			return self._impossible(src, dst)
		if safe_issubclass(src_origin, dst_origin):
			return self._widen(src, dst)
		if safe_issubclass(dst_origin, src_origin):
			return self._explicit(src, dst, _checked_cast(dst))
		return self._impossible(src, dst)

	def _plan_into_union(self, src: Any, dst: Any) -> ConversionPlan:
		explicit: Optional[ConversionPlan] = None
		for member in union_members(dst):
			sub = self.plan(src, member)
			if sub.kind in (ConversionKind.IDENTITY, ConversionKind.IMPLICIT_WIDEN):
				return self._widen(src, dst)
			if explicit is None and sub.kind is ConversionKind.EXPLICIT_CONVERT:
				explicit = sub
		if explicit is not None:
			return self._explicit(src, dst, explicit.operation)
		return self._impossible(src, dst)

	def _plan_from_union(self, src: Any, dst: Any) -> ConversionPlan:
		branches: List[Tuple[Any, ConversionPlan]] = [(m, self.plan(m, dst)) for m in union_members(src)]
		if all(p.kind in (ConversionKind.IDENTITY, ConversionKind.IMPLICIT_WIDEN) for _, p in branches):
			return self._widen(src, dst)
		if not any(p.possible for _, p in branches):
			return self._impossible(src, dst)
		return self._explicit(src, dst, self._branch_dispatch(branches, dst))

	def _branch_dispatch(self, branches: List[Tuple[Any, ConversionPlan]], dst: Any) -> Operation:
		"""Pick the union branch by the runtime value, then apply its plan."""

		def dispatch(value: Any) -> Any:
			for member, plan in branches:
				if member is NoneType:
					if value is not None:
						continue
					if not plan.possible:
						raise _cast_error(value, dst, f"optional value is None; {type_name(dst)} required")
					return plan.apply(value)
				try:
					hit = isinstance(value, origin_of(member))
				except TypeError:
					hit = False
				if hit:
					if not plan.possible:
						raise _cast_error(value, dst)
					return plan.apply(value)
			raise _cast_error(value, dst)

		return dispatch

	def _dynamic_cast(self, dst: Any) -> Operation:
		"""
		Unboxing from object/Any: plan from the value's runtime type.

		The runtime type is always a concrete class, so the inner plan never
		comes back here. Plans per runtime class live with the operation, not
		in the planner's shared tables.
		"""
		planner = ConversionPlanner(memoize=False)
		by_runtime: Dict[type, ConversionPlan] = {}

		def cast(value: Any) -> Any:
			runtime = type(value)
			if runtime is object:
				raise _cast_error(value, dst)
			plan = by_runtime.get(runtime)
			if plan is None:
				plan = by_runtime[runtime] = planner._plan(runtime, dst)
			if not plan.possible:
				raise _cast_error(value, dst)
			return plan.apply(value)

		return cast

	def _enum_from_value(self, dst: type) -> Operation:
		def convert(value: Any) -> Any:
			try:
				return dst(value)
			except ValueError as exc:
				raise _cast_error(value, dst, f"{value!r} is not a valid {type_name(dst)}") from exc

		return convert


__all__ = ["ConversionKind", "ConversionPlan", "ConversionPlanner", "Operation"]
