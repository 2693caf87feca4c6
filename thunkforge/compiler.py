#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Thunk synthesis: turn (shape, member, optional bound value) into a closure.

Compilation happens in two steps:

1. `plan_signature` lines the shape's parameter slots up with the member's
   inputs (receiver, declared parameters, setter value) and asks the planner
   for one ConversionPlan per slot plus the result plan. It fails softly,
   returning a falsy `Mismatch` that carries the reason.
2. `compile` emits a `Thunk` whose closure checks the argument count,
   marshals every slot with its precomputed plan, dispatches on the member
   kind and converts the result.

By-reference slots (`Ref[T]`) follow one rule: an identity slot hands the
caller's cell to the member, so member writes are visible afterwards; any
conversion goes through a private temporary cell and is not written back.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from thunkforge.conversion import ConversionPlan, ConversionPlanner
from thunkforge.errors import (
	AccessDenied,
	ArgumentNull,
	ArityMismatch,
	CastError,
	NullReceiver,
)
from thunkforge.members import CallableTarget, MemberKind, ParamKind, Parameter
from thunkforge.shape import TargetShape
from thunkforge.typeinfo import NoneType, Ref, is_ref, origin_of, ref_element, type_name

logger = logging.getLogger(__name__)


class _Unbound:
	"""Marker for "no bound value"; distinct from binding None."""

	_instance: Optional["_Unbound"] = None

	def __new__(cls) -> "_Unbound":
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __repr__(self) -> str:
		return "UNBOUND"

	def __bool__(self) -> bool:
		return False


UNBOUND: Any = _Unbound()

# Slot source index of the value captured at build time.
BOUND_SOURCE = -1


class SlotMode(Enum):
	VALUE = auto()
	# Ref -> Ref with an identity plan: the caller's cell is handed over.
	PASS_THROUGH = auto()
	# Ref[U] -> Ref[T] with a conversion: fresh cell, no write-back.
	COPY_FROM_REF = auto()
	# Plain value -> Ref[T]: fresh cell around the converted value.
	TEMP = auto()
	# Ref[U] -> plain T: the cell's current value is read.
	DEREF = auto()


@dataclass(frozen=True)
class ArgSlot:
	"""How one member input is produced from the call arguments."""

	source: int
	plan: ConversionPlan
	mode: SlotMode = SlotMode.VALUE

	@property
	def is_trivial(self) -> bool:
		return self.mode is SlotMode.VALUE and not self.plan.needs_operation

	def marshal(self, value: Any) -> Any:
		mode = self.mode
		if mode is SlotMode.VALUE:
			return self.plan.apply(value)
		if mode is SlotMode.TEMP:
			return Ref(self.plan.apply(value))
		if not isinstance(value, Ref):
			raise CastError(
				f"expected a Ref cell, got {type_name(type(value))}",
				value_type=type_name(type(value)),
				target_type=type_name(Ref),
			)
		if mode is SlotMode.PASS_THROUGH:
			return value
		if mode is SlotMode.COPY_FROM_REF:
			return Ref(self.plan.apply(value.value))
		return self.plan.apply(value.value)


@dataclass(frozen=True)
class Mismatch:
	"""Why a shape cannot be compiled against a member. Always falsy."""

	reason: str

	def __bool__(self) -> bool:
		return False


@dataclass(frozen=True)
class SignaturePlan:
	"""Every slot decision for one (shape, member, bound) triple."""

	shape: TargetShape
	target: CallableTarget
	slots: Tuple[ArgSlot, ...]
	result: ConversionPlan
	bound: Any = UNBOUND
	null_receiver: bool = False

	@property
	def plans(self) -> Tuple[ConversionPlan, ...]:
		return (*(s.plan for s in self.slots), self.result)


def _slot(planner: ConversionPlanner, source: int, given: Any, declared: Any) -> Union[ArgSlot, Mismatch]:
	given_ref = is_ref(given)
	declared_ref = is_ref(declared)
	plan = planner.plan_by_ref(given, declared) if (given_ref or declared_ref) else planner.plan(given, declared)
	if not plan.possible:
		return Mismatch(f"slot {source}: cannot convert {type_name(given)} to {type_name(declared)}")
	if given_ref and declared_ref:
		mode = SlotMode.PASS_THROUGH if plan.is_identity else SlotMode.COPY_FROM_REF
	elif declared_ref:
		mode = SlotMode.TEMP
	elif given_ref:
		mode = SlotMode.DEREF
	else:
		mode = SlotMode.VALUE
	return ArgSlot(source, plan, mode)


def _receiver_type(target: CallableTarget) -> Any:
	return target.declaring_type if target.declaring_type is not None else Any


def _member_inputs(target: CallableTarget) -> List[Any]:
	"""Declared types of everything the member consumes, in call order."""
	inputs: List[Any] = []
	if target.takes_receiver:
		inputs.append(_receiver_type(target))
	inputs.extend(p.type for p in target.params)
	if target.kind.is_setter:
		inputs.append(target.value_type)
	return inputs


def _spread(params: Sequence[Parameter], values: Sequence[Any]) -> Tuple[List[Any], Dict[str, Any]]:
	positional: List[Any] = []
	keywords: Dict[str, Any] = {}
	for param, value in zip(params, values):
		if param.kind is ParamKind.KEYWORD:
			keywords[param.name] = value
		elif param.kind is ParamKind.VAR_POSITIONAL:
			positional.extend(value)
		else:
			positional.append(value)
	return positional, keywords


def _denied(target: CallableTarget, exc: Exception) -> AccessDenied:
	return AccessDenied(
		f"cannot assign {target.name}: {exc}",
		member=target.name,
		container=type_name(target.declaring_type) if target.declaring_type is not None else None,
	)


def _member_call(target: CallableTarget) -> Callable[[Any, Sequence[Any]], Any]:
	"""
	Return `call(receiver, values)` invoking the member.

	`values` are the marshalled inputs after the receiver; `receiver` is
	ignored for members that take none.
	"""
	kind = target.kind
	impl = target.impl
	params = target.params
	has_receiver = target.takes_receiver

	if kind is MemberKind.PROCEDURE or kind is MemberKind.CONSTRUCTOR:
		simple = all(p.kind is ParamKind.POSITIONAL for p in params)
		if has_receiver:
			if simple:
				return lambda receiver, values: impl(receiver, *values)

			def call(receiver: Any, values: Sequence[Any]) -> Any:
				positional, keywords = _spread(params, values)
				return impl(receiver, *positional, **keywords)

			return call
		if simple:
			return lambda _receiver, values: impl(*values)

		def call_static(_receiver: Any, values: Sequence[Any]) -> Any:
			positional, keywords = _spread(params, values)
			return impl(*positional, **keywords)

		return call_static

	if kind is MemberKind.PROPERTY_GETTER:
		if has_receiver:
			return lambda receiver, _values: impl(receiver)
		return lambda _receiver, _values: impl()

	if kind is MemberKind.FIELD_GETTER:
		if has_receiver:
			return lambda receiver, _values: getattr(receiver, impl)
		owner = origin_of(target.declaring_type)
		return lambda _receiver, _values: getattr(owner, impl)

	if kind is MemberKind.PROPERTY_SETTER:
		def assign(receiver: Any, value: Any) -> None:
			if has_receiver:
				impl(receiver, value)
			else:
				impl(value)
	elif kind is MemberKind.FIELD_SETTER:
		owner = origin_of(target.declaring_type)

		def assign(receiver: Any, value: Any) -> None:
			setattr(receiver if has_receiver else owner, impl, value)
	else:
		raise ValueError(f"unknown member kind {kind}")

	def set_value(receiver: Any, values: Sequence[Any]) -> None:
		try:
			assign(receiver, values[-1])
		except dataclasses.FrozenInstanceError as exc:
			raise _denied(target, exc) from exc

	return set_value


@dataclass(frozen=True, eq=False)
class Thunk:
	"""
	A compiled adapter matching `shape`.

	Immutable; safe to call from several threads. `target` is the member the
	thunk invokes (None for wrapped callables, see `source`), `bound` the value
	closed over at build time (UNBOUND if none).
	"""

	shape: TargetShape
	invoke: Callable[[Tuple[Any, ...]], Any] = field(repr=False)
	target: Optional[CallableTarget] = None
	source: Any = field(default=None, repr=False)
	bound: Any = field(default=UNBOUND, repr=False)

	@property
	def arity(self) -> int:
		return self.shape.arity

	def __call__(self, *args: Any) -> Any:
		if len(args) != self.shape.arity:
			raise ArityMismatch(
				f"thunk {self.shape} takes {self.shape.arity} argument(s), got {len(args)}",
				member=self.target.name if self.target is not None else None,
				shape=str(self.shape),
				expected=self.shape.arity,
				got=len(args),
			)
		return self.invoke(args)


class ThunkCompiler:
	"""Build thunks, generic adapters and reflective invokers from members."""

	def __init__(self, planner: Optional[ConversionPlanner] = None) -> None:
		self.planner = planner or ConversionPlanner()

	# -- planning ------------------------------------------------------------

	def plan_signature(
		self,
		shape: TargetShape,
		target: CallableTarget,
		bound: Any = UNBOUND,
	) -> Union[SignaturePlan, Mismatch]:
		"""Line the shape up against the member; a falsy Mismatch explains a failure."""
		planner = self.planner
		inputs = _member_inputs(target)
		is_bound = bound is not UNBOUND
		expected = len(inputs) - (1 if is_bound else 0)
		if is_bound and not inputs:
			return Mismatch(f"{target.describe()} has nothing to bind a value to")
		if shape.arity != expected:
			return Mismatch(f"{target.describe()} needs {expected} argument(s), shape has {shape.arity}")

		slots: List[ArgSlot] = []
		captured = UNBOUND
		null_receiver = False
		first = 0
		if is_bound:
			first = 1
			declared = inputs[0]
			if bound is None and target.takes_receiver:
				null_receiver = True
				slots.append(ArgSlot(BOUND_SOURCE, planner.plan(NoneType, Any)))
			else:
				element = ref_element(declared) if is_ref(declared) else declared
				plan = planner.plan_value(bound, element)
				if not plan.possible:
					return Mismatch(f"bound {type_name(type(bound))} does not convert to {type_name(declared)}")
				try:
					captured = plan.apply(bound)
				except CastError as exc:
					return Mismatch(f"bound value rejected: {exc.message}")
				# The captured value is already converted; a by-ref input gets a fresh cell per call.
				identity = planner.plan(Any, Any)
				slots.append(ArgSlot(BOUND_SOURCE, identity, SlotMode.TEMP if is_ref(declared) else SlotMode.VALUE))

		for index, declared in enumerate(inputs[first:]):
			slot = _slot(planner, index, shape.params[index], declared)
			if not slot:
				return slot
			slots.append(slot)

		result_src = target.result_type
		result = planner.plan_result(result_src, shape.returns)
		if not result.possible:
			return Mismatch(f"result {type_name(result_src)} does not convert to {type_name(shape.returns)}")
		return SignaturePlan(
			shape=shape,
			target=target,
			slots=tuple(slots),
			result=result,
			bound=captured if not null_receiver else None,
			null_receiver=null_receiver,
		)

	# -- emission ------------------------------------------------------------

	def compile(self, shape: TargetShape, target: CallableTarget, bound: Any = UNBOUND) -> Optional[Thunk]:
		"""Compile a thunk, or return None when the shape does not fit the member."""
		if shape is None:
			raise ArgumentNull("target shape is None", argument="shape")
		if target is None:
			raise ArgumentNull("member is None", argument="member")
		if target.is_generic:
			logger.debug("not compiling open generic member %s", target.describe())
			return None
		plan = self.plan_signature(shape, target, bound)
		if not plan:
			logger.debug("compile %s against %s failed: %s", target.describe(), shape, plan.reason)
			return None
		return self.emit(plan)

	def emit(self, plan: SignaturePlan) -> Thunk:
		target = plan.target
		if plan.null_receiver:
			return Thunk(shape=plan.shape, invoke=_null_receiver(target), target=target, bound=None)
		invoke = self._fast_path(plan) or self._general_path(plan)
		logger.debug("compiled %s as %s", target.describe(), plan.shape)
		return Thunk(shape=plan.shape, invoke=invoke, target=target, bound=plan.bound)

	def _fast_path(self, plan: SignaturePlan) -> Optional[Callable[[Tuple[Any, ...]], Any]]:
		"""Unbound positional call where no slot or result needs any work."""
		target = plan.target
		if plan.bound is not UNBOUND or target.kind not in (MemberKind.PROCEDURE, MemberKind.CONSTRUCTOR):
			return None
		if not all(s.is_trivial for s in plan.slots):
			return None
		if plan.result.needs_operation or plan.result.discard:
			return None
		if not all(p.kind is ParamKind.POSITIONAL for p in target.params):
			return None
		impl = target.impl
		if target.takes_receiver:
			def invoke_instance(args: Tuple[Any, ...]) -> Any:
				if args[0] is None:
					raise _null_receiver_error(target)
				return impl(*args)

			return invoke_instance
		return lambda args: impl(*args)

	def _general_path(self, plan: SignaturePlan) -> Callable[[Tuple[Any, ...]], Any]:
		target = plan.target
		call = _member_call(target)
		slots = plan.slots
		result = plan.result
		bound = plan.bound
		has_receiver = target.takes_receiver

		def invoke(args: Tuple[Any, ...]) -> Any:
			values = [s.marshal(bound if s.source == BOUND_SOURCE else args[s.source]) for s in slots]
			if has_receiver:
				receiver = values[0]
				if receiver is None:
					raise _null_receiver_error(target)
				raw = call(receiver, values[1:])
			else:
				raw = call(None, values)
			return result.apply(raw)

		return invoke

	# -- adapters ------------------------------------------------------------

	def wrap(self, shape: TargetShape, source: Any) -> Optional[Thunk]:
		"""
		Adapt a thunk (or an annotated callable) to another shape of equal arity.

		Wrapping a thunk into its own shape returns it unchanged.
		"""
		if shape is None:
			raise ArgumentNull("target shape is None", argument="shape")
		if source is None:
			raise ArgumentNull("source is None", argument="source")
		if isinstance(source, Thunk):
			if source.shape == shape:
				return source
			source_shape = source.shape
		else:
			source_shape = TargetShape.from_callable(source)
		if source_shape.arity != shape.arity:
			logger.debug("wrap %s into %s: arity differs", source_shape, shape)
			return None
		slots: List[ArgSlot] = []
		for index, (given, declared) in enumerate(zip(shape.params, source_shape.params)):
			slot = _slot(self.planner, index, given, declared)
			if not slot:
				logger.debug("wrap %s into %s: %s", source_shape, shape, slot.reason)
				return None
			slots.append(slot)
		result = self.planner.plan_result(source_shape.returns, shape.returns)
		if not result.possible:
			logger.debug("wrap %s into %s: result does not convert", source_shape, shape)
			return None

		fn = source

		def invoke(args: Tuple[Any, ...]) -> Any:
			return result.apply(fn(*[s.marshal(args[s.source]) for s in slots]))

		return Thunk(shape=shape, invoke=invoke, source=source)

	def invoker(self, target: CallableTarget) -> "Invoker":
		if target is None:
			raise ArgumentNull("member is None", argument="member")
		return Invoker(target, self.planner)

	def instance_creator(self, target: CallableTarget) -> "InstanceCreator":
		if target is None:
			raise ArgumentNull("constructor is None", argument="member")
		return InstanceCreator(target, self.planner)


def _null_receiver_error(target: CallableTarget) -> NullReceiver:
	return NullReceiver(
		f"instance member {target.name} invoked without a receiver",
		member=target.name,
		container=type_name(target.declaring_type) if target.declaring_type is not None else None,
	)


def _null_receiver(target: CallableTarget) -> Callable[[Tuple[Any, ...]], Any]:
	def invoke(_args: Tuple[Any, ...]) -> Any:
		raise _null_receiver_error(target)

	return invoke


class _Reflective:
	"""Shared argument handling for late-typed invokers."""

	def __init__(self, target: CallableTarget, planner: ConversionPlanner) -> None:
		self.target = target
		declared = [p.type for p in target.params]
		if target.kind.is_setter:
			declared.append(target.value_type)
		self._casts = tuple(self._cast(planner, tp) for tp in declared)
		self._call = _member_call(target)

	@property
	def arity(self) -> int:
		return len(self._casts)

	@staticmethod
	def _cast(planner: ConversionPlanner, declared: Any) -> Callable[[Any], Any]:
		if is_ref(declared):
			plan = planner.plan_by_ref(Any, declared)

			def to_ref(value: Any) -> Any:
				return value if isinstance(value, Ref) else Ref(plan.apply(value))

			return to_ref
		return planner.plan(Any, declared).apply

	def _values(self, args: Tuple[Any, ...]) -> List[Any]:
		if len(args) != len(self._casts):
			raise ArityMismatch(
				f"{self.target.name} takes {len(self._casts)} argument(s), got {len(args)}",
				member=self.target.name,
				expected=len(self._casts),
				got=len(args),
			)
		return [cast(value) for cast, value in zip(self._casts, args)]


class Invoker(_Reflective):
	"""
	Late-typed invoker: `invoker(instance, *args)`.

	Arguments are checked against the member's declared types at call time;
	`Ref` arguments are handed over as they are. `instance` is ignored for
	static members and constructors.
	"""

	def __init__(self, target: CallableTarget, planner: ConversionPlanner) -> None:
		super().__init__(target, planner)
		self._receiver = planner.plan(Any, _receiver_type(target)) if target.takes_receiver else None

	def __call__(self, instance: Any, *args: Any) -> Any:
		values = self._values(args)
		if self._receiver is None:
			return self._call(None, values)
		if instance is None:
			raise _null_receiver_error(self.target)
		return self._call(self._receiver.apply(instance), values)


class InstanceCreator(_Reflective):
	"""Late-typed constructor call: `creator(*args)`."""

	def __init__(self, target: CallableTarget, planner: ConversionPlanner) -> None:
		if target.kind is not MemberKind.CONSTRUCTOR:
			raise ValueError(f"{target.describe()} is not a constructor")
		super().__init__(target, planner)

	def __call__(self, *args: Any) -> Any:
		return self._call(None, self._values(args))


__all__ = [
	"UNBOUND",
	"SlotMode",
	"ArgSlot",
	"Mismatch",
	"SignaturePlan",
	"Thunk",
	"ThunkCompiler",
	"Invoker",
	"InstanceCreator",
]
