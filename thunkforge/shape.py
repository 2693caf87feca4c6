#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Target shapes: the calling contract a thunk must satisfy.

A shape is built from a functional descriptor that carries exactly one call
signature:

- `Callable[[A, B], R]` (typing or collections.abc spelling),
- a class (typically a `Protocol`) that declares a single, non-overloaded
  `__call__` and no other public methods,
- an existing `TargetShape`.

`Callable[..., R]`, classes without `__call__`, classes with an overloaded
`__call__` or with additional public methods are rejected with
`InvalidShapeDescriptor`; that is a programming error and always raises.
"""

from __future__ import annotations

import collections.abc
import inspect
import typing
from dataclasses import dataclass
from typing import Any, Callable, Tuple

from thunkforge.errors import ArgumentNull, InvalidShapeDescriptor
from thunkforge.typeinfo import VOID, free_typevars, is_void, normalize, type_name

_DESCRIPTOR_BASES = (object, typing.Generic)


@dataclass(frozen=True)
class TargetShape:
	"""Ordered parameter types plus a return type (`VOID` for "no result")."""

	params: Tuple[Any, ...]
	returns: Any = VOID

	def __post_init__(self) -> None:
		object.__setattr__(self, "params", tuple(normalize(p) for p in self.params))
		object.__setattr__(self, "returns", normalize(self.returns))

	@property
	def arity(self) -> int:
		return len(self.params)

	@property
	def returns_void(self) -> bool:
		return is_void(self.returns)

	def has_receiver(self, is_instance_member: bool) -> bool:
		"""True when the first parameter is consumed as an instance receiver."""
		return is_instance_member and self.arity >= 1

	def __str__(self) -> str:
		params = ", ".join(type_name(p) for p in self.params)
		return f"({params}) -> {type_name(self.returns)}"

	@classmethod
	def of(cls, descriptor: Any) -> "TargetShape":
		"""Build a shape from a functional descriptor."""
		if descriptor is None:
			raise ArgumentNull("target shape descriptor is None", argument="shape")
		if isinstance(descriptor, TargetShape):
			return descriptor
		if typing.get_origin(descriptor) is collections.abc.Callable:
			shape = _shape_from_callable_alias(descriptor)
		elif inspect.isclass(descriptor):
			shape = _shape_from_class(descriptor)
		else:
			raise InvalidShapeDescriptor(
				f"{descriptor!r} is not a functional descriptor",
				shape=repr(descriptor),
			)
		unbound = [v for tp in (*shape.params, shape.returns) for v in free_typevars(tp)]
		if unbound:
			raise InvalidShapeDescriptor(
				f"shape {shape} has unbound type parameters",
				shape=str(shape),
			)
		return shape

	@classmethod
	def from_callable(cls, fn: Callable[..., Any]) -> "TargetShape":
		"""Derive the shape of an annotated Python callable (used by wrap)."""
		try:
			sig = inspect.signature(fn)
		except (TypeError, ValueError) as exc:
			raise InvalidShapeDescriptor(f"cannot inspect signature of {fn!r}", shape=repr(fn)) from exc
		hints = _resolved_annotations(fn)
		params = []
		for p in sig.parameters.values():
			if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
				raise InvalidShapeDescriptor(
					f"{fn!r} has variable arity; a shape needs a fixed parameter list",
					shape=repr(fn),
				)
			params.append(hints.get(p.name, Any))
		returns = hints.get("return", Any) if sig.return_annotation is not inspect.Signature.empty else Any
		return cls(tuple(params), returns)


def _resolved_annotations(fn: Any) -> dict:
	try:
		return dict(inspect.get_annotations(fn, eval_str=True))
	except (NameError, TypeError, SyntaxError):
		try:
			return dict(inspect.get_annotations(fn))
		except TypeError:
			return {}


def _shape_from_callable_alias(descriptor: Any) -> TargetShape:
	args = typing.get_args(descriptor)
	if not args or args[0] is Ellipsis:
		raise InvalidShapeDescriptor(
			f"{descriptor!r} does not fix its parameter list",
			shape=repr(descriptor),
		)
	params, returns = args[0], args[1]
	if not isinstance(params, (list, tuple)):
		# ParamSpec / Concatenate: no concrete parameter list.
		raise InvalidShapeDescriptor(
			f"{descriptor!r} does not fix its parameter list",
			shape=repr(descriptor),
		)
	return TargetShape(tuple(params), returns)


def _shape_from_class(descriptor: type) -> TargetShape:
	call = None
	others = []
	for klass in descriptor.__mro__:
		if klass in _DESCRIPTOR_BASES or klass.__module__ == "typing":
			continue
		for name, attr in vars(klass).items():
			if name == "__call__":
				if call is None:
					call = attr
				continue
			if name.startswith("_"):
				continue
			if inspect.isfunction(attr) or isinstance(attr, (staticmethod, classmethod)):
				others.append(name)
	if call is None or not inspect.isfunction(call):
		raise InvalidShapeDescriptor(
			f"{type_name(descriptor)} declares no __call__ signature",
			shape=type_name(descriptor),
		)
	if others:
		raise InvalidShapeDescriptor(
			f"{type_name(descriptor)} declares more than one call signature ({', '.join(sorted(set(others)))})",
			shape=type_name(descriptor),
		)
	if typing.get_overloads(call):
		raise InvalidShapeDescriptor(
			f"{type_name(descriptor)}.__call__ is overloaded",
			shape=type_name(descriptor),
		)
	sig = inspect.signature(call)
	hints = _resolved_annotations(call)
	params = []
	for index, p in enumerate(sig.parameters.values()):
		if index == 0:
			continue  # self
		if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
			raise InvalidShapeDescriptor(
				f"{type_name(descriptor)}.__call__ has variable arity",
				shape=type_name(descriptor),
			)
		params.append(hints.get(p.name, Any))
	returns = hints.get("return", Any) if sig.return_annotation is not inspect.Signature.empty else Any
	return TargetShape(tuple(params), returns)


__all__ = ["TargetShape"]
