#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Explicitly declared member table (a TypeHost without introspection).

Python classes carry at most one attribute per name, so PyTypeHost never
yields overloads. MemberTable lets callers declare members by hand: several
procedures may share a name with different signatures, containers may be any
hashable token (not only classes), and the declared types are taken as given.
The table does not rank overloads; it only returns candidate sets filtered by
name/scope/visibility. The binder picks the winner.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from thunkforge.members import (
	CallableTarget,
	FieldInfo,
	MemberKind,
	Parameter,
	PropertyInfo,
	SearchOptions,
	Visibility,
	admits,
	name_matches,
)
from thunkforge.typeinfo import VOID, normalize


def _params(params: Iterable[Any]) -> Tuple[Parameter, ...]:
	out: List[Parameter] = []
	for index, p in enumerate(params):
		if isinstance(p, Parameter):
			out.append(p)
		else:
			out.append(Parameter(f"arg{index}", normalize(p)))
	return tuple(out)


@dataclass(frozen=True)
class _Entry:
	name: str
	member: Any


class MemberTable:
	"""
	Store member declarations per container and serve TypeHost queries.

	Members are bucketed by (container, kind); lookups scan the bucket with the
	requested name rule, so IGNORE_CASE works without a second index.
	"""

	def __init__(self) -> None:
		self._procedures: Dict[Any, List[_Entry]] = {}
		self._constructors: Dict[Any, List[CallableTarget]] = {}
		self._properties: Dict[Any, List[_Entry]] = {}
		self._fields: Dict[Any, List[_Entry]] = {}
		self._by_impl: Dict[int, CallableTarget] = {}

	def register_procedure(
		self,
		container: Any,
		name: str,
		impl: Callable[..., Any],
		*,
		params: Iterable[Any] = (),
		result: Any = VOID,
		is_static: bool = False,
		visibility: Optional[Visibility] = None,
	) -> CallableTarget:
		"""Declare a procedure; instance procedures receive the receiver first."""
		target = CallableTarget(
			kind=MemberKind.PROCEDURE,
			name=name,
			declaring_type=container,
			is_static=is_static,
			params=_params(params),
			result_type=normalize(result),
			visibility=visibility or Visibility.of_name(name),
			impl=impl,
		)
		target = self._checked(target)
		self._procedures.setdefault(container, []).append(_Entry(name, target))
		self._by_impl[id(impl)] = target
		return target

	def register_constructor(
		self,
		container: Any,
		impl: Callable[..., Any],
		*,
		params: Iterable[Any] = (),
		visibility: Optional[Visibility] = None,
	) -> CallableTarget:
		target = CallableTarget(
			kind=MemberKind.CONSTRUCTOR,
			name=getattr(container, "__qualname__", str(container)),
			declaring_type=container,
			is_static=False,
			params=_params(params),
			result_type=container,
			visibility=visibility or Visibility.public(),
			impl=impl,
		)
		target = self._checked(target)
		self._constructors.setdefault(container, []).append(target)
		return target

	def register_property(
		self,
		container: Any,
		name: str,
		prop_type: Any,
		*,
		getter: Optional[Callable[..., Any]] = None,
		setter: Optional[Callable[..., Any]] = None,
		is_static: bool = False,
		visibility: Optional[Visibility] = None,
	) -> PropertyInfo:
		"""Declare a property from accessor callables; either may be omitted."""
		if getter is None and setter is None:
			raise ValueError(f"property {name!r} needs a getter or a setter")
		vis = visibility or Visibility.of_name(name)
		prop_type = normalize(prop_type)
		get_target = None
		set_target = None
		if getter is not None:
			get_target = CallableTarget(
				kind=MemberKind.PROPERTY_GETTER,
				name=name,
				declaring_type=container,
				is_static=is_static,
				result_type=prop_type,
				visibility=vis,
				impl=getter,
			)
		if setter is not None:
			set_target = CallableTarget(
				kind=MemberKind.PROPERTY_SETTER,
				name=name,
				declaring_type=container,
				is_static=is_static,
				value_type=prop_type,
				visibility=vis,
				impl=setter,
			)
		info = PropertyInfo(
			name=name,
			declaring_type=container,
			type=prop_type,
			is_static=is_static,
			getter=get_target,
			setter=set_target,
			visibility=vis,
		)
		self._properties.setdefault(container, []).append(_Entry(name, info))
		return info

	def register_field(
		self,
		container: Any,
		name: str,
		field_type: Any,
		*,
		is_static: bool = False,
		read_only: bool = False,
		visibility: Optional[Visibility] = None,
	) -> FieldInfo:
		"""Declare a data attribute, read and written with getattr/setattr."""
		info = FieldInfo(
			name=name,
			declaring_type=container,
			type=normalize(field_type),
			is_static=is_static,
			read_only=read_only,
			visibility=visibility or Visibility.of_name(name),
		)
		self._fields.setdefault(container, []).append(_Entry(name, info))
		return info

	# -- TypeHost ------------------------------------------------------------

	def procedures(self, container: Any, name: str, binding: SearchOptions) -> List[CallableTarget]:
		return [
			e.member
			for e in self._procedures.get(container, [])
			if name_matches(e.name, name, binding)
			and admits(binding, is_static=e.member.is_static, visibility=e.member.visibility)
		]

	def constructors(self, container: Any, binding: SearchOptions) -> List[CallableTarget]:
		return [
			c
			for c in self._constructors.get(container, [])
			if admits(binding, is_static=False, visibility=c.visibility)
		]

	def properties(self, container: Any, name: str, binding: SearchOptions) -> List[PropertyInfo]:
		return [
			e.member
			for e in self._properties.get(container, [])
			if name_matches(e.name, name, binding)
			and admits(binding, is_static=e.member.is_static, visibility=e.member.visibility)
		]

	def fields(self, container: Any, name: str, binding: SearchOptions) -> List[FieldInfo]:
		return [
			e.member
			for e in self._fields.get(container, [])
			if name_matches(e.name, name, binding)
			and admits(binding, is_static=e.member.is_static, visibility=e.member.visibility)
		]

	def describe(self, member: Any, container: Any = None) -> Optional[Any]:
		if isinstance(member, (CallableTarget, PropertyInfo, FieldInfo)):
			return member
		return self._by_impl.get(id(member))

	def _checked(self, target: CallableTarget) -> CallableTarget:
		if target.open_typevars:
			return replace(target, is_generic=True)
		return target


__all__ = ["MemberTable"]
