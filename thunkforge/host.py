#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Host type system protocol and its introspection-backed implementation.

The resolver never walks classes itself; it asks a TypeHost for candidate
procedures/constructors/properties/fields by name, already filtered by
static/instance scope and visibility. `PyTypeHost` answers those queries for
ordinary Python classes using `inspect` and the class annotations.

Mapping of Python constructs:

- function in the class namespace -> instance procedure (first param is the receiver)
- staticmethod / classmethod -> static procedure (a classmethod is bound to the container)
- property / functools.cached_property -> instance property
- annotated attribute, dataclass field, `__slots__` entry -> instance field
- `ClassVar` / unannotated class attribute -> static field (`Final` is read-only)
- the class itself -> constructor (parameters from `inspect.signature(cls)`)
"""

from __future__ import annotations

import enum
import functools
import inspect
import logging
import types
import typing
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple, Union

from thunkforge.members import (
	CallableTarget,
	FieldInfo,
	MemberKind,
	Parameter,
	ParamKind,
	PropertyInfo,
	SearchOptions,
	Visibility,
	admits,
	name_matches,
)
from thunkforge.typeinfo import (
	VOID,
	free_typevars,
	is_class,
	normalize,
	split_container,
	substitute,
	type_name,
)

logger = logging.getLogger(__name__)

Member = Union[CallableTarget, PropertyInfo, FieldInfo]

# Marks a name that is declared only through an annotation (`x: int`).
_ANNOTATED_ONLY = object()


class TypeHost(Protocol):
	"""
	Capability queries the resolver consumes.

	Implementations return candidates already filtered by the binding part of
	the search options (scope, visibility, case, declared-only). Ranking among
	several candidates is left to the binder.
	"""

	def procedures(self, container: Any, name: str, binding: SearchOptions) -> List[CallableTarget]:
		...

	def constructors(self, container: Any, binding: SearchOptions) -> List[CallableTarget]:
		...

	def properties(self, container: Any, name: str, binding: SearchOptions) -> List[PropertyInfo]:
		...

	def fields(self, container: Any, name: str, binding: SearchOptions) -> List[FieldInfo]:
		...

	def describe(self, member: Any, container: Any = None) -> Optional[Member]:
		"""Turn a direct member handle into a descriptor (None if it is not one)."""
		...


def _annotations(obj: Any) -> Dict[str, Any]:
	try:
		return dict(inspect.get_annotations(obj, eval_str=True))
	except (NameError, TypeError, SyntaxError, AttributeError):
		try:
			return dict(inspect.get_annotations(obj))
		except TypeError:
			return {}


def _is_classvar(annotation: Any) -> bool:
	if isinstance(annotation, str):
		return annotation.startswith(("ClassVar", "typing.ClassVar"))
	return annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar


def _is_final(annotation: Any) -> bool:
	if isinstance(annotation, str):
		return annotation.startswith(("Final", "typing.Final"))
	return annotation is typing.Final or typing.get_origin(annotation) is typing.Final


def _is_frozen_dataclass(cls: type) -> bool:
	params = getattr(cls, "__dataclass_params__", None)
	return bool(params is not None and params.frozen)


def _signature(fn: Any) -> Optional[inspect.Signature]:
	try:
		return inspect.signature(fn)
	except (TypeError, ValueError):
		return None


class PyTypeHost:
	"""TypeHost over real Python classes."""

	def procedures(self, container: Any, name: str, binding: SearchOptions) -> List[CallableTarget]:
		cls, mapping = split_container(container)
		out: List[CallableTarget] = []
		for attr_name, owner, raw in self._lookup(cls, name, binding):
			target = self._procedure(container, cls, mapping, attr_name, owner, raw)
			if target is None:
				continue
			if admits(binding, is_static=target.is_static, visibility=target.visibility):
				out.append(target)
		return out

	def constructors(self, container: Any, binding: SearchOptions) -> List[CallableTarget]:
		cls, mapping = split_container(container)
		if not is_class(cls) or inspect.isabstract(cls):
			return []
		if not admits(binding, is_static=False, visibility=Visibility.public()):
			return []
		sig = _signature(cls)
		if sig is None:
			logger.debug("no inspectable constructor for %s", type_name(cls))
			return []
		hints: Dict[str, Any] = {}
		for klass in reversed(cls.__mro__):
			hints.update({k: v for k, v in _annotations(klass).items() if not _is_classvar(v)})
		for init in (cls.__new__, cls.__init__):
			if init in (object.__new__, object.__init__):
				continue
			hints.update({k: v for k, v in _annotations(init).items() if not isinstance(v, str)})
		params = self._parameters(sig, hints, mapping, skip_first=False)
		target = CallableTarget(
			kind=MemberKind.CONSTRUCTOR,
			name=cls.__qualname__,
			declaring_type=container,
			is_static=False,
			params=params,
			result_type=container,
			visibility=Visibility.public(),
			impl=cls,
		)
		return [self._mark_generic(target)]

	def properties(self, container: Any, name: str, binding: SearchOptions) -> List[PropertyInfo]:
		cls, mapping = split_container(container)
		out: List[PropertyInfo] = []
		for attr_name, owner, raw in self._lookup(cls, name, binding):
			if not isinstance(raw, (property, functools.cached_property)):
				continue
			visibility = Visibility.of_name(attr_name)
			if not admits(binding, is_static=False, visibility=visibility):
				continue
			out.append(self._property(self._receiver_type(container, cls, owner), mapping, attr_name, raw, visibility))
		return out

	def fields(self, container: Any, name: str, binding: SearchOptions) -> List[FieldInfo]:
		cls, mapping = split_container(container)
		out: List[FieldInfo] = []
		for attr_name, owner, raw in self._lookup(cls, name, binding):
			info = self._field(container, cls, mapping, attr_name, owner, raw)
			if info is None:
				continue
			if admits(binding, is_static=info.is_static, visibility=info.visibility):
				out.append(info)
		return out

	def describe(self, member: Any, container: Any = None) -> Optional[Member]:
		if isinstance(member, (CallableTarget, PropertyInfo, FieldInfo)):
			return member
		if inspect.isclass(member) or typing.get_origin(member) is not None:
			ctors = self.constructors(member, SearchOptions.INSTANCE | SearchOptions.PUBLIC)
			return ctors[0] if ctors else None
		if isinstance(member, (property, functools.cached_property)):
			owner = container if container is not None else Any
			_, mapping = split_container(container) if container is not None else (None, {})
			name = getattr(member, "attrname", None) or getattr(_property_getter(member), "__name__", "property")
			return self._property(owner, mapping, name, member, Visibility.of_name(name))
		if isinstance(member, classmethod):
			if container is None:
				return None
			return self._procedure(container, split_container(container)[0], {}, member.__func__.__name__, container, member)
		if container is not None and inspect.isfunction(member):
			cls, mapping = split_container(container)
			for attr_name, owner, raw in self._lookup(cls, member.__name__, SearchOptions.NONE):
				if raw is member or getattr(raw, "__func__", None) is member:
					return self._procedure(container, cls, mapping, attr_name, owner, raw)
		if isinstance(member, staticmethod):
			member = member.__func__
		if not callable(member):
			return None
		sig = _signature(member)
		if sig is None:
			return None
		bound_method = inspect.ismethod(member)
		if bound_method:
			annotated = member.__func__
		elif inspect.isroutine(member):
			annotated = member
		else:
			annotated = type(member).__call__
		hints = _annotations(annotated)
		# inspect.signature already drops the receiver of a bound method.
		params = self._parameters(sig, hints, {}, skip_first=False)
		owner = None
		if bound_method:
			owner = member.__self__ if inspect.isclass(member.__self__) else type(member.__self__)
		target = CallableTarget(
			kind=MemberKind.PROCEDURE,
			name=getattr(member, "__qualname__", getattr(member, "__name__", repr(member))),
			declaring_type=owner,
			is_static=True,
			params=params,
			result_type=self._result(sig, hints, {}),
			visibility=Visibility.of_name(getattr(member, "__name__", "")),
			impl=member,
		)
		return self._mark_generic(target)

	# -- lookup --------------------------------------------------------------

	def _lookup(self, cls: Any, name: str, binding: SearchOptions) -> Iterator[Tuple[str, type, Any]]:
		"""Yield (name, owner, raw attribute) for the most derived definition of each matching name."""
		if not is_class(cls):
			return
		owners = [cls] if binding & SearchOptions.DECLARED_ONLY else [k for k in cls.__mro__ if k is not object]
		seen: set = set()
		for owner in owners:
			namespace: Dict[str, Any] = dict.fromkeys(_annotations(owner), _ANNOTATED_ONLY)
			namespace.update(vars(owner))
			for attr_name, raw in namespace.items():
				if attr_name in seen or not name_matches(attr_name, name, binding):
					continue
				seen.add(attr_name)
				yield attr_name, owner, raw

	def _receiver_type(self, container: Any, cls: type, owner: type) -> Any:
		return container if owner is cls else owner

	# -- classification ------------------------------------------------------

	def _procedure(
		self,
		container: Any,
		cls: type,
		mapping: Dict[Any, Any],
		attr_name: str,
		owner: type,
		raw: Any,
	) -> Optional[CallableTarget]:
		if isinstance(raw, staticmethod):
			fn, impl, is_static, skip_first = raw.__func__, raw.__func__, True, False
		elif isinstance(raw, classmethod):
			fn, impl, is_static, skip_first = raw.__func__, getattr(cls, attr_name), True, True
		elif inspect.isfunction(raw):
			fn, impl, is_static, skip_first = raw, raw, False, True
		elif inspect.ismethoddescriptor(raw) and callable(raw):
			fn, impl, is_static, skip_first = raw, raw, False, True
		else:
			return None
		sig = _signature(fn)
		if sig is None:
			return None
		hints = _annotations(fn)
		target = CallableTarget(
			kind=MemberKind.PROCEDURE,
			name=attr_name,
			declaring_type=self._receiver_type(container, cls, owner),
			is_static=is_static,
			params=self._parameters(sig, hints, mapping, skip_first=skip_first),
			result_type=self._result(sig, hints, mapping),
			visibility=Visibility.of_name(attr_name),
			impl=impl,
		)
		return self._mark_generic(target)

	def _property(
		self,
		receiver: Any,
		mapping: Dict[Any, Any],
		attr_name: str,
		raw: Any,
		visibility: Visibility,
	) -> PropertyInfo:
		fget = _property_getter(raw)
		fset = raw.fset if isinstance(raw, property) else None
		getter = setter = None
		prop_type: Any = typing.Any
		if fget is not None:
			sig = _signature(fget)
			hints = _annotations(fget)
			prop_type = self._result(sig, hints, mapping) if sig is not None else typing.Any
			getter = self._mark_generic(CallableTarget(
				kind=MemberKind.PROPERTY_GETTER,
				name=attr_name,
				declaring_type=receiver,
				is_static=False,
				result_type=prop_type,
				visibility=visibility,
				impl=fget,
			))
		if fset is not None:
			sig = _signature(fset)
			hints = _annotations(fset)
			value_type = prop_type
			if sig is not None:
				names = list(sig.parameters)
				if len(names) >= 2 and names[1] in hints:
					value_type = normalize(substitute(normalize(hints[names[1]]), mapping))
			if fget is None:
				prop_type = value_type
			setter = self._mark_generic(CallableTarget(
				kind=MemberKind.PROPERTY_SETTER,
				name=attr_name,
				declaring_type=receiver,
				is_static=False,
				result_type=VOID,
				value_type=value_type,
				visibility=visibility,
				impl=fset,
			))
		return PropertyInfo(
			name=attr_name,
			declaring_type=receiver,
			type=prop_type,
			is_static=False,
			getter=getter,
			setter=setter,
			visibility=visibility,
		)

	def _field(
		self,
		container: Any,
		cls: type,
		mapping: Dict[Any, Any],
		attr_name: str,
		owner: type,
		raw: Any,
	) -> Optional[FieldInfo]:
		if attr_name.startswith("__") and attr_name.endswith("__"):
			return None
		annotation = _annotations(owner).get(attr_name, _ANNOTATED_ONLY)
		annotated = annotation is not _ANNOTATED_ONLY
		if raw is _ANNOTATED_ONLY or isinstance(raw, types.MemberDescriptorType):
			is_static = annotated and _is_classvar(annotation)
		elif annotated:
			is_static = _is_classvar(annotation) or _is_final(annotation)
		else:
			if inspect.isroutine(raw) or inspect.isclass(raw) or inspect.isdatadescriptor(raw):
				return None
			if isinstance(raw, (staticmethod, classmethod, functools.cached_property)):
				return None
			is_static = True
		if annotated:
			field_type = normalize(substitute(normalize(annotation), mapping))
		elif raw is _ANNOTATED_ONLY or isinstance(raw, types.MemberDescriptorType):
			field_type = typing.Any
		else:
			field_type = type(raw)
		read_only = (
			(annotated and _is_final(annotation))
			or (not is_static and _is_frozen_dataclass(cls))
			or (is_static and isinstance(raw, enum.Enum))
		)
		return FieldInfo(
			name=attr_name,
			declaring_type=owner if is_static else self._receiver_type(container, cls, owner),
			type=field_type,
			is_static=is_static,
			read_only=bool(read_only),
			visibility=Visibility.of_name(attr_name),
			is_generic=bool(free_typevars(field_type)),
		)

	# -- signatures ----------------------------------------------------------

	def _parameters(
		self,
		sig: inspect.Signature,
		hints: Dict[str, Any],
		mapping: Dict[Any, Any],
		*,
		skip_first: bool,
	) -> Tuple[Parameter, ...]:
		params: List[Parameter] = []
		for index, p in enumerate(sig.parameters.values()):
			if skip_first and index == 0:
				continue
			if p.kind is inspect.Parameter.VAR_KEYWORD:
				continue
			declared = normalize(substitute(normalize(hints.get(p.name, typing.Any)), mapping))
			if p.kind is inspect.Parameter.VAR_POSITIONAL:
				params.append(Parameter(p.name, tuple[declared, ...], ParamKind.VAR_POSITIONAL))
			elif p.kind is inspect.Parameter.KEYWORD_ONLY:
				params.append(Parameter(p.name, declared, ParamKind.KEYWORD))
			else:
				params.append(Parameter(p.name, declared))
		return tuple(params)

	def _result(self, sig: inspect.Signature, hints: Dict[str, Any], mapping: Dict[Any, Any]) -> Any:
		if sig.return_annotation is inspect.Signature.empty and "return" not in hints:
			return typing.Any
		return normalize(substitute(normalize(hints.get("return", typing.Any)), mapping))

	def _mark_generic(self, target: CallableTarget) -> CallableTarget:
		if target.open_typevars:
			return replace(target, is_generic=True)
		return target


def _property_getter(raw: Any) -> Any:
	if isinstance(raw, functools.cached_property):
		return raw.func
	return raw.fget


__all__ = ["TypeHost", "PyTypeHost", "Member"]
