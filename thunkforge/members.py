#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Member descriptors handed out by a TypeHost.

`CallableTarget` is the resolved, concrete thing a thunk invokes. Its `kind`
is a closed tagged variant (procedure, constructor, property/field getter or
setter); the compiler switches over it instead of dispatching through a class
hierarchy. `PropertyInfo` and `FieldInfo` are the pre-accessor handles: the
caller (or the resolver) picks the getter or setter via `accessor()`.

Descriptors are immutable and borrowed from the host; nothing in thunkforge
mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntFlag, auto
from typing import Any, Optional, Tuple

from thunkforge.typeinfo import VOID, free_typevars, is_ref, ref_element, type_name


class MemberKind(Enum):
	PROCEDURE = auto()
	CONSTRUCTOR = auto()
	PROPERTY_GETTER = auto()
	PROPERTY_SETTER = auto()
	FIELD_GETTER = auto()
	FIELD_SETTER = auto()

	@property
	def is_setter(self) -> bool:
		return self in (MemberKind.PROPERTY_SETTER, MemberKind.FIELD_SETTER)

	@property
	def is_accessor(self) -> bool:
		return self not in (MemberKind.PROCEDURE, MemberKind.CONSTRUCTOR)


class ParamKind(Enum):
	POSITIONAL = auto()
	# `*args`: one slot typed tuple[T, ...], splatted at call time.
	VAR_POSITIONAL = auto()
	KEYWORD = auto()


class SearchOptions(IntFlag):
	"""
	Capability mask for name-based lookups.

	The member part selects categories; the binding part filters candidates.
	An empty member part means every category, an empty static/instance part
	means both, and an empty visibility part means both.
	"""

	NONE = 0
	INVOKE_METHOD = auto()
	CREATE_INSTANCE = auto()
	GET_FIELD = auto()
	SET_FIELD = auto()
	GET_PROPERTY = auto()
	SET_PROPERTY = auto()
	STATIC = auto()
	INSTANCE = auto()
	PUBLIC = auto()
	NON_PUBLIC = auto()
	IGNORE_CASE = auto()
	DECLARED_ONLY = auto()


MEMBER_MASK = (
	SearchOptions.INVOKE_METHOD
	| SearchOptions.CREATE_INSTANCE
	| SearchOptions.GET_FIELD
	| SearchOptions.SET_FIELD
	| SearchOptions.GET_PROPERTY
	| SearchOptions.SET_PROPERTY
)
FIELD_MASK = SearchOptions.GET_FIELD | SearchOptions.SET_FIELD
PROPERTY_MASK = SearchOptions.GET_PROPERTY | SearchOptions.SET_PROPERTY
SCOPE_MASK = SearchOptions.STATIC | SearchOptions.INSTANCE
VISIBILITY_MASK = SearchOptions.PUBLIC | SearchOptions.NON_PUBLIC
DEFAULT_OPTIONS = SCOPE_MASK | VISIBILITY_MASK


def split_options(options: Optional[SearchOptions]) -> Tuple[SearchOptions, SearchOptions]:
	"""Split a mask into (member categories, binding filter), filling defaults."""
	opts = SearchOptions(options or SearchOptions.NONE)
	members = opts & MEMBER_MASK
	if not members:
		members = MEMBER_MASK
	binding = opts & ~MEMBER_MASK
	if not binding & SCOPE_MASK:
		binding |= SCOPE_MASK
	if not binding & VISIBILITY_MASK:
		binding |= VISIBILITY_MASK
	return members, binding


@dataclass(frozen=True)
class Visibility:
	"""Python visibility is a naming convention: a leading underscore is private."""

	is_public: bool

	@staticmethod
	def public() -> "Visibility":
		return Visibility(is_public=True)

	@staticmethod
	def private() -> "Visibility":
		return Visibility(is_public=False)

	@staticmethod
	def of_name(name: str) -> "Visibility":
		dunder = name.startswith("__") and name.endswith("__")
		return Visibility(is_public=dunder or not name.startswith("_"))


def admits(binding: SearchOptions, *, is_static: bool, visibility: Visibility) -> bool:
	"""True when a member with the given scope/visibility passes the filter."""
	if is_static and not binding & SearchOptions.STATIC:
		return False
	if not is_static and not binding & SearchOptions.INSTANCE:
		return False
	if visibility.is_public:
		return bool(binding & SearchOptions.PUBLIC)
	return bool(binding & SearchOptions.NON_PUBLIC)


def name_matches(candidate: str, wanted: str, binding: SearchOptions) -> bool:
	if binding & SearchOptions.IGNORE_CASE:
		return candidate.casefold() == wanted.casefold()
	return candidate == wanted


@dataclass(frozen=True)
class Parameter:
	name: str
	type: Any
	kind: ParamKind = ParamKind.POSITIONAL

	@property
	def by_ref(self) -> bool:
		return is_ref(self.type)

	@property
	def element_type(self) -> Any:
		"""The referenced type for by-ref parameters, else the declared type."""
		return ref_element(self.type) if self.by_ref else self.type


@dataclass(frozen=True)
class CallableTarget:
	"""
	A concrete member a thunk can invoke.

	`impl` depends on `kind`: a callable for procedures, constructors and
	property accessors (instance accessors take the receiver first), the
	attribute name for field accessors. `params` excludes the receiver and,
	for setters, the assigned value (see `value_type`).
	"""

	kind: MemberKind
	name: str
	declaring_type: Any
	is_static: bool
	params: Tuple[Parameter, ...] = ()
	result_type: Any = VOID
	value_type: Any = None
	visibility: Visibility = Visibility.public()
	impl: Any = None
	is_generic: bool = False

	@property
	def is_instance(self) -> bool:
		return not self.is_static

	@property
	def takes_receiver(self) -> bool:
		"""Constructors are instance-style but have no receiver slot."""
		return not self.is_static and self.kind is not MemberKind.CONSTRUCTOR

	@property
	def slot_count(self) -> int:
		"""Receiver + params + setter value; the arity of an unbound thunk."""
		count = len(self.params)
		if self.takes_receiver:
			count += 1
		if self.kind.is_setter:
			count += 1
		return count

	@property
	def open_typevars(self) -> Tuple[Any, ...]:
		found: list = []
		for tp in (*(p.type for p in self.params), self.result_type, self.value_type):
			for var in free_typevars(tp):
				if var not in found:
					found.append(var)
		return tuple(found)

	def describe(self) -> str:
		owner = type_name(self.declaring_type) if self.declaring_type is not None else "<free>"
		params = ", ".join(type_name(p.type) for p in self.params)
		scope = "static" if self.is_static else "instance"
		if self.kind.is_setter:
			return f"{scope} {self.kind.name.lower()} {owner}.{self.name} = {type_name(self.value_type)}"
		return f"{scope} {self.kind.name.lower()} {owner}.{self.name}({params}) -> {type_name(self.result_type)}"


@dataclass(frozen=True)
class PropertyInfo:
	"""A property; either accessor may be missing."""

	name: str
	declaring_type: Any
	type: Any
	is_static: bool = False
	getter: Optional[CallableTarget] = None
	setter: Optional[CallableTarget] = None
	visibility: Visibility = Visibility.public()

	def accessor(self, setter: bool) -> Optional[CallableTarget]:
		return self.setter if setter else self.getter


@dataclass(frozen=True)
class FieldInfo:
	"""A data attribute; `read_only` fields have no setter."""

	name: str
	declaring_type: Any
	type: Any
	is_static: bool = False
	read_only: bool = False
	visibility: Visibility = Visibility.public()
	is_generic: bool = False

	def accessor(self, setter: bool) -> Optional[CallableTarget]:
		if setter and self.read_only:
			return None
		if setter:
			return CallableTarget(
				kind=MemberKind.FIELD_SETTER,
				name=self.name,
				declaring_type=self.declaring_type,
				is_static=self.is_static,
				result_type=VOID,
				value_type=self.type,
				visibility=self.visibility,
				impl=self.name,
				is_generic=self.is_generic,
			)
		return CallableTarget(
			kind=MemberKind.FIELD_GETTER,
			name=self.name,
			declaring_type=self.declaring_type,
			is_static=self.is_static,
			result_type=self.type,
			visibility=self.visibility,
			impl=self.name,
			is_generic=self.is_generic,
		)


__all__ = [
	"MemberKind",
	"ParamKind",
	"SearchOptions",
	"MEMBER_MASK",
	"FIELD_MASK",
	"PROPERTY_MASK",
	"SCOPE_MASK",
	"VISIBILITY_MASK",
	"DEFAULT_OPTIONS",
	"split_options",
	"Visibility",
	"admits",
	"name_matches",
	"Parameter",
	"CallableTarget",
	"PropertyInfo",
	"FieldInfo",
]
