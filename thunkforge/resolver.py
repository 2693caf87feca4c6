#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Name-based member resolution.

`MemberResolver.resolve` turns (container, name, shape, options, bound) into
one compatible member, or a falsy `NotFound` carrying the reason:

- The constructor name (".ctor", case-insensitive) searches constructors
  only and ignores the member mask.
- Otherwise categories are tried in a fixed order, procedure, then property,
  then field; the first category with a compatible candidate wins.
- Procedures: unbound, static candidates come first and instance candidates
  (first shape parameter taken as the receiver) second. Bound to None, only
  static candidates are searched and the thunk is compiled unbound. Bound to
  a value, only instance candidates are searched, with that value as the
  receiver.
- Properties and fields: a VOID shape return selects the setter, anything
  else the getter. A member that exists without the requested accessor is
  reported as NO_SUCH_ACCESSOR rather than MEMBER_NOT_FOUND.

Candidates carrying unbound type parameters are never selected. Among the
compatible candidates of a category the binder picks the cheapest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Iterable, List, Optional, Tuple, Union

from thunkforge import binder
from thunkforge.compiler import UNBOUND, SignaturePlan, ThunkCompiler
from thunkforge.conversion import ConversionPlan
from thunkforge.errors import ArgumentNull
from thunkforge.host import TypeHost
from thunkforge.members import (
	CallableTarget,
	SearchOptions,
	split_options,
)
from thunkforge.shape import TargetShape
from thunkforge.typeinfo import is_open_generic, type_name

logger = logging.getLogger(__name__)

CONSTRUCTOR_NAME = ".ctor"


class NotFoundReason(Enum):
	MEMBER_NOT_FOUND = auto()
	NO_SUCH_ACCESSOR = auto()
	OPEN_GENERIC = auto()


@dataclass(frozen=True)
class NotFound:
	reason: NotFoundReason
	name: str
	container: str
	detail: str = ""

	def __bool__(self) -> bool:
		return False


@dataclass(frozen=True)
class Resolution:
	"""The selected member plus its precomputed signature plan."""

	target: CallableTarget
	plan: SignaturePlan
	bound: Any = UNBOUND


class _Search:
	"""Per-call bookkeeping: what was seen while no candidate matched."""

	def __init__(self) -> None:
		self.accessor_missing = False
		self.generic_skipped = False
		self.mismatches: List[str] = []


class MemberResolver:
	def __init__(
		self,
		host: TypeHost,
		compiler: ThunkCompiler,
		constructor_name: str = CONSTRUCTOR_NAME,
	) -> None:
		self.host = host
		self.compiler = compiler
		self.constructor_name = constructor_name

	def resolve(
		self,
		container: Any,
		name: str,
		shape: TargetShape,
		options: Optional[SearchOptions] = None,
		bound: Any = UNBOUND,
	) -> Union[Resolution, NotFound]:
		if container is None:
			raise ArgumentNull("container is None", argument="container")
		if name is None:
			raise ArgumentNull("member name is None", argument="name")
		if shape is None:
			raise ArgumentNull("target shape is None", argument="shape")
		if is_open_generic(container):
			return NotFound(NotFoundReason.OPEN_GENERIC, name, type_name(container), "container has unbound type parameters")

		members, binding = split_options(options)
		search = _Search()
		if name.casefold() == self.constructor_name.casefold():
			found = self._pick(search, shape, bound, self.host.constructors(container, binding))
			return found or self._not_found(search, name, container)

		if members & SearchOptions.INVOKE_METHOD:
			found = self._procedures(search, container, name, shape, binding, bound)
			if found:
				return found

		setter = shape.returns_void
		wanted_property = SearchOptions.SET_PROPERTY if setter else SearchOptions.GET_PROPERTY
		if members & wanted_property:
			props = self.host.properties(container, name, binding)
			found = self._accessors(search, shape, bound, props, setter)
			if found:
				return found

		wanted_field = SearchOptions.SET_FIELD if setter else SearchOptions.GET_FIELD
		if members & wanted_field:
			fields = self.host.fields(container, name, binding)
			found = self._accessors(search, shape, bound, fields, setter)
			if found:
				return found

		return self._not_found(search, name, container)

	# -- categories ----------------------------------------------------------

	def _procedures(
		self,
		search: _Search,
		container: Any,
		name: str,
		shape: TargetShape,
		binding: SearchOptions,
		bound: Any,
	) -> Optional[Resolution]:
		candidates = self.host.procedures(container, name, binding)
		statics = [c for c in candidates if c.is_static]
		instances = [c for c in candidates if not c.is_static]
		if bound is None:
			return self._pick(search, shape, UNBOUND, statics)
		if bound is not UNBOUND:
			return self._pick(search, shape, bound, instances)
		found = self._pick(search, shape, UNBOUND, statics)
		if found or shape.arity == 0:
			return found
		return self._pick(search, shape, UNBOUND, instances)

	def _accessors(
		self,
		search: _Search,
		shape: TargetShape,
		bound: Any,
		infos: Iterable[Any],
		setter: bool,
	) -> Optional[Resolution]:
		statics: List[CallableTarget] = []
		instances: List[CallableTarget] = []
		for info in infos:
			accessor = info.accessor(setter)
			if accessor is None:
				search.accessor_missing = True
				continue
			(statics if accessor.is_static else instances).append(accessor)
		if bound is None:
			return self._pick(search, shape, UNBOUND, statics)
		if bound is not UNBOUND:
			return self._pick(search, shape, bound, instances)
		return self._pick(search, shape, UNBOUND, statics) or self._pick(search, shape, UNBOUND, instances)

	# -- selection -----------------------------------------------------------

	def _pick(
		self,
		search: _Search,
		shape: TargetShape,
		bound: Any,
		candidates: Iterable[CallableTarget],
	) -> Optional[Resolution]:
		viable: List[Tuple[Tuple[CallableTarget, SignaturePlan], Tuple[ConversionPlan, ...]]] = []
		for target in candidates:
			if target.is_generic:
				search.generic_skipped = True
				logger.debug("skipping open generic candidate %s", target.describe())
				continue
			plan = self.compiler.plan_signature(shape, target, bound)
			if not plan:
				search.mismatches.append(plan.reason)
				continue
			viable.append(((target, plan), plan.plans))
		best = binder.select_best(viable)
		if best is None:
			return None
		target, plan = best
		logger.debug("resolved %s for shape %s", target.describe(), shape)
		return Resolution(target=target, plan=plan, bound=bound)

	def _not_found(self, search: _Search, name: str, container: Any) -> NotFound:
		if search.accessor_missing:
			reason = NotFoundReason.NO_SUCH_ACCESSOR
		elif search.generic_skipped and not search.mismatches:
			reason = NotFoundReason.OPEN_GENERIC
		else:
			reason = NotFoundReason.MEMBER_NOT_FOUND
		detail = "; ".join(search.mismatches)
		logger.debug("no member %s on %s (%s) %s", name, type_name(container), reason.name, detail)
		return NotFound(reason, name, type_name(container), detail)


__all__ = [
	"CONSTRUCTOR_NAME",
	"NotFoundReason",
	"NotFound",
	"Resolution",
	"MemberResolver",
]
