#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Public entry points.

A `ThunkBuilder` ties a TypeHost, a ThunkCompiler, a MemberResolver, an
optional BindingCache and a BuildConfig together. The module level functions
delegate to a process-wide default builder configured from the environment
(see thunkforge.config).

Failure policy:
- ArgumentNull and InvalidShapeDescriptor always raise.
- Build failures (MemberNotFound, NoSuchAccessor, OpenGenericTarget,
  ConversionImpossible) raise when `throw_on_failure` is true and turn into
  None otherwise.
- Errors at call time (ArityMismatch, NullReceiver, AccessDenied, CastError)
  always raise from the thunk itself.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from thunkforge.cache import BindingCache, LazyThunk, binding_key
from thunkforge.compiler import UNBOUND, InstanceCreator, Invoker, Thunk, ThunkCompiler
from thunkforge.config import BuildConfig
from thunkforge.conversion import ConversionPlanner
from thunkforge.errors import (
	ArgumentNull,
	ConversionImpossible,
	InvalidShapeDescriptor,
	MemberNotFound,
	NoSuchAccessor,
	OpenGenericTarget,
	ThunkError,
)
from thunkforge.host import PyTypeHost, TypeHost
from thunkforge.members import CallableTarget, FieldInfo, PropertyInfo, SearchOptions
from thunkforge.resolver import MemberResolver, NotFound, NotFoundReason
from thunkforge.shape import TargetShape
from thunkforge.typeinfo import close_open_generic, is_open_generic, type_name

logger = logging.getLogger(__name__)


def _not_found_error(miss: NotFound, shape: TargetShape) -> ThunkError:
	message = f"no {miss.name!r} on {miss.container} matching {shape}"
	if miss.detail:
		message = f"{message}: {miss.detail}"
	if miss.reason is NotFoundReason.NO_SUCH_ACCESSOR:
		error_cls = NoSuchAccessor
		message = f"{miss.name!r} on {miss.container} has no {'setter' if shape.returns_void else 'getter'} matching {shape}"
	elif miss.reason is NotFoundReason.OPEN_GENERIC:
		error_cls = OpenGenericTarget
	else:
		error_cls = MemberNotFound
	return error_cls(message, member=miss.name, container=miss.container, shape=str(shape))


class ThunkBuilder:
	def __init__(
		self,
		host: Optional[TypeHost] = None,
		config: Optional[BuildConfig] = None,
		cache: Optional[BindingCache] = None,
		planner: Optional[ConversionPlanner] = None,
	) -> None:
		self.host: TypeHost = host if host is not None else PyTypeHost()
		self.config = config or BuildConfig()
		if planner is None:
			planner = ConversionPlanner(memoize=self.config.use_cache)
		self.compiler = ThunkCompiler(planner)
		self.resolver = MemberResolver(self.host, self.compiler, self.config.constructor_name)
		if cache is None and self.config.use_cache:
			cache = BindingCache()
		self.cache = cache

	# -- thunks --------------------------------------------------------------

	def create_thunk(
		self,
		shape: Any,
		member: Any,
		name: Optional[str] = None,
		*,
		options: Optional[SearchOptions] = None,
		bound: Any = UNBOUND,
		throw_on_failure: Optional[bool] = None,
		container: Any = None,
	) -> Optional[Thunk]:
		"""
		Build a thunk for `shape`.

		With `name` None, `member` is a direct handle (CallableTarget,
		PropertyInfo, FieldInfo, function, bound method, staticmethod,
		classmethod with `container`, property, or a class for its
		constructor). Otherwise `member` is the container searched for `name`.
		"""
		target_shape = TargetShape.of(shape)
		if member is None:
			raise ArgumentNull("member is None", argument="member" if name is None else "container")
		throw = self.config.throw_on_failure if throw_on_failure is None else throw_on_failure
		if name is None:
			return self._policy(throw, lambda: self._build_direct(target_shape, member, container, bound))
		return self._policy(throw, lambda: self._named(target_shape, member, name, options, bound))

	def create_thunk_lazy(
		self,
		shape: Any,
		member: Any,
		name: Optional[str] = None,
		**kwargs: Any,
	) -> LazyThunk:
		"""Like create_thunk, but resolve and compile on first use."""
		target_shape = TargetShape.of(shape)
		if member is None:
			raise ArgumentNull("member is None", argument="member" if name is None else "container")
		return LazyThunk(lambda: self.create_thunk(target_shape, member, name, **kwargs))

	def bind(
		self,
		shape: Any,
		instance: Any,
		name: str,
		*,
		options: Optional[SearchOptions] = None,
		throw_on_failure: Optional[bool] = None,
	) -> Optional[Thunk]:
		"""
		Resolve `name` on the instance's runtime type with the instance as receiver.

		Instances created through a parametrized class (`Box[int](3)`) resolve
		against that closed type; other generic instances see their remaining
		type parameters as Any.
		"""
		if instance is None:
			raise ArgumentNull("instance is None", argument="instance")
		container = getattr(instance, "__orig_class__", type(instance))
		if is_open_generic(container):
			container = close_open_generic(container)
		return self.create_thunk(
			shape,
			container,
			name,
			options=options,
			bound=instance,
			throw_on_failure=throw_on_failure,
		)

	def wrap(self, shape: Any, source: Any) -> Optional[Thunk]:
		return self.compiler.wrap(TargetShape.of(shape), source)

	# -- reflective helpers --------------------------------------------------

	def create_invoker(self, member: Any, container: Any = None) -> Invoker:
		if member is None:
			raise ArgumentNull("member is None", argument="member")
		target = self._describe(member, container, setter=False)
		return self.compiler.invoker(target)

	def create_instance_creator(self, subject: Any) -> InstanceCreator:
		"""Constructor invoker for a constructor target, or a class's no-argument constructor."""
		if subject is None:
			raise ArgumentNull("container is None", argument="container")
		if isinstance(subject, CallableTarget):
			return self.compiler.instance_creator(subject)
		ctors = self.host.constructors(subject, SearchOptions.INSTANCE | SearchOptions.PUBLIC | SearchOptions.NON_PUBLIC)
		nullary = [c for c in ctors if not c.params]
		if nullary:
			return self.compiler.instance_creator(nullary[0])
		if len(ctors) == 1:
			return self.compiler.instance_creator(ctors[0])
		raise MemberNotFound(
			f"{type_name(subject)} has no parameterless constructor",
			member="constructor",
			container=type_name(subject),
		)

	# -- internals -----------------------------------------------------------

	def _policy(self, throw: bool, build: Callable[[], Optional[Thunk]]) -> Optional[Thunk]:
		try:
			return build()
		except (ArgumentNull, InvalidShapeDescriptor):
			raise
		except ThunkError as exc:
			if throw:
				raise
			logger.debug("build failed (%s): %s", exc.reason_code, exc.message)
			return None

	def _describe(self, member: Any, container: Any, *, setter: bool) -> CallableTarget:
		described = self.host.describe(member, container)
		if described is None:
			raise MemberNotFound(f"{member!r} is not a member handle", member=repr(member))
		if isinstance(described, (PropertyInfo, FieldInfo)):
			accessor = described.accessor(setter)
			if accessor is None:
				raise NoSuchAccessor(
					f"{described.name!r} has no {'setter' if setter else 'getter'}",
					member=described.name,
					container=type_name(described.declaring_type),
				)
			return accessor
		return described

	def _build_direct(self, shape: TargetShape, member: Any, container: Any, bound: Any) -> Thunk:
		target = self._describe(member, container, setter=shape.returns_void)
		if target.is_generic:
			raise OpenGenericTarget(
				f"{target.describe()} has unbound type parameters",
				member=target.name,
				shape=str(shape),
			)
		plan = self.compiler.plan_signature(shape, target, bound)
		if not plan:
			raise ConversionImpossible(plan.reason, member=target.name, shape=str(shape))
		return self.compiler.emit(plan)

	def _named(
		self,
		shape: TargetShape,
		container: Any,
		name: str,
		options: Optional[SearchOptions],
		bound: Any,
	) -> Thunk:
		opts = self.config.default_options if options is None else options
		if self.cache is None or (bound is not UNBOUND and bound is not None):
			return self._build_named(shape, container, name, opts, bound)
		key = binding_key(container, name, shape, opts, bound)
		return self.cache.get_or_build(key, lambda: self._build_named(shape, container, name, opts, bound))

	def _build_named(
		self,
		shape: TargetShape,
		container: Any,
		name: str,
		options: SearchOptions,
		bound: Any,
	) -> Thunk:
		resolved = self.resolver.resolve(container, name, shape, options, bound)
		if not resolved:
			raise _not_found_error(resolved, shape)
		return self.compiler.emit(resolved.plan)


_default: Optional[ThunkBuilder] = None
_default_lock = threading.Lock()


def default_builder() -> ThunkBuilder:
	global _default
	with _default_lock:
		if _default is None:
			_default = ThunkBuilder(config=BuildConfig.from_env())
		return _default


def reset_default_builder() -> None:
	"""Drop the default builder; the next call re-reads the environment."""
	global _default
	with _default_lock:
		_default = None


def create_thunk(shape: Any, member: Any, name: Optional[str] = None, **kwargs: Any) -> Optional[Thunk]:
	return default_builder().create_thunk(shape, member, name, **kwargs)


def create_thunk_lazy(shape: Any, member: Any, name: Optional[str] = None, **kwargs: Any) -> LazyThunk:
	return default_builder().create_thunk_lazy(shape, member, name, **kwargs)


def bind(shape: Any, instance: Any, name: str, **kwargs: Any) -> Optional[Thunk]:
	return default_builder().bind(shape, instance, name, **kwargs)


def wrap(shape: Any, source: Any) -> Optional[Thunk]:
	return default_builder().wrap(shape, source)


def create_invoker(member: Any, container: Any = None) -> Invoker:
	return default_builder().create_invoker(member, container)


def create_instance_creator(subject: Any) -> InstanceCreator:
	return default_builder().create_instance_creator(subject)


__all__ = [
	"ThunkBuilder",
	"default_builder",
	"reset_default_builder",
	"create_thunk",
	"create_thunk_lazy",
	"bind",
	"wrap",
	"create_invoker",
	"create_instance_creator",
]
