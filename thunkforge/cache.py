#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Build-once memoization of thunk lookups.

`BindingCache.get_or_build(key, build)` runs `build` at most once per key,
even when several threads ask for the same key at the same time: the table
lock only guards the dictionaries, and each key gets its own lock held while
its build runs, so unrelated keys never wait on each other.

Both outcomes are memoized: a thunk, a None ("not found" under a lenient
policy) or the ThunkError the build raised. A memoized error is raised again
as a fresh copy on every later lookup.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

from thunkforge.errors import ThunkError

logger = logging.getLogger(__name__)

BindingKey = Tuple[Hashable, ...]


def binding_key(container: Any, name: str, shape: Any, options: Any, bound: Any) -> BindingKey:
	"""(container identity, member name, shape, options, bound identity)."""
	return (container, name, shape, int(options) if options is not None else None, id(bound))


@dataclass(frozen=True)
class _Outcome:
	value: Any = None
	error: Optional[ThunkError] = None

	def unwrap(self) -> Any:
		if self.error is not None:
			raise replace(self.error)
		return self.value


class BindingCache:
	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._outcomes: Dict[BindingKey, _Outcome] = {}
		self._building: Dict[BindingKey, threading.Lock] = {}
		self._stats: Dict[str, int] = {"hits": 0, "misses": 0, "builds": 0, "failures": 0}

	def get_or_build(self, key: BindingKey, build: Callable[[], Any]) -> Any:
		with self._lock:
			outcome = self._outcomes.get(key)
			if outcome is not None:
				self._stats["hits"] += 1
				return outcome.unwrap()
			self._stats["misses"] += 1
			key_lock = self._building.setdefault(key, threading.Lock())

		with key_lock:
			with self._lock:
				outcome = self._outcomes.get(key)
			if outcome is None:
				outcome = self._build(key, build)
				with self._lock:
					self._outcomes[key] = outcome
					self._building.pop(key, None)
		return outcome.unwrap()

	def _build(self, key: BindingKey, build: Callable[[], Any]) -> _Outcome:
		with self._lock:
			self._stats["builds"] += 1
		try:
			return _Outcome(value=build())
		except ThunkError as exc:
			logger.debug("memoizing failed build for %r: %s", key, exc.reason_code)
			with self._lock:
				self._stats["failures"] += 1
			return _Outcome(error=exc)

	def __contains__(self, key: BindingKey) -> bool:
		with self._lock:
			return key in self._outcomes

	def __len__(self) -> int:
		with self._lock:
			return len(self._outcomes)

	def stats(self, *, reset: bool = False) -> Dict[str, float | int]:
		with self._lock:
			hits = self._stats["hits"]
			misses = self._stats["misses"]
			total = hits + misses
			stats: Dict[str, float | int] = {
				**self._stats,
				"size": len(self._outcomes),
				"hit_rate": float(hits / total) if total else 0.0,
			}
			if reset:
				for name in self._stats:
					self._stats[name] = 0
		return stats

	def clear(self) -> None:
		with self._lock:
			self._outcomes.clear()
			for name in self._stats:
				self._stats[name] = 0


class LazyThunk:
	"""
	Deferred build: the factory runs on first `.value` access.

	Single-flight like BindingCache; the outcome (a thunk, None or a raised
	ThunkError) is kept, so later accesses never rebuild.
	"""

	def __init__(self, factory: Callable[[], Any]) -> None:
		self._factory: Optional[Callable[[], Any]] = factory
		self._lock = threading.Lock()
		self._outcome: Optional[_Outcome] = None

	@property
	def is_value_created(self) -> bool:
		return self._outcome is not None

	@property
	def value(self) -> Any:
		outcome = self._outcome
		if outcome is None:
			with self._lock:
				outcome = self._outcome
				if outcome is None:
					factory = self._factory
					try:
						outcome = _Outcome(value=factory())
					except ThunkError as exc:
						outcome = _Outcome(error=exc)
					self._outcome = outcome
					self._factory = None
		return outcome.unwrap()

	def __call__(self, *args: Any) -> Any:
		thunk = self.value
		if thunk is None:
			raise TypeError("lazy thunk resolved to nothing; build it with throw_on_failure=True to see why")
		return thunk(*args)

	def __repr__(self) -> str:
		state = "created" if self._outcome is not None else "pending"
		return f"LazyThunk({state})"


__all__ = ["BindingKey", "binding_key", "BindingCache", "LazyThunk"]
