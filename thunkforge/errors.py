#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Structured errors raised while building or invoking thunks.

Every error carries a stable `reason_code` plus enough context (member name,
container, shape) to render a useful message or a JSON-friendly dict. Build
time errors obey the caller's `throw_on_failure` policy; call time errors
(`ArityMismatch`, `NullReceiver`, `AccessDenied`, `CastError`) always raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(eq=False)
class ThunkError(Exception):
	"""Base class for all thunkforge errors."""

	message: str
	reason_code: str = "thunk_error"
	member: str | None = None
	container: str | None = None
	shape: str | None = None

	def __str__(self) -> str:
		return self.format_human()

	def to_dict(self) -> dict[str, Any]:
		return {
			"reason_code": self.reason_code,
			"message": self.message,
			"member": self.member,
			"container": self.container,
			"shape": self.shape,
		}

	def format_human(self) -> str:
		parts: list[str] = [f"[{self.reason_code}] {self.message}"]
		if self.container:
			parts.append(f"container={self.container}")
		if self.member:
			parts.append(f"member={self.member}")
		if self.shape:
			parts.append(f"shape={self.shape}")
		return " ".join(parts)


@dataclass(eq=False)
class ArgumentNull(ThunkError, ValueError):
	"""A required input was None."""

	reason_code: str = "argument_null"
	argument: str | None = None

	def to_dict(self) -> dict[str, Any]:
		out = super().to_dict()
		out["argument"] = self.argument
		return out


@dataclass(eq=False)
class InvalidShapeDescriptor(ThunkError, TypeError):
	"""The target shape does not describe exactly one call signature."""

	reason_code: str = "invalid_shape_descriptor"


@dataclass(eq=False)
class OpenGenericTarget(ThunkError):
	"""The member or its container still has unbound type parameters."""

	reason_code: str = "open_generic_target"


@dataclass(eq=False)
class MemberNotFound(ThunkError, LookupError):
	"""No member with a compatible signature exists under the given name."""

	reason_code: str = "member_not_found"


@dataclass(eq=False)
class NoSuchAccessor(MemberNotFound):
	"""A property/field exists but lacks the requested getter or setter."""

	reason_code: str = "no_such_accessor"


@dataclass(eq=False)
class ConversionImpossible(ThunkError):
	"""A parameter or result slot cannot be converted to the member's type."""

	reason_code: str = "conversion_impossible"


@dataclass(eq=False)
class ArityMismatch(ThunkError, TypeError):
	"""A thunk was invoked with the wrong number of arguments."""

	reason_code: str = "arity_mismatch"
	expected: int = 0
	got: int = 0

	def to_dict(self) -> dict[str, Any]:
		out = super().to_dict()
		out["expected"] = self.expected
		out["got"] = self.got
		return out


@dataclass(eq=False)
class AccessDenied(ThunkError):
	"""The runtime refused the access the thunk was built for."""

	reason_code: str = "access_denied"


@dataclass(eq=False)
class NullReceiver(ThunkError):
	"""An instance member closed over a None receiver was invoked."""

	reason_code: str = "null_receiver"


@dataclass(eq=False)
class CastError(ThunkError, TypeError):
	"""A checked conversion failed on the value supplied at call time."""

	reason_code: str = "cast_error"
	value_type: str | None = None
	target_type: str | None = None

	def to_dict(self) -> dict[str, Any]:
		out = super().to_dict()
		out["value_type"] = self.value_type
		out["target_type"] = self.target_type
		return out


__all__ = [
	"ThunkError",
	"ArgumentNull",
	"InvalidShapeDescriptor",
	"OpenGenericTarget",
	"MemberNotFound",
	"NoSuchAccessor",
	"ConversionImpossible",
	"ArityMismatch",
	"AccessDenied",
	"NullReceiver",
	"CastError",
]
