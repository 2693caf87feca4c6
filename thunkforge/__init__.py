#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
thunkforge: build shape-checked adapter callables for Python members.

Given a target shape (`Callable[[A, B], R]` or a one-method protocol) and a
member (a function, method, constructor, property or field, either directly
or by name on a class), thunkforge resolves the member once, plans every
argument and result conversion at build time and returns a `Thunk` that only
checks the argument count and applies the precomputed plans per call.
"""

from thunkforge.builder import (
	ThunkBuilder,
	bind,
	create_instance_creator,
	create_invoker,
	create_thunk,
	create_thunk_lazy,
	default_builder,
	reset_default_builder,
	wrap,
)
from thunkforge.cache import BindingCache, LazyThunk
from thunkforge.compiler import UNBOUND, InstanceCreator, Invoker, Thunk, ThunkCompiler
from thunkforge.config import BuildConfig
from thunkforge.conversion import ConversionKind, ConversionPlan, ConversionPlanner
from thunkforge.errors import (
	AccessDenied,
	ArgumentNull,
	ArityMismatch,
	CastError,
	ConversionImpossible,
	InvalidShapeDescriptor,
	MemberNotFound,
	NoSuchAccessor,
	NullReceiver,
	OpenGenericTarget,
	ThunkError,
)
from thunkforge.host import PyTypeHost, TypeHost
from thunkforge.members import (
	CallableTarget,
	FieldInfo,
	MemberKind,
	Parameter,
	PropertyInfo,
	SearchOptions,
	Visibility,
)
from thunkforge.registry import MemberTable
from thunkforge.resolver import CONSTRUCTOR_NAME, MemberResolver, NotFound, NotFoundReason, Resolution
from thunkforge.shape import TargetShape
from thunkforge.typeinfo import VOID, Ref

__all__ = [
	"ThunkBuilder",
	"bind",
	"create_instance_creator",
	"create_invoker",
	"create_thunk",
	"create_thunk_lazy",
	"default_builder",
	"reset_default_builder",
	"wrap",
	"BindingCache",
	"LazyThunk",
	"UNBOUND",
	"InstanceCreator",
	"Invoker",
	"Thunk",
	"ThunkCompiler",
	"BuildConfig",
	"ConversionKind",
	"ConversionPlan",
	"ConversionPlanner",
	"AccessDenied",
	"ArgumentNull",
	"ArityMismatch",
	"CastError",
	"ConversionImpossible",
	"InvalidShapeDescriptor",
	"MemberNotFound",
	"NoSuchAccessor",
	"NullReceiver",
	"OpenGenericTarget",
	"ThunkError",
	"PyTypeHost",
	"TypeHost",
	"CallableTarget",
	"FieldInfo",
	"MemberKind",
	"Parameter",
	"PropertyInfo",
	"SearchOptions",
	"Visibility",
	"MemberTable",
	"CONSTRUCTOR_NAME",
	"MemberResolver",
	"NotFound",
	"NotFoundReason",
	"Resolution",
	"TargetShape",
	"VOID",
	"Ref",
]
