# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Error records behave like ordinary exceptions."""

from contextlib import contextmanager
from dataclasses import replace
from typing import Callable

import pytest

from thunkforge.errors import ArityMismatch, CastError, MemberNotFound, NoSuchAccessor


@contextmanager
def scope():
	yield


def square(x: int) -> int:
	return x * x


def test_call_time_errors_cross_context_managers(builder):
	thunk = builder.create_thunk(Callable[[int], int], square)
	with pytest.raises(ArityMismatch) as info:
		with scope():
			thunk(1, 2)
	assert info.value.__traceback__ is not None
	assert (info.value.expected, info.value.got) == (1, 2)


def test_build_errors_cross_context_managers(builder):
	with pytest.raises(MemberNotFound):
		with scope():
			builder.create_thunk(Callable[[int], int], int, "no_such_member")


def test_notes_can_be_added():
	error = CastError("cannot convert str value to int", value_type="str", target_type="int")
	error.add_note("while adapting a callback")
	assert error.__notes__ == ["while adapting a callback"]


def test_identity_hashing_and_copies():
	error = NoSuchAccessor("no setter", member="size", container="Gadget")
	assert {error: 1}[error] == 1
	copy = replace(error)
	assert copy is not error
	assert copy.to_dict() == error.to_dict()
	assert isinstance(copy, LookupError)


def test_rendering():
	error = ArityMismatch("add takes 2 argument(s), got 1", member="add", expected=2, got=1)
	assert str(error) == "[arity_mismatch] add takes 2 argument(s), got 1 member=add"
	assert error.to_dict()["expected"] == 2
	assert isinstance(error, TypeError)
