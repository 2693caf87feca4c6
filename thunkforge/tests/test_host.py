# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Introspection of Python classes through PyTypeHost."""

import functools
from dataclasses import dataclass
from typing import Any, ClassVar, Final, Generic, TypeVar

from thunkforge.members import MemberKind, ParamKind, SearchOptions
from thunkforge.typeinfo import VOID

T = TypeVar("T")

ALL = SearchOptions.STATIC | SearchOptions.INSTANCE | SearchOptions.PUBLIC | SearchOptions.NON_PUBLIC


class Account:
	rate: ClassVar[float] = 0.5
	LIMIT: Final[int] = 100
	currency = "EUR"
	owner: str

	def __init__(self, owner: str, balance: float = 0.0) -> None:
		self.owner = owner
		self.balance = balance

	def deposit(self, amount: float) -> float:
		self.balance += amount
		return self.balance

	def _audit(self) -> None:
		pass

	@staticmethod
	def fee(amount: float) -> float:
		return amount * 0.01

	@classmethod
	def open(cls, owner: str) -> "Account":
		return cls(owner)

	@property
	def label(self) -> str:
		return f"{self.owner}:{self.currency}"

	@functools.cached_property
	def digest(self) -> int:
		return hash(self.owner)

	def log(self, *lines: str, level: int = 0) -> int:
		return len(lines) + level


class Savings(Account):
	def deposit(self, amount: float) -> float:
		return super().deposit(amount * 2)


@dataclass(frozen=True)
class Point:
	x: int
	y: int = 0


class Box(Generic[T]):
	def __init__(self, item: T) -> None:
		self.item = item

	def get(self) -> T:
		return self.item


class IntBox(Box[int]):
	pass


def test_instance_procedure(host):
	(target,) = host.procedures(Account, "deposit", ALL)
	assert target.kind is MemberKind.PROCEDURE
	assert not target.is_static
	assert target.declaring_type is Account
	assert [p.type for p in target.params] == [float]
	assert target.result_type is float
	assert target.slot_count == 2


def test_static_and_class_methods(host):
	(fee,) = host.procedures(Account, "fee", ALL)
	assert fee.is_static
	assert [p.type for p in fee.params] == [float]
	(opener,) = host.procedures(Account, "open", ALL)
	assert opener.is_static
	assert [p.name for p in opener.params] == ["owner"]
	assert opener.result_type is Account
	assert isinstance(opener.impl(("bob")), Account)


def test_visibility_filter(host):
	public_only = SearchOptions.STATIC | SearchOptions.INSTANCE | SearchOptions.PUBLIC
	assert host.procedures(Account, "_audit", public_only) == []
	(audit,) = host.procedures(Account, "_audit", ALL)
	assert not audit.visibility.is_public


def test_case_folding(host):
	assert host.procedures(Account, "DEPOSIT", ALL) == []
	assert len(host.procedures(Account, "DEPOSIT", ALL | SearchOptions.IGNORE_CASE)) == 1


def test_inherited_members_and_declared_only(host):
	(own,) = host.procedures(Savings, "deposit", ALL)
	assert own.declaring_type is Savings
	(inherited,) = host.procedures(Savings, "fee", ALL)
	assert inherited.declaring_type is Account
	assert host.procedures(Savings, "fee", ALL | SearchOptions.DECLARED_ONLY) == []


def test_variadic_and_keyword_parameters(host):
	(log,) = host.procedures(Account, "log", ALL)
	assert [p.kind for p in log.params] == [ParamKind.VAR_POSITIONAL, ParamKind.KEYWORD]
	assert log.params[0].type == tuple[str, ...]


def test_properties(host):
	(label,) = host.properties(Account, "label", ALL)
	assert label.getter is not None
	assert label.setter is None
	assert label.type is str
	(digest,) = host.properties(Account, "digest", ALL)
	assert digest.getter.result_type is int
	assert digest.getter.kind is MemberKind.PROPERTY_GETTER


def test_fields(host):
	(rate,) = host.fields(Account, "rate", ALL)
	assert rate.is_static and rate.type is float and not rate.read_only
	(limit,) = host.fields(Account, "LIMIT", ALL)
	assert limit.is_static and limit.read_only and limit.type is int
	(currency,) = host.fields(Account, "currency", ALL)
	assert currency.is_static and currency.type is str
	(owner,) = host.fields(Account, "owner", ALL)
	assert not owner.is_static and owner.type is str
	assert host.fields(Account, "deposit", ALL) == []


def test_frozen_dataclass_fields_are_read_only(host):
	(x,) = host.fields(Point, "x", ALL)
	assert not x.is_static
	assert x.read_only
	assert x.accessor(setter=True) is None
	getter = x.accessor(setter=False)
	assert getter.kind is MemberKind.FIELD_GETTER
	assert getter.result_type is int


def test_constructor(host):
	(ctor,) = host.constructors(Point, ALL)
	assert ctor.kind is MemberKind.CONSTRUCTOR
	assert [p.type for p in ctor.params] == [int, int]
	assert ctor.result_type is Point
	assert not ctor.takes_receiver
	assert ctor.slot_count == 2


def test_generic_container_substitution(host):
	(get,) = host.procedures(Box[int], "get", ALL)
	assert get.result_type is int
	assert not get.is_generic
	(open_get,) = host.procedures(Box, "get", ALL)
	assert open_get.is_generic
	(inherited,) = host.procedures(IntBox, "get", ALL)
	assert inherited.result_type is int


def test_describe_free_function(host):
	def scale(x: float, factor: float) -> float:
		return x * factor

	target = host.describe(scale)
	assert target.is_static
	assert target.declaring_type is None
	assert [p.type for p in target.params] == [float, float]


def test_describe_function_within_container(host):
	target = host.describe(Account.deposit, Account)
	assert not target.is_static
	assert target.name == "deposit"
	static = host.describe(Account.fee, Account)
	assert static.is_static


def test_describe_bound_method(host):
	account = Account("ann")
	target = host.describe(account.deposit)
	assert target.is_static
	assert target.declaring_type is Account
	assert [p.type for p in target.params] == [float]
	opener = host.describe(Account.open)
	assert opener.declaring_type is Account


def test_describe_property_and_class(host):
	info = host.describe(Account.label, Account)
	assert info.getter is not None
	assert info.name == "label"
	ctor = host.describe(Account)
	assert ctor.kind is MemberKind.CONSTRUCTOR
	assert [p.name for p in ctor.params] == ["owner", "balance"]
	assert host.describe(42) is None


def test_void_result_and_unannotated(host):
	(audit,) = host.procedures(Account, "_audit", ALL)
	assert audit.result_type is VOID

	class Loose:
		def run(self, x):
			return x

	(run,) = host.procedures(Loose, "run", ALL)
	assert run.params[0].type is Any
	assert run.result_type is Any
