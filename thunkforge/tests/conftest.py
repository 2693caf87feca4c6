# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import pytest

from thunkforge import builder as builder_module
from thunkforge.builder import ThunkBuilder
from thunkforge.compiler import ThunkCompiler
from thunkforge.conversion import ConversionPlanner
from thunkforge.host import PyTypeHost
from thunkforge.registry import MemberTable


@pytest.fixture
def planner() -> ConversionPlanner:
	return ConversionPlanner()


@pytest.fixture
def compiler(planner: ConversionPlanner) -> ThunkCompiler:
	return ThunkCompiler(planner)


@pytest.fixture
def host() -> PyTypeHost:
	return PyTypeHost()


@pytest.fixture
def table() -> MemberTable:
	return MemberTable()


@pytest.fixture
def builder() -> ThunkBuilder:
	return ThunkBuilder()


@pytest.fixture(autouse=True)
def _fresh_default_builder():
	"""
	The module level API caches a builder configured from the environment.

	Drop it around every test so monkeypatched variables take effect and no
	memoized thunk leaks between tests.
	"""
	builder_module.reset_default_builder()
	yield
	builder_module.reset_default_builder()
