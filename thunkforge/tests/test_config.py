# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
import pytest

from thunkforge.config import BuildConfig, parse_options
from thunkforge.members import DEFAULT_OPTIONS, SearchOptions


def test_defaults():
	config = BuildConfig.from_env({})
	assert config.throw_on_failure
	assert not config.use_cache
	assert BuildConfig().use_cache
	assert config.default_options == DEFAULT_OPTIONS
	assert config.constructor_name == ".ctor"


def test_environment_overrides():
	config = BuildConfig.from_env(
		{
			"THUNKFORGE_THROW_ON_FAILURE": "0",
			"THUNKFORGE_SEARCH": "invoke_method, PUBLIC",
			"THUNKFORGE_CACHE": "1",
		}
	)
	assert not config.throw_on_failure
	assert config.use_cache
	assert config.default_options == SearchOptions.INVOKE_METHOD | SearchOptions.PUBLIC


def test_parse_options():
	assert parse_options("STATIC|INSTANCE") == SearchOptions.STATIC | SearchOptions.INSTANCE
	assert parse_options("") == SearchOptions.NONE
	with pytest.raises(ValueError):
		parse_options("EVERYTHING")
