#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Builder configuration.

Defaults apply to every call that does not pass its own value. The module
level API builds its default builder from the environment:

- THUNKFORGE_THROW_ON_FAILURE: "1" (default) raises build failures, "0"
  returns None instead.
- THUNKFORGE_SEARCH: comma separated SearchOptions names used when a call
  passes no options, e.g. "INVOKE_METHOD,PUBLIC,INSTANCE".
- THUNKFORGE_CACHE: "1" gives the default builder a binding cache and
  memoized conversion plans. Off by default: both keep every container and
  type they saw alive for the life of the process. Builders created
  directly own their cache and have it on unless their config says
  otherwise.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from thunkforge.members import DEFAULT_OPTIONS, SearchOptions
from thunkforge.resolver import CONSTRUCTOR_NAME

ENV_THROW_ON_FAILURE = "THUNKFORGE_THROW_ON_FAILURE"
ENV_SEARCH = "THUNKFORGE_SEARCH"
ENV_CACHE = "THUNKFORGE_CACHE"


def parse_options(text: str) -> SearchOptions:
	"""Parse "NAME,NAME|NAME" into a mask; unknown names raise ValueError."""
	opts = SearchOptions.NONE
	for part in text.replace("|", ",").split(","):
		part = part.strip().upper()
		if not part:
			continue
		try:
			opts |= SearchOptions[part]
		except KeyError:
			raise ValueError(f"unknown search option {part!r}") from None
	return opts


@dataclass(frozen=True)
class BuildConfig:
	default_options: SearchOptions = DEFAULT_OPTIONS
	throw_on_failure: bool = True
	constructor_name: str = CONSTRUCTOR_NAME
	use_cache: bool = True

	@classmethod
	def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BuildConfig":
		env = os.environ if environ is None else environ
		search = env.get(ENV_SEARCH, "")
		return cls(
			default_options=parse_options(search) if search.strip() else DEFAULT_OPTIONS,
			throw_on_failure=env.get(ENV_THROW_ON_FAILURE, "1") != "0",
			use_cache=env.get(ENV_CACHE, "0") == "1",
		)


__all__ = ["BuildConfig", "parse_options", "ENV_THROW_ON_FAILURE", "ENV_SEARCH", "ENV_CACHE"]
