#!/usr/bin/env python3
# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
# author: thunkforge developers; created: 2026-10-17
"""
Overload selection among type-compatible candidates.

The resolver hands over every candidate whose signature plan is possible; the
binder picks one:
- fewer explicit conversions wins,
- then fewer implicit widenings,
- then declaration order (the first candidate listed by the host).

There is no ambiguity error: equal scores resolve to the earlier candidate.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple, TypeVar

from thunkforge.conversion import ConversionKind, ConversionPlan

C = TypeVar("C")


def plan_cost(plans: Sequence[ConversionPlan]) -> Tuple[int, int]:
	"""(explicit conversions, implicit widenings) over a candidate's slot plans."""
	explicit = 0
	widen = 0
	for plan in plans:
		if plan.kind is ConversionKind.EXPLICIT_CONVERT:
			explicit += 1
		elif plan.kind is ConversionKind.IMPLICIT_WIDEN and not plan.discard:
			widen += 1
	return explicit, widen


def select_best(viable: List[Tuple[C, Sequence[ConversionPlan]]]) -> Optional[C]:
	"""Return the cheapest candidate, or None when nothing is viable."""
	best: Optional[C] = None
	best_cost: Optional[Tuple[int, int]] = None
	for candidate, plans in viable:
		cost = plan_cost(plans)
		if best_cost is None or cost < best_cost:
			best, best_cost = candidate, cost
	return best


__all__ = ["plan_cost", "select_best"]
