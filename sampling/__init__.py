"""Sampling engines used by the schedule generator."""

from .round_robin import SelectionResult, round_robin_select

__all__ = ["SelectionResult", "round_robin_select"]
