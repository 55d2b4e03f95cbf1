"""
Node category policy.

Category rules are data: fixed vocabularies of house names, status tokens
and policy areas plus a bill id prefix. Ingestion asks a CategoryPolicy
to classify each subject and object, so alternative vocabularies can be
injected without touching the parsers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Tuple

from .model import NodeCategory


@dataclass(frozen=True)
class CategoryPolicy:
    bill_prefixes: Tuple[str, ...] = ("Bill",)
    houses: FrozenSet[str] = frozenset({"Commons", "Lords", "Unassigned"})
    status_exact: FrozenSet[str] = frozenset({"Royal_Assent"})
    status_substrings: Tuple[str, ...] = ("reading",)
    policy_areas: FrozenSet[str] = frozenset(
        {"Education", "Health", "Defense", "Economy", "Environment", "Transport"}
    )

    def classify_subject(self, value: str) -> NodeCategory:
        if any(value.startswith(p) for p in self.bill_prefixes):
            return NodeCategory.BILL
        return NodeCategory.PROPERTY

    def classify_object(self, value: str) -> NodeCategory:
        # Order matters: a house name that happened to contain "reading"
        # is still a house.
        if value in self.houses:
            return NodeCategory.HOUSE
        if value in self.status_exact or any(s in value for s in self.status_substrings):
            return NodeCategory.STATUS
        if value in self.policy_areas:
            return NodeCategory.POLICY_AREA
        return NodeCategory.PROPERTY


DEFAULT_POLICY = CategoryPolicy()


def humanize_label(value: str) -> str:
    """Display label for an identifier: "Royal_Assent" -> "Royal Assent"."""
    return value.replace("_", " ")
