from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Sequence

from ...groups.model import Group
from ..principal import Principal
from ..scope import ScopeDescriptor


class ScopePolicy(ABC):
    """Strategy Pattern: one policy per principal variant."""

    @abstractmethod
    def groups(self, principal: Principal) -> ScopeDescriptor:
        raise NotImplementedError

    @abstractmethod
    def students(self, principal: Principal, groups: Sequence[Group]) -> ScopeDescriptor:
        raise NotImplementedError

    @abstractmethod
    def staff(self, principal: Principal) -> ScopeDescriptor:
        raise NotImplementedError

    @abstractmethod
    def sessions(self, principal: Principal, groups: Sequence[Group]) -> ScopeDescriptor:
        raise NotImplementedError


def groups_in_institution(
    groups: Sequence[Group],
    institution_id: int,
    predicate: Callable[[Group], bool],
) -> list[Group]:
    # The loaded list may come from anywhere; never trust it across tenants.
    return [g for g in groups if g.institution_id == institution_id and predicate(g)]


def member_ids(groups: Sequence[Group]) -> frozenset[int]:
    out: set[int] = set()
    for g in groups:
        out.update(g.student_ids)
    return frozenset(out)


def group_ids(groups: Sequence[Group]) -> frozenset[int]:
    return frozenset(g.group_id for g in groups)
