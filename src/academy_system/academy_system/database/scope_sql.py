from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from ..access.scope import ScopeDescriptor
from .mysql_base import in_clause


@dataclass(frozen=True)
class ScopeColumns:
    """Column names a repository exposes to scope filtering.

    ``member_exists`` is an SQL predicate with a single ``%s`` placeholder for
    the member id, e.g. an ``EXISTS`` over the membership table.
    """

    institution_id: str
    record_id: str
    sede_id: Optional[str] = None
    owner_id: Optional[str] = None
    member_exists: Optional[str] = None
    group_id: Optional[str] = None


def _require(column: Optional[str], name: str) -> str:
    if not column:
        raise ValueError(f"Scope constrains {name} but the repository exposes no column for it")
    return column


def scope_where(scope: ScopeDescriptor, columns: ScopeColumns) -> Tuple[str, List[Any]]:
    """Translate a scope descriptor into a parameterised WHERE fragment."""

    if scope.is_empty:
        return "1=0", []

    clauses = [f"{columns.institution_id}=%s"]
    params: List[Any] = [scope.institution_id]

    if scope.sede_id is not None:
        clauses.append(f"{_require(columns.sede_id, 'sede_id')}=%s")
        params.append(scope.sede_id)
    if scope.owner_id is not None:
        clauses.append(f"{_require(columns.owner_id, 'owner_id')}=%s")
        params.append(scope.owner_id)
    if scope.member_id is not None:
        clauses.append(_require(columns.member_exists, "member_id"))
        params.append(scope.member_id)
    if scope.ids is not None:
        sql, values = in_clause(columns.record_id, sorted(scope.ids))
        clauses.append(sql)
        params.extend(values)
    if scope.group_ids is not None:
        sql, values = in_clause(_require(columns.group_id, "group_ids"), sorted(scope.group_ids))
        clauses.append(sql)
        params.extend(values)

    return " AND ".join(clauses), params
