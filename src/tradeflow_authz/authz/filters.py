"""
tradeflow_authz.authz.filters

Category filter builders for list views, pickers and upload flows.

Responsibilities:
- Turn a resolved view into a PostgREST `in.(...)` restriction clause.
- Filter already-fetched records by their category reference.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from tradeflow_authz.authz.models import AuthorizationView

R = TypeVar("R", bound=Mapping[str, Any])


def category_query_params(
    view: AuthorizationView, *, column: str = "category_id"
) -> dict[str, str]:
    """
    Query params restricting `column` to the view's allowed categories.

    Empty when no restriction applies. A restricted view with no allowed categories
    yields `in.()`, which matches no rows.
    """

    ids = view.filter_ids_for_query()
    if ids is None:
        return {}
    return {column: f"in.({','.join(_quote(i) for i in sorted(ids))})"}


def _quote(value: str) -> str:
    # PostgREST list items: double-quoted, with `"` and `\` backslash-escaped.
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def filter_by_category(
    records: Iterable[R], view: AuthorizationView, *, key: str = "category_id"
) -> list[R]:
    ids = view.filter_ids_for_query()
    if ids is None:
        return list(records)
    # Records without a category reference are outside every grant.
    return [r for r in records if r.get(key) in ids]
