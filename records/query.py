"""
Listing query construction.

Turns request filters (free-text search, equality filters, pagination) into a
SQLAlchemy query. Search terms are matched case-insensitively as substrings,
OR-ed across the resource's search fields; equality filters and the access
scope clause are AND-ed on top. Listings are newest-first.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import and_, desc, or_
from sqlalchemy.orm import Query

from records.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def _positive_int(value, name: str, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError.single(name, f"{name} must be an integer")
    if number < 1:
        raise ValidationError.single(name, f"{name} must be at least 1")
    return number


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class ListParams:
    """Parsed listing parameters. Empty filter values are dropped."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    search: Optional[str] = None
    filters: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, page=None, limit=None, search=None, **filters) -> "ListParams":
        return cls(
            page=_positive_int(page, "page", DEFAULT_PAGE),
            limit=_positive_int(limit, "limit", DEFAULT_LIMIT),
            search=search.strip() if search and search.strip() else None,
            filters={k: v for k, v in filters.items() if v not in (None, "")},
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class Page:
    items: List[Any]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.total else 0

    def to_dict(self, serialize=None) -> Dict[str, Any]:
        serialize = serialize or (lambda item: item.to_dict())
        return {
            "items": [serialize(item) for item in self.items],
            "totalPages": self.total_pages,
            "currentPage": self.page,
            "total": self.total,
        }


class QueryBuilder:
    """
    Builds a scoped, filtered, paginated listing over one model.

    Args:
        model: ORM class being listed
        search_fields: columns matched by free-text search
        filter_fields: request filter name -> column for equality filters
    """

    def __init__(self, model, search_fields: Sequence, filter_fields: Optional[Dict[str, Any]] = None):
        self.model = model
        self.search_fields = list(search_fields)
        self.filter_fields = dict(filter_fields or {})

    def search_clause(self, term: Optional[str]):
        if not term or not self.search_fields:
            return None
        pattern = f"%{escape_like(term)}%"
        return or_(*[column.ilike(pattern, escape="\\") for column in self.search_fields])

    def filter_clauses(self, filters: Dict[str, Any]) -> List:
        clauses = []
        for name, value in filters.items():
            column = self.filter_fields.get(name)
            if column is None:
                logger.debug(f"Ignoring unknown filter '{name}' on {self.model.__tablename__}")
                continue
            clauses.append(column == value)
        return clauses

    def build(self, query: Query, params: ListParams, scope=None) -> Query:
        """Apply search, filters and scope; `scope` is always AND-ed in."""
        clauses = self.filter_clauses(params.filters)
        search = self.search_clause(params.search)
        if search is not None:
            clauses.append(search)
        if scope is not None:
            clauses.append(scope)
        if clauses:
            query = query.filter(and_(*clauses))
        return query

    def newest_first(self) -> List:
        # primary key breaks created_at ties so pages stay stable
        return [desc(self.model.created_at), desc(self.model.id)]

    def paginate(self, query: Query, params: ListParams, scope=None) -> Page:
        query = self.build(query, params, scope)
        total = query.order_by(None).count()
        items = (
            query.order_by(*self.newest_first())
            .offset(params.offset)
            .limit(params.limit)
            .all()
        )
        return Page(items=items, total=total, page=params.page, limit=params.limit)
