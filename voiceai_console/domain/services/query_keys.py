"""
Query Keys
Hierarchical cache keys per resource.

Keys are tuples so a shorter key works as a prefix for invalidation:
("leads",) matches every lead list and detail, ("leads", "list") every list.
"""
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel

QueryKey = Tuple[Any, ...]


def freeze(filters: Any) -> Any:
    """Turn a filter object into a hashable, order-independent key part."""
    if filters is None:
        return ()
    if isinstance(filters, BaseModel):
        filters = filters.model_dump(exclude_none=True, mode="json")
    if isinstance(filters, Mapping):
        return tuple(sorted((k, freeze(v)) for k, v in filters.items() if v is not None))
    if isinstance(filters, (list, tuple)):
        return tuple(freeze(v) for v in filters)
    return filters


class AgentKeys:
    ALL: QueryKey = ("agents",)

    @classmethod
    def lists(cls) -> QueryKey:
        return cls.ALL + ("list",)

    @classmethod
    def list(cls, filters: Optional[Any] = None) -> QueryKey:
        return cls.lists() + (freeze(filters),)

    @classmethod
    def details(cls) -> QueryKey:
        return cls.ALL + ("detail",)

    @classmethod
    def detail(cls, agent_id: str) -> QueryKey:
        return cls.details() + (agent_id,)

    @classmethod
    def voices(cls) -> QueryKey:
        return cls.ALL + ("voices",)


class LeadKeys:
    ALL: QueryKey = ("leads",)

    @classmethod
    def lists(cls) -> QueryKey:
        return cls.ALL + ("list",)

    @classmethod
    def list(cls, filters: Optional[Any] = None) -> QueryKey:
        return cls.lists() + (freeze(filters),)

    @classmethod
    def details(cls) -> QueryKey:
        return cls.ALL + ("detail",)

    @classmethod
    def detail(cls, lead_id: str) -> QueryKey:
        return cls.details() + (lead_id,)


class CallKeys:
    ALL: QueryKey = ("calls",)

    @classmethod
    def history(cls, filters: Optional[Any] = None) -> QueryKey:
        return cls.ALL + ("history", freeze(filters))

    @classmethod
    def metrics(cls) -> QueryKey:
        return cls.ALL + ("metrics",)


class CallIQKeys:
    ALL: QueryKey = ("calliq",)

    @classmethod
    def stats(cls) -> QueryKey:
        return cls.ALL + ("stats",)

    @classmethod
    def lists(cls) -> QueryKey:
        return cls.ALL + ("list",)

    @classmethod
    def list(cls, filters: Optional[Any] = None, page: int = 1, page_size: int = 20) -> QueryKey:
        return cls.lists() + (freeze(filters), page, page_size)

    @classmethod
    def detail(cls, call_id: str) -> QueryKey:
        return cls.ALL + ("detail", call_id)

    @classmethod
    def insights(cls, call_id: str) -> QueryKey:
        return cls.ALL + ("insights", call_id)

    @classmethod
    def similar(cls, call_id: str, limit: int = 5) -> QueryKey:
        return cls.ALL + ("similar", call_id, limit)

    @classmethod
    def patterns(cls, call_id: str) -> QueryKey:
        return cls.ALL + ("patterns", call_id)

    @classmethod
    def team_performance(cls, date_range: Optional[Any] = None) -> QueryKey:
        return cls.ALL + ("team", freeze(date_range))


class AccountKeys:
    ALL: QueryKey = ("account",)

    @classmethod
    def demo_status(cls) -> QueryKey:
        return cls.ALL + ("demo_status",)

    @classmethod
    def company(cls) -> QueryKey:
        return cls.ALL + ("company",)

    @classmethod
    def api_keys(cls) -> QueryKey:
        return cls.ALL + ("api_keys",)
