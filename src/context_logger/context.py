"""
Immutable logging context.

A LogContext carries the tags, category, metadata and session id that get
attached to every record logged while it is active. It is a copy-on-write
builder: every ``with_*``/``without_*`` call returns a new LogContext over a
new ContextData snapshot, and the receiver never changes. That makes a
context safe to share between threads and tasks without locking.

Usage:
    ctx = (
        create_context()
        .with_session_id("req-123")
        .with_category("http-request")
        .with_tags("api", "user-service")
        .with_metadata({"userId": "456"})
    )

    db_ctx = ctx.with_tags("database").with_metadata(operation="SELECT")
    # ctx is unchanged; db_ctx adds one tag and one metadata key
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


def _tag_key(tag: Any) -> Any:
    """Unhashable tags are kept by their repr() so they can live in a set."""
    try:
        hash(tag)
    except TypeError:
        return repr(tag)
    return tag


def _normalize_tags(tags: Any) -> frozenset[Any]:
    # A lone string is one tag, not an iterable of characters
    if tags is None:
        return frozenset()
    if isinstance(tags, (str, bytes)) or not isinstance(tags, Iterable):
        return frozenset((_tag_key(tags),))
    return frozenset(_tag_key(tag) for tag in tags)


def _normalize_metadata(metadata: Any) -> dict[Any, Any]:
    if isinstance(metadata, Mapping):
        return dict(metadata)
    return {}


@dataclass(frozen=True)
class ContextData:
    """
    Snapshot of contextual fields.

    tags: unique, order-irrelevant
    category: optional grouping label (None when unset)
    metadata: string -> string pairs
    session_id: optional correlation id (None when unset)

    Collections are never None. Caller-supplied collections are copied
    on construction and metadata is exposed read-only. A string passed as
    ``tags`` is a single tag; unhashable tags are stored as their repr();
    non-mapping metadata is treated as empty.
    """

    tags: frozenset[str] = field(default_factory=frozenset)
    category: str | None = None
    metadata: Mapping[str, str] = field(default_factory=dict)
    session_id: str | None = None

    def __post_init__(self) -> None:
        # Normalize absent collections and copy whatever the caller passed in
        object.__setattr__(self, "tags", _normalize_tags(self.tags))
        object.__setattr__(self, "metadata", MappingProxyType(_normalize_metadata(self.metadata)))

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> ContextData:
        """Build from a plain mapping, accepting ``session_id`` or ``sessionId``."""
        session_id = values.get("session_id", values.get("sessionId"))
        return cls(
            tags=values.get("tags"),
            category=values.get("category"),
            metadata=values.get("metadata"),
            session_id=session_id,
        )

    def __hash__(self) -> int:
        # Metadata keys only: values may be unhashable
        return hash((self.tags, _tag_key(self.category), frozenset(self.metadata), _tag_key(self.session_id)))


class LogContext:
    """
    Copy-on-write builder over a single ContextData snapshot.

    Every mutator copies the current tag set and metadata mapping, applies
    its change to the copy and returns a new LogContext. Empty arguments
    are a no-op (the returned context equals the receiver).
    """

    __slots__ = ("_data",)

    def __init__(self, data: ContextData | None = None):
        self._data = data if data is not None else ContextData()

    # -- read access ------------------------------------------------------

    @property
    def data(self) -> ContextData:
        return self._data

    @property
    def tags(self) -> frozenset[str]:
        return self._data.tags

    @property
    def category(self) -> str | None:
        return self._data.category

    @property
    def metadata(self) -> dict[str, str]:
        """A fresh copy of the metadata mapping."""
        return dict(self._data.metadata)

    @property
    def session_id(self) -> str | None:
        return self._data.session_id

    def is_empty(self) -> bool:
        d = self._data
        return not (d.tags or d.category or d.metadata or d.session_id)

    # -- mutators ---------------------------------------------------------

    def with_category(self, category: str | None) -> LogContext:
        """Return a new context with ``category`` replaced."""
        return self._replace(category=category)

    def with_session_id(self, session_id: str | None) -> LogContext:
        """Return a new context with ``session_id`` replaced."""
        return self._replace(session_id=session_id)

    def with_tags(self, *tags: str) -> LogContext:
        """Return a new context with ``tags`` added (set union)."""
        new_tags = set(self._data.tags)
        new_tags.update(_tag_key(tag) for tag in tags)
        return self._replace(tags=new_tags)

    def without_tags(self, *tags: str) -> LogContext:
        """Return a new context with ``tags`` removed. Absent tags are ignored."""
        new_tags = set(self._data.tags)
        new_tags.difference_update(_tag_key(tag) for tag in tags)
        return self._replace(tags=new_tags)

    def with_metadata(self, metadata: Mapping[str, str] | None = None, **kwargs: str) -> LogContext:
        """
        Return a new context with metadata keys upserted.

        Accepts a mapping, keyword arguments, or both; keyword arguments
        win on conflicting keys. Anything other than a mapping is ignored.
        """
        new_metadata = dict(self._data.metadata)
        new_metadata.update(_normalize_metadata(metadata))
        new_metadata.update(kwargs)
        return self._replace(metadata=new_metadata)

    def without_metadata(self, *keys: str) -> LogContext:
        """Return a new context with metadata ``keys`` removed. Absent keys are ignored."""
        new_metadata = dict(self._data.metadata)
        for key in keys:
            # An unhashable key cannot be present
            if _tag_key(key) is key:
                new_metadata.pop(key, None)
        return self._replace(metadata=new_metadata)

    def _replace(self, **changes: Any) -> LogContext:
        d = self._data
        values = {
            "tags": d.tags,
            "category": d.category,
            "metadata": d.metadata,
            "session_id": d.session_id,
        }
        values.update(changes)
        return LogContext(ContextData(**values))

    # -- inspection -------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Return non-empty fields as a dict (tags sorted)."""
        result: dict[str, Any] = {}
        if self._data.session_id:
            result["session_id"] = self._data.session_id
        if self._data.tags:
            result["tags"] = sorted(self._data.tags, key=str)
        if self._data.category:
            result["category"] = self._data.category
        if self._data.metadata:
            result["metadata"] = dict(self._data.metadata)
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LogContext):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f"LogContext({self.to_dict()!r})"


def create_context(
    initial: ContextData | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> LogContext:
    """
    Create a LogContext.

    Args:
        initial: A ContextData, or a mapping with any of ``tags``,
            ``category``, ``metadata``, ``session_id``. Collections are
            copied, never aliased.
        **kwargs: Same keys as the mapping form, merged over ``initial``.

    Returns:
        A new LogContext. With no arguments, an empty one.
    """
    if isinstance(initial, ContextData):
        values: dict[str, Any] = {
            "tags": initial.tags,
            "category": initial.category,
            "metadata": initial.metadata,
            "session_id": initial.session_id,
        }
    else:
        values = dict(initial or {})
    values.update(kwargs)
    return LogContext(ContextData.from_mapping(values))

