from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

TYPE_BOOKMARK = 1
TYPE_FOLDER = 2


@dataclass(frozen=True)
class Annotation:
    mime_type: Optional[str] = None
    content: Optional[str] = None
    flags: Optional[int] = None
    expiration: Optional[int] = None
    type: Optional[int] = None
    date_added: Optional[int] = None
    last_modified: Optional[int] = None


@dataclass(frozen=True)
class Favicon:
    id: int
    url: Optional[str]
    data: Optional[bytes]
    mime_type: Optional[str]
    expiration: Optional[int]


@dataclass
class BookmarkNode:
    id: int
    place_id: Optional[int]
    parent_id: int
    type: int = TYPE_BOOKMARK
    position: int = 0
    title: Optional[str] = None
    keyword: Optional[str] = None
    date_added: Optional[int] = None
    last_modified: Optional[int] = None
    guid: Optional[str] = None
    annotations: Optional[dict] = None

    # Filled by the place scan; they live on the place row.
    url: Optional[str] = None
    tags: Optional[List[str]] = None

    children: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class Visit:
    id: int
    place_id: int
    visit_date: int
    key: str
    prev_key: Optional[str]
    type: Optional[int]
    session: Optional[int]


@dataclass(frozen=True)
class Place:
    id: int
    url: str
    title: Optional[str]
    visit_count: int
    typed: int
    frecency: int
    last_visit_date: Optional[int]
    guid: Optional[str]
    favicon_id: Optional[int]
