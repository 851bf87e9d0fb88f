"""Key layouts and value payloads for every namespace in the output store.

Keys are a one-letter namespace followed by NUL-separated components,
UTF-8 encoded. Values are JSON; camelCase on the wire.
"""

from __future__ import annotations

import base64
import json
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .lexi import pad
from .model import Annotation, BookmarkNode, Favicon

SEP = "\0"

# Widths of the numeric components of bookmark keys.
DEPTH_DIGITS = 3
ID_DIGITS = 10

BOOKMARK = "B"
BOOKMARK_BY_URL = "b"
KEYWORD = "K"
TAG = "T"
HISTORY = "H"
HISTORY_BY_SITE = "h"
SITE_INFO = "I"
SEARCH = "A"
INPUT_HISTORY = "a"


def make_key(namespace: str, *parts) -> bytes:
    return SEP.join([namespace, *("" if p is None else str(p) for p in parts)]).encode("utf-8")


def split_key(key: bytes) -> Tuple[str, List[str]]:
    namespace, *parts = key.decode("utf-8").split(SEP)
    return namespace, parts


def bookmark_key(depth: int, parent_id: int, bookmark_id: int) -> bytes:
    return make_key(BOOKMARK, pad(depth, DEPTH_DIGITS), pad(parent_id, ID_DIGITS), pad(bookmark_id, ID_DIGITS))


def bookmark_url_key(url: str, bookmark_id: int) -> bytes:
    return make_key(BOOKMARK_BY_URL, url, bookmark_id)


def keyword_key(keyword: str) -> bytes:
    return make_key(KEYWORD, keyword)


def tag_key(tag: str, url: str) -> bytes:
    return make_key(TAG, tag, url)


def history_key(visit_key: str) -> bytes:
    return make_key(HISTORY, visit_key)


def history_by_site_key(reversed_host: str, visit_key: str, url: str) -> bytes:
    return make_key(HISTORY_BY_SITE, reversed_host, visit_key, url)


def site_info_key(reversed_host: str, url: str) -> bytes:
    return make_key(SITE_INFO, reversed_host, url)


def search_key(magic: str, inverted_frecency: str, term: str, reversed_host: str, path: str) -> bytes:
    return make_key(SEARCH, magic, inverted_frecency, term, reversed_host, path)


def input_history_key(typed: str, url: str) -> bytes:
    return make_key(INPUT_HISTORY, typed, url)


def url_value(url: str) -> str:
    return json.dumps(url)


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_value(self) -> str:
        return self.model_dump_json(by_alias=True)


class AnnotationRecord(_Record):
    mime_type: Optional[str] = None
    content: Optional[str] = None
    flags: Optional[int] = None
    expiration: Optional[int] = None
    type: Optional[int] = None
    date_added: Optional[int] = None
    last_modified: Optional[int] = None

    @classmethod
    def from_annotation(cls, a: Annotation) -> "AnnotationRecord":
        return cls(
            mime_type=a.mime_type,
            content=None if a.content is None else str(a.content),
            flags=a.flags,
            expiration=a.expiration,
            type=a.type,
            date_added=a.date_added,
            last_modified=a.last_modified,
        )


def annotation_records(annos) -> Optional[Dict[str, AnnotationRecord]]:
    if not annos:
        return None
    return {name: AnnotationRecord.from_annotation(a) for name, a in annos.items()}


class FaviconRecord(_Record):
    url: Optional[str] = None
    # base64 of the raw icon bytes
    blob: Optional[str] = None
    mime_type: Optional[str] = None
    expiration: Optional[int] = None

    @classmethod
    def from_favicon(cls, f: Favicon) -> "FaviconRecord":
        return cls(
            url=f.url,
            blob=base64.b64encode(f.data).decode("ascii") if f.data is not None else None,
            mime_type=f.mime_type,
            expiration=f.expiration,
        )


class SiteInfoRecord(_Record):
    title: Optional[str] = None
    visit_count: int = 0
    typed: int = 0
    frecency: int = 0
    last_visit_date: Optional[int] = None
    guid: Optional[str] = None
    favicon: Optional[FaviconRecord] = None
    annotations: Optional[Dict[str, AnnotationRecord]] = None


class BookmarkRecord(_Record):
    url: Optional[str] = None
    title: Optional[str] = None
    tags: Optional[List[str]] = None
    keyword: Optional[str] = None
    type: int = 1
    position: int = 0
    date_added: Optional[int] = None
    last_modified: Optional[int] = None
    guid: Optional[str] = None
    annotations: Optional[Dict[str, AnnotationRecord]] = None

    @classmethod
    def from_node(cls, node: BookmarkNode) -> "BookmarkRecord":
        return cls(
            url=node.url,
            title=node.title,
            tags=list(node.tags) if node.tags else None,
            keyword=node.keyword,
            type=node.type,
            position=node.position,
            date_added=node.date_added,
            last_modified=node.last_modified,
            guid=node.guid,
            annotations=annotation_records(node.annotations),
        )


class BookmarkParentRecord(_Record):
    parent_id: int


class VisitRecord(_Record):
    url: str
    prev_key: Optional[str] = None
    type: Optional[int] = None
    session: Optional[int] = None


class InputHistoryRecord(_Record):
    use_count: Union[int, float] = 0
