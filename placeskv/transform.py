"""The place scan: joins every place row against the prebuilt indices.

One place row fans out into records in every namespace (site info,
bookmarks, tags, keywords, history by time and by site, search). Bookmark
records need the place's url and tags, which only exist on the place row,
so bookmarks are written here rather than while the tree is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Set

from .bookmarks import BookmarkHierarchy
from .config import Settings
from .errors import FRECENCY_CLAMPED, MALFORMED_URL, MISSING_PLACE, WarningLog
from .join_index import JoinIndex
from .log import get_logger
from .model import Place
from .places_source import PlacesSource, col
from .records import (
    BookmarkParentRecord,
    BookmarkRecord,
    FaviconRecord,
    SiteInfoRecord,
    VisitRecord,
    annotation_records,
    bookmark_key,
    bookmark_url_key,
    history_by_site_key,
    history_key,
    keyword_key,
    site_info_key,
    tag_key,
    url_value,
)
from .search_index import SearchIndexer, extract_terms
from .urls import UrlParts, split_url
from .visits import VisitChains
from .writer import BatchedWriter

log = get_logger(__name__)


@dataclass
class TransformStats:
    places: int = 0
    bookmarks: int = 0
    folders: int = 0
    tags: int = 0
    keywords: int = 0
    visits: int = 0
    search_entries: int = 0
    favicons: int = 0


def place_from_row(r) -> Place:
    favicon_id = col(r, "favicon_id")
    return Place(
        id=int(r["id"]),
        url=str(r["url"]),
        title=col(r, "title"),
        visit_count=int(col(r, "visit_count", 0)),
        typed=int(col(r, "typed", 0)),
        frecency=int(col(r, "frecency", 0)),
        last_visit_date=col(r, "last_visit_date"),
        guid=col(r, "guid"),
        favicon_id=int(favicon_id) if favicon_id is not None else None,
    )


class PlaceTransformer:
    def __init__(
        self,
        index: JoinIndex,
        hierarchy: BookmarkHierarchy,
        visits: VisitChains,
        writer: BatchedWriter,
        settings: Settings,
        warnings: WarningLog,
    ):
        self.index = index
        self.hierarchy = hierarchy
        self.visits = visits
        self.writer = writer
        self.settings = settings
        self.warnings = warnings
        self.indexer = SearchIndexer(
            high_traffic_frecency=settings.high_traffic_frecency,
            max_frecency=settings.max_frecency,
            frecency_digits=settings.frecency_digits,
        )
        self.stats = TransformStats()
        self._favicon_id_by_host: Dict[str, Optional[int]] = {}
        self._written_bookmarks: Set[int] = set()

    def run(self, source: PlacesSource) -> TransformStats:
        log.info("transforming places")
        for r in source.scan_places():
            self.transform_place(place_from_row(r))
            self.writer.row_done()
            if self.stats.places % 10_000 == 0:
                log.info("transformed %d places", self.stats.places)
        self.write_placeless_bookmarks()
        self.writer.close()
        log.info(
            "transformed %d places: %d bookmarks, %d folders, %d visits, %d search entries",
            self.stats.places,
            self.stats.bookmarks,
            self.stats.folders,
            self.stats.visits,
            self.stats.search_entries,
        )
        return self.stats

    def transform_place(self, place: Place) -> None:
        put = self.writer.put
        url = place.url
        parts = split_url(url)
        if parts is None:
            self.warnings.warn(MALFORMED_URL, f"place {place.id} has unparseable url {url!r}", subject=url)
            parts = UrlParts(hostname="", path="")
        reversed_host = parts.reversed_host
        frecency = self._checked_frecency(place)

        info = SiteInfoRecord(
            title=place.title,
            visit_count=place.visit_count,
            typed=place.typed,
            frecency=frecency,
            last_visit_date=place.last_visit_date,
            guid=place.guid,
            favicon=self._favicon_for(reversed_host, place.favicon_id),
            annotations=annotation_records(self.index.annotations_by_place_id.get(place.id)),
        )
        put(site_info_key(reversed_host, url), info.to_value())

        tags = self.hierarchy.tags_by_place_id.get(place.id, [])
        linked = self.hierarchy.bookmarks_by_place_id.get(place.id, [])
        for bookmark in linked:
            bookmark.url = url
            bookmark.tags = list(tags) if tags else None
            self._written_bookmarks.add(bookmark.id)
            depth = self.hierarchy.depth_of(bookmark.id)
            if depth is None:
                continue
            put(bookmark_key(depth, bookmark.parent_id, bookmark.id), BookmarkRecord.from_node(bookmark).to_value())
            put(bookmark_url_key(url, bookmark.id), BookmarkParentRecord(parent_id=bookmark.parent_id).to_value())
            self.stats.bookmarks += 1
            if bookmark.keyword:
                put(keyword_key(bookmark.keyword), url_value(url))
                self.stats.keywords += 1

        for keyword in self.index.keywords_by_place_id.get(place.id, ()):
            put(keyword_key(keyword), url_value(url))
            self.stats.keywords += 1

        for tag in tags:
            put(tag_key(tag, url), None)
            self.stats.tags += 1

        for visit in self.visits.for_place(place.id):
            record = VisitRecord(url=url, prev_key=visit.prev_key, type=visit.type, session=visit.session)
            put(history_key(visit.key), record.to_value())
            put(history_by_site_key(reversed_host, visit.key, url), None)
            self.stats.visits += 1

        terms = extract_terms(parts.hostname, place.title, [b.title for b in linked], tags)
        for key, value in self.indexer.term_entries(terms, frecency, url, reversed_host, parts.path):
            put(key, value)
            self.stats.search_entries += 1
        inputs = self.index.input_history_by_place_id.get(place.id)
        if inputs:
            for key, value in self.indexer.input_history_entries(inputs, frecency, url, reversed_host, parts.path):
                put(key, value)
                self.stats.search_entries += 1

        self.stats.places += 1

    def write_placeless_bookmarks(self) -> None:
        """Folders, separators and roots, plus bookmarks whose place row never showed up."""
        for depth, node in self.hierarchy.traverse():
            if node.id in self._written_bookmarks:
                continue
            if node.place_id is not None:
                self.warnings.warn(
                    MISSING_PLACE,
                    f"bookmark {node.id} references missing place {node.place_id}",
                    subject=str(node.id),
                )
            else:
                self.stats.folders += 1
            self.writer.put(bookmark_key(depth, node.parent_id, node.id), BookmarkRecord.from_node(node).to_value())
            self.writer.row_done()

    def _favicon_for(self, reversed_host: str, favicon_id: Optional[int]) -> Optional[FaviconRecord]:
        # The first url of a host (url order) sets the host's icon; later urls
        # only carry an icon when it differs from that one.
        if reversed_host in self._favicon_id_by_host:
            if favicon_id == self._favicon_id_by_host[reversed_host]:
                return None
        else:
            self._favicon_id_by_host[reversed_host] = favicon_id
        if favicon_id is None:
            return None
        favicon = self.index.favicons_by_id.get(favicon_id)
        if favicon is None:
            return None
        self.stats.favicons += 1
        return FaviconRecord.from_favicon(favicon)

    def _checked_frecency(self, place: Place) -> int:
        f = place.frecency
        if 0 <= f <= self.settings.max_frecency:
            return f
        clamped = min(max(f, 0), self.settings.max_frecency)
        self.warnings.warn(
            FRECENCY_CLAMPED,
            f"place {place.id} frecency {f} clamped to {clamped}",
            subject=place.url,
        )
        return clamped
