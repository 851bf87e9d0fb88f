"""One scan per auxiliary table, collected into a read-only ``JoinIndex``.

The maps are keyed by the relational id each consumer joins against. They
are filled with plain dicts while scanning, then frozen behind
``MappingProxyType`` so nothing downstream can change them.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from .log import get_logger
from .model import Annotation, Favicon
from .places_source import PlacesSource, col

log = get_logger(__name__)


@dataclass(frozen=True)
class JoinIndex:
    anno_attribute_names: Mapping[int, str]
    annotations_by_place_id: Mapping[int, Mapping[str, Annotation]]
    annotations_by_bookmark_id: Mapping[int, Mapping[str, Annotation]]
    input_history_by_place_id: Mapping[int, Mapping[str, float]]
    keywords_by_id: Mapping[int, str]
    keywords_by_place_id: Mapping[int, Tuple[str, ...]]
    favicons_by_id: Mapping[int, Favicon]
    bookmark_roots: Mapping[str, int]

    @property
    def tags_root_id(self):
        return self.bookmark_roots.get("tags")


def build_join_index(source: PlacesSource) -> JoinIndex:
    attr_names = slurp_anno_attributes(source)
    place_annos = slurp_annotations(source.scan_place_annotations(), "place_id", attr_names)
    log.info("slurped annotations for %d places", len(place_annos))
    bookmark_annos = slurp_annotations(source.scan_bookmark_annotations(), "item_id", attr_names)
    log.info("slurped annotations for %d bookmarks", len(bookmark_annos))
    inputs = slurp_input_history(source)
    keywords_by_id, keywords_by_place_id = slurp_keywords(source)
    favicons = slurp_favicons(source)
    roots = source.read_bookmark_roots()
    log.info("slurped %d bookmark roots: %s", len(roots), ", ".join(sorted(roots)))

    return JoinIndex(
        anno_attribute_names=MappingProxyType(attr_names),
        annotations_by_place_id=_freeze_nested(place_annos),
        annotations_by_bookmark_id=_freeze_nested(bookmark_annos),
        input_history_by_place_id=_freeze_nested(inputs),
        keywords_by_id=MappingProxyType(keywords_by_id),
        keywords_by_place_id=MappingProxyType({k: tuple(v) for k, v in keywords_by_place_id.items()}),
        favicons_by_id=MappingProxyType(favicons),
        bookmark_roots=MappingProxyType(roots),
    )


def slurp_anno_attributes(source: PlacesSource) -> Dict[int, str]:
    out: Dict[int, str] = {}
    for r in source.scan_anno_attributes():
        out[int(r["id"])] = str(r["name"])
    log.info("slurped %d annotation attributes", len(out))
    return out


def slurp_annotations(rows, owner_column: str, attr_names: Mapping[int, str]) -> Dict[int, Dict[str, Annotation]]:
    out: Dict[int, Dict[str, Annotation]] = {}
    for r in rows:
        owner = col(r, owner_column)
        if owner is None:
            continue
        attr_id = col(r, "anno_attribute_id")
        name = attr_names.get(int(attr_id)) if attr_id is not None else None
        if name is None:
            name = f"anno:{attr_id}"
        out.setdefault(int(owner), {})[name] = Annotation(
            mime_type=col(r, "mime_type"),
            content=col(r, "content"),
            flags=col(r, "flags"),
            expiration=col(r, "expiration"),
            type=col(r, "type"),
            date_added=col(r, "dateAdded"),
            last_modified=col(r, "lastModified"),
        )
    return out


def slurp_input_history(source: PlacesSource) -> Dict[int, Dict[str, float]]:
    out: Dict[int, Dict[str, float]] = {}
    for r in source.scan_input_history():
        typed = col(r, "input")
        if not typed:
            continue
        out.setdefault(int(r["place_id"]), {})[str(typed)] = col(r, "use_count", 0)
    log.info("slurped input history for %d places", len(out))
    return out


def slurp_keywords(source: PlacesSource) -> Tuple[Dict[int, str], Dict[int, List[str]]]:
    by_id: Dict[int, str] = {}
    by_place: Dict[int, List[str]] = {}
    for r in source.scan_keywords():
        # Old profiles call the column "keyword"; a few tools wrote "name".
        word = col(r, "keyword") or col(r, "name")
        if not word:
            continue
        by_id[int(r["id"])] = str(word)
        place_id = col(r, "place_id")
        if place_id is not None:
            by_place.setdefault(int(place_id), []).append(str(word))
    log.info("slurped %d keywords", len(by_id))
    return by_id, by_place


def slurp_favicons(source: PlacesSource) -> Dict[int, Favicon]:
    out: Dict[int, Favicon] = {}
    for r in source.scan_favicons():
        data = col(r, "data")
        out[int(r["id"])] = Favicon(
            id=int(r["id"]),
            url=col(r, "url"),
            data=bytes(data) if data is not None else None,
            mime_type=col(r, "mime_type"),
            expiration=col(r, "expiration"),
        )
    log.info("slurped %d favicons", len(out))
    return out


def _freeze_nested(d: Dict[int, Dict]) -> Mapping[int, Mapping]:
    return MappingProxyType({k: MappingProxyType(v) for k, v in d.items()})
