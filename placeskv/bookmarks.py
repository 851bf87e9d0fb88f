"""Rebuild the bookmark tree from the flat moz_bookmarks table.

The tree is an arena: ``nodes`` maps bookmark id to ``BookmarkNode`` and
each node lists its children by id, so there are no parent/child object
cycles. Bookmarks under the Tags root are not part of the tree at all; they
are how Firefox stores tags, and are folded into ``tags_by_place_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .errors import MISSING_PARENT, WarningLog
from .join_index import JoinIndex
from .log import get_logger
from .model import TYPE_BOOKMARK, BookmarkNode
from .places_source import PlacesSource, col

log = get_logger(__name__)


@dataclass
class BookmarkHierarchy:
    nodes: Dict[int, BookmarkNode] = field(default_factory=dict)
    roots: Dict[str, int] = field(default_factory=dict)
    tags_root_id: Optional[int] = None
    tags_by_place_id: Dict[int, List[str]] = field(default_factory=dict)
    bookmarks_by_place_id: Dict[int, List[BookmarkNode]] = field(default_factory=dict)
    depth_by_id: Dict[int, int] = field(default_factory=dict)

    def traverse(self) -> Iterator[Tuple[int, BookmarkNode]]:
        """Yield ``(depth, node)`` root-to-leaf for every non-tag root."""
        for name, root_id in self.roots.items():
            if root_id == self.tags_root_id or root_id not in self.nodes:
                continue
            stack = [(0, root_id)]
            seen = set()
            while stack:
                depth, node_id = stack.pop()
                if node_id in seen:
                    continue
                seen.add(node_id)
                node = self.nodes[node_id]
                yield depth, node
                for child_id in reversed(node.children):
                    stack.append((depth + 1, child_id))

    def depth_of(self, bookmark_id: int) -> Optional[int]:
        return self.depth_by_id.get(bookmark_id)


def build_bookmark_hierarchy(source: PlacesSource, index: JoinIndex, warnings: WarningLog) -> BookmarkHierarchy:
    log.info("slurping bookmarks")
    nodes: Dict[int, BookmarkNode] = {}
    for r in source.scan_bookmarks():
        node = node_from_row(r, index)
        nodes[node.id] = node
    log.info("slurped %d bookmarks", len(nodes))
    return link_hierarchy(nodes, dict(index.bookmark_roots), warnings)


def node_from_row(r, index: JoinIndex) -> BookmarkNode:
    bid = int(r["id"])
    keyword_id = col(r, "keyword_id")
    fk = col(r, "fk")
    return BookmarkNode(
        id=bid,
        place_id=int(fk) if fk is not None else None,
        parent_id=int(col(r, "parent", 0)),
        type=int(col(r, "type", TYPE_BOOKMARK)),
        position=int(col(r, "position", 0)),
        title=col(r, "title"),
        keyword=index.keywords_by_id.get(int(keyword_id)) if keyword_id is not None else None,
        date_added=col(r, "dateAdded"),
        last_modified=col(r, "lastModified"),
        guid=col(r, "guid"),
        annotations=_plain_annotations(index.annotations_by_bookmark_id.get(bid)),
    )


def link_hierarchy(nodes: Dict[int, BookmarkNode], roots_by_name: Dict[str, int], warnings: WarningLog) -> BookmarkHierarchy:
    h = BookmarkHierarchy(nodes=nodes)
    h.tags_root_id = roots_by_name.get("tags")

    for name, root_id in roots_by_name.items():
        root = nodes.get(root_id)
        if root is None:
            log.warning("bookmark root %r points at missing folder %d", name, root_id)
            continue
        root.title = name
        h.roots[name] = root_id
    root_ids = set(h.roots.values())

    for node in nodes.values():
        if node.id in root_ids:
            continue
        tag = _tag_label(node, nodes, h.tags_root_id)
        if tag is not None:
            if node.place_id is not None and tag:
                tags = h.tags_by_place_id.setdefault(node.place_id, [])
                if tag not in tags:
                    tags.append(tag)
            continue
        parent = nodes.get(node.parent_id)
        if parent is None:
            if node.parent_id:
                warnings.warn(
                    MISSING_PARENT,
                    f"bookmark {node.id} has unknown parent {node.parent_id}; dropped from the tree",
                    subject=str(node.id),
                )
            continue
        parent.children.append(node.id)
        if node.place_id is not None:
            h.bookmarks_by_place_id.setdefault(node.place_id, []).append(node)

    for node in nodes.values():
        if len(node.children) > 1:
            node.children.sort(key=lambda cid: (nodes[cid].position, cid))

    for depth, node in h.traverse():
        h.depth_by_id[node.id] = depth

    log.info(
        "linked bookmark tree: %d reachable, %d tagged places",
        len(h.depth_by_id),
        len(h.tags_by_place_id),
    )
    return h


def _tag_label(node: BookmarkNode, nodes: Dict[int, BookmarkNode], tags_root_id: Optional[int]) -> Optional[str]:
    """Title of the Tags-root child above ``node`` (itself included), or None when not under Tags."""
    if tags_root_id is None:
        return None
    current = node
    seen = set()
    while current is not None and current.id not in seen:
        seen.add(current.id)
        if current.parent_id == tags_root_id:
            return (current.title or "").strip()
        current = nodes.get(current.parent_id)
    return None


def _plain_annotations(annos) -> Optional[dict]:
    if not annos:
        return None
    return dict(annos)
