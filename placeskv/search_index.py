"""Address-bar search entries.

Each searchable term of a place is stored under one or more "magic" key
prefixes followed by the place's inverted frecency, so typing a prefix is a
bounded forward scan that returns the most frecent matches first:

    A \\0 magic \\0 inverted-frecency \\0 term \\0 reversed-host \\0 path -> url

Places above the high-traffic threshold get every prefix of every term down
to a single character; everything else is only findable by its full terms.
What the user actually typed before (moz_inputhistory) is indexed verbatim,
plus once more under the typed string minus its last character, at half the
weight, unless that shorter string was itself typed for the same place.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Mapping, Optional, Tuple

from .lexi import invert_and_pad
from .records import InputHistoryRecord, input_history_key, search_key, url_value

STOP_WORDS = frozenset({"the", "www", "com", "org", "net"})
MIN_TERM_LENGTH = 3

_EDGE_PUNCT = re.compile(r"^\W+|\W+$")

Entry = Tuple[bytes, Optional[str]]


def extract_terms(
    hostname: str,
    title: Optional[str],
    bookmark_titles: Iterable[Optional[str]] = (),
    tags: Iterable[str] = (),
) -> List[str]:
    terms: List[str] = []

    def maybe_add(token: str) -> None:
        term = token.lower()
        if len(term) < MIN_TERM_LENGTH or term in STOP_WORDS:
            return
        if term not in terms:
            terms.append(term)

    if hostname:
        for label in hostname.split(".")[:-1]:
            maybe_add(label)
    for text in [title, *bookmark_titles]:
        if not text:
            continue
        for word in text.split():
            maybe_add(_EDGE_PUNCT.sub("", word))
    for tag in tags:
        maybe_add(tag)
    # The keyword is left out on purpose: it is reached through K records.
    return terms


def lowest_prefix_to_emit(frecency: int, length: int, high_traffic_frecency: int) -> int:
    if frecency > high_traffic_frecency:
        return 1
    return length


@dataclass(frozen=True)
class SearchIndexer:
    high_traffic_frecency: int = 10_000
    max_frecency: int = 1_000_000
    frecency_digits: int = 7

    def entry(self, magic: str, term: str, frecency: int, url: str, reversed_host: str, path: str) -> Entry:
        inverted = invert_and_pad(frecency, self.max_frecency, self.frecency_digits)
        return search_key(magic, inverted, term, reversed_host, path), url_value(url)

    def term_entries(
        self,
        terms: Iterable[str],
        frecency: int,
        url: str,
        reversed_host: str,
        path: str,
    ) -> Iterator[Entry]:
        for term in terms:
            lowest = lowest_prefix_to_emit(frecency, len(term), self.high_traffic_frecency)
            magic = term
            while len(magic) >= lowest:
                yield self.entry(magic, term, frecency, url, reversed_host, path)
                magic = magic[:-1]

    def input_history_entries(
        self,
        inputs: Mapping[str, float],
        frecency: int,
        url: str,
        reversed_host: str,
        path: str,
    ) -> Iterator[Entry]:
        for typed, use_count in inputs.items():
            yield input_history_key(typed, url), InputHistoryRecord(use_count=use_count).to_value()
            yield self.entry(typed, typed, frecency, url, reversed_host, path)
            if len(typed) >= 2:
                shorter = typed[:-1]
                if shorter not in inputs:
                    yield self.entry(shorter, typed, frecency // 2, url, reversed_host, path)
