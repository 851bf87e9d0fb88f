import json

from placeskv.records import split_key
from placeskv.search_index import SearchIndexer, extract_terms, lowest_prefix_to_emit


def _magics(entries):
    return [split_key(k)[1][0] for k, _ in entries]


def test_terms_from_host_title_bookmarks_and_tags():
    terms = extract_terms(
        "www.news.example.com",
        "The Example: Daily News",
        ["Daily reading", None],
        ["Work", "ai"],
    )
    assert terms == ["news", "example", "daily", "reading", "work"]


def test_terms_are_deduplicated_and_lowercased():
    terms = extract_terms("example.org", "Example EXAMPLE example site", [], ["example"])
    assert terms == ["example", "site"]


def test_top_level_label_and_stop_words_are_dropped():
    assert extract_terms("foo.org", None) == ["foo"]
    assert extract_terms("www.net.com", "the net") == []


def test_hostless_place_uses_title_only():
    assert extract_terms("", "Release notes") == ["release", "notes"]


def test_lowest_prefix_threshold():
    assert lowest_prefix_to_emit(10_001, 7, 10_000) == 1
    assert lowest_prefix_to_emit(10_000, 7, 10_000) == 7
    assert lowest_prefix_to_emit(0, 4, 10_000) == 4


def test_high_traffic_terms_get_every_prefix():
    indexer = SearchIndexer()
    entries = list(indexer.term_entries(["food"], 50_000, "https://food.example/", "example.food", "/"))
    assert _magics(entries) == ["food", "foo", "fo", "f"]
    key, value = entries[-1]
    namespace, parts = split_key(key)
    assert namespace == "A"
    assert parts == ["f", "0950000", "food", "example.food", "/"]
    assert json.loads(value) == "https://food.example/"


def test_low_traffic_terms_get_full_term_only():
    indexer = SearchIndexer()
    entries = list(indexer.term_entries(["food", "market"], 500, "https://x.example/", "example.x", "/"))
    assert _magics(entries) == ["food", "market"]


def test_more_frecent_place_sorts_first_under_same_magic():
    indexer = SearchIndexer()
    hot = indexer.entry("foo", "food", 90_000, "https://a.example/", "example.a", "/")
    cold = indexer.entry("foo", "food", 20_000, "https://b.example/", "example.b", "/")
    assert hot[0] < cold[0]


def test_input_history_entries():
    indexer = SearchIndexer()
    entries = list(
        indexer.input_history_entries({"exa": 3, "exam": 1}, 20_000, "https://example.org/a", "org.example", "/a")
    )
    keys = [split_key(k) for k, _ in entries]
    assert ("a", ["exa", "https://example.org/a"]) in keys
    assert ("a", ["exam", "https://example.org/a"]) in keys
    use = dict((tuple(split_key(k)[1]), json.loads(v)) for k, v in entries if split_key(k)[0] == "a")
    assert use[("exa", "https://example.org/a")] == {"useCount": 3}

    search = [parts for ns, parts in keys if ns == "A"]
    assert ["exa", "0980000", "exa", "org.example", "/a"] in search
    assert ["exam", "0980000", "exam", "org.example", "/a"] in search
    # "exam" minus its last letter was typed itself, so no extra entry for it.
    assert ["exa", "0980000", "exam", "org.example", "/a"] not in search
    # "exa" -> "ex" was never typed: extra entry at half weight.
    assert ["ex", "0990000", "exa", "org.example", "/a"] in search
    assert len(search) == 3


def test_single_character_input_has_no_shorter_entry():
    indexer = SearchIndexer()
    entries = list(indexer.input_history_entries({"e": 1}, 100, "https://e.example/", "example.e", "/"))
    assert [split_key(k)[0] for k, _ in entries] == ["a", "A"]
