import json
from pathlib import Path

from conftest import T0, build_places_db
from placeskv.cli import main


def _db(tmp_path: Path) -> Path:
    return build_places_db(
        tmp_path / "places.sqlite",
        moz_places=[{"id": 100, "url": "https://example.org/a", "title": "Example Site", "frecency": 50_000}],
        moz_historyvisits=[{"id": 1, "place_id": 100, "visit_date": T0, "visit_type": 1}],
    )


def test_convert_then_dump(tmp_path: Path, capsys):
    db = _db(tmp_path)
    out = tmp_path / "out.sqlite"
    assert main(["convert", "--places", str(db), "--out", str(out), "--no-color"]) == 0
    assert out.exists()
    capsys.readouterr()

    assert main(["dump", "--store", str(out), "--prefix", "I", "--no-color"]) == 0
    printed = capsys.readouterr().out
    assert 'Key: "I\\u0000org.example\\u0000https://example.org/a"' in printed
    assert '"title": "Example Site"' in printed
    assert printed.rstrip().endswith("----------- FIN -------------")


def test_convert_accepts_profile_dir(tmp_path: Path):
    _db(tmp_path)
    assert main(["convert", "--places", str(tmp_path), "--out", str(tmp_path / "out.sqlite")]) == 0


def test_convert_into_existing_store_fails(tmp_path: Path):
    db = _db(tmp_path)
    out = tmp_path / "out.sqlite"
    assert main(["convert", "--places", str(db), "--out", str(out)]) == 0
    assert main(["convert", "--places", str(db), "--out", str(out)]) == 2


def test_convert_missing_source_fails(tmp_path: Path):
    assert main(["convert", "--places", str(tmp_path / "nope.sqlite"), "--out", str(tmp_path / "o.sqlite")]) == 2


def test_dump_missing_store_fails(tmp_path: Path):
    assert main(["dump", "--store", str(tmp_path / "missing.sqlite")]) == 2


def test_convert_into_uncreatable_output_fails(tmp_path: Path):
    db = _db(tmp_path)
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    assert main(["convert", "--places", str(db), "--out", str(blocker / "sub" / "out.sqlite")]) == 2


def test_dump_of_a_non_store_fails(tmp_path: Path):
    # A places file is SQLite but has no kv table.
    assert main(["dump", "--store", str(_db(tmp_path))]) == 2
    junk = tmp_path / "junk.sqlite"
    junk.write_bytes(b"this is not a database at all" * 10)
    assert main(["dump", "--store", str(junk)]) == 2


def test_config_file_sets_batch_limit(tmp_path: Path, capsys):
    db = _db(tmp_path)
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("batch_limit: 1\nlog_level: DEBUG\n", encoding="utf-8")
    out = tmp_path / "out.sqlite"
    assert main(["--config", str(cfg), "convert", "--places", str(db), "--out", str(out), "--no-color"]) == 0
    capsys.readouterr()
    assert main(["dump", "--store", str(out), "--prefix", "H", "--limit", "1"]) == 0
    printed = capsys.readouterr().out
    assert printed.count("Key: ") == 1
    value = printed.split("\n", 2)[2].split("----------- FIN")[0]
    assert json.loads(value)["url"] == "https://example.org/a"
