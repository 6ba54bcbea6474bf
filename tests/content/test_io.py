"""Tests for JSONL loading and snapshot export."""

import json
from pathlib import Path

import pandas as pd

from marketpulse.content.io import (
    CSV_COLUMNS,
    load_items_jsonl,
    snapshot_frame,
    write_items_csv,
    write_snapshot_json,
)
from marketpulse.content.models import Snapshot, SourceKind
from marketpulse.content.snapshot import aggregate, build_snapshot_from_files


def _write_jsonl(path: Path, lines) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write((line if isinstance(line, str) else json.dumps(line)) + "\n")


class TestLoadItemsJsonl:
    """Tests for JSONL loading."""

    def test_missing_file(self, tmp_path: Path):
        """A missing file gives no items."""
        assert load_items_jsonl(tmp_path / "missing.jsonl") == []

    def test_skips_bad_lines(self, tmp_path: Path):
        """Invalid JSON, non-objects and kindless records are skipped."""
        path = tmp_path / "news.jsonl"
        _write_jsonl(
            path,
            [
                {"id": "n1", "kind": "news", "source_name": "Reuters API",
                 "timestamp": "2024-03-04T10:00:00Z", "title": "Fed holds"},
                "{not json",
                "[1, 2, 3]",
                "",
                {"id": "n2", "source_name": "CNBC", "title": "No kind"},
            ],
        )

        items = load_items_jsonl(path)
        assert [i.id for i in items] == ["n1"]
        assert items[0].kind is SourceKind.NEWS

    def test_kind_argument_overrides(self, tmp_path: Path):
        """The kind argument applies to every record."""
        path = tmp_path / "emails.jsonl"
        _write_jsonl(path, [{"id": "e1", "kind": "news", "title": "Note"}])

        items = load_items_jsonl(path, kind="emails")
        assert items[0].kind is SourceKind.EMAIL

    def test_derived_fields_ignored_and_id_computed(self, tmp_path: Path):
        """Stored scores are dropped; missing ids are hashed."""
        path = tmp_path / "news.jsonl"
        record = {
            "source_name": "Gmail",
            "timestamp": "2024-03-04T10:00:00Z",
            "title": "Morning brief",
            "score": 99,
            "tags": ["earnings"],
        }
        _write_jsonl(path, [record, record])

        items = load_items_jsonl(path, kind=SourceKind.EMAIL)
        assert len(items) == 2
        assert items[0].id == items[1].id
        assert len(items[0].id) == 16
        assert not hasattr(items[0], "score")


class TestSnapshotExport:
    """Tests for JSON and CSV output."""

    def test_write_json(self, tmp_path: Path, scorer, make_item, now):
        """Snapshot JSON round-trips through json.load."""
        snapshot = aggregate({"news": [make_item("n1", "Fed holds rates")]}, scorer, now=now)
        path = tmp_path / "out" / "snapshot.json"
        write_snapshot_json(snapshot, path)

        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        assert data["source_breakdown"]["news"] == 1
        assert data["key_events"][0]["id"] == "n1"
        assert data["summary"] == snapshot.summary_text

    def test_frame_sections(self, scorer, make_item, now):
        """Alerts come before key events, each ranked from 1."""
        items = [make_item(f"n{n}", f"Story {n}", hours_ago=n) for n in range(2)]
        snapshot = aggregate({"news": items}, scorer, alert_threshold=0, now=now)

        df = snapshot_frame(snapshot)
        assert list(df.columns) == CSV_COLUMNS
        assert list(df["section"]) == ["alert", "alert", "key_event", "key_event"]
        assert list(df["rank"]) == [1, 2, 1, 2]

    def test_empty_frame(self):
        """An empty snapshot gives an empty frame with headers."""
        df = snapshot_frame(Snapshot(summary_text="none"))
        assert df.empty
        assert list(df.columns) == CSV_COLUMNS

    def test_write_csv(self, tmp_path: Path, scorer, make_item, now):
        """CSV rows match the snapshot's ranked items."""
        snapshot = aggregate(
            {"news": [make_item("n1", "AAPL earnings", source_name="Bloomberg API")]},
            scorer,
            now=now,
        )
        path = tmp_path / "items.csv"
        assert write_items_csv(snapshot, path) == 1

        df = pd.read_csv(path)
        assert df.loc[0, "id"] == "n1"
        assert df.loc[0, "symbols"] == "AAPL"
        assert df.loc[0, "tags"] == "earnings"


class TestBuildSnapshotFromFiles:
    """Tests for the batch entry point."""

    def test_end_to_end(self, tmp_path: Path):
        """JSONL in, snapshot JSON and CSV out."""
        news = tmp_path / "news.jsonl"
        emails = tmp_path / "emails.jsonl"
        _write_jsonl(news, [{"id": "n1", "source_name": "Reuters API", "title": "Fed holds"}])
        _write_jsonl(emails, [{"id": "e1", "source_name": "Gmail", "title": "AAPL note"}])
        config = tmp_path / "scoring.yaml"
        config.write_text("alert_threshold: 0\n")

        out = tmp_path / "out" / "snapshot.json"
        csv_path = tmp_path / "out" / "items.csv"
        snapshot = build_snapshot_from_files(
            {SourceKind.NEWS: news, SourceKind.PODCAST: None, SourceKind.EMAIL: emails},
            out,
            csv_path=csv_path,
            config_path=config,
            priority_symbols=["AAPL"],
        )

        assert out.exists()
        assert csv_path.exists()
        assert snapshot.source_breakdown[SourceKind.EMAIL] == 1
        assert len(snapshot.alert_items) == 2
        assert "1 items mention priority symbols: AAPL." in snapshot.summary_text
