"""
@file data.py
@description
JSON-file backed census data: places, datasets, published entries and the
queue of submissions waiting for review.

Responsibilities:
- Load and re-load the census data file.
- Build the /overview.json summary (byplace -> datasets -> record).
- Publish reviewed submissions as entries and persist them.

External Dependencies:
- json (Python standard library)
"""

import json
import os
import threading
import uuid
from datetime import datetime, timezone

from .scoring import QUESTIONS, SummaryRow, dataset_score, place_score


class DataError(ValueError):
    """Raised when a census data or submissions file cannot be used."""


def _now():
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _read_json(path, default):
    if not os.path.exists(path):
        return default
    with open(path, "r", encoding="utf-8") as data_file:
        try:
            return json.load(data_file)
        except json.JSONDecodeError as exc:
            raise DataError(f"{path} is not valid JSON: {exc}") from exc


def _write_json(path, payload):
    tmp_path = path + ".tmp"
    with open(tmp_path, "w", encoding="utf-8") as data_file:
        json.dump(payload, data_file, indent=2, sort_keys=True)
    os.replace(tmp_path, path)


class CensusData:
    """Places x datasets matrix with one published entry per cell."""

    def __init__(self, path, places=(), datasets=(), entries=()):
        self.path = path
        self._lock = threading.Lock()
        self._set(places, datasets, entries)

    @classmethod
    def load(cls, path):
        data = cls(path)
        data.reload()
        return data

    def _set(self, places, datasets, entries):
        self.places = [dict(place) for place in places]
        self.datasets = [dict(dataset) for dataset in datasets]
        self._places = {place["id"]: place for place in self.places}
        self._datasets = {dataset["id"]: dataset for dataset in self.datasets}
        self._entries = {}
        for entry in entries:
            entry = dict(entry)
            entry["score"] = dataset_score(entry.get("answers"))
            self._entries[(entry["place"], entry["dataset"])] = entry

    def reload(self):
        raw = _read_json(self.path, None)
        if raw is None:
            raise DataError(f"census data file not found: {self.path}")
        try:
            with self._lock:
                self._set(raw.get("places", []), raw.get("datasets", []), raw.get("entries", []))
        except (AttributeError, KeyError, TypeError) as exc:
            raise DataError(f"malformed census data in {self.path}: {exc!r}") from exc

    def save(self):
        entries = [
            {key: value for key, value in entry.items() if key != "score"}
            for entry in self._entries.values()
        ]
        _write_json(self.path, {"places": self.places, "datasets": self.datasets, "entries": entries})

    # ---------------------- Queries ----------------------

    def place(self, place_id):
        return self._places.get(place_id)

    def dataset(self, dataset_id):
        return self._datasets.get(dataset_id)

    def entry(self, place_id, dataset_id):
        return self._entries.get((place_id, dataset_id))

    def entries(self):
        return sorted(self._entries.values(), key=lambda e: (e["place"], e["dataset"]))

    def entries_for_place(self, place_id):
        return [e for e in self.entries() if e["place"] == place_id]

    def entries_for_dataset(self, dataset_id):
        return [e for e in self.entries() if e["dataset"] == dataset_id]

    def place_total(self, place_id):
        scores = [e["score"] for e in self.entries_for_place(place_id)]
        return place_score(scores, len(self.datasets))

    def summary(self):
        """
        Build the summary consumed by the overview table script.

        Returns:
            dict: {"places", "datasets", "byplace"} where
                byplace[place]["datasets"][dataset] holds score and title.
        """
        byplace = {}
        for place in self.places:
            records = {}
            for entry in self.entries_for_place(place["id"]):
                dataset = self._datasets.get(entry["dataset"])
                if dataset is None:
                    continue
                records[entry["dataset"]] = {
                    "score": entry["score"],
                    "title": dataset.get("title", entry["dataset"]),
                    "answers": entry.get("answers", {}),
                    "details": entry.get("details", ""),
                    "timestamp": entry.get("timestamp", ""),
                }
            byplace[place["id"]] = {
                "name": place.get("name", place["id"]),
                "score": self.place_total(place["id"]),
                "datasets": records,
            }
        return {"places": self.places, "datasets": self.datasets, "byplace": byplace}

    def overview_rows(self):
        return [
            SummaryRow(place["id"], place.get("name", place["id"]), self.place_total(place["id"]))
            for place in self.places
        ]

    def changes(self, limit=50):
        dated = [e for e in self.entries() if e.get("timestamp")]
        return sorted(dated, key=lambda e: e["timestamp"], reverse=True)[:limit]

    # ---------------------- Updates ----------------------

    def publish(self, submission, reviewer):
        """Replace the place/dataset entry with a reviewed submission and persist it."""
        entry = {
            "place": submission["place"],
            "dataset": submission["dataset"],
            "answers": dict(submission.get("answers", {})),
            "details": submission.get("details", ""),
            "submitter": submission.get("submitter", ""),
            "reviewer": reviewer,
            "timestamp": _now(),
        }
        entry["score"] = dataset_score(entry["answers"])
        key = (entry["place"], entry["dataset"])
        with self._lock:
            previous = self._entries.get(key)
            self._entries[key] = entry
            try:
                self.save()
            except OSError:
                # Memory stays in step with the file on disk
                if previous is None:
                    del self._entries[key]
                else:
                    self._entries[key] = previous
                raise
        return entry


def entry_rows(entries):
    """Flatten entries into rows for the CSV/JSON entries API."""
    rows = []
    for entry in entries:
        row = {
            "place": entry["place"],
            "dataset": entry["dataset"],
            "score": entry["score"],
            "timestamp": entry.get("timestamp", ""),
            "details": entry.get("details", ""),
        }
        for key, _, _ in QUESTIONS:
            row[key] = entry.get("answers", {}).get(key, "")
        rows.append(row)
    return rows


class SubmissionStore:
    """Pending, published and rejected submissions kept in one JSON file."""

    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"

    def __init__(self, path):
        self.path = path
        self._lock = threading.Lock()
        raw = _read_json(path, [])
        if not isinstance(raw, list):
            raise DataError(f"{path} must hold a JSON list of submissions")
        self._items = {item["id"]: item for item in raw}

    def _save(self):
        _write_json(self.path, list(self._items.values()))

    def create(self, place, dataset, answers, details, submitter):
        submission = {
            "id": uuid.uuid4().hex,
            "place": place,
            "dataset": dataset,
            "answers": dict(answers),
            "details": details,
            "submitter": submitter,
            "status": self.PENDING,
            "created": _now(),
            "reviewer": "",
            "reviewed": "",
        }
        with self._lock:
            self._items[submission["id"]] = submission
            self._save()
        return submission

    def get(self, submission_id):
        return self._items.get(submission_id)

    def list_pending(self):
        return sorted(
            (s for s in self._items.values() if s["status"] == self.PENDING),
            key=lambda s: s["created"],
        )

    def set_status(self, submission_id, status, reviewer):
        with self._lock:
            submission = self._items[submission_id]
            submission["status"] = status
            submission["reviewer"] = reviewer
            submission["reviewed"] = "" if status == self.PENDING else _now()
            self._save()
        return submission
