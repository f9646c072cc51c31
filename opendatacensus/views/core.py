"""
@file core.py
@description
Display routes, registered in every startup mode.

Used by:
- Templates under templates/ and static/js/census.js, which reads
  /overview.json to colour and sort the overview table.
"""

import csv
import io

from flask import Blueprint, Response, abort, jsonify, render_template, request

from ..data import entry_rows
from ..pipeline import current_context
from ..scoring import QUESTIONS, SORT_KEYS, color_for_score, sort_rows
from . import census_state

bp = Blueprint("core", __name__)

API_FORMATS = ("json", "csv")


def _place_or_404(place_id):
    place = census_state()["data"].place(place_id)
    if place is None:
        abort(404)
    return place


def _dataset_or_404(dataset_id):
    dataset = census_state()["data"].dataset(dataset_id)
    if dataset is None:
        abort(404)
    return dataset


# ---------------------- Routes ----------------------

@bp.route("/")
def overview():
    """
    Render the places x datasets overview table.

    Returns:
        str: Rendered HTML from templates/overview.html
    """
    data = census_state()["data"]
    sort_by = request.args.get("sort", "score")
    if sort_by not in SORT_KEYS:
        sort_by = "score"
    rows = sort_rows(data.overview_rows(), sort_by)
    return render_template(
        "overview.html",
        rows=rows,
        datasets=data.datasets,
        entry=data.entry,
        sort_by=sort_by,
    )


@bp.route("/overview.json")
def result_json():
    """
    Serve the summary consumed by the overview table script.

    Returns:
        dict: {"places", "datasets", "byplace"}
    """
    return jsonify(census_state()["data"].summary())


@bp.route("/api/entries.<fmt>")
def api(fmt):
    if fmt not in API_FORMATS:
        abort(404)
    rows = entry_rows(census_state()["data"].entries())
    if fmt == "json":
        return jsonify(rows)

    fieldnames = ["place", "dataset", "score", "timestamp"] + [key for key, _, _ in QUESTIONS] + ["details"]
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    writer.writerows(rows)
    return Response(buffer.getvalue(), mimetype="text/csv")


@bp.route("/place/<place>")
def place(place):
    data = census_state()["data"]
    place_record = _place_or_404(place)
    score = data.place_total(place)
    rows = []
    for dataset in data.datasets:
        entry = data.entry(place, dataset["id"])
        rows.append({
            "dataset": dataset,
            "entry": entry,
            "color": color_for_score(entry["score"]) if entry else "",
        })
    return render_template(
        "place.html",
        place=place_record,
        rows=rows,
        score=score,
        score_color=color_for_score(score),
    )


@bp.route("/dataset/<dataset>")
def dataset(dataset):
    data = census_state()["data"]
    dataset_record = _dataset_or_404(dataset)
    rows = []
    for place_record in data.places:
        entry = data.entry(place_record["id"], dataset)
        rows.append({
            "place": place_record,
            "entry": entry,
            "color": color_for_score(entry["score"]) if entry else "",
        })
    return render_template("dataset.html", dataset=dataset_record, rows=rows)


@bp.route("/entry/<place>/<dataset>")
def entry_by_place_dataset(place, dataset):
    data = census_state()["data"]
    place_record = _place_or_404(place)
    dataset_record = _dataset_or_404(dataset)
    entry = data.entry(place, dataset)
    if entry is None:
        abort(404)
    return render_template(
        "entry.html",
        place=place_record,
        dataset=dataset_record,
        entry=entry,
        questions=QUESTIONS,
        color=color_for_score(entry["score"]),
    )


@bp.route("/about")
def about():
    ctx = current_context()
    config = census_state()["config"]
    return render_template("page.html", title="About", content=config.localized("about_page", ctx.locale))


@bp.route("/faq")
def faq():
    ctx = current_context()
    config = census_state()["config"]
    return render_template("page.html", title="FAQ", content=config.localized("faq_page", ctx.locale))


@bp.route("/changes")
def changes():
    data = census_state()["data"]
    return render_template("changes.html", changes=data.changes(), place=data.place, dataset=data.dataset)
