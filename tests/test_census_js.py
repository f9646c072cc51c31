"""
Run the pure helpers of static/js/census.js in V8 and hold them to the
server's sort_rows / color_for_score.
"""

import json
import os

import pytest

from opendatacensus.scoring import SummaryRow, color_for_score, color_stops_payload, name_sort_key, sort_rows

py_mini_racer = pytest.importorskip("py_mini_racer")

SCRIPT = os.path.join(os.path.dirname(__file__), os.pardir, "opendatacensus", "static", "js", "census.js")

# The DOM steps need jQuery; the pure helpers only need the script to load
JQUERY_STANDIN = "var jQuery = function () {};\n"

SAMPLE_ROWS = [
    SummaryRow("zeta", "Zeta", 10),
    SummaryRow("beta", "Beta", 30),
    SummaryRow("alpha", "Alpha", 30),
    SummaryRow("mu", "Mu", 20),
]

ACCENTED_ROWS = [
    SummaryRow("zm", "Zambia", 40),
    SummaryRow("ax", "Åland Islands", 40),
    SummaryRow("cu", "Cuba", 40),
    SummaryRow("ci", "Côte d'Ivoire", 40),
]


@pytest.fixture(scope="module")
def census_js():
    ctx = py_mini_racer.MiniRacer()
    with open(SCRIPT, encoding="utf-8") as script:
        ctx.eval(JQUERY_STANDIN + script.read())

    def call(name, *args):
        source = "JSON.stringify(OpenDataCensus.%s(%s))" % (name, ", ".join(json.dumps(arg) for arg in args))
        return json.loads(ctx.eval(source))

    return call


def _js_rows(rows, with_keys):
    js_rows = []
    for row in rows:
        js_row = {"placename": row.placename, "score": row.score}
        if with_keys:
            js_row["sortkey"] = row.sortkey
        js_rows.append(js_row)
    return js_rows


@pytest.mark.parametrize("with_keys", [True, False])
@pytest.mark.parametrize("sort_by", ["score", "alpha"])
@pytest.mark.parametrize("rows", [SAMPLE_ROWS, ACCENTED_ROWS])
def test_sort_rows_matches_server(census_js, rows, sort_by, with_keys):
    sorted_js = census_js("sortRows", _js_rows(rows, with_keys), sort_by)
    assert [row["placename"] for row in sorted_js] == [row.placename for row in sort_rows(rows, sort_by)]


def test_sort_rows_sample_order(census_js):
    rows = _js_rows(SAMPLE_ROWS, with_keys=False)
    assert [r["placename"] for r in census_js("sortRows", rows, "score")] == ["Alpha", "Beta", "Mu", "Zeta"]
    assert [r["placename"] for r in census_js("sortRows", rows, "alpha")] == ["Alpha", "Beta", "Mu", "Zeta"]


def test_sort_rows_is_idempotent_and_leaves_input(census_js):
    rows = _js_rows(SAMPLE_ROWS, with_keys=False)
    once = census_js("sortRows", rows, "score")
    assert census_js("sortRows", once, "score") == once
    assert rows == _js_rows(SAMPLE_ROWS, with_keys=False)


def test_sort_rows_keeps_equal_rows_in_place(census_js):
    rows = [{"placename": "Mu", "score": 5, "n": 1}, {"placename": "mu", "score": 5, "n": 2}]
    assert [r["n"] for r in census_js("sortRows", rows, "alpha")] == [1, 2]


@pytest.mark.parametrize("name", ["Åland Islands", "Côte d'Ivoire", "Zeta", "alpha", "São Tomé"])
def test_name_key_matches_server(census_js, name):
    assert census_js("nameKey", name) == name_sort_key(name)


@pytest.mark.parametrize("score", [0, 1, 12.5, 25, 49, 50, 51, 75, 99, 100])
def test_color_matches_server(census_js, score):
    assert census_js("colorFor", color_stops_payload(), score) == color_for_score(score)


@pytest.mark.parametrize("score", [-10, 150, None, "abc", "42"])
def test_color_is_total_and_clamped_like_server(census_js, score):
    assert census_js("colorFor", color_stops_payload(), score) == color_for_score(score)


def test_color_walks_the_whole_gradient_like_server(census_js):
    stops = color_stops_payload()
    assert [census_js("colorFor", stops, s) for s in range(101)] == [color_for_score(s) for s in range(101)]
