"""Survey scoring, the score colour gradient and summary row ordering."""

import math
import unicodedata
from dataclasses import dataclass

CHOICES = ("Yes", "No", "Unsure")

# Question key -> (label, weight); weights add up to 100
QUESTIONS = (
    ("exists", "Data exists", 5),
    ("digital", "Available in digital form", 5),
    ("public", "Publicly available", 5),
    ("free", "Available for free", 15),
    ("online", "Available online", 5),
    ("machinereadable", "Machine readable", 15),
    ("bulk", "Available in bulk", 10),
    ("openlicense", "Openly licensed", 30),
    ("uptodate", "Up to date", 10),
)

MAX_SCORE = sum(weight for _, _, weight in QUESTIONS)

# (score, (r, g, b)) pairs, ascending by score
COLOR_STOPS = (
    (0, (0xDD, 0x3D, 0x3A)),
    (50, (0xFF, 0xE6, 0x2D)),
    (100, (0x1A, 0xA4, 0x4A)),
)

SORT_KEYS = ("score", "alpha")


def is_choice(value):
    return value in CHOICES


def dataset_score(answers):
    """
    Score one place/dataset entry.

    Args:
        answers (dict): Question key -> "Yes" / "No" / "Unsure".

    Returns:
        int: Sum of the weights of the questions answered "Yes" (0..100).
    """
    answers = answers or {}
    return sum(weight for key, _, weight in QUESTIONS if answers.get(key) == "Yes")


def place_score(scores, dataset_count):
    """Percentage of the maximum achievable score across `dataset_count` datasets."""
    if dataset_count <= 0:
        return 0
    return int(round(100.0 * sum(scores) / (MAX_SCORE * dataset_count)))


def _clamp_score(score):
    try:
        score = float(score)
    except (TypeError, ValueError):
        return 0.0
    if score != score:  # NaN
        return 0.0
    return min(max(score, COLOR_STOPS[0][0]), COLOR_STOPS[-1][0])


def color_for_score(score):
    """
    Map a score onto the red-yellow-green gradient.

    Scores outside the gradient domain are clamped, unparsable scores count as
    the lowest score, so every input yields a colour.

    Returns:
        str: A "#rrggbb" colour.
    """
    score = _clamp_score(score)
    for (low, low_rgb), (high, high_rgb) in zip(COLOR_STOPS, COLOR_STOPS[1:]):
        if score <= high:
            t = (score - low) / float(high - low)
            # Halves round up, as Math.round does in census.js
            rgb = [int(math.floor(a + (b - a) * t + 0.5)) for a, b in zip(low_rgb, high_rgb)]
            return "#%02x%02x%02x" % tuple(rgb)
    return "#%02x%02x%02x" % COLOR_STOPS[-1][1]


def color_stops_payload():
    # Shape consumed by static/js/census.js
    return [{"score": score, "color": "#%02x%02x%02x" % rgb} for score, rgb in COLOR_STOPS]


def name_sort_key(name):
    """
    Collation key for place names: accents dropped, case folded.

    "Åland Islands" sorts with the A's and "Côte d'Ivoire" before "Cuba".
    The overview table embeds this key as data-sortkey so the browser sort
    agrees with the server.
    """
    decomposed = unicodedata.normalize("NFKD", str(name))
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


@dataclass(frozen=True)
class SummaryRow:
    place: str
    placename: str
    score: int

    @property
    def sortkey(self):
        return name_sort_key(self.placename)


def _by_name(row):
    return row.sortkey


def sort_rows(rows, sort_by="score"):
    """
    Order summary rows the way the overview table sorts them.

    "score" sorts by descending score with ascending place name (see
    name_sort_key) as the tie-break; "alpha" sorts by the place name only. The input is
    left untouched and the same row objects are returned in a new list.

    Args:
        rows (list[SummaryRow]): Rows in their current order.
        sort_by (str): "score" or "alpha".

    Returns:
        list[SummaryRow]: The re-ordered rows.
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"unknown sort key: {sort_by!r}")
    if sort_by == "score":
        return sorted(rows, key=lambda row: (-int(row.score), _by_name(row)))
    return sorted(rows, key=_by_name)
