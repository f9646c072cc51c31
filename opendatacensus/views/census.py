"""
@file census.py
@description
Editable census routes: submissions, review, login and admin reload.
Only registered when the application does not run in readonly mode.
"""

from authlib.integrations.base_client import OAuthError
from flask import (
    Blueprint,
    abort,
    current_app,
    make_response,
    redirect,
    render_template,
    request,
    session,
    url_for,
)

from ..auth import anonymous_user, google_user, is_reviewer
from ..context import push_flash
from ..data import DataError, SubmissionStore
from ..pipeline import current_context
from ..scoring import CHOICES, QUESTIONS, is_choice
from . import census_state

bp = Blueprint("census", __name__)

LANG_COOKIE_MAX_AGE = 365 * 24 * 3600


def _login_redirect():
    push_flash("error", "You need to log in first.")
    return redirect(url_for("census.login", next=request.full_path.rstrip("?")))


def _safe_next(target):
    # Only same-site paths
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return url_for("core.overview")


def validate_submission(form, data):
    """
    Check a submission form.

    Returns:
        tuple[dict, list[str]]: Cleaned values and the validation errors.
    """
    errors = []
    place = form.get("place", "")
    dataset = form.get("dataset", "")
    if data.place(place) is None:
        errors.append("Please choose a place.")
    if data.dataset(dataset) is None:
        errors.append("Please choose a dataset.")
    answers = {}
    for key, label, _ in QUESTIONS:
        value = form.get(key, "")
        if not is_choice(value):
            errors.append(f"{label}: choose one of {', '.join(CHOICES)}.")
        answers[key] = value
    cleaned = {
        "place": place,
        "dataset": dataset,
        "answers": answers,
        "details": form.get("details", "").strip(),
    }
    return cleaned, errors


# ---------------------- Routes ----------------------

@bp.route("/contribute")
def contribute():
    config = census_state()["config"]
    if not config.has_contribute_page:
        abort(404)
    content = config.localized("contribute_page", current_context().locale)
    return render_template("page.html", title="Contribute", content=content)


@bp.route("/setlocale/<locale>")
def setlocale(locale):
    target = _safe_next(request.args.get("next"))
    response = make_response(redirect(target))
    response.set_cookie("lang", locale, max_age=LANG_COOKIE_MAX_AGE)
    return response


@bp.route("/submit", methods=["GET", "POST"])
def submit():
    """
    Show and accept the survey submission form.

    Returns:
        Response: The form (400 when invalid) or a redirect to the stored
            submission.
    """
    ctx = current_context()
    if not ctx.logged_in:
        return _login_redirect()
    state = census_state()
    data = state["data"]

    if request.method == "GET":
        values = {
            "place": request.args.get("place", ""),
            "dataset": request.args.get("dataset", ""),
            "answers": {},
            "details": "",
        }
        existing = data.entry(values["place"], values["dataset"])
        if existing:
            values["answers"] = dict(existing.get("answers", {}))
        return render_template("submit.html", values=values, errors=[], **_form_options(data))

    values, errors = validate_submission(request.form, data)
    if errors:
        return render_template("submit.html", values=values, errors=errors, **_form_options(data)), 400

    submission = state["submissions"].create(
        values["place"], values["dataset"], values["answers"], values["details"],
        submitter=ctx.current_user.get("name", ""),
    )
    current_app.logger.info("submission %s for %s/%s", submission["id"], submission["place"], submission["dataset"])
    push_flash("info", state["config"].localized("post_submission_info", ctx.locale) or "Thank you for your submission.")
    return redirect(url_for("census.submission", submissionid=submission["id"]))


def _form_options(data):
    return {"places": data.places, "datasets": data.datasets, "questions": QUESTIONS, "choices": CHOICES}


@bp.route("/submission/<submissionid>")
def submission(submissionid):
    state = census_state()
    record = state["submissions"].get(submissionid)
    if record is None:
        abort(404)
    ctx = current_context()
    return render_template(
        "submission.html",
        submission=record,
        place=state["data"].place(record["place"]),
        dataset=state["data"].dataset(record["dataset"]),
        questions=QUESTIONS,
        can_review=is_reviewer(ctx.current_user, state["config"]) and record["status"] == SubmissionStore.PENDING,
    )


@bp.route("/submission/<submissionid>", methods=["POST"])
def review_post(submissionid):
    state = census_state()
    store = state["submissions"]
    record = store.get(submissionid)
    if record is None:
        abort(404)
    ctx = current_context()
    if not ctx.logged_in:
        return _login_redirect()
    if not is_reviewer(ctx.current_user, state["config"]):
        abort(403)
    if record["status"] != SubmissionStore.PENDING:
        push_flash("error", "This submission has already been reviewed.")
        return redirect(url_for("census.submission", submissionid=submissionid))

    reviewer = ctx.current_user.get("name", "")
    action = request.form.get("action")
    if action == "publish":
        # Status is written before the entry; a failed publish reopens it
        store.set_status(submissionid, SubmissionStore.PUBLISHED, reviewer)
        try:
            state["data"].publish(record, reviewer)
        except OSError as exc:
            store.set_status(submissionid, SubmissionStore.PENDING, "")
            current_app.logger.error("publishing submission %s failed: %s", submissionid, exc)
            push_flash("error", "Publishing the submission failed.")
            return redirect(url_for("census.submission", submissionid=submissionid))
        push_flash("info", "Submission published.")
        return redirect(url_for("core.entry_by_place_dataset", place=record["place"], dataset=record["dataset"]))
    if action == "reject":
        store.set_status(submissionid, SubmissionStore.REJECTED, reviewer)
        push_flash("info", "Submission rejected.")
        return redirect(url_for("core.overview"))
    push_flash("error", "Choose publish or reject.")
    return redirect(url_for("census.submission", submissionid=submissionid))


@bp.route("/login")
def login():
    session["next"] = _safe_next(request.args.get("next"))
    oauth = census_state()["oauth"]
    return render_template("login.html", google_enabled=oauth.create_client("google") is not None)


@bp.route("/login", methods=["POST"])
def anon_login():
    name = request.form.get("displayname", "").strip()
    if not name:
        push_flash("error", "Please enter a name.")
        return redirect(url_for("census.login"))
    session["user"] = anonymous_user(name)
    session["loggedin"] = True
    return redirect(url_for("census.loggedin"))


@bp.route("/auth/logout")
def logout():
    session.pop("user", None)
    session["loggedin"] = False
    push_flash("info", "You have been logged out.")
    return redirect(url_for("core.overview"))


@bp.route("/auth/loggedin")
def loggedin():
    ctx = current_context()
    if not ctx.logged_in:
        return redirect(url_for("census.login"))
    push_flash("info", f"You are logged in as {ctx.current_user.get('name', '')}.")
    return redirect(_safe_next(session.pop("next", None)))


@bp.route("/admin/reload")
def reload():
    ctx = current_context()
    if not ctx.logged_in:
        return _login_redirect()
    try:
        census_state()["data"].reload()
    except DataError as exc:
        current_app.logger.error("data reload failed: %s", exc)
        push_flash("error", "Reloading the census data failed.")
    else:
        current_app.logger.info("census data reloaded by %s", ctx.current_user.get("id"))
        push_flash("info", "Census data reloaded.")
    return redirect(url_for("core.overview"))


@bp.route("/auth/google")
def google_login():
    client = census_state()["oauth"].create_client("google")
    if client is None:
        push_flash("error", "Google login is not configured.")
        return redirect(url_for("census.login"))
    return client.authorize_redirect(url_for("census.google_callback", _external=True))


@bp.route("/auth/google/callback")
def google_callback():
    client = census_state()["oauth"].create_client("google")
    if client is None or request.args.get("error"):
        push_flash("error", "Google login failed.")
        return redirect(url_for("census.login"))
    try:
        token = client.authorize_access_token()
    except OAuthError as exc:
        current_app.logger.warning("Google token exchange failed: %s", exc)
        push_flash("error", "Google login failed.")
        return redirect(url_for("census.login"))

    userinfo = token.get("userinfo") or client.userinfo()
    if not userinfo.get("email"):
        push_flash("error", "Google did not share an email address.")
        return redirect(url_for("census.login"))
    session["user"] = google_user(userinfo)
    session["loggedin"] = True
    return redirect(url_for("census.loggedin"))
