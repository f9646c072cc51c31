"""
@file app_factory.py
@description
Flask application factory for the Open Data Census.

Responsibilities:
- Turn a Config into a StartupPlan once and wire the app accordingly.
- Install the basic-auth gate, the session machinery (census mode only) and
  the request-context pipeline.
- Register the display routes always and the census routes in census mode.

External Dependencies:
- Flask (app framework, Jinja2 templates, static files)
- Authlib (Google login, census mode only)
- Flask-Compress (gzip/brotli response compression)
"""

import logging

from flask import Flask, render_template
from flask_compress import Compress

from .auth import ReadonlySessionInterface, basic_auth_gate, init_oauth
from .data import CensusData, SubmissionStore
from .pipeline import install_pipeline
from .startup import plan_for
from .views import census as census_views
from .views import core as core_views


def _register_error_pages(app):
    @app.errorhandler(403)
    def forbidden(error):
        return render_template("error.html", code=403, message="You are not allowed to do that."), 403

    @app.errorhandler(404)
    def not_found(error):
        return render_template("error.html", code=404, message="Page not found."), 404


def create_app(config, data=None):
    """
    Build the application for `config`.

    Args:
        config (Config): Boot configuration, read once here.
        data (CensusData): Preloaded data store; loaded from
            config.data_path when omitted.

    Returns:
        Flask: The configured application.
    """
    plan = plan_for(config)

    app = Flask(__name__)
    app.logger.setLevel(getattr(logging, str(config.log_level).upper(), logging.INFO))
    app.config["TESTING"] = config.testing
    app.secret_key = config.session_secret
    if plan.readonly:
        app.config["SEND_FILE_MAX_AGE_DEFAULT"] = config.static_max_age
    Compress(app)

    if plan.basic_auth:
        app.before_request(basic_auth_gate(config))

    state = {
        "config": config,
        "plan": plan,
        "data": data if data is not None else CensusData.load(config.data_path),
    }
    if plan.sessions:
        state["submissions"] = SubmissionStore(config.submissions_path)
        state["oauth"] = init_oauth(app, config)
    else:
        app.session_interface = ReadonlySessionInterface()
    app.extensions["census"] = state

    install_pipeline(app, plan)
    _register_error_pages(app)

    # Census routes come first so they win over any overlapping display route
    if plan.census_routes:
        app.logger.warning("Loading in census mode. Data will be editable.")
        app.register_blueprint(census_views.bp)
    app.register_blueprint(core_views.bp)

    if config.testing and config.test_user:
        app.logger.warning("Testing mode: requests without a user run as %s", config.test_user.get("id"))

    app.logger.info("Started in %s mode", plan.mode.name)
    return app
