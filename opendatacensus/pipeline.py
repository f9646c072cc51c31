"""
@file pipeline.py
@description
The request-context pipeline run around every route handler.

Response stages add headers to every response, including early returns and
error pages. Request stages each take the current RequestContext and return
a new one; their order is fixed:

    test user -> locale -> readonly session -> template globals

Which stages take part is decided once at startup (see startup.py).

External Dependencies:
- Flask (before_request / after_request hooks, g, session)
"""

import time
from dataclasses import replace
from types import MappingProxyType

from flask import g, request, session

from .context import RequestContext, drain_flash
from .scoring import color_stops_payload

CORS_HEADERS = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "GET,PUT,POST,DELETE"),
    ("Access-Control-Allow-Headers", "Content-Type"),
)


# ---------------------- Response stages ----------------------

def cors_headers(response):
    for name, value in CORS_HEADERS:
        response.headers[name] = value
    return response


def cache_control(max_age):
    max_age = int(max_age)
    value = f"public, max-age={max_age}"

    def set_cache_control(response):
        # A handler that already chose a policy keeps it
        if "Cache-Control" not in response.headers:
            response.headers["Cache-Control"] = value
        return response

    return set_cache_control


# ---------------------- Request stages ----------------------

def test_user_stage(config):
    def apply_test_user(ctx, req):
        if ctx.current_user is None and config.test_user:
            return replace(ctx, current_user=dict(config.test_user))
        return ctx

    return apply_test_user


def negotiate_locale(config, req):
    return req.accept_languages.best_match(config.locales) or config.default_locale


def locale_stage(config):
    def apply_locale(ctx, req):
        locale = negotiate_locale(config, req)
        if req.cookies.get("lang"):
            locale = req.cookies["lang"]
        return replace(ctx, locale=locale)

    return apply_locale


def readonly_session_stage(ctx, req):
    return replace(ctx, readonly=True, session=MappingProxyType({"loggedin": False}))


def template_globals_stage(config):
    def apply_template_globals(ctx, req):
        locale = ctx.locale
        current_domain = f"{req.scheme}://{req.host}"
        current_url = current_domain + req.path
        url_query = MappingProxyType(req.args.to_dict())
        error_messages = tuple(drain_flash("error"))
        info_messages = tuple(drain_flash("info"))
        template_globals = {
            "locales": config.locales,
            "currentLocale": locale,
            "sitename": config.localized("title", locale),
            "sitename_short": config.localized("title_short", locale),
            "custom_css": config.localized("custom_css"),
            "google_analytics_key": config.localized("google_analytics_key"),
            "custom_footer": config.localized("custom_footer", locale),
            "navbar_logo": config.localized("navbar_logo", locale),
            "banner_text": config.localized("banner_text", locale),
            "current_url": current_url,
            "current_domain": current_domain,
            "post_submission_info": config.localized("post_submission_info", locale),
            "share_submission_template": config.localized("share_submission_template", locale),
            "share_page_template": config.localized("share_page_template", locale),
            "has_contribute_page": config.has_contribute_page,
            "url_query": url_query,
            "error_messages": error_messages,
            "info_messages": info_messages,
        }
        return replace(
            ctx,
            current_url=current_url,
            current_domain=current_domain,
            url_query=url_query,
            error_messages=error_messages,
            info_messages=info_messages,
            template_globals=MappingProxyType(template_globals),
        )

    return apply_template_globals


def initial_context(readonly):
    user = None if readonly else session.get("user")
    return RequestContext(
        current_user=dict(user) if user else None,
        readonly=readonly,
        session=MappingProxyType(dict(session)),
    )


def run_request_stages(stages, ctx, req):
    for stage in stages:
        ctx = stage(ctx, req)
    return ctx


def current_context():
    """Return the RequestContext built for the active request."""
    return g.census


# ---------------------- Installation ----------------------

def install_pipeline(app, plan):
    """Register the plan's stages, template context and access log on `app`."""
    readonly = plan.readonly

    @app.before_request
    def build_request_context():
        g.request_started = time.perf_counter()
        g.census = run_request_stages(plan.request_stages, initial_context(readonly), request)

    @app.after_request
    def apply_response_stages(response):
        for stage in plan.response_stages:
            response = stage(response)
        return response

    @app.context_processor
    def inject_request_context():
        ctx = g.get("census")
        if ctx is None:
            return {"readonly": readonly, "color_stops": color_stops_payload()}
        values = dict(ctx.template_globals)
        values.update(
            currentUser=ctx.current_user,
            readonly=ctx.readonly,
            session_view=ctx.session,
            color_stops=color_stops_payload(),
        )
        return values

    if plan.access_log:
        @app.after_request
        def log_request(response):
            started = g.get("request_started")
            elapsed = (time.perf_counter() - started) * 1000 if started else 0.0
            app.logger.info(
                "%s %s %s %.1f ms", request.method, request.full_path.rstrip("?"),
                response.status_code, elapsed,
            )
            return response
