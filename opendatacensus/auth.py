"""
@file auth.py
@description
Authentication pieces that are installed (or not) at startup.

Responsibilities:
- HTTP basic-auth gate checked against a Werkzeug password hash.
- Session interface used in readonly mode, where no session store exists.
- Google OAuth client registration and the census user identities.

External Dependencies:
- Werkzeug (check_password_hash)
- Authlib (Flask OAuth client)
"""

from authlib.integrations.flask_client import OAuth
from flask import Response, request
from flask.sessions import SessionInterface, SessionMixin
from werkzeug.security import check_password_hash

BASIC_AUTH_REALM = "Open Data Census"

GOOGLE_METADATA_URL = "https://accounts.google.com/.well-known/openid-configuration"


# ---------------------- Basic auth ----------------------

def credentials_valid(config, username, password):
    """
    Check a username/password pair against the configured account.

    Returns:
        bool: True only when both the user name and the password hash match.
    """
    if not username or password is None:
        return False
    valid_user = username == config.auth_user
    valid_pass = check_password_hash(config.auth_passhash, password)
    return valid_user and valid_pass


def basic_auth_gate(config):
    """Build a before_request hook that challenges every unauthenticated request."""

    def require_basic_auth():
        auth = request.authorization
        if auth is not None and credentials_valid(config, auth.username, auth.password):
            return None
        return Response(
            "Authentication required.",
            401,
            {"WWW-Authenticate": f'Basic realm="{BASIC_AUTH_REALM}"'},
        )

    return require_basic_auth


# ---------------------- Readonly sessions ----------------------

class ReadonlySession(dict, SessionMixin):
    """Empty, never persisted session that reports nobody as logged in."""

    def __init__(self):
        super().__init__(loggedin=False)


class ReadonlySessionInterface(SessionInterface):
    def open_session(self, app, request):
        return ReadonlySession()

    def save_session(self, app, session, response):
        return None


# ---------------------- Census identities ----------------------

def anonymous_user(name):
    name = name.strip()
    return {"id": f"anonymous:{name}", "name": name, "email": "", "provider": "anonymous"}


def google_user(userinfo):
    email = (userinfo.get("email") or "").strip().lower()
    return {
        "id": f"google:{userinfo.get('sub') or email}",
        "name": (userinfo.get("name") or email).strip(),
        "email": email,
        "provider": "google",
    }


def is_reviewer(user, config):
    if not user:
        return False
    reviewers = set(config.reviewers)
    return user.get("id") in reviewers or (bool(user.get("email")) and user.get("email") in reviewers)


def init_oauth(app, config):
    """
    Attach an Authlib OAuth registry to `app`.

    Google is only registered when a client id and secret are configured;
    callers check `oauth.create_client("google")` for None.

    Returns:
        OAuth: The registry.
    """
    oauth = OAuth(app)
    if config.google_client_id and config.google_client_secret:
        oauth.register(
            name="google",
            client_id=config.google_client_id,
            client_secret=config.google_client_secret,
            server_metadata_url=GOOGLE_METADATA_URL,
            client_kwargs={"scope": "openid email profile"},
        )
    else:
        app.logger.info("Google login disabled: GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET not set")
    return oauth
