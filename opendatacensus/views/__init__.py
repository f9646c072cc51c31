"""Route blueprints: display pages (core) and the editable census pages."""

from flask import current_app


def census_state():
    """Config, data store and friends attached by `create_app`."""
    return current_app.extensions["census"]
