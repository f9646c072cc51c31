"""Per-request context value and the read-once flash queues."""

from dataclasses import dataclass, field
from types import MappingProxyType

from flask import session

FLASH_KEY = "flashes"
FLASH_CATEGORIES = ("error", "info")


def _empty():
    return MappingProxyType({})


@dataclass(frozen=True)
class RequestContext:
    """
    Values derived for a single request.

    Pipeline stages never mutate a context; each returns a new one built
    with `dataclasses.replace`. The final value lives on `flask.g`.
    """

    current_user: dict = None
    locale: str = ""
    readonly: bool = False
    session: MappingProxyType = field(default_factory=_empty)
    error_messages: tuple = ()
    info_messages: tuple = ()
    template_globals: MappingProxyType = field(default_factory=_empty)
    current_url: str = ""
    current_domain: str = ""
    url_query: MappingProxyType = field(default_factory=_empty)

    @property
    def logged_in(self):
        return self.current_user is not None


def push_flash(category, message):
    """Queue `message` under `category` for the next request that drains it."""
    if category not in FLASH_CATEGORIES:
        raise ValueError(f"unknown flash category: {category!r}")
    queues = dict(session.get(FLASH_KEY) or {})
    queues[category] = list(queues.get(category, [])) + [message]
    session[FLASH_KEY] = queues


def drain_flash(category):
    """
    Take every queued message for `category`.

    Returns:
        list[str]: The messages; the queue is empty afterwards, so a second
            call within the same request returns [].
    """
    queues = session.get(FLASH_KEY)
    if not queues or not queues.get(category):
        return []
    queues = dict(queues)
    messages = list(queues.pop(category))
    if queues:
        session[FLASH_KEY] = queues
    else:
        session.pop(FLASH_KEY, None)
    return messages
