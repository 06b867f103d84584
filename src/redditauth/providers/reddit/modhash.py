"""Modhash extraction shared by the authenticator and the modhash stage."""

import threading

import requests

from redditauth.core.interfaces import Handler, Middleware
from redditauth.core.models import RequestEnvelope

MODHASH_HEADER = "X-Modhash"
MODHASH_CONTEXT_KEY = "modhash"


def extract_modhash(response: requests.Response) -> str | None:
    """Return the modhash carried by *response*, if any.

    Sources are checked in order:

    1. The ``X-Modhash`` response header.
    2. ``json.data.modhash`` (``api_type=json`` envelopes, e.g. login).
    3. ``data.modhash`` (listing-style bodies such as ``/api/me.json``).

    Args:
        response: A response from the Reddit API.

    Returns:
        The modhash string, or ``None`` when the response carries none or
        its body is not JSON.
    """
    modhash = response.headers.get(MODHASH_HEADER)
    if modhash:
        return modhash

    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None

    envelope = body.get("json")
    if isinstance(envelope, dict):
        body = envelope
    data = body.get("data")
    if isinstance(data, dict) and data.get("modhash"):
        return data["modhash"]
    return None


class ModhashMiddleware(Middleware):
    """Sends the current modhash on state-mutating requests.

    The stage sits behind the authenticator.  It picks up the modhash the
    authenticator places in ``request.context`` after a login, refreshes it
    from every response that carries one, and adds the ``X-Modhash`` header
    to POST, PUT, PATCH and DELETE requests.

    One instance is shared by every request of a client, so reads and
    writes of :attr:`modhash` happen under a lock.  The lock is not held
    while the next stage runs; when responses race, the last one to
    arrive wins.
    """

    MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

    def __init__(self, next_handler: Handler):
        super().__init__(next_handler)
        self.modhash: str | None = None
        self._lock = threading.Lock()

    def intercept(self, request: RequestEnvelope) -> requests.Response:
        with self._lock:
            if request.context.get(MODHASH_CONTEXT_KEY):
                self.modhash = request.context[MODHASH_CONTEXT_KEY]
            modhash = self.modhash
        if modhash and request.method.upper() in self.MUTATING_METHODS:
            request.headers.setdefault(MODHASH_HEADER, modhash)

        response = self.next_handler.intercept(request)

        modhash = extract_modhash(response)
        if modhash:
            with self._lock:
                self.modhash = modhash
        return response
