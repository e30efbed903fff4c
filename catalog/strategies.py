"""Lookup strategies and the chains each endpoint resolves with.

Every factory returns a ``Strategy`` whose function takes
``(identifier, context)``. The store handle, the REST client, the page
limit and any previously resolved rows come from the ``ResolutionContext``;
strategies keep no state of their own, so chains are built once at startup
and shared by all requests.
"""

import re
from typing import Any, Dict, List, Optional

from .config import Settings
from .resolver import MANY, ONE, ResolutionContext, Strategy
from .store import StoreNotConfigured

FUZZY_MIN_LENGTH = 3
SAME_LABEL_LIMIT = 10

_NON_WORD = re.compile(r"[^\w\s]|_")


def sanitise_name(name: str) -> str:
    """Drop punctuation and underscores so a display name can be used in an ILIKE pattern."""
    return _NON_WORD.sub("", name or "").strip()


def _store(context: Optional[ResolutionContext]):
    if context is None or context.store is None:
        raise StoreNotConfigured("No catalog store available")
    return context.store


def _limit(context: Optional[ResolutionContext]) -> Optional[int]:
    return context.limit if context else None


def _resolved(context: Optional[ResolutionContext], key: str) -> Dict[str, Any]:
    if context is None:
        return {}
    value = context.values.get(key)
    return value if isinstance(value, dict) else {}


def _single(rows: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return rows[0] if rows else None


def direct_reference(name: str, table: str, column: str, cardinality: str = MANY, timeout: Optional[float] = None) -> Strategy:
    """Rows of ``table`` whose ``column`` equals the identifier."""

    def lookup(identifier, context):
        limit = 1 if cardinality == ONE else _limit(context)
        rows = _store(context).query_by_foreign_key(table, column, identifier, limit=limit)
        return _single(rows) if cardinality == ONE else rows

    return Strategy(name, lookup, cardinality, timeout)


def join_table(
    name: str,
    association: str,
    join_column: str,
    link_column: str,
    target_table: str,
    timeout: Optional[float] = None,
) -> Strategy:
    """Rows of ``target_table`` linked to the identifier through ``association``."""

    def lookup(identifier, context):
        return _store(context).query_by_join(
            association, join_column, identifier, target_table, link_column, limit=_limit(context)
        )

    return Strategy(name, lookup, MANY, timeout)


def spotify_join(
    name: str,
    entity_table: str,
    association: str,
    join_column: str,
    link_column: str,
    target_table: str,
    timeout: Optional[float] = None,
) -> Strategy:
    """Treat the identifier as a Spotify id, map it to the internal id, then join."""

    def lookup(identifier, context):
        store = _store(context)
        entity = _single(store.query_by_foreign_key(entity_table, "spotify_id", identifier, limit=1))
        internal_id = entity.get("id") if entity else None
        if internal_id is None or str(internal_id) == identifier:
            return []
        return store.query_by_join(association, join_column, internal_id, target_table, link_column, limit=_limit(context))

    return Strategy(name, lookup, MANY, timeout)


def remote_procedure(name: str, function: str, param: str, timeout: Optional[float] = None) -> Strategy:
    """Rows returned by the stored function ``function(param := identifier)``."""

    def lookup(identifier, context):
        rows = _store(context).call_remote_procedure(function, {param: identifier})
        limit = _limit(context)
        return rows[:limit] if limit else rows

    return Strategy(name, lookup, MANY, timeout)


def fuzzy_name(name: str, table: str, column: str, entity_key: str, timeout: Optional[float] = None) -> Strategy:
    """Rows whose ``column`` contains the resolved entity's name.

    The name comes from ``context.values[entity_key]["name"]`` and falls back
    to the identifier itself. Names shorter than ``FUZZY_MIN_LENGTH`` after
    sanitising match too much to be useful and resolve to nothing.
    """

    def lookup(identifier, context):
        display = _resolved(context, entity_key).get("name") or identifier
        term = sanitise_name(display)
        if len(term) < FUZZY_MIN_LENGTH:
            return []
        return _store(context).query_by_pattern(table, column, term, limit=_limit(context))

    return Strategy(name, lookup, MANY, timeout)


def same_label(name: str, table: str, entity_key: str, timeout: Optional[float] = None) -> Strategy:
    """Rows sharing the resolved entity's ``label_id``."""

    def lookup(identifier, context):
        label_id = _resolved(context, entity_key).get("label_id")
        if not label_id:
            return []
        limit = min(_limit(context) or SAME_LABEL_LIMIT, SAME_LABEL_LIMIT)
        return _store(context).query_by_foreign_key(table, "label_id", label_id, limit=limit)

    return Strategy(name, lookup, MANY, timeout)


def linked_through(
    name: str,
    source_table: str,
    source_column: str,
    association: str,
    association_column: str,
    link_column: str,
    target_table: str,
    timeout: Optional[float] = None,
) -> Strategy:
    """Rows of ``target_table`` reached from ``source_table`` through ``association``.

    For a label: the label's releases, the ``release_artists`` rows of those
    releases, then the artists they point at.
    """

    def lookup(identifier, context):
        store = _store(context)
        sources = store.query_by_foreign_key(source_table, source_column, identifier)
        links = store.query_by_values(association, association_column, [row.get("id") for row in sources])
        return store.query_by_values(
            target_table, "id", [row.get(link_column) for row in links], limit=_limit(context)
        )

    return Strategy(name, lookup, MANY, timeout)


def normalized_reference(name: str, table: str, column: str, timeout: Optional[float] = None) -> Strategy:
    """``direct_reference`` with hyphens removed from the identifier (``buildit-deep`` -> ``builditdeep``)."""

    def lookup(identifier, context):
        normalized = identifier.replace("-", "")
        if normalized == identifier:
            return []
        return _store(context).query_by_foreign_key(table, column, normalized, limit=_limit(context))

    return Strategy(name, lookup, MANY, timeout)


def name_reference(
    name: str,
    lookup_table: str,
    name_column: str,
    table: str,
    column: str,
    timeout: Optional[float] = None,
) -> Strategy:
    """Rows of ``table`` pointing at ``lookup_table`` rows whose name contains the identifier.

    Hyphens read as spaces, so ``build-it-tech`` finds the label "Build It Tech".
    """

    def lookup(identifier, context):
        term = sanitise_name(identifier.replace("-", " "))
        if len(term) < FUZZY_MIN_LENGTH:
            return []
        store = _store(context)
        matches = store.query_by_pattern(lookup_table, name_column, term)
        return store.query_by_values(table, column, [row.get("id") for row in matches], limit=_limit(context))

    return Strategy(name, lookup, MANY, timeout)


def rest_lookup(name: str, table: str, column: str, cardinality: str = MANY, timeout: Optional[float] = None) -> Strategy:
    """Same as ``direct_reference`` but through the PostgREST HTTP API."""

    def lookup(identifier, context):
        if context is None or context.rest is None:
            raise StoreNotConfigured("No REST client available")
        limit = 1 if cardinality == ONE else _limit(context)
        rows = context.rest.select(table, column, identifier, limit=limit)
        return _single(rows) if cardinality == ONE else rows

    return Strategy(name, lookup, cardinality, timeout)


def build_chains(settings: Optional[Settings] = None) -> Dict[str, List[Strategy]]:
    """Strategy chains keyed by endpoint name, in priority order."""
    t = settings.strategy_timeout if settings else None
    return {
        "artist": [
            direct_reference("by_id", "artists", "id", ONE, t),
            direct_reference("by_spotify_id", "artists", "spotify_id", ONE, t),
            rest_lookup("rest_by_id", "artists", "id", ONE, t),
        ],
        "artist_releases": [
            join_table("join_table", "release_artists", "artist_id", "release_id", "releases", t),
            spotify_join("spotify_join", "artists", "release_artists", "artist_id", "release_id", "releases", t),
            direct_reference("direct_ref", "releases", "artist_id", MANY, t),
            remote_procedure("rpc", "get_artist_releases", "artist_id_param", t),
            fuzzy_name("fuzzy_name", "releases", "title", "artist", t),
            same_label("same_label", "releases", "artist", t),
        ],
        "label_artists": [
            linked_through(
                "by_label_releases", "releases", "label_id", "release_artists", "release_id", "artist_id", "artists", t
            ),
            direct_reference("by_label_id", "artists", "label_id", MANY, t),
            rest_lookup("rest_by_label_id", "artists", "label_id", MANY, t),
        ],
        "release": [
            direct_reference("by_id", "releases", "id", ONE, t),
            direct_reference("by_spotify_id", "releases", "spotify_id", ONE, t),
            rest_lookup("rest_by_id", "releases", "id", ONE, t),
        ],
        "label_releases": [
            direct_reference("by_label_id", "releases", "label_id", MANY, t),
            normalized_reference("by_normalized_label_id", "releases", "label_id", t),
            name_reference("by_label_name", "labels", "name", "releases", "label_id", t),
            rest_lookup("rest_by_label_id", "releases", "label_id", MANY, t),
        ],
        "release_tracks": [
            direct_reference("by_release_id", "tracks", "release_id", MANY, t),
            rest_lookup("rest_by_release_id", "tracks", "release_id", MANY, t),
        ],
        "track": [
            direct_reference("by_id", "tracks", "id", ONE, t),
            direct_reference("by_spotify_id", "tracks", "spotify_id", ONE, t),
        ],
        "label_tracks": [
            direct_reference("by_label_id", "tracks", "label_id", MANY, t),
            rest_lookup("rest_by_label_id", "tracks", "label_id", MANY, t),
        ],
    }
