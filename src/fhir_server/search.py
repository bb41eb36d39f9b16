"""
Translation of search query parameters into store filters.

Parameters take the form ``<field>:<modifier>=<value>`` (``patient:Patient=123``)
or plain ``<field>=<value>``. Only fields the resource declares are used; the
modifier is accepted but does not change the match, which is always equality.
"""

from collections.abc import Iterable, Mapping

from fhir_server.store.base import Filter


def reference_id(value: str) -> str:
    """Strip a ``Type/`` prefix from a reference value: ``Patient/123`` -> ``123``."""
    return value.rsplit("/", 1)[-1]


def build_filter(
    query: Mapping[str, str] | Iterable[tuple[str, str]],
    search_params: Mapping[str, str],
) -> Filter:
    """
    Build an equality filter from request query parameters.

    :param query: Query parameters, as a mapping or as ``(key, value)`` pairs.
    :param search_params: Recognised field names mapped to document paths.
    :returns: The filter; empty when no parameter was recognised.
    """
    pairs = query.items() if isinstance(query, Mapping) else query
    criteria: Filter = {}
    for key, value in pairs:
        field, _, _modifier = key.partition(":")
        path = search_params.get(field)
        if path is None:
            continue
        criteria[path] = reference_id(value) if path.endswith(".referenceid") else value
    return criteria
