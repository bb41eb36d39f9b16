"""
Bundle assembly for search responses.
"""

from collections.abc import Sequence
from datetime import datetime, timezone

from fhir.bundle import Bundle, BundleEntry
from fhir.resource import Resource

from fhir_server.identity import new_id


def build_entry(resource_name: str, record: Resource) -> BundleEntry:
    return BundleEntry(
        title=f"{resource_name} {record['id']}",
        id=record["id"],
        content=record,
    )


def build_bundle(
    resource_name: str, records: Sequence[Resource], wrap_entries: bool = False
) -> Bundle:
    """
    Wrap search results in a freshly identified, timestamped Bundle.

    ``totalResults`` is the number of records passed in. Any page cap applied by
    the store is not compensated for.

    :param resource_name: Resource type the records belong to.
    :param records: Search results, in the order they should appear.
    :param wrap_entries: Wrap each record in a titled :class:`BundleEntry`.
    :returns: The assembled Bundle. The records themselves are not modified.
    """
    entries: list[Resource] | list[BundleEntry]
    if wrap_entries:
        entries = [build_entry(resource_name, record) for record in records]
    else:
        entries = list(records)

    return Bundle(
        type="Bundle",
        title=f"{resource_name} Index",
        id=new_id(),
        updated=datetime.now(timezone.utc).isoformat(),
        totalResults=len(records),
        entry=entries,
    )
