"""Helpers shared by the public operations."""

from typing import Any, Optional

from awhere_api.transform.normalize import Table


def compact(options: dict[str, Any]) -> dict[str, Any]:
    """Drop options left at None."""
    return {key: value for key, value in options.items() if value is not None}


def tag_rows(
    table: Table,
    field_id: Optional[str] = None,
    latitude: Optional[Any] = None,
    longitude: Optional[Any] = None,
) -> Table:
    """Prepend the request's location to every row.

    Field-addressed tables get a ``field_id`` column, coordinate-addressed
    tables ``latitude`` and ``longitude`` columns.
    """
    if field_id is not None:
        return table.with_leading_columns({"field_id": field_id})
    return table.with_leading_columns({"latitude": latitude, "longitude": longitude})
