"""Response normalization: nested aWhere documents -> flat tables."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Optional, Union

import pyarrow as pa

from awhere_api.endpoints.descriptor import ResourceFamily
from awhere_api.exceptions import ParseError
from awhere_api.transform.flatten import flatten_json

logger = logging.getLogger(__name__)

SEPARATOR = "."


# ============================================
# Table
# ============================================

@dataclass
class Table:
    """Ordered rows sharing one column set.

    Every row holds every column; values missing from a record are None.
    """

    columns: list[str] = field(default_factory=list)
    rows: list[dict] = field(default_factory=list)

    @classmethod
    def from_records(cls, records: Iterable[dict]) -> "Table":
        """Build a table from flat records, keeping first-seen column order."""
        records = list(records)
        columns: list[str] = []
        seen = set()
        for record in records:
            for key in record:
                if key not in seen:
                    seen.add(key)
                    columns.append(key)
        rows = [{column: record.get(column) for column in columns} for record in records]
        return cls(columns=columns, rows=rows)

    @classmethod
    def concat(cls, tables: Iterable["Table"]) -> "Table":
        """Stack tables vertically; the column set is the union."""
        return cls.from_records(row for table in tables for row in table.rows)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[dict]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> dict:
        return self.rows[index]

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def column(self, name: str) -> list:
        if name not in self.columns:
            raise KeyError(name)
        return [row[name] for row in self.rows]

    def with_leading_columns(self, values: dict) -> "Table":
        """Prepend constant-valued columns (e.g. the request's field id)."""
        columns = list(values) + [c for c in self.columns if c not in values]
        rows = [{column: {**row, **values}.get(column) for column in columns} for row in self.rows]
        return Table(columns=columns, rows=rows)

    def drop_columns(self, names: Iterable[str]) -> "Table":
        names = set(names)
        columns = [c for c in self.columns if c not in names]
        rows = [{c: row[c] for c in columns} for row in self.rows]
        return Table(columns=columns, rows=rows)

    def filter(self, predicate: Callable[[dict], bool]) -> "Table":
        return Table(columns=list(self.columns), rows=[dict(r) for r in self.rows if predicate(r)])

    def incomplete_rows(self, ignore: Iterable[str] = ()) -> list[int]:
        """Indexes of rows with a None value outside the ignored columns."""
        ignore = set(ignore)
        return [
            i for i, row in enumerate(self.rows)
            if any(row[c] is None for c in self.columns if c not in ignore)
        ]

    def to_records(self) -> list[dict]:
        return [dict(row) for row in self.rows]

    def to_arrow(self) -> pa.Table:
        """Convert to a ``pyarrow.Table`` with the same column order."""
        return pa.table({column: self.column(column) for column in self.columns})


# ============================================
# Record schemas
# ============================================

@dataclass(frozen=True)
class RecordSchema:
    """Where the repeating records live in a response document.

    Attributes:
        collection_key: Key of the record list in multi-record documents
        record_marker: Key identifying a document that is itself one record;
            None means any object is a single record
        children_key: Key of a nested list expanded into one row per child
        inherited: Parent fields copied onto each child row
        drop_fields: Top-level fields that never become columns
        keep_fields: When set, the only top-level fields that become columns
        depth_keys: Per-depth lists merged into one row per depth
    """

    collection_key: Optional[str]
    record_marker: Optional[str]
    children_key: Optional[str] = None
    inherited: tuple[str, ...] = ()
    drop_fields: tuple[str, ...] = ()
    keep_fields: tuple[str, ...] = ()
    depth_keys: tuple[str, ...] = ()


SCHEMAS: dict[ResourceFamily, RecordSchema] = {
    ResourceFamily.FIELDS: RecordSchema("fields", "id"),
    ResourceFamily.PLANTINGS: RecordSchema("plantings", "id"),
    ResourceFamily.CROPS: RecordSchema("crops", "id"),
    ResourceFamily.WEATHER_OBSERVATIONS: RecordSchema("observations", "date"),
    ResourceFamily.WEATHER_FORECASTS: RecordSchema(
        "forecasts",
        "date",
        children_key="forecast",
        inherited=("date",),
        drop_fields=("soilTemperatures", "soilMoisture"),
    ),
    ResourceFamily.WEATHER_NORMS: RecordSchema("norms", "day"),
    ResourceFamily.CURRENT_CONDITIONS: RecordSchema(None, None),
    ResourceFamily.AGRONOMIC_VALUES: RecordSchema("dailyValues", "date"),
    ResourceFamily.AGRONOMIC_NORMS: RecordSchema("dailyNorms", "day"),
    ResourceFamily.SOILS: RecordSchema(
        "forecasts",
        "date",
        children_key="forecast",
        inherited=("date",),
        keep_fields=("date", "startTime", "endTime", "depth", "soilTemperatures", "soilMoisture"),
        depth_keys=("soilTemperatures", "soilMoisture"),
    ),
    ResourceFamily.MODELS: RecordSchema("models", "modelId"),
    ResourceFamily.MODEL_DETAILS: RecordSchema(
        None,
        None,
        children_key="stages",
        inherited=(
            "modelId",
            "biofix",
            "gddMethod",
            "gddBaseTemp",
            "gddMaxBoundary",
            "gddMinBoundary",
            "gddUnits",
        ),
    ),
    ResourceFamily.MODEL_RESULTS: RecordSchema(
        None,
        None,
        children_key="stages",
        inherited=("modelId", "biofixDate", "plantingDate", "gddUnits", "location"),
    ),
}


def is_metadata_column(name: str) -> bool:
    """Unit annotations and hypermedia links are not measurements."""
    segments = name.split(SEPARATOR)
    return segments[-1] == "units" or "_links" in segments


def locate_records(document: Any, schema: RecordSchema) -> list[dict]:
    """Find the record list in a document, wrapping single-record documents.

    Raises:
        ParseError: If the document does not have the expected shape
    """
    if not isinstance(document, dict):
        raise ParseError(f"Expected a JSON object, got {type(document).__name__}")

    if schema.collection_key and schema.collection_key in document:
        records = document[schema.collection_key]
        if records is None:
            records = []
        if not isinstance(records, list):
            raise ParseError(
                f"Expected '{schema.collection_key}' to be a list, "
                f"got {type(records).__name__}"
            )
    elif schema.record_marker is None or schema.record_marker in document:
        records = [document]
    else:
        raise ParseError(
            f"Response has neither a '{schema.collection_key}' list nor a single "
            f"record with '{schema.record_marker}'; keys: {sorted(document)}"
        )

    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise ParseError(f"Record {i} is a {type(record).__name__}, expected an object")
    return records


def _expand_children(record: dict, schema: RecordSchema) -> list[dict]:
    if not schema.children_key or schema.children_key not in record:
        return [record]

    children = record[schema.children_key]
    if children is None:
        return []
    if not isinstance(children, list):
        raise ParseError(
            f"Expected '{schema.children_key}' to be a list, got {type(children).__name__}"
        )

    parent = {key: record[key] for key in schema.inherited if key in record}
    expanded = []
    for i, child in enumerate(children):
        if not isinstance(child, dict):
            raise ParseError(f"'{schema.children_key}' entry {i} is not an object")
        expanded.append({**parent, **child})
    return expanded


def _expand_depths(record: dict, schema: RecordSchema) -> list[dict]:
    """One row per depth, merging the depth lists entry by entry."""
    if not schema.depth_keys:
        return [record]

    base = {k: v for k, v in record.items() if k not in schema.depth_keys}
    by_depth: dict[Any, dict] = {}
    for key in schema.depth_keys:
        entries = record.get(key) or []
        if not isinstance(entries, list):
            raise ParseError(f"Expected '{key}' to be a list, got {type(entries).__name__}")
        for entry in entries:
            if not isinstance(entry, dict):
                raise ParseError(f"'{key}' entry is not an object")
            depth = entry.get("depth")
            row = by_depth.setdefault(depth, {**base, "depth": depth})
            row[key] = {k: v for k, v in entry.items() if k != "depth"}
    return list(by_depth.values())


def _to_row(record: dict, schema: RecordSchema) -> dict:
    trimmed = {k: v for k, v in record.items() if k not in schema.drop_fields}
    if schema.keep_fields:
        trimmed = {k: v for k, v in trimmed.items() if k in schema.keep_fields}
    flat = flatten_json(trimmed, separator=SEPARATOR)
    return {k: v for k, v in flat.items() if not is_metadata_column(k)}


def normalize_response(
    document: Any,
    schema: Union[ResourceFamily, RecordSchema],
) -> Table:
    """Turn one response document into a table.

    One row per record (per child for forecasts, per depth for soils), in
    document order; nested fields become dotted columns; unit and link
    metadata is dropped.

    Args:
        document: Parsed JSON body
        schema: Resource family of the request, or an explicit schema

    Returns:
        Table, possibly empty

    Raises:
        ParseError: If the document does not have the expected shape
    """
    if isinstance(schema, ResourceFamily):
        schema = SCHEMAS[schema]

    rows = [
        _to_row(row, schema)
        for record in locate_records(document, schema)
        for expanded in _expand_children(record, schema)
        for row in _expand_depths(expanded, schema)
    ]
    table = Table.from_records(rows)

    logger.debug(
        f"Normalized {len(table)} rows",
        extra={"row_count": len(table), "column_count": len(table.columns)},
    )
    return table
