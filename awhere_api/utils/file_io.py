"""Export normalized tables to local files."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

import pyarrow.parquet as pq

from awhere_api.transform.normalize import Table

logger = logging.getLogger(__name__)


def _file_metadata(table: Table, output_path: Path) -> dict:
    return {
        "file_path": str(output_path),
        "written_at": datetime.now(timezone.utc).isoformat(),
        "row_count": len(table),
        "column_count": len(table.columns),
        "file_size_bytes": output_path.stat().st_size,
    }


def write_jsonl(table: Table, output_path: Union[str, Path]) -> dict:
    """Write one JSON object per row.

    Args:
        table: Normalized table
        output_path: Output file path; parent directories are created

    Returns:
        Metadata dict with file info
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        for row in table:
            f.write(json.dumps(row, default=str) + "\n")

    metadata = _file_metadata(table, output_path)
    logger.info(f"Wrote {len(table)} rows to {output_path}", extra=metadata)
    return metadata


def write_parquet(table: Table, output_path: Union[str, Path]) -> dict:
    """Write the table as a Parquet file, keeping column order.

    Args:
        table: Normalized table
        output_path: Output file path; parent directories are created

    Returns:
        Metadata dict with file info
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    pq.write_table(table.to_arrow(), output_path)

    metadata = _file_metadata(table, output_path)
    logger.info(f"Wrote {len(table)} rows to Parquet at {output_path}", extra=metadata)
    return metadata
