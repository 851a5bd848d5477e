"""
Bulk loading of points from tabular files using DuckDB.

CSV and Parquet files are read through DuckDB's table functions; rows
with missing coordinates or coordinates outside the world box are
skipped. Every other selected column ends up in the point's payload.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import duckdb
import structlog

from .bounds import WORLD
from .points import GeoPoint


logger = structlog.get_logger()

READERS: Dict[str, str] = {
    ".csv": "read_csv_auto",
    ".tsv": "read_csv_auto",
    ".txt": "read_csv_auto",
    ".parquet": "read_parquet",
    ".pq": "read_parquet",
}

LAT_CANDIDATES = ("lat", "latitude")
LNG_CANDIDATES = ("lng", "lon", "long", "longitude")


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


class DuckDBPointSource:
    """
    A CSV or Parquet file exposed as a DuckDB view.

    Use as a context manager, or call close() when done.
    """

    def __init__(self, path: Path):
        """
        Open a file for reading.

        Args:
            path: CSV (.csv, .tsv, .txt) or Parquet (.parquet, .pq) file
        """
        path = Path(path)
        reader = READERS.get(path.suffix.lower())
        if reader is None:
            raise ValueError(f"Unsupported file type: {path.suffix or path.name}")
        if not path.exists():
            raise FileNotFoundError(f"Could not find {path}")

        self.path = path
        self._con = duckdb.connect(":memory:")
        self._con.execute(
            f"CREATE VIEW source AS SELECT * FROM {reader}({_quote_literal(str(path))})"
        )

    def columns(self) -> List[str]:
        """Column names in file order."""
        return [row[0] for row in self._con.execute("DESCRIBE source").fetchall()]

    def count(self) -> int:
        """Number of rows in the file."""
        return self._con.execute("SELECT count(*) FROM source").fetchone()[0]

    def _resolve(self, requested: Optional[str], candidates: Sequence[str], columns: List[str]) -> str:
        if requested is not None:
            if requested not in columns:
                raise ValueError(f"Column {requested!r} not found in {self.path}; have {columns}")
            return requested
        by_lower = {c.lower(): c for c in columns}
        for candidate in candidates:
            if candidate in by_lower:
                return by_lower[candidate]
        raise ValueError(f"No column named any of {list(candidates)} in {self.path}")

    def load(
        self,
        lat_column: Optional[str] = None,
        lng_column: Optional[str] = None,
        payload_columns: Optional[Sequence[str]] = None,
    ) -> List[GeoPoint]:
        """
        Read points from the file.

        Args:
            lat_column: Latitude column (default: lat or latitude)
            lng_column: Longitude column (default: lng, lon, long or longitude)
            payload_columns: Columns copied into each point's payload as a
                dict; defaults to every other column. Pass [] for no payload.

        Returns:
            Points in file order
        """
        columns = self.columns()
        lat_col = self._resolve(lat_column, LAT_CANDIDATES, columns)
        lng_col = self._resolve(lng_column, LNG_CANDIDATES, columns)

        if payload_columns is None:
            payload_columns = [c for c in columns if c not in (lat_col, lng_col)]
        else:
            missing = [c for c in payload_columns if c not in columns]
            if missing:
                raise ValueError(f"Payload columns not found in {self.path}: {missing}")
            payload_columns = list(payload_columns)

        selected = ", ".join(
            _quote_identifier(c) for c in [lat_col, lng_col, *payload_columns]
        )
        lat_q = _quote_identifier(lat_col)
        lng_q = _quote_identifier(lng_col)
        rows = self._con.execute(
            f"""
            SELECT {selected}
            FROM source
            WHERE {lat_q} IS NOT NULL AND {lng_q} IS NOT NULL
              AND {lat_q} BETWEEN ? AND ?
              AND {lng_q} BETWEEN ? AND ?
            """,
            [WORLD.lat_min, WORLD.lat_max, WORLD.lng_min, WORLD.lng_max],
        ).fetchall()

        points = []
        for row in rows:
            payload = dict(zip(payload_columns, row[2:])) if payload_columns else None
            points.append(GeoPoint(float(row[0]), float(row[1]), payload))

        skipped = self.count() - len(points)
        if skipped:
            logger.warning("Skipped rows outside the world box", path=str(self.path), skipped=skipped)
        logger.info("Loaded points", path=str(self.path), points=len(points))
        return points

    def close(self) -> None:
        """Close the database connection."""
        if self._con is not None:
            self._con.close()
            self._con = None

    def __del__(self):
        if getattr(self, "_con", None) is not None:
            self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def load_points(
    path: Path,
    lat_column: Optional[str] = None,
    lng_column: Optional[str] = None,
    payload_columns: Optional[Sequence[str]] = None,
) -> List[GeoPoint]:
    """
    Convenience function to read points from a CSV or Parquet file.

    Args:
        path: File to read
        lat_column: Latitude column name
        lng_column: Longitude column name
        payload_columns: Columns to keep as payload

    Returns:
        List of GeoPoint
    """
    with DuckDBPointSource(path) as source:
        return source.load(lat_column, lng_column, payload_columns)
