"""Database table export to CSV and Parquet"""
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pandas as pd
from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from stackgate.config.settings import SUPPORTED_EXPORT_FORMATS
from stackgate.utils.errors import ExportError

logger = logging.getLogger(__name__)


class DataExporter:
    """
    Exports database tables to files.

    One file per table per format, named <table>.<format>, written into
    the output directory. Existing files are overwritten.
    """

    def __init__(
        self,
        engine: Engine,
        output_dir: Union[str, Path],
        formats: Sequence[str] = SUPPORTED_EXPORT_FORMATS,
        tables: Optional[Sequence[str]] = None,
        schema: Optional[str] = None
    ):
        """
        Initialize exporter.

        Args:
            engine: Database engine
            output_dir: Directory to write files into
            formats: Output formats ("csv", "parquet")
            tables: Tables to export; all tables when empty
            schema: Database schema; the connection default when None
        """
        unknown = [fmt for fmt in formats if fmt not in SUPPORTED_EXPORT_FORMATS]
        if unknown:
            raise ValueError(f"Unsupported export format(s): {', '.join(unknown)}")
        if not formats:
            raise ValueError("At least one export format is required")

        self.engine = engine
        self.output_dir = Path(output_dir)
        self.formats = list(formats)
        self.tables = list(tables or [])
        self.schema = schema

    def resolve_tables(self) -> List[str]:
        """Tables to export, checked against the database"""
        available = inspect(self.engine).get_table_names(schema=self.schema)
        if not self.tables:
            return sorted(available)

        missing = [name for name in self.tables if name not in available]
        if missing:
            raise ExportError(f"Table(s) not found: {', '.join(missing)}")
        return self.tables

    def export(self) -> List[Path]:
        """
        Export every selected table.

        Returns:
            Paths of the files written
        """
        tables = self.resolve_tables()
        if not tables:
            logger.warning("No tables to export")
            return []

        self.output_dir.mkdir(parents=True, exist_ok=True)
        written: List[Path] = []

        with self.engine.connect() as conn:
            for table in tables:
                df = pd.read_sql_table(table, conn, schema=self.schema)
                for fmt in self.formats:
                    path = self.output_dir / f"{table}.{fmt}"
                    if fmt == "csv":
                        df.to_csv(path, index=False)
                    else:
                        df.to_parquet(path, index=False)
                    written.append(path)
                logger.info(
                    f"Exported {len(df)} rows from {table} as {', '.join(self.formats)}",
                    extra={'component': 'DataExporter'}
                )

        logger.info(f"Export complete: {len(written)} file(s) in {self.output_dir}")
        return written
