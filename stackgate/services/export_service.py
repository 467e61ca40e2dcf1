"""Export service: runs the data export with the configured connection"""
import logging
from pathlib import Path
from typing import List

from stackgate.config.settings import AppConfig
from stackgate.db.database import dispose_database, init_database
from stackgate.export.data_exporter import DataExporter

logger = logging.getLogger(__name__)


def run_export(config: AppConfig) -> List[Path]:
    """
    Export the configured tables from the database.

    Runs once, without waiting for the database; connection errors
    propagate to the caller.
    """
    logger.info(f"Exporting from {config.database.safe_url} to {config.export.output_dir}")
    engine = init_database(config.database.url)
    try:
        exporter = DataExporter(
            engine,
            config.export.output_dir,
            formats=config.export.formats,
            tables=config.export.tables,
        )
        return exporter.export()
    finally:
        dispose_database()
