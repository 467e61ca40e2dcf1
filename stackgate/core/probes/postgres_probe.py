"""PostgreSQL readiness probe"""
import logging
from typing import Union

from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError

from stackgate.core.domain.gate_report import ProbeOutcome
from stackgate.db.database import build_engine

logger = logging.getLogger(__name__)


class PostgresProbe:
    """
    Database readiness check, the equivalent of pg_isready.

    Each check opens a fresh connection and runs SELECT 1, so a ready
    result means the server accepts connections and the credentials work.
    """

    def __init__(
        self,
        url: Union[str, URL],
        name: str = "postgres",
        connect_timeout: float = 5.0
    ):
        """
        Initialize probe.

        Args:
            url: Database connection URL
            name: Dependency name used in logs and reports
            connect_timeout: Seconds to wait for a connection
        """
        self.url = url
        self.name = name
        self.connect_timeout = connect_timeout
        self._engine = build_engine(url, connect_timeout=connect_timeout, pooled=False)

    def check(self) -> ProbeOutcome:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            lines = str(getattr(e, "orig", None) or e).strip().splitlines()
            detail = lines[0] if lines else type(e).__name__
            logger.debug(f"{self.name} probe failed: {detail}")
            return ProbeOutcome(dependency=self.name, ready=False, detail=detail)

        return ProbeOutcome(dependency=self.name, ready=True, detail="accepting connections")

    def close(self) -> None:
        self._engine.dispose()
