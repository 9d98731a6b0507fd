"""
DuckDB storage implementation for Foresight.

Stores cascade reports and multiverse simulations in a local DuckDB file.
Each table keeps a handful of summary columns for listing plus the full
record as a JSON payload.

Key features:
- Per-thread connections
- Idempotent schema creation
- Append-only inserts (ON CONFLICT DO NOTHING)
- Structured logging, failures raised as StorageError
"""

import json
import os
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import duckdb
import structlog

from foresight.models.cascade import CascadeReport, CascadeReportSummary
from foresight.models.simulation import OracleSimulation, SimulationSummary

from .base import StorageBackend

logger = structlog.get_logger(__name__)


class StorageError(Exception):
    """Base exception for all storage operation failures."""

    pass


def _utc_naive(value: datetime) -> datetime:
    """DuckDB TIMESTAMP columns hold naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class DuckDBStorage(StorageBackend):
    """
    DuckDB implementation of the storage backend.

    Attributes:
        db_path: Path to the DuckDB database file
        _local: Thread-local storage for per-thread connections
        _lock: Thread lock for schema operations
        _initialized: Flag tracking whether schema is initialized
    """

    TABLES = ("cascade_reports", "simulations")

    def __init__(self, db_path: str = "./data/foresight.duckdb"):
        """
        Initialize DuckDB storage backend.

        Args:
            db_path: Path to DuckDB database file, or ":memory:"
        """
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self._local = threading.local()
        self._lock = threading.Lock()
        self._initialized = False

        logger.info("duckdb_storage_initialized", db_path=str(self.db_path))

        self._initialize_schema()

    @contextmanager
    def _get_connection(self):
        """
        Get a thread-local DuckDB connection.

        Raises:
            StorageError: If connection cannot be established
        """
        if not hasattr(self._local, "connection"):
            try:
                self._local.connection = duckdb.connect(str(self.db_path))
                logger.debug("duckdb_connection_created", thread_id=threading.get_ident())
            except Exception as e:
                logger.error("duckdb_connection_failed", error=str(e))
                raise StorageError(f"Failed to connect to DuckDB: {e}") from e

        yield self._local.connection

    def _initialize_schema(self):
        """Create tables and indexes. Idempotent."""
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            try:
                with self._get_connection() as conn:
                    conn.execute(
                        """
                        CREATE TABLE IF NOT EXISTS cascade_reports (
                            report_id VARCHAR PRIMARY KEY,
                            title VARCHAR NOT NULL,
                            change_type VARCHAR NOT NULL,
                            mode_id VARCHAR NOT NULL,
                            aggregate_risk_score DOUBLE NOT NULL,
                            recommendation VARCHAR NOT NULL,
                            consequence_count INTEGER NOT NULL,
                            complete BOOLEAN NOT NULL,
                            created_at TIMESTAMP NOT NULL,
                            payload JSON NOT NULL
                        )
                        """
                    )
                    conn.execute(
                        """
                        CREATE INDEX IF NOT EXISTS idx_cascade_reports_created
                        ON cascade_reports(created_at)
                        """
                    )
                    conn.execute(
                        """
                        CREATE TABLE IF NOT EXISTS simulations (
                            simulation_id VARCHAR PRIMARY KEY,
                            question VARCHAR NOT NULL,
                            mode_id VARCHAR NOT NULL,
                            universe_count INTEGER NOT NULL,
                            recommended_universe_id VARCHAR NOT NULL,
                            synthetic BOOLEAN NOT NULL,
                            created_at TIMESTAMP NOT NULL,
                            payload JSON NOT NULL
                        )
                        """
                    )
                    conn.execute(
                        """
                        CREATE INDEX IF NOT EXISTS idx_simulations_created
                        ON simulations(created_at)
                        """
                    )
                    self._initialized = True
                    logger.info("duckdb_schema_initialized", tables=list(self.TABLES))

            except Exception as e:
                logger.error("duckdb_schema_initialization_failed", error=str(e))
                raise StorageError(f"Failed to initialize schema: {e}") from e

    def clear_for_testing(self) -> None:
        """
        Truncate all tables. For testing only, when TESTING is set.
        """
        if not os.environ.get("TESTING"):
            return
        with self._get_connection() as conn:
            for table in self.TABLES:
                conn.execute(f"DELETE FROM {table}")

    # =========================================================================
    # Cascade Reports
    # =========================================================================

    def write_cascade_report(self, report: CascadeReport) -> str:
        """Insert a cascade report; an existing id is left unchanged."""
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO cascade_reports (
                        report_id, title, change_type, mode_id, aggregate_risk_score,
                        recommendation, consequence_count, complete, created_at, payload
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT DO NOTHING
                    """,
                    [
                        report.report_id,
                        report.change.title,
                        report.change.change_type.value,
                        report.mode_id,
                        report.aggregate_risk_score,
                        report.recommendation.value,
                        len(report.consequences),
                        report.complete,
                        _utc_naive(report.created_at),
                        report.model_dump_json(),
                    ],
                )
                logger.info("cascade_report_written", report_id=report.report_id)
                return report.report_id

        except Exception as e:
            logger.error("write_cascade_report_failed", report_id=report.report_id, error=str(e))
            raise StorageError(f"Failed to write cascade report: {e}") from e

    def read_cascade_report(self, report_id: str) -> Optional[CascadeReport]:
        try:
            with self._get_connection() as conn:
                result = conn.execute(
                    "SELECT payload FROM cascade_reports WHERE report_id = ? LIMIT 1",
                    [report_id],
                ).fetchone()

                if not result:
                    return None

                logger.debug("cascade_report_read", report_id=report_id)
                return CascadeReport.model_validate(json.loads(result[0]))

        except Exception as e:
            logger.error("read_cascade_report_failed", report_id=report_id, error=str(e))
            raise StorageError(f"Failed to read cascade report: {e}") from e

    def list_cascade_reports(self, limit: int = 50) -> list[CascadeReportSummary]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT report_id, title, change_type, mode_id, aggregate_risk_score,
                           recommendation, consequence_count, complete, created_at
                    FROM cascade_reports
                    ORDER BY created_at DESC, report_id
                    LIMIT ?
                    """,
                    [limit],
                ).fetchall()

                return [
                    CascadeReportSummary(
                        report_id=row[0],
                        title=row[1],
                        change_type=row[2],
                        mode_id=row[3],
                        aggregate_risk_score=row[4],
                        recommendation=row[5],
                        consequence_count=row[6],
                        complete=row[7],
                        created_at=row[8],
                    )
                    for row in rows
                ]

        except Exception as e:
            logger.error("list_cascade_reports_failed", error=str(e))
            raise StorageError(f"Failed to list cascade reports: {e}") from e

    # =========================================================================
    # Simulations
    # =========================================================================

    def write_simulation(self, simulation: OracleSimulation) -> str:
        try:
            with self._get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO simulations (
                        simulation_id, question, mode_id, universe_count,
                        recommended_universe_id, synthetic, created_at, payload
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT DO NOTHING
                    """,
                    [
                        simulation.simulation_id,
                        simulation.question,
                        simulation.mode_id,
                        len(simulation.universes),
                        simulation.recommendation.universe_id,
                        simulation.synthetic,
                        _utc_naive(simulation.created_at),
                        simulation.model_dump_json(),
                    ],
                )
                logger.info("simulation_written", simulation_id=simulation.simulation_id)
                return simulation.simulation_id

        except Exception as e:
            logger.error(
                "write_simulation_failed", simulation_id=simulation.simulation_id, error=str(e)
            )
            raise StorageError(f"Failed to write simulation: {e}") from e

    def read_simulation(self, simulation_id: str) -> Optional[OracleSimulation]:
        try:
            with self._get_connection() as conn:
                result = conn.execute(
                    "SELECT payload FROM simulations WHERE simulation_id = ? LIMIT 1",
                    [simulation_id],
                ).fetchone()

                if not result:
                    return None

                return OracleSimulation.model_validate(json.loads(result[0]))

        except Exception as e:
            logger.error("read_simulation_failed", simulation_id=simulation_id, error=str(e))
            raise StorageError(f"Failed to read simulation: {e}") from e

    def list_simulations(self, limit: int = 50) -> list[SimulationSummary]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    """
                    SELECT simulation_id, question, mode_id, universe_count,
                           recommended_universe_id, synthetic, created_at
                    FROM simulations
                    ORDER BY created_at DESC, simulation_id
                    LIMIT ?
                    """,
                    [limit],
                ).fetchall()

                return [
                    SimulationSummary(
                        simulation_id=row[0],
                        question=row[1],
                        mode_id=row[2],
                        universe_count=row[3],
                        recommended_universe_id=row[4],
                        synthetic=row[5],
                        created_at=row[6],
                    )
                    for row in rows
                ]

        except Exception as e:
            logger.error("list_simulations_failed", error=str(e))
            raise StorageError(f"Failed to list simulations: {e}") from e
