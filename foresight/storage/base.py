"""
Abstract storage interface for Foresight reports.

Cascade reports and simulations are append-only: there are no update or
delete operations, and writing an id that already exists leaves the stored
record untouched.
"""

from abc import ABC, abstractmethod
from typing import Optional

from foresight.models.cascade import CascadeReport, CascadeReportSummary
from foresight.models.simulation import OracleSimulation, SimulationSummary


class StorageBackend(ABC):
    """
    Abstract base class for all storage implementations.

    Implementations should ensure:
    - Thread safety for concurrent access
    - Idempotent, append-only writes keyed by record id
    - Structured logging of failures, surfaced as StorageError
    """

    # =========================================================================
    # Cascade Reports
    # =========================================================================

    @abstractmethod
    def write_cascade_report(self, report: CascadeReport) -> str:
        """
        Persist a cascade report.

        Args:
            report: Completed report

        Returns:
            The report id (also when the id was already stored)
        """
        pass

    @abstractmethod
    def read_cascade_report(self, report_id: str) -> Optional[CascadeReport]:
        """Read a cascade report by id; None when absent."""
        pass

    @abstractmethod
    def list_cascade_reports(self, limit: int = 50) -> list[CascadeReportSummary]:
        """List report summaries, newest first."""
        pass

    # =========================================================================
    # Simulations
    # =========================================================================

    @abstractmethod
    def write_simulation(self, simulation: OracleSimulation) -> str:
        pass

    @abstractmethod
    def read_simulation(self, simulation_id: str) -> Optional[OracleSimulation]:
        pass

    @abstractmethod
    def list_simulations(self, limit: int = 50) -> list[SimulationSummary]:
        pass
