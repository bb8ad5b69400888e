"""Base classes for output writers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from NewsTracker.services.search import SearchOutcome


class OutputWriter(ABC):
    """Abstract base class for command output writers."""

    @abstractmethod
    def write_query_result(self, outcome: SearchOutcome) -> None:
        """Write the results of a single query.

        Args:
            outcome: Collected items and paging summary of the query.
        """

    @abstractmethod
    def finalize(self, action: str) -> None:
        """Finalize output (e.g., write accumulated results to file).

        Args:
            action: The CLI command name (e.g., 'search').
        """


@dataclass(slots=True)
class MultiOutputWriter(OutputWriter):
    """Delegate output to multiple writers."""

    writers: Sequence[OutputWriter]

    def write_query_result(self, outcome: SearchOutcome) -> None:
        for writer in self.writers:
            writer.write_query_result(outcome)

    def finalize(self, action: str) -> None:
        for writer in self.writers:
            writer.finalize(action)
