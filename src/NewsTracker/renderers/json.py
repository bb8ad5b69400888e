"""JSON file output.

Items are written as returned by the service, next to the compiled query
document that produced them.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from NewsTracker.renderers.base import OutputWriter
from NewsTracker.services.search import SearchOutcome
from NewsTracker.utils.log import log


def render_json(outcome: SearchOutcome) -> dict[str, Any]:
    """Render one query outcome into a JSON-serializable mapping."""
    return {
        "name": outcome.query.name,
        "type": outcome.query.kind,
        "query": outcome.query.builder.compile(),
        "total_results": outcome.total_results,
        "pages": outcome.pages,
        "error": str(outcome.error) if outcome.error is not None else None,
        "items": [dict(item) for item in outcome.items],
    }


class JsonFileWriter(OutputWriter):
    """Accumulate results and write to JSON file on finalize."""

    def __init__(self, base_dir: str) -> None:
        """Initialize JSON writer.

        Args:
            base_dir: Base output directory.
        """
        self.output_dir = Path(base_dir) / "json"
        self.all_results: list[dict[str, Any]] = []

    def write_query_result(self, outcome: SearchOutcome) -> None:
        self.all_results.append(render_json(outcome))

    def finalize(self, action: str) -> Path:
        """Write accumulated results to ``<base_dir>/json/<action>_<timestamp>.json``.

        Returns:
            Path of the written file.
        """
        payload = json.dumps(self.all_results, ensure_ascii=False, indent=2, default=str)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_path = self.output_dir / f"{action}_{timestamp}.json"
        output_path.write_text(payload, encoding="utf-8")
        log.info("JSON saved to %s", output_path)
        return output_path
