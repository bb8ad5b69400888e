"""Command implementations for the NewsTracker CLI."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable

from NewsTracker.config import AppConfig
from NewsTracker.renderers import OutputWriter
from NewsTracker.services.search import NewsSearchService
from NewsTracker.utils.log import log


@dataclass(slots=True)
class SearchCommand:
    """Run every configured query and hand each outcome to the output writer."""

    config: AppConfig
    search_service: NewsSearchService
    output_writer: OutputWriter

    def execute(self) -> int:
        """Run all queries in configured order.

        Returns:
            Number of queries that stopped early because of a page failure.
        """
        queries = self.config.search.queries
        failed = 0
        for idx, spec in enumerate(queries, start=1):
            log.debug("Running query %d/%d name=%s document=%s", idx, len(queries), spec.name, spec.builder.compile())
            if len(queries) > 1:
                log.info("=== Query %d/%d ===", idx, len(queries))
            outcome = self.search_service.run(spec)
            if not outcome.ok:
                failed += 1
            self.output_writer.write_query_result(outcome)
        return failed


@dataclass(slots=True)
class CompileCommand:
    """Print the request body of every configured query without sending it."""

    config: AppConfig
    echo: Callable[[str], Any]

    def execute(self) -> None:
        compiled = [
            {
                "name": spec.name,
                "type": spec.kind,
                "path": spec.builder.path,
                "payload": _decoded_payload(spec.builder.build_payload()),
            }
            for spec in self.config.search.queries
        ]
        self.echo(json.dumps(compiled, ensure_ascii=False, indent=2))


def _decoded_payload(payload: dict[str, Any]) -> dict[str, Any]:
    # The query document travels as JSON text; show it as an object.
    out = dict(payload)
    if isinstance(out.get("query"), str):
        out["query"] = json.loads(out["query"])
    return out
