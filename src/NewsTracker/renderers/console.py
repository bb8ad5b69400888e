"""Console text output.

Articles and events come back as service mappings; only a handful of fields
are shown per item.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from NewsTracker.renderers.base import OutputWriter
from NewsTracker.services.search import SearchOutcome
from NewsTracker.utils.log import log


def _event_title(title: Any) -> str:
    # Event titles are keyed by language.
    if isinstance(title, Mapping):
        return str(title.get("eng") or next(iter(title.values()), "")) if title else ""
    return str(title or "")


def render_text(items: Iterable[Mapping[str, Any]], kind: str = "articles") -> str:
    """Render result items into a human-readable text block.

    Args:
        items: Article or event mappings.
        kind: ``articles`` or ``events``.

    Returns:
        A formatted string ready to be printed.
    """
    lines: list[str] = []
    for idx, item in enumerate(items, start=1):
        if kind == "events":
            lines.append(f"{idx}. {_event_title(item.get('title')) or '-'}")
            lines.append(f"   Date: {item.get('eventDate') or '-'}  Articles: {item.get('totalArticleCount', '-')}")
            lines.append(f"   URI: {item.get('uri') or '-'}")
        else:
            source = item.get("source")
            source_title = source.get("title") if isinstance(source, Mapping) else None
            lines.append(f"{idx}. {item.get('title') or '-'}")
            lines.append(f"   Source: {source_title or '-'}  Date: {item.get('date') or '-'}  Lang: {item.get('lang') or '-'}")
            if item.get("url"):
                lines.append(f"   URL: {item['url']}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


class ConsoleOutputWriter(OutputWriter):
    """Write results to console via logging."""

    def write_query_result(self, outcome: SearchOutcome) -> None:
        query = outcome.query
        log.info("=== %s (%s) ===", query.name or "unnamed", query.kind)
        log.info("Fetched %d %s from %d pages (total=%s)", len(outcome.items), query.kind, outcome.pages, outcome.total_results)
        if outcome.error is not None:
            log.warning("Incomplete results: %s", outcome.error)
        if not outcome.items:
            return
        for line in render_text(outcome.items, query.kind).splitlines():
            log.info(line)

    def finalize(self, action: str) -> None:
        """No-op for console output."""
