"""Convert structured AI answers into WhatsApp-friendly text."""

from dataclasses import dataclass, field
from typing import Optional

SECTION_SEPARATOR = "\n\n────────────────\n\n"
NO_DATA_TEXT = "No data available."

MAX_METRICS = 5
MAX_TABLE_PREVIEW_ROWS = 3
MAX_CHART_POINTS = 5
CHART_BAR_LENGTH = 10


@dataclass
class FormattedReply:
    body: str
    suggestions: list[str] = field(default_factory=list)


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def _dicts(value) -> list[dict]:
    return [item for item in _as_list(value) if isinstance(item, dict)]


def _as_text(value) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _split_sections(ai_data: dict) -> tuple[list, list, list, str, list]:
    """Return (metrics, tables, charts, summary, suggestions) for either payload format."""
    answer = ai_data.get("answer")
    if answer:
        if not isinstance(answer, dict):
            answer = {}
        metrics: list = []
        tables: list = []
        charts: list = []
        suggestions: list = []
        summary = _as_text(answer.get("summary"))
        blocks = answer.get("blocks")

        for block in _as_list(blocks):
            if not isinstance(block, dict):
                continue
            block_type = block.get("type")
            if block_type == "metrics":
                if block.get("metrics"):
                    metrics = _dicts(block["metrics"])
            elif block_type == "table":
                tables.append(block)
            elif block_type == "chart":
                charts.append(block)
            elif block_type == "suggestions":
                if block.get("items"):
                    suggestions = _as_list(block["items"])
        return metrics, tables, charts, summary, suggestions

    # Legacy flat format
    return (
        _dicts(ai_data.get("metrics")),
        _dicts(ai_data.get("tables")),
        _dicts(ai_data.get("charts")),
        _as_text(ai_data.get("text")),
        _as_list(ai_data.get("suggestions")),
    )


def _to_number(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _format_metrics(metrics: list) -> str:
    lines = [f"*{m.get('label') or m.get('name')}:* {m.get('value')}" for m in metrics[:MAX_METRICS]]
    return "*📊 Key Metrics:*\n" + "\n".join(lines)


def _format_table(table: dict, index: int) -> str:
    title = _as_text(table.get("title"))
    text = f"*📋 Table {index}{': ' + title if title else ''}*"

    headers = table.get("headers")
    if isinstance(headers, list) and headers:
        text += "\n_" + " | ".join(str(h) for h in headers) + "_"

    rows = table.get("rows")
    if isinstance(rows, list):
        for row in rows[:MAX_TABLE_PREVIEW_ROWS]:
            cells = row if isinstance(row, list) else [row]
            text += "\n" + " | ".join(str(cell) for cell in cells)
        if len(rows) > MAX_TABLE_PREVIEW_ROWS:
            text += f"\n_(+{len(rows) - MAX_TABLE_PREVIEW_ROWS} more rows)_"
    return text


def _format_chart(chart: dict, index: int) -> str:
    title = _as_text(chart.get("title"))
    text = f"*📈 Chart {index}{': ' + title if title else ''}*"

    data = _dicts(chart.get("data"))
    if data:
        text += "\n"
        max_value = max((_to_number(d.get("value")) for d in data), default=0.0)
        for point in data[:MAX_CHART_POINTS]:
            value = _to_number(point.get("value"))
            filled = int(value / max_value * CHART_BAR_LENGTH + 0.5) if max_value > 0 else 0
            filled = max(0, min(CHART_BAR_LENGTH, filled))
            bar = "█" * filled + "░" * (CHART_BAR_LENGTH - filled)
            text += f"{point.get('label')}: {bar} ({point.get('value')})\n"

    trend = chart.get("trend_summary") or chart.get("description")
    if trend:
        text += f"_Trend: {trend}_"
    return text


def format_response(ai_data: Optional[dict], omit_tables: bool = False) -> FormattedReply:
    """Render metrics, tables, charts and overview as WhatsApp markup."""
    if not ai_data:
        return FormattedReply(body=NO_DATA_TEXT)

    metrics, tables, charts, summary, suggestions = _split_sections(ai_data)
    parts: list[str] = []

    if metrics:
        parts.append(_format_metrics(metrics))

    if not omit_tables:
        for index, table in enumerate(tables, start=1):
            parts.append(_format_table(table, index))

    for index, chart in enumerate(charts, start=1):
        parts.append(_format_chart(chart, index))

    if summary:
        parts.append(f"*📝 Overview:*\n{summary.strip()}")

    return FormattedReply(body=SECTION_SEPARATOR.join(parts), suggestions=[str(s) for s in suggestions])


def extract_table(ai_data: Optional[dict]) -> Optional[dict]:
    """Find the first table in a flat or block-format answer."""
    if not ai_data:
        return None

    tables = _dicts(ai_data.get("tables"))
    if tables:
        return tables[0]

    answer = ai_data.get("answer")
    if isinstance(answer, dict):
        for block in _as_list(answer.get("blocks")):
            if isinstance(block, dict) and block.get("type") == "table":
                return block
    return None


def format_suggestions(suggestions: list[str]) -> str:
    return "\n".join(f"*{i}.* {s}" for i, s in enumerate(suggestions, start=1))


def suggestions_section(suggestions: list[str]) -> str:
    return f"*💡 Suggested Questions:*\n_Reply with key words or number:_\n\n{format_suggestions(suggestions)}"
