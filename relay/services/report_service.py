import io
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from relay.logging_config import get_logger

logger = get_logger("report_service")

REPORT_IMAGE_MAX_ROWS = 25
PDF_ROWS_PER_PAGE = 40
MAX_CELL_CHARS = 40

CELL_PADDING_X = 12
CELL_PADDING_Y = 8
MARGIN = 20

BACKGROUND = (255, 255, 255)
HEADER_BACKGROUND = (37, 99, 235)
HEADER_TEXT = (255, 255, 255)
STRIPE_BACKGROUND = (241, 245, 249)
GRID = (203, 213, 225)
TEXT = (15, 23, 42)

PNG_MIME = "image/png"
PDF_MIME = "application/pdf"


class ReportGenerationError(Exception):
    pass


@dataclass
class TableMedia:
    content: bytes
    mime_type: str
    message: Optional[str] = None

    @property
    def extension(self) -> str:
        return "pdf" if self.mime_type == PDF_MIME else "png"


def _cell_text(value) -> str:
    text = "" if value is None else str(value)
    text = " ".join(text.split())
    if len(text) > MAX_CELL_CHARS:
        text = text[: MAX_CELL_CHARS - 3] + "..."
    return text


def _normalize_table(table: dict) -> tuple[str, list[str], list[list[str]]]:
    rows = table.get("rows") if isinstance(table, dict) else None
    if not isinstance(rows, list) or not rows:
        raise ReportGenerationError("Table has no rows")

    headers = [_cell_text(h) for h in (table.get("headers") or [])]
    normalized_rows = [[_cell_text(c) for c in (row if isinstance(row, list) else [row])] for row in rows]

    columns = max([len(headers)] + [len(r) for r in normalized_rows])
    if columns == 0:
        raise ReportGenerationError("Table has no columns")
    if headers:
        headers += [""] * (columns - len(headers))
    normalized_rows = [r + [""] * (columns - len(r)) for r in normalized_rows]
    return _cell_text(table.get("title") or ""), headers, normalized_rows


def _render_page(
    font: ImageFont.ImageFont,
    title: str,
    headers: list[str],
    rows: list[list[str]],
) -> Image.Image:
    measure = ImageDraw.Draw(Image.new("RGB", (1, 1)))

    def text_size(text: str) -> tuple[int, int]:
        left, top, right, bottom = measure.textbbox((0, 0), text or " ", font=font)
        return int(right - left), int(bottom - top)

    all_rows = ([headers] if headers else []) + rows
    columns = len(all_rows[0])
    widths = [max(text_size(r[i])[0] for r in all_rows) + 2 * CELL_PADDING_X for i in range(columns)]
    row_height = max(text_size(c)[1] for r in all_rows for c in r) + 2 * CELL_PADDING_Y

    title_height = text_size(title)[1] + CELL_PADDING_Y * 2 if title else 0
    table_width = sum(widths)
    width = max(table_width, text_size(title)[0] if title else 0) + 2 * MARGIN
    height = title_height + row_height * len(all_rows) + 2 * MARGIN

    image = Image.new("RGB", (width, height), BACKGROUND)
    draw = ImageDraw.Draw(image)

    y = MARGIN
    if title:
        draw.text((MARGIN, y), title, fill=TEXT, font=font)
        y += title_height

    for index, row in enumerate(all_rows):
        is_header = bool(headers) and index == 0
        if is_header:
            draw.rectangle([MARGIN, y, MARGIN + table_width, y + row_height], fill=HEADER_BACKGROUND)
        elif index % 2 == 0:
            draw.rectangle([MARGIN, y, MARGIN + table_width, y + row_height], fill=STRIPE_BACKGROUND)

        x = MARGIN
        for col, cell in enumerate(row):
            draw.text(
                (x + CELL_PADDING_X, y + CELL_PADDING_Y),
                cell,
                fill=HEADER_TEXT if is_header else TEXT,
                font=font,
            )
            x += widths[col]
        draw.line([MARGIN, y + row_height, MARGIN + table_width, y + row_height], fill=GRID)
        y += row_height

    return image


def generate_table_media(table: dict) -> TableMedia:
    """Render a table as a PNG, or as a multi-page PDF when it is too long for one image."""
    title, headers, rows = _normalize_table(table)
    font = ImageFont.load_default()

    if len(rows) <= REPORT_IMAGE_MAX_ROWS:
        image = _render_page(font, title, headers, rows)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return TableMedia(content=buffer.getvalue(), mime_type=PNG_MIME)

    pages = [
        _render_page(font, title, headers, rows[start : start + PDF_ROWS_PER_PAGE])
        for start in range(0, len(rows), PDF_ROWS_PER_PAGE)
    ]
    buffer = io.BytesIO()
    pages[0].save(buffer, format="PDF", save_all=True, append_images=pages[1:])
    logger.info(f"Rendered table as PDF: rows={len(rows)}, pages={len(pages)}")
    return TableMedia(
        content=buffer.getvalue(),
        mime_type=PDF_MIME,
        message=f"📄 Full table ({len(rows)} rows) attached as PDF.",
    )


def save_report(media: TableMedia, reports_dir: str | Path) -> str:
    """Write media under reports_dir and return the generated file name."""
    directory = Path(reports_dir)
    directory.mkdir(parents=True, exist_ok=True)

    filename = f"report_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}.{media.extension}"
    (directory / filename).write_bytes(media.content)
    return filename


def cleanup_old_reports(reports_dir: str | Path, max_age_seconds: int, now: Optional[float] = None) -> int:
    """Delete report files older than max_age_seconds. Returns number removed."""
    directory = Path(reports_dir)
    if not directory.is_dir():
        return 0

    current = time.time() if now is None else now
    removed = 0
    for path in directory.iterdir():
        if not path.is_file():
            continue
        try:
            if current - path.stat().st_mtime > max_age_seconds:
                path.unlink()
                removed += 1
        except OSError as e:
            logger.warning(f"Failed to remove old report {path.name}: {e}")

    if removed:
        logger.info(f"Removed {removed} old report(s)")
    return removed
