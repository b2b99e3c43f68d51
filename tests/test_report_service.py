import os
import time

import pytest

from relay.services.report_service import (
    PDF_MIME,
    PNG_MIME,
    REPORT_IMAGE_MAX_ROWS,
    ReportGenerationError,
    TableMedia,
    cleanup_old_reports,
    generate_table_media,
    save_report,
)


def _table(rows: int) -> dict:
    return {
        "title": "Revenue by region",
        "headers": ["Region", "Revenue", "Growth"],
        "rows": [[f"Region {i}", i * 100, f"+{i}%"] for i in range(rows)],
    }


class TestGenerateTableMedia:
    def test_small_table_renders_png(self):
        media = generate_table_media(_table(4))

        assert media.mime_type == PNG_MIME
        assert media.content.startswith(b"\x89PNG")
        assert media.message is None
        assert media.extension == "png"

    def test_large_table_renders_pdf(self):
        media = generate_table_media(_table(REPORT_IMAGE_MAX_ROWS + 30))

        assert media.mime_type == PDF_MIME
        assert media.content.startswith(b"%PDF")
        assert "PDF" in media.message
        assert media.extension == "pdf"

    def test_ragged_rows_without_headers(self):
        media = generate_table_media({"rows": [["a"], ["b", "c", None]]})
        assert media.mime_type == PNG_MIME

    def test_table_without_rows_fails(self):
        with pytest.raises(ReportGenerationError):
            generate_table_media({"headers": ["a"], "rows": []})


class TestSaveReport:
    def test_writes_file(self, tmp_path):
        filename = save_report(TableMedia(content=b"data", mime_type=PNG_MIME), tmp_path / "reports")

        assert filename.startswith("report_")
        assert filename.endswith(".png")
        assert (tmp_path / "reports" / filename).read_bytes() == b"data"


class TestCleanupOldReports:
    def test_removes_only_old_files(self, tmp_path):
        old_file = tmp_path / "report_old.png"
        new_file = tmp_path / "report_new.png"
        old_file.write_bytes(b"old")
        new_file.write_bytes(b"new")
        now = time.time()
        os.utime(old_file, (now - 3600, now - 3600))

        removed = cleanup_old_reports(tmp_path, max_age_seconds=15 * 60, now=now)

        assert removed == 1
        assert not old_file.exists()
        assert new_file.exists()

    def test_missing_directory(self, tmp_path):
        assert cleanup_old_reports(tmp_path / "missing", max_age_seconds=60) == 0
