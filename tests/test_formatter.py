from relay.services.formatter import (
    NO_DATA_TEXT,
    SECTION_SEPARATOR,
    extract_table,
    format_response,
    format_suggestions,
    suggestions_section,
)

BLOCK_ANSWER = {
    "conversation_id": "c1",
    "answer": {
        "summary": "  Revenue is up.  ",
        "blocks": [
            {"type": "metrics", "metrics": [{"label": "Revenue", "value": "$1M"}, {"name": "Orders", "value": 42}]},
            {
                "type": "table",
                "title": "By region",
                "headers": ["Region", "Revenue"],
                "rows": [["North", 10], ["South", 8], ["East", 5], ["West", 2], ["Central", 1]],
            },
            {"type": "suggestions", "items": ["Show by month", "Top products"]},
        ],
    },
}


class TestFormatResponse:
    def test_no_data(self):
        reply = format_response(None)
        assert reply.body == NO_DATA_TEXT
        assert reply.suggestions == []

    def test_block_format_sections_in_order(self):
        reply = format_response(BLOCK_ANSWER)
        parts = reply.body.split(SECTION_SEPARATOR)

        assert parts[0] == "*📊 Key Metrics:*\n*Revenue:* $1M\n*Orders:* 42"
        assert parts[1].startswith("*📋 Table 1: By region*\n_Region | Revenue_\nNorth | 10")
        assert parts[1].endswith("_(+2 more rows)_")
        assert parts[2] == "*📝 Overview:*\nRevenue is up."
        assert reply.suggestions == ["Show by month", "Top products"]

    def test_omit_tables(self):
        reply = format_response(BLOCK_ANSWER, omit_tables=True)
        assert "Table" not in reply.body
        assert "Key Metrics" in reply.body

    def test_metrics_limited_to_five(self):
        metrics = [{"label": f"m{i}", "value": i} for i in range(8)]
        reply = format_response({"metrics": metrics})
        assert "*m4:* 4" in reply.body
        assert "m5" not in reply.body

    def test_legacy_flat_format(self):
        reply = format_response(
            {
                "text": "Plain answer",
                "tables": [{"headers": ["a"], "rows": [[1]]}],
                "suggestions": ["Next?"],
            }
        )
        assert "*📋 Table 1*\n_a_\n1" in reply.body
        assert reply.body.endswith("*📝 Overview:*\nPlain answer")
        assert reply.suggestions == ["Next?"]

    def test_chart_bars(self):
        reply = format_response(
            {
                "charts": [
                    {
                        "title": "Trend",
                        "data": [{"label": "Jan", "value": 10}, {"label": "Feb", "value": 5}],
                        "trend_summary": "Falling",
                    }
                ]
            }
        )
        assert "*📈 Chart 1: Trend*" in reply.body
        assert "Jan: ██████████ (10)" in reply.body
        assert "Feb: █████░░░░░ (5)" in reply.body
        assert reply.body.endswith("_Trend: Falling_")

    def test_chart_with_zero_values(self):
        reply = format_response({"charts": [{"data": [{"label": "A", "value": 0}]}]})
        assert "A: ░░░░░░░░░░ (0)" in reply.body


class TestMalformedSections:
    def test_non_dict_metrics_are_skipped(self):
        reply = format_response({"text": "ok", "metrics": ["Revenue 10", {"label": "Orders", "value": 3}]})
        assert reply.body.startswith("*📊 Key Metrics:*\n*Orders:* 3")
        assert "Revenue 10" not in reply.body

    def test_only_non_dict_metrics_drop_the_section(self):
        reply = format_response({"text": "ok", "metrics": ["Revenue 10"]})
        assert reply.body == "*📝 Overview:*\nok"

    def test_chart_with_bare_numbers(self):
        reply = format_response({"charts": [{"data": [5, 3]}]})
        assert reply.body == "*📈 Chart 1*"

    def test_non_dict_chart_points_are_skipped(self):
        reply = format_response({"charts": [{"data": [5, {"label": "Jan", "value": 4}]}]})
        assert "Jan: ██████████ (4)" in reply.body

    def test_non_dict_tables_and_charts_are_skipped(self):
        reply = format_response({"tables": ["raw"], "charts": [7], "text": "ok"})
        assert reply.body == "*📝 Overview:*\nok"

    def test_non_list_rows_render_as_single_cell(self):
        reply = format_response({"tables": [{"rows": [42, ["a", "b"]]}]})
        assert reply.body == "*📋 Table 1*\n42\na | b"

    def test_non_string_summary(self):
        reply = format_response({"answer": {"summary": 12.5, "blocks": []}})
        assert reply.body == "*📝 Overview:*\n12.5"

    def test_non_string_text(self):
        reply = format_response({"text": ["a", "b"]})
        assert reply.body == "*📝 Overview:*\n['a', 'b']"


class TestExtractTable:
    def test_from_blocks(self):
        assert extract_table(BLOCK_ANSWER)["title"] == "By region"

    def test_from_flat_tables(self):
        table = {"rows": [[1]]}
        assert extract_table({"tables": [table]}) is table

    def test_none_when_absent(self):
        assert extract_table({"text": "hi"}) is None
        assert extract_table(None) is None

    def test_skips_non_dict_tables(self):
        table = {"rows": [[1]]}
        assert extract_table({"tables": ["raw", table]}) is table
        assert extract_table({"tables": [["a"]]}) is None


class TestSuggestions:
    def test_numbered(self):
        assert format_suggestions(["a", "b"]) == "*1.* a\n*2.* b"

    def test_section(self):
        section = suggestions_section(["a"])
        assert section.startswith("*💡 Suggested Questions:*")
        assert section.endswith("*1.* a")
