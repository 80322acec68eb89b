"""Tests for bulk story import from text and spreadsheets."""

import io

import pytest
from openpyxl import Workbook

from pokerroom.core.exceptions import ValidationError
from pokerroom.services.issue_links import (
    build_issue_url,
    build_numeric_reference_url,
    extract_issue_key,
    tracker_root,
)
from pokerroom.services.story_import import StoryImportService

BASE_URL = "https://jira.example.com"


def xlsx_bytes(rows):
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestParseText:
    def setup_method(self):
        self.service = StoryImportService()

    def test_one_story_per_line(self):
        drafts = self.service.parse_text("Login page\n\n  Logout  \n")
        assert [d.title for d in drafts] == ["Login page", "Logout"]
        assert all(d.external_link is None for d in drafts)

    def test_skips_comments_and_strips_markers(self):
        text = "# backlog\n#\n- First\n* Second\n3. Third\n#123 Fix crash\n"
        drafts = self.service.parse_text(text)
        assert [d.title for d in drafts] == ["First", "Second", "Third", "#123 Fix crash"]

    def test_inline_url_becomes_link(self):
        drafts = self.service.parse_text("Checkout flow https://tracker.example.com/issue/9")
        assert drafts[0].title == "Checkout flow"
        assert drafts[0].external_link == "https://tracker.example.com/issue/9"

    def test_auto_links_issue_keys(self):
        drafts = self.service.parse_text("proj-12 Search\nNo key here", BASE_URL)
        assert drafts[0].external_link == "https://jira.example.com/browse/PROJ-12"
        assert drafts[1].external_link is None

    def test_auto_links_numeric_references(self):
        drafts = self.service.parse_text("#42 Crash on save\n7 Dark mode", "https://jira.example.com/browse/PROJ-")
        assert drafts[0].external_link == "https://jira.example.com/browse/PROJ-42"
        assert drafts[1].external_link == "https://jira.example.com/browse/PROJ-7"

    def test_empty_text(self):
        with pytest.raises(ValidationError):
            self.service.parse_text("   \n")
        with pytest.raises(ValidationError):
            self.service.parse_text("# only a comment\n")


class TestParseXlsx:
    def setup_method(self):
        self.service = StoryImportService()

    def test_headers_detected(self):
        content = xlsx_bytes([
            ["Key", "Summary", "Link"],
            ["PROJ-1", "Login", None],
            ["PROJ-2", "Logout", "https://other.example.com/2"],
            [None, None, None],
        ])

        drafts = self.service.parse_xlsx(content, BASE_URL)

        assert [d.title for d in drafts] == ["[PROJ-1] Login", "[PROJ-2] Logout"]
        assert drafts[0].external_link == "https://jira.example.com/browse/PROJ-1"
        assert drafts[1].external_link == "https://other.example.com/2"

    def test_without_headers_reads_first_column(self, tmp_path):
        path = tmp_path / "stories.xlsx"
        path.write_bytes(xlsx_bytes([["Login page", 3], ["Checkout", 5]]))

        drafts = self.service.parse_file(path)

        assert [d.title for d in drafts] == ["Login page", "Checkout"]

    def test_broken_file(self):
        with pytest.raises(ValidationError):
            self.service.parse_xlsx(b"not a spreadsheet")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError):
            self.service.parse_file(tmp_path / "missing.txt")


class TestIssueLinks:
    def test_extract_issue_key(self):
        assert extract_issue_key("https://jira.example.com/browse/abc-12") == "ABC-12"
        assert extract_issue_key("Plain title") is None
        assert extract_issue_key(None) is None

    def test_numeric_reference_url(self):
        assert build_numeric_reference_url("https://tracker.example.com/issues", "5") == "https://tracker.example.com/issues/5"
        assert build_numeric_reference_url("https://tracker.example.com/issues/", "5") == "https://tracker.example.com/issues/5"

    def test_tracker_root(self):
        assert tracker_root("https://jira.example.com/browse/PROJ-") == "https://jira.example.com"
        assert tracker_root("https://jira.example.com/") == "https://jira.example.com"
        assert tracker_root("https://corp.example.com/jira/browse/PROJ-1") == "https://corp.example.com/jira"
        assert tracker_root("https://browse.example.com") == "https://browse.example.com"

    def test_issue_url_from_prefix_base(self):
        assert build_issue_url("https://jira.example.com/browse/PROJ-", "proj-3") == "https://jira.example.com/browse/PROJ-3"
