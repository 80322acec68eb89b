"""
Story import service: turns pasted text or spreadsheets into story drafts
"""
import io
import logging
import re
import zipfile
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Sequence, Union

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from pokerroom.core.exceptions import ValidationError
from pokerroom.core.validators import validate_external_link, validate_story_title
from pokerroom.domain.story import StoryDraft
from pokerroom.services.issue_links import (
    NUMERIC_REFERENCE_PATTERN,
    build_issue_url,
    build_numeric_reference_url,
    extract_issue_key,
)

logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r"https?://\S+", re.IGNORECASE)
LIST_MARKER_PATTERN = re.compile(r"^(?:[-*+]\s+|\d+[.)]\s+)")

KEY_HEADERS = ("key", "issue", "ticket", "id", "ключ", "номер")
TITLE_HEADERS = ("summary", "title", "story", "name", "резюме", "описание", "задача", "название")
LINK_HEADERS = ("link", "url", "ссылка")

XlsxSource = Union[str, Path, bytes, BinaryIO]


class StoryImportService:
    """Parses bulk story input into drafts ready for ``add_stories``."""

    def parse_text(self, text: str, issue_tracker_base_url: Optional[str] = None) -> List[StoryDraft]:
        """One story per line.

        Empty lines and ``#`` comments are skipped, markdown list markers are
        removed, an inline URL becomes the story link. With a base URL, issue
        keys and leading ticket numbers are linked automatically.
        """
        if not text or not text.strip():
            raise ValidationError("Text is empty")

        drafts = []
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line or line.startswith("# ") or line == "#":
                continue
            line = LIST_MARKER_PATTERN.sub("", line, count=1).strip()
            if line:
                drafts.append(self._make_draft(line, None, issue_tracker_base_url))

        if not drafts:
            raise ValidationError("No valid stories found in text")

        logger.info(f"Parsed {len(drafts)} stories from text")
        return drafts

    def parse_xlsx(self, source: XlsxSource, issue_tracker_base_url: Optional[str] = None) -> List[StoryDraft]:
        """Read stories from the active worksheet.

        The first row is searched for key, title and link headers. Without a
        recognizable header the first column is read as titles.
        """
        if isinstance(source, bytes):
            source = io.BytesIO(source)
        try:
            workbook = load_workbook(source, read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
            logger.error(f"Error opening xlsx file: {e}")
            raise ValidationError(f"Failed to read xlsx file: {e}") from e

        try:
            worksheet = workbook.active
            if worksheet is None:
                raise ValidationError("No active worksheet found")
            rows = [list(row) for row in worksheet.iter_rows(values_only=True)]
        finally:
            workbook.close()

        drafts = self._drafts_from_rows(rows, issue_tracker_base_url)
        if not drafts:
            raise ValidationError("No valid stories found in xlsx file")

        logger.info(f"Parsed {len(drafts)} stories from xlsx file")
        return drafts

    def parse_file(self, file_path: Union[str, Path], issue_tracker_base_url: Optional[str] = None) -> List[StoryDraft]:
        """Parse file based on extension"""
        path = Path(file_path)
        if not path.exists():
            raise ValidationError(f"File not found: {path}")
        if path.suffix.lower() == ".xlsx":
            return self.parse_xlsx(path, issue_tracker_base_url)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ValidationError(f"Failed to read file: {e}") from e
        return self.parse_text(content, issue_tracker_base_url)

    def _drafts_from_rows(
        self, rows: Sequence[Sequence[object]], base_url: Optional[str]
    ) -> List[StoryDraft]:
        if not rows:
            return []

        headers = [_cell_text(value).lower() for value in rows[0]]
        key_col = _find_column(headers, KEY_HEADERS)
        title_col = _find_column(headers, TITLE_HEADERS, exclude=(key_col,))
        link_col = _find_column(headers, LINK_HEADERS, exclude=(key_col, title_col))

        if title_col is None and key_col is None:
            return [
                self._make_draft(_cell_text(row[0]), None, base_url)
                for row in rows
                if row and _cell_text(row[0])
            ]

        drafts = []
        for row in rows[1:]:
            key_text = _cell_at(row, key_col)
            title_text = _cell_at(row, title_col)
            link_text = _cell_at(row, link_col) or None
            if key_text and title_text:
                title = f"[{key_text}] {title_text}"
            else:
                title = title_text or key_text
            if title:
                drafts.append(self._make_draft(title, link_text, base_url))
        return drafts

    def _make_draft(self, line: str, link: Optional[str], base_url: Optional[str]) -> StoryDraft:
        if link is None:
            url_match = URL_PATTERN.search(line)
            if url_match:
                link = url_match.group(0)
                line = (line[:url_match.start()] + line[url_match.end():]).strip(" -|\t")

        title = validate_story_title(line or (link or ""))
        if link is None and base_url:
            link = _auto_link(title, base_url)
        return StoryDraft(title=title, external_link=validate_external_link(link))


def _auto_link(title: str, base_url: str) -> Optional[str]:
    issue_key = extract_issue_key(title)
    if issue_key:
        return build_issue_url(base_url, issue_key)
    number = NUMERIC_REFERENCE_PATTERN.match(title)
    if number:
        return build_numeric_reference_url(base_url, number.group(1))
    return None


def _cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _cell_at(row: Sequence[object], column: Optional[int]) -> str:
    if column is None or column >= len(row):
        return ""
    return _cell_text(row[column])


def _find_column(headers: List[str], keywords: Iterable[str], exclude=()) -> Optional[int]:
    for index, header in enumerate(headers):
        if index in exclude or not header:
            continue
        if any(keyword in header for keyword in keywords):
            return index
    return None
