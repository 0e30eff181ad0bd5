"""Timetable page parser.

Reads a saved timetable page and extracts one raw record per class session.
Validation of the records happens later, at grouping.
"""

import logging
import re
from typing import Any, Optional

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)


class TimetableParser:
    """Parser for the day-by-day timetable table.
    
    Each body row is one calendar day: index, day name, date (dd/MM/yyyy),
    then one cell per session (morning, afternoon, evening). A cell holds
    numbered class blocks separated by line breaks.
    """
    
    DATE_COLUMN = 2
    SESSION_COLUMNS = (3, 4, 5)
    
    COURSE_INFO = re.compile(
        r"^\d+\.\s*\((?P<periods>[\d,\s]+)\)\s*-\s*(?P<course>.+?)\s*\(Lớp:\s*(?P<class_code>[^)]+)\)"
    )
    LECTURER = re.compile(
        r"GV:\s*(?P<instructor>.+?)\s*\((?:(?P<phone>[\d\s.]+)\s*-\s*)?(?P<department>[^)]+)\)"
    )
    LOCATION = re.compile(r"^\s*\((?P<location>[^)]+)\)\s*$", re.MULTILINE)
    BLOCK_START = re.compile(r"(?=^\d+\.)", re.MULTILINE)
    CAMPUS_SUFFIX = re.compile(r"\s*-\s*Cơ sở.*", re.IGNORECASE)
    
    def __init__(self, html: str) -> None:
        """Initialize parser with page content.
        
        Args:
            html: Full HTML of the timetable page.
        """
        self._soup = BeautifulSoup(html, "lxml")
    
    @staticmethod
    def _clean(text: Optional[str]) -> Optional[str]:
        if text is None:
            return None
        return " ".join(text.split()) or None
    
    def _clean_location(self, location: Optional[str]) -> Optional[str]:
        """Remove the "- Cơ sở ..." campus suffix."""
        location = self._clean(location)
        if not location:
            return None
        return self.CAMPUS_SUFFIX.sub("", location).strip() or None
    
    def _parse_block(self, block: str) -> Optional[dict[str, Any]]:
        """Parse one numbered class block; None if it is not one."""
        info = self.COURSE_INFO.search(block)
        if not info:
            return None
        
        lecturer = self.LECTURER.search(block)
        location = self.LOCATION.search(block)
        
        return {
            "periods": info.group("periods").replace(" ", ""),
            "course": self._clean(info.group("course")),
            "class_code": self._clean(info.group("class_code")),
            "instructor": self._clean(lecturer.group("instructor")) if lecturer else None,
            "department": self._clean(lecturer.group("department")) if lecturer else None,
            "phone": self._clean(lecturer.group("phone")) if lecturer else None,
            "location": self._clean_location(location.group("location")) if location else None,
        }
    
    @staticmethod
    def _cell_text(cell: Tag) -> str:
        """Cell text with <br> turned into line breaks."""
        for br in cell.find_all("br"):
            br.replace_with("\n")
        lines = (line.strip() for line in cell.get_text().splitlines())
        return "\n".join(line for line in lines if line)
    
    def _parse_cell(self, cell: Tag, date_text: str) -> list[dict[str, Any]]:
        text = self._cell_text(cell).strip()
        if not text:
            return []
        
        records: list[dict[str, Any]] = []
        for block in self.BLOCK_START.split(text):
            if not block.strip():
                continue
            parsed = self._parse_block(block.strip())
            if parsed is None:
                logger.debug("Ignoring unrecognised block on %s: %r", date_text, block[:40])
                continue
            records.append({"date": date_text, **parsed})
        return records
    
    def _find_table(self) -> Optional[Tag]:
        table = self._soup.select_one("table.table.table-bordered")
        return table if isinstance(table, Tag) else None
    
    def parse(self) -> list[dict[str, Any]]:
        """Parse the timetable table and extract every session.
        
        Returns:
            Raw session records, dates kept as printed on the page. Empty
            when the page has no timetable table.
        """
        table = self._find_table()
        if table is None:
            logger.warning("Timetable table not found in the page")
            return []
        
        body = table.find("tbody") or table
        records: list[dict[str, Any]] = []
        
        for row in body.find_all("tr", recursive=False):
            if not isinstance(row, Tag) or "k-table-head" in (row.get("class") or []):
                continue
            
            cells = row.find_all("td", recursive=False)
            if len(cells) <= max(self.SESSION_COLUMNS):
                continue
            
            date_text = cells[self.DATE_COLUMN].get_text(strip=True)
            if not date_text:
                continue
            
            for col in self.SESSION_COLUMNS:
                records.extend(self._parse_cell(cells[col], date_text))
        
        logger.info("Parsed %d sessions from timetable page", len(records))
        return records


def parse_timetable_html(html: str) -> list[dict[str, Any]]:
    return TimetableParser(html).parse()
