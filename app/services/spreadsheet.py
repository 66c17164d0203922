from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.cell.rich_text import CellRichText
from openpyxl.worksheet.formula import ArrayFormula
from openpyxl.worksheet.worksheet import Worksheet
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen.canvas import Canvas

SPREADSHEET_NAME = re.compile(r"\.(xlsx|xls)$", re.IGNORECASE)
CELL_SEPARATOR = "   |   "
MARGIN = 40
TITLE_FONT = ("Helvetica", 16)
HEADER_FONT = ("Helvetica-Bold", 11)
BODY_FONT = ("Helvetica", 10)


@dataclass(frozen=True)
class PdfRendering:
    path: Path
    page_count: int


def is_spreadsheet(filename: str) -> bool:
    return bool(SPREADSHEET_NAME.search(filename))


def pdf_name_for(filename: str) -> str:
    return SPREADSHEET_NAME.sub(".pdf", filename)


def convert_spreadsheet_to_pdf(source: Path) -> PdfRendering:
    """Render every worksheet of ``source`` as text pages of a sibling PDF.

    Each worksheet starts on a new page under a ``Sheet N: name`` heading. Row 1
    is treated as the header row. Raises whatever openpyxl raises for files it
    cannot read (legacy ``.xls`` included).
    """
    formulas = load_workbook(source, rich_text=True)
    values = load_workbook(source, data_only=True)
    target = source.with_suffix(".pdf")

    writer = _PageWriter(Canvas(str(target), pagesize=letter), letter)
    for index, sheet in enumerate(formulas.worksheets, start=1):
        if index > 1:
            writer.new_page()
        writer.heading(f"Sheet {index}: {sheet.title}")
        for row_number, row_text in _sheet_rows(sheet, values[sheet.title]):
            if row_number == 1:
                writer.header_row(row_text)
            else:
                writer.line(row_text, BODY_FONT)
    writer.save()
    return PdfRendering(path=target, page_count=writer.page_count)


def _sheet_rows(sheet: Worksheet, cached: Worksheet) -> list[tuple[int, str]]:
    rows: list[tuple[int, str]] = []
    for row in sheet.iter_rows():
        cells = [
            text
            for cell in row
            if (text := flatten_cell(cell.value, cached[cell.coordinate].value)) is not None
        ]
        if cells:
            rows.append((row[0].row, CELL_SEPARATOR.join(cells)))
    return rows


def flatten_cell(value: object, cached_value: object = None) -> str | None:
    """Return the printable form of a cell: display text, then cached result, then formula."""
    if value is None:
        return None
    if isinstance(value, CellRichText):
        return str(value)
    if isinstance(value, ArrayFormula):
        formula = value.text or ""
    elif isinstance(value, str) and value.startswith("="):
        formula = value
    else:
        return str(value)
    if cached_value is not None:
        return str(cached_value)
    return formula if formula.startswith("=") else f"={formula}"


class _PageWriter:
    def __init__(self, canvas: Canvas, pagesize: tuple[float, float]) -> None:
        self._canvas = canvas
        self._width, self._height = pagesize
        self._y = self._height - MARGIN
        self.page_count = 1

    def new_page(self) -> None:
        self._canvas.showPage()
        self.page_count += 1
        self._y = self._height - MARGIN

    def heading(self, text: str) -> None:
        font, size = TITLE_FONT
        self._ensure_room(size * 2)
        self._y -= size
        self._canvas.setFont(font, size)
        self._canvas.drawString(MARGIN, self._y, text)
        text_width = self._canvas.stringWidth(text, font, size)
        self._canvas.line(MARGIN, self._y - 2, MARGIN + text_width, self._y - 2)
        self._y -= size * 0.5

    def header_row(self, text: str) -> None:
        self.line(text, HEADER_FONT)
        self._y -= 2
        self._canvas.line(MARGIN, self._y, self._width - MARGIN, self._y)
        self._y -= 4

    def line(self, text: str, font_spec: tuple[str, int]) -> None:
        font, size = font_spec
        leading = size * 1.25
        for chunk in simpleSplit(text, font, size, self._width - 2 * MARGIN) or [""]:
            self._ensure_room(leading)
            self._y -= leading
            self._canvas.setFont(font, size)
            self._canvas.drawString(MARGIN, self._y, chunk)

    def save(self) -> None:
        self._canvas.save()

    def _ensure_room(self, needed: float) -> None:
        if self._y - needed < MARGIN:
            self.new_page()
