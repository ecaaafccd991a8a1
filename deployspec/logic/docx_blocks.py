"""Block-level DOCX building helpers used by the export pipeline.

Grid tables carry explicit single borders on every cell edge and an explicitly
cleared background so they render the same regardless of the table style a
word processor would otherwise inherit.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple

from docx.document import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt
from docx.table import Table, _Cell
from docx.text.paragraph import Paragraph

NO_DATA_TEXT = "No data available."
NOT_SPECIFIED_TEXT = "Not specified."
CHECKED_GLYPH = "☑"
UNCHECKED_GLYPH = "☐"

# Single line, 1 pt (w:sz is in eighths of a point)
BORDER_SIZE_EIGHTHS = 8
BORDER_EDGES = ("top", "left", "bottom", "right")
INFO_LABEL_WIDTH_INCHES = 2.0
TOC_INSTRUCTION = 'TOC \\o "1-3" \\h \\z \\u'
MONOSPACE_FONT = "Courier New"
_UPDATE_FIELDS_SUCCESSORS = (
    "w:hdrShapeDefaults",
    "w:footnotePr",
    "w:endnotePr",
    "w:compat",
    "w:docVars",
    "w:rsids",
    "w:themeFontLang",
    "w:clrSchemeMapping",
    "w:shapeDefaults",
    "w:decimalSymbol",
    "w:listSeparator",
)


@dataclass(frozen=True)
class Column:
    header: str
    accessor: Callable[[Any], Any]


def field_getter(key: str) -> Callable[[Any], Any]:
    """Accessor reading ``key`` from a mapping or an attribute-bearing record."""
    def get(record: Any) -> Any:
        if isinstance(record, Mapping):
            return record.get(key)
        return getattr(record, key, None)

    return get


def columns_for(headers: Sequence[str], keys: Sequence[str]) -> list[Column]:
    if len(headers) != len(keys):
        raise ValueError(f"{len(headers)} headers for {len(keys)} keys")
    return [Column(h, field_getter(k)) for h, k in zip(headers, keys)]


def cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


# ----------------------
# Cell formatting
# ----------------------

def set_cell_borders(cell: _Cell, size: int = BORDER_SIZE_EIGHTHS) -> None:
    tc_pr = cell._tc.get_or_add_tcPr()
    existing = tc_pr.find(qn("w:tcBorders"))
    if existing is not None:
        tc_pr.remove(existing)
    borders = OxmlElement("w:tcBorders")
    for edge in BORDER_EDGES:
        el = OxmlElement(f"w:{edge}")
        el.set(qn("w:val"), "single")
        el.set(qn("w:sz"), str(size))
        el.set(qn("w:space"), "0")
        el.set(qn("w:color"), "auto")
        borders.append(el)
    tc_pr.append(borders)


def clear_cell_shading(cell: _Cell) -> None:
    tc_pr = cell._tc.get_or_add_tcPr()
    existing = tc_pr.find(qn("w:shd"))
    if existing is not None:
        tc_pr.remove(existing)
    shading = OxmlElement("w:shd")
    shading.set(qn("w:val"), "clear")
    shading.set(qn("w:color"), "auto")
    shading.set(qn("w:fill"), "auto")
    tc_pr.append(shading)


def _format_cell(cell: _Cell, text: str, width: Any, *, bold: bool = False) -> None:
    # tcW must precede tcBorders/shd inside tcPr
    cell.width = width
    paragraph = cell.paragraphs[0]
    run = paragraph.add_run(text)
    run.bold = bold
    set_cell_borders(cell)
    clear_cell_shading(cell)


# ----------------------
# Tables
# ----------------------

def add_no_data_notice(document: DocxDocument, text: str = NO_DATA_TEXT) -> Paragraph:
    paragraph = document.add_paragraph()
    paragraph.add_run(text).italic = True
    return paragraph


def add_grid_table(
    document: DocxDocument,
    columns: Sequence[Column],
    records: Sequence[Any],
    *,
    total_width_inches: float = 6.5,
) -> Optional[Table]:
    """Emit a bordered grid table, or a "no data" notice when ``records`` is empty.

    Returns the table, or None when the notice was emitted instead.
    """
    if not records:
        add_no_data_notice(document)
        return None
    if not columns:
        raise ValueError("grid table needs at least one column")
    width = Inches(total_width_inches / len(columns))
    table = document.add_table(rows=1, cols=len(columns))
    table.autofit = False
    for cell, column in zip(table.rows[0].cells, columns):
        _format_cell(cell, column.header, width, bold=True)
    for record in records:
        cells = table.add_row().cells
        for cell, column in zip(cells, columns):
            _format_cell(cell, cell_text(column.accessor(record)), width)
    return table


def add_info_table(
    document: DocxDocument,
    rows: Iterable[Tuple[str, Any]],
    *,
    total_width_inches: float = 6.5,
    label_width_inches: float = INFO_LABEL_WIDTH_INCHES,
) -> Table:
    """Two-column label/value table with a fixed narrow label column."""
    label_width = Inches(label_width_inches)
    value_width = Inches(max(total_width_inches - label_width_inches, 0.5))
    table = document.add_table(rows=0, cols=2)
    table.autofit = False
    for label, value in rows:
        label_cell, value_cell = table.add_row().cells
        _format_cell(label_cell, label, label_width, bold=True)
        _format_cell(value_cell, cell_text(value), value_width)
    return table


# ----------------------
# Paragraph blocks
# ----------------------

def add_prose(document: DocxDocument, text: Any) -> Paragraph:
    value = cell_text(text).strip()
    if not value:
        return add_no_data_notice(document, NOT_SPECIFIED_TEXT)
    return document.add_paragraph(value)


def add_labelled_line(document: DocxDocument, label: str, text: Any, style: Optional[str] = None) -> Paragraph:
    paragraph = document.add_paragraph(style=style)
    paragraph.add_run(f"{label}: ").bold = True
    paragraph.add_run(cell_text(text))
    return paragraph


def add_preformatted(document: DocxDocument, text: Any) -> list[Paragraph]:
    """One monospaced paragraph per line of ``text``."""
    value = cell_text(text)
    if not value.strip():
        return [add_no_data_notice(document, NOT_SPECIFIED_TEXT)]
    out: list[Paragraph] = []
    for line in value.splitlines():
        paragraph = document.add_paragraph()
        paragraph.paragraph_format.space_after = Pt(0)
        run = paragraph.add_run(line)
        run.font.name = MONOSPACE_FONT
        run.font.size = Pt(9)
        out.append(paragraph)
    return out


def add_checklist_item(document: DocxDocument, text: Any, checked: bool) -> Paragraph:
    glyph = CHECKED_GLYPH if checked else UNCHECKED_GLYPH
    return document.add_paragraph(f"{glyph} {cell_text(text)}")


def add_centered(document: DocxDocument, text: str, *, size: float = 11, bold: bool = False, italic: bool = False) -> Paragraph:
    paragraph = document.add_paragraph()
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = paragraph.add_run(text)
    run.font.size = Pt(size)
    run.bold = bold
    run.italic = italic
    return paragraph


def add_picture_block(document: DocxDocument, content: bytes, width_inches: float) -> Paragraph:
    paragraph = document.add_paragraph()
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    paragraph.add_run().add_picture(BytesIO(content), width=Inches(width_inches))
    return paragraph


# ----------------------
# Fields and document settings
# ----------------------

def add_toc_field(document: DocxDocument, instruction: str = TOC_INSTRUCTION) -> Paragraph:
    """Append a complex TOC field; word processors fill it on field update."""
    paragraph = document.add_paragraph()
    run = paragraph.add_run()
    begin = OxmlElement("w:fldChar")
    begin.set(qn("w:fldCharType"), "begin")
    begin.set(qn("w:dirty"), "true")
    instr = OxmlElement("w:instrText")
    instr.text = instruction
    separate = OxmlElement("w:fldChar")
    separate.set(qn("w:fldCharType"), "separate")
    run._r.append(begin)
    run._r.append(instr)
    run._r.append(separate)
    placeholder = paragraph.add_run("Right-click and choose Update Field to build the table of contents.")
    placeholder.italic = True
    end_run = paragraph.add_run()
    end = OxmlElement("w:fldChar")
    end.set(qn("w:fldCharType"), "end")
    end_run._r.append(end)
    return paragraph


def request_field_update_on_open(document: DocxDocument) -> None:
    settings = document.settings.element
    existing = settings.find(qn("w:updateFields"))
    if existing is None:
        existing = OxmlElement("w:updateFields")
        # CT_Settings is ordered; updateFields sits before these siblings
        successor = None
        for tag in _UPDATE_FIELDS_SUCCESSORS:
            successor = settings.find(qn(tag))
            if successor is not None:
                break
        if successor is not None:
            successor.addprevious(existing)
        else:
            settings.append(existing)
    existing.set(qn("w:val"), "true")


def apply_uniform_margins(document: DocxDocument, inches: float) -> None:
    margin = Inches(inches)
    for section in document.sections:
        section.top_margin = margin
        section.bottom_margin = margin
        section.left_margin = margin
        section.right_margin = margin


__all__ = [
    "NO_DATA_TEXT",
    "NOT_SPECIFIED_TEXT",
    "CHECKED_GLYPH",
    "UNCHECKED_GLYPH",
    "TOC_INSTRUCTION",
    "Column",
    "field_getter",
    "columns_for",
    "cell_text",
    "set_cell_borders",
    "clear_cell_shading",
    "add_no_data_notice",
    "add_grid_table",
    "add_info_table",
    "add_prose",
    "add_labelled_line",
    "add_preformatted",
    "add_checklist_item",
    "add_centered",
    "add_picture_block",
    "add_toc_field",
    "request_field_update_on_open",
    "apply_uniform_margins",
]
