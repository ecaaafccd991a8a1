"""Functional tests for the DOCX export pipeline and its block helpers.

Exports are read back with python-docx; raw part XML is inspected with
zipfile where python-docx has no reader API (fields, settings).
"""

from __future__ import annotations

import zipfile
from functools import partial
from io import BytesIO

import anyio
import docx
import pytest
from docx.oxml.ns import qn

from deployspec.config import ExportConfig
from deployspec.logic import events
from deployspec.logic.docx_blocks import (
    CHECKED_GLYPH,
    INFO_LABEL_WIDTH_INCHES,
    NO_DATA_TEXT,
    UNCHECKED_GLYPH,
    add_grid_table,
    add_info_table,
    cell_text,
    columns_for,
    request_field_update_on_open,
)
from deployspec.logic.docx_validation import DOCX_MIME, is_valid_docx
from deployspec.logic.export_pipeline import ExportError, derive_filename, export_document
from deployspec.models.document import IntegrationFlow

from conftest import LOGO_URL, UNREACHABLE_URL


def _export(doc, fetcher, config=None):
    return anyio.run(partial(export_document, doc, fetcher=fetcher, config=config or ExportConfig()))


def _open(result):
    return docx.Document(BytesIO(result.content))


def _headings(rendered, level=None):
    out = []
    for p in rendered.paragraphs:
        name = p.style.name
        if name.startswith("Heading") and (level is None or name == f"Heading {level}"):
            out.append(p.text)
    return out


def _part(result, name: str) -> str:
    with zipfile.ZipFile(BytesIO(result.content)) as archive:
        return archive.read(name).decode("utf-8")


# -----------------------------
# Filename
# -----------------------------

def test_filename_replaces_whitespace_in_title(engine):
    doc = engine.current().model_copy(deep=True)
    doc.info.title = "My Doc"
    doc.info.version = "2.1"
    name = derive_filename(doc.info)
    assert "My_Doc_v2.1" in name
    assert name == "SAP_CPI_Deployment_My_Doc_v2.1.docx"


def test_filename_uses_configured_prefix_and_extension(engine):
    info = engine.current().info
    assert derive_filename(info, prefix="Acme", extension="docx") == "Acme_SAP_CPI_Deployment_Document_v1.0.docx"


# -----------------------------
# Whole-document export
# -----------------------------

def test_export_without_logo_succeeds(engine, fetcher):
    result = _export(engine.current(), fetcher)

    assert result.media_type == DOCX_MIME
    assert is_valid_docx(result.content)
    assert len(_open(result).inline_shapes) == 0


def test_export_with_unreachable_logo_still_succeeds(engine, fetcher):
    engine.set_field("info", "logo_url", UNREACHABLE_URL)
    result = _export(engine.current(), fetcher)

    assert is_valid_docx(result.content)
    assert len(_open(result).inline_shapes) == 0


def test_export_with_reachable_logo_embeds_one_image(engine, fetcher):
    engine.set_field("info", "logo_url", LOGO_URL)
    result = _export(engine.current(), fetcher)

    assert len(_open(result).inline_shapes) == 1


def test_section_headings_are_numbered_in_order(engine, fetcher):
    top = _headings(_open(_export(engine.current(), fetcher)), level=1)

    assert top[0] == "Document Information"
    assert top[1:] == [
        "1. Executive Summary",
        "2. Technical Architecture",
        "3. Integration Flow Inventory",
        "4. Detailed Flow Specifications",
        "5. API Management",
        "6. Prerequisites",
        "7. Deployment Procedures",
        "8. Testing Strategy",
        "9. Security Configuration",
        "10. Monitoring & Operations",
        "11. Error Handling",
    ]


def test_flow_captions_follow_position_not_id(engine, fetcher):
    engine.append(["integration_flows"], IntegrationFlow(id="IF_900", name="Invoices"))
    engine.append(["integration_flows"], IntegrationFlow(id="IF_042", name="Returns"))

    level2 = _headings(_open(_export(engine.current(), fetcher)), level=2)

    assert "4.1 IF_001 - Order Synchronization" in level2
    assert "4.2 IF_900 - Invoices" in level2
    assert "4.3 IF_042 - Returns" in level2


def test_scenario_captions_follow_position(engine, fetcher):
    engine.remove(["testing", "scenarios"], 0)
    level2 = _headings(_open(_export(engine.current(), fetcher)), level=2)
    assert "8.1 TC002 - Invalid Data" in level2


def test_empty_list_section_renders_notice_not_table(engine, fetcher):
    engine.set_by_path(["security", "credentials"], [])
    rendered = _open(_export(engine.current(), fetcher))

    texts = [p.text for p in rendered.paragraphs]
    heading = texts.index("9. Security Configuration")
    assert texts[heading + 1] == NO_DATA_TEXT


def test_empty_document_renders(fetcher):
    from deployspec.models.document import Document

    result = _export(Document(), fetcher)
    rendered = _open(result)
    assert is_valid_docx(result.content)
    assert NO_DATA_TEXT in [p.text for p in rendered.paragraphs]


def test_checklist_renders_glyphs(engine, fetcher):
    engine.set_by_path(["deployment", "checklist", 1, "checked"], True)
    texts = [p.text for p in _open(_export(engine.current(), fetcher)).paragraphs]

    assert f"{UNCHECKED_GLYPH} All iFlows tested in QA" in texts
    assert f"{CHECKED_GLYPH} Security Materials created in target" in texts


def test_cover_and_footer_carry_document_info(engine, fetcher):
    texts = [p.text for p in _open(_export(engine.current(), fetcher)).paragraphs]

    assert texts[0] == "SAP CPI Deployment Document"
    assert "Version 1.0" in texts
    assert "Status: Draft | Environment: DEV" in texts
    assert "End of Document" in texts


def test_toc_field_and_update_on_open(engine, fetcher):
    result = _export(engine.current(), fetcher)

    document_xml = _part(result, "word/document.xml")
    assert 'TOC \\o "1-3" \\h \\z \\u' in document_xml
    assert 'w:fldCharType="begin"' in document_xml
    assert 'w:fldCharType="end"' in document_xml
    caption = next(p for p in _open(result).paragraphs if p.text == "Table of Contents")
    assert caption.style.name == "TOC Heading"
    assert "updateFields" in _part(result, "word/settings.xml")


def test_margins_come_from_config(engine, fetcher):
    result = _export(engine.current(), fetcher, ExportConfig(page_margin_inches=0.75))
    section = _open(result).sections[0]
    assert section.left_margin.inches == pytest.approx(0.75)
    assert section.top_margin.inches == pytest.approx(0.75)


def test_export_publishes_event(engine, fetcher):
    events.EVENT_BUFFER.clear()
    result = _export(engine.current(), fetcher)

    exported = [e for e in events.get_buffered_events() if e["type"] == events.DOCUMENT_EXPORTED]
    assert exported and exported[0]["payload"]["filename"] == result.filename


def test_partial_mapping_records_render_with_blank_cells(engine, fetcher):
    engine.append(["stakeholders"], {"role": "QA"})
    engine.append(["integration_flows"], {"id": "IF_777", "senders": [{"adapter": "SFTP"}]})
    engine.append(["deployment", "checklist"], {"text": "Smoke test run"})

    rendered = _open(_export(engine.current(), fetcher))

    stakeholder_rows = [[c.text for c in row.cells] for t in rendered.tables for row in t.rows]
    assert ["QA", "", ""] in stakeholder_rows
    assert ["SFTP", "", ""] in stakeholder_rows
    assert "4.2 IF_777" in _headings(rendered, level=2)
    assert f"{UNCHECKED_GLYPH} Smoke test run" in [p.text for p in rendered.paragraphs]


def test_unrenderable_section_fails_export(engine, fetcher):
    engine.set_by_path(["info"], "not a record")
    with pytest.raises(ExportError):
        _export(engine.current(), fetcher)


def test_export_renders_the_snapshot_it_was_given(engine, fetcher):
    pinned = engine.current()
    engine.set_field("info", "title", "Changed After Pin")

    result = _export(pinned, fetcher)
    assert result.filename == "SAP_CPI_Deployment_SAP_CPI_Deployment_Document_v1.0.docx"


# -----------------------------
# Block helpers
# -----------------------------

def test_grid_table_shape_and_bold_header():
    out = docx.Document()
    table = add_grid_table(out, columns_for(["Name", "Role"], ["name", "role"]), [{"name": "Ana", "role": "Lead"}])

    assert table is not None
    assert len(table.rows) == 2
    assert len(table.columns) == 2
    assert all(run.bold for cell in table.rows[0].cells for run in cell.paragraphs[0].runs)
    assert [c.text for c in table.rows[1].cells] == ["Ana", "Lead"]


def test_grid_table_cells_carry_borders_and_cleared_shading():
    out = docx.Document()
    table = add_grid_table(out, columns_for(["A"], ["a"]), [{"a": None}])

    for row in table.rows:
        tc_pr = row.cells[0]._tc.tcPr
        borders = tc_pr.find(qn("w:tcBorders"))
        assert borders is not None
        assert {child.get(qn("w:val")) for child in borders} == {"single"}
        assert tc_pr.find(qn("w:shd")).get(qn("w:fill")) == "auto"
    assert table.rows[1].cells[0].text == ""


def test_grid_table_with_no_records_emits_notice():
    out = docx.Document()
    assert add_grid_table(out, columns_for(["A", "B"], ["a", "b"]), []) is None
    assert out.tables == []
    assert out.paragraphs[-1].text == NO_DATA_TEXT


def test_columns_for_requires_matching_lengths():
    with pytest.raises(ValueError):
        columns_for(["A", "B"], ["a"])


def test_update_fields_is_not_duplicated():
    out = docx.Document()
    request_field_update_on_open(out)
    request_field_update_on_open(out)
    assert len(out.settings.element.findall(qn("w:updateFields"))) == 1


def test_info_table_has_narrow_label_column_and_grid_cells():
    out = docx.Document()
    table = add_info_table(out, [("Input Data", "Order #1"), ("Expected Output", None)], total_width_inches=6.5)

    assert len(table.columns) == 2
    assert [[c.text for c in row.cells] for row in table.rows] == [
        ["Input Data", "Order #1"],
        ["Expected Output", ""],
    ]
    for row in table.rows:
        label, value = row.cells
        assert label.width.inches == pytest.approx(INFO_LABEL_WIDTH_INCHES)
        assert value.width.inches == pytest.approx(6.5 - INFO_LABEL_WIDTH_INCHES)
        assert all(run.bold for run in label.paragraphs[0].runs)
        for cell in row.cells:
            tc_pr = cell._tc.tcPr
            borders = tc_pr.find(qn("w:tcBorders"))
            assert {child.get(qn("w:val")) for child in borders} == {"single"}
            assert tc_pr.find(qn("w:shd")).get(qn("w:fill")) == "auto"


def test_flow_subsections_are_level_three_under_each_flow(engine, fetcher):
    engine.append(["integration_flows"], IntegrationFlow(id="IF_002", name="Invoices"))
    rendered = _open(_export(engine.current(), fetcher))

    outline = [(p.style.name, p.text) for p in rendered.paragraphs if p.style.name.startswith("Heading")]
    expected_children = [
        ("Heading 3", "Sender Configurations"),
        ("Heading 3", "Receiver Configurations"),
        ("Heading 3", "Process Flow Steps"),
    ]
    for caption in ("4.1 IF_001 - Order Synchronization", "4.2 IF_002 - Invoices"):
        at = outline.index(("Heading 2", caption))
        assert outline[at + 1 : at + 4] == expected_children


def test_cell_text_is_plain_string_form():
    assert cell_text(None) == ""
    assert cell_text(True) == "True"
    assert cell_text(3) == "3"
