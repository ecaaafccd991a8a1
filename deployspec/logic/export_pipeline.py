"""Render/export pipeline: one document snapshot in, one DOCX package out.

Stages run in a fixed order (cover, table of contents, body sections, footer)
against a single snapshot, so the output depends only on that snapshot and
the optional cover image. The only suspension points are the cover image
fetch and the final serialization.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Callable, Optional, Sequence

import anyio
from docx import Document as new_docx
from docx.document import Document as DocxDocument
from docx.shared import Pt

from deployspec.config import ExportConfig, get_config
from deployspec.logic import events
from deployspec.logic.docx_blocks import (
    Column,
    add_centered,
    add_checklist_item,
    add_grid_table,
    add_info_table,
    add_labelled_line,
    add_no_data_notice,
    add_picture_block,
    add_preformatted,
    add_prose,
    add_toc_field,
    apply_uniform_margins,
    field_getter,
    request_field_update_on_open,
)
from deployspec.logic.docx_validation import DOCX_MIME, is_valid_docx
from deployspec.logic.image_fetch import ImageFetcher
from deployspec.models.document import Document, DocumentInfo

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


class ExportError(RuntimeError):
    """Raised when a snapshot cannot be rendered or serialized."""


@dataclass(frozen=True)
class ExportResult:
    content: bytes
    filename: str
    media_type: str = DOCX_MIME


def derive_filename(info: DocumentInfo, *, prefix: str = "SAP_CPI_Deployment", extension: str = "docx") -> str:
    """``<prefix>_<title with whitespace runs as '_'>_v<version>.<extension>``."""
    title = _WHITESPACE_RE.sub("_", str(info.title or "").strip())
    return f"{prefix}_{title}_v{info.version}.{extension}"


def _col(header: str, key: str) -> Column:
    return Column(header, field_getter(key))


def _field(record: Any, key: str, default: Any = None) -> Any:
    """Read ``key`` from a list entry; plain mappings and partial records are accepted."""
    value = field_getter(key)(record)
    return default if value is None else value


def _item_caption(ordinal: int, position: int, *parts: Any) -> str:
    label = " - ".join(str(p) for p in parts if str(p or "").strip())
    return f"{ordinal}.{position} {label}".rstrip()


STAKEHOLDER_COLUMNS = (_col("Role", "role"), _col("Name", "name"), _col("Contact", "contact"))
VERSION_COLUMNS = (
    _col("Version", "version"),
    _col("Date", "date"),
    _col("Author", "author"),
    _col("Description", "description"),
)
ENVIRONMENT_COLUMNS = (_col("Environment", "environment"), _col("Tenant URL", "url"), _col("Purpose", "purpose"))
FLOW_COLUMNS = (
    _col("ID", "id"),
    _col("Name", "name"),
    _col("Type", "type"),
    _col("Source", "source"),
    _col("Target", "target"),
)
SENDER_COLUMNS = (_col("Adapter Type", "adapter"), _col("Endpoint URL", "endpoint"), _col("Authentication", "auth"))
RECEIVER_COLUMNS = (_col("Adapter Type", "adapter"), _col("Target Endpoint", "endpoint"), _col("Timeout/Config", "timeout"))
STEP_COLUMNS = (_col("Step #", "step"), _col("Type", "type"), _col("Description", "description"))
PROXY_COLUMNS = (_col("API Proxy Name", "name"), _col("Base Path", "base_path"), _col("Target Endpoint", "target"))
PREREQUISITE_COLUMNS = (
    _col("ID", "id"),
    _col("Prerequisite", "description"),
    _col("Responsible", "responsible"),
    _col("Status", "status"),
)
CREDENTIAL_COLUMNS = (_col("Credential Name", "name"), _col("Type", "type"), _col("Usage", "usage"))
METRIC_COLUMNS = (_col("Metric", "metric"), _col("Threshold", "threshold"), _col("Alert Action", "alert_type"))
ERROR_COLUMNS = (
    _col("Error", "error"),
    _col("Cause", "cause"),
    _col("Resolution", "resolution"),
    _col("Notification", "notification"),
)


class DocumentRenderer:
    """Builds a python-docx document from one snapshot."""

    def __init__(self, doc: Document, config: ExportConfig, logo: Optional[bytes] = None) -> None:
        self.doc = doc
        self.config = config
        self.logo = logo
        self.out: DocxDocument = new_docx()

    def render(self) -> DocxDocument:
        self._setup()
        self._cover()
        self._table_of_contents()
        self._document_information()
        sections: Sequence[tuple[str, Callable[[int], None]]] = (
            ("Executive Summary", self._executive_summary),
            ("Technical Architecture", self._architecture),
            ("Integration Flow Inventory", self._flow_inventory),
            ("Detailed Flow Specifications", self._flow_details),
            ("API Management", self._api_management),
            ("Prerequisites", self._prerequisites),
            ("Deployment Procedures", self._deployment),
            ("Testing Strategy", self._testing),
            ("Security Configuration", self._security),
            ("Monitoring & Operations", self._monitoring),
            ("Error Handling", self._error_handling),
        )
        for ordinal, (title, emit) in enumerate(sections, start=1):
            self.out.add_heading(f"{ordinal}. {title}", level=1)
            emit(ordinal)
        self._footer()
        return self.out

    # ----------------------
    # Helpers
    # ----------------------

    def _table(self, columns: Sequence[Column], records: Sequence[Any]) -> None:
        add_grid_table(self.out, columns, records, total_width_inches=self.config.table_width_inches)

    def _info(self, rows: Sequence[tuple[str, Any]]) -> None:
        add_info_table(self.out, rows, total_width_inches=self.config.table_width_inches)

    def _sub(self, ordinal: int, number: int, title: str) -> None:
        self.out.add_heading(f"{ordinal}.{number} {title}", level=2)

    # ----------------------
    # Stages
    # ----------------------

    def _setup(self) -> None:
        normal = self.out.styles["Normal"]
        normal.font.name = "Calibri"
        normal.font.size = Pt(11)
        apply_uniform_margins(self.out, self.config.page_margin_inches)
        request_field_update_on_open(self.out)
        props = self.out.core_properties
        # Core properties are capped at 255 characters
        props.title = str(self.doc.info.title)[:255]
        props.author = str(self.doc.info.author)[:255]
        props.version = str(self.doc.info.version)[:255]

    def _cover(self) -> None:
        info = self.doc.info
        if self.logo:
            add_picture_block(self.out, self.logo, self.config.logo_width_inches)
        add_centered(self.out, info.title, size=28, bold=True)
        add_centered(self.out, f"Version {info.version}", size=16)
        add_centered(self.out, info.date_created, size=12)
        add_centered(self.out, f"Status: {info.status} | Environment: {info.environment}", size=12, italic=True)
        self.out.add_page_break()

    def _table_of_contents(self) -> None:
        # "TOC Heading" is a heading style that stays out of its own outline
        self.out.add_paragraph("Table of Contents", style="TOC Heading")
        add_toc_field(self.out)
        self.out.add_page_break()

    def _document_information(self) -> None:
        info = self.doc.info
        self.out.add_heading("Document Information", level=1)
        self._info(
            [
                ("Document Title", info.title),
                ("Version", info.version),
                ("Author", info.author),
                ("Date Created", info.date_created),
                ("Status", info.status),
                ("Target Environment", info.environment),
            ]
        )
        self.out.add_heading("Version History", level=2)
        self._table(VERSION_COLUMNS, self.doc.versions)
        self.out.add_page_break()

    def _executive_summary(self, ordinal: int) -> None:
        summary = self.doc.executive
        self._sub(ordinal, 1, "Purpose")
        add_prose(self.out, summary.purpose)
        self._sub(ordinal, 2, "Scope")
        add_prose(self.out, summary.scope)
        self._sub(ordinal, 3, "Integration Landscape")
        add_labelled_line(self.out, "Source Systems", summary.source_systems, style="List Bullet")
        add_labelled_line(self.out, "Target Systems", summary.target_systems, style="List Bullet")
        self._sub(ordinal, 4, "Key Stakeholders")
        self._table(STAKEHOLDER_COLUMNS, self.doc.stakeholders)

    def _architecture(self, ordinal: int) -> None:
        self._sub(ordinal, 1, "Architecture Overview")
        add_prose(self.out, self.doc.architecture.overview)
        self._sub(ordinal, 2, "Environment Details")
        self._table(ENVIRONMENT_COLUMNS, self.doc.architecture.environments)

    def _flow_inventory(self, ordinal: int) -> None:
        self._table(FLOW_COLUMNS, self.doc.integration_flows)

    def _flow_details(self, ordinal: int) -> None:
        flows = self.doc.integration_flows
        if not flows:
            add_no_data_notice(self.out)
            return
        # Captions follow list position, not the stored flow id
        for position, flow in enumerate(flows, start=1):
            self.out.add_heading(_item_caption(ordinal, position, _field(flow, "id"), _field(flow, "name")), level=2)
            add_labelled_line(self.out, "Description", _field(flow, "description", ""))
            self.out.add_heading("Sender Configurations", level=3)
            self._table(SENDER_COLUMNS, _field(flow, "senders", []))
            self.out.add_heading("Receiver Configurations", level=3)
            self._table(RECEIVER_COLUMNS, _field(flow, "receivers", []))
            self.out.add_heading("Process Flow Steps", level=3)
            self._table(STEP_COLUMNS, _field(flow, "steps", []))

    def _api_management(self, ordinal: int) -> None:
        self._sub(ordinal, 1, "API Proxies")
        self._table(PROXY_COLUMNS, self.doc.api.proxies)
        self._sub(ordinal, 2, "API Policies")
        add_preformatted(self.out, self.doc.api.policies)

    def _prerequisites(self, ordinal: int) -> None:
        self._table(PREREQUISITE_COLUMNS, self.doc.prerequisites)

    def _deployment(self, ordinal: int) -> None:
        self._sub(ordinal, 1, "Pre-Deployment Checklist")
        checklist = self.doc.deployment.checklist
        if not checklist:
            add_no_data_notice(self.out)
        for item in checklist:
            add_checklist_item(self.out, _field(item, "text", ""), bool(_field(item, "checked", False)))
        self._sub(ordinal, 2, "Deployment Steps")
        add_preformatted(self.out, self.doc.deployment.steps)

    def _testing(self, ordinal: int) -> None:
        scenarios = self.doc.testing.scenarios
        if not scenarios:
            add_no_data_notice(self.out)
            return
        for position, scenario in enumerate(scenarios, start=1):
            self.out.add_heading(_item_caption(ordinal, position, _field(scenario, "id"), _field(scenario, "scenario")), level=2)
            self._info([("Input Data", _field(scenario, "input")), ("Expected Output", _field(scenario, "expected"))])

    def _security(self, ordinal: int) -> None:
        self._table(CREDENTIAL_COLUMNS, self.doc.security.credentials)

    def _monitoring(self, ordinal: int) -> None:
        self._table(METRIC_COLUMNS, self.doc.monitoring.metrics)

    def _error_handling(self, ordinal: int) -> None:
        self._table(ERROR_COLUMNS, self.doc.error_handling.scenarios)

    def _footer(self) -> None:
        info = self.doc.info
        self.out.add_paragraph()
        add_centered(self.out, "End of Document", size=10, bold=True)
        add_centered(self.out, f"{info.title} | Version {info.version} | {info.status}", size=9)
        if info.author.strip():
            add_centered(self.out, f"Prepared by {info.author}", size=9, italic=True)


def render_document(doc: Document, config: ExportConfig, logo: Optional[bytes] = None) -> DocxDocument:
    return DocumentRenderer(doc, config, logo).render()


def build_package(doc: Document, config: ExportConfig, logo: Optional[bytes] = None) -> bytes:
    """Render and serialize ``doc``; the buffer is only returned when complete."""
    rendered = render_document(doc, config, logo)
    buf = BytesIO()
    rendered.save(buf)
    return buf.getvalue()


async def export_document(
    doc: Document,
    *,
    fetcher: Optional[ImageFetcher] = None,
    config: Optional[ExportConfig] = None,
) -> ExportResult:
    """Export one snapshot to a DOCX package.

    A missing or unreachable cover image never fails the export. Any
    rendering or serialization error raises :class:`ExportError` and no
    bytes are returned.
    """
    cfg = config or get_config().export
    fetcher = fetcher or ImageFetcher(get_config().image)
    filename = derive_filename(doc.info, prefix=cfg.filename_prefix, extension=cfg.extension)

    logo: Optional[bytes] = None
    if (doc.info.logo_url or "").strip():
        logo = await fetcher.fetch_as_embeddable(doc.info.logo_url)
        if logo is None:
            logger.warning("export.cover_image_omitted url=%s", doc.info.logo_url)

    try:
        content = await anyio.to_thread.run_sync(build_package, doc, cfg, logo)
    except Exception as exc:
        logger.error("export.render_failed filename=%s", filename, exc_info=True)
        raise ExportError(f"could not render '{filename}': {exc}") from exc
    if not is_valid_docx(content):
        logger.error("export.invalid_package filename=%s bytes=%s", filename, len(content))
        raise ExportError(f"rendered package for '{filename}' is not a valid DOCX")

    logger.info("export.done filename=%s bytes=%s logo=%s", filename, len(content), logo is not None)
    events.publish(events.DOCUMENT_EXPORTED, {"filename": filename, "bytes": len(content), "logo": logo is not None})
    return ExportResult(content=content, filename=filename)


__all__ = [
    "ExportError",
    "ExportResult",
    "DocumentRenderer",
    "derive_filename",
    "render_document",
    "build_package",
    "export_document",
]
