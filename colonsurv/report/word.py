"""Word rendering of a report through python-docx."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

import io
from typing import IO

import docx
from docx.enum.section import WD_ORIENT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt
from omegaconf import DictConfig

from colonsurv.report.elements import (
    FIGURE,
    HEADING,
    PREFORMATTED,
    TABLE,
    TEXT,
    Report,
    figure_png,
    flatten_table,
)
from colonsurv.utils import logging

logger = logging.get_default_logger()


def add_toc(document, depth: int = 2) -> None:
    """Insert a TOC field; Word fills it in when the fields are updated."""
    paragraph = document.add_paragraph()
    run = paragraph.add_run()
    begin = OxmlElement("w:fldChar")
    begin.set(qn("w:fldCharType"), "begin")
    instr = OxmlElement("w:instrText")
    instr.set(qn("xml:space"), "preserve")
    instr.text = f'TOC \\o "1-{depth}" \\h \\z \\u'
    separate = OxmlElement("w:fldChar")
    separate.set(qn("w:fldCharType"), "separate")
    placeholder = OxmlElement("w:t")
    placeholder.text = "Right-click to update the table of contents."
    end = OxmlElement("w:fldChar")
    end.set(qn("w:fldCharType"), "end")
    for el in (begin, instr, separate, placeholder, end):
        run._r.append(el)


def set_orientation(document, orientation: str) -> None:
    if orientation not in ("portrait", "landscape"):
        raise ValueError(f"Unknown orientation '{orientation}'")
    for section in document.sections:
        landscape = section.page_width > section.page_height
        if (orientation == "landscape") != landscape:
            section.page_width, section.page_height = (
                section.page_height,
                section.page_width,
            )
        section.orientation = (
            WD_ORIENT.LANDSCAPE if orientation == "landscape" else WD_ORIENT.PORTRAIT
        )


def _text_width(document):
    section = document.sections[-1]
    return section.page_width - section.left_margin - section.right_margin


def _add_table(document, df, caption: str = "") -> None:
    if caption:
        document.add_paragraph(caption).runs[0].italic = True
    header, body = flatten_table(df)
    table = document.add_table(rows=1, cols=len(header))
    if "Table Grid" in [s.name for s in document.styles]:
        table.style = "Table Grid"
    for cell, text in zip(table.rows[0].cells, header):
        cell.text = ""
        cell.paragraphs[0].add_run(text).bold = True
    for row in body:
        cells = table.add_row().cells
        for cell, text in zip(cells, row):
            cell.text = text
    for row in table.rows:
        for cell in row.cells:
            for paragraph in cell.paragraphs:
                for run in paragraph.runs:
                    run.font.size = Pt(8)


def write_docx(report: Report, fmt: DictConfig, fh: IO[bytes]) -> None:
    """
    Render the report as a Word document into an open binary file.

    Args:
        report: The report to render
        fmt: The ``format`` section of the configuration; ``page_template``
            names a reference document whose styles and page setup are reused
        fh: Destination opened for binary writing
    """
    if fmt.page_template:
        document = docx.Document(fmt.page_template)
        logger.debug(f"Using page template {fmt.page_template}")
    else:
        document = docx.Document()
    set_orientation(document, fmt.orientation)

    document.core_properties.title = report.title
    document.core_properties.author = report.author
    document.add_heading(report.title, level=0)
    meta = " | ".join(m for m in (report.author, report.date) if m)
    if meta:
        document.add_paragraph(meta)
    if fmt.toc:
        add_toc(document, fmt.toc_depth)

    width = _text_width(document)
    for el in report.elements:
        if el.kind == HEADING:
            document.add_heading(el.data, level=min(el.level, 9))
        elif el.kind == TEXT:
            document.add_paragraph(el.data)
        elif el.kind == PREFORMATTED:
            paragraph = document.add_paragraph()
            run = paragraph.add_run(el.data)
            run.font.name = "Courier New"
            run.font.size = Pt(7)
        elif el.kind == TABLE:
            _add_table(document, el.data, caption=el.caption)
        elif el.kind == FIGURE:
            png = io.BytesIO(figure_png(el.data, dpi=fmt.dpi))
            max_width = Inches(6.5 if fmt.orientation == "portrait" else 9.0)
            document.add_picture(png, width=min(width, max_width))
            if el.caption:
                document.add_paragraph(el.caption).runs[0].italic = True
        else:
            raise ValueError(f"Unknown report element '{el.kind}'")

    document.save(fh)
    logger.debug("Word report rendered")
