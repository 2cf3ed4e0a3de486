"""Paginated PDF rendering of a report through matplotlib's PdfPages.

Pages are matplotlib figures of the configured paper size. Text and tables
flow down the page; a figure is rasterised and scaled to the text width.
Level-one headings start a new page. The title page, with the table of
contents, is written last but saved first, once the page of every heading
is known.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

import io
import textwrap
from typing import IO, List, Tuple

import matplotlib.image as mpimg
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
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

PAPER_SIZES = {"a4": (8.27, 11.69), "letter": (8.5, 11.0)}

MARGIN = 0.07
LINE = 0.016
ROW = 0.019
WRAP = 95


def page_size(paper: str, orientation: str) -> Tuple[float, float]:
    if paper not in PAPER_SIZES:
        raise ValueError(f"Unknown paper size '{paper}'. Choose one of {list(PAPER_SIZES)}")
    w, h = PAPER_SIZES[paper]
    return (h, w) if orientation == "landscape" else (w, h)


class _Pages:
    """Cursor over a growing list of page figures."""

    def __init__(self, size: Tuple[float, float]):
        self.size = size
        self.pages: List[plt.Figure] = []
        self.y = 0.0

    def new_page(self) -> plt.Figure:
        self.pages.append(plt.figure(figsize=self.size))
        self.y = 1 - MARGIN
        return self.pages[-1]

    @property
    def page(self) -> plt.Figure:
        return self.pages[-1] if self.pages else self.new_page()

    def room(self) -> float:
        return self.y - MARGIN

    def reserve(self, height: float) -> plt.Figure:
        if not self.pages or self.room() < height:
            self.new_page()
        return self.page

    def lines(self, lines: List[str], size: int = 9, family: str = "sans-serif", **kw):
        for line in lines:
            fig = self.reserve(LINE)
            fig.text(MARGIN, self.y, line, fontsize=size, family=family, va="top", **kw)
            self.y -= LINE
        self.y -= LINE / 2

    def table(self, header: List[str], body: List[List[str]], caption: str = ""):
        if caption:
            self.lines(textwrap.wrap(caption, WRAP), style="italic")
        start = 0
        while start < len(body) or start == 0:
            fig = self.reserve(3 * ROW)
            n = max(1, min(len(body) - start, int(self.room() / ROW) - 1))
            chunk = body[start : start + n]
            height = ROW * (len(chunk) + 1)
            ax = fig.add_axes([MARGIN, self.y - height, 1 - 2 * MARGIN, height])
            ax.set_axis_off()
            if chunk:
                tbl = ax.table(
                    cellText=chunk,
                    colLabels=header,
                    loc="upper center",
                    cellLoc="left",
                    colLoc="left",
                    edges="horizontal",
                    bbox=[0, 0, 1, 1],
                )
                tbl.auto_set_font_size(False)
                tbl.set_fontsize(7)
                for (r, _), cell in tbl.get_celld().items():
                    if r == 0:
                        cell.set_text_props(fontweight="bold")
            self.y -= height + LINE
            start += n
            if not chunk:
                break

    def image(self, png: bytes, caption: str = ""):
        img = mpimg.imread(io.BytesIO(png), format="png")
        h_px, w_px = img.shape[:2]
        width = 1 - 2 * MARGIN
        height = width * (h_px / w_px) * (self.size[0] / self.size[1])
        max_height = 1 - 2 * MARGIN - 2 * LINE
        if height > max_height:
            width *= max_height / height
            height = max_height
        fig = self.reserve(height + LINE)
        ax = fig.add_axes([(1 - width) / 2, self.y - height, width, height])
        ax.imshow(img)
        ax.set_axis_off()
        self.y -= height + LINE / 2
        if caption:
            self.lines(textwrap.wrap(caption, WRAP), style="italic")


def layout_body(
    report: Report, fmt: DictConfig, size: Tuple[float, float]
) -> Tuple[List[plt.Figure], List[Tuple[int, str, int]]]:
    """
    Lay the report elements out on body pages.

    Returns:
        The body pages and the table-of-contents entries as
        ``(level, heading, page)``, where ``page`` counts the title page and,
        when enabled, the contents page
    """
    body = _Pages(size)
    toc: List[Tuple[int, str, int]] = []
    n_front = 2 if fmt.toc else 1

    for el in report.elements:
        if el.kind == HEADING:
            if el.level == 1 and body.pages:
                body.new_page()
            fig = body.reserve(3 * LINE)
            if el.level <= fmt.toc_depth:
                toc.append((el.level, el.data, n_front + len(body.pages)))
            fig.text(
                MARGIN,
                body.y,
                el.data,
                fontsize=15 if el.level == 1 else 12,
                fontweight="bold",
                va="top",
            )
            body.y -= 2.2 * LINE
        elif el.kind == TEXT:
            body.lines(textwrap.wrap(el.data, WRAP))
        elif el.kind == PREFORMATTED:
            body.lines(el.data.splitlines(), size=7, family="monospace")
        elif el.kind == TABLE:
            header, rows = flatten_table(el.data)
            body.table(header, rows, caption=el.caption)
        elif el.kind == FIGURE:
            body.image(figure_png(el.data, dpi=fmt.dpi), caption=el.caption)
        else:
            raise ValueError(f"Unknown report element '{el.kind}'")
    return body.pages, toc


def write_pdf(report: Report, fmt: DictConfig, fh: IO[bytes]) -> None:
    """
    Render the report as a PDF into an open binary file.

    Args:
        report: The report to render
        fmt: The ``format`` section of the configuration
        fh: Destination opened for binary writing
    """
    size = page_size(fmt.paper, fmt.orientation)
    pages, toc = layout_body(report, fmt, size)

    front = [_title_page(report, size)]
    if fmt.toc:
        front.append(_toc_page(toc, size))

    with PdfPages(fh) as pdf:
        info = pdf.infodict()
        info["Title"] = report.title
        info["Author"] = report.author
        for page in front + pages:
            pdf.savefig(page)
            plt.close(page)
    logger.debug(f"PDF report rendered with {len(front) + len(pages)} pages")


def _title_page(report: Report, size) -> plt.Figure:
    fig = plt.figure(figsize=size)
    title = "\n".join(textwrap.wrap(report.title, 50))
    fig.text(0.5, 0.62, title, ha="center", va="center", fontsize=20, fontweight="bold")
    meta = "\n".join(m for m in (report.author, report.date) if m)
    fig.text(0.5, 0.5, meta, ha="center", va="center", fontsize=12)
    return fig


def _toc_page(toc: List[Tuple[int, str, int]], size) -> plt.Figure:
    fig = plt.figure(figsize=size)
    fig.text(MARGIN, 1 - MARGIN, "Contents", fontsize=15, fontweight="bold", va="top")
    y = 1 - MARGIN - 3 * LINE
    for level, text, page in toc:
        indent = MARGIN + 0.03 * (level - 1)
        fig.text(indent, y, text, fontsize=10, va="top")
        fig.text(1 - MARGIN, y, str(page), fontsize=10, va="top", ha="right")
        y -= 1.4 * LINE
    return fig
