"""Self-contained HTML rendering of a report."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

import base64
import html as _html
from typing import IO

from omegaconf import DictConfig

from colonsurv.report import themes
from colonsurv.report.elements import (
    FIGURE,
    HEADING,
    PREFORMATTED,
    TABLE,
    TEXT,
    Report,
    anchor,
    figure_png,
)
from colonsurv.utils import logging

logger = logging.get_default_logger()


def toc_html(report: Report, depth: int, position: str) -> str:
    """Nested list of links to the headings down to ``depth``."""
    headings = report.headings(depth)
    if not headings:
        return ""
    css_class = "toc float" if position == "float" else "toc"
    parts = [f"<nav class='{css_class}'><strong>Contents</strong>"]
    current = 0
    for level, text, ref in headings:
        while current < level:
            parts.append("<ul>")
            current += 1
        while current > level:
            parts.append("</ul>")
            current -= 1
        parts.append(f"<li><a href='#{ref}'>{_html.escape(text)}</a></li>")
    parts.extend(["</ul>"] * current)
    parts.append("</nav>")
    return "".join(parts)


def render_html(report: Report, fmt: DictConfig) -> str:
    """
    Assemble the report as one HTML string with embedded PNG figures.

    Args:
        report: The report to render
        fmt: The ``format`` section of the configuration

    Returns:
        str: The HTML document
    """
    float_toc = fmt.toc and fmt.toc_position == "float"
    body_class = " class='with-float-toc'" if float_toc else ""
    doc = [
        "<!DOCTYPE html><html><head><meta charset='utf-8'>",
        f"<title>{_html.escape(report.title)}</title>",
        themes.css(fmt.theme),
        f"</head><body{body_class}>",
        f"<h1>{_html.escape(report.title)}</h1>",
    ]
    meta = " | ".join(m for m in (report.author, report.date) if m)
    if meta:
        doc.append(f"<p class='meta'>{_html.escape(meta)}</p>")
    if fmt.toc:
        doc.append(toc_html(report, fmt.toc_depth, fmt.toc_position))

    for el in report.elements:
        if el.kind == HEADING:
            tag = f"h{min(el.level + 1, 6)}"
            doc.append(f"<{tag} id='{anchor(el.data)}'>{_html.escape(el.data)}</{tag}>")
        elif el.kind == TEXT:
            doc.append(f"<p>{_html.escape(el.data)}</p>")
        elif el.kind == PREFORMATTED:
            doc.append(f"<pre>{_html.escape(el.data)}</pre>")
        elif el.kind == TABLE:
            if el.caption:
                doc.append(f"<p class='caption'>{_html.escape(el.caption)}</p>")
            doc.append(el.data.to_html(border=0, na_rep="", sparsify=True))
        elif el.kind == FIGURE:
            b64 = base64.b64encode(figure_png(el.data, dpi=fmt.dpi)).decode("utf-8")
            caption = (
                f"<figcaption>{_html.escape(el.caption)}</figcaption>" if el.caption else ""
            )
            doc.append(
                f"<figure><img src='data:image/png;base64,{b64}'/>{caption}</figure>"
            )
        else:
            raise ValueError(f"Unknown report element '{el.kind}'")

    doc.append("</body></html>")
    return "\n".join(doc)


def write_html(report: Report, fmt: DictConfig, fh: IO[bytes]) -> None:
    fh.write(render_html(report, fmt).encode("utf-8"))
    logger.debug("HTML report rendered")
