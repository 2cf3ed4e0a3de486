"""Format-independent description of a report.

A report is a title block followed by an ordered list of elements. The
writers for html, pdf and docx walk the same list.
"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

import io
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Optional, Tuple

import matplotlib.pyplot as plt
import pandas as pd

HEADING = "heading"
TEXT = "text"
TABLE = "table"
FIGURE = "figure"
PREFORMATTED = "preformatted"


@dataclass
class Element:
    kind: str
    data: Any = None
    level: int = 1
    caption: str = ""


@dataclass
class Report:
    title: str
    author: str = ""
    date: str = field(default_factory=lambda: date.today().isoformat())
    elements: List[Element] = field(default_factory=list)

    def heading(self, text: str, level: int = 1) -> "Report":
        self.elements.append(Element(HEADING, text, level=level))
        return self

    def text(self, text: str) -> "Report":
        self.elements.append(Element(TEXT, text))
        return self

    def table(self, df: pd.DataFrame, caption: str = "") -> "Report":
        self.elements.append(Element(TABLE, df, caption=caption))
        return self

    def figure(self, fig: plt.Figure, caption: str = "") -> "Report":
        self.elements.append(Element(FIGURE, fig, caption=caption))
        return self

    def preformatted(self, text: str, caption: str = "") -> "Report":
        self.elements.append(Element(PREFORMATTED, text, caption=caption))
        return self

    def headings(self, depth: int = 3) -> List[Tuple[int, str, str]]:
        """(level, text, anchor) of every heading down to ``depth``."""
        return [
            (e.level, e.data, anchor(e.data))
            for e in self.elements
            if e.kind == HEADING and e.level <= depth
        ]

    def figures(self) -> List[plt.Figure]:
        return [e.data for e in self.elements if e.kind == FIGURE]

    def close(self) -> None:
        """Release the matplotlib figures held by the report."""
        for fig in self.figures():
            plt.close(fig)


def anchor(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "section"


def figure_png(fig: plt.Figure, dpi: Optional[int] = None) -> bytes:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=dpi, bbox_inches="tight")
    return buf.getvalue()


def flatten_table(df: pd.DataFrame) -> Tuple[List[str], List[List[str]]]:
    """
    Flatten a table with (possibly) hierarchical index and columns.

    Returns:
        Tuple: The header cells and the body rows as strings. Repeated
        leading index labels are blanked so grouped rows read as blocks.
    """
    flat = df.copy()
    if isinstance(flat.columns, pd.MultiIndex):
        flat.columns = [
            " ".join(str(p) for p in parts if str(p)) for parts in flat.columns
        ]
    if isinstance(flat.index, pd.RangeIndex) and flat.index.name is None:
        index_names = []
        flat = flat.reset_index(drop=True)
    else:
        index_names = [n if n else "" for n in flat.index.names]
        flat = flat.reset_index()

    header = [str(c) for c in flat.columns]
    for i, name in enumerate(index_names):
        if not name:
            header[i] = ""

    body = []
    previous = None
    for row in flat.itertuples(index=False):
        cells = ["" if pd.isna(v) else str(v) for v in row]
        if len(index_names) > 1 and previous is not None and cells[0] == previous:
            shown = [""] + cells[1:]
        else:
            shown = cells
        previous = cells[0]
        body.append(shown)
    return header, body
