import zipfile

import matplotlib.pyplot as plt
import pandas as pd
import pytest
from omegaconf import OmegaConf

from colonsurv.report.elements import Report, anchor, flatten_table
from colonsurv.report.html import render_html, toc_html
from colonsurv.report.pdf import layout_body, page_size
from colonsurv.report.writer import WRITERS, write_report
from colonsurv.utils.config import FormatConfig


def make_format(name, **overrides):
    fmt = OmegaConf.structured(FormatConfig(name=name, dpi=50))
    for key, value in overrides.items():
        fmt[key] = value
    return fmt


@pytest.fixture
def report():
    fig, ax = plt.subplots(figsize=(3, 2))
    ax.plot([0, 1, 2], [1.0, 0.8, 0.5])
    table = pd.DataFrame(
        {"HR": ["1.00", "0.70"], "95% CI": ["", "0.58, 0.85"]},
        index=pd.MultiIndex.from_tuples(
            [("Treatment", "Obs"), ("Treatment", "Lev+5FU")],
            names=["Characteristic", "Level"],
        ),
    )
    rep = Report(title="Colon <trial>", author="Analyst")
    rep.heading("Data").text("Some text & more.")
    rep.heading("Details", level=2).table(table, caption="Hazard ratios")
    rep.heading("Figures").figure(fig, caption="A curve")
    rep.preformatted("chisq  df  p\n1.0    1   0.3")
    yield rep
    rep.close()


@pytest.mark.parametrize("name", sorted(WRITERS))
def test_writers_produce_documents(report, tmp_path, name):
    path = write_report(report, make_format(name), tmp_path, "colon")
    assert path == tmp_path / f"colon.{name}"
    assert path.stat().st_size > 0
    assert [p.name for p in tmp_path.iterdir()] == [path.name]


def test_pdf_signature(report, tmp_path):
    path = write_report(report, make_format("pdf", paper="letter"), tmp_path, "colon")
    assert path.read_bytes().startswith(b"%PDF")


@pytest.mark.parametrize("toc, first", [(True, 3), (False, 2)])
def test_pdf_toc_counts_front_pages(toc, first):
    rep = Report(title="Colon")
    rep.heading("Data").text("Some text.")
    rep.heading("Next").heading("Details", level=2).text("More text.")
    fmt = make_format("pdf", toc=toc)
    pages, entries = layout_body(rep, fmt, page_size("a4", "portrait"))
    assert len(pages) == 2
    assert entries == [
        (1, "Data", first),
        (1, "Next", first + 1),
        (2, "Details", first + 1),
    ]


def test_docx_is_word_package(report, tmp_path):
    fmt = make_format("docx", orientation="landscape")
    path = write_report(report, fmt, tmp_path, "colon")
    with zipfile.ZipFile(path) as zf:
        document = zf.read("word/document.xml").decode("utf-8")
    assert "Hazard ratios" in document
    assert "TOC" in document


def test_html_is_self_contained(report):
    html = render_html(report, make_format("html", theme="journal"))
    assert "data:image/png;base64," in html
    assert "Colon &lt;trial&gt;" in html
    assert "Some text &amp; more." in html
    assert "<nav class='toc float'>" in html
    assert "href='#details'" in html


def test_toc_depth_and_position(report):
    top = toc_html(report, depth=1, position="top")
    assert "class='toc'" in top
    assert "#data" in top
    assert "#details" not in top
    assert "<nav" not in render_html(report, make_format("html", toc=False))


def test_failed_render_leaves_no_file(report, tmp_path):
    with pytest.raises(ValueError):
        write_report(report, make_format("pdf", paper="a3"), tmp_path, "colon")
    assert list(tmp_path.iterdir()) == []


def test_unknown_format(report, tmp_path):
    with pytest.raises(ValueError, match="Unknown report format"):
        write_report(report, make_format("odt"), tmp_path, "colon")


def test_unknown_theme(report):
    with pytest.raises(ValueError, match="Unknown theme"):
        render_html(report, make_format("html", theme="solar"))


def test_page_size():
    assert page_size("a4", "portrait") == (8.27, 11.69)
    assert page_size("a4", "landscape") == (11.69, 8.27)


def test_anchor():
    assert anchor("Kaplan-Meier curves") == "kaplan-meier-curves"
    assert anchor("Cox regression (multivariable)") == "cox-regression-multivariable"
    assert anchor("!!!") == "section"


def test_flatten_table_blanks_repeated_groups():
    df = pd.DataFrame(
        {("Univariable", "HR"): ["—", "0.70"], ("", "N"): [929, 929]},
        index=pd.MultiIndex.from_tuples(
            [("Treatment", "Obs"), ("Treatment", "Lev+5FU")],
            names=["Characteristic", "Level"],
        ),
    )
    header, body = flatten_table(df)
    assert header == ["Characteristic", "Level", "Univariable HR", "N"]
    assert body == [
        ["Treatment", "Obs", "—", "929"],
        ["", "Lev+5FU", "0.70", "929"],
    ]


def test_flatten_table_without_index():
    header, body = flatten_table(pd.DataFrame({"a": [1, 2]}))
    assert header == ["a"]
    assert body == [["1"], ["2"]]
