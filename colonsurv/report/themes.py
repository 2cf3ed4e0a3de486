"""Visual themes of the rendered reports."""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

import matplotlib
import seaborn as sns

from colonsurv.utils import logging

logger = logging.get_default_logger()

# palette per theme: primary, primary_dark, text, background
THEMES = {
    "default": {
        "primary": "#1f77b4",
        "primary_dark": "#16507f",
        "text": "#222222",
        "background": "#ffffff",
        "font": "Helvetica, Arial, sans-serif",
    },
    "flatly": {
        "primary": "#18bc9c",
        "primary_dark": "#2c3e50",
        "text": "#2c3e50",
        "background": "#f4f6f8",
        "font": "-apple-system, 'Segoe UI', Roboto, sans-serif",
    },
    "journal": {
        "primary": "#eb6864",
        "primary_dark": "#777777",
        "text": "#222222",
        "background": "#ffffff",
        "font": "Georgia, 'Times New Roman', serif",
    },
}


def get_theme(name: str) -> dict:
    if name not in THEMES:
        raise ValueError(f"Unknown theme '{name}'. Choose one of {list(THEMES)}")
    return THEMES[name]


def apply_plot_style(style: str = "whitegrid", dpi: int = 150) -> None:
    """Configure matplotlib for headless rendering with a seaborn style."""
    matplotlib.use("Agg")
    sns.set_theme(style=style, context="paper")
    matplotlib.rcParams["figure.dpi"] = dpi
    matplotlib.rcParams["savefig.dpi"] = dpi
    logger.debug(f"Plot style '{style}' at {dpi} dpi")


def css(name: str) -> str:
    """Stylesheet of an HTML theme."""
    c = get_theme(name)
    return f"""<style>
        body {{
            font-family: {c['font']};
            margin: 20px auto;
            max-width: 1100px;
            background-color: {c['background']};
            color: {c['text']};
            line-height: 1.5;
        }}
        h1 {{
            color: {c['primary_dark']};
            border-bottom: 3px solid {c['primary']};
            padding-bottom: 10px;
        }}
        h2 {{
            color: {c['primary_dark']};
            border-left: 5px solid {c['primary']};
            padding-left: 10px;
            margin-top: 30px;
        }}
        h3 {{ color: {c['primary_dark']}; }}
        table {{
            border-collapse: collapse;
            margin: 10px 0;
            background-color: white;
            font-size: 0.9em;
        }}
        th, td {{
            border-bottom: 1px solid #ddd;
            padding: 4px 10px;
            text-align: right;
        }}
        th {{ border-bottom: 2px solid {c['primary_dark']}; }}
        td:first-child, th:first-child {{ text-align: left; }}
        pre {{
            background-color: #f4f4f4;
            padding: 10px;
            border-left: 4px solid {c['primary']};
            overflow-x: auto;
        }}
        figure {{ margin: 10px 0; }}
        figcaption, .caption {{ font-style: italic; color: #555; }}
        img {{ max-width: 100%; }}
        nav.toc a {{ color: {c['primary_dark']}; text-decoration: none; }}
        nav.toc ul {{ list-style: none; padding-left: 1em; }}
        nav.toc.float {{
            position: fixed;
            top: 20px;
            left: 10px;
            width: 220px;
            font-size: 0.85em;
        }}
        body.with-float-toc {{ margin-left: 250px; }}
        .meta {{ color: #666; }}
    </style>"""
