"""
Placeholder substitution for the card template.

Only the fixed tokens in PLACEHOLDERS are replaced; anything else shaped
like {{NAME}} is left as is. Free text is XML-escaped before it is
substituted, numbers are not.
"""

from __future__ import annotations
import re
from typing import Dict, List, Mapping, Optional
from xml.sax.saxutils import escape

from lxml import etree

from .errors import RenderError
from .models import AggregatedStats
from .stats import languages_label

PLACEHOLDERS = ("UPTIME", "REPOS", "STARS", "COMMITS", "TOP_LANGS", "ASCII")
PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Z0-9_]+)\}\}")

XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}

DEFAULT_ASCII = r"""
  ____             __ _ _
 |  _ \ _ __ ___  / _(_) | ___
 | |_) | '__/ _ \| |_| | |/ _ \
 |  __/| | | (_) |  _| | |  __/
 |_|   |_|  \___/|_| |_|_|\___|
"""


def escape_text(text: str) -> str:
    """Escape & < > and both quote characters, once."""
    return escape(text, XML_ENTITIES)


def _ascii_lines(text: str) -> List[str]:
    lines = text.replace("\r\n", "\n").split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def ascii_fragments(text: str, x: int, line_height: int) -> str:
    """One <tspan> per line, each line dy below the previous one."""
    parts = []
    for i, line in enumerate(_ascii_lines(text)):
        dy = line_height if i else 0
        parts.append(f'<tspan x="{x}" dy="{dy}">{escape_text(line)}</tspan>')
    return "\n".join(parts)


def ascii_value(text: Optional[str], mode: str = "lines", x: int = 15, line_height: int = 20) -> str:
    if text is None or not text.strip():
        text = DEFAULT_ASCII
    if mode == "inline":
        return escape_text("\n".join(_ascii_lines(text)))
    return ascii_fragments(text, x, line_height)


def build_replacements(
    stats: AggregatedStats,
    ascii_text: Optional[str] = None,
    ascii_mode: str = "lines",
    ascii_x: int = 15,
    ascii_line_height: int = 20,
) -> Dict[str, str]:
    return {
        "UPTIME": escape_text(stats.uptime),
        "REPOS": str(stats.repo_count),
        "STARS": str(stats.star_count),
        "COMMITS": escape_text(stats.commit_metric),
        "TOP_LANGS": escape_text(languages_label(stats.top_languages)),
        "ASCII": ascii_value(ascii_text, ascii_mode, ascii_x, ascii_line_height),
    }


def render_template(template: str, replacements: Mapping[str, str]) -> str:
    """Replace every recognised placeholder in a single pass.

    Replacement text is never rescanned, so a value containing {{...}}
    stays literal.
    """
    missing = sorted(
        {m.group(1) for m in PLACEHOLDER_PATTERN.finditer(template)
         if m.group(1) in PLACEHOLDERS and m.group(1) not in replacements}
    )
    if missing:
        raise RenderError(f"No value for placeholder(s): {', '.join(missing)}")

    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key in PLACEHOLDERS:
            return replacements[key]
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(substitute, template)


def render(
    template: str,
    stats: AggregatedStats,
    ascii_text: Optional[str] = None,
    ascii_mode: str = "lines",
    ascii_x: int = 15,
    ascii_line_height: int = 20,
) -> str:
    return render_template(
        template,
        build_replacements(stats, ascii_text, ascii_mode, ascii_x, ascii_line_height),
    )


def check_well_formed(document: str):
    """Raise RenderError if an SVG document no longer parses."""
    try:
        etree.fromstring(document.encode("utf-8"))
    except etree.XMLSyntaxError as e:
        raise RenderError(f"Rendered SVG is not well-formed: {e}") from e
