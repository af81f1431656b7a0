"""Template substitution and ASCII reshaping."""
import pytest
from lxml import etree

from profile_card.errors import RenderError
from profile_card.models import AggregatedStats
from profile_card.render import (
    DEFAULT_ASCII,
    ascii_fragments,
    ascii_value,
    build_replacements,
    check_well_formed,
    escape_text,
    render,
    render_template,
)

STATS = AggregatedStats(
    uptime="20y 5m 9d",
    repo_count=12,
    star_count=340,
    commit_metric="57+ recent",
    top_languages=("Python", "C++", "Go"),
)


def test_repos_and_stars_scenario():
    assert render("Repos: {{REPOS}} Stars: {{STARS}}", STATS) == "Repos: 12 Stars: 340"


def test_every_occurrence_replaced_and_unknown_kept():
    template = "{{REPOS}}/{{REPOS}} {{FOO}} {{ UPTIME }} {{TOP_LANGS}} {{COMMITS}} {{UPTIME}}"
    out = render(template, STATS)
    assert out == "12/12 {{FOO}} {{ UPTIME }} Python, C++, Go 57+ recent 20y 5m 9d"


def test_text_outside_placeholders_untouched():
    template = "<svg a=\"&amp;\">\n  {{STARS}} { {STARS} } {{STARS}\n</svg>"
    assert render(template, STATS) == "<svg a=\"&amp;\">\n  340 { {STARS} } {{STARS}\n</svg>"


def test_render_is_idempotent():
    template = "{{UPTIME}} {{ASCII}} {{TOP_LANGS}}"
    assert render(template, STATS, "x < y") == render(template, STATS, "x < y")


def test_replacement_values_are_not_rescanned():
    out = render_template("{{UPTIME}} {{REPOS}}", {"UPTIME": "{{REPOS}}", "REPOS": "1"})
    assert out == "{{REPOS}} 1"


def test_missing_value_for_recognised_placeholder():
    with pytest.raises(RenderError, match="STARS"):
        render_template("{{REPOS}} {{STARS}}", {"REPOS": "1"})
    assert render_template("{{OTHER}}", {}) == "{{OTHER}}"


def test_no_language_sentinel():
    stats = AggregatedStats("0y 0m 1d", 0, 0, "--", ())
    assert render("{{TOP_LANGS}}", stats) == "N/A"


def test_escape_exactly_once():
    line = 'a < b & "c" > \'d\''
    fragment = ascii_fragments(line, 15, 20)
    assert fragment == '<tspan x="15" dy="0">a &lt; b &amp; &quot;c&quot; &gt; &apos;d&apos;</tspan>'
    assert "&amp;lt;" not in fragment
    assert escape_text("&amp;") == "&amp;amp;"


def test_ascii_lines_offset_vertically():
    fragments = ascii_fragments("\n one\n\n two\n\n", 10, 18).split("\n")
    assert fragments == [
        '<tspan x="10" dy="0"> one</tspan>',
        '<tspan x="10" dy="18"></tspan>',
        '<tspan x="10" dy="18"> two</tspan>',
    ]


def test_ascii_default_when_absent():
    expected = ascii_fragments(DEFAULT_ASCII, 15, 20)
    assert ascii_value(None) == expected
    assert ascii_value("  \n") == expected
    assert expected.count("<tspan") == 5


def test_ascii_inline_mode():
    assert ascii_value("<a>\n&b", mode="inline") == "&lt;a&gt;\n&amp;b"


def test_numeric_fields_not_escaped_free_text_is():
    stats = AggregatedStats("1y 0m 0d", 3, 4, "5+ recent", ("F#", "A&B"))
    values = build_replacements(stats, "<x>")
    assert values["REPOS"] == "3"
    assert values["STARS"] == "4"
    assert values["TOP_LANGS"] == "F#, A&amp;B"
    assert values["ASCII"] == '<tspan x="15" dy="0">&lt;x&gt;</tspan>'


def test_rendered_svg_parses():
    template = (
        '<svg xmlns="http://www.w3.org/2000/svg"><text id="a">{{ASCII}}</text>'
        '<text id="l">{{TOP_LANGS}}</text></svg>'
    )
    out = render(template, STATS, 'fish & "chips"\n<script>')
    check_well_formed(out)
    root = etree.fromstring(out.encode("utf-8"))
    tspans = root.findall(".//{http://www.w3.org/2000/svg}tspan")
    assert [t.text for t in tspans] == ['fish & "chips"', "<script>"]

    with pytest.raises(RenderError):
        check_well_formed("<svg><text>{{ASCII}}</svg>")
