import re

import pytest

from pagesnap.formatter import format_css, format_html
from pagesnap.markup import parse_html

HTML = "<html><head><title>T</title></head><body><div><p>Hi <b>there</b></p></div></body></html>"


def _squash(text):
    return re.sub(r"\s+", "", text)


def test_html_is_indented_with_fixed_width():
    output = format_html(parse_html(HTML), indent=4)
    lines = output.splitlines()
    assert lines[0] == "<html>"
    assert "    <head>" in lines
    assert "        <title>" in lines


def test_html_formatting_is_deterministic():
    assert format_html(parse_html(HTML)) == format_html(parse_html(HTML))


def test_css_is_indented_one_declaration_per_line():
    css = ".a{color:red;background:url(a.png)}@media print{.b{display:none}}"
    assert format_css(css, indent=2) == (
        ".a {\n"
        "  color:red;\n"
        "  background:url(a.png)\n"
        "}\n"
        "\n"
        "@media print {\n"
        "  .b {\n"
        "    display:none\n"
        "  }\n"
        "}\n"
    )


def test_css_formatting_is_stable():
    css = ".a { color: red; } /* note */ .b > .c { margin: 0 auto }"
    first = format_css(css, indent=4)
    assert first == format_css(css, indent=4)
    assert format_css(first, indent=4) == first


@pytest.mark.parametrize(
    "css",
    [
        "@supports (display: grid) { .e { display: grid } }",
        "@layer base { .c { color: red } }",
        "@container card (min-width: 400px) { .g { padding: 1rem } }",
        ".d { color: blue; &:hover { color: green } }",
        ".f { color: rgb(0 0 0 / 50%); inset: calc(100% - 2px) }",
        ".h { background: url(data:image/png;base64,iVBORw0KGgo=) }",
        '.i::before { content: "a;{b}" }',
        ".\\31 0 { width: 10% }",
    ],
)
def test_css_formatting_changes_only_whitespace(css):
    formatted = format_css(css)
    assert _squash(formatted) == _squash(css)


def test_nested_rules_keep_their_selectors():
    formatted = format_css(".d { color: blue; &:hover { color: green } }")
    assert "  &:hover {\n    color: green\n  }" in formatted


def test_semicolons_inside_functions_do_not_split_declarations():
    formatted = format_css(".h { background: url(data:image/png;base64,AAAA) no-repeat }")
    assert "  background: url(data:image/png;base64,AAAA) no-repeat\n" in formatted


def test_css_comments_survive_formatting():
    assert "/* https://example.com/site.css */\n.a {" in format_css(
        "/* https://example.com/site.css */\n.a { color: red }"
    )


def test_empty_css_is_returned_unchanged():
    assert format_css("") == ""
    assert format_css("  \n") == "  \n"
