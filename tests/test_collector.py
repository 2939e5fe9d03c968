from pagesnap.collector import (
    collect_css_references,
    collect_html_references,
    iter_css_urls,
)
from pagesnap.markup import parse_html
from pagesnap.models import CloneManifest, CssBlockKind, ReferenceSite

BASE = "https://example.com/"


def _collect(html):
    manifest = CloneManifest(base_url=BASE, soup=parse_html(html))
    return manifest, collect_html_references(manifest, BASE)


def test_sites_are_collected_in_fixed_order():
    html = """
    <html><head></head><body>
      <svg><image href="/svg.png"></image></svg>
      <div style="background-image: url('/bg.png')"></div>
      <img src="/photo.jpg">
      <link rel="stylesheet" href="/late.css">
    </body></html>
    """
    _, references = _collect(html)
    assert [r.site for r in references] == [
        ReferenceSite.STYLESHEET_LINK,
        ReferenceSite.IMG_ATTRIBUTE,
        ReferenceSite.INLINE_STYLE_BACKGROUND,
        ReferenceSite.SVG_HREF,
    ]
    assert [r.resolved_url for r in references] == [
        "https://example.com/late.css",
        "https://example.com/photo.jpg",
        "https://example.com/bg.png",
        "https://example.com/svg.png",
    ]


def test_stylesheet_links_keep_document_order():
    html = """
    <link rel="stylesheet" href="/one.css">
    <link rel="icon" href="/favicon.ico">
    <link rel="alternate stylesheet" href="/two.css">
    """
    _, references = _collect(html)
    assert [r.raw_value for r in references] == ["/one.css", "/two.css"]


def test_image_falls_back_to_lazy_attributes_in_priority_order():
    html = """
    <img src="" data-lazy-src="/second.png" data-src="/first.png">
    <img data-original="/third.png" data-lazy="/fourth.png">
    <img alt="no source at all">
    """
    _, references = _collect(html)
    assert [(r.attribute, r.raw_value) for r in references] == [
        ("data-src", "/first.png"),
        ("data-original", "/third.png"),
    ]


def test_embedded_data_images_are_not_collected():
    html = '<img src="data:image/png;base64,iVBORw0KGgo="><img src="/real.png">'
    _, references = _collect(html)
    assert [r.raw_value for r in references] == ["/real.png"]


def test_inline_style_only_collects_background_declarations():
    style = (
        "mask-image: url(/mask.svg); "
        "background: #fff url(\"/bg.png\") no-repeat; "
        "background-image: url(data:image/png;base64,AAAA;), url(/second.png)"
    )
    manifest, references = _collect(f'<div style=\'{style}\'></div>')
    assert [r.raw_value for r in references] == ["/bg.png", "/second.png"]
    block = manifest.css_blocks[0]
    assert block.kind is CssBlockKind.STYLE_ATTRIBUTE
    for reference in references:
        start, end = reference.span
        assert block.text[start:end] == reference.raw_value


def test_svg_image_falls_back_to_xlink_href():
    html = '<svg><image xlink:href="/legacy.png"></image><image href="/modern.png" xlink:href="/ignored.png"></image></svg>'
    _, references = _collect(html)
    assert [(r.attribute, r.raw_value) for r in references] == [
        ("xlink:href", "/legacy.png"),
        ("href", "/modern.png"),
    ]


def test_style_elements_are_collected_as_css_blocks():
    html = "<style>.hero { background: url(img/hero.jpg) }</style>"
    manifest, references = _collect(html)
    assert len(references) == 1
    assert references[0].site is ReferenceSite.CSS_URL_FUNCTION
    assert manifest.css_blocks[references[0].owner].kind is CssBlockKind.STYLE_ELEMENT


def test_iter_css_urls_reports_value_spans():
    css = """a { background: url( "x.png" ) } b { src: url('f.woff2') } c { x: url(y.gif) }"""
    found = list(iter_css_urls(css))
    assert [value for value, _, _ in found] == ["x.png", "f.woff2", "y.gif"]
    for value, start, end in found:
        assert css[start:end] == value


def test_css_references_resolve_against_stylesheet_url_and_skip_fragments():
    css = ".a{background:url(../img/a.png)} .b{fill:url(#grad)} .c{background:url(data:image/gif;base64,R0)}"
    references = collect_css_references(css, 3, "https://example.com/static/css/site.css")
    assert len(references) == 1
    assert references[0].resolved_url == "https://example.com/static/img/a.png"
    assert references[0].owner == 3


def test_malformed_reference_is_dropped_without_failing_collection():
    html = '<img src="http://[::1/broken.png"><img src="/ok.png">'
    _, references = _collect(html)
    assert [r.raw_value for r in references] == ["/ok.png"]
