"""Unit tests for DOM → content block conversion and flattening."""

from __future__ import annotations

from bs4 import BeautifulSoup


def _blocks(html: str, base_url: str = "https://example.com/post"):
    from webclip.extractors.blocks import build_blocks

    soup = BeautifulSoup(html, "lxml")
    return build_blocks(soup.body, base_url)


class TestHeadings:
    def test_levels_kept_up_to_three(self):
        blocks = _blocks("<h1>One</h1><h2>Two</h2><h3>Three</h3>")
        assert [(b.type, b.level, b.text) for b in blocks] == [
            ("heading", 1, "One"),
            ("heading", 2, "Two"),
            ("heading", 3, "Three"),
        ]

    def test_deep_headings_demoted_to_three(self):
        blocks = _blocks("<h4>Four</h4><h5>Five</h5><h6>Six</h6>")
        assert [b.level for b in blocks] == [3, 3, 3]

    def test_empty_heading_dropped(self):
        assert _blocks("<h2>   </h2><p>Body</p>")[0].type == "paragraph"


class TestParagraphs:
    def test_bold_and_italic_markers(self):
        blocks = _blocks("<p>A <strong>bold</strong> and <em>slanted</em> word.</p>")
        assert blocks[0].text == "A **bold** and *slanted* word."

    def test_b_and_i_tags(self):
        blocks = _blocks("<p><b>x</b> <i>y</i></p>")
        assert blocks[0].text == "**x** *y*"

    def test_spaces_inside_emphasis_kept_outside_markers(self):
        from webclip.formatter import split_emphasis

        blocks = _blocks("<p>This is<strong> important </strong>text</p>")
        assert blocks[0].text == "This is **important** text"
        assert split_emphasis(blocks[0].text)[0] == "This is important text"

    def test_literal_asterisks_escaped(self):
        from webclip.items import flatten_blocks

        blocks = _blocks("<p>Footnote 5 * 3 and 2*4 are <em>products</em>.</p>")
        assert blocks[0].text == "Footnote 5 \\* 3 and 2\\*4 are *products*."
        assert flatten_blocks(blocks) == "Footnote 5 * 3 and 2*4 are *products*."

    def test_br_becomes_newline(self):
        blocks = _blocks("<p>First line<br>Second line</p>")
        assert blocks[0].text == "First line\nSecond line"

    def test_inline_code_and_links_flow_into_text(self):
        blocks = _blocks('<p>Call <code>next()</code> or see <a href="/docs">the docs</a>.</p>')
        assert blocks[0].text == "Call next() or see the docs."

    def test_loose_text_in_container_becomes_paragraph(self):
        blocks = _blocks("<div>Loose text <span>with a span</span></div>")
        assert len(blocks) == 1
        assert blocks[0].type == "paragraph"
        assert blocks[0].text == "Loose text with a span"

    def test_empty_paragraph_dropped(self):
        assert _blocks("<p> </p><p>\n</p>") == []

    def test_comments_and_scripts_ignored(self):
        blocks = _blocks("<p>Visible<!-- hidden --></p><script>var x = 1;</script>")
        assert [b.text for b in blocks] == ["Visible"]


class TestLists:
    def test_unordered(self):
        blocks = _blocks("<ul><li>one</li><li>two</li></ul>")
        assert blocks[0].type == "list"
        assert blocks[0].ordered is False
        assert blocks[0].items == ["one", "two"]

    def test_ordered(self):
        blocks = _blocks("<ol><li>first</li><li>second</li></ol>")
        assert blocks[0].ordered is True

    def test_nested_items_follow_parent(self):
        blocks = _blocks(
            "<ul><li>parent<ul><li>child a</li><li>child b</li></ul></li><li>sibling</li></ul>"
        )
        assert blocks[0].items == ["parent", "child a", "child b", "sibling"]

    def test_wrapped_items_not_collected_twice(self):
        blocks = _blocks("<ul><div><li>a<ul><li>b</li></ul></li></div></ul>")
        assert blocks[0].items == ["a", "b"]

    def test_empty_items_skipped(self):
        blocks = _blocks("<ul><li> </li><li>kept</li></ul>")
        assert blocks[0].items == ["kept"]

    def test_list_without_items_dropped(self):
        assert _blocks("<ul></ul>") == []


class TestQuotesAndCode:
    def test_quote_paragraphs_joined_with_newline(self):
        blocks = _blocks("<blockquote><p>Line one.</p><p>Line two.</p></blockquote>")
        assert blocks[0].type == "quote"
        assert blocks[0].text == "Line one.\nLine two."

    def test_plain_quote(self):
        blocks = _blocks("<blockquote>Just words</blockquote>")
        assert blocks[0].text == "Just words"

    def test_code_language_from_class(self):
        blocks = _blocks('<pre><code class="language-python">print("hi")</code></pre>')
        assert blocks[0].type == "code"
        assert blocks[0].language == "python"
        assert blocks[0].code == 'print("hi")'

    def test_code_without_language(self):
        blocks = _blocks("<pre>plain\n  indented</pre>")
        assert blocks[0].language == "text"
        assert blocks[0].code == "plain\n  indented"

    def test_empty_pre_dropped(self):
        assert _blocks("<pre>   </pre>") == []


class TestImages:
    def test_relative_src_resolved(self):
        blocks = _blocks('<img src="/img/photo.jpg" alt="A photo">')
        assert blocks[0].type == "image"
        assert blocks[0].src == "https://example.com/img/photo.jpg"
        assert blocks[0].alt == "A photo"

    def test_logo_and_data_uri_skipped(self):
        blocks = _blocks(
            '<img src="/static/logo.png"><img src="data:image/png;base64,AAAA">'
            '<img src="/img/app-icon.svg">'
        )
        assert blocks == []

    def test_figure_image_then_caption(self):
        blocks = _blocks(
            '<figure><img src="/a.png" alt="Chart"><figcaption>Sales by month</figcaption></figure>'
        )
        assert [b.type for b in blocks] == ["image", "paragraph"]
        assert blocks[1].text == "Sales by month"

    def test_paragraph_with_image_emits_both(self):
        blocks = _blocks('<p>Caption text <img src="/b.png" alt="B"></p>')
        assert [b.type for b in blocks] == ["paragraph", "image"]

    def test_linked_image_outside_paragraph(self):
        blocks = _blocks(
            '<div><p>Intro.</p><a href="/full.jpg"><img src="https://x.com/photo.jpg"></a></div>'
        )
        assert [b.type for b in blocks] == ["paragraph", "image"]
        assert blocks[1].src == "https://x.com/photo.jpg"

    def test_text_before_wrapped_image_stays_first(self):
        blocks = _blocks('<div>Lead text <span><img src="/c.png" alt="C"></span> tail</div>')
        assert [(b.type, getattr(b, "text", None)) for b in blocks] == [
            ("paragraph", "Lead text"),
            ("image", None),
            ("paragraph", "tail"),
        ]

    def test_figure_without_image_is_container(self):
        blocks = _blocks("<figure><p>Only text</p></figure>")
        assert [b.type for b in blocks] == ["paragraph"]


class TestBuildBlocks:
    def test_none_root(self):
        from webclip.extractors.blocks import build_blocks

        assert build_blocks(None) == []

    def test_document_order_preserved_through_containers(self):
        blocks = _blocks(
            "<div><h1>Title</h1><section><p>First</p><div><p>Second</p></div></section></div>"
            "<p>Third</p>"
        )
        assert [getattr(b, "text", None) for b in blocks] == ["Title", "First", "Second", "Third"]

    def test_root_that_is_itself_a_block(self):
        from webclip.extractors.blocks import build_blocks

        soup = BeautifulSoup("<blockquote>Quoted</blockquote>", "lxml")
        blocks = build_blocks(soup.blockquote)
        assert len(blocks) == 1
        assert blocks[0].type == "quote"

    def test_no_empty_blocks(self, article_html, article_url):
        from webclip.extractors.blocks import build_blocks

        blocks = build_blocks(BeautifulSoup(article_html, "lxml").main, article_url)
        for b in blocks:
            if b.type in ("heading", "paragraph", "quote"):
                assert b.text.strip()
            elif b.type == "list":
                assert b.items and all(i.strip() for i in b.items)


class TestFlattenBlocks:
    def test_heading_paragraphs_and_list(self):
        from webclip.items import flatten_blocks

        blocks = _blocks(
            "<h1>Guide</h1><p>Intro paragraph.</p><p>Second paragraph.</p>"
            "<ul><li>alpha</li><li>beta</li></ul>"
        )
        assert flatten_blocks(blocks) == (
            "# Guide\n\nIntro paragraph.\n\nSecond paragraph.\n\n- alpha\n- beta"
        )

    def test_ordered_list_numbering(self):
        from webclip.items import ListBlock, flatten_blocks

        text = flatten_blocks([ListBlock(ordered=True, items=["a", "b", "c"])])
        assert text == "1. a\n2. b\n3. c"

    def test_quote_prefixes_every_line(self):
        from webclip.items import QuoteBlock, flatten_blocks

        assert flatten_blocks([QuoteBlock(text="one\ntwo")]) == "> one\n> two"

    def test_code_fence(self):
        from webclip.items import CodeBlock, flatten_blocks

        text = flatten_blocks([CodeBlock(language="js", code="let a = 1;")])
        assert text == "```js\nlet a = 1;\n```"

    def test_code_indentation_kept(self):
        from webclip.items import CodeBlock, ParagraphBlock, flatten_blocks

        text = flatten_blocks([
            ParagraphBlock(text="Example:"),
            CodeBlock(language="python", code="if x:\n    y()"),
        ])
        assert text == "Example:\n\n```python\nif x:\n    y()\n```"

    def test_image_placeholder(self):
        from webclip.items import ImageBlock, flatten_blocks

        text = flatten_blocks([ImageBlock(src="https://e.com/a.png", alt="")])
        assert text == "[画像: image] (https://e.com/a.png)"

    def test_empty(self):
        from webclip.items import flatten_blocks

        assert flatten_blocks([]) == ""
