"""Tests for src/rustdoc_mcp/convert.py — rustdoc HTML to markdown.

Covers main-content isolation, chrome stripping, code blocks, item-table
link extraction and the failure cases.
"""

import pytest

from rustdoc_mcp.convert import (
    RustdocItem,
    RustdocItemKind,
    convert_rustdoc_to_markdown,
    parse_item_href,
)
from rustdoc_mcp.errors import ConversionFailure

PAGE = """<html><head><script>alert("x")</script></head><body>
<nav class="sidebar">Sidebar junk</nav>
<rustdoc-toolbar>Settings</rustdoc-toolbar>
<section id="main-content">
<div class="main-heading"><h1>Struct <span>tokio::sync::Mutex</span></h1>
<span class="out-of-band"><a class="src" href="../../src/tokio/sync/mutex.rs.html">Source</a></span></div>
<div class="docblock"><p>An asynchronous <code>Mutex</code>-like type.</p>
<pre class="rust"><code>let m = Mutex::new(1);</code></pre></div>
<dl class="item-table">
<dt><a class="mod" href="futures/index.html">futures</a></dt>
<dt><a class="struct" href="struct.MutexGuard.html">MutexGuard</a></dt>
<dt><a class="struct" href="struct.MutexGuard.html">MutexGuard</a></dt>
<dt><a class="fn" href="fn.lock.html#examples">lock</a></dt>
<dt><a class="struct" href="https://doc.rust-lang.org/std/sync/struct.Arc.html">Arc</a></dt>
<dt><a class="trait" href="../other/trait.Foo.html">Foo</a></dt>
</dl>
</section>
</body></html>
"""


class TestConvert:
    def test_keeps_main_content(self):
        markdown, _items = convert_rustdoc_to_markdown(PAGE)
        assert "# Struct tokio::sync::Mutex" in markdown
        assert "An asynchronous `Mutex`-like type." in markdown

    def test_strips_chrome(self):
        markdown, _items = convert_rustdoc_to_markdown(PAGE)
        assert "Sidebar junk" not in markdown
        assert "Settings" not in markdown
        assert "Source" not in markdown
        assert "alert" not in markdown

    def test_code_blocks_fenced(self):
        markdown, _items = convert_rustdoc_to_markdown(PAGE)
        assert "```" in markdown
        assert "let m = Mutex::new(1);" in markdown

    def test_accepts_bytes(self):
        markdown, _items = convert_rustdoc_to_markdown(PAGE.encode("utf-8"))
        assert "An asynchronous" in markdown

    def test_no_runs_of_blank_lines(self):
        markdown, _items = convert_rustdoc_to_markdown(PAGE)
        assert "\n\n\n" not in markdown

    def test_falls_back_to_body(self):
        markdown, items = convert_rustdoc_to_markdown(
            "<html><body><p>Plain page</p></body></html>"
        )
        assert markdown == "Plain page"
        assert items == []

    def test_extracts_item_table_links(self):
        _markdown, items = convert_rustdoc_to_markdown(PAGE)
        assert items == [
            RustdocItem(RustdocItemKind.MODULE, (), "futures"),
            RustdocItem(RustdocItemKind.STRUCT, (), "MutexGuard"),
            RustdocItem(RustdocItemKind.FUNCTION, (), "lock"),
        ]

    def test_deterministic(self):
        assert convert_rustdoc_to_markdown(PAGE) == convert_rustdoc_to_markdown(PAGE)

    @pytest.mark.parametrize(
        "html", [b"", "<html><body>   </body></html>", "<script>only()</script>"]
    )
    def test_empty_page_fails(self, html):
        with pytest.raises(ConversionFailure):
            convert_rustdoc_to_markdown(html)


class TestParseItemHref:
    def test_module(self):
        assert parse_item_href("sync/index.html") == RustdocItem(
            RustdocItemKind.MODULE, (), "sync"
        )

    def test_nested_module(self):
        assert parse_item_href("sync/mpsc/index.html") == RustdocItem(
            RustdocItemKind.MODULE, ("sync",), "mpsc"
        )

    def test_item_in_subdirectory(self):
        assert parse_item_href("sync/struct.Mutex.html") == RustdocItem(
            RustdocItemKind.STRUCT, ("sync",), "Mutex"
        )

    def test_fragment_and_query_ignored(self):
        assert parse_item_href("macro.select.html?x=1#usage") == RustdocItem(
            RustdocItemKind.MACRO, (), "select"
        )

    @pytest.mark.parametrize(
        "href",
        [
            "index.html",
            "#method.new",
            "",
            "/tokio/struct.X.html",
            "../struct.X.html",
            "https://docs.rs/serde",
            "widget.Foo.html",
            "mod.Foo.html",
            "all.html",
        ],
    )
    def test_rejected(self, href):
        assert parse_item_href(href) is None


class TestRustdocItem:
    def test_display(self):
        item = RustdocItem(RustdocItemKind.STRUCT, ("sync",), "Mutex")
        assert item.display() == "sync::Mutex"

    def test_url_path_item(self):
        item = RustdocItem(RustdocItemKind.FUNCTION, ("task",), "spawn")
        assert item.url_path() == "task/fn.spawn.html"

    def test_url_path_module(self):
        item = RustdocItem(RustdocItemKind.MODULE, ("sync",), "mpsc")
        assert item.url_path() == "sync/mpsc/index.html"

    def test_rebased(self):
        item = RustdocItem(RustdocItemKind.STRUCT, (), "Sender")
        rebased = item.rebased(("sync", "mpsc"))
        assert rebased.display() == "sync::mpsc::Sender"
        assert rebased.url_path() == "sync/mpsc/struct.Sender.html"
