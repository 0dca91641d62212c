"""Pytest configuration and fixtures."""

from pathlib import Path

import httpx
import pytest

from rustdoc_mcp.db import RustdocStore

ROOT_HTML = """<!DOCTYPE html>
<html><head><title>demo - Rust</title><script>var x = 1;</script></head>
<body>
<nav class="sidebar"><a href="all.html">All items</a></nav>
<main><section id="main-content" class="content">
<h1>Crate <span>demo</span><a class="anchor" href="#">§</a></h1>
<div class="docblock"><p>Demo crate for testing.</p></div>
<h2 id="modules">Modules</h2>
<dl class="item-table">
<dt><a class="mod" href="sync/index.html" title="mod demo::sync">sync</a></dt>
<dd>Synchronization primitives.</dd>
</dl>
<h2 id="structs">Structs</h2>
<dl class="item-table">
<dt><a class="struct" href="struct.Config.html" title="struct demo::Config">Config</a></dt>
<dd>Runtime configuration.</dd>
</dl>
<h2 id="functions">Functions</h2>
<dl class="item-table">
<dt><a class="fn" href="fn.run.html" title="fn demo::run">run</a></dt>
<dd>Run the demo.</dd>
</dl>
</section></main>
</body></html>
"""

SYNC_HTML = """<!DOCTYPE html>
<html><body>
<section id="main-content">
<h1>Module <span>demo::sync</span></h1>
<div class="docblock"><p>Synchronization primitives.</p></div>
<dl class="item-table">
<dt><a class="struct" href="struct.Mutex.html">Mutex</a></dt>
<dd>An async mutex.</dd>
</dl>
</section>
</body></html>
"""

MUTEX_HTML = """<!DOCTYPE html>
<html><body>
<section id="main-content">
<h1>Struct <span>demo::sync::Mutex</span></h1>
<div class="docblock"><p>An async mutex.</p>
<pre class="rust"><code>let m = Mutex::new(1);</code></pre></div>
</section>
</body></html>
"""

CONFIG_HTML = """<html><body><section id="main-content">
<h1>Struct <span>demo::Config</span></h1>
<div class="docblock"><p>Runtime configuration.</p></div>
</section></body></html>
"""

RUN_HTML = """<html><body><section id="main-content">
<h1>Function <span>demo::run</span></h1>
<div class="docblock"><p>Run the demo.</p></div>
</section></body></html>
"""

# Page tree of the "demo" crate, relative to target/doc/demo/
DEMO_PAGES = {
    "index.html": ROOT_HTML,
    "sync/index.html": SYNC_HTML,
    "sync/struct.Mutex.html": MUTEX_HTML,
    "struct.Config.html": CONFIG_HTML,
    "fn.run.html": RUN_HTML,
}


class FakeFs:
    """In-memory filesystem that records every path it is asked for."""

    def __init__(self, files: dict[Path, bytes] | None = None):
        self.files = dict(files or {})
        self.loaded: list[Path] = []

    async def load(self, path: Path) -> bytes:
        self.loaded.append(Path(path))
        try:
            return self.files[Path(path)]
        except KeyError:
            raise FileNotFoundError(path) from None

    async def is_file(self, path: Path) -> bool:
        return Path(path) in self.files


class FakeProvider:
    """Crawl provider serving pages from a dict keyed by relative path."""

    def __init__(self, pages: dict[str, str]):
        self.pages = pages
        self.fetched: list[str] = []

    async def fetch_page(self, crate_name, item=None):
        relative = item.url_path() if item else "index.html"
        self.fetched.append(relative)
        return self.pages.get(relative)


class RecordingTransport:
    """Builds an ``httpx.MockTransport`` and keeps the requests it served."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []
        self._handler = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def write_demo_docs(workspace_root: Path) -> Path:
    """Lay out the demo crate's pages under ``target/doc/demo``."""
    doc_dir = workspace_root / "target" / "doc" / "demo"
    for relative, html in DEMO_PAGES.items():
        page = doc_dir / relative
        page.parent.mkdir(parents=True, exist_ok=True)
        page.write_text(html, encoding="utf-8")
    (workspace_root / "Cargo.toml").write_text('[package]\nname = "demo"\n')
    return doc_dir


@pytest.fixture
def store(tmp_path):
    """Create a fresh RustdocStore for each test."""
    store = RustdocStore(tmp_path / "rustdoc.db")
    yield store
    store.close()


@pytest.fixture
def demo_provider():
    return FakeProvider(DEMO_PAGES)


@pytest.fixture
async def indexed_store(store, demo_provider):
    """Store with the demo crate already indexed."""
    await store.index("demo", demo_provider)
    return store


@pytest.fixture
def unreachable_http():
    """HTTP client that fails the test if any request is made."""

    def handler(request):
        raise AssertionError(f"unexpected request to {request.url}")

    transport = RecordingTransport(handler)
    return transport


@pytest.fixture
def fake_fs():
    return FakeFs()


@pytest.fixture
def recording_transport():
    """Factory: ``recording_transport(handler)`` -> RecordingTransport."""
    return RecordingTransport


@pytest.fixture
def make_provider():
    """Factory: ``make_provider(pages)`` -> FakeProvider."""
    return FakeProvider


@pytest.fixture
def demo_pages():
    return dict(DEMO_PAGES)


@pytest.fixture
def demo_workspace(tmp_path):
    """Cargo workspace with ``cargo doc`` output for the demo crate."""
    root = tmp_path / "workspace"
    write_demo_docs(root)
    return root
