from __future__ import annotations

from leadpar.core.models import ExtractOptions
from leadpar.services import excerpts as ex
from leadpar.services.excerpts import collect_batch, collect_excerpts
from leadpar.services.reply import ListReplySink, TruncateMode

PAGE_A = "<html><h1>A</h1><p>alpha page lead paragraph with more than enough words in it</p></html>"
PAGE_C = "<html><p>charlie page lead paragraph with more than enough words in it too</p></html>"
PAGE_D = "<html><p>delta page lead paragraph with more than enough words in it as well</p></html>"
EMPTY_PAGE = "<html><body></body></html>"


def _fetcher(pages):
    calls = []

    def fetch(url):
        calls.append(url)
        return pages.get(url)

    fetch.calls = calls
    return fetch


def test_budget_counts_every_dequeued_url():
    urls = ["http://a", "http://b", "http://c"]
    fetch = _fetcher({"http://a": PAGE_A, "http://b": None, "http://c": PAGE_C})
    out = collect_excerpts(urls, 2, fetch=fetch)
    assert out == ["alpha page lead paragraph with more than enough words in it", None]
    assert fetch.calls == ["http://a", "http://b"]
    assert urls == ["http://c"]


def test_reply_index_counts_successes_only():
    urls = ["http://a", "http://b", "http://c", "http://d"]
    fetch = _fetcher(
        {"http://a": PAGE_A, "http://b": EMPTY_PAGE, "http://c": PAGE_C, "http://d": PAGE_D}
    )
    sink = ListReplySink()
    out = collect_excerpts(urls, 3, fetch=fetch, reply_sink=sink)
    assert out[1] is None
    assert sink.lines == [
        "[1] alpha page lead paragraph with more than enough words in it",
        "[2] charlie page lead paragraph with more than enough words in it too",
    ]
    assert urls == ["http://d"]


def test_truncate_mode_is_passed_to_sink():
    seen = []

    class Sink:
        def reply(self, text, truncate):
            seen.append((text, truncate))

    collect_excerpts(
        ["http://a"],
        1,
        fetch=_fetcher({"http://a": PAGE_A}),
        reply_sink=Sink(),
        truncate=TruncateMode.SPLIT,
    )
    assert seen and seen[0][1] is TruncateMode.SPLIT
    assert seen[0][0].startswith("[1] alpha")


def test_fetch_errors_become_none_and_loop_continues():
    def fetch(url):
        if url == "http://boom":
            raise ConnectionError("refused")
        return PAGE_C

    out = collect_excerpts(["http://boom", "http://c"], 5, fetch=fetch)
    assert out[0] is None
    assert out[1].startswith("charlie")


def test_empty_fetch_result_is_none():
    out = collect_excerpts(["http://a"], 1, fetch=lambda url: "")
    assert out == [None]


def test_zero_budget_attempts_nothing():
    urls = ["http://a"]
    fetch = _fetcher({"http://a": PAGE_A})
    assert collect_excerpts(urls, 0, fetch=fetch) == []
    assert fetch.calls == []
    assert urls == ["http://a"]


def test_sink_failure_does_not_stop_batch():
    class BrokenSink:
        def reply(self, text, truncate):
            raise RuntimeError("chat down")

    out = collect_excerpts(
        ("http://a", "http://c"),
        2,
        fetch=_fetcher({"http://a": PAGE_A, "http://c": PAGE_C}),
        reply_sink=BrokenSink(),
    )
    assert all(out)


def test_options_and_renderer_are_forwarded():
    page = "<p>Posted by admin: the quick brown fox jumps over the lazy dog today</p>"
    out = collect_excerpts(
        ["http://x"],
        1,
        ExtractOptions(strip="Posted by admin:"),
        fetch=lambda url: page,
        render=lambda fragment: "RENDERED " + fragment.upper(),
    )
    assert out == ["RENDERED <P>POSTED BY ADMIN: THE QUICK BROWN FOX JUMPS OVER THE LAZY DOG TODAY</P>"]


def test_collect_batch_result():
    urls = ["http://a", "http://b", "http://c"]
    res = collect_batch(urls, 2, fetch=_fetcher({"http://a": PAGE_A}))
    assert res.success == 1 and res.failed == 1
    assert res.remaining == ["http://c"]
    d = res.to_dict()
    assert d["total"] == 2
    assert d["entries"][1] == {"url": "http://b", "excerpt": None}


def test_default_fetcher_is_http_client(monkeypatch):
    created = []

    class FakeClient:
        def __init__(self):
            self.closed = False
            created.append(self)

        def get(self, url):
            return PAGE_A

        def close(self):
            self.closed = True

    monkeypatch.setattr(ex, "HttpClient", FakeClient, raising=True)
    out = collect_excerpts(["http://a"], 1)
    assert out[0].startswith("alpha")
    assert len(created) == 1 and created[0].closed
