from __future__ import annotations

import time
from typing import Callable, Iterable, List, Optional, Union

from leadpar.core.models import BatchResult, ExcerptEntry, ExtractOptions
from leadpar.infra.logging import (
    get_unified_logger,
    log_batch_processing,
    log_error,
    log_task_end,
    log_task_start,
    mdc_put,
    mdc_remove,
)
from leadpar.scrape.http_client import HttpClient
from leadpar.scrape.paragraph import first_paragraph
from leadpar.services.reply import ReplySink, TruncateMode
from leadpar.text.render import Renderer

Fetcher = Callable[[str], Optional[str]]


def collect_batch(
    urls: Union[List[str], Iterable[str]],
    count: int,
    options: Optional[ExtractOptions] = None,
    *,
    fetch: Optional[Fetcher] = None,
    reply_sink: Optional[ReplySink] = None,
    truncate: TruncateMode = TruncateMode.TRUNCATE,
    render: Optional[Renderer] = None,
) -> BatchResult:
    """Fetch and extract the first paragraph of up to *count* URLs, in order.

    URLs are taken from the front of *urls*; a list is consumed in place so
    the caller keeps whatever was not attempted. Every URL taken costs one
    unit of *count*, whether or not it produced an excerpt. Successful
    excerpts are sent to *reply_sink* as ``[n] text`` where ``n`` counts
    successes only.
    """
    queue = urls if isinstance(urls, list) else list(urls)
    logger = get_unified_logger("services", "excerpts")
    client = HttpClient() if fetch is None else None
    fetcher: Fetcher = fetch if fetch is not None else client.get  # type: ignore[union-attr]

    entries: List[ExcerptEntry] = []
    shown = 0
    t0 = time.perf_counter()
    log_task_start("services", "excerpts", {"queued": len(queue), "count": count})
    try:
        while count > 0 and queue:
            url = queue.pop(0)
            count -= 1
            mdc_put("url", url)

            try:
                content = fetcher(url)
            except Exception as e:  # fetch collaborators may not honour the None contract
                log_error("services", "excerpts", e, context=f"fetch failed for {url}")
                content = None
            if not content:
                logger.info("unable to retrieve %s", url)
                entries.append(ExcerptEntry(url))
                continue

            par = first_paragraph(content, options, render=render)
            if not par:
                logger.info("no first paragraph found in %s", url)
                entries.append(ExcerptEntry(url))
                continue

            shown += 1
            entries.append(ExcerptEntry(url, par))
            if reply_sink is not None:
                try:
                    reply_sink.reply(f"[{shown}] {par}", truncate)
                except Exception as e:
                    log_error("services", "excerpts", e, context=f"reply failed for {url}")
    finally:
        mdc_remove("url")
        if client is not None:
            client.close()

    result = BatchResult(entries=entries, remaining=list(queue))
    log_batch_processing(
        "services",
        "excerpts",
        "collect",
        total_items=len(entries),
        success_count=result.success,
        failure_count=result.failed,
        duration=round(time.perf_counter() - t0, 3),
        status="success" if result.success else "empty",
        extra={"remaining": len(result.remaining)},
    )
    log_task_end("services", "excerpts", result.success > 0, {"attempted": len(entries)})
    return result


def collect_excerpts(
    urls: Union[List[str], Iterable[str]],
    count: int,
    options: Optional[ExtractOptions] = None,
    *,
    fetch: Optional[Fetcher] = None,
    reply_sink: Optional[ReplySink] = None,
    truncate: TruncateMode = TruncateMode.TRUNCATE,
    render: Optional[Renderer] = None,
) -> List[Optional[str]]:
    """Like :func:`collect_batch` but returns only the excerpts (``None`` for failures)."""
    return collect_batch(
        urls,
        count,
        options,
        fetch=fetch,
        reply_sink=reply_sink,
        truncate=truncate,
        render=render,
    ).excerpts


__all__ = ["Fetcher", "collect_batch", "collect_excerpts"]
