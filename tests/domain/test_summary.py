from __future__ import annotations

import logging

from feedimport.domain.batch import OperationSummary
from feedimport.domain.model import OperationKind


def test_import_summary_lines() -> None:
    summary = OperationSummary(
        kind=OperationKind.IMPORT, source_id="feed", created=1, updated=2, failed=3
    )

    assert summary.describe("item") == [
        (logging.INFO, "Created 1 item."),
        (logging.INFO, "Updated 2 items."),
        (logging.ERROR, "Failed importing 3 items."),
    ]


def test_import_without_changes() -> None:
    summary = OperationSummary(kind=OperationKind.IMPORT, source_id="feed", skipped=4)

    assert summary.describe("post") == [(logging.INFO, "There are no new posts.")]


def test_delete_summaries() -> None:
    cleared = OperationSummary(kind=OperationKind.CLEAR, source_id="feed", deleted=2)
    expired = OperationSummary(kind=OperationKind.EXPIRE, source_id="feed", deleted=1)
    empty = OperationSummary(kind=OperationKind.EXPIRE, source_id="feed")

    assert cleared.describe("item") == [(logging.INFO, "Deleted 2 items from feed.")]
    assert expired.describe("item") == [(logging.INFO, "Expired 1 item from feed.")]
    assert empty.describe("item") == [(logging.INFO, "There are no items to delete.")]
