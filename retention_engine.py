"""
retention_engine.py — Whole-directory retention decisions.

A directory is archived only when every file in it is older than the
cutoff. One recent file keeps the entire directory in place.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List

from models import DirectoryGroup, RetentionDecision

logger = logging.getLogger(__name__)

ARCHIVE = "archive"
SKIP = "skip"


def compute_cutoff(retention_days: int, now: datetime) -> datetime:
    """Files modified at or after the returned instant are still 'recent'."""
    return now - timedelta(days=retention_days)


def evaluate(group: DirectoryGroup, cutoff: datetime) -> RetentionDecision:
    """Return the verdict for one directory group."""
    if not group.files:
        raise ValueError(f"Directory group has no files: {group.directory}")

    newest = max(f.last_modified for f in group.files)
    verdict = SKIP if newest >= cutoff else ARCHIVE
    return RetentionDecision(
        directory=group.directory, verdict=verdict, newest_modified=newest
    )


def evaluate_all(groups: List[DirectoryGroup], cutoff: datetime) -> List[RetentionDecision]:
    """Evaluate every non-empty group against the same *cutoff*."""
    decisions: List[RetentionDecision] = []
    for group in groups:
        if not group.files:
            continue
        decision = evaluate(group, cutoff)
        if decision.verdict == SKIP:
            logger.debug(
                "Skipping '%s' — newest file modified %s.",
                group.directory, decision.newest_modified,
            )
        decisions.append(decision)
    return decisions
