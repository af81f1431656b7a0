"""
Derivation of the published card metrics.

Uptime uses a fixed calendar approximation: a year is 365 days and a month
is 30 days. The leftover day count is taken modulo 30 of the total, so the
label drifts from a true calendar difference by design of the card format.
"""

from __future__ import annotations
import datetime
from typing import Dict, Iterable, Optional, Sequence, Tuple

from dateutil import tz

from .models import ActivityEvent, AggregatedStats, RepositorySummary

TOP_LANGUAGES_LIMIT = 5
NO_LANGUAGE_DATA = "N/A"
COMMITS_FALLBACK = "--"


# ------------------ Uptime ------------------
def elapsed_days(epoch: datetime.datetime, now: Optional[datetime.datetime] = None) -> int:
    if now is None:
        now = datetime.datetime.now(tz.UTC)
    return max(0, (now - epoch).days)


def uptime_label(days: int) -> str:
    """Days are the total modulo 30, not the remainder after years."""
    years = days // 365
    months = (days % 365) // 30
    return f"{years}y {months}m {days % 30}d"


# ------------------ Repositories ------------------
def star_sum(repos: Iterable[RepositorySummary]) -> int:
    return sum(int(r.stars) for r in repos)


def rank_languages(repos: Iterable[RepositorySummary], limit: int = TOP_LANGUAGES_LIMIT) -> Tuple[str, ...]:
    """Most used primary languages, by repository count.

    Ties keep the order in which languages were first seen.
    """
    counts: Dict[str, int] = {}
    for repo in repos:
        if repo.language:
            counts[repo.language] = counts.get(repo.language, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return tuple(lang for lang, _ in ranked[:limit])


def languages_label(languages: Sequence[str]) -> str:
    return ", ".join(languages) if languages else NO_LANGUAGE_DATA


# ------------------ Commit metric ------------------
class CommitMetric:
    """How the COMMITS field is obtained for a run."""

    def label(self) -> str:
        raise NotImplementedError


class ExactCommitCount(CommitMetric):
    def __init__(self, total: int):
        self.total = total

    def label(self) -> str:
        return str(self.total)


class RecentPushEstimate(CommitMetric):
    """Lower bound from the latest page of activity events."""

    def __init__(self, events: Iterable[ActivityEvent]):
        self.events = list(events)

    def label(self) -> str:
        recent = sum(e.commit_count for e in self.events if e.is_push)
        return f"{recent}+ recent"


class FallbackCommitMetric(CommitMetric):
    def label(self) -> str:
        return COMMITS_FALLBACK


def select_commit_metric(
    exact_total: Optional[int] = None,
    events: Optional[Iterable[ActivityEvent]] = None,
) -> CommitMetric:
    if exact_total is not None:
        return ExactCommitCount(exact_total)
    if events is not None:
        return RecentPushEstimate(events)
    return FallbackCommitMetric()


def aggregate(
    repos: Sequence[RepositorySummary],
    commit_metric: CommitMetric,
    epoch: datetime.datetime,
    now: Optional[datetime.datetime] = None,
) -> AggregatedStats:
    return AggregatedStats(
        uptime=uptime_label(elapsed_days(epoch, now)),
        repo_count=len(repos),
        star_count=star_sum(repos),
        commit_metric=commit_metric.label(),
        top_languages=rank_languages(repos),
    )
