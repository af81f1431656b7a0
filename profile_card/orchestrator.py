"""Sequencing of a single profile card run."""

from __future__ import annotations
import datetime
import warnings
from typing import List, Optional

from .blob_store import FileBlobStore
from .config import RunConfig, debug
from .errors import DegradedDataWarning, PreconditionError, RemoteError, RenderError
from .github_source import GitHubDataSource, RemoteDataSource
from .models import AggregatedStats, RepositorySummary
from .render import check_well_formed, render
from .stats import CommitMetric, aggregate, select_commit_metric


class ProfileCardRun:
    """One run: fetch, aggregate, render, write.

    The first fatal error propagates and nothing is written. Only the
    commit metric may degrade to a fallback.
    """

    def __init__(
        self,
        config: RunConfig,
        source: Optional[RemoteDataSource] = None,
        store: Optional[FileBlobStore] = None,
        now: Optional[datetime.datetime] = None,
    ):
        self.config = config
        self.source = source or GitHubDataSource(
            config.access_token,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff,
        )
        self.store = store or FileBlobStore()
        self.now = now

    def _degraded(self, msg: str):
        print(f"[WARN] {msg}")
        warnings.warn(msg, DegradedDataWarning, stacklevel=3)

    def collect_repositories(self) -> List[RepositorySummary]:
        print("Fetching repositories...")
        repos = list(self.source.iter_repositories(self.config.user_name))
        print(f"Repositories collected: {len(repos)}")
        return repos

    def commit_metric(self) -> CommitMetric:
        login = self.config.user_name
        if self.config.commit_source == "contributions":
            print("Fetching commit contributions...")
            try:
                total = self.source.fetch_commit_contributions(login)
            except RemoteError as e:
                self._degraded(f"Commit contributions unavailable ({e}); using recent events.")
                total = None
            if total is not None:
                return select_commit_metric(exact_total=total)

        print("Fetching events for commit estimation...")
        try:
            events = self.source.fetch_recent_events(login)
        except RemoteError as e:
            self._degraded(f"Recent events unavailable ({e}); commit count falls back to placeholder.")
            return select_commit_metric()
        return select_commit_metric(events=events)

    def collect(self) -> AggregatedStats:
        print("Fetching user data...")
        profile = self.source.fetch_profile(self.config.user_name)
        repos = self.collect_repositories()
        if profile.public_repo_count != len(repos):
            debug(f"profile reports {profile.public_repo_count} repos, collected {len(repos)}")
        metric = self.commit_metric()
        stats = aggregate(repos, metric, self.config.uptime_epoch, self.now)
        print(f"Uptime calculated: {stats.uptime}")
        print(f"Stars counted: {stats.star_count}")
        print(f"Top languages: {', '.join(stats.top_languages) or 'none'}")
        print(f"Commits: {stats.commit_metric}")
        return stats

    def load_template(self) -> str:
        path = self.config.template_path
        if not self.store.exists(path):
            raise PreconditionError(f"{path} not found!")
        try:
            template = self.store.read(path)
        except (OSError, UnicodeDecodeError) as e:
            raise RenderError(f"{path} could not be read: {e}") from e
        if template is None:
            raise RenderError(f"{path} disappeared after it was found")
        return template

    def load_ascii(self) -> Optional[str]:
        try:
            text = self.store.read(self.config.ascii_path)
        except (OSError, UnicodeDecodeError) as e:
            raise RenderError(f"{self.config.ascii_path} could not be read: {e}") from e
        if text is None:
            debug(f"{self.config.ascii_path} not found; using default ASCII art.")
        return text

    def check_preconditions(self):
        if not self.config.user_name:
            raise PreconditionError("No subject login configured.")
        if not self.config.access_token:
            raise PreconditionError("No access token configured.")

    def run(self) -> str:
        self.check_preconditions()
        stats = self.collect()
        template = self.load_template()
        ascii_text = self.load_ascii()

        print("Building SVG...")
        document = render(
            template,
            stats,
            ascii_text,
            ascii_mode=self.config.ascii_mode,
            ascii_x=self.config.ascii_x,
            ascii_line_height=self.config.ascii_line_height,
        )
        if self.config.output_path.lower().endswith(".svg"):
            check_well_formed(document)

        self.store.write(self.config.output_path, document)
        print(f"{self.config.output_path} generated successfully!")
        return document
