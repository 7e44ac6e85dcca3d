"""Persistence for the editable issue configuration and flagged experiences."""
import logging
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from .cache import DateOrganizedCache, FileCache
from .issues import ISSUE_METADATA, UNCATEGORIZED
from .models import FlaggedGroup, IssueConfig, StoredIssue

logger = logging.getLogger(__name__)

ISSUE_CONFIG_KEY = "issue-config"
FLAGGED_KEY = "flagged"
RETENTION_DAYS = 30

_flagged_groups = TypeAdapter(list[FlaggedGroup])


def default_issue_config() -> IssueConfig:
    """Configuration matching the built-in taxonomy."""
    return IssueConfig(
        issues=[
            StoredIssue(name=name, dev_factory=meta.dev_factory, category=meta.category)
            for name, meta in ISSUE_METADATA.items()
            if name != UNCATEGORIZED
        ],
        last_updated=datetime.now(timezone.utc),
    )


class IssueConfigStore:
    """Reads and writes the issue configuration.

    The last document read or written is kept in memory and served when
    the backing file is missing or unreadable.
    """

    def __init__(self, cache_dir: Path):
        self.cache = FileCache(cache_dir)
        self._memory: IssueConfig | None = None

    def read(self) -> IssueConfig:
        try:
            stored = self.cache.get(ISSUE_CONFIG_KEY, IssueConfig.model_validate_json)
        except (OSError, ValidationError) as e:
            logger.warning("Issue config read failed, using fallback: %s", e)
            stored = None

        if stored is not None:
            self._memory = stored
            return stored
        if self._memory is not None:
            return self._memory
        return default_issue_config()

    def write(self, issues: list[StoredIssue]) -> IssueConfig:
        config = IssueConfig(issues=issues, last_updated=datetime.now(timezone.utc))
        self._memory = config
        try:
            self.cache.save(ISSUE_CONFIG_KEY, config, lambda obj: obj.model_dump_json(indent=2))
        except OSError as e:
            logger.error("Failed to persist issue config: %s", e)
        return config


def _as_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


class FlaggedStore:
    """Flagged experience groups keyed by calendar date, swept after a retention window."""

    def __init__(self, cache_dir: Path, retention_days: int = RETENTION_DAYS):
        self.cache = DateOrganizedCache(cache_dir)
        self.retention_days = retention_days

    def cleanup(self, today: date | None = None) -> list[date]:
        """Delete dates older than the retention window; return what was removed."""
        cutoff = (today or date.today()) - timedelta(days=self.retention_days)
        removed = []
        for stored_date in self.cache.dates(FLAGGED_KEY):
            if stored_date >= cutoff:
                continue
            try:
                self.cache.delete_dated(FLAGGED_KEY, stored_date)
            except OSError as e:
                logger.warning("Failed to clean up flagged data for %s: %s", stored_date, e)
                continue
            removed.append(stored_date)
            logger.info("Cleaned up flagged data for %s", stored_date.isoformat())
        return removed

    def get(self, target_date: date | str, today: date | None = None) -> list[FlaggedGroup]:
        """Groups stored for a date; [] when nothing usable is stored."""
        self.cleanup(today)
        target = _as_date(target_date)
        try:
            groups = self.cache.get_dated(FLAGGED_KEY, target, _flagged_groups.validate_json)
        except (OSError, ValidationError) as e:
            logger.warning("Flagged data for %s is unreadable: %s", target.isoformat(), e)
            return []
        return groups or []

    def save(
        self, target_date: date | str, groups: list[FlaggedGroup], today: date | None = None
    ) -> bool:
        """Store groups for a date; an empty list clears the date.

        Returns False when the data could not be written.
        """
        self.cleanup(today)
        target = _as_date(target_date)
        try:
            if not groups:
                self.cache.delete_dated(FLAGGED_KEY, target)
            else:
                self.cache.save_dated(
                    FLAGGED_KEY,
                    target,
                    groups,
                    lambda obj: _flagged_groups.dump_json(obj, indent=2).decode("utf-8"),
                )
        except OSError as e:
            logger.error("Failed to save flagged data for %s: %s", target.isoformat(), e)
            return False
        return True

    def dates(self) -> list[str]:
        """Stored dates as YYYY-MM-DD, newest first."""
        return [d.isoformat() for d in reversed(self.cache.dates(FLAGGED_KEY))]
