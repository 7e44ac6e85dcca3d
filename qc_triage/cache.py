"""File-backed key-value storage for configuration and flagged data."""
from datetime import date
from pathlib import Path
from typing import Generic, TypeVar

T = TypeVar('T')


class FileCache(Generic[T]):
    """JSON documents stored as <cache_dir>/<key>.json."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _read(path: Path, loader) -> T | None:
        if path.exists():
            return loader(path.read_text(encoding="utf-8"))
        return None

    @staticmethod
    def _write(path: Path, value: T, serializer) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(serializer(value), encoding="utf-8")

    def get(self, key: str, loader) -> T | None:
        """Load a stored item, or None if it was never saved."""
        return self._read(self.cache_dir / f"{key}.json", loader)

    def save(self, key: str, value: T, serializer) -> None:
        self._write(self.cache_dir / f"{key}.json", value, serializer)


class DateOrganizedCache(FileCache):
    """Items filed per day: YYYY-MM/DD/key.json"""

    def _dated_path(self, key: str, target_date: date) -> Path:
        return self.cache_dir / f"{target_date:%Y-%m}" / f"{target_date:%d}" / f"{key}.json"

    def get_dated(self, key: str, target_date: date, loader) -> T | None:
        return self._read(self._dated_path(key, target_date), loader)

    def save_dated(self, key: str, target_date: date, value: T, serializer) -> None:
        self._write(self._dated_path(key, target_date), value, serializer)

    def delete_dated(self, key: str, target_date: date) -> None:
        """Remove a dated item and any directories it leaves empty."""
        cache_file = self._dated_path(key, target_date)
        cache_file.unlink(missing_ok=True)
        for directory in (cache_file.parent, cache_file.parent.parent):
            if directory.exists() and not any(directory.iterdir()):
                directory.rmdir()

    def dates(self, key: str) -> list[date]:
        """All dates holding an item under ``key``, oldest first."""
        found = []
        for cache_file in self.cache_dir.glob(f"*/*/{key}.json"):
            day_dir = cache_file.parent
            try:
                found.append(date.fromisoformat(f"{day_dir.parent.name}-{day_dir.name}"))
            except ValueError:
                continue
        return sorted(found)
