"""Persisted record of installed applications (installed-apps.json)."""

import dataclasses
import logging
import shutil
from pathlib import Path

import orjson

from launchkit.config.paths import Paths
from launchkit.config.schemas import SchemaValidationError, validate_ledger
from launchkit.config.storage import read_json, write_json_atomic
from launchkit.domain.models import InstalledAppRecord
from launchkit.utils.datetime_utils import get_current_datetime_local_iso

logger = logging.getLogger(__name__)

CORRUPTED_SUFFIX = ".corrupted"


class InstallationLedger:
    """Installed-app records keyed by app id.

    The file is read fully on every query and rewritten fully on every
    change, so the ledger never disagrees with what is on disk. It is the
    only source of truth for whether an app is installed.
    """

    def __init__(self, ledger_file: Path | None = None) -> None:
        """Initialize the ledger.

        Args:
            ledger_file: Ledger path (defaults to Paths.ledger_file())

        """
        self.ledger_file = ledger_file or Paths.ledger_file()

    def _load(self) -> list[InstalledAppRecord]:
        if not self.ledger_file.exists():
            return []

        try:
            data = read_json(self.ledger_file)
            validate_ledger(data)
        except (orjson.JSONDecodeError, OSError, SchemaValidationError) as e:
            logger.warning("Corrupted ledger %s: %s", self.ledger_file, e)
            corrupted = self.ledger_file.with_suffix(CORRUPTED_SUFFIX)
            if self.ledger_file.exists():
                shutil.copy2(self.ledger_file, corrupted)
                logger.info("Backed up corrupted ledger to %s", corrupted)
            return []

        return [InstalledAppRecord.from_dict(item) for item in data]

    def _save(self, records: list[InstalledAppRecord]) -> None:
        write_json_atomic(
            self.ledger_file, [record.to_dict() for record in records]
        )

    def all(self) -> list[InstalledAppRecord]:
        """Return every record in insertion order."""
        return self._load()

    def get(self, app_id: str) -> InstalledAppRecord | None:
        """Return the record for ``app_id`` or None."""
        for record in self._load():
            if record.id == app_id:
                return record
        return None

    def is_installed(self, app_id: str) -> bool:
        """Whether a record exists for ``app_id``."""
        return self.get(app_id) is not None

    def upsert(self, record: InstalledAppRecord) -> InstalledAppRecord:
        """Insert a record or refresh an existing one.

        An existing record keeps its original ``installed_at``; ``name``,
        ``version``, ``path`` and ``install_root`` are replaced and
        ``updated_at`` is set to now.

        Returns:
            The record as stored

        Raises:
            OSError: If the ledger cannot be written

        """
        records = self._load()
        for index, existing in enumerate(records):
            if existing.id != record.id:
                continue
            stored = dataclasses.replace(
                record,
                installed_at=existing.installed_at,
                updated_at=get_current_datetime_local_iso(),
            )
            records[index] = stored
            self._save(records)
            logger.debug("Updated ledger record for %s", record.id)
            return stored

        records.append(record)
        self._save(records)
        logger.debug("Added ledger record for %s", record.id)
        return record

    def remove(self, app_id: str) -> bool:
        """Delete the record for ``app_id``.

        Returns:
            True if a record was removed, False if none existed

        Raises:
            OSError: If the ledger cannot be written

        """
        records = self._load()
        remaining = [record for record in records if record.id != app_id]
        if len(remaining) == len(records):
            return False
        self._save(remaining)
        logger.debug("Removed ledger record for %s", app_id)
        return True
