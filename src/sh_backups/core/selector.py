"""Locate the archive to ship on this run."""

from __future__ import annotations

import os
import re
import stat
from datetime import datetime
from pathlib import Path

from sh_backups.core.models import DEFAULT_ARCHIVE_PREFIX, ArchiveSelection
from sh_backups.logging import get_logger

log = get_logger(__name__)

ARCHIVE_SUFFIX = ".zip"
_DATE_FORMAT = "%d%m%Y"


def archive_pattern(prefix: str = DEFAULT_ARCHIVE_PREFIX) -> re.Pattern[str]:
    """Return the regex for ``<prefix>DDMMYYYY.zip`` names."""
    return re.compile(rf"^{re.escape(prefix)}(\d{{2}})(\d{{2}})(\d{{4}})\.zip$")


def _archive_date(match: re.Match[str]) -> datetime | None:
    """Return the date a matched name encodes, or None for impossible dates."""
    day, month, year = match.groups()
    try:
        return datetime.strptime(f"{day}{month}{year}", _DATE_FORMAT)
    except ValueError:
        return None


def select_latest(
        root_folder: Path | str,
        prefix: str = DEFAULT_ARCHIVE_PREFIX,
) -> ArchiveSelection | None:
    """Pick the archive to upload from ``root_folder``.

    The dated archive with the latest date wins; ties keep the first one
    seen. Without any valid dated archive the first other ``.zip`` found
    during the walk is used. Returns None when nothing qualifies.
    """
    pattern = archive_pattern(prefix)

    best: ArchiveSelection | None = None
    best_date: datetime | None = None
    fallback: ArchiveSelection | None = None

    # os.walk drops unreadable directories; unreadable files are skipped below.
    for dirpath, _dirnames, filenames in os.walk(root_folder):
        for name in filenames:
            if not name.endswith(ARCHIVE_SUFFIX):
                continue
            path = Path(dirpath) / name
            try:
                st = path.stat()
            except OSError as exc:
                log.debug("archive_scan_skip", path=str(path), error=str(exc))
                continue
            if not stat.S_ISREG(st.st_mode):
                continue

            match = pattern.match(name)
            if match:
                file_date = _archive_date(match)
                if file_date is None:
                    log.debug("archive_bad_date", path=str(path))
                    continue
                if best_date is None or file_date > best_date:
                    best = ArchiveSelection(path=path, size=st.st_size)
                    best_date = file_date
            elif best is None and fallback is None:
                fallback = ArchiveSelection(path=path, size=st.st_size)

    return best if best is not None else fallback
