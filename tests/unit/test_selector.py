"""Tests for the archive selector."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from sh_backups.core.selector import archive_pattern, select_latest


class TestArchivePattern:
    def test_matches_dated_name(self) -> None:
        match = archive_pattern("prefix").match("prefix01022024.zip")
        assert match is not None
        assert match.groups() == ("01", "02", "2024")

    @pytest.mark.parametrize("name", [
        "prefix0102202.zip",
        "prefix010220245.zip",
        "xprefix01022024.zip",
        "prefix01022024.zip.bak",
        "Prefix01022024.zip",
    ])
    def test_rejects_other_names(self, name: str) -> None:
        assert archive_pattern("prefix").match(name) is None

    def test_prefix_is_literal(self) -> None:
        assert archive_pattern("a.b").match("a.b01012024.zip")
        assert archive_pattern("a.b").match("axb01012024.zip") is None


class TestSelectLatest:
    def test_latest_date_wins(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "prefix01012023.zip")
        newest = make_archive(backup_dir, "prefix15062024.zip")
        result = select_latest(backup_dir, prefix="prefix")
        assert result is not None
        assert result.path == newest

    def test_compares_by_date_not_name(self, backup_dir: Path, make_archive) -> None:
        # 31 Dec 2023 sorts after 01 Jan 2024 lexically but is older
        make_archive(backup_dir, "prefix31122023.zip")
        newest = make_archive(backup_dir, "prefix01012024.zip")
        result = select_latest(backup_dir, prefix="prefix")
        assert result is not None
        assert result.path == newest

    def test_invalid_date_falls_back(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "prefix32012023.zip")
        fallback = make_archive(backup_dir, "random.zip")
        result = select_latest(backup_dir, prefix="prefix")
        assert result is not None
        assert result.path == fallback

    def test_invalid_date_alone_is_not_found(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "prefix30022024.zip")
        assert select_latest(backup_dir, prefix="prefix") is None

    def test_dated_match_beats_fallback(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "a-first.zip")
        make_archive(backup_dir, "z-last.zip")
        dated = make_archive(backup_dir, "prefix01012020.zip")
        result = select_latest(backup_dir, prefix="prefix")
        assert result is not None
        assert result.path == dated

    def test_first_fallback_in_walk_order_wins(self, backup_dir: Path, make_archive) -> None:
        first = make_archive(backup_dir, "first.zip")
        make_archive(backup_dir, "second.zip")
        walk = [(str(backup_dir), [], ["first.zip", "second.zip"])]
        with patch("sh_backups.core.selector.os.walk", return_value=iter(walk)):
            result = select_latest(backup_dir, prefix="prefix")
        assert result is not None
        assert result.path == first

    def test_later_fallback_does_not_replace_earlier(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "first.zip")
        second = make_archive(backup_dir, "second.zip")
        walk = [(str(backup_dir), [], ["second.zip", "first.zip"])]
        with patch("sh_backups.core.selector.os.walk", return_value=iter(walk)):
            result = select_latest(backup_dir, prefix="prefix")
        assert result is not None
        assert result.path == second

    def test_ignores_non_zip_files(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "prefix01012099.rar")
        make_archive(backup_dir, "notes.txt")
        assert select_latest(backup_dir, prefix="prefix") is None

    def test_walks_subdirectories(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "prefix01012023.zip")
        nested = make_archive(backup_dir, "2024/june/prefix15062024.zip")
        result = select_latest(backup_dir, prefix="prefix")
        assert result is not None
        assert result.path == nested

    def test_ties_keep_first_seen(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "a/prefix01012024.zip")
        make_archive(backup_dir, "b/prefix01012024.zip")
        result = select_latest(backup_dir, prefix="prefix")
        first_seen = next(
            Path(dirpath) / "prefix01012024.zip"
            for dirpath, _, files in os.walk(backup_dir)
            if "prefix01012024.zip" in files
        )
        assert result is not None
        assert result.path == first_seen

    def test_reports_size(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "prefix01012024.zip", content=b"x" * 42)
        result = select_latest(backup_dir, prefix="prefix")
        assert result is not None
        assert result.size == 42
        assert not result.is_empty

    def test_zero_byte_match_is_still_found(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "prefix01012024.zip", content=b"")
        result = select_latest(backup_dir, prefix="prefix")
        assert result is not None
        assert result.is_empty

    def test_empty_directory(self, backup_dir: Path) -> None:
        assert select_latest(backup_dir, prefix="prefix") is None

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert select_latest(tmp_path / "does-not-exist", prefix="prefix") is None

    def test_default_prefix(self, backup_dir: Path, make_archive) -> None:
        make_archive(backup_dir, "Tallybackupason01012023.zip")
        newest = make_archive(backup_dir, "Tallybackupason02012023.zip")
        result = select_latest(backup_dir)
        assert result is not None
        assert result.path == newest

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_skips_broken_entries(self, backup_dir: Path, make_archive) -> None:
        (backup_dir / "prefix01012030.zip").symlink_to(backup_dir / "gone.zip")
        good = make_archive(backup_dir, "prefix01012024.zip")
        result = select_latest(backup_dir, prefix="prefix")
        assert result is not None
        assert result.path == good
