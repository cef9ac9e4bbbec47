"""
Batch scheduler for ncm-tagfix.

Expands the input paths, drops files that still have their encrypted
original next to them, and repairs the rest on a fixed-size thread pool.

Workflow:
    1. Expand paths: a directory contributes its immediate children in
       sorted name order (non-recursive), a file contributes itself
    2. Skip every file whose "<stem>.ncm" sibling exists
    3. Submit one repair_file() task per remaining file
    4. Wait for every task, collecting a FileStatus per file
    5. Log the summary and return RepairStats

Per-file errors never leave repair_file(): a broken file is logged with its
path and counted as FAILED, and its siblings carry on. Only a missing input
path aborts the run, before any work is dispatched.

Usage:
    from ncm_tagfix.batch.scheduler import run

    stats = run([Path("/music")], concurrency=8)
    print(f"Repaired: {stats.repaired}/{stats.total}")
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Iterable

from ncm_tagfix.core.config import DEFAULT_SKIP_MARKER_EXTENSION, DEFAULT_THREADS
from ncm_tagfix.core.exceptions import NotFoundError, PathExpansionError, TagFixError
from ncm_tagfix.core.logger import format_summary_line, get_logger, log_file_failure
from ncm_tagfix.core.progress import RepairProgressBar
from ncm_tagfix.recovery.extractor import extract_from_container
from ncm_tagfix.tagging.artwork import CoverArtFetcher
from ncm_tagfix.tagging.backfill import TagBackfiller
from ncm_tagfix.tagging.containers import is_supported, open_container

logger = get_logger(__name__)


class FileStatus(Enum):
    """Final state of one file in a batch."""
    REPAIRED = auto()
    UNCHANGED = auto()
    SKIPPED_MARKER = auto()
    SKIPPED_UNSUPPORTED = auto()
    NO_RECOVERY_DATA = auto()
    FAILED = auto()


@dataclass
class RepairStats:
    """
    Statistics from a repair batch.

    Attributes:
        total: Number of files after path expansion.
        repaired: Files that gained at least one tag.
        unchanged: Files with recovery data but nothing missing.
        skipped: Files skipped by marker or unsupported suffix.
        no_recovery_data: Supported files without a recovery comment.
        failed: Files that raised during extraction or backfill.
    """

    total: int = 0
    repaired: int = 0
    unchanged: int = 0
    skipped: int = 0
    no_recovery_data: int = 0
    failed: int = 0

    def record(self, status: FileStatus) -> None:
        """Count one finished file."""
        if status is FileStatus.REPAIRED:
            self.repaired += 1
        elif status is FileStatus.UNCHANGED:
            self.unchanged += 1
        elif status is FileStatus.NO_RECOVERY_DATA:
            self.no_recovery_data += 1
        elif status is FileStatus.FAILED:
            self.failed += 1
        else:
            self.skipped += 1

    @property
    def success_rate(self) -> float:
        """Percentage of files that were not failures."""
        if self.total == 0:
            return 0.0
        return ((self.total - self.failed) / self.total) * 100


def expand_paths(paths: Iterable[Path | str]) -> list[Path]:
    """
    Expand input paths into the list of candidate files.

    Args:
        paths: Files and/or directories, in command-line order.

    Returns:
        Files in expansion order. Directory children are sorted by name,
        subdirectories are not descended into.

    Raises:
        PathExpansionError: If a path does not exist or a directory
                            cannot be listed.
    """
    files: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            try:
                children = sorted(path.iterdir())
            except OSError as e:
                raise PathExpansionError(
                    f"Cannot read directory: {path}",
                    details={"path": str(path), "original_error": str(e)}
                ) from e
            files.extend(child for child in children if child.is_file())
        elif path.exists():
            files.append(path)
        else:
            raise PathExpansionError(
                f"Path does not exist: {path}",
                details={"path": str(path)}
            )
    return files


def has_skip_marker(path: Path, marker_extension: str = DEFAULT_SKIP_MARKER_EXTENSION) -> bool:
    """Return True if "<stem><marker_extension>" exists next to the file."""
    return path.with_suffix(marker_extension).exists()


class BatchRepairer:
    """
    Repairs a batch of audio files on a thread pool.

    Attributes:
        threads: Worker pool size.
        skip_marker_extension: Sibling suffix that marks a file as skipped.
        show_progress: Render a rich progress bar while the pool drains.

    Thread Safety:
        repair_file() is safe to run concurrently for different files.
        Each call opens its own container, the backfiller is stateless
        and the fetcher keeps one HTTP session per thread.
    """

    def __init__(
        self,
        threads: int = DEFAULT_THREADS,
        fetcher: CoverArtFetcher | None = None,
        skip_marker_extension: str = DEFAULT_SKIP_MARKER_EXTENSION,
        artwork_enabled: bool = True,
        dry_run: bool = False,
        show_progress: bool = False
    ) -> None:
        """
        Initialize the repairer.

        Args:
            threads: Number of worker threads, at least 1.
            fetcher: Cover art fetcher. A default one is created if None.
            skip_marker_extension: Suffix of the marker sibling.
            artwork_enabled: Fetch and embed missing cover art.
            dry_run: Report changes without saving.
            show_progress: Show a progress bar.

        Raises:
            ValueError: If threads is less than 1.
        """
        if threads < 1:
            raise ValueError(f"threads must be at least 1, got {threads}")

        self.threads = threads
        self.skip_marker_extension = skip_marker_extension
        self.show_progress = show_progress
        self._backfiller = TagBackfiller(
            fetcher,
            artwork_enabled=artwork_enabled,
            dry_run=dry_run
        )

    def run(self, paths: Iterable[Path | str]) -> RepairStats:
        """
        Repair every file reachable from paths.

        Returns:
            RepairStats for the batch.

        Raises:
            PathExpansionError: If an input path is missing. Nothing has
                                been processed when this is raised.
        """
        files = expand_paths(paths)
        stats = RepairStats(total=len(files))

        if not files:
            logger.info("No files to process")
            return stats

        pending = []
        for path in files:
            if has_skip_marker(path, self.skip_marker_extension):
                logger.info(f"Skipping {path} as ncm file present")
                stats.record(FileStatus.SKIPPED_MARKER)
            else:
                pending.append(path)

        logger.info(f"Processing {len(pending)} files with {self.threads} threads")

        progress = RepairProgressBar(total=len(pending)) if self.show_progress and pending else None
        if progress is not None:
            progress.start()

        try:
            with ThreadPoolExecutor(max_workers=self.threads) as executor:
                future_to_path = {
                    executor.submit(self.repair_file, path): path
                    for path in pending
                }

                for future in as_completed(future_to_path):
                    status = future.result()
                    stats.record(status)
                    if progress is not None:
                        progress.update(
                            repaired=status is FileStatus.REPAIRED,
                            unchanged=status is FileStatus.UNCHANGED,
                            failed=status is FileStatus.FAILED,
                        )
        finally:
            if progress is not None:
                progress.stop()

        log_summary(stats)
        return stats

    def repair_file(self, path: Path) -> FileStatus:
        """
        Recover metadata from one file and backfill its missing tags.

        Never raises: every error is logged with the file path and turned
        into a FileStatus.
        """
        if not is_supported(path):
            logger.debug(f"Skipping {path}: unsupported file type")
            return FileStatus.SKIPPED_UNSUPPORTED

        try:
            container = open_container(path)
            meta = extract_from_container(container)
            result = self._backfiller.backfill_container(container, meta)
        except NotFoundError:
            logger.info(f"{path}: no recovery metadata")
            return FileStatus.NO_RECOVERY_DATA
        except TagFixError as e:
            log_file_failure(logger, path, str(e))
            return FileStatus.FAILED
        except Exception as e:
            log_file_failure(logger, path, f"Unexpected error: {e}", exc_info=True)
            return FileStatus.FAILED

        if not result.changed:
            logger.info(f"{path}: already complete")
            return FileStatus.UNCHANGED
        return FileStatus.REPAIRED


def log_summary(stats: RepairStats) -> None:
    """Log the end-of-run summary table."""
    logger.info("Repair complete")
    logger.info(format_summary_line("Total files", stats.total))
    logger.info(format_summary_line("Repaired", stats.repaired))
    logger.info(format_summary_line("Unchanged", stats.unchanged))
    logger.info(format_summary_line("Skipped", stats.skipped))
    logger.info(format_summary_line("No recovery data", stats.no_recovery_data))
    logger.info(format_summary_line("Failed", stats.failed))


def run(
    paths: Iterable[Path | str],
    concurrency: int = DEFAULT_THREADS,
    **options
) -> RepairStats:
    """
    Convenience function to repair a batch in one call.

    Args:
        paths: Files and/or directories.
        concurrency: Worker pool size, at least 1.
        **options: Forwarded to BatchRepairer (fetcher, artwork_enabled,
                   dry_run, skip_marker_extension, show_progress).

    Raises:
        ValueError: If concurrency is less than 1.
        PathExpansionError: If an input path is missing.
    """
    return BatchRepairer(threads=concurrency, **options).run(paths)
