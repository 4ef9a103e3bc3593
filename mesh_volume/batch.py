"""
Batch volume computation over a folder of STL files.

Provides:
- Folder scan for STL files
- Per-file result with timing
- Optional thread-pool dispatch (the engine holds no shared state)
- Summary and JSON report

Usage:
    from mesh_volume.batch import batch_compute

    results = batch_compute("./models", parallel=True)
    print(results.summary())
"""

import json
import logging
import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from mesh_volume.engine import VolumeResult, compute_mesh_volume
from mesh_volume.errors import MeshError
from mesh_volume.io.source import read_stl_bytes
from mesh_volume.logging_config import LogContext, setup_logging
from mesh_volume.project_config import ProjectConfig, load_config

logger = logging.getLogger(__name__)


@dataclass
class FileResult:
    """Volume computation outcome for one file."""
    input_path: Path
    result: Optional[VolumeResult] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.result is not None and self.result.success

    @property
    def status(self) -> str:
        return "OK" if self.success else "FAILED"

    @property
    def error_message(self) -> Optional[str]:
        """Why the file failed: read error or structured mesh error."""
        if self.error:
            return self.error
        if self.result is not None and self.result.error is not None:
            return self.result.error.message
        return None


@dataclass
class BatchResult:
    """Result of a batch run."""
    results: List[FileResult] = field(default_factory=list)
    total_duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful

    @property
    def success_rate(self) -> float:
        """Success rate as percentage."""
        if self.total == 0:
            return 0.0
        return 100.0 * self.successful / self.total

    @property
    def total_volume(self) -> float:
        """Sum of volumes over successful files."""
        return sum(r.result.volume for r in self.results if r.success)

    def summary(self, decimals: int = 3) -> str:
        """Generate human-readable summary."""
        lines = [
            "Batch Volume Summary",
            "=" * 40,
            f"Total files:     {self.total}",
            f"Successful:      {self.successful}",
            f"Failed:          {self.failed}",
            f"Success rate:    {self.success_rate:.1f}%",
            f"Total volume:    {self.total_volume:.{decimals}f}",
            f"Total time:      {self.total_duration_seconds:.1f}s",
            "",
        ]

        for r in sorted(self.results, key=lambda r: r.input_path):
            if r.success:
                lines.append(f"  {r.input_path.name}: {r.result.volume:.{decimals}f}")
            else:
                lines.append(f"  {r.input_path.name}: FAILED - {r.error_message}")

        return "\n".join(lines)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'total': self.total,
            'successful': self.successful,
            'failed': self.failed,
            'success_rate': self.success_rate,
            'total_volume': self.total_volume,
            'total_duration_seconds': self.total_duration_seconds,
            'results': [
                {
                    'input': str(r.input_path),
                    'success': r.success,
                    'error': r.error_message,
                    'duration': r.duration_seconds,
                    'result': r.result.to_dict() if r.result else None,
                }
                for r in self.results
            ],
        }


def find_stl_files(
    input_dir: Union[str, Path],
    pattern: str = "*.stl",
    recursive: bool = False,
) -> List[Path]:
    """Find STL files in a directory (extension matched case-insensitively).

    Raises:
        FileNotFoundError: if the directory does not exist
        NotADirectoryError: if the path is not a directory
    """
    input_dir = Path(input_dir)

    if not input_dir.exists():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not input_dir.is_dir():
        raise NotADirectoryError(f"Not a directory: {input_dir}")

    glob = input_dir.rglob if recursive else input_dir.glob
    files = set(glob(pattern))
    files.update(glob(pattern.replace('.stl', '.STL')))

    result = sorted(f for f in files if f.is_file())
    logger.info("Found %d STL files in %s", len(result), input_dir)
    return result


def compute_file(path: Path, config: ProjectConfig) -> FileResult:
    """Read one file and compute its volume.

    Read failures (missing file, over the byte ceiling) are captured in
    ``FileResult.error``; mesh failures arrive inside the VolumeResult.
    """
    start = time.perf_counter()
    file_result = FileResult(input_path=path)

    try:
        data = read_stl_bytes(path, config.limits.max_file_bytes)
    except MeshError as exc:
        file_result.error = exc.message
        file_result.result = VolumeResult(success=False, error=exc)
    except OSError as exc:
        file_result.error = f"Cannot read file: {exc}"
    else:
        file_result.result = compute_mesh_volume(data, config.engine.dedup_tolerance)

    if not file_result.success:
        logger.error("Failed to process %s: %s", path.name, file_result.error_message)

    file_result.duration_seconds = time.perf_counter() - start
    return file_result


def batch_compute(
    input_dir: Union[str, Path],
    pattern: str = "*.stl",
    recursive: bool = False,
    config: Optional[ProjectConfig] = None,
    config_path: Optional[Union[str, Path]] = None,
    parallel: bool = False,
    max_workers: Optional[int] = None,
    progress_callback: Optional[Callable[[int, int, FileResult], None]] = None,
) -> BatchResult:
    """Compute volumes for every STL file in a directory.

    Args:
        input_dir: Directory containing STL files
        pattern: Glob pattern for STL files
        recursive: Search subdirectories
        config: Configuration; loaded from ``config_path`` or the input
            directory when None
        config_path: Path to a .meshvol.json file
        parallel: Dispatch files on a thread pool
        max_workers: Maximum threads (None = executor default)
        progress_callback: Called after each file: (current, total, result)

    Returns:
        BatchResult with per-file results
    """
    start_time = time.perf_counter()
    input_dir = Path(input_dir)

    if config is None:
        config = load_config(stl_path=input_dir, explicit_config=config_path)

    stl_files = find_stl_files(input_dir, pattern, recursive)
    if not stl_files:
        logger.warning("No STL files found in %s", input_dir)
        return BatchResult(total_duration_seconds=time.perf_counter() - start_time)

    logger.info("Starting batch: %d files, parallel=%s", len(stl_files), parallel)
    results: List[FileResult] = []

    def _record(i: int, result: FileResult) -> None:
        results.append(result)
        if progress_callback:
            progress_callback(i, len(stl_files), result)
        logger.info("[%d/%d] %s: %s (%.2fs)", i, len(stl_files),
                    result.input_path.name, result.status, result.duration_seconds)

    if parallel:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(compute_file, path, config) for path in stl_files]
            for i, future in enumerate(as_completed(futures), 1):
                _record(i, future.result())
    else:
        for i, path in enumerate(stl_files, 1):
            with LogContext(file=path.name):
                result = compute_file(path, config)
            _record(i, result)

    batch_result = BatchResult(
        results=results,
        total_duration_seconds=time.perf_counter() - start_time,
    )

    logger.info(
        "Batch complete: %d/%d successful (%.1f%%) in %.1fs",
        batch_result.successful, batch_result.total,
        batch_result.success_rate, batch_result.total_duration_seconds,
    )
    return batch_result


def batch_cli(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for batch volume computation."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Compute enclosed volumes of all STL files in a directory"
    )
    parser.add_argument("input_dir", help="Directory containing STL files")
    parser.add_argument("-p", "--pattern", default="*.stl",
                        help="File pattern (default: *.stl)")
    parser.add_argument("-r", "--recursive", action="store_true",
                        help="Search subdirectories")
    parser.add_argument("-c", "--config", dest="config_path",
                        help="Path to .meshvol.json config file")
    parser.add_argument("--parallel", action="store_true",
                        help="Process files on a thread pool")
    parser.add_argument("-j", "--jobs", type=int, dest="max_workers",
                        help="Maximum parallel jobs")
    parser.add_argument("--report", help="Write a JSON report to this path")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable DEBUG logging")

    args = parser.parse_args(argv)

    try:
        config = load_config(stl_path=args.input_dir, explicit_config=args.config_path)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    setup_logging(
        level="DEBUG" if args.verbose else config.logging.level,
        json_file=config.logging.json_file,
        use_colors=config.logging.use_colors,
    )

    try:
        result = batch_compute(
            input_dir=args.input_dir,
            pattern=args.pattern,
            recursive=args.recursive,
            config=config,
            parallel=args.parallel,
            max_workers=args.max_workers,
        )
    except (FileNotFoundError, NotADirectoryError) as exc:
        logger.error("Batch failed: %s", exc)
        return 2

    print("\n" + result.summary(decimals=config.output.decimals))

    if args.report:
        Path(args.report).write_text(json.dumps(result.to_dict(), indent=2), encoding='utf-8')
        logger.info("Report written to %s", args.report)

    return 0 if result.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(batch_cli())
