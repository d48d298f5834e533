from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ProjectPaths:
    data_dir: Path
    artifacts_dir: Path
    bench_dir: Path

    @classmethod
    def from_repo_root(
        cls,
        repo_root: Path,
        *,
        data_dir: Path | str = "data",
        artifacts_dir: Path | str = "artifacts",
    ) -> "ProjectPaths":
        data_dir_p = resolve_path(repo_root, data_dir)
        artifacts_dir_p = resolve_path(repo_root, artifacts_dir)
        return cls(
            data_dir=data_dir_p,
            artifacts_dir=artifacts_dir_p,
            bench_dir=artifacts_dir_p / "bench",
        )


def resolve_path(repo_root: Path, path: Path | str) -> Path:
    """Resolve `path` against `repo_root` unless it is already absolute."""
    p = Path(path)
    if not p.is_absolute():
        p = Path(repo_root) / p
    return p.resolve()


def get_repo_root() -> Path:
    """Return repo root by searching upwards for `config.yaml` or `.git`."""
    start = Path.cwd().resolve()

    for candidate in (start, *start.parents):
        if (candidate / "config.yaml").is_file() or (candidate / ".git").exists():
            return candidate

    # Fallback: search upwards from this file (useful if called from elsewhere).
    start = Path(__file__).resolve().parent
    for candidate in (start, *start.parents):
        if (candidate / "config.yaml").is_file() or (candidate / ".git").exists():
            return candidate

    raise FileNotFoundError("Could not locate repo root (expected `config.yaml` or `.git`).")
