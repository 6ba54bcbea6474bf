"""Nox automation for MarketPulse development tasks."""

from pathlib import Path

import nox

# Default sessions to run
nox.options.sessions = ["lint", "test"]


@nox.session(python=["3.10", "3.11", "3.12", "3.13"])
def test(session: nox.Session) -> None:
    """Run the test suite with coverage."""
    session.install("-e", ".[test]")
    session.run(
        "pytest",
        "--cov=marketpulse",
        "--cov-report=term-missing",
        "--cov-fail-under=80",
        "-q",
        *session.posargs,
    )


@nox.session(python="3.11")
def lint(session: nox.Session) -> None:
    """Run linting with ruff and black."""
    session.install("ruff", "black")
    session.run("ruff", "check", ".")
    session.run("black", "--check", ".")


@nox.session(python="3.11")
def typecheck(session: nox.Session) -> None:
    """Run type checking with mypy."""
    session.install("mypy", "pandas-stubs", "types-PyYAML")
    session.install("-e", ".")
    session.run("mypy", "marketpulse")


@nox.session(python=False)
def smoke(session: nox.Session) -> None:
    """Build a snapshot from generated sample items without virtualenv."""
    out_dir = Path("runs") / "ci_smoke"
    items_dir = out_dir / "items"

    session.run(
        "python",
        "scripts/make_sample_items.py",
        "--output-dir",
        str(items_dir),
        "--per-kind",
        "6",
    )
    session.run(
        "python",
        "-m",
        "marketpulse.content.snapshot",
        "--news",
        str(items_dir / "news.jsonl"),
        "--podcasts",
        str(items_dir / "podcasts.jsonl"),
        "--emails",
        str(items_dir / "emails.jsonl"),
        "--config",
        "configs/scoring.example.yaml",
        "--priority-symbols",
        "AAPL,NVDA",
        "--out",
        str(out_dir / "snapshot.json"),
        "--csv",
        str(out_dir / "items.csv"),
    )

    if not (out_dir / "snapshot.json").exists():
        session.error("Snapshot was not written")
    session.log("Smoke test passed!")


@nox.session(python=False)
def clean(session: nox.Session) -> None:
    """Clean up generated files and caches."""
    import shutil

    paths_to_remove = [
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".coverage",
        "htmlcov",
        ".nox",
        "dist",
        "build",
        "*.egg-info",
        "runs/ci_smoke",
    ]

    for pattern in paths_to_remove:
        for path in Path(".").glob(pattern):
            session.log(f"Removing {path}")
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()
