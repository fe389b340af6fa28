"""Invoke tasks for building, testing, and linting apistub.

Every task shells out to the `uv` CLI so local runs match the project's
locked environment.
"""

from __future__ import annotations

import shlex
import shutil
from collections.abc import Sequence
from pathlib import Path

from invoke import Collection, Context, task

PROJECT_ROOT = Path(__file__).parent
DIST_DIR = PROJECT_ROOT / "dist"
SOURCE_DIRS = ("src", "tests")


def _uv(ctx: Context, args: Sequence[str], *, dry_run: bool = False) -> None:
    """Run ``uv`` with the given arguments.

    Args:
        ctx: Invoke execution context.
        args: Arguments appended after the `uv` executable.
        dry_run: Print the command instead of running it.
    """
    command = shlex.join(("uv", *args))
    if dry_run:
        print(f"[dry-run] {command}")
        return
    ctx.run(command, echo=True, pty=True)


@task(help={"dev": "Install the dev extra (pytest, ruff, mypy, invoke)."})
def sync(ctx: Context, dev: bool = True) -> None:
    """Synchronize the virtual environment with uv."""
    args = ["sync"]
    if dev:
        args.extend(["--extra", "dev"])
    _uv(ctx, args)


@task(help={"clean": "Remove existing artifacts from dist/ before building."})
def build(ctx: Context, clean: bool = False) -> None:
    """Build sdist and wheel into `dist/`."""
    if clean and DIST_DIR.exists():
        shutil.rmtree(DIST_DIR)
    _uv(ctx, ["build"])


@task(
    help={
        "k": "pytest -k expression for test selection.",
        "path": "Path or module to test (defaults to tests/).",
        "options": "Additional flags forwarded verbatim to pytest.",
    }
)
def tests(ctx: Context, k: str = "", path: str = "tests", options: str = "") -> None:
    """Run the pytest suite.

    Args:
        ctx: Invoke execution context.
        k: `pytest -k` expression.
        path: Target path for pytest discovery.
        options: Extra CLI arguments for pytest.
    """
    args: list[str] = ["run", "pytest"]
    if k:
        args.extend(["-k", k])
    if options:
        args.extend(shlex.split(options))
    args.append(path)
    _uv(ctx, args)


@task(
    help={
        "fix": "Apply auto-fixes where possible (ruff --fix).",
        "check_format": "Run ruff format --check before linting.",
    }
)
def lint(ctx: Context, fix: bool = False, check_format: bool = False) -> None:
    """Run Ruff formatting and lint checks."""
    if check_format:
        _uv(ctx, ["run", "ruff", "format", "--check", *SOURCE_DIRS])
    args: list[str] = ["run", "ruff", "check", *SOURCE_DIRS]
    if fix:
        args.append("--fix")
    _uv(ctx, args)


@task
def mypy(ctx: Context) -> None:
    """Type-check the package sources."""
    _uv(ctx, ["run", "mypy", "src"])


@task
def ci(ctx: Context) -> None:
    """Run lint, type checks, and tests in CI order."""
    ctx.invoke(lint, check_format=True)
    ctx.invoke(mypy)
    ctx.invoke(tests)


namespace = Collection(sync, build, tests, lint, mypy, ci)
