"""Entry point: margot [check <path>... | rules | serve]."""

import enum
import json
import logging
import pathlib
import typing

import typer

app = typer.Typer()

_MARKDOWN_SUFFIXES: frozenset[str] = frozenset({".md", ".markdown"})

# Directories that are never interesting to analyse.
_SKIP_DIRS: frozenset[str] = frozenset(
    {".venv", "venv", "__pycache__", ".git", "node_modules", "build", "dist", ".tox"}
)


class OutputFormat(str, enum.Enum):
    TEXT = "text"
    JSON = "json"


def _is_markdown(path: pathlib.Path) -> bool:
    return path.suffix.lower() in _MARKDOWN_SUFFIXES


def _collect_markdown_files(root: pathlib.Path) -> list[pathlib.Path]:
    """Recursively find Markdown files under root, skipping non-source directories."""
    return sorted(
        md_file
        for md_file in root.rglob("*")
        if _is_markdown(md_file)
        and md_file.is_file()
        and not any(part in _SKIP_DIRS for part in md_file.parts)
    )


def _git_diff_markdown_files() -> list[pathlib.Path]:
    """Return Markdown files changed relative to HEAD in the current git repository.

    Returns an empty list when git is unavailable or the directory is not a
    git repository.
    """
    import subprocess  # noqa: PLC0415

    try:
        root_proc = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],  # noqa: S607
            capture_output=True,
            text=True,
            check=False,
        )
        diff_proc = subprocess.run(
            ["git", "diff", "--name-only", "--diff-filter=ACMR", "HEAD"],  # noqa: S607
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return []
    if root_proc.returncode != 0 or diff_proc.returncode != 0:
        return []
    git_root = pathlib.Path(root_proc.stdout.strip())
    return [
        git_root / line
        for line in diff_proc.stdout.splitlines()
        if _is_markdown(pathlib.Path(line))
    ]


def _resolve_files(
    paths: list[pathlib.Path] | None,
    *,
    diff: bool,
) -> list[pathlib.Path]:
    """Expand paths and optionally the git diff into a deduplicated Markdown file list."""
    candidates: list[pathlib.Path] = []
    if diff:
        candidates.extend(_git_diff_markdown_files())
    for raw_path in paths or []:
        if raw_path.is_dir():
            candidates.extend(_collect_markdown_files(raw_path))
        else:
            candidates.append(raw_path)
    seen: set[pathlib.Path] = set()
    unique: list[pathlib.Path] = []
    for file_path in candidates:
        resolved = file_path.resolve()
        if resolved not in seen:
            seen.add(resolved)
            unique.append(file_path)
    return unique


@app.callback()
def main_options(
    verbose: typing.Annotated[  # noqa: FBT002
        bool,
        typer.Option("--verbose", "-v", help="Log rule execution details to stderr."),
    ] = False,
) -> None:
    """Lint Markdown documents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command(no_args_is_help=True)
def check(
    paths: typing.Annotated[
        list[pathlib.Path] | None,
        typer.Argument(help="Files or directories to check."),
    ] = None,
    diff: typing.Annotated[  # noqa: FBT002
        bool,
        typer.Option("--diff", help="Check Markdown files changed in the current git diff."),
    ] = False,
    output_format: typing.Annotated[
        OutputFormat,
        typer.Option("--format", help="Report as text lines or as JSON."),
    ] = OutputFormat.TEXT,
) -> None:
    """Check one or more files/directories for rule violations.

    Raises:
        typer.Exit: With code 1 if any violations were reported.
    """
    from margot import analyzer as margot_analyzer  # noqa: PLC0415
    from margot import config as margot_config  # noqa: PLC0415
    from margot import rules  # noqa: PLC0415

    markdown_files = _resolve_files(paths, diff=diff)
    cfg = margot_config.load_config()
    analyzer = margot_analyzer.Analyzer(
        rules=margot_config.active_rules(rules.ALL_RULES, cfg)
    )
    found_any = False
    report: list[dict] = []

    for file_path in markdown_files:
        try:
            source = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            typer.echo(f"error: {file_path}: {e}", err=True)
            continue

        diagnostics = analyzer.analyze(source)

        if output_format is OutputFormat.JSON:
            report.append(
                {
                    "path": str(file_path),
                    "diagnostics": [diag.to_dict() for diag in diagnostics],
                }
            )
        else:
            for diag in diagnostics:
                typer.echo(
                    f"{file_path}:{diag.line}:{diag.column}: {diag.rule_id} {diag.message}"
                )
        if diagnostics:
            found_any = True

    if output_format is OutputFormat.JSON:
        typer.echo(json.dumps(report, indent=2, ensure_ascii=False))

    if found_any:
        raise typer.Exit(code=1)


@app.command("rules")
def list_rules() -> None:
    """List the available rules."""
    from margot import rules  # noqa: PLC0415

    for rule in rules.ALL_RULES:
        summary = (type(rule).__doc__ or "").strip().split("\n")[0]
        typer.echo(f"{rule.rule_id}: {summary}")


@app.command()
def serve() -> None:
    """Run the LSP server over stdio."""
    from margot import server  # noqa: PLC0415

    server.start()


def main() -> None:
    """Dispatch to CLI check mode or LSP server mode."""
    app()


if __name__ == "__main__":
    main()
