"""Load margot configuration from pyproject.toml."""

from __future__ import annotations

import dataclasses
import logging
import pathlib
import tomllib
import typing

if typing.TYPE_CHECKING:
    from margot.rules import base

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Config:
    """Resolved margot configuration.

    Attributes:
        select: Rule IDs to run. ``None`` means all registered rules are active.
        ignore: Rule IDs to exclude from the active set.
        rule_options: Per-rule option overrides keyed by rule ID.
    """

    select: frozenset[str] | None
    ignore: frozenset[str]
    rule_options: dict[str, dict[str, int | str | bool]] = dataclasses.field(
        default_factory=dict, hash=False
    )


def _find_pyproject(start: pathlib.Path) -> pathlib.Path | None:
    """Walk up from *start* to find the nearest pyproject.toml."""
    for directory in [start, *start.parents]:
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def _rule_id_set(section: dict, key: str) -> frozenset[str] | None:
    """Return the lower-cased rule IDs listed under *key*, or None if absent.

    A value that is not a list of strings is ignored with a warning.
    """
    raw = section.get(key)
    if raw is None:
        return None
    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        logger.warning("Ignoring tool.margot.%s: expected a list of rule ids", key)
        return None
    return frozenset(rule_id.lower() for rule_id in raw)


def _rule_options(raw: object) -> dict[str, dict[str, int | str | bool]]:
    """Return scalar option tables keyed by lower-cased rule ID."""
    if not isinstance(raw, dict):
        logger.warning("Ignoring tool.margot.rules: expected a table of rule tables")
        return {}
    rule_options: dict[str, dict[str, int | str | bool]] = {}
    for rule_id, opts in raw.items():
        if not isinstance(opts, dict):
            logger.warning("Ignoring tool.margot.rules.%s: expected a table", rule_id)
            continue
        scalars: dict[str, int | str | bool] = {}
        for opt_key, opt_val in opts.items():
            if isinstance(opt_val, int | str | bool):
                scalars[opt_key] = opt_val
            else:
                logger.warning(
                    "Ignoring tool.margot.rules.%s.%s: options must be scalars",
                    rule_id,
                    opt_key,
                )
        rule_options[rule_id.lower()] = scalars
    return rule_options


def load_config(start: pathlib.Path | None = None) -> Config:
    """Return the Config from the nearest pyproject.toml, or defaults.

    Reads ``[tool.margot]`` from the first ``pyproject.toml`` found by
    walking up from *start* (defaults to ``Path.cwd()``).  Returns a
    default Config (all rules active, none ignored) if no file is found,
    the file is not valid TOML, or the section is absent. Malformed
    entries are dropped with a warning rather than failing the run.

    Per-rule options live in ``[tool.margot.rules.<rule-id>]`` tables::

        [tool.margot.rules.code-block-style]
        style = "fenced"

    Args:
        start: Directory to begin the upward search.  Defaults to cwd.

    Returns:
        A Config reflecting the ``select``, ``ignore`` and ``rules`` entries.
    """
    search_root = start if start is not None else pathlib.Path.cwd()
    pyproject = _find_pyproject(search_root)
    if pyproject is None:
        return Config(select=None, ignore=frozenset())

    try:
        with pyproject.open("rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", pyproject, exc)
        return Config(select=None, ignore=frozenset())

    section = data.get("tool", {}).get("margot", {})
    logger.debug("Loaded configuration from %s", pyproject)
    return Config(
        select=_rule_id_set(section, "select"),
        ignore=_rule_id_set(section, "ignore") or frozenset(),
        rule_options=_rule_options(section.get("rules", {})),
    )


def find_problems(all_rules: list[base.Rule], config: Config) -> list[str]:
    """Return a description of every entry in *config* no rule can use.

    Checks that rule IDs named in ``select``, ``ignore`` and ``rules`` exist
    in *all_rules*, and that every option key matches its rule's
    ``option_key``. Option values are left to the rules themselves.

    Args:
        all_rules: Every registered rule.
        config: The loaded configuration.

    Returns:
        Human-readable problems in a stable order; empty when none.
    """
    by_id = {rule.rule_id: rule for rule in all_rules}
    problems = [
        f"Unknown rule id `{rule_id}` in {key}"
        for key, ids in (("select", config.select), ("ignore", config.ignore))
        for rule_id in sorted(ids or ())
        if rule_id not in by_id
    ]
    for rule_id, opts in sorted(config.rule_options.items()):
        rule = by_id.get(rule_id)
        if rule is None:
            problems.append(f"Unknown rule id `{rule_id}` in rules")
            continue
        for opt_key in sorted(opts):
            if rule.option_key is None:
                problems.append(f"Rule `{rule_id}` takes no options, got `{opt_key}`")
            elif opt_key != rule.option_key:
                problems.append(
                    f"Unknown option `{opt_key}` for rule `{rule_id}`:"
                    f" use `{rule.option_key}`"
                )
    return problems


def configure_rules(
    active_rules: list[base.Rule],
    config: Config,
) -> list[base.Rule]:
    """Return rules with per-rule options from config applied.

    For each rule whose ID appears in ``config.rule_options``, calls
    ``rule.configure(opts)`` and uses the returned instance.  Rules with no
    matching options are returned unchanged.  Option values are not
    validated here; a rule rejects a bad value when it runs.

    Args:
        active_rules: The filtered list of rules to configure.
        config: The active configuration.

    Returns:
        List of rules with options applied, preserving order.
    """
    result: list[base.Rule] = []
    for rule in active_rules:
        opts = config.rule_options.get(rule.rule_id, {})
        result.append(rule.configure(opts) if opts else rule)
    return result


def filter_rules(
    all_rules: list[base.Rule],
    config: Config,
) -> list[base.Rule]:
    """Return the subset of *all_rules* allowed by *config*.

    ``select`` is applied first (restricting to that set), then ``ignore``
    removes any listed IDs.

    Args:
        all_rules: Full list of available rule instances.
        config: The active configuration.

    Returns:
        Filtered list preserving the original order.
    """
    active = all_rules
    if config.select is not None:
        active = [rule for rule in active if rule.rule_id in config.select]
    if config.ignore:
        active = [rule for rule in active if rule.rule_id not in config.ignore]
    return active


def active_rules(
    all_rules: list[base.Rule],
    config: Config,
) -> list[base.Rule]:
    """Return the rules *config* enables, with their options applied.

    Entries no rule can use are logged as warnings.
    """
    for problem in find_problems(all_rules, config):
        logger.warning("Configuration: %s", problem)
    return configure_rules(filter_rules(all_rules, config), config)
