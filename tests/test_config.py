"""Tests for margot.config: load_config, filter_rules and configure_rules."""

import logging
import pathlib

import pytest

from margot import analyzer as margot_analyzer
from margot import config as margot_config
from margot.rules import blockquotes, code, headings, lists

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SAMPLE_RULES = [
    code.CodeBlockStyle(),
    headings.MaximumHeadingLength(),
    lists.CheckboxContentIndent(),
]


def _ids(rule_list: list) -> list[str]:
    return [rule.rule_id for rule in rule_list]


# ---------------------------------------------------------------------------
# load_config: no pyproject.toml
# ---------------------------------------------------------------------------


class TestLoadConfigMissing:
    def test_no_pyproject_returns_defaults(self, tmp_path: pathlib.Path) -> None:
        cfg = margot_config.load_config(tmp_path)
        assert cfg.select is None
        assert cfg.ignore == frozenset()
        assert cfg.rule_options == {}

    def test_finds_pyproject_in_parent(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.margot]\nignore = ["code-block-style"]\n'
        )
        child = tmp_path / "docs" / "guide"
        child.mkdir(parents=True)
        cfg = margot_config.load_config(child)
        assert "code-block-style" in cfg.ignore

    def test_invalid_toml_returns_defaults(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text("this is not : valid toml ][")
        cfg = margot_config.load_config(tmp_path)
        assert cfg.select is None
        assert cfg.ignore == frozenset()

    def test_no_tool_margot_returns_defaults(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.ruff]\nline-length = 88\n")
        cfg = margot_config.load_config(tmp_path)
        assert cfg.select is None
        assert cfg.ignore == frozenset()


# ---------------------------------------------------------------------------
# load_config: select and ignore
# ---------------------------------------------------------------------------


class TestLoadConfigSelectIgnore:
    def test_select(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.margot]\nselect = ["code-block-style", "no-duplicate-headings"]\n'
        )
        cfg = margot_config.load_config(tmp_path)
        assert cfg.select == frozenset({"code-block-style", "no-duplicate-headings"})
        assert cfg.ignore == frozenset()

    def test_ids_normalised_to_lowercase(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.margot]\nselect = ["Code-Block-Style"]\nignore = ["NO-DUPLICATE-HEADINGS"]\n'
        )
        cfg = margot_config.load_config(tmp_path)
        assert cfg.select == frozenset({"code-block-style"})
        assert cfg.ignore == frozenset({"no-duplicate-headings"})

    def test_empty_select_selects_nothing(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.margot]\nselect = []\n")
        cfg = margot_config.load_config(tmp_path)
        assert cfg.select == frozenset()
        assert margot_config.filter_rules(_SAMPLE_RULES, cfg) == []


# ---------------------------------------------------------------------------
# load_config: rule_options
# ---------------------------------------------------------------------------


class TestLoadConfigRuleOptions:
    def test_rule_options_loaded(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.margot.rules.code-block-style]\nstyle = "fenced"\n'
        )
        cfg = margot_config.load_config(tmp_path)
        assert cfg.rule_options == {"code-block-style": {"style": "fenced"}}

    def test_rule_id_normalised_to_lowercase(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            "[tool.margot.rules.Maximum-Heading-Length]\nmax_length = 40\n"
        )
        cfg = margot_config.load_config(tmp_path)
        assert cfg.rule_options == {"maximum-heading-length": {"max_length": 40}}

    def test_non_scalar_option_values_ignored(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            "[tool.margot.rules.blockquote-indentation]\nindent = 2\nbad = [1, 2]\n"
        )
        cfg = margot_config.load_config(tmp_path)
        assert cfg.rule_options["blockquote-indentation"] == {"indent": 2}


# ---------------------------------------------------------------------------
# filter_rules
# ---------------------------------------------------------------------------


class TestFilterRules:
    def test_no_select_no_ignore_returns_all(self) -> None:
        cfg = margot_config.Config(select=None, ignore=frozenset())
        assert _ids(margot_config.filter_rules(_SAMPLE_RULES, cfg)) == _ids(_SAMPLE_RULES)

    def test_select_restricts_to_listed_rules(self) -> None:
        cfg = margot_config.Config(select=frozenset({"code-block-style"}), ignore=frozenset())
        assert _ids(margot_config.filter_rules(_SAMPLE_RULES, cfg)) == ["code-block-style"]

    def test_select_unknown_id_returns_empty(self) -> None:
        cfg = margot_config.Config(select=frozenset({"unknown"}), ignore=frozenset())
        assert margot_config.filter_rules(_SAMPLE_RULES, cfg) == []

    def test_select_then_ignore_preserves_order(self) -> None:
        cfg = margot_config.Config(
            select=frozenset({"code-block-style", "checkbox-content-indent"}),
            ignore=frozenset({"maximum-heading-length"}),
        )
        result = _ids(margot_config.filter_rules(_SAMPLE_RULES, cfg))
        assert result == ["code-block-style", "checkbox-content-indent"]

    def test_ignore_removes_listed_rules(self) -> None:
        cfg = margot_config.Config(select=None, ignore=frozenset({"code-block-style"}))
        result = _ids(margot_config.filter_rules(_SAMPLE_RULES, cfg))
        assert result == ["maximum-heading-length", "checkbox-content-indent"]


# ---------------------------------------------------------------------------
# configure_rules
# ---------------------------------------------------------------------------


class TestConfigureRules:
    def test_no_options_returns_same_rules(self) -> None:
        cfg = margot_config.Config(select=None, ignore=frozenset())
        assert margot_config.configure_rules(_SAMPLE_RULES, cfg) == _SAMPLE_RULES

    def test_options_applied_to_matching_rule(self) -> None:
        cfg = margot_config.Config(
            select=None,
            ignore=frozenset(),
            rule_options={"maximum-heading-length": {"max_length": 3}},
        )
        original = headings.MaximumHeadingLength()
        (configured,) = margot_config.configure_rules([original], cfg)
        assert configured is not original
        assert configured.option == 3
        assert original.option is None

    def test_options_not_applied_to_other_rules(self) -> None:
        cfg = margot_config.Config(
            select=None,
            ignore=frozenset(),
            rule_options={"maximum-heading-length": {"max_length": 3}},
        )
        rule = code.CodeBlockStyle()
        assert margot_config.configure_rules([rule], cfg) == [rule]

    def test_unknown_option_key_leaves_rule(self) -> None:
        cfg = margot_config.Config(
            select=None,
            ignore=frozenset(),
            rule_options={"code-block-style": {"colour": "red"}},
        )
        rule = code.CodeBlockStyle()
        assert margot_config.configure_rules([rule], cfg) == [rule]


# ---------------------------------------------------------------------------
# Integration: configuration changes analysis results
# ---------------------------------------------------------------------------


class TestConfigIntegration:
    def test_ignored_rule_produces_no_diagnostic(self) -> None:
        cfg = margot_config.Config(select=None, ignore=frozenset({"no-duplicate-headings"}))
        active = margot_config.filter_rules([headings.NoDuplicateHeadings()], cfg)
        az = margot_analyzer.Analyzer(rules=active)
        assert az.analyze("# Foo\n\n# Foo\n") == []

    def test_configured_option_reaches_rule(self) -> None:
        cfg = margot_config.Config(
            select=None,
            ignore=frozenset(),
            rule_options={"blockquote-indentation": {"indent": 4}},
        )
        active = margot_config.configure_rules([blockquotes.BlockquoteIndentation()], cfg)
        az = margot_analyzer.Analyzer(rules=active)
        (diag,) = az.analyze("> Hello\n")
        assert diag.message == "Add 2 spaces between block quote and content"

    def test_invalid_option_reported_as_fatal(self) -> None:
        cfg = margot_config.Config(
            select=None,
            ignore=frozenset(),
            rule_options={"code-block-style": {"style": "wavy"}},
        )
        active = margot_config.configure_rules([code.CodeBlockStyle()], cfg)
        (diag,) = margot_analyzer.Analyzer(rules=active).analyze("text\n")
        assert diag.fatal
        assert diag.rule_id == "code-block-style"


# ---------------------------------------------------------------------------
# active_rules
# ---------------------------------------------------------------------------


class TestActiveRules:
    def test_filters_then_configures(self) -> None:
        cfg = margot_config.Config(
            select=None,
            ignore=frozenset({"code-block-style"}),
            rule_options={"maximum-heading-length": {"max_length": 3}},
        )
        result = margot_config.active_rules(_SAMPLE_RULES, cfg)
        assert _ids(result) == ["maximum-heading-length", "checkbox-content-indent"]
        assert result[0].option == 3


# ---------------------------------------------------------------------------
# load_config: malformed entries
# ---------------------------------------------------------------------------


class TestLoadConfigMalformed:
    def test_select_string_ignored(
        self, tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.margot]\nselect = "code-block-style"\n'
        )
        with caplog.at_level(logging.WARNING, logger="margot.config"):
            cfg = margot_config.load_config(tmp_path)
        assert cfg.select is None
        assert "tool.margot.select" in caplog.text

    def test_non_table_rule_entry_dropped(self, tmp_path: pathlib.Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.margot.rules]\ncode-block-style = "fenced"\n'
        )
        assert margot_config.load_config(tmp_path).rule_options == {}

    def test_non_scalar_option_warns(
        self, tmp_path: pathlib.Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        (tmp_path / "pyproject.toml").write_text(
            "[tool.margot.rules.blockquote-indentation]\nindent = [2]\n"
        )
        with caplog.at_level(logging.WARNING, logger="margot.config"):
            cfg = margot_config.load_config(tmp_path)
        assert cfg.rule_options == {"blockquote-indentation": {}}
        assert "blockquote-indentation.indent" in caplog.text


# ---------------------------------------------------------------------------
# find_problems
# ---------------------------------------------------------------------------


class TestFindProblems:
    def test_valid_config_has_no_problems(self) -> None:
        cfg = margot_config.Config(
            select=frozenset({"code-block-style"}),
            ignore=frozenset({"checkbox-content-indent"}),
            rule_options={"code-block-style": {"style": "fenced"}},
        )
        assert margot_config.find_problems(_SAMPLE_RULES, cfg) == []

    def test_unknown_rule_ids(self) -> None:
        cfg = margot_config.Config(
            select=frozenset({"no-such-rule"}),
            ignore=frozenset({"also-missing"}),
            rule_options={"ghost": {"style": "fenced"}},
        )
        assert margot_config.find_problems(_SAMPLE_RULES, cfg) == [
            "Unknown rule id `no-such-rule` in select",
            "Unknown rule id `also-missing` in ignore",
            "Unknown rule id `ghost` in rules",
        ]

    def test_option_key_checked_against_rule(self) -> None:
        cfg = margot_config.Config(
            select=None,
            ignore=frozenset(),
            rule_options={"maximum-heading-length": {"max-length": 40}},
        )
        assert margot_config.find_problems(_SAMPLE_RULES, cfg) == [
            "Unknown option `max-length` for rule `maximum-heading-length`: use `max_length`",
        ]

    def test_option_for_optionless_rule(self) -> None:
        cfg = margot_config.Config(
            select=None,
            ignore=frozenset(),
            rule_options={"checkbox-content-indent": {"indent": 1}},
        )
        assert margot_config.find_problems(_SAMPLE_RULES, cfg) == [
            "Rule `checkbox-content-indent` takes no options, got `indent`",
        ]

    def test_active_rules_logs_problems(self, caplog: pytest.LogCaptureFixture) -> None:
        cfg = margot_config.Config(select=None, ignore=frozenset({"typo-rule"}))
        with caplog.at_level(logging.WARNING, logger="margot.config"):
            result = margot_config.active_rules(_SAMPLE_RULES, cfg)
        assert _ids(result) == _ids(_SAMPLE_RULES)
        assert "Unknown rule id `typo-rule` in ignore" in caplog.text
