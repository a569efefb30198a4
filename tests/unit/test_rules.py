"""
Unit tests for rules loading and validation.

Tests cover:
1. Loading the project rules.yaml
2. Markdown-fenced YAML
3. Schema errors and unknown keys
4. Trigger-state validation against state options
5. Conversion to handler configs
"""

from pathlib import Path

import pytest

from src.components.submission_state import create_default_hooks
from src.rules.loader import load_rules, validate_trigger_states
from src.rules.models import Rules

MINIMAL_RULES = """
project:
  slug: test
  rules_version: "1"
handlers:
  double_opt_in:
    states: [completed]
    message:
      to_mail: "{{email}}"
"""


def write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "rules.yaml"
    path.write_text(content)
    return path


class TestLoadRules:
    def test_project_rules(self, test_rules: Rules) -> None:
        assert test_rules.project.slug == "webform-double-opt-in"
        assert test_rules.handlers.double_opt_in.states == ["completed"]
        assert test_rules.handlers.notification is not None
        assert test_rules.handlers.notification.states == ["double_opt_in_confirmed"]

    def test_minimal_rules_defaults(self, tmp_path: Path) -> None:
        rules = load_rules(write(tmp_path, MINIMAL_RULES))

        handler = rules.handlers.double_opt_in
        assert handler.opt_in_globally is False
        assert handler.retry_failed_dispatch is True
        assert handler.handler_id == "webform_double_opt_in_email"
        assert rules.handlers.notification is None
        assert rules.storage.db_path == "./data/submissions.db"
        assert rules.observability.log_level == "INFO"

    def test_fenced_yaml(self, tmp_path: Path) -> None:
        content = f"# Rules\n\nSome prose.\n\n```yaml{MINIMAL_RULES}```\n\nMore prose.\n"

        rules = load_rules(write(tmp_path, content))

        assert rules.project.slug == "test"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_rules(write(tmp_path, "project: [unclosed"))

    def test_unknown_top_level_key(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Rules validation failed"):
            load_rules(write(tmp_path, MINIMAL_RULES + "surprise: true\n"))

    def test_missing_message(self, tmp_path: Path) -> None:
        content = """
project:
  slug: test
  rules_version: "1"
handlers:
  double_opt_in:
    states: [completed]
"""
        with pytest.raises(ValueError, match="Rules validation failed"):
            load_rules(write(tmp_path, content))

    def test_states_stripped(self, tmp_path: Path) -> None:
        rules = load_rules(write(tmp_path, MINIMAL_RULES.replace("[completed]", '[" completed ", ""]')))
        assert rules.handlers.double_opt_in.states == ["completed"]

    def test_rules_path_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RULES_PATH", str(write(tmp_path, MINIMAL_RULES)))
        assert load_rules().project.slug == "test"


class TestValidateTriggerStates:
    def test_project_rules_valid(self, test_rules: Rules) -> None:
        options = create_default_hooks().get_state_options()
        assert validate_trigger_states(test_rules, options) == []

    def test_unknown_state(self, tmp_path: Path) -> None:
        rules = load_rules(write(tmp_path, MINIMAL_RULES.replace("[completed]", "[archived]")))

        errors = validate_trigger_states(rules, create_default_hooks().get_state_options())

        assert errors == ["handlers.double_opt_in.states: unknown state 'archived'"]


class TestToConfig:
    def test_double_opt_in_config(self, test_rules: Rules) -> None:
        config = test_rules.handlers.double_opt_in.to_config()

        assert config.states == frozenset({"completed"})
        assert config.message.to_mail == "{{email}}"
        assert config.message.from_mail == "noreply@example.com"

    def test_notification_config(self, test_rules: Rules) -> None:
        notification = test_rules.handlers.notification
        assert notification is not None

        config = notification.to_config()

        assert config.states == frozenset({"double_opt_in_confirmed"})
        assert config.handler_id == "webform_double_opt_in_compatible_email"
