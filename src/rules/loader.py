import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import Rules

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = "rules.yaml"


def default_rules_path() -> Path:
    """RULES_PATH from the environment, else rules.yaml in the working directory."""
    env_path = os.environ.get("RULES_PATH")
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_RULES_PATH


def load_rules(path: Path | None = None) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if YAML or schema invalid.
    """
    if path is None:
        path = default_rules_path()

    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path) as f:
        content = f.read()

    # Strip markdown code fences if the YAML is embedded in a ```yaml block
    lines = content.splitlines()
    yaml_lines = []
    in_block = False
    found_block = False

    for line in lines:
        s_line = line.strip()
        if s_line.startswith("```yaml"):
            in_block = True
            found_block = True
            continue
        if in_block and s_line.startswith("```"):
            in_block = False
            break

        if in_block:
            yaml_lines.append(line)

    clean_content = "\n".join(yaml_lines) if found_block else content

    try:
        data = yaml.safe_load(clean_content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    try:
        rules = Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e

    logger.info("Rules loaded from %s", path)
    return rules


def validate_trigger_states(rules: Rules, state_options: dict[str, str]) -> list[str]:
    """
    Check configured trigger states against the known state options.

    Returns:
        List of error messages (empty if valid)
    """
    errors: list[str] = []
    handlers = [("double_opt_in", rules.handlers.double_opt_in)]
    if rules.handlers.notification is not None:
        handlers.append(("notification", rules.handlers.notification))

    for name, handler in handlers:
        for state in handler.states:
            if state not in state_options:
                errors.append(f"handlers.{name}.states: unknown state '{state}'")

    return errors
