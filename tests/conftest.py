from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.adapters.dev_confirmer import InMemoryEmailConfirmer
from src.adapters.dev_email import DevEmailAdapter
from src.adapters.sqlite_db import SQLiteSubmissionRepo, ensure_schema
from src.api.deps import (
    get_db_path,
    get_email_confirmer,
    get_email_sender,
    get_rules,
)
from src.api.main import app
from src.rules.loader import load_rules
from src.rules.models import Rules


@pytest.fixture
def test_db_path(tmp_path: Path) -> str:
    """Temporary SQLite database with the submissions schema."""
    db_path = str(tmp_path / "submissions.db")
    ensure_schema(db_path)
    return db_path


@pytest.fixture
def test_repo(test_db_path: str) -> SQLiteSubmissionRepo:
    return SQLiteSubmissionRepo(test_db_path)


@pytest.fixture
def test_rules() -> Rules:
    """Load REAL rules from project root."""
    rules_path = Path("rules.yaml").resolve()
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules not found at {rules_path}")
    return load_rules(rules_path)


@pytest.fixture
def email_sender() -> DevEmailAdapter:
    return DevEmailAdapter()


@pytest.fixture
def confirmer() -> InMemoryEmailConfirmer:
    return InMemoryEmailConfirmer()


@pytest.fixture
def client(
    test_db_path: str,
    test_rules: Rules,
    email_sender: DevEmailAdapter,
    confirmer: InMemoryEmailConfirmer,
) -> Generator[TestClient, None, None]:
    """Create test client with dependency overrides."""
    app.dependency_overrides[get_rules] = lambda: test_rules
    app.dependency_overrides[get_db_path] = lambda: test_db_path
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_email_confirmer] = lambda: confirmer

    yield TestClient(app)

    # Clean up overrides
    app.dependency_overrides.clear()
