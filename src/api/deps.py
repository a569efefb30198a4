import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.adapters.dev_confirmer import InMemoryEmailConfirmer
from src.adapters.dev_email import DevEmailAdapter
from src.adapters.sqlite_db import SQLiteSubmissionRepo, ensure_schema
from src.components.double_opt_in import DoubleOptInEmailHandler
from src.components.notification import DoubleOptInCompatibleEmailHandler
from src.components.submission_state import SubmissionStateHooks, create_default_hooks
from src.components.submissions import SubmissionPipeline
from src.rules.loader import default_rules_path, load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.rules_path = default_rules_path()
        self.data_dir = Path(os.environ.get("WEBFORM_DATA_DIR", "./data"))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Repos ---
def get_db_path(rules: Rules = Depends(get_rules)) -> str:
    db_path = os.environ.get("WEBFORM_DB_PATH", rules.storage.db_path)
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    ensure_schema(db_path)
    return db_path


def get_submission_repo(db_path: str = Depends(get_db_path)) -> SQLiteSubmissionRepo:
    return SQLiteSubmissionRepo(db_path)


# --- Collaborators (dev adapters, process-wide) ---
@lru_cache
def get_email_sender() -> DevEmailAdapter:
    return DevEmailAdapter(log_body=get_rules().observability.log_email_body)


@lru_cache
def get_email_confirmer() -> InMemoryEmailConfirmer:
    return InMemoryEmailConfirmer()


@lru_cache
def get_state_hooks() -> SubmissionStateHooks:
    return create_default_hooks()


# --- Pipeline ---
def get_pipeline(
    repo: SQLiteSubmissionRepo = Depends(get_submission_repo),
    rules: Rules = Depends(get_rules),
    email_sender: DevEmailAdapter = Depends(get_email_sender),
    confirmer: InMemoryEmailConfirmer = Depends(get_email_confirmer),
    hooks: SubmissionStateHooks = Depends(get_state_hooks),
) -> SubmissionPipeline:
    # Opt-in handler first so a confirmation found on this save reaches the notification.
    # It reads the raw lifecycle state; only the notification resolves states.
    pipeline = SubmissionPipeline(repo)
    pipeline.add_handler(
        DoubleOptInEmailHandler(rules.handlers.double_opt_in.to_config(), repo, confirmer)
    )

    notification = rules.handlers.notification
    if notification is not None and notification.enabled:
        pipeline.add_handler(
            DoubleOptInCompatibleEmailHandler(notification.to_config(), email_sender, hooks)
        )
    return pipeline
