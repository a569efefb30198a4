from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.components.double_opt_in.models import DoubleOptInConfig
from src.components.notification.models import NotificationConfig
from src.core.services.message import DEFAULT_BODY, DEFAULT_SUBJECT, MessageTemplate


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class MessageRules(BaseModel):
    to_mail: str
    subject: str = DEFAULT_SUBJECT
    body: str = DEFAULT_BODY
    from_mail: str | None = None
    from_name: str | None = None
    cc_mail: str | None = None
    bcc_mail: str | None = None
    reply_to: str | None = None
    html: bool = False

    def to_template(self) -> MessageTemplate:
        return MessageTemplate(**self.model_dump())


class HandlerRules(BaseModel):
    states: list[str] = Field(default_factory=list)
    message: MessageRules

    @field_validator("states")
    @classmethod
    def strip_states(cls, v: list[str]) -> list[str]:
        return [s.strip() for s in v if s.strip()]


class DoubleOptInRules(HandlerRules):
    handler_id: str = "webform_double_opt_in_email"
    opt_in_globally: bool = False
    retry_failed_dispatch: bool = True

    def to_config(self) -> DoubleOptInConfig:
        return DoubleOptInConfig(
            message=self.message.to_template(),
            states=frozenset(self.states),
            opt_in_globally=self.opt_in_globally,
            retry_failed_dispatch=self.retry_failed_dispatch,
            handler_id=self.handler_id,
        )


class NotificationRules(HandlerRules):
    handler_id: str = "webform_double_opt_in_compatible_email"
    enabled: bool = True

    def to_config(self) -> NotificationConfig:
        return NotificationConfig(
            message=self.message.to_template(),
            states=frozenset(self.states),
            handler_id=self.handler_id,
        )


class HandlersRules(BaseModel):
    double_opt_in: DoubleOptInRules
    notification: NotificationRules | None = None


class StorageRules(BaseModel):
    db_path: str = "./data/submissions.db"


class ObservabilityRules(BaseModel):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_email_body: bool = True


class Rules(BaseModel):
    project: ProjectRules
    handlers: HandlersRules
    storage: StorageRules = Field(default_factory=StorageRules)
    observability: ObservabilityRules = Field(default_factory=ObservabilityRules)

    model_config = ConfigDict(extra="forbid")
