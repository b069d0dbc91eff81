from pydantic import BaseModel, Field, field_validator

from contentflow.domain.entities import ContentAction


def _check_letter(code: str) -> str:
    if len(code) != 1:
        raise ValueError(f"permission codes are single characters, got {code!r}")
    return code


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class PermissionLetters(BaseModel):
    browse: str = "F"
    create: str = "C"
    update: str = "A"
    publish: str = "U"
    send_to_publish: str = "H"
    delete: str = "D"
    move: str = "M"
    copy: str = "C"
    sort: str = "S"
    rights: str = "R"
    assign_domain: str = "I"

    @field_validator("*")
    @classmethod
    def _single_letter(cls, value: str) -> str:
        return _check_letter(value)


class PermissionRules(BaseModel):
    letters: PermissionLetters = Field(default_factory=PermissionLetters)
    # Required codes per content action; creating actions are checked on the parent.
    actions: dict[ContentAction, list[str]]

    @field_validator("actions")
    @classmethod
    def _action_letters(
        cls, value: dict[ContentAction, list[str]]
    ) -> dict[ContentAction, list[str]]:
        missing = [a.value for a in ContentAction if a not in value]
        if missing:
            raise ValueError(f"permissions missing for actions: {', '.join(missing)}")
        for codes in value.values():
            for code in codes:
                _check_letter(code)
        return value

    def for_action(self, action: ContentAction) -> tuple[str, ...]:
        return tuple(self.actions[action])


class LoggingRules(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Rules(BaseModel):
    project: ProjectRules
    permissions: PermissionRules
    logging: LoggingRules = Field(default_factory=LoggingRules)
