from datetime import UTC, datetime
from pathlib import Path

import pytest

from contentflow.adapters.clock import FixedClock
from contentflow.app_shell.context import WorkflowContext
from contentflow.domain.entities import (
    ContentNode,
    ContentType,
    CultureVariant,
    Language,
    PropertyType,
    User,
    UserGroup,
)
from contentflow.rules.loader import load_rules

PAGE = 10
ARTICLE = 11
LOCALIZED = 20

EN, DA, FR = "en-US", "da-DK", "fr-FR"


@pytest.fixture
def rules():
    # Load REAL rules from project root; tests run from there.
    rules_path = Path("rules.yaml").resolve()
    if not rules_path.exists():
        raise FileNotFoundError(f"Rules not found at {rules_path}")
    return load_rules(rules_path)


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def languages():
    return [
        Language(id=1, iso_code=EN, culture_name="English", mandatory=True, is_default=True),
        Language(id=2, iso_code=DA, culture_name="Danish"),
        Language(id=3, iso_code=FR, culture_name="French"),
    ]


@pytest.fixture
def content_types():
    return {
        PAGE: ContentType(
            id=PAGE,
            alias="page",
            allowed_as_root=True,
            allowed_child_type_ids=[PAGE, ARTICLE, LOCALIZED],
            property_types=[PropertyType(alias="title", mandatory=True)],
        ),
        ARTICLE: ContentType(
            id=ARTICLE,
            alias="article",
            property_types=[PropertyType(alias="body")],
        ),
        LOCALIZED: ContentType(
            id=LOCALIZED,
            alias="localizedPage",
            varies_by_culture=True,
            allowed_as_root=True,
            allowed_child_type_ids=[LOCALIZED],
            property_types=[
                PropertyType(alias="headline", mandatory=True, varies_by_culture=True),
                PropertyType(alias="code", validation_regex=r"^\d+$"),
            ],
        ),
    }


@pytest.fixture
def editors():
    return UserGroup(
        id=1,
        alias="editor",
        name="Editors",
        default_permissions=["F", "C", "A", "U", "H", "D", "M", "S", "R", "I"],
    )


@pytest.fixture
def writers():
    return UserGroup(id=2, alias="writer", name="Writers", default_permissions=["F", "C", "A", "H"])


@pytest.fixture
def admin(editors):
    return User(id=1, name="Admin", groups=[editors])


@pytest.fixture
def writer(writers):
    return User(id=2, name="Writer", groups=[writers])


@pytest.fixture
def ctx(rules, clock, languages, content_types, editors, writers):
    """
    Context over in-memory adapters with a small tree:

    -1
    ├── 1050 Home (page, published)
    │   └── 1051 About (page, draft)
    │       └── 1052 Team (article, draft)
    └── 1060 Site (localized, en-US published, da-DK draft)
    """
    context = WorkflowContext.create(rules, clock=clock)
    for content_type in content_types.values():
        context.content_types.add(content_type)
    for language in languages:
        context.languages.add(language)
    context.permission_repo.add_group(editors)
    context.permission_repo.add_group(writers)

    repo = context.content_repo
    repo.add(
        ContentNode(
            id=1050,
            parent_id=-1,
            path="-1,1050",
            content_type_id=PAGE,
            variants=[CultureVariant(name="Home", published=True, edited=False)],
            properties={"title": "Home"},
        )
    )
    repo.add(
        ContentNode(
            id=1051,
            parent_id=1050,
            path="-1,1050,1051",
            level=2,
            content_type_id=PAGE,
            variants=[CultureVariant(name="About")],
            properties={"title": "About us"},
        )
    )
    repo.add(
        ContentNode(
            id=1052,
            parent_id=1051,
            path="-1,1050,1051,1052",
            level=3,
            content_type_id=ARTICLE,
            variants=[CultureVariant(name="Team")],
        )
    )
    repo.add(
        ContentNode(
            id=1060,
            parent_id=-1,
            path="-1,1060",
            sort_order=1,
            content_type_id=LOCALIZED,
            variants=[
                CultureVariant(
                    culture=EN,
                    name="Site",
                    published=True,
                    edited=False,
                    properties={"headline": "Welcome"},
                ),
                CultureVariant(culture=DA, name="Websted", properties={"headline": "Velkommen"}),
            ],
        )
    )
    return context
