"""
Domains component unit tests.

Tests for wildcard culture assignment and hostname saving on nodes.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from contentflow.adapters.memory import (
    EventHooks,
    InMemoryContentRepo,
    InMemoryDomainRepo,
    InMemoryLanguageCatalog,
    InMemoryPermissionRepo,
)
from contentflow.components.domains import DomainEntry, DomainSaveInput, run, run_save_domains
from contentflow.domain.entities import (
    ContentNode,
    CultureVariant,
    Domain,
    Language,
    User,
    UserGroup,
)
from contentflow.domain.errors import ForbiddenError, NotFoundError, ValidationFailedError
from contentflow.domain.policy import PermissionEvaluator
from contentflow.rules.loader import load_rules

# --- Fixtures ---


@pytest.fixture
def content_repo() -> InMemoryContentRepo:
    repo = InMemoryContentRepo()
    repo.add(
        ContentNode(
            id=100, path="-1,100", content_type_id=1, variants=[CultureVariant(name="Home")]
        )
    )
    repo.add(
        ContentNode(
            id=101,
            parent_id=100,
            path="-1,100,101",
            level=2,
            content_type_id=1,
            variants=[CultureVariant(name="Shop")],
        )
    )
    repo.add(
        ContentNode(id=200, path="-1,200", content_type_id=1, variants=[CultureVariant(name="Dk")])
    )
    return repo


@pytest.fixture
def hooks() -> EventHooks:
    return EventHooks()


@pytest.fixture
def domain_repo(hooks: EventHooks) -> InMemoryDomainRepo:
    return InMemoryDomainRepo(hooks)


@pytest.fixture
def languages() -> InMemoryLanguageCatalog:
    return InMemoryLanguageCatalog(
        [
            Language(id=1, iso_code="en-US", culture_name="English", mandatory=True),
            Language(id=2, iso_code="da-DK", culture_name="Danish"),
        ]
    )


@pytest.fixture
def policy(content_repo: InMemoryContentRepo) -> PermissionEvaluator:
    rules = load_rules(Path("rules.yaml").resolve())
    return PermissionEvaluator(rules, content_repo, InMemoryPermissionRepo())


@pytest.fixture
def admin() -> User:
    group = UserGroup(id=1, alias="admin", name="Admins", default_permissions=["F", "I"])
    return User(id=1, name="Admin", groups=[group])


@pytest.fixture
def save(content_repo, domain_repo, languages, policy):
    def _save(inp: DomainSaveInput):
        return run_save_domains(inp, content_repo, domain_repo, languages, policy)

    return _save


# --- Wildcard Tests ---


class TestWildcard:
    def test_culture_creates_wildcard(self, save, admin: User, domain_repo) -> None:
        result = save(DomainSaveInput(actor=admin, node_id=101, language_id=2))

        assert result.success is True
        wildcard = domain_repo.get_by_name("*101")
        assert wildcard is not None
        assert wildcard.language_id == 2

    def test_changing_culture_updates_wildcard(self, save, admin: User, domain_repo) -> None:
        save(DomainSaveInput(actor=admin, node_id=101, language_id=2))
        save(DomainSaveInput(actor=admin, node_id=101, language_id=1))

        assigned = domain_repo.get_assigned(101)
        assert [(d.name, d.language_id) for d in assigned] == [("*101", 1)]

    def test_no_culture_removes_wildcard(self, save, admin: User, domain_repo) -> None:
        save(DomainSaveInput(actor=admin, node_id=101, language_id=2))
        save(DomainSaveInput(actor=admin, node_id=101, language_id=None))

        assert domain_repo.exists("*101") is False


# --- Hostname Tests ---


class TestHostnames:
    def test_names_are_lower_cased(self, save, admin: User, domain_repo) -> None:
        result = save(
            DomainSaveInput(
                actor=admin,
                node_id=101,
                domains=[DomainEntry(name="Shop.Example.COM", language_id=1)],
            )
        )

        assert result.valid is True
        assert domain_repo.get_by_name("shop.example.com").name == "shop.example.com"

    def test_unposted_names_are_removed(self, save, admin: User, domain_repo) -> None:
        domain_repo.save(Domain(name="old.example.com", language_id=1, root_content_id=101))
        save(
            DomainSaveInput(
                actor=admin,
                node_id=101,
                domains=[DomainEntry(name="new.example.com", language_id=1)],
            )
        )

        assert domain_repo.exists("old.example.com") is False
        assert domain_repo.exists("new.example.com") is True

    def test_duplicate_in_request(self, save, admin: User) -> None:
        result = save(
            DomainSaveInput(
                actor=admin,
                node_id=101,
                domains=[
                    DomainEntry(name="a.example.com", language_id=1),
                    DomainEntry(name="A.example.com", language_id=2),
                ],
            )
        )

        assert result.valid is False
        assert [d.duplicate for d in result.domains] == [False, True]

    def test_name_owned_elsewhere(self, save, admin: User, domain_repo) -> None:
        domain_repo.save(Domain(name="shop.example.com", language_id=1, root_content_id=101))
        result = save(
            DomainSaveInput(
                actor=admin,
                node_id=200,
                domains=[DomainEntry(name="shop.example.com", language_id=2)],
            )
        )

        assert result.valid is False
        assert result.domains[0].duplicate is True
        assert result.domains[0].other == "/Home/Shop"
        assert domain_repo.get_by_name("shop.example.com").root_content_id == 101

    def test_unknown_language_is_skipped(self, save, admin: User, domain_repo) -> None:
        result = save(
            DomainSaveInput(
                actor=admin,
                node_id=101,
                domains=[DomainEntry(name="x.example.com", language_id=9)],
            )
        )

        assert result.valid is True
        assert domain_repo.exists("x.example.com") is False

    def test_cancelled_save_fails(self, save, admin: User, hooks: EventHooks) -> None:
        hooks.cancel("saving_domain")
        with pytest.raises(ValidationFailedError):
            save(DomainSaveInput(actor=admin, node_id=101, language_id=1))


# --- Guard Tests ---


class TestGuards:
    def test_requires_assign_domain_permission(self, save) -> None:
        user = User(
            id=2,
            name="Writer",
            groups=[UserGroup(id=2, alias="writer", name="Writers", default_permissions=["F"])],
        )
        with pytest.raises(ForbiddenError):
            save(DomainSaveInput(actor=user, node_id=101, language_id=1))

    def test_unknown_node(self, save, admin: User) -> None:
        with pytest.raises(NotFoundError):
            save(DomainSaveInput(actor=admin, node_id=999))

    def test_dispatcher(
        self, admin: User, content_repo, domain_repo, languages, policy
    ) -> None:
        result = run(
            DomainSaveInput(actor=admin, node_id=101, language_id=1),
            content_repo=content_repo,
            domain_repo=domain_repo,
            languages=languages,
            policy=policy,
        )
        assert result.success is True

        with pytest.raises(ValueError):
            run(
                object(),  # type: ignore[arg-type]
                content_repo=content_repo,
                domain_repo=domain_repo,
                languages=languages,
                policy=policy,
            )
