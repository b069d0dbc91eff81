from __future__ import annotations

from dataclasses import dataclass, field

from contentflow.adapters.clock import SystemClock
from contentflow.adapters.memory import (
    EventHooks,
    InMemoryContentRepo,
    InMemoryContentTypes,
    InMemoryDomainRepo,
    InMemoryLanguageCatalog,
    InMemoryPermissionRepo,
    InMemoryRelationRepo,
    RecordingNotifier,
)
from contentflow.components.publish import PublishComponent
from contentflow.domain.policy import PermissionEvaluator
from contentflow.ports import (
    ClockPort,
    ContentRepoPort,
    ContentTypeServicePort,
    DomainRepoPort,
    LanguageCatalogPort,
    NotificationPort,
    PermissionRepoPort,
    RelationRepoPort,
)
from contentflow.rules.models import Rules


@dataclass
class WorkflowContext:
    rules: Rules
    content_repo: ContentRepoPort
    content_types: ContentTypeServicePort
    languages: LanguageCatalogPort
    permission_repo: PermissionRepoPort
    domain_repo: DomainRepoPort
    relation_repo: RelationRepoPort
    notifier: NotificationPort
    clock: ClockPort
    policy: PermissionEvaluator
    publish: PublishComponent
    hooks: EventHooks = field(default_factory=EventHooks)

    @classmethod
    def create(cls, rules: Rules, clock: ClockPort | None = None) -> WorkflowContext:
        """Wire the evaluator and components over the in-memory adapters."""
        hooks = EventHooks()
        content_repo = InMemoryContentRepo(hooks)
        content_types = InMemoryContentTypes()
        languages = InMemoryLanguageCatalog()
        permission_repo = InMemoryPermissionRepo()
        clock = clock or SystemClock()

        policy = PermissionEvaluator(rules, content_repo, permission_repo)
        publish = PublishComponent(
            content_repo=content_repo,
            content_types=content_types,
            languages=languages,
            permissions=policy,
            clock=clock,
        )
        return cls(
            rules=rules,
            content_repo=content_repo,
            content_types=content_types,
            languages=languages,
            permission_repo=permission_repo,
            domain_repo=InMemoryDomainRepo(hooks),
            relation_repo=InMemoryRelationRepo(),
            notifier=RecordingNotifier(),
            clock=clock,
            policy=policy,
            publish=publish,
            hooks=hooks,
        )
