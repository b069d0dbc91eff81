from contentflow.ports.clock import ClockPort
from contentflow.ports.repo import (
    ChildrenQuery,
    ContentRepoPort,
    ContentTypeServicePort,
    DomainRepoPort,
    LanguageCatalogPort,
    NotificationPort,
    PagedResult,
    PermissionRepoPort,
    RelationRepoPort,
)

__all__ = [
    "ChildrenQuery",
    "ClockPort",
    "ContentRepoPort",
    "ContentTypeServicePort",
    "DomainRepoPort",
    "LanguageCatalogPort",
    "NotificationPort",
    "PagedResult",
    "PermissionRepoPort",
    "RelationRepoPort",
]
