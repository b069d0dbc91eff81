"""Publish component - applies editor actions to the publication state of content."""

from contentflow.components.publish.component import PublishComponent, run
from contentflow.components.publish.models import (
    ApplyActionInput,
    ApplyActionOutput,
    PublishByIdInput,
    PublishByIdOutput,
    PublishResult,
    UnpublishInput,
    UnpublishOutput,
)
from contentflow.components.publish.ports import (
    ClockPort,
    ContentRepoPort,
    ContentTypeServicePort,
    LanguageCatalogPort,
    PermissionGatePort,
)

__all__ = [
    # Entry point
    "run",
    # Component
    "PublishComponent",
    # Models
    "ApplyActionInput",
    "ApplyActionOutput",
    "PublishByIdInput",
    "PublishByIdOutput",
    "PublishResult",
    "UnpublishInput",
    "UnpublishOutput",
    # Ports
    "ClockPort",
    "ContentRepoPort",
    "ContentTypeServicePort",
    "LanguageCatalogPort",
    "PermissionGatePort",
]
