from contentflow.ports import (
    ClockPort,
    ContentRepoPort,
    ContentTypeServicePort,
    NotificationPort,
    RelationRepoPort,
)

__all__ = [
    "ClockPort",
    "ContentRepoPort",
    "ContentTypeServicePort",
    "NotificationPort",
    "RelationRepoPort",
]
