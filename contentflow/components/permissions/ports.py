from contentflow.ports import ContentRepoPort, PermissionRepoPort

__all__ = ["ContentRepoPort", "PermissionRepoPort"]
