from contentflow.ports import ChildrenQuery, ClockPort, ContentRepoPort, PagedResult

__all__ = ["ChildrenQuery", "ClockPort", "ContentRepoPort", "PagedResult"]
