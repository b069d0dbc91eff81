from contentflow.ports import ContentRepoPort, DomainRepoPort, LanguageCatalogPort

__all__ = ["ContentRepoPort", "DomainRepoPort", "LanguageCatalogPort"]
