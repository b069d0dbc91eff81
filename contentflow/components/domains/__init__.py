"""
Domains component - culture and hostname assignment for content nodes.
"""

from .component import run, run_save_domains
from .models import DomainEntry, DomainSaveInput, DomainSaveOutput
from .ports import ContentRepoPort, DomainRepoPort, LanguageCatalogPort

__all__ = [
    # Entry points
    "run",
    "run_save_domains",
    # Models
    "DomainEntry",
    "DomainSaveInput",
    "DomainSaveOutput",
    # Ports
    "ContentRepoPort",
    "DomainRepoPort",
    "LanguageCatalogPort",
]
