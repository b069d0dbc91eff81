"""
contentflow - publication workflow engine for a multi-language content tree.

Decides whether an edit may be saved, published, sent for approval, moved,
copied, sorted or deleted, reconciling per-culture publish state, path based
permissions and hierarchy rules. Persistence and transport sit behind the
ports in ``contentflow.ports``.
"""

__version__ = "0.1.0"
