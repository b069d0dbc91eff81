"""
Hierarchy invariants and subtree rewrites for move, copy, sort and trash,
plus the type rules for switching a node to another content type.

Paths are materialized as comma-joined ancestor ids ending in the node's own
id; every rewrite keeps path, parent, level and trashed flag consistent.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from contentflow.domain.entities import (
    RECYCLE_BIN_ID,
    ROOT_ID,
    ContentNode,
    ContentType,
    PublicationState,
    join_path,
    split_path,
)
from contentflow.domain.errors import (
    FieldError,
    InvalidTransitionError,
    NotFoundError,
    StructuralViolationError,
    ValidationFailedError,
)
from contentflow.domain.validation import invalid_properties

NOT_ALLOWED_AT_ROOT = "not_allowed_at_root"
NOT_ALLOWED_BY_CONTENT_TYPE = "not_allowed_by_content_type"
NOT_ALLOWED_BY_PATH = "not_allowed_by_path"
NOT_ALLOWED_IN_RECYCLE_BIN = "not_allowed_in_recycle_bin"
NOT_A_CHILD = "not_a_child"
DUPLICATE_SORT_ID = "duplicate_sort_id"

ROOT_PATH = str(ROOT_ID)
RECYCLE_BIN_PATH = join_path([ROOT_ID, RECYCLE_BIN_ID])


@dataclass(frozen=True)
class MoveCheck:
    ok: bool
    reason: str | None = None


def is_ancestor(node_id: int, path: str) -> bool:
    return f",{node_id}," in f",{path},"


def level_of(path: str) -> int:
    return len(split_path(path)) - 1


def validate_move(
    node: ContentNode,
    node_type: ContentType,
    new_parent_id: int,
    parent: ContentNode | None = None,
    parent_type: ContentType | None = None,
) -> MoveCheck:
    """
    Check that ``node`` may live under ``new_parent_id``.

    Used for copies as well. The recycle bin is never a target; trashing goes
    through delete.
    """
    if new_parent_id == RECYCLE_BIN_ID:
        return MoveCheck(False, NOT_ALLOWED_IN_RECYCLE_BIN)

    if new_parent_id < 0:
        if not node_type.allowed_as_root:
            return MoveCheck(False, NOT_ALLOWED_AT_ROOT)
        return MoveCheck(True)

    if parent is None or parent_type is None:
        raise NotFoundError("Parent", new_parent_id)
    if parent.trashed:
        return MoveCheck(False, NOT_ALLOWED_IN_RECYCLE_BIN)
    if not parent_type.allows_child(node_type.id):
        return MoveCheck(False, NOT_ALLOWED_BY_CONTENT_TYPE)
    if is_ancestor(node.id, parent.path):
        return MoveCheck(False, NOT_ALLOWED_BY_PATH)
    return MoveCheck(True)


def ensure_move_allowed(check: MoveCheck) -> None:
    if not check.ok:
        raise StructuralViolationError(check.reason or NOT_ALLOWED_BY_CONTENT_TYPE)


def _relocated(
    node: ContentNode, parent_id: int, path: str, *, sort_order: int | None = None
) -> ContentNode:
    trashed = RECYCLE_BIN_ID in split_path(path)
    updates: dict[str, object] = {
        "parent_id": parent_id,
        "path": path,
        "level": level_of(path),
        "trashed": trashed,
    }
    if sort_order is not None:
        updates["sort_order"] = sort_order
    if trashed and not node.trashed:
        updates["variants"] = [v.model_copy(update={"published": False}) for v in node.variants]
    return node.model_copy(update=updates)


def rebase_subtree(
    node: ContentNode,
    descendants: Sequence[ContentNode],
    new_parent_id: int,
    new_parent_path: str,
    *,
    sort_order: int,
) -> list[ContentNode]:
    """Rewrite paths of ``node`` and its descendants below a new parent."""
    old_prefix = node.path
    new_path = f"{new_parent_path},{node.id}"
    moved = [_relocated(node, new_parent_id, new_path, sort_order=sort_order)]
    for descendant in descendants:
        suffix = descendant.path[len(old_prefix):]
        moved.append(_relocated(descendant, descendant.parent_id, new_path + suffix))
    return moved


def trash_subtree(node: ContentNode, descendants: Sequence[ContentNode]) -> list[ContentNode]:
    """Move a subtree under the recycle bin, unpublishing every variant."""
    return rebase_subtree(node, descendants, RECYCLE_BIN_ID, RECYCLE_BIN_PATH, sort_order=0)


def ensure_hard_delete(node: ContentNode) -> None:
    if not node.trashed:
        raise InvalidTransitionError(PublicationState.DRAFT.value, PublicationState.DELETED.value)


def _clone(
    node: ContentNode,
    new_id: int,
    parent_id: int,
    parent_path: str,
    now: datetime,
    sort_order: int,
) -> ContentNode:
    path = f"{parent_path},{new_id}"
    return node.model_copy(
        update={
            "id": new_id,
            "key": uuid4(),
            "parent_id": parent_id,
            "path": path,
            "level": level_of(path),
            "sort_order": sort_order,
            "trashed": False,
            "variants": [
                v.model_copy(update={"published": False, "edited": True}, deep=True)
                for v in node.variants
            ],
            "properties": dict(node.properties),
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
    )


def copy_subtree(
    node: ContentNode,
    descendants: Sequence[ContentNode],
    parent_id: int,
    parent_path: str,
    *,
    allocate_id: Callable[[], int],
    recursive: bool,
    sort_order: int,
    now: datetime,
) -> list[ContentNode]:
    """
    Unpublished copies of ``node`` (and its descendants when recursive).

    Relative structure and sort order are kept; the source is not touched.
    """
    top = _clone(node, allocate_id(), parent_id, parent_path, now, sort_order)
    copies = [top]
    if not recursive:
        return copies

    copied_paths = {node.id: (top.id, top.path)}
    for descendant in sorted(descendants, key=lambda n: (n.level, n.sort_order)):
        parent_copy = copied_paths.get(descendant.parent_id)
        if parent_copy is None:
            continue
        copy_parent_id, copy_parent_path = parent_copy
        clone = _clone(
            descendant,
            allocate_id(),
            copy_parent_id,
            copy_parent_path,
            now,
            descendant.sort_order,
        )
        copied_paths[descendant.id] = (clone.id, clone.path)
        copies.append(clone)
    return copies


def apply_sort(children: Sequence[ContentNode], ordered_ids: Sequence[int]) -> list[ContentNode]:
    """Reorder children of one parent; every id must be one of its children."""
    if len(set(ordered_ids)) != len(ordered_ids):
        raise StructuralViolationError(DUPLICATE_SORT_ID)
    by_id = {child.id: child for child in children}
    missing = [i for i in ordered_ids if i not in by_id]
    if missing:
        raise StructuralViolationError(NOT_A_CHILD, f"Nodes {missing} are not children")
    return [
        by_id[node_id].model_copy(update={"sort_order": index})
        for index, node_id in enumerate(ordered_ids)
    ]


def name_path(nodes_top_down: Sequence[ContentNode]) -> str:
    """Human readable location, e.g. ``/Recycle Bin/Home/About``."""
    names: list[str] = []
    for node in nodes_top_down:
        if node.parent_id == RECYCLE_BIN_ID:
            names.append("Recycle Bin")
        names.append(node.name)
    return "/" + "/".join(names)


# --- Content type change ---


def available_content_types(
    node: ContentNode,
    current_type: ContentType,
    candidates: Sequence[ContentType],
    parent_type: ContentType | None,
    child_type_ids: Iterable[int],
) -> list[ContentType]:
    """
    Types ``node`` can switch to without breaking the tree rules.

    A candidate must be allowed where the node sits (at root, or below the
    parent's type) and must itself allow every type among the node's
    children. Culture variation has to match, since variants are kept.
    """
    child_ids = set(child_type_ids)
    available: list[ContentType] = []
    for candidate in candidates:
        if candidate.id == node.content_type_id:
            continue
        if candidate.varies_by_culture != current_type.varies_by_culture:
            continue
        if node.parent_id == ROOT_ID:
            if not candidate.allowed_as_root:
                continue
        elif parent_type is None or not parent_type.allows_child(candidate.id):
            continue
        if not child_ids.issubset(candidate.allowed_child_type_ids):
            continue
        available.append(candidate)
    return available


def _varies(content_type: ContentType, alias: str) -> bool:
    for property_type in content_type.property_types:
        if property_type.alias == alias:
            return content_type.varies_by_culture and property_type.varies_by_culture
    return False


def _check_field_map(
    current_type: ContentType, new_type: ContentType, field_map: Mapping[str, str | None]
) -> list[FieldError]:
    current_aliases = {p.alias for p in current_type.property_types}
    new_aliases = {p.alias for p in new_type.property_types}
    targets = [target for target in field_map.values() if target]

    errors: list[FieldError] = []
    for alias in sorted({t for t in targets if targets.count(t) > 1}):
        errors.append(
            FieldError(
                code="property_mapped_twice",
                message=f"Property {alias} has more than one mapping",
                field=f"field_map.{alias}",
            )
        )
    for source, target in field_map.items():
        if not target:
            continue
        if source not in current_aliases or target not in new_aliases:
            errors.append(
                FieldError(
                    code="property_unknown",
                    message=f"Cannot map property {source} to {target}",
                    field=f"field_map.{source}",
                )
            )
        elif _varies(current_type, source) != _varies(new_type, target):
            errors.append(
                FieldError(
                    code="property_variation_mismatch",
                    message=f"Properties {source} and {target} differ in culture variation",
                    field=f"field_map.{source}",
                )
            )
    return errors


def change_content_type(
    node: ContentNode,
    current_type: ContentType,
    new_type: ContentType,
    field_map: Mapping[str, str | None],
) -> ContentNode:
    """
    Switch ``node`` to ``new_type``, keeping only the mapped property values.

    ``field_map`` maps current aliases to new ones; unmapped values are
    dropped. Published variants stay published, so their values must be
    valid for the new type; other variants are marked edited.
    """
    errors = _check_field_map(current_type, new_type, field_map)
    if errors:
        raise ValidationFailedError(errors)

    mapped = {source: target for source, target in field_map.items() if target}

    def remap(values: Mapping[str, object]) -> dict[str, object]:
        return {target: values[source] for source, target in mapped.items() if source in values}

    changed = node.model_copy(
        update={
            "content_type_id": new_type.id,
            "properties": remap(node.properties),
            "variants": [
                variant.model_copy(
                    update={
                        "properties": remap(variant.properties),
                        "edited": not variant.published,
                    }
                )
                for variant in node.variants
            ],
        }
    )

    invalid: list[FieldError] = []
    for culture in node.published_cultures:
        for alias in invalid_properties(new_type, changed, culture):
            suffix = f".{culture}" if culture else ""
            invalid.append(
                FieldError(
                    code="property_invalid",
                    message=f"Property {alias} is invalid for {new_type.alias}",
                    field=f"properties.{alias}{suffix}",
                )
            )
    if invalid:
        raise ValidationFailedError(invalid)
    return changed
