"""
Content edit mapping and validation.

Property validity is limited to the generic checks every property type has
(mandatory, validation regex). Editor-specific value semantics live outside
the workflow engine.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from contentflow.domain.entities import (
    ContentNode,
    ContentType,
    CultureVariant,
    PropertyType,
    VariantRequest,
    same_culture,
)
from contentflow.domain.errors import FieldError


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple, set)):
        return not value
    return False


def _property_valid(property_type: PropertyType, value: Any) -> bool:
    if _is_empty(value):
        return not property_type.mandatory
    if property_type.validation_regex:
        return re.search(property_type.validation_regex, str(value)) is not None
    return True


def _is_culture_property(content_type: ContentType, property_type: PropertyType) -> bool:
    return content_type.varies_by_culture and property_type.varies_by_culture


def invalid_properties(
    content_type: ContentType, node: ContentNode, culture: str | None
) -> list[str]:
    """
    Aliases of properties that fail validation for a culture.

    With ``culture=None`` only invariant properties are checked. With a culture,
    that culture's values are checked together with the invariant ones, since
    publishing any culture publishes the invariant values too.
    """
    variant = node.get_variant(culture) if culture else None
    invalid: list[str] = []
    for property_type in content_type.property_types:
        if _is_culture_property(content_type, property_type):
            if culture is None:
                continue
            value = variant.properties.get(property_type.alias) if variant else None
        else:
            value = node.properties.get(property_type.alias)
        if not _property_valid(property_type, value):
            invalid.append(property_type.alias)
    return invalid


def relevant_variants(
    content_type: ContentType, variants: Sequence[VariantRequest]
) -> list[VariantRequest]:
    """Requested variants that apply to the content type."""
    if content_type.varies_by_culture:
        # Varying types never carry an invariant entry.
        return [v for v in variants if v.culture and v.culture.strip()]
    for variant in variants:
        if variant.culture is None:
            return [variant]
    return list(variants[:1])


def apply_edits(
    node: ContentNode,
    content_type: ContentType,
    variants: Sequence[VariantRequest],
    properties: dict[str, Any] | None = None,
) -> ContentNode:
    """
    Return a copy of ``node`` with the posted names and values mapped onto it.

    Publish flags are untouched. A variant is marked edited when anything
    posted for it differs from what it holds; an invariant value change marks
    every variant edited.
    """
    invariant_values = dict(properties or {})
    new_variants = [v.model_copy(deep=True) for v in node.variants]

    for request in relevant_variants(content_type, variants):
        culture = request.culture if content_type.varies_by_culture else None
        target: CultureVariant | None = None
        for candidate in new_variants:
            if same_culture(candidate.culture, culture):
                target = candidate
                break
        if target is None:
            target = CultureVariant(culture=culture)
            new_variants.append(target)

        changed = False
        if request.name is not None and request.name != target.name:
            target.name = request.name
            changed = True

        if content_type.varies_by_culture:
            for alias, value in request.properties.items():
                if target.properties.get(alias) != value:
                    target.properties[alias] = value
                    changed = True
        else:
            invariant_values.update(request.properties)

        if changed:
            target.edited = True

    invariant_changed = any(
        node.properties.get(alias) != value for alias, value in invariant_values.items()
    )
    if invariant_changed:
        for variant in new_variants:
            variant.edited = True

    return node.model_copy(
        update={
            "variants": new_variants,
            "properties": {**node.properties, **invariant_values},
        }
    )


def check_variant_shape(node: ContentNode, content_type: ContentType) -> list[FieldError]:
    """Varying types hold culture variants only; invariant types exactly one invariant."""
    errors: list[FieldError] = []
    if content_type.varies_by_culture:
        if any(not (v.culture and v.culture.strip()) for v in node.variants):
            errors.append(
                FieldError(
                    code="invariant_variant_not_allowed",
                    message=f"Content type {content_type.alias} varies by culture",
                    field="variants",
                )
            )
    elif len(node.variants) != 1 or node.variants[0].culture is not None:
        errors.append(
            FieldError(
                code="single_invariant_variant_required",
                message=f"Content type {content_type.alias} needs exactly one invariant variant",
                field="variants",
            )
        )
    return errors


def has_required_for_persistence(node: ContentNode) -> bool:
    """A node cannot be stored at all without a name on every variant."""
    if not node.variants:
        return False
    return all(v.name and v.name.strip() for v in node.variants)


def validate_model(
    node: ContentNode,
    content_type: ContentType,
    extra_errors: Sequence[FieldError] = (),
) -> list[FieldError]:
    """
    Validate the edited node as a whole.

    Culture property values of varying types are left to the culture
    validation run at publish time.
    """
    errors = list(extra_errors)
    errors.extend(check_variant_shape(node, content_type))

    for variant in node.variants:
        if not (variant.name and variant.name.strip()):
            suffix = f".{variant.culture}" if variant.culture else ""
            errors.append(
                FieldError(code="name_required", message="Name is required", field=f"name{suffix}")
            )

    for alias in invalid_properties(content_type, node, None):
        errors.append(
            FieldError(
                code="property_invalid",
                message=f"Property {alias} is invalid",
                field=f"properties.{alias}",
            )
        )
    return errors
