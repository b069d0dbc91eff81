"""
Culture validation for publish requests on culture-varying content.

Mandatory languages are checked first against the requested variants and the
already published cultures. Only when they pass is each requested culture
validated, in request order, stopping at the first invalid one.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal

from contentflow.domain.entities import (
    ContentNode,
    ContentType,
    Language,
    VariantRequest,
    same_culture,
)
from contentflow.domain.errors import NotFoundError
from contentflow.domain.validation import invalid_properties, relevant_variants

FailureReason = Literal["mandatory_culture_missing", "culture_invalid"]


@dataclass(frozen=True)
class CultureValidation:
    ok: bool
    failing_culture: str | None = None
    reason: FailureReason | None = None
    valid_cultures: tuple[str, ...] = ()
    invalid_properties: tuple[str, ...] = field(default_factory=tuple)


def _find_language(languages: Sequence[Language], culture: str) -> Language | None:
    for language in languages:
        if same_culture(language.iso_code, culture):
            return language
    return None


def is_mandatory(culture: str | None, languages: Sequence[Language]) -> bool:
    if culture is None:
        return False
    language = _find_language(languages, culture)
    return bool(language and language.mandatory)


def ensure_known_cultures(
    content_type: ContentType,
    requested: Sequence[VariantRequest],
    languages: Sequence[Language],
) -> list[VariantRequest]:
    """Requested culture variants, raising NotFoundError for a culture not in the catalog."""
    culture_variants = relevant_variants(content_type, requested)
    if not content_type.varies_by_culture:
        return culture_variants
    for variant in culture_variants:
        if variant.culture is None or _find_language(languages, variant.culture) is None:
            raise NotFoundError("Language", variant.culture)
    return culture_variants


def validate_for_publish(
    node: ContentNode,
    content_type: ContentType,
    requested: Sequence[VariantRequest],
    languages: Sequence[Language],
) -> CultureValidation:
    """
    Decide whether the requested culture publishes may go ahead.

    ``node`` must already carry the posted edits. Variants implicitly published
    by cascading rules elsewhere are not considered.
    """
    if not content_type.varies_by_culture:
        return CultureValidation(ok=True)

    culture_variants = ensure_known_cultures(content_type, requested, languages)

    for language in languages:
        if not language.mandatory:
            continue
        requested_publish = any(
            v.publish and same_culture(v.culture, language.iso_code) for v in culture_variants
        )
        if not requested_publish and not node.is_culture_published(language.iso_code):
            return CultureValidation(
                ok=False,
                failing_culture=language.iso_code,
                reason="mandatory_culture_missing",
            )

    valid: list[str] = []
    for variant in culture_variants:
        if not variant.publish or variant.culture is None:
            continue
        invalid = invalid_properties(content_type, node, variant.culture)
        if invalid:
            return CultureValidation(
                ok=False,
                failing_culture=variant.culture,
                reason="culture_invalid",
                valid_cultures=tuple(valid),
                invalid_properties=tuple(invalid),
            )
        valid.append(variant.culture)

    return CultureValidation(ok=True, valid_cultures=tuple(valid))
