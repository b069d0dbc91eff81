import logging
from dataclasses import replace

from contentflow.domain.entities import Domain, Language, OperationStatus
from contentflow.domain.errors import (
    FieldError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from contentflow.domain.hierarchy import name_path
from contentflow.domain.policy import PermissionEvaluator

from .models import DomainEntry, DomainSaveInput, DomainSaveOutput
from .ports import ContentRepoPort, DomainRepoPort, LanguageCatalogPort

logger = logging.getLogger(__name__)


def _save(domain_repo: DomainRepoPort, domain: Domain) -> None:
    status = domain_repo.save(domain)
    if status != OperationStatus.SUCCESS:
        raise ValidationFailedError(
            [
                FieldError(
                    code="domain_save_failed",
                    message=f"Saving domain {domain.name} failed: {status.value}",
                    field="domains",
                )
            ]
        )


def _delete(domain_repo: DomainRepoPort, domain: Domain) -> None:
    status = domain_repo.delete(domain)
    if status != OperationStatus.SUCCESS:
        logger.warning("Deleting domain %s did not commit: %s", domain.name, status.value)


def _owner_path(content_repo: ContentRepoPort, domain: Domain) -> str | None:
    if domain.root_content_id is None:
        return None
    owner = content_repo.get_by_id(domain.root_content_id)
    if owner is None:
        return None
    by_id = {n.id: n for n in content_repo.get_many([i for i in owner.path_ids if i > 0])}
    return name_path([by_id[i] for i in owner.path_ids if i in by_id])


def _find_language(languages: list[Language], language_id: int | None) -> Language | None:
    if not language_id or language_id <= 0:
        return None
    return next((lang for lang in languages if lang.id == language_id), None)


def run_save_domains(
    inp: DomainSaveInput,
    content_repo: ContentRepoPort,
    domain_repo: DomainRepoPort,
    languages: LanguageCatalogPort,
    policy: PermissionEvaluator,
) -> DomainSaveOutput:
    """
    Assign the wildcard culture and hostnames of a node.

    Hostnames owned by another node are flagged as duplicates and left
    alone; ``valid`` is False when any entry is a duplicate.
    """
    node = content_repo.get_by_id(inp.node_id)
    if node is None:
        raise NotFoundError("Content", inp.node_id)

    granted = policy.permissions_for_path(inp.actor, node.path).get_permissions(node.id)
    if policy.letters.assign_domain not in granted:
        raise ForbiddenError(
            "You do not have permission to assign domains on that node.", node_id=node.id
        )

    assigned = domain_repo.get_assigned(node.id, include_wildcards=True)
    catalog = languages.get_all()
    wildcard = next((d for d in assigned if d.is_wildcard), None)

    language = _find_language(catalog, inp.language_id)
    if language is not None:
        if wildcard is not None:
            wildcard = wildcard.model_copy(update={"language_id": language.id})
        else:
            wildcard = Domain(
                name=f"*{node.id}", language_id=language.id, root_content_id=node.id
            )
        _save(domain_repo, wildcard)
    elif wildcard is not None:
        _delete(domain_repo, wildcard)

    posted = {entry.name.lower() for entry in inp.domains}
    for domain in assigned:
        if not domain.is_wildcard and domain.name.lower() not in posted:
            _delete(domain_repo, domain)

    seen: set[str] = set()
    results: list[DomainEntry] = []
    for entry in inp.domains:
        entry_language = _find_language(catalog, entry.language_id)
        if not entry.name.strip() or entry_language is None:
            results.append(entry)
            continue

        name = entry.name.lower()
        if name in seen:
            results.append(replace(entry, duplicate=True))
            continue
        seen.add(name)

        existing = next((d for d in assigned if d.name.lower() == name), None)
        if existing is not None:
            _save(domain_repo, existing.model_copy(update={"language_id": entry_language.id}))
            results.append(entry)
        elif domain_repo.exists(name):
            other = domain_repo.get_by_name(name)
            owner = _owner_path(content_repo, other) if other else None
            results.append(replace(entry, duplicate=True, other=owner))
        else:
            _save(
                domain_repo,
                Domain(name=name, language_id=entry_language.id, root_content_id=node.id),
            )
            results.append(entry)

    valid = not any(e.duplicate for e in results)
    logger.info("Saved %d domains for node %s (valid=%s)", len(seen), node.id, valid)
    return DomainSaveOutput(
        node_id=node.id,
        language_id=inp.language_id,
        domains=results,
        valid=valid,
        success=True,
    )


def run(
    inp: DomainSaveInput,
    *,
    content_repo: ContentRepoPort,
    domain_repo: DomainRepoPort,
    languages: LanguageCatalogPort,
    policy: PermissionEvaluator,
) -> DomainSaveOutput:
    if isinstance(inp, DomainSaveInput):
        return run_save_domains(inp, content_repo, domain_repo, languages, policy)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
