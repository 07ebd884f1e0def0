"""
Publication endpoints - thin router over PublicationService.

Several menus may be current at one location at the same time; turning one
off is always an explicit PATCH or DELETE.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from menu_api.models import Location, MenuPublication
from menu_api.routers.admin._base import load_guarded, require_location_scope
from menu_api.routers.admin_schemas import (
    ActivationOutcomeOutput,
    BatchActivationOutput,
    LineNodeOutput,
    MenuOutput,
    PublicationBatch,
    PublicationCreate,
    PublicationOutput,
    PublicationUpdate,
    PublishedMenuOutput,
)
from menu_api.services.domain import PublicationService
from menu_api.services.permissions import (
    AuthorizationGuard,
    PermissionKey,
    Principal,
    RequirePermission,
    get_guard,
)
from shared.infrastructure.db import get_db

router = APIRouter(tags=["admin-publications"])


@router.get("/publications", response_model=list[PublicationOutput])
def list_publications(
    location_id: int | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(RequirePermission(PermissionKey.PUBLICATION_READ)),
) -> list[PublicationOutput]:
    if location_id is not None:
        require_location_scope(principal, location_id)
    publications = PublicationService(db).list_publications(principal.tenant_id, location_id)
    return [PublicationOutput.model_validate(p) for p in publications]


@router.get("/locations/{location_id}/menus", response_model=list[MenuOutput])
def current_menus(
    location_id: int,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> list[MenuOutput]:
    """Menus live at a location right now."""
    principal, _ = load_guarded(
        db, guard, Location, location_id, PermissionKey.PUBLICATION_READ, "Location"
    )
    require_location_scope(principal, location_id)
    menus = PublicationService(db).current_menus(principal.tenant_id, location_id)
    return [MenuOutput.model_validate(m) for m in menus]


@router.get("/locations/{location_id}/published", response_model=list[PublishedMenuOutput])
def published_menu(
    location_id: int,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> list[PublishedMenuOutput]:
    """Live menus as guests see them: disabled lines and hidden items left out."""
    principal, _ = load_guarded(
        db, guard, Location, location_id, PermissionKey.PUBLICATION_READ, "Location"
    )
    require_location_scope(principal, location_id)
    published = PublicationService(db).published_menu(principal.tenant_id, location_id)
    return [
        PublishedMenuOutput(
            **MenuOutput.model_validate(p.menu).model_dump(),
            lines=[LineNodeOutput.from_node(node) for node in p.lines],
        )
        for p in published
    ]


@router.post(
    "/publications",
    response_model=PublicationOutput,
    status_code=status.HTTP_201_CREATED,
)
def activate(
    body: PublicationCreate,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> PublicationOutput:
    """Idempotent: re-activating an existing pair flips it back to current."""
    principal, _ = load_guarded(
        db, guard, Location, body.location_id, PermissionKey.PUBLICATION_CREATE, "Location"
    )
    require_location_scope(principal, body.location_id)
    publication = PublicationService(db).activate(
        principal.tenant_id, body.location_id, body.menu_id, actor=principal
    )
    return PublicationOutput.model_validate(publication)


@router.post("/publications/batch", response_model=BatchActivationOutput)
def activate_many(
    body: PublicationBatch,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> BatchActivationOutput:
    """Per-menu outcome; one failure does not stop the batch."""
    principal, _ = load_guarded(
        db, guard, Location, body.location_id, PermissionKey.PUBLICATION_CREATE, "Location"
    )
    require_location_scope(principal, body.location_id)
    result = PublicationService(db).activate_many(
        principal.tenant_id, body.location_id, body.menu_ids, actor=principal
    )
    return BatchActivationOutput(
        location_id=result.location_id,
        succeeded=result.succeeded,
        failed=result.failed,
        outcomes=[
            ActivationOutcomeOutput(
                menu_id=o.menu_id,
                ok=o.ok,
                publication_id=o.publication_id,
                error=o.error,
            )
            for o in result.outcomes
        ],
    )


@router.patch("/publications/{publication_id}", response_model=PublicationOutput)
def update_publication(
    publication_id: int,
    body: PublicationUpdate,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> PublicationOutput:
    principal, publication = load_guarded(
        db, guard, MenuPublication, publication_id, PermissionKey.PUBLICATION_UPDATE, "Publication"
    )
    require_location_scope(principal, publication.location_id)
    service = PublicationService(db)
    if body.is_current:
        publication = service.activate(
            principal.tenant_id, publication.location_id, publication.menu_id, actor=principal
        )
    else:
        publication = service.deactivate(principal.tenant_id, publication_id, actor=principal)
    return PublicationOutput.model_validate(publication)


@router.delete("/publications/{publication_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_publication(
    publication_id: int,
    db: Session = Depends(get_db),
    guard: AuthorizationGuard = Depends(get_guard),
) -> None:
    principal, publication = load_guarded(
        db, guard, MenuPublication, publication_id, PermissionKey.PUBLICATION_DELETE, "Publication"
    )
    require_location_scope(principal, publication.location_id)
    PublicationService(db).delete(principal.tenant_id, publication_id, actor=principal)
