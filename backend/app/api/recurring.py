"""API endpoints for recurring movement templates."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_current_user_id
from app.exceptions import (
    NotAuthorizedError,
    TemplateError,
    TemplateNotFoundError,
    TemplateValidationError,
)
from app.models.movement import MovementType
from app.schemas.recurring import (
    GenerationReport,
    PreFillData,
    TemplateCreate,
    TemplateResponse,
    TemplatesByCategoryResponse,
    TemplateUpdate,
)
from app.services import generation_service, template_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recurring-movements", tags=["recurring-movements"])


def _http_error(error: TemplateError) -> HTTPException:
    if isinstance(error, TemplateValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, NotAuthorizedError):
        return HTTPException(status_code=403, detail="Not authorized")
    if isinstance(error, TemplateNotFoundError):
        return HTTPException(status_code=404, detail="Template not found")
    return HTTPException(status_code=400, detail=str(error))


@router.post("", response_model=TemplateResponse, status_code=201)
def create_template(
    data: TemplateCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a template."""
    try:
        template = template_service.create_template(db, user_id, data)
    except TemplateError as e:
        logger.info("template creation rejected user_id=%s: %s", user_id, e)
        raise _http_error(e)
    return TemplateResponse.model_validate(template)


@router.get("", response_model=List[TemplateResponse])
def list_templates(
    category_id: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    movement_type: Optional[MovementType] = Query(None),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """List the household's templates."""
    try:
        templates = template_service.list_templates(
            db, user_id, category_id=category_id, is_active=is_active, movement_type=movement_type
        )
    except TemplateError as e:
        raise _http_error(e)
    return [TemplateResponse.model_validate(t) for t in templates]


@router.get("/by-category", response_model=TemplatesByCategoryResponse)
def list_templates_grouped_by_category(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """All household templates grouped by category."""
    try:
        grouped = template_service.list_templates_by_category_map(db, user_id)
    except TemplateError as e:
        raise _http_error(e)
    return TemplatesByCategoryResponse(categories={
        category_id: [TemplateResponse.model_validate(t) for t in templates]
        for category_id, templates in grouped.items()
    })


@router.get("/by-category/{category_id}", response_model=List[TemplateResponse])
def list_templates_by_category(
    category_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Active templates of one category."""
    try:
        templates = template_service.list_templates_by_category(db, user_id, category_id)
    except TemplateError as e:
        raise _http_error(e)
    return [TemplateResponse.model_validate(t) for t in templates]


@router.post("/generate", response_model=GenerationReport)
def generate_pending(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Run a generation pass now instead of waiting for the scheduler."""
    logger.info("manual generation triggered user_id=%s", user_id)
    return generation_service.process_pending_templates(db)


@router.get("/{template_id}", response_model=TemplateResponse)
def get_template(
    template_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a single template."""
    try:
        template = template_service.get_template(db, user_id, template_id)
    except TemplateError as e:
        raise _http_error(e)
    return TemplateResponse.model_validate(template)


@router.get("/{template_id}/prefill", response_model=PreFillData)
def get_prefill_data(
    template_id: str,
    invert_roles: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Form pre-fill values for a template, optionally with roles inverted."""
    try:
        return template_service.get_prefill_data(db, user_id, template_id, invert_roles)
    except TemplateError as e:
        raise _http_error(e)


@router.patch("/{template_id}", response_model=TemplateResponse)
def update_template(
    template_id: str,
    update: TemplateUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update a template."""
    try:
        template = template_service.update_template(db, user_id, template_id, update)
    except TemplateError as e:
        logger.info("template update rejected template_id=%s user_id=%s: %s", template_id, user_id, e)
        raise _http_error(e)
    return TemplateResponse.model_validate(template)


@router.delete("/{template_id}", status_code=204)
def delete_template(
    template_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete a template. Movements it generated are kept."""
    try:
        template_service.delete_template(db, user_id, template_id)
    except TemplateError as e:
        raise _http_error(e)
    return Response(status_code=204)
