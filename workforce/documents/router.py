"""Document router: multipart uploads, listing, expiry and templates."""

import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.auth.dependencies import get_current_permissions, require_permission
from workforce.auth.models import User
from workforce.common.constants import DocumentCategory
from workforce.common.pagination import PaginatedResponse, PaginationParams
from workforce.database import get_db
from workforce.documents.schemas import (
    DocumentMeta,
    DocumentOut,
    DocumentUpdate,
    TemplateCreate,
    TemplateOut,
    TemplateUpdate,
)
from workforce.documents.service import DocumentService

router = APIRouter(prefix="", tags=["documents"])


@router.get("", response_model=PaginatedResponse[DocumentOut])
async def list_documents(
    employee_id: Optional[uuid.UUID] = Query(None),
    category: Optional[DocumentCategory] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    expiring: bool = Query(False),
    pagination: PaginationParams = Depends(),
    user: User = Depends(require_permission("documents:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await DocumentService.list_documents(
        db, user, permissions, pagination,
        employee_id=employee_id, category=category, search=search, expiring=expiring,
    )


@router.post("", response_model=DocumentOut, status_code=201)
async def upload_document(
    request: Request,
    file: UploadFile = File(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    category: DocumentCategory = Form(DocumentCategory.OTHER),
    employee_id: Optional[uuid.UUID] = Form(None),
    assigned_to_id: Optional[uuid.UUID] = Form(None),
    template_id: Optional[uuid.UUID] = Form(None),
    expires_at: Optional[datetime] = Form(None),
    is_confidential: bool = Form(False),
    user: User = Depends(require_permission("documents:write")),
    db: AsyncSession = Depends(get_db),
):
    meta = DocumentMeta(
        title=title,
        description=description,
        category=category,
        employee_id=employee_id,
        assigned_to_id=assigned_to_id,
        template_id=template_id,
        expires_at=expires_at,
        is_confidential=is_confidential,
    )
    return await DocumentService.upload_document(db, user, meta, file, request)


@router.get("/expiring", response_model=list[DocumentOut])
async def expiring_documents(
    days: int = Query(30, ge=1, le=365),
    user: User = Depends(require_permission("documents:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await DocumentService.expiring(db, user, permissions, days)


@router.get("/templates", response_model=list[TemplateOut])
async def list_templates(
    category: Optional[DocumentCategory] = Query(None),
    user: User = Depends(require_permission("documents:read")),
    db: AsyncSession = Depends(get_db),
):
    return await DocumentService.list_templates(db, category)


@router.post("/templates", response_model=TemplateOut, status_code=201)
async def create_template(
    body: TemplateCreate,
    request: Request,
    user: User = Depends(require_permission("documents:write")),
    db: AsyncSession = Depends(get_db),
):
    return await DocumentService.create_template(db, user, body, request)


@router.patch("/templates/{template_id}", response_model=TemplateOut)
async def update_template(
    template_id: uuid.UUID,
    body: TemplateUpdate,
    request: Request,
    user: User = Depends(require_permission("documents:write")),
    db: AsyncSession = Depends(get_db),
):
    return await DocumentService.update_template(db, user, template_id, body, request)


@router.get("/{document_id}", response_model=DocumentOut)
async def get_document(
    document_id: uuid.UUID,
    user: User = Depends(require_permission("documents:read")),
    permissions: set[str] = Depends(get_current_permissions),
    db: AsyncSession = Depends(get_db),
):
    return await DocumentService.get_document(db, user, permissions, document_id)


@router.patch("/{document_id}", response_model=DocumentOut)
async def update_document(
    document_id: uuid.UUID,
    body: DocumentUpdate,
    request: Request,
    user: User = Depends(require_permission("documents:write")),
    db: AsyncSession = Depends(get_db),
):
    return await DocumentService.update_document(db, user, document_id, body, request)


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    document_id: uuid.UUID,
    request: Request,
    user: User = Depends(require_permission("documents:delete")),
    db: AsyncSession = Depends(get_db),
):
    await DocumentService.delete_document(db, user, document_id, request)
