"""Document service: uploads, visibility scoping, expiry tracking and templates."""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta
from typing import Optional

from fastapi import Request, UploadFile
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from workforce.auth.models import User
from workforce.common.audit import create_audit_entry
from workforce.common.constants import DOCUMENT_EXPIRY_WINDOW_DAYS, DocumentCategory
from workforce.common.dates import utcnow
from workforce.common.exceptions import ForbiddenException, NotFoundException
from workforce.common.filters import apply_search
from workforce.common.pagination import PaginatedResponse, PaginationParams, paginate
from workforce.common.storage import DOCUMENT_TYPES, save_upload
from workforce.documents.models import Document, DocumentTemplate
from workforce.documents.schemas import (
    DocumentMeta,
    DocumentOut,
    DocumentUpdate,
    TemplateCreate,
    TemplateOut,
    TemplateUpdate,
)

logger = logging.getLogger(__name__)

MAX_DOCUMENT_SIZE_MB = 10

_DOCUMENT_LOADS = (
    selectinload(Document.employee),
    selectinload(Document.assigned_to),
)


def can_view_document(
    document: Document,
    own_employee_id: Optional[uuid.UUID],
    read_all: bool,
) -> bool:
    """Owned, assigned, or unowned and non-confidential, unless *read_all*."""
    if read_all:
        return True
    if own_employee_id is not None and own_employee_id in (
        document.employee_id, document.assigned_to_id,
    ):
        return True
    return document.employee_id is None and not document.is_confidential


class DocumentService:

    @staticmethod
    def _visible_clause(own_employee_id: Optional[uuid.UUID]):
        shared = and_(Document.employee_id.is_(None), Document.is_confidential.is_(False))
        # "== None" would compile to IS NULL and match every unowned document
        if own_employee_id is None:
            return shared
        return or_(
            Document.employee_id == own_employee_id,
            Document.assigned_to_id == own_employee_id,
            shared,
        )

    @staticmethod
    async def _get_document(
        db: AsyncSession,
        document_id: uuid.UUID,
        *,
        refresh: bool = False,
    ) -> Document:
        query = (
            select(Document)
            .where(Document.id == document_id, Document.deleted_at.is_(None))
            .options(*_DOCUMENT_LOADS)
        )
        if refresh:
            query = query.execution_options(populate_existing=True)
        document = (await db.execute(query)).scalars().first()
        if document is None:
            raise NotFoundException("Document", document_id)
        return document

    @staticmethod
    async def list_documents(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        pagination: PaginationParams,
        *,
        employee_id: Optional[uuid.UUID] = None,
        category: Optional[DocumentCategory] = None,
        search: Optional[str] = None,
        expiring: bool = False,
    ) -> PaginatedResponse:
        query = (
            select(Document)
            .where(Document.deleted_at.is_(None))
            .order_by(Document.created_at.desc())
        )
        if "documents:read_all" not in permissions:
            own_id = actor.employee.id if actor.employee else None
            query = query.where(DocumentService._visible_clause(own_id))
        if employee_id is not None:
            query = query.where(Document.employee_id == employee_id)
        if category is not None:
            query = query.where(Document.category == category)
        query = apply_search(query, Document, search, ["title", "description", "file_name"])
        if expiring:
            now = utcnow()
            query = query.where(
                Document.expires_at >= now,
                Document.expires_at <= now + timedelta(days=DOCUMENT_EXPIRY_WINDOW_DAYS),
            )
        return await paginate(
            db, query, pagination,
            model=Document,
            options=_DOCUMENT_LOADS,
            transform=DocumentOut.model_validate,
        )

    @staticmethod
    async def get_document(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        document_id: uuid.UUID,
    ) -> DocumentOut:
        document = await DocumentService._get_document(db, document_id)
        own_id = actor.employee.id if actor.employee else None
        if not can_view_document(document, own_id, "documents:read_all" in permissions):
            raise ForbiddenException("You do not have access to this document.")
        return DocumentOut.model_validate(document)

    @staticmethod
    async def upload_document(
        db: AsyncSession,
        actor: User,
        meta: DocumentMeta,
        file: UploadFile,
        request: Optional[Request] = None,
    ) -> DocumentOut:
        stored = await save_upload(
            file, "documents", allowed_types=DOCUMENT_TYPES, max_size_mb=MAX_DOCUMENT_SIZE_MB,
        )
        document = Document(
            **meta.model_dump(),
            file_url=stored.url,
            file_name=stored.original_name,
            file_size=stored.size,
            mime_type=stored.mime_type,
            created_by=actor.id,
        )
        db.add(document)
        await db.flush()

        await create_audit_entry(
            db,
            action="DOCUMENT_UPLOADED",
            object_type="document",
            object_id=document.id,
            actor_id=actor.id,
            after={**meta.model_dump(), "file_name": stored.original_name},
            request=request,
        )
        return DocumentOut.model_validate(
            await DocumentService._get_document(db, document.id, refresh=True)
        )

    @staticmethod
    async def update_document(
        db: AsyncSession,
        actor: User,
        document_id: uuid.UUID,
        data: DocumentUpdate,
        request: Optional[Request] = None,
    ) -> DocumentOut:
        document = await DocumentService._get_document(db, document_id)
        changes = data.model_dump(exclude_unset=True)
        before = {field: getattr(document, field) for field in changes}
        for field, value in changes.items():
            setattr(document, field, value)
        await db.flush()

        await create_audit_entry(
            db,
            action="UPDATE",
            object_type="document",
            object_id=document.id,
            actor_id=actor.id,
            before=before,
            after=changes,
            request=request,
        )
        return DocumentOut.model_validate(
            await DocumentService._get_document(db, document.id, refresh=True)
        )

    @staticmethod
    async def delete_document(
        db: AsyncSession,
        actor: User,
        document_id: uuid.UUID,
        request: Optional[Request] = None,
    ) -> None:
        document = await DocumentService._get_document(db, document_id)
        document.deleted_at = utcnow()
        document.deleted_by = actor.id
        await db.flush()
        await create_audit_entry(
            db,
            action="DELETE",
            object_type="document",
            object_id=document.id,
            actor_id=actor.id,
            before={"title": document.title},
            request=request,
        )

    @staticmethod
    async def expiring(
        db: AsyncSession,
        actor: User,
        permissions: set[str],
        days: int = DOCUMENT_EXPIRY_WINDOW_DAYS,
    ) -> list[DocumentOut]:
        now = utcnow()
        query = (
            select(Document)
            .where(
                Document.deleted_at.is_(None),
                Document.expires_at >= now,
                Document.expires_at <= now + timedelta(days=days),
            )
            .options(*_DOCUMENT_LOADS)
            .order_by(Document.expires_at)
        )
        if "documents:read_all" not in permissions:
            own_id = actor.employee.id if actor.employee else None
            query = query.where(DocumentService._visible_clause(own_id))
        result = await db.execute(query)
        return [DocumentOut.model_validate(d) for d in result.scalars().all()]

    # ── Templates ───────────────────────────────────────────────────

    @staticmethod
    async def list_templates(
        db: AsyncSession,
        category: Optional[DocumentCategory] = None,
    ) -> list[TemplateOut]:
        query = (
            select(DocumentTemplate)
            .where(DocumentTemplate.is_active.is_(True))
            .order_by(DocumentTemplate.name)
        )
        if category is not None:
            query = query.where(DocumentTemplate.category == category)
        result = await db.execute(query)
        return [TemplateOut.model_validate(t) for t in result.scalars().all()]

    @staticmethod
    async def create_template(
        db: AsyncSession,
        actor: User,
        data: TemplateCreate,
        request: Optional[Request] = None,
    ) -> TemplateOut:
        template = DocumentTemplate(**data.model_dump())
        db.add(template)
        await db.flush()
        await create_audit_entry(
            db,
            action="CREATE",
            object_type="document_template",
            object_id=template.id,
            actor_id=actor.id,
            after={"name": data.name, "category": data.category},
            request=request,
        )
        return TemplateOut.model_validate(template)

    @staticmethod
    async def update_template(
        db: AsyncSession,
        actor: User,
        template_id: uuid.UUID,
        data: TemplateUpdate,
        request: Optional[Request] = None,
    ) -> TemplateOut:
        template = await db.get(DocumentTemplate, template_id)
        if template is None:
            raise NotFoundException("DocumentTemplate", template_id)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(template, field, value)
        await db.flush()
        await create_audit_entry(
            db,
            action="UPDATE",
            object_type="document_template",
            object_id=template.id,
            actor_id=actor.id,
            after=changes,
            request=request,
        )
        return TemplateOut.model_validate(template)
