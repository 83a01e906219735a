"""Internal template and media routes."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from ..dependencies import TemplateRegistryDep, require_internal_auth
from ..models import TemplateSubmission

router = APIRouter(
    prefix="/api/templates",
    tags=["templates"],
    dependencies=[Depends(require_internal_auth)],
)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_template(payload: TemplateSubmission, registry: TemplateRegistryDep) -> Any:
    return await registry.create_template(payload.to_upstream())


@router.get("")
async def list_templates(registry: TemplateRegistryDep) -> Any:
    return await registry.list_templates()


@router.delete("/{template_id}")
async def delete_template(template_id: str, registry: TemplateRegistryDep) -> dict[str, bool]:
    return await registry.delete_template(template_id)


@router.post("/upload")
async def upload_media(
    registry: TemplateRegistryDep,
    file: Annotated[UploadFile | None, File()] = None,
) -> dict[str, str]:
    if file is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    try:
        content = await file.read()
    finally:
        await file.close()

    file_id = await registry.upload_file(
        content,
        file.content_type or "application/octet-stream",
        filename=file.filename or "upload",
    )

    return {"fileId": file_id}
