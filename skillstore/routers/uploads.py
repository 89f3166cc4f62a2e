"""Archive import endpoints: parse a ZIP into a preview, then process a selection."""

from fastapi import APIRouter, Depends, File, UploadFile

from skillstore.config import settings
from skillstore.dependencies import get_session_store, get_skill_repo
from skillstore.errors import ValidationError
from skillstore.repositories.skill_repo import SkillRepository
from skillstore.schemas.envelope import Envelope
from skillstore.schemas.upload import ParseResult, ProcessRequest, ProcessResult
from skillstore.services import upload_service
from skillstore.services.session_service import SessionStore
from skillstore.utils.upload_validation import validate_archive_size

router = APIRouter()

_ZIP_CONTENT_TYPES = {"application/zip", "application/x-zip-compressed"}


@router.post("/parse", response_model=Envelope[ParseResult])
async def parse_upload(
    file: UploadFile = File(...),
    store: SessionStore = Depends(get_session_store),
):
    filename = file.filename or ""
    if not filename.lower().endswith(".zip") and file.content_type not in _ZIP_CONTENT_TYPES:
        raise ValidationError("File must be a ZIP archive")

    # Reject on the declared size before buffering the body
    if file.size is not None:
        size_check = validate_archive_size(file.size, settings.max_archive_bytes)
        if not size_check.valid:
            raise ValidationError.from_errors(size_check.errors)

    data = await file.read()
    return Envelope(data=await upload_service.parse_archive(store, data))


@router.post("/process", response_model=Envelope[ProcessResult])
async def process_upload(
    body: ProcessRequest,
    repo: SkillRepository = Depends(get_skill_repo),
    store: SessionStore = Depends(get_session_store),
):
    if not body.session_id:
        raise ValidationError("session_id is required")
    if not body.selected_skills:
        raise ValidationError("At least one skill must be selected")

    result = await upload_service.process_selected(
        repo, store, body.session_id, body.selected_skills
    )
    return Envelope(data=result)
