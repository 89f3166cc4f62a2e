"""Skill REST endpoints."""

from fastapi import APIRouter, Depends, Query

from skillstore.dependencies import get_skill_repo
from skillstore.repositories.skill_repo import SkillRepository
from skillstore.schemas.envelope import Envelope, ok
from skillstore.schemas.skill import (
    CreatorKind,
    SkillCreate,
    SkillDetail,
    SkillFileResponse,
    SkillResponse,
    SkillStatusUpdate,
    SkillUpdate,
    VersionListResponse,
)
from skillstore.services import skill_service

router = APIRouter()


@router.get("")
async def list_skills(
    active_only: bool | None = None,
    show_inactive: bool = False,
    limit: int = 50,
    offset: int = 0,
    query: str | None = None,
    detailed: bool = True,
    repo: SkillRepository = Depends(get_skill_repo),
):
    skills = await skill_service.list_skills(
        repo,
        active_only=active_only,
        show_inactive=show_inactive,
        limit=limit,
        offset=offset,
        query=query,
        detailed=detailed,
    )
    return ok({"skills": skills, "count": len(skills)})


@router.post("", response_model=Envelope[SkillDetail], status_code=201)
async def create_skill(data: SkillCreate, repo: SkillRepository = Depends(get_skill_repo)):
    skill = await skill_service.create_skill(repo, data, created_by=CreatorKind.HUMAN)
    return Envelope(data=skill)


@router.get("/{skill_ref}", response_model=Envelope[SkillDetail])
async def get_skill(
    skill_ref: str,
    version: int | None = Query(None, ge=1),
    repo: SkillRepository = Depends(get_skill_repo),
):
    return Envelope(data=await skill_service.get_skill(repo, skill_ref, version))


@router.patch("/{skill_ref}", response_model=Envelope[SkillResponse])
async def update_status(
    skill_ref: str, body: SkillStatusUpdate, repo: SkillRepository = Depends(get_skill_repo)
):
    return Envelope(data=await skill_service.update_status(repo, skill_ref, body.active))


@router.get("/{skill_ref}/versions", response_model=Envelope[VersionListResponse])
async def list_versions(skill_ref: str, repo: SkillRepository = Depends(get_skill_repo)):
    versions = await skill_service.list_versions(repo, skill_ref)
    return Envelope(data=VersionListResponse(versions=versions))


@router.post("/{skill_ref}/versions", response_model=Envelope[SkillDetail], status_code=201)
async def create_version(
    skill_ref: str, data: SkillUpdate, repo: SkillRepository = Depends(get_skill_repo)
):
    """Apply file changes to a skill, producing its next version."""
    data = data.model_copy(update={"skill_id": skill_ref})
    skill = await skill_service.update_skill(repo, data, created_by=CreatorKind.HUMAN)
    return Envelope(data=skill)


@router.get("/{skill_ref}/files/{path:path}", response_model=Envelope[SkillFileResponse])
async def get_file(
    skill_ref: str,
    path: str,
    version: int | None = Query(None, ge=1),
    repo: SkillRepository = Depends(get_skill_repo),
):
    return Envelope(data=await skill_service.get_file(repo, skill_ref, path, version))


@router.get(
    "/{skill_ref}/versions/{version}/files/{path:path}",
    response_model=Envelope[SkillFileResponse],
)
async def get_versioned_file(
    skill_ref: str, version: int, path: str, repo: SkillRepository = Depends(get_skill_repo)
):
    return Envelope(data=await skill_service.get_file(repo, skill_ref, path, version))
