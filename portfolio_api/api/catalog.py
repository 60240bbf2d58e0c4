# No `from __future__ import annotations` in this module: the create routes annotate
# their body with a DTO class held in a local variable, which FastAPI evaluates at
# definition time.

from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from portfolio_api.auth import ADMIN_ONLY, PUBLIC, guard
from portfolio_api.models import CERTIFICATION, COURSE, PROJECT, SKILL, ResourceSpec
from portfolio_api.resources import (
    CertificationService,
    CourseService,
    ProjectService,
    ResourceService,
    SkillService,
)


def _service(attr: str) -> Callable[[Request], Any]:
    def _get(request: Request) -> Any:
        return getattr(request.app.state.services, attr)

    return _get


def _add_crud_routes(router: APIRouter, attr: str, spec: ResourceSpec) -> None:
    """Admin listing, get-by-id and the admin write routes shared by every catalog resource.

    Call after the resource's fixed-path GET routes (`/stats`, `/years`) so `/{doc_id}`
    does not shadow them.
    """

    get_service = _service(attr)
    create_model = spec.create_model

    @router.get("/admin/all", dependencies=[Depends(guard(ADMIN_ONLY))])
    async def list_all(svc: ResourceService = Depends(get_service)) -> List[Dict[str, Any]]:
        return await svc.list_all()

    @router.get("/{doc_id}", dependencies=[Depends(guard(PUBLIC))])
    async def get_one(doc_id: str, svc: ResourceService = Depends(get_service)) -> Dict[str, Any]:
        return await svc.get(doc_id)

    @router.post("", status_code=201, dependencies=[Depends(guard(ADMIN_ONLY))])
    async def create(
        payload: create_model,  # type: ignore[valid-type]
        svc: ResourceService = Depends(get_service),
    ) -> Dict[str, Any]:
        return await svc.create(payload)

    @router.put("/{doc_id}", dependencies=[Depends(guard(ADMIN_ONLY))])
    async def update(
        doc_id: str,
        payload: Dict[str, Any] = Body(...),
        svc: ResourceService = Depends(get_service),
    ) -> Dict[str, Any]:
        # Raw body: ResourceService.update sanitizes before validating.
        return await svc.update(doc_id, payload)

    @router.delete("/{doc_id}", dependencies=[Depends(guard(ADMIN_ONLY))])
    async def remove(doc_id: str, svc: ResourceService = Depends(get_service)) -> Dict[str, Any]:
        await svc.remove(doc_id)
        return {"ok": True}


# -----------------------------
# Skills
# -----------------------------


def skills_router() -> APIRouter:
    router = APIRouter(prefix="/skills", tags=["skills"])

    @router.get("", dependencies=[Depends(guard(PUBLIC))])
    async def list_skills(
        category: Optional[str] = Query(None),
        svc: SkillService = Depends(_service("skills")),
    ) -> List[Dict[str, Any]]:
        return await svc.list(category=category)

    _add_crud_routes(router, "skills", SKILL)
    return router


# -----------------------------
# Projects
# -----------------------------


def projects_router() -> APIRouter:
    router = APIRouter(prefix="/projects", tags=["projects"])

    @router.get("", dependencies=[Depends(guard(PUBLIC))])
    async def list_projects(
        category: Optional[str] = Query(None),
        featured: Optional[bool] = Query(None),
        svc: ProjectService = Depends(_service("projects")),
    ) -> List[Dict[str, Any]]:
        return await svc.list(category=category, featured=featured)

    @router.get("/stats", dependencies=[Depends(guard(PUBLIC))])
    async def project_stats(svc: ProjectService = Depends(_service("projects"))) -> Dict[str, Any]:
        return await svc.stats()

    _add_crud_routes(router, "projects", PROJECT)
    return router


# -----------------------------
# Courses
# -----------------------------


def courses_router() -> APIRouter:
    router = APIRouter(prefix="/courses", tags=["courses"])

    @router.get("", dependencies=[Depends(guard(PUBLIC))])
    async def list_courses(
        year: Optional[str] = Query(None),
        svc: CourseService = Depends(_service("courses")),
    ) -> List[Dict[str, Any]]:
        return await svc.list(year=year)

    @router.get("/years", dependencies=[Depends(guard(PUBLIC))])
    async def course_years(svc: CourseService = Depends(_service("courses"))) -> List[str]:
        return await svc.years()

    _add_crud_routes(router, "courses", COURSE)
    return router


# -----------------------------
# Certifications
# -----------------------------


def certifications_router() -> APIRouter:
    router = APIRouter(prefix="/certifications", tags=["certifications"])

    @router.get("", dependencies=[Depends(guard(PUBLIC))])
    async def list_certifications(
        issuer: Optional[str] = Query(None),
        svc: CertificationService = Depends(_service("certifications")),
    ) -> List[Dict[str, Any]]:
        return await svc.list(issuer=issuer)

    @router.get("/stats", dependencies=[Depends(guard(PUBLIC))])
    async def certification_stats(
        svc: CertificationService = Depends(_service("certifications")),
    ) -> Dict[str, Any]:
        return await svc.stats()

    _add_crud_routes(router, "certifications", CERTIFICATION)
    return router
