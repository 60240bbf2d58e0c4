from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portfolio_api import __version__
from portfolio_api.api.catalog import certifications_router, courses_router, projects_router, skills_router
from portfolio_api.api.errors import register_error_handlers
from portfolio_api.auth import ADMIN_ONLY, PUBLIC, CredentialService, bootstrap_admin_if_needed, guard
from portfolio_api.auth.security import TokenService
from portfolio_api.config import Config, load_config
from portfolio_api.contacts import ContactNotifier, ContactService
from portfolio_api.db import connect, get_database, init_db, ping
from portfolio_api.errors import Unauthenticated
from portfolio_api.notify.email import EmailNotifier
from portfolio_api.resources import CertificationService, CourseService, ProjectService, SkillService
from portfolio_api.schemas import ContactCreate, LoginRequest, RegisterRequest

log = logging.getLogger("portfolio.api")


@dataclass
class Services:
    credentials: CredentialService
    skills: SkillService
    projects: ProjectService
    courses: CourseService
    certifications: CertificationService
    contacts: ContactService


def build_services(database: Any, cfg: Config, notifier: Optional[ContactNotifier]) -> Services:
    tokens = TokenService(secret=cfg.JWT_SECRET, expires_minutes=cfg.JWT_EXPIRES_MINUTES)
    return Services(
        credentials=CredentialService(database, tokens),
        skills=SkillService(database),
        projects=ProjectService(database),
        courses=CourseService(database),
        certifications=CertificationService(database),
        contacts=ContactService(database, notifier),
    )


def _services(request: Request) -> Services:
    return request.app.state.services


def create_app(
    cfg: Optional[Config] = None,
    *,
    database: Any = None,
    notifier: Optional[ContactNotifier] = None,
) -> FastAPI:
    """Build the API.

    With no arguments (how uvicorn calls it) the config comes from the environment and
    a MongoDB client is opened from MONGODB_URI. Tests pass their own database and
    notifier.
    """

    cfg = cfg or load_config()
    client = None
    if database is None:
        client = connect(cfg.MONGODB_URI)
        database = get_database(client)
    if notifier is None:
        notifier = EmailNotifier(cfg)

    services = build_services(database, cfg, notifier)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await init_db(database)
        except Exception:
            log.exception("Could not ensure indexes (is MongoDB reachable?)")

        boot = await bootstrap_admin_if_needed(database, cfg)
        if boot:
            log.info("Bootstrapped initial admin user: username=%s role=%s", boot.get("username"), boot.get("role"))

        if isinstance(notifier, EmailNotifier) and not notifier.configured:
            log.warning("SMTP_HOST/ADMIN_EMAIL not set: contact notifications are disabled")

        yield

        await services.contacts.drain()
        if client is not None:
            await client.close()

    app = FastAPI(title="Portfolio API", version=__version__, lifespan=lifespan)
    app.state.cfg = cfg
    app.state.services = services

    if cfg.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cfg.cors_origins,
            allow_credentials="*" not in cfg.cors_origins,
            allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
            allow_headers=["*"],
        )

    register_error_handlers(app, cfg)

    prefix = cfg.API_PREFIX.rstrip("/")
    app.include_router(_health_router(database, cfg), prefix=prefix)
    app.include_router(_auth_router(cfg), prefix=prefix)
    app.include_router(_contacts_router(), prefix=prefix)
    app.include_router(skills_router(), prefix=prefix)
    app.include_router(projects_router(), prefix=prefix)
    app.include_router(courses_router(), prefix=prefix)
    app.include_router(certifications_router(), prefix=prefix)
    return app


# -----------------------------
# Health
# -----------------------------


def _health_router(database: Any, cfg: Config) -> APIRouter:
    router = APIRouter(tags=["health"])

    @router.get("/health", dependencies=[Depends(guard(PUBLIC))])
    async def health() -> JSONResponse:
        timeout = cfg.HEALTH_DB_TIMEOUT_SECONDS
        try:
            await ping(database, timeout=timeout)
        except asyncio.TimeoutError:
            down = {"status": "down", "message": f"Timeout after {int(timeout * 1000)}ms"}
        except Exception as e:
            down = {"status": "down", "message": str(e) or e.__class__.__name__}
        else:
            up = {"mongodb": {"status": "up"}}
            return JSONResponse({"status": "ok", "info": up, "error": {}, "details": up})

        log.warning("Health check failed: mongodb %s", down["message"])
        err = {"mongodb": down}
        return JSONResponse(
            status_code=503,
            content={"status": "error", "info": {}, "error": err, "details": err},
        )

    return router


# -----------------------------
# Auth
# -----------------------------


def _auth_router(cfg: Config) -> APIRouter:
    router = APIRouter(prefix="/auth", tags=["auth"])

    # register() defaults the role to "admin": open registration is opt-in.
    register_access = PUBLIC if cfg.AUTH_PUBLIC_REGISTRATION else ADMIN_ONLY

    @router.post("/login", dependencies=[Depends(guard(PUBLIC))])
    async def auth_login(payload: LoginRequest, services: Services = Depends(_services)) -> Dict[str, Any]:
        return await services.credentials.login(payload.username, payload.password)

    @router.post("/register", status_code=201, dependencies=[Depends(guard(register_access))])
    async def auth_register(payload: RegisterRequest, services: Services = Depends(_services)) -> Dict[str, Any]:
        return await services.credentials.register(payload.username, payload.password, payload.role)

    @router.get("/validate", dependencies=[Depends(guard(PUBLIC))])
    async def auth_validate(
        authorization: Optional[str] = Header(None),
        services: Services = Depends(_services),
    ) -> Dict[str, Any]:
        if not authorization:
            raise Unauthenticated("Token not provided")
        token = authorization.strip()
        if token.lower().startswith("bearer "):
            token = token[7:].strip()
        return await services.credentials.validate_token(token)

    return router


# -----------------------------
# Contacts
# -----------------------------


def _contacts_router() -> APIRouter:
    router = APIRouter(prefix="/contacts", tags=["contacts"])
    admin = [Depends(guard(ADMIN_ONLY))]

    @router.post("", status_code=201, dependencies=[Depends(guard(PUBLIC))])
    async def create_contact(payload: ContactCreate, services: Services = Depends(_services)) -> Dict[str, Any]:
        contact = await services.contacts.create(payload)
        return {"message": "Message sent successfully!", "data": contact}

    @router.get("", dependencies=admin)
    async def list_contacts(services: Services = Depends(_services)) -> Dict[str, Any]:
        contacts: List[Dict[str, Any]] = await services.contacts.list()
        return {"data": contacts, "count": len(contacts)}

    @router.get("/{contact_id}", dependencies=admin)
    async def get_contact(contact_id: str, services: Services = Depends(_services)) -> Dict[str, Any]:
        return {"data": await services.contacts.get(contact_id)}

    @router.patch("/{contact_id}/read", dependencies=admin)
    async def mark_contact_read(contact_id: str, services: Services = Depends(_services)) -> Dict[str, Any]:
        contact = await services.contacts.mark_read(contact_id)
        return {"message": "Message marked as read", "data": contact}

    @router.patch("/{contact_id}/toggle-read", dependencies=admin)
    async def toggle_contact_read(contact_id: str, services: Services = Depends(_services)) -> Dict[str, Any]:
        contact = await services.contacts.toggle_read(contact_id)
        message = "Message marked as read" if contact.get("read") else "Message marked as unread"
        return {"message": message, "data": contact}

    @router.delete("/{contact_id}", status_code=204, dependencies=admin)
    async def delete_contact(contact_id: str, services: Services = Depends(_services)) -> Response:
        await services.contacts.delete(contact_id)
        return Response(status_code=204)

    return router
