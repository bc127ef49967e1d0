"""
Main Entry Point - FastAPI Application
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Assembla l'applicazione: logging, ciclo di vita del database,
gestione centralizzata degli errori, CORS e router /api/v1.

Avvio in sviluppo: python -m app.main (dalla cartella backend/)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import api_v1_router
from app.core.config import settings
from app.core.database import close_db, init_db, ping_db
from app.core.exceptions import AppException

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Avvio %s v%s (%s)", settings.app_name, settings.app_version, settings.app_env)
    await init_db(create_tables=settings.db_create_tables)

    yield

    await close_db()
    logger.info("Applicazione arrestata")


_docs_enabled = settings.debug or settings.is_development

app = FastAPI(
    title=settings.app_name,
    description="Gestionale pensione bestiame: clienti, animali e fatturazione mensile",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
)


# ------------------------------------------------------------
# Exception Handlers
# ------------------------------------------------------------
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Converte le eccezioni applicative nel payload {detail, error_code, extra}.

    404 risorsa assente, 409 duplicati e conflitti di numerazione,
    422 regole di fatturazione violate.
    """
    if exc.status_code >= 500:
        logger.error("Errore applicativo su %s: %s", request.url.path, exc.detail)
    else:
        logger.info("%s %s rifiutata: %s (%s)", request.method, request.url.path, exc.detail, exc.error_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Eccezione non gestita su %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Errore interno del server", "error_code": AppException.error_code},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", summary="Stato applicazione e database", tags=["System"])
async def health_check() -> dict[str, str]:
    database_ok = await ping_db()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "ok" if database_ok else "unreachable",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.app_env,
    }


app.include_router(api_v1_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.backend_port, reload=settings.debug)
