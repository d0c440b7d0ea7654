"""
FarmFlow - FastAPI Backend
Hauptanwendung und Router-Konfiguration
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from farmflow.config import get_settings
from farmflow.core.exceptions import FarmFlowError
from farmflow.database import engine, Base
from farmflow.api.v1 import crops, orders, standing_orders, batches, tasks, planning, dashboard

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup und Shutdown Events"""
    # Startup: Tabellen erstellen (für Entwicklung)
    # In Produktion: Alembic Migrations verwenden
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    ## FarmFlow API

    Produktionsplanung für Microgreens- und Pilzfarmen.

    ### Features
    - **Bestellungen**: Automatische Aufgaben- und Chargenplanung ab Liefertermin
    - **Daueraufträge**: Wiederkehrende Bestellungen nach Wochentagen
    - **Produktion**: Chargen mit Zustandsautomat, Ernten und Umlagerungen
    - **Planung**: Aussaatplan mit Ausschusspuffer, Kapazität und Prognose

    ### Authentifizierung
    Bearer Token (JWT) mit Mandanten-Claim
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health Check
@app.get("/health", tags=["System"])
async def health_check():
    """
    Systemstatus prüfen.
    Wird von Load Balancer und Monitoring abgefragt.
    """
    return {"status": "healthy", "version": settings.app_version}


@app.get("/", tags=["System"])
async def root():
    """API Root - Zeigt Willkommensnachricht"""
    return {
        "message": "Willkommen bei FarmFlow",
        "version": settings.app_version,
        "docs": "/docs",
    }


# API Router einbinden
app.include_router(
    crops.router,
    prefix="/api/v1/crops",
    tags=["Kulturen"]
)

app.include_router(
    orders.router,
    prefix="/api/v1/orders",
    tags=["Bestellungen"]
)

app.include_router(
    standing_orders.router,
    prefix="/api/v1/standing-orders",
    tags=["Daueraufträge"]
)

app.include_router(
    batches.router,
    prefix="/api/v1/batches",
    tags=["Produktion"]
)

app.include_router(
    tasks.router,
    prefix="/api/v1/tasks",
    tags=["Aufgaben"]
)

app.include_router(
    planning.router,
    prefix="/api/v1/planning",
    tags=["Planung"]
)

app.include_router(
    dashboard.router,
    prefix="/api/v1/dashboard",
    tags=["Dashboard"]
)


# Exception Handler
@app.exception_handler(FarmFlowError)
async def farmflow_exception_handler(request: Request, exc: FarmFlowError):
    """Fachliche Fehler mit passendem Statuscode"""
    logger.info(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Globaler Exception Handler"""
    logger.exception(f"Unerwarteter Fehler bei {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Ein interner Fehler ist aufgetreten.",
            "error": str(exc) if settings.debug else None
        }
    )
