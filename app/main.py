from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging

# Import database components
from app.database.database import engine, Base
from app.dependencies.dbDependecies import db_dependency

# Import middleware
from app.common.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.common.dates import now_utc

# Import routers
from app.modules.auth.router import auth_router
from app.modules.users.router import router as users_router
from app.modules.establishments.router import router as establishments_router
from app.modules.services.router import services_router, sub_services_router
from app.modules.clients.router import router as clients_router
from app.modules.schedulings.router import router as schedulings_router
from app.modules.sales.router import router as sales_router
from app.modules.commissions.router import router as commissions_router
from app.modules.expenses.router import router as expenses_router
from app.modules.employees.router import router as employees_router
from app.modules.plans.router import router as plans_router
from app.modules.payments.router import router as payments_router
from app.modules.dashboard.router import router as dashboard_router
from app.modules.support.router import router as support_router

# Import models for table creation
import app.modules.auth.models
import app.modules.establishments.models
import app.modules.services.models
import app.modules.clients.models
import app.modules.schedulings.models
import app.modules.sales.models
import app.modules.commissions.models
import app.modules.expenses.models
import app.modules.plans.models
import app.modules.payments.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="API multi-tenant para gestión de salones: agendamientos, clientes, ventas, comisiones y planes",
    version="1.0.0",
    contact={
        "name": "Suporte",
        "email": settings.SUPPORT_EMAIL
    },
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL, "http://localhost:4200"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(establishments_router)
app.include_router(services_router)
app.include_router(sub_services_router)
app.include_router(clients_router)
app.include_router(schedulings_router)
app.include_router(sales_router)
app.include_router(commissions_router)
app.include_router(expenses_router)
app.include_router(employees_router)
app.include_router(plans_router)
app.include_router(payments_router)
app.include_router(dashboard_router)
app.include_router(support_router)

# Create database tables (only for development - use migrations in production)
if settings.ENVIRONMENT == "development":
    Base.metadata.create_all(bind=engine)


@app.get("/")
async def read_root():
    return {
        "message": f"{settings.APP_NAME} is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check(db: db_dependency):
    """Estado de la API y de la conexión a la base de datos."""
    payload = {
        "status": "ok",
        "application": settings.APP_NAME,
        "database": "connected",
        "timestamp": now_utc().isoformat(),
    }
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check: database unavailable: {e}")
        payload["status"] = "error"
        payload["database"] = "disconnected"
        return JSONResponse(status_code=503, content=payload)
    return payload


@app.on_event("startup")
async def startup_event():
    logger.info(f"{settings.APP_NAME} starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    if not settings.mercadopago_configured:
        logger.warning("MERCADOPAGO_ACCESS_TOKEN not set: /payments will answer 503")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"{settings.APP_NAME} shutting down...")
