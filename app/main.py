import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core import config
from app.core.exceptions import WebhookSignatureInvalid
from app.core.logging_config import sanitize_log_data, setup_logging
from app.core.route_guard import RouteGuardMiddleware
from app.db.migrate import prepare_database

# ✅ Import All API Routes
from app.api.routes import (
    auth,
    billing,
    billing_webhook,
    candidates,
    health,
    interviews,
    jobs,
    reports,
    team,
    usage,
)

setup_logging(config.LOG_LEVEL)
logger = logging.getLogger(__name__)


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="TalentHub API")

app.add_middleware(RouteGuardMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "Stripe-Signature"],
)


@app.exception_handler(WebhookSignatureInvalid)
async def webhook_signature_invalid_handler(request: Request, exc: WebhookSignatureInvalid):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.on_event("startup")
def on_startup():
    settings = sanitize_log_data({
        "database_url": config.DATABASE_URL,
        "app_url": config.APP_URL,
        "stripe_secret_key": config.STRIPE_SECRET_KEY,
        "run_migrations": config.RUN_MIGRATIONS,
    })
    logger.info(f"Starting TalentHub API: {settings}")
    prepare_database()


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(billing.router)
app.include_router(billing_webhook.router)
app.include_router(usage.router)
app.include_router(jobs.router)
app.include_router(candidates.router)
app.include_router(interviews.router)
app.include_router(team.router)
app.include_router(reports.router)
app.include_router(health.router)


# ============================================
# ✅ HEALTH CHECK ROOT ENDPOINT
# ============================================

@app.get("/")
def root():
    return {"status": "TalentHub API running"}
