import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./talenthub.db")
# Privileged credential, used only by the billing webhook (bypasses tenant scoping)
SERVICE_DATABASE_URL = os.getenv("SERVICE_DATABASE_URL") or DATABASE_URL
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# ✅ Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_TIMEOUT_SECONDS = int(os.getenv("STRIPE_TIMEOUT_SECONDS", "10"))

# ✅ Application
APP_URL = os.getenv("APP_URL", "http://localhost:3000").rstrip("/")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ✅ Subscription lifecycle
TRIAL_PERIOD_DAYS = int(os.getenv("TRIAL_PERIOD_DAYS", "14"))
INVITATION_TTL_DAYS = int(os.getenv("INVITATION_TTL_DAYS", "7"))
