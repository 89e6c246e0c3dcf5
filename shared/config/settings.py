import os

from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


# --- Database ---
DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("POSTGRES_HOST", "localhost")  # In Docker, this will be 'postgres'
DB_PORT = os.getenv("POSTGRES_PORT", "5432")
DB_NAME = os.getenv("POSTGRES_DB", "portfolio")

DATABASE_URL = os.getenv("DATABASE_URL") or (
    f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)
DB_ECHO = _as_bool(os.getenv("DB_ECHO"), False)

# --- Auth ---
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ISSUER = os.getenv("JWT_ISSUER", "PortfolioApi")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "PortfolioApp")
JWT_EXPIRATION_MINUTES = int(os.getenv("JWT_EXPIRATION_MINUTES", "60"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Administrator identities are configured here, never derived from registration data.
ADMIN_EMAILS = {email.lower() for email in _as_list(os.getenv("ADMIN_EMAILS"))}

RATE_LIMIT_ENABLED = _as_bool(os.getenv("RATE_LIMIT_ENABLED"), True)
AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "10/minute")

ALLOWED_ORIGINS = _as_list(os.getenv("ALLOWED_ORIGINS")) or [
    "http://localhost:4200",
    "http://localhost:4201",
    "https://localhost:4200",
]

# --- Observability ---
SERVICE_NAME = os.getenv("SERVICE_NAME", "portfolio_api")
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "")

# --- Payments ---
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY", "")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "usd")

# --- Email ---
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
EMAIL_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "Portfolio Contact")
EMAIL_SENDER_ADDRESS = os.getenv("EMAIL_SENDER_ADDRESS", "noreply@example.com")
EMAIL_ADMIN_ADDRESS = os.getenv("EMAIL_ADMIN_ADDRESS", "")
EMAIL_MAX_ATTEMPTS = int(os.getenv("EMAIL_MAX_ATTEMPTS", "3"))

# --- GitHub ---
GITHUB_USERNAME = os.getenv("GITHUB_USERNAME", "octocat")
GITHUB_API_BASE = os.getenv("GITHUB_API_BASE", "https://api.github.com")

# --- Demo data ---
SEED_DEMO_DATA = _as_bool(os.getenv("SEED_DEMO_DATA"), True)
