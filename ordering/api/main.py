"""
FastAPI app assembly: logging, middleware and router wiring.
"""
import logging
import os

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)

from ordering.api.activity import router as activity_router
from ordering.api.admin_loyalty import router as admin_loyalty_router
from ordering.api.admin_menu import router as admin_menu_router
from ordering.api.admin_notifications import router as admin_notifications_router
from ordering.api.admin_orders import router as admin_orders_router
from ordering.api.admin_promotions import router as admin_promotions_router
from ordering.api.admin_restaurants import router as admin_restaurants_router
from ordering.api.audits import router as audits_router
from ordering.api.cart import router as cart_router
from ordering.api.customer_auth import router as customer_auth_router
from ordering.api.me import router as me_router
from ordering.api.menu import router as menu_router
from ordering.api.orders import router as orders_router
from ordering.api.restaurants import router as restaurants_router
from ordering.api.roles import router as roles_router
from ordering.utils.feature_flags import get_feature_flags
from ordering.utils.runtime import dev_mode_requested

# Database schema is managed by Alembic migrations.

app = FastAPI(
    title="Restaurant Ordering Service",
    description="Menu, cart, checkout, loyalty and staff administration API.",
    version="1.0.0",
)

# Avoid implicit trailing-slash redirects for predictable URLs
app.router.redirect_slashes = False


def _cors_origins() -> list:
    raw = os.getenv("CORS_ORIGINS", "")
    configured = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return configured or [
        "http://localhost",
        "http://localhost:3000",
        "http://localhost:8000",
    ]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_WRITE_METHODS = ("POST", "PUT", "PATCH", "DELETE")
_PUBLIC_WRITE_PREFIXES = ("/auth/register", "/auth/login", "/menu/")


# Middleware: anonymous callers may only read
@app.middleware("http")
async def enforce_readonly_for_guests(request: Request, call_next):
    if request.method in _WRITE_METHODS and not dev_mode_requested():
        path = request.url.path or ""
        if path != "/health" and not path.startswith(_PUBLIC_WRITE_PREFIXES):
            h = request.headers
            staff_present = (
                h.get("x-auth-request-user")
                or h.get("x-auth-request-email")
                or h.get("x-forwarded-user")
                or h.get("x-forwarded-email")
            )
            # Customer bearer tokens are validated by route dependencies
            token_present = h.get("authorization")
            if not staff_present and not token_present:
                return JSONResponse(
                    {"detail": "Guest mode is read-only. Sign in to perform changes."},
                    status_code=status.HTTP_401_UNAUTHORIZED,
                )
    return await call_next(request)


app.include_router(customer_auth_router)
app.include_router(menu_router)
app.include_router(restaurants_router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(me_router)
app.include_router(admin_menu_router)
app.include_router(admin_promotions_router)
app.include_router(admin_restaurants_router)
app.include_router(admin_orders_router)
app.include_router(admin_loyalty_router)
app.include_router(admin_notifications_router)
app.include_router(roles_router)
app.include_router(activity_router)
app.include_router(audits_router)


@app.get("/features")
def feature_flags():
    return dict(get_feature_flags())


@app.get("/health")
def health_check():
    return {"status": "ok", "service": "ordering-service"}
