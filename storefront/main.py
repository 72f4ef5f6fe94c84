from fastapi import FastAPI
from storefront.core.config import get_settings
from storefront.core.lifespan import lifespan
from storefront.api.v1.routers.health import router as health_router
from storefront.api.v1.routers.products import router as products_router
from storefront.api.v1.routers.cart import router as cart_router
from storefront.api.v1.routers.importer import router as import_router
from storefront.core.logging import configure_logging

from fastapi.middleware.cors import CORSMiddleware
import os

settings = get_settings()
configure_logging(debug=settings.DEBUG)

app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

# ------- CORS -------
# ALLOWED_ORIGINS is a CSV, e.g. "https://shop.example.com,https://admin.example.com"
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = [o.strip() for o in allowed_origins_env.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins if allowed_origins else [
        # Vite dev server of the storefront frontend
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["content-type", "x-admin-token", "x-user-id"],
    max_age=86400,
)

# ------- Routes -------
app.include_router(health_router)
app.include_router(products_router, prefix=settings.api_prefix)   # catalog + admin CRUD
app.include_router(cart_router, prefix=settings.api_prefix)       # cart + checkout
app.include_router(import_router, prefix=settings.api_prefix)     # admin bulk import / seed


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
