import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from app.db.session import init_db
from app.errors import ErpError
from app.routes import articles, clients, dashboard, documents, movement, notifications, orders, stock, users

log = logging.getLogger("uvicorn.error")

app = FastAPI(
    title="Molige ERP API",
    version="1.0.0",
)
log.info("[BOOT] Molige ERP API")


# ----------------------------
#  CORS
# ----------------------------
origins_env = os.getenv("CORS_ORIGINS", "")
allowed_origins = [o.strip() for o in origins_env.split(",") if o.strip()] if origins_env else ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------------
#  ERREURS MÉTIER
# ----------------------------
@app.exception_handler(ErpError)
def erp_error_handler(request: Request, exc: ErpError) -> JSONResponse:
    if exc.http_status >= 500:
        log.error("❌ %s %s failed", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


# ----------------------------
#  ROUTES
# ----------------------------
app.include_router(articles.router)
app.include_router(clients.router)
app.include_router(orders.router)
app.include_router(documents.router)
app.include_router(stock.router)
app.include_router(movement.router)
app.include_router(dashboard.router)
app.include_router(notifications.router)
app.include_router(users.router)


@app.get("/")
def root():
    return {
        "ok": True,
        "service": "Molige ERP API",
        "docs": "/docs",
        "health": "/health",
    }


@app.head("/")
def root_head():
    return Response(status_code=200)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.head("/health")
def health_head():
    return Response(status_code=200)


# ----------------------------
#  STARTUP
# ----------------------------
@app.on_event("startup")
def on_startup() -> None:
    init_db()
