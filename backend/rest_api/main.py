"""
POS REST API.

    uvicorn rest_api.main:app --port 8000
"""

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from shared.config.settings import settings
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler
from rest_api.core import (
    configure_cors,
    lifespan,
    register_exception_handlers,
    register_middlewares,
)
from rest_api.routers.health import router as health_router
from rest_api.routers.orders import router as orders_router
from rest_api.routers.payments import router as payments_router
from rest_api.routers.stock import router as stock_router
from rest_api.routers.tables import router as tables_router


app = FastAPI(
    title="POS Restaurante API",
    description="Order lifecycle and settlement engine for the restaurant POS",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting: global default via middleware, per-route limits via decorators
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

configure_cors(app)
register_middlewares(app)
register_exception_handlers(app)

for router in (health_router, orders_router, payments_router, tables_router, stock_router):
    app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )
