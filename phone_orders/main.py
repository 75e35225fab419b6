"""
Phone Orders — FastAPI application entrypoint
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException

from phone_orders.core.config import get_settings
from phone_orders.db.database import AsyncSessionLocal, Base, engine
from phone_orders.db.seed import seed_menu
from phone_orders.middleware.preflight import PreflightMiddleware
from phone_orders.prompts.instructions import build_instructions
from phone_orders.services.broadcast import BroadcastHub
from phone_orders.services.catalog import MenuCatalog
from phone_orders.services.pricing import PricingResolver
from phone_orders.services.submission import OrderSubmissionPipeline
from phone_orders.api import dashboard, health, orders, telephony

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        if settings.SEED_MENU_ON_STARTUP:
            await seed_menu(db, settings.MENU_SEED_FILE)
        catalog = await MenuCatalog.load(db)

    hub = BroadcastHub(send_timeout=settings.BROADCAST_SEND_TIMEOUT_SECONDS)
    app.state.catalog = catalog
    app.state.hub = hub
    app.state.instructions = build_instructions(catalog, settings.RESTAURANT_NAME)
    app.state.pipeline = OrderSubmissionPipeline(
        AsyncSessionLocal,
        PricingResolver(catalog),
        hub,
        day_timezone=settings.ORDER_DAY_TIMEZONE,
        serialize_numbering=settings.SERIALIZE_ORDER_NUMBERING,
    )
    logger.info(
        "%s %s ready: %d menu items, OpenAI key %s, Twilio credentials %s",
        settings.SERVICE_NAME, settings.SERVICE_VERSION, len(catalog),
        "loaded" if settings.OPENAI_API_KEY else "missing",
        "loaded" if settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN else "missing",
    )
    yield
    await hub.drain()
    await engine.dispose()


app = FastAPI(
    title="Phone Orders",
    description="Voice ordering for pickup: order submission, kitchen display push, call control.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=False,
                   allow_methods=["*"], allow_headers=["*"])
# Added last so it wraps CORS and answers every OPTIONS itself
app.add_middleware(PreflightMiddleware)

if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")


@app.exception_handler(HTTPException)
async def http_error(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": problems})


app.include_router(orders.router)
app.include_router(telephony.router)
app.include_router(health.router)
app.include_router(dashboard.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
