"""
HotelOS application entry point
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from hotelos import __version__
from hotelos.config import settings
from hotelos.database import init_db
from hotelos.routers import auth, availability, rooms, guests, bookings, billing, checkout, invoices

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: logging, schema, event handlers, notification channels"""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    init_db()

    from hotelos.services.event_handlers import register_event_handlers
    register_event_handlers()

    if settings.EMAIL_ENABLED:
        from core.notification import notification_channels
        from hotelos.notification import EmailChannel
        notification_channels.register(EmailChannel.from_settings(settings))
        logger.info(f"Email channel registered ({settings.SMTP_HOST}:{settings.SMTP_PORT})")
    else:
        logger.info("Email disabled; invoices are stored but not emailed")

    logger.info(f"{settings.APP_NAME} {__version__} started")
    yield
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="Hotel reservation and billing engine",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(availability.router)
app.include_router(rooms.router)
app.include_router(guests.router)
app.include_router(bookings.router)
app.include_router(billing.router)
app.include_router(checkout.router)
app.include_router(invoices.router)

# Stored invoice documents, addressed by INVOICE_PUBLIC_BASE_URL
app.mount(
    "/static/invoices",
    StaticFiles(directory=settings.INVOICE_STORAGE_DIR, check_dir=False),
    name="invoices",
)


@app.get("/")
def root():
    return {"name": settings.APP_NAME, "version": __version__}


@app.get("/health")
def health():
    return {"status": "healthy"}
