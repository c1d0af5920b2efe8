import logging
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from goalmates.config import get_settings
from goalmates.domain.entities import User
from goalmates.domain.errors import NotificationValidationError
from goalmates.infrastructure.database import SessionLocal, engine, initialize_database
from goalmates.infrastructure.notifications import (
    NotificationEmailQueue,
    NotificationEmailWorker,
)
from goalmates.infrastructure.realtime import (
    ChatGateway,
    NotificationPublisher,
    NotificationsGateway,
)
from goalmates.infrastructure.repositories import UserRepository
from goalmates.infrastructure.security import decode_user_id
from goalmates.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)

# Pending email jobs get this long to finish on shutdown; the rest is dropped.
_SHUTDOWN_GRACE_SECONDS = 5


def _load_user(user_id: int) -> User | None:
    session = SessionLocal()
    try:
        return UserRepository(session).get(user_id)
    finally:
        session.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, wire the realtime gateways and start the email worker."""

    settings = get_settings()
    initialize_database()

    notifications_gateway = NotificationsGateway(
        token_verifier=decode_user_id, user_loader=_load_user
    )
    chat_gateway = ChatGateway(token_verifier=decode_user_id, user_loader=_load_user)
    email_queue = NotificationEmailQueue()
    NotificationEmailWorker(
        email_queue,
        SessionLocal,
        send_timeout=settings.notification_email_timeout_seconds,
    )

    app.state.notifications_gateway = notifications_gateway
    app.state.chat_gateway = chat_gateway
    app.state.notification_publisher = NotificationPublisher(notifications_gateway)
    app.state.notification_email_queue = email_queue
    yield

    with anyio.move_on_after(_SHUTDOWN_GRACE_SECONDS):
        await email_queue.join()
    if email_queue.pending_count:
        logger.warning(
            "Dropping %s pending notification email jobs on shutdown",
            email_queue.pending_count,
        )
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(title="GoalMates API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotificationValidationError)
    async def handle_validation_error(
        request: Request, exc: NotificationValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)}
        )

    register_routes(app)
    return app


app = create_app()
