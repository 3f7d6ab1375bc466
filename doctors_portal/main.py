import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from doctors_portal.core import config
from doctors_portal.database import build_engine, build_session_factory, create_schema
from doctors_portal.routes import auth_routes, availability_routes, booking_routes, doctor_routes, user_routes
from doctors_portal.services.notifications import EmailNotifier, NotificationSender

logger = logging.getLogger(__name__)


def create_app(database_url: str | None = None, notifier: NotificationSender | None = None) -> FastAPI:
    config.validate_runtime_config()
    logging.basicConfig(level=config.LOG_LEVEL.upper())

    engine = build_engine(database_url or config.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        try:
            create_schema(engine)
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')
        yield
        engine.dispose()

    app = FastAPI(title='Doctors Portal', lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    app.state.session_factory = build_session_factory(engine)
    app.state.notifier = notifier or EmailNotifier()

    @app.get('/')
    def root():
        return {'status': 'Doctors Portal Server is running'}

    app.include_router(auth_routes.router, prefix='/auth')
    app.include_router(availability_routes.router, prefix='/availability')
    app.include_router(booking_routes.router, prefix='/bookings')
    app.include_router(user_routes.router, prefix='/users')
    app.include_router(doctor_routes.router, prefix='/doctors')

    return app


app = create_app()
