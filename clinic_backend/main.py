import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from clinic_backend.core import config
from clinic_backend.database import Database
from clinic_backend.models import appointment, availability, doctor  # noqa: F401
from clinic_backend.routes import appointment_routes, schedule_routes

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def initialize_database(database: Database) -> None:
    try:
        database.create_all()
        database.ensure_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


def describe_validation_error(exc: RequestValidationError) -> str:
    first_error = exc.errors()[0]
    field = '.'.join(str(part) for part in first_error.get('loc', ()) if part not in ('body', 'query', 'path'))
    message = first_error.get('msg', 'Invalid request.').removeprefix('Value error, ')
    return f'{field}: {message}' if field else message


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'detail': describe_validation_error(exc)},
    )


def create_app(database: Database | None = None) -> FastAPI:
    """Build the API. The database handle is created here unless one is supplied."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.validate_runtime_config()
        handle = database or Database(config.DATABASE_URL, echo=config.SQL_ECHO)
        app.state.database = handle
        initialize_database(handle)
        try:
            yield
        finally:
            if database is None:
                handle.dispose()

    configure_logging()
    app = FastAPI(title='Clinic Appointment Booking', lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.get('/')
    def root():
        return {'status': 'Clinic Booking API Running'}

    app.include_router(appointment_routes.router, prefix='/appointments')
    app.include_router(schedule_routes.router, prefix='/schedules')

    return app


app = create_app()
