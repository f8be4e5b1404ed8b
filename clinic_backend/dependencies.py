from fastapi import HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError

from clinic_backend.database import Database


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(request: Request):
    database = get_database(request)
    try:
        database.ensure_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='Database unavailable. Verify DATABASE_URL and database credentials.',
        ) from exc

    db = database.session()
    try:
        yield db
    finally:
        db.close()
