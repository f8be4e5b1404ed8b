import logging
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


logger = logging.getLogger(__name__)

Base = declarative_base()

# Columns added after the first release, with the statement that adds them.
MIGRATION_STEPS = {
    'doctor_schedule': [
        ('booking_version', 'ALTER TABLE doctor_schedule ADD COLUMN booking_version INTEGER NOT NULL DEFAULT 0'),
    ],
    'appointments': [
        ('reason', 'ALTER TABLE appointments ADD COLUMN reason TEXT'),
        ('patient_age', 'ALTER TABLE appointments ADD COLUMN patient_age VARCHAR(10)'),
    ],
}


def _engine_options(database_url: str) -> dict:
    if not database_url.startswith('sqlite'):
        return {'pool_pre_ping': True}

    options = {'connect_args': {'check_same_thread': False, 'timeout': 30}}
    if database_url in {'sqlite://', 'sqlite:///:memory:'}:
        options['poolclass'] = StaticPool
    return options


class Database:
    """Owns the engine and session factory for one running service."""

    def __init__(self, database_url: str, echo: bool = False):
        self.url = database_url
        self.engine = create_engine(database_url, echo=echo, **_engine_options(database_url))
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )
        self._schema_lock = Lock()
        self._schema_checked = False

    def session(self) -> Session:
        return self.SessionLocal()

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def ensure_schema(self) -> None:
        if self._schema_checked:
            return

        with self._schema_lock:
            if self._schema_checked:
                return

            inspector = inspect(self.engine)
            table_names = set(inspector.get_table_names())
            pending_columns = []
            for table_name, steps in MIGRATION_STEPS.items():
                if table_name not in table_names:
                    continue
                existing_columns = {column['name'] for column in inspector.get_columns(table_name)}
                pending_columns.extend(
                    (table_name, column_name, statement)
                    for column_name, statement in steps
                    if column_name not in existing_columns
                )

            with self.engine.begin() as connection:
                for table_name, column_name, statement in pending_columns:
                    logger.info('Adding column %s.%s', table_name, column_name)
                    connection.execute(text(statement))

                for table_name in MIGRATION_STEPS:
                    table = Base.metadata.tables.get(table_name)
                    if table is None or table_name not in table_names:
                        continue
                    for index in table.indexes:
                        index.create(bind=connection, checkfirst=True)

            self._schema_checked = True

    def dispose(self) -> None:
        self.engine.dispose()
