from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    if not database_url.startswith('sqlite'):
        return create_engine(database_url, pool_pre_ping=True)

    # Sync handlers run on a threadpool, so SQLite connections cross threads.
    options = {'connect_args': {'check_same_thread': False}}
    if database_url in {'sqlite://', 'sqlite:///:memory:'}:
        options['poolclass'] = StaticPool
    return create_engine(database_url, **options)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def create_schema(engine: Engine) -> None:
    from doctors_portal.models import booking, doctor, option, payment, user  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
