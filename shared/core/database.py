from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from shared.core.config import RENTAL_DATABASE_URL

Base = declarative_base()

POOL_SIZE = 2
MAX_OVERFLOW = 2


def engine_options(url: str) -> dict:
    # SQLite uses its own pool classes, no sizing arguments
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    return {
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": POOL_SIZE,          # max idle connections
        "max_overflow": MAX_OVERFLOW,    # max temporary extra connections
        "pool_timeout": 30,              # wait time before failing
    }


rental_engine = create_engine(
    RENTAL_DATABASE_URL, **engine_options(RENTAL_DATABASE_URL))
RentalSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=rental_engine)


# Dependency
def get_rental_db():
    db = RentalSessionLocal()
    try:
        yield db
    finally:
        db.close()
