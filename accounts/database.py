from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from accounts.config import settings

# SQLite needs cross-thread access since FastAPI serves sync routes from a thread pool
connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
