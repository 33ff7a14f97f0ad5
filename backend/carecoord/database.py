#Creates a connection engine to your database.
from sqlalchemy import create_engine
#Base class for SQLAlchemy ORM models.
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
#Configuration object containing the database URL
from .config import settings


def _engine_options(url: str) -> dict:
    """SQLite needs cross-thread access and, when in memory, a single shared connection."""
    if not url.startswith("sqlite"):
        return {}
    options = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


# Create SQLAlchemy engine
engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class
Base = declarative_base()

# Dependency to get DB session
def get_db():
    #Creates a new database session.
    db = SessionLocal()
    try:
        #Makes it available to route functions.
        yield db
    finally:
        db.close() #Ensures the session is closed properly
