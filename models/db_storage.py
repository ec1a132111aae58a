from models.user import User
from models.refresh_session import RefreshSession
from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import SQLAlchemyError
from os import getenv
from models.base_model import Base
from dotenv import load_dotenv

load_dotenv()
# Imported so both tables are registered on Base.metadata before reload()
__all__ = ["DBStorage", "User", "RefreshSession"]


class DBStorage:
    __engine = None
    __session = None

    def __init__(self, database_url=None):
        """Initialize engine based on DATABASE_URL or the environment"""
        ENV = getenv("APP_ENV", "dev")
        url = database_url or getenv("DATABASE_URL")

        if url:
            self.__engine = create_engine(url, pool_pre_ping=True)
        elif ENV == "test":
            # One shared in-memory database for the whole test process
            self.__engine = create_engine(
                "sqlite://",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif ENV == "dev":
            self.__engine = create_engine("sqlite:///session-issuer.db", echo=getenv("SQL_ECHO", "") == "1")
        else:
            raise RuntimeError("DATABASE_URL is required outside dev/test")

        if self.__engine.url.get_backend_name() == "sqlite":
            @event.listens_for(self.__engine, "connect")
            def _set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    @property
    def dialect(self) -> str:
        return self.__engine.dialect.name

    def reload(self):
        """Create tables and start session"""
        Base.metadata.create_all(self.__engine)
        session_factory = sessionmaker(bind=self.__engine, expire_on_commit=False)
        Session = scoped_session(session_factory)
        self.__session = Session

    def new(self, obj):
        """Add object to session"""
        self.__session.add(obj)

    def save(self):
        """Commit session"""
        try:
            self.__session.commit()
        except SQLAlchemyError:
            self.__session.rollback()
            raise

    def rollback(self):
        self.__session.rollback()

    def count(self, cls):
        """Count rows of a model"""
        return self.__session.query(cls).count()

    def close(self):
        """Remove session (for API teardown)"""
        self.__session.remove()

    # expose the SQLAlchemy session for advanced querying (joins, filters, etc.)
    def get_session(self):
        return self.__session
