"""Database configuration and initialization."""
from sqlalchemy import create_engine, BigInteger, Integer
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base

# Create SQLAlchemy base
Base = declarative_base()

# Global session and engine
engine = None
db_session = None


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine_options = {
        'echo': app.config.get('SQLALCHEMY_ECHO', False),
        'pool_pre_ping': True,  # Enable connection health checks
    }
    if not database_uri.startswith('sqlite'):
        engine_options.update(pool_size=10, max_overflow=20)

    engine = create_engine(database_uri, **engine_options)

    # Sale rows outlive the request that wrote them (receipt flow), keep them loaded
    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    )

    Base.query = db_session.query_property()

    if database_uri.startswith('sqlite'):
        create_tables()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def create_tables():
    """Create all tables known to the models package."""
    import salonpos.models  # noqa: F401  (registers mappers)
    Base.metadata.create_all(bind=engine)


def get_session():
    """Get database session."""
    return db_session


# BIGINT ids in PostgreSQL; SQLite only autoincrements INTEGER PRIMARY KEY
IdType = BigInteger().with_variant(Integer, 'sqlite')
