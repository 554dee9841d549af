"""Database configuration and initialization."""
from decimal import Decimal
from sqlalchemy import create_engine, BigInteger, Integer
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base

# Create SQLAlchemy base
Base = declarative_base()

# BIGINT primary keys do not autoincrement on SQLite; fall back to its INTEGER rowid there
IdType = BigInteger().with_variant(Integer(), 'sqlite')

# Largest value an IdType column can hold; larger ids can never match a row
MAX_ID = 2**63 - 1

# Largest value a Numeric(12, 2) money column holds
MAX_AMOUNT = Decimal('9999999999.99')

# Global session and engine
engine = None
db_session = None


def _engine_options(app):
    """Build create_engine kwargs for the configured backend."""
    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    options = {
        'echo': app.config.get('SQLALCHEMY_ECHO', False),
        'pool_pre_ping': True,  # Enable connection health checks
    }
    if database_uri.startswith('sqlite'):
        # Writers queue on the database lock instead of failing immediately
        options['connect_args'] = {'timeout': app.config.get('SQLITE_BUSY_TIMEOUT', 30)}
    else:
        options['pool_size'] = 10
        options['max_overflow'] = 20
    return options


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    engine = create_engine(app.config['SQLALCHEMY_DATABASE_URI'], **_engine_options(app))

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )

    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def create_tables():
    """Create every table registered on Base."""
    from app import models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def drop_tables():
    """Drop every table registered on Base."""
    from app import models  # noqa: F401
    Base.metadata.drop_all(bind=engine)


def get_session():
    """Get database session."""
    return db_session
