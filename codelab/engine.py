__all__ = [
    'SQLDB_ENGINE',
    'SessionLocal',
    'create_tables',
]

import os
import sqlmodel


# configs
DB_URL = os.getenv('CODELAB_DB_URL', 'sqlite:///codelab.db')
STORAGE_KEY = os.getenv('CODELAB_STORAGE_KEY', 'codelab.extensions')
REGISTRY_URL = os.getenv('CODELAB_REGISTRY_URL', 'https://unpkg.com/{name}')
FETCH_TIMEOUT = float(os.getenv('CODELAB_FETCH_TIMEOUT', '30'))
ALLOW_REMOTE_EXTENSIONS = os.getenv(
    'CODELAB_ALLOW_REMOTE_EXTENSIONS', 'true'
).lower() in ('1', 'true', 'yes')
TRUSTED_DOMAINS = tuple(
    domain.strip().lower()
    for domain in os.getenv('CODELAB_TRUSTED_DOMAINS', '').split(',')
    if domain.strip()
)
BUILTIN_EXTENSIONS = tuple(
    name.strip()
    for name in os.getenv('CODELAB_BUILTIN_EXTENSIONS', 'prettier,markdown').split(',')
    if name.strip()
)
HOST = os.getenv('CODELAB_HOST', '0.0.0.0')
PORT = int(os.getenv('CODELAB_PORT', '3000'))
LOG_LEVEL = os.getenv('CODELAB_LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('CODELAB_LOG_FORMAT', 'plain')


SQLDB_ENGINE = sqlmodel.create_engine(
    DB_URL,
    connect_args={"check_same_thread": False} if DB_URL.startswith('sqlite') else {},
)

def SessionLocal(engine=None):
    return sqlmodel.Session(engine or SQLDB_ENGINE)

def create_tables(engine=None):
    """Create all tables known to the sqlmodel metadata."""
    import codelab.schemas  # noqa: F401  registers the table models
    sqlmodel.SQLModel.metadata.create_all(engine or SQLDB_ENGINE)
