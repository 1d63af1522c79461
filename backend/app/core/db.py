from app.core.config import settings
from app.core.database import Database, open_database

# Process-wide handle; no connection is made until first use.
db: Database = open_database(settings.database_config)
