"""
Migration runner
Usage:
    python run_migration.py                 # apply every pending migrations/*.sql in name order
    python run_migration.py <file.sql>      # apply one file (recorded like the others)

Applied files are recorded in the schema_migrations table so re-runs are no-ops.
"""
import sys
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from sqlalchemy import text

from app.database import engine

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def ensure_migrations_table(conn):
    conn.execute(text("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            executed_at TIMESTAMP DEFAULT NOW()
        )
    """))


def get_executed_migrations(conn) -> set:
    rows = conn.execute(text("SELECT version FROM schema_migrations"))
    return {row[0] for row in rows}


def run_migration(migration_file: Path, conn):
    """Run a SQL migration file and record it, in one transaction"""
    logger.info(f"Running migration: {migration_file.name}")
    sql = migration_file.read_text()

    # Whole file in one call: function bodies contain semicolons
    conn.exec_driver_sql(sql)
    conn.execute(
        text("INSERT INTO schema_migrations (version) VALUES (:version)"),
        {"version": migration_file.name},
    )


def migrate(only: Path = None):
    files = [only] if only else sorted(MIGRATIONS_DIR.glob("*.sql"))

    with engine.begin() as conn:
        ensure_migrations_table(conn)

    applied = 0
    for migration_file in files:
        if not migration_file.exists():
            logger.error(f"Migration file not found: {migration_file}")
            sys.exit(1)

        with engine.begin() as conn:
            if migration_file.name in get_executed_migrations(conn):
                logger.info(f"ℹ️  {migration_file.name} already applied")
                continue
            run_migration(migration_file, conn)
            applied += 1

    logger.info(f"✅ Migrations complete ({applied} applied)")


if __name__ == "__main__":
    try:
        migrate(Path(sys.argv[1]) if len(sys.argv) > 1 else None)
    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        sys.exit(1)
