import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Columns added to `users` after the first deployments.
USER_PROFILE_COLUMNS = {
    "blood_group": "VARCHAR(10)",
    "education": "VARCHAR(120)",
    "job_title": "VARCHAR(80)",
    "company": "VARCHAR(120)",
    "work_location": "VARCHAR(120)",
    "skills": "VARCHAR(255)",
    "city": "VARCHAR(80)",
    "district": "VARCHAR(80)",
    "community_role": "VARCHAR(80)",
}


def ensure_user_profile_columns(engine: Engine) -> None:
    inspector = inspect(engine)
    if "users" not in inspector.get_table_names():
        return
    columns = {column["name"] for column in inspector.get_columns("users")}
    missing = [(name, ddl) for name, ddl in USER_PROFILE_COLUMNS.items() if name not in columns]
    if not missing:
        return
    with engine.begin() as connection:
        for name, ddl in missing:
            connection.execute(text(f"ALTER TABLE users ADD COLUMN {name} {ddl}"))
    logger.info("Added %s missing users columns: %s", len(missing), ", ".join(name for name, _ in missing))


def ensure_pending_update_reviewer_column(engine: Engine) -> None:
    inspector = inspect(engine)
    if "pending_profile_updates" not in inspector.get_table_names():
        return
    columns = {column["name"] for column in inspector.get_columns("pending_profile_updates")}
    if "reviewed_by" in columns:
        return
    with engine.begin() as connection:
        connection.execute(text("ALTER TABLE pending_profile_updates ADD COLUMN reviewed_by VARCHAR(191)"))


def run_migrations(engine: Engine) -> None:
    ensure_user_profile_columns(engine)
    ensure_pending_update_reviewer_column(engine)
