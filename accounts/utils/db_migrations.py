from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from accounts.models.account import Account


def ensure_account_soft_delete_column(engine: Engine) -> None:
    """Add ``is_deleted`` to account tables created before soft deletion existed.

    ``create_all`` skips tables that already exist, so the partial unique
    indexes that depend on the new column are created here as well.
    """
    inspector = inspect(engine)
    if "accounts" not in inspector.get_table_names():
        return
    columns = {column["name"] for column in inspector.get_columns("accounts")}
    if "is_deleted" in columns:
        return
    with engine.begin() as connection:
        connection.execute(
            text("ALTER TABLE accounts ADD COLUMN is_deleted BOOLEAN NOT NULL DEFAULT false")
        )
    for index in Account.__table__.indexes:
        index.create(bind=engine, checkfirst=True)
