from sqlalchemy import create_engine, inspect, text

from accounts.utils.db_migrations import ensure_account_soft_delete_column


def test_adds_soft_delete_column_and_indexes_to_legacy_table(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'legacy.db'}")
    with engine.begin() as connection:
        connection.execute(
            text(
                "CREATE TABLE accounts ("
                "id VARCHAR(32) PRIMARY KEY, first_name VARCHAR NOT NULL, last_name VARCHAR NOT NULL, "
                "user_name VARCHAR NOT NULL, email VARCHAR NOT NULL, address VARCHAR NOT NULL, "
                "mobile_no BIGINT NOT NULL, gender VARCHAR NOT NULL, password_hash VARCHAR NOT NULL, "
                "photo_ref VARCHAR, created_at DATETIME NOT NULL, updated_at DATETIME NOT NULL)"
            )
        )

    ensure_account_soft_delete_column(engine)

    inspector = inspect(engine)
    columns = {column["name"] for column in inspector.get_columns("accounts")}
    indexes = {index["name"] for index in inspector.get_indexes("accounts")}
    assert "is_deleted" in columns
    assert "uq_accounts_email_active" in indexes


def test_missing_table_is_left_alone(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}")

    ensure_account_soft_delete_column(engine)

    assert inspect(engine).get_table_names() == []
