"""
Add album payment tracking, order external reference and booking advance payments

Migration to add:
- albums.payment_status, albums.paid_at, albums.paid_order_id
- orders.external_reference (indexed), used by the payment webhook
  when a notification's payment id matches no order
- webhook_logs.photographer_id (indexed), scoping audit entries per studio
- photographers.advance_payment_percentage, charged when a client books online

Run with: python migrations/add_album_payment_and_order_reference.py
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import text

from app.database import engine

ALBUM_COLUMNS = {
    "payment_status": "VARCHAR(20) NOT NULL DEFAULT 'unpaid'",
    "paid_at": "TIMESTAMP",
    "paid_order_id": "VARCHAR(36)",
}

PHOTOGRAPHER_COLUMNS = {
    "advance_payment_percentage": "INTEGER NOT NULL DEFAULT 50",
}


def existing_columns(conn, table_name, column_names):
    result = conn.execute(
        text("""
            SELECT column_name
            FROM information_schema.columns
            WHERE table_name = :table_name
            AND column_name = ANY(:column_names)
        """),
        {"table_name": table_name, "column_names": list(column_names)},
    )
    return {row[0] for row in result}


def upgrade():
    """Add album payment columns and the order reference"""
    with engine.connect() as conn:
        present = existing_columns(conn, "albums", ALBUM_COLUMNS)
        for column, definition in ALBUM_COLUMNS.items():
            if column not in present:
                conn.execute(text(f"ALTER TABLE albums ADD COLUMN {column} {definition}"))
                print(f"✅ Added albums.{column} column")
            else:
                print(f"ℹ️  albums.{column} column already exists")

        present = existing_columns(conn, "photographers", PHOTOGRAPHER_COLUMNS)
        for column, definition in PHOTOGRAPHER_COLUMNS.items():
            if column not in present:
                conn.execute(text(f"ALTER TABLE photographers ADD COLUMN {column} {definition}"))
                print(f"✅ Added photographers.{column} column")
            else:
                print(f"ℹ️  photographers.{column} column already exists")

        if not existing_columns(conn, "orders", ["external_reference"]):
            conn.execute(text("ALTER TABLE orders ADD COLUMN external_reference VARCHAR(255)"))
            print("✅ Added orders.external_reference column")
        else:
            print("ℹ️  orders.external_reference column already exists")

        conn.execute(
            text("CREATE INDEX IF NOT EXISTS ix_orders_external_reference ON orders (external_reference)")
        )

        if not existing_columns(conn, "webhook_logs", ["photographer_id"]):
            conn.execute(text("ALTER TABLE webhook_logs ADD COLUMN photographer_id VARCHAR(36)"))
            print("✅ Added webhook_logs.photographer_id column")
        else:
            print("ℹ️  webhook_logs.photographer_id column already exists")

        conn.execute(
            text(
                "CREATE INDEX IF NOT EXISTS ix_webhook_logs_photographer_id ON webhook_logs (photographer_id)"
            )
        )

        # Backfill: orders created before this migration were sent as order_{id}
        result = conn.execute(
            text("UPDATE orders SET external_reference = id WHERE external_reference IS NULL")
        )
        print(f"✅ Backfilled external_reference on {result.rowcount} orders")

        conn.commit()
        print("\n✅ Migration completed successfully!")


def downgrade():
    """Remove album payment columns and the order reference"""
    with engine.connect() as conn:
        conn.execute(text("DROP INDEX IF EXISTS ix_webhook_logs_photographer_id"))
        conn.execute(text("ALTER TABLE webhook_logs DROP COLUMN IF EXISTS photographer_id"))
        conn.execute(text("DROP INDEX IF EXISTS ix_orders_external_reference"))
        conn.execute(text("ALTER TABLE orders DROP COLUMN IF EXISTS external_reference"))
        for column in ALBUM_COLUMNS:
            conn.execute(text(f"ALTER TABLE albums DROP COLUMN IF EXISTS {column}"))
        for column in PHOTOGRAPHER_COLUMNS:
            conn.execute(text(f"ALTER TABLE photographers DROP COLUMN IF EXISTS {column}"))
        conn.commit()
        print("✅ Migration rolled back successfully!")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Manage album payment and order reference migration")
    parser.add_argument("--down", action="store_true", help="Rollback the migration")
    args = parser.parse_args()

    if args.down:
        print("Rolling back migration...")
        downgrade()
    else:
        print("Running migration...")
        upgrade()
