"""
Add the partial unique index that stops two live bookings of one slot

Index:
- uq_appointments_active_slot ON appointments (doctor_id, date, time)
  WHERE status IN ('pending', 'approved')

New databases get the index from create_all when ENFORCE_SLOT_UNIQUENESS is
set; this brings an existing database in line. Fails if the table already
holds double bookings; reject one of each pair first.

Usage: python -m medibook.migrations.add_active_slot_index
"""

import logging

from sqlalchemy import text

from ..database import engine

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def find_double_bookings(conn) -> list:
    return conn.execute(
        text(
            """
            SELECT doctor_id, date, time, COUNT(*) AS bookings
            FROM appointments
            WHERE status IN ('pending', 'approved')
            GROUP BY doctor_id, date, time
            HAVING COUNT(*) > 1
            """
        )
    ).fetchall()


def upgrade():
    with engine.connect() as conn:
        duplicates = find_double_bookings(conn)
        if duplicates:
            for row in duplicates:
                logger.error(
                    f"❌ Doctor {row.doctor_id} has {row.bookings} live bookings on {row.date} at {row.time}"
                )
            raise RuntimeError(f"{len(duplicates)} slots are double booked")

        conn.execute(
            text(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_active_slot
                ON appointments (doctor_id, date, time)
                WHERE status IN ('pending', 'approved');
                """
            )
        )
        conn.commit()
    logger.info("✅ uq_appointments_active_slot created")


def downgrade():
    with engine.connect() as conn:
        conn.execute(text("DROP INDEX IF EXISTS uq_appointments_active_slot;"))
        conn.commit()
    logger.info("✅ uq_appointments_active_slot dropped")


if __name__ == "__main__":
    upgrade()
