"""PostgreSQL persistence for garage records."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, List, Optional

import psycopg2
import psycopg2.extras
from psycopg2.extensions import connection as PgConnection
from psycopg2.extensions import cursor as PgCursor

from ...app_context import get_conn
from .models import Car, DeletionSummary, SessionGarageLink, Setup

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS garage_cars (
    id TEXT PRIMARY KEY,
    brand TEXT NOT NULL,
    model TEXT NOT NULL,
    scale TEXT,
    motor TEXT,
    weight DOUBLE PRECISION,
    notes TEXT,
    created_at TIMESTAMPTZ NOT NULL
);

CREATE TABLE IF NOT EXISTS garage_setups (
    id TEXT PRIMARY KEY,
    car_id TEXT NOT NULL REFERENCES garage_cars (id),
    label TEXT,
    notes TEXT,
    tires TEXT,
    gear_ratio TEXT,
    ride_height DOUBLE PRECISION,
    magnet TEXT,
    tags JSONB NOT NULL DEFAULT '[]'::jsonb,
    parameters JSONB NOT NULL DEFAULT '{}'::jsonb,
    custom_fields JSONB NOT NULL DEFAULT '{}'::jsonb,
    images JSONB NOT NULL DEFAULT '[]'::jsonb,
    created_at TIMESTAMPTZ NOT NULL
);

CREATE INDEX IF NOT EXISTS garage_setups_car_id_idx ON garage_setups (car_id);

CREATE TABLE IF NOT EXISTS session_garage_links (
    session_id TEXT PRIMARY KEY,
    car_id TEXT REFERENCES garage_cars (id),
    setup_id TEXT REFERENCES garage_setups (id),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


@contextmanager
def managed_connection(conn: Optional[PgConnection] = None):
    """Context manager that manages transaction boundaries for optional connections."""

    if conn is not None:
        yield conn, False
        return

    connection = get_conn()
    try:
        yield connection, True
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    finally:
        connection.close()


def _row_to_car(row: dict) -> Car:
    return Car(
        id=row["id"],
        brand=row["brand"],
        model=row["model"],
        scale=row.get("scale"),
        motor=row.get("motor"),
        weight=row.get("weight"),
        notes=row.get("notes"),
        created_at=row["created_at"],
    )


def _row_to_setup(row: dict) -> Setup:
    return Setup(
        id=row["id"],
        car_id=row["car_id"],
        label=row.get("label"),
        notes=row.get("notes"),
        tires=row.get("tires"),
        gear_ratio=row.get("gear_ratio"),
        ride_height=row.get("ride_height"),
        magnet=row.get("magnet"),
        tags=tuple(row.get("tags") or ()),
        parameters=row.get("parameters") or {},
        custom_fields=row.get("custom_fields") or {},
        images=tuple(row.get("images") or ()),
        created_at=row["created_at"],
    )


def _row_to_link(row: dict) -> SessionGarageLink:
    return SessionGarageLink(
        session_id=row["session_id"],
        car_id=row.get("car_id"),
        setup_id=row.get("setup_id"),
    )


class PostgresGarageRepository:
    """Concrete repository persisting garage models in PostgreSQL."""

    def __init__(self, *, conn: Optional[PgConnection] = None) -> None:
        self._conn = conn

    @contextmanager
    def _cursor(self) -> Iterable[PgCursor]:
        with managed_connection(self._conn) as (connection, managed):
            cursor = connection.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            try:
                yield cursor
                if managed:
                    connection.commit()
            except Exception:
                if managed:
                    connection.rollback()
                raise
            finally:
                cursor.close()

    def ensure_schema(self) -> None:
        with self._cursor() as cursor:
            cursor.execute(SCHEMA_SQL)

    def get_car(self, car_id: str) -> Optional[Car]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM garage_cars WHERE id = %s LIMIT 1", (car_id,))
            row = cursor.fetchone()
        return _row_to_car(row) if row else None

    def list_cars(self) -> List[Car]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM garage_cars ORDER BY created_at")
            rows = cursor.fetchall()
        return [_row_to_car(row) for row in rows]

    def save_car(self, car: Car) -> Car:
        """Insert or update a car record."""

        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO garage_cars (id, brand, model, scale, motor, weight, notes, created_at)
                VALUES (%(id)s, %(brand)s, %(model)s, %(scale)s, %(motor)s, %(weight)s,
                        %(notes)s, %(created_at)s)
                ON CONFLICT (id) DO UPDATE SET
                    brand = EXCLUDED.brand,
                    model = EXCLUDED.model,
                    scale = EXCLUDED.scale,
                    motor = EXCLUDED.motor,
                    weight = EXCLUDED.weight,
                    notes = EXCLUDED.notes
                RETURNING *
                """,
                car.model_dump(),
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist car")
            return _row_to_car(row)

    def delete_car(self, car_id: str) -> DeletionSummary:
        """Delete a car, its setups and every link reference in one transaction."""

        with self._cursor() as cursor:
            cursor.execute(
                """
                UPDATE session_garage_links
                SET car_id = NULL, setup_id = NULL, updated_at = NOW()
                WHERE car_id = %(car_id)s
                   OR setup_id IN (SELECT id FROM garage_setups WHERE car_id = %(car_id)s)
                RETURNING session_id
                """,
                {"car_id": car_id},
            )
            unlinked = tuple(row["session_id"] for row in cursor.fetchall())
            cursor.execute("DELETE FROM garage_setups WHERE car_id = %s RETURNING id", (car_id,))
            setup_ids = tuple(row["id"] for row in cursor.fetchall())
            cursor.execute("DELETE FROM garage_cars WHERE id = %s RETURNING id", (car_id,))
            car_ids = tuple(row["id"] for row in cursor.fetchall())
        return DeletionSummary(
            deleted_car_ids=car_ids,
            deleted_setup_ids=setup_ids,
            unlinked_session_ids=unlinked,
        )

    def get_setup(self, setup_id: str) -> Optional[Setup]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM garage_setups WHERE id = %s LIMIT 1", (setup_id,))
            row = cursor.fetchone()
        return _row_to_setup(row) if row else None

    def list_setups(self, car_id: Optional[str] = None) -> List[Setup]:
        with self._cursor() as cursor:
            if car_id is None:
                cursor.execute("SELECT * FROM garage_setups ORDER BY created_at")
            else:
                cursor.execute(
                    "SELECT * FROM garage_setups WHERE car_id = %s ORDER BY created_at",
                    (car_id,),
                )
            rows = cursor.fetchall()
        return [_row_to_setup(row) for row in rows]

    def save_setup(self, setup: Setup) -> Setup:
        """Insert or update a setup record."""

        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO garage_setups (
                    id, car_id, label, notes, tires, gear_ratio, ride_height, magnet,
                    tags, parameters, custom_fields, images, created_at
                )
                VALUES (%(id)s, %(car_id)s, %(label)s, %(notes)s, %(tires)s, %(gear_ratio)s,
                        %(ride_height)s, %(magnet)s, %(tags)s, %(parameters)s,
                        %(custom_fields)s, %(images)s, %(created_at)s)
                ON CONFLICT (id) DO UPDATE SET
                    label = EXCLUDED.label,
                    notes = EXCLUDED.notes,
                    tires = EXCLUDED.tires,
                    gear_ratio = EXCLUDED.gear_ratio,
                    ride_height = EXCLUDED.ride_height,
                    magnet = EXCLUDED.magnet,
                    tags = EXCLUDED.tags,
                    parameters = EXCLUDED.parameters,
                    custom_fields = EXCLUDED.custom_fields,
                    images = EXCLUDED.images
                RETURNING *
                """,
                {
                    "id": setup.id,
                    "car_id": setup.car_id,
                    "label": setup.label,
                    "notes": setup.notes,
                    "tires": setup.tires,
                    "gear_ratio": setup.gear_ratio,
                    "ride_height": setup.ride_height,
                    "magnet": setup.magnet,
                    "tags": psycopg2.extras.Json(list(setup.tags)),
                    "parameters": psycopg2.extras.Json(setup.parameters),
                    "custom_fields": psycopg2.extras.Json(setup.custom_fields),
                    "images": psycopg2.extras.Json(list(setup.images)),
                    "created_at": setup.created_at,
                },
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist setup")
            return _row_to_setup(row)

    def delete_setup(self, setup_id: str) -> DeletionSummary:
        with self._cursor() as cursor:
            cursor.execute(
                """
                UPDATE session_garage_links
                SET setup_id = NULL, updated_at = NOW()
                WHERE setup_id = %s
                RETURNING session_id
                """,
                (setup_id,),
            )
            unlinked = tuple(row["session_id"] for row in cursor.fetchall())
            cursor.execute("DELETE FROM garage_setups WHERE id = %s RETURNING id", (setup_id,))
            setup_ids = tuple(row["id"] for row in cursor.fetchall())
        return DeletionSummary(deleted_setup_ids=setup_ids, unlinked_session_ids=unlinked)

    def get_link(self, session_id: str) -> Optional[SessionGarageLink]:
        with self._cursor() as cursor:
            cursor.execute(
                "SELECT * FROM session_garage_links WHERE session_id = %s LIMIT 1",
                (session_id,),
            )
            row = cursor.fetchone()
        return _row_to_link(row) if row else None

    def list_links(self) -> List[SessionGarageLink]:
        with self._cursor() as cursor:
            cursor.execute("SELECT * FROM session_garage_links ORDER BY session_id")
            rows = cursor.fetchall()
        return [_row_to_link(row) for row in rows]

    def find_links(
        self,
        *,
        car_ids: Iterable[str] = (),
        setup_ids: Iterable[str] = (),
    ) -> List[SessionGarageLink]:
        car_list = list(car_ids)
        setup_list = list(setup_ids)
        if not car_list and not setup_list:
            return []
        with self._cursor() as cursor:
            cursor.execute(
                """
                SELECT *
                FROM session_garage_links
                WHERE car_id = ANY(%(car_ids)s) OR setup_id = ANY(%(setup_ids)s)
                ORDER BY session_id
                """,
                {"car_ids": car_list, "setup_ids": setup_list},
            )
            rows = cursor.fetchall()
        return [_row_to_link(row) for row in rows]

    def save_link(self, link: SessionGarageLink) -> SessionGarageLink:
        """Insert or replace the link for a session."""

        with self._cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO session_garage_links (session_id, car_id, setup_id)
                VALUES (%(session_id)s, %(car_id)s, %(setup_id)s)
                ON CONFLICT (session_id) DO UPDATE SET
                    car_id = EXCLUDED.car_id,
                    setup_id = EXCLUDED.setup_id,
                    updated_at = NOW()
                RETURNING *
                """,
                link.model_dump(),
            )
            row = cursor.fetchone()
            if not row:
                raise RuntimeError("Failed to persist session link")
            return _row_to_link(row)
