from __future__ import annotations

from datetime import datetime

from sqlalchemy import text

from app.application.ports.badam_count_port import BadamCountPort, LeaderboardPort
from app.domain.entities.account import FEDERATED_NAME_PLACEHOLDER
from app.domain.services.badam_counter import clamp_count
from app.infrastructure.db.mappers.accounts_mapper import (
    map_row_to_badam_count,
    map_row_to_leaderboard_entry,
)


class SqlBadamCountsRepository(BadamCountPort, LeaderboardPort):
    def __init__(self, engine):
        self._engine = engine

    def get_or_create(self, *, account_id: str, now: datetime):
        insert_sql = """
            INSERT INTO badam_counts (account_id, count, updated_at)
            VALUES (:account_id, 0, :updated_at)
            ON CONFLICT (account_id) DO NOTHING
        """
        select_sql = """
            SELECT account_id, count, updated_at
            FROM badam_counts
            WHERE account_id = :account_id
            LIMIT 1
        """
        with self._engine.begin() as conn:
            conn.execute(text(insert_sql), {"account_id": account_id, "updated_at": now})
            row = conn.execute(text(select_sql), {"account_id": account_id}).mappings().one()
        return map_row_to_badam_count(row)

    def upsert(self, *, account_id: str, count: int, now: datetime):
        # Single-statement upsert: atomic per row, last write wins.
        sql = """
            INSERT INTO badam_counts (account_id, count, updated_at)
            VALUES (:account_id, :count, :updated_at)
            ON CONFLICT (account_id) DO UPDATE
            SET count = excluded.count,
                updated_at = excluded.updated_at
            RETURNING account_id, count, updated_at
        """
        params = {"account_id": account_id, "count": clamp_count(count), "updated_at": now}
        with self._engine.begin() as conn:
            row = conn.execute(text(sql), params).mappings().one()
        return map_row_to_badam_count(row)

    def list_top(self, *, limit: int):
        sql = """
            SELECT
                a.id AS account_id,
                COALESCE(a.username, a.display_name, a.email, :placeholder) AS name,
                COALESCE(bc.count, 0) AS count,
                a.created_at,
                a.avatar_url
            FROM accounts a
            LEFT JOIN badam_counts bc
              ON bc.account_id = a.id
            ORDER BY COALESCE(bc.count, 0) DESC, a.created_at ASC, a.id ASC
            LIMIT :limit
        """
        with self._engine.connect() as conn:
            rows = conn.execute(
                text(sql),
                {"placeholder": FEDERATED_NAME_PLACEHOLDER, "limit": limit},
            ).mappings().all()
        return [map_row_to_leaderboard_entry(row) for row in rows]
