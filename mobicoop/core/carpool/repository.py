# mobicoop/core/carpool/repository.py
"""
Репозиторий предложений.

persist() ставит предложение (с совпадениями) в очередь, flush() записывает
очередь одной транзакцией. Ошибки чтения логируются и пробрасываются.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from asyncpg import Connection, Record

from mobicoop.common.constants import ProposalType, TypeMsg
from mobicoop.common.logger import log_error, log_info
from mobicoop.core.carpool.models import Criteria, Matching, Proposal, Waypoint
from mobicoop.infra.database import DatabaseManager

PROPOSAL_COLUMNS = """
    id, type, user_id, user_delegate_id, private, comment, community_ids,
    event_id, criteria, waypoints, proposal_linked_id, created_at
"""

MATCHING_COLUMNS = """
    id, proposal_offer_id, proposal_request_id, origin_distance_km,
    destination_distance_km, matching_linked_id, matching_opposite_id
"""


class ProposalRepository:
    """Репозиторий предложений и совпадений."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Инициализация репозитория.

        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db
        self._pending: dict[str, Proposal] = {}

    @property
    def pending(self) -> list[Proposal]:
        """Предложения, ожидающие записи."""
        return list(self._pending.values())

    # =========================================================================
    # ЗАПИСЬ
    # =========================================================================

    def persist(self, proposal: Proposal) -> None:
        """Ставит предложение в очередь записи (повторный вызов заменяет граф)."""
        self._pending[proposal.id] = proposal

    async def flush(self) -> int:
        """
        Записывает очередь одной транзакцией.

        Returns:
            Количество записанных предложений
        """
        if not self._pending:
            return 0

        proposals = list(self._pending.values())

        try:
            async with self._db.transaction() as conn:
                for proposal in proposals:
                    await self._upsert_proposal(conn, proposal)
                for proposal in proposals:
                    for matching in proposal.matchings:
                        await self._upsert_matching(conn, matching)
        except Exception as e:
            await log_error(f"Ошибка записи предложений {[p.id for p in proposals]}: {e}")
            raise

        self._pending.clear()
        await log_info(f"Записано предложений: {len(proposals)}", type_msg=TypeMsg.DEBUG)
        return len(proposals)

    @staticmethod
    async def _upsert_proposal(conn: Connection, proposal: Proposal) -> None:
        await conn.execute(
            f"""
            INSERT INTO proposals ({PROPOSAL_COLUMNS})
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9::jsonb, $10::jsonb, $11, $12)
            ON CONFLICT (id) DO UPDATE SET
                criteria = EXCLUDED.criteria,
                waypoints = EXCLUDED.waypoints,
                proposal_linked_id = EXCLUDED.proposal_linked_id,
                community_ids = EXCLUDED.community_ids,
                comment = EXCLUDED.comment
            """,
            proposal.id,
            proposal.type.value,
            proposal.user_id,
            proposal.user_delegate_id,
            proposal.private,
            proposal.comment,
            proposal.community_ids,
            proposal.event_id,
            proposal.criteria.model_dump_json(),
            json.dumps([waypoint.model_dump(mode="json") for waypoint in proposal.waypoints]),
            proposal.proposal_linked_id,
            proposal.created_at,
        )

    @staticmethod
    async def _upsert_matching(conn: Connection, matching: Matching) -> None:
        await conn.execute(
            f"""
            INSERT INTO matchings ({MATCHING_COLUMNS})
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT (id) DO UPDATE SET
                matching_linked_id = EXCLUDED.matching_linked_id,
                matching_opposite_id = EXCLUDED.matching_opposite_id
            """,
            matching.id,
            matching.proposal_offer_id,
            matching.proposal_request_id,
            matching.origin_distance_km,
            matching.destination_distance_km,
            matching.matching_linked_id,
            matching.matching_opposite_id,
        )

    # =========================================================================
    # ЧТЕНИЕ
    # =========================================================================

    async def get_by_id(self, proposal_id: str) -> Optional[Proposal]:
        """
        Получает предложение с совпадениями.

        Args:
            proposal_id: ID предложения

        Returns:
            Предложение или None
        """
        try:
            row = await self._db.fetchrow(
                f"SELECT {PROPOSAL_COLUMNS} FROM proposals WHERE id = $1",
                proposal_id,
            )
            if row is None:
                return None

            matching_rows = await self._db.fetch(
                f"""
                SELECT {MATCHING_COLUMNS} FROM matchings
                WHERE proposal_offer_id = $1 OR proposal_request_id = $1
                """,
                proposal_id,
            )
        except Exception as e:
            await log_error(f"Ошибка получения предложения {proposal_id}: {e}")
            raise

        return self._row_to_proposal(row, matching_rows)

    async def get_many(self, proposal_ids: Iterable[str]) -> dict[str, Proposal]:
        """
        Получает предложения по списку ID (без совпадений).

        Returns:
            Словарь ID -> предложение; отсутствующие ID пропускаются
        """
        ids = list(dict.fromkeys(proposal_ids))
        if not ids:
            return {}

        try:
            rows = await self._db.fetch(
                f"SELECT {PROPOSAL_COLUMNS} FROM proposals WHERE id = ANY($1::text[])",
                ids,
            )
        except Exception as e:
            await log_error(f"Ошибка получения предложений {ids}: {e}")
            raise

        proposals = [self._row_to_proposal(row) for row in rows]
        return {proposal.id: proposal for proposal in proposals}

    async def find_candidates(self, proposal: Proposal) -> list[Proposal]:
        """
        Публичные предложения других пользователей в противоположной роли,
        не закончившиеся до даты предложения.

        Args:
            proposal: Предложение, для которого ищутся попутчики

        Returns:
            Кандидаты (без совпадений)
        """
        criteria = proposal.criteria
        if not (criteria.driver or criteria.passenger):
            return []

        try:
            rows = await self._db.fetch(
                f"""
                SELECT {PROPOSAL_COLUMNS} FROM proposals
                WHERE NOT private
                  AND id <> $1
                  AND user_id IS DISTINCT FROM $2
                  AND (
                      ($3 AND (criteria->>'passenger')::boolean)
                      OR ($4 AND (criteria->>'driver')::boolean)
                  )
                  AND (criteria->>'to_date' IS NULL OR (criteria->>'to_date')::date >= $5)
                  AND (criteria->>'frequency' = 'regular' OR (criteria->>'from_date')::date >= $5)
                ORDER BY created_at
                """,
                proposal.id,
                proposal.user_id,
                criteria.driver,
                criteria.passenger,
                criteria.from_date,
            )
        except Exception as e:
            await log_error(f"Ошибка поиска кандидатов для предложения {proposal.id}: {e}")
            raise

        return [self._row_to_proposal(row) for row in rows]

    # =========================================================================
    # ПРЕОБРАЗОВАНИЕ
    # =========================================================================

    @staticmethod
    def _load_json(value: Any) -> Any:
        if isinstance(value, str):
            return json.loads(value)
        return value

    def _row_to_proposal(self, row: Record, matching_rows: Iterable[Record] = ()) -> Proposal:
        """Преобразует строку БД в модель."""
        proposal = Proposal(
            id=row["id"],
            type=ProposalType(row["type"]),
            user_id=row["user_id"],
            user_delegate_id=row["user_delegate_id"],
            private=row["private"],
            comment=row["comment"],
            community_ids=list(row["community_ids"] or []),
            event_id=row["event_id"],
            criteria=Criteria.model_validate(self._load_json(row["criteria"])),
            waypoints=[Waypoint.model_validate(item) for item in self._load_json(row["waypoints"]) or []],
            proposal_linked_id=row["proposal_linked_id"],
            created_at=row["created_at"],
        )

        for matching_row in matching_rows:
            matching = Matching(**dict(matching_row))
            if matching.proposal_offer_id == proposal.id:
                proposal.matchings_offer.append(matching)
            else:
                proposal.matchings_request.append(matching)

        return proposal
