# mobicoop/core/carpool/service.py
"""
Сервис объявлений.

Превращает объявление (предложение или поиск) в сохранённые предложения
с критериями, точками маршрута и совпадениями, связывает рейсы туда/обратно
и роли водитель/пассажир, возвращает объявление с результатами подбора.
"""

from __future__ import annotations

from typing import Any, Optional

from mobicoop.common.constants import AdRole, Frequency, ProposalType, TypeMsg
from mobicoop.common.exceptions import (
    AdException,
    CommunityNotFoundException,
    EventNotFoundException,
    ProposalNotFoundException,
    UserNotFoundException,
)
from mobicoop.common.logger import log_error, log_info
from mobicoop.core.carpool.criteria import CriteriaBuilder
from mobicoop.core.carpool.linker import ProposalLinker
from mobicoop.core.carpool.matching import ProposalMatcher
from mobicoop.core.carpool.models import Ad, Proposal
from mobicoop.core.carpool.repository import ProposalRepository
from mobicoop.core.carpool.results import DEFAULT_ORDER, ResultManager
from mobicoop.core.carpool.waypoints import address_to_point, build_waypoints
from mobicoop.core.communities.repository import CommunityRepository
from mobicoop.core.events.repository import EventRepository
from mobicoop.core.users.repository import UserRepository
from mobicoop.infra.database import DatabaseManager
from mobicoop.infra.event_bus import DomainEvent, EventBus, EventTypes
from mobicoop.infra.redis_client import RedisClient


class AdService:
    """
    Сервис объявлений.
    Одно объявление обрабатывается последовательно в рамках одной корутины.
    """

    def __init__(
        self,
        db: DatabaseManager,
        redis: RedisClient,
        event_bus: EventBus,
        user_repo: Optional[UserRepository] = None,
        community_repo: Optional[CommunityRepository] = None,
        event_repo: Optional[EventRepository] = None,
        proposal_repo: Optional[ProposalRepository] = None,
        criteria_builder: Optional[CriteriaBuilder] = None,
        matcher: Optional[ProposalMatcher] = None,
        linker: Optional[ProposalLinker] = None,
        result_manager: Optional[ResultManager] = None,
    ) -> None:
        """
        Инициализация сервиса.

        Args:
            db: Менеджер базы данных
            redis: Клиент Redis
            event_bus: Шина событий
            остальные: Зависимости (по умолчанию создаются из db и настроек)
        """
        self._redis = redis
        self._event_bus = event_bus
        self._users = user_repo or UserRepository(db)
        self._communities = community_repo or CommunityRepository(db)
        self._events = event_repo or EventRepository(db)
        self._proposals = proposal_repo or ProposalRepository(db)
        self._criteria_builder = criteria_builder or CriteriaBuilder()
        self._matcher = matcher or ProposalMatcher()
        self._linker = linker or ProposalLinker()
        self._results = result_manager or ResultManager()

    def _proposal_cache_key(self, proposal_id: str) -> str:
        """Генерирует ключ кэша для предложения."""
        return f"proposal:{proposal_id}"

    # =========================================================================
    # СОЗДАНИЕ ОБЪЯВЛЕНИЯ
    # =========================================================================

    async def create_ad(self, ad: Ad) -> Ad:
        """
        Создаёт объявление или выполняет поиск.

        Args:
            ad: Объявление

        Returns:
            То же объявление с id и результатами подбора

        Raises:
            AdException: Анонимная публикация или неверные данные объявления
            UserNotFoundException: Автор или делегирующий автор не найден
            CommunityNotFoundException: Сообщество не найдено
            EventNotFoundException: Мероприятие не найдено
        """
        kind = "поиска" if ad.search else "объявления"
        await log_info(
            f"Создание {kind}: пользователь={ad.user_id}, роль={ad.role.value}, "
            f"частота={ad.frequency.value}",
            type_msg=TypeMsg.INFO,
        )

        if not ad.search and ad.user_id is None:
            raise AdException("Anonymous users can't post an ad")

        # Маршрут: отправление и назначение
        if len(ad.outward_waypoints) < 2:
            raise AdException("At least two outward waypoints are required")
        if ad.return_waypoints and len(ad.return_waypoints) < 2:
            raise AdException("At least two return waypoints are required")

        await self._check_references(ad)

        proposal_type = self._resolve_type(ad)

        outward = Proposal(
            type=proposal_type,
            user_id=ad.user_id,
            user_delegate_id=ad.poster_id,
            private=ad.search,
            comment=ad.comment,
            community_ids=list(ad.communities),
            event_id=ad.event_id,
            criteria=self._criteria_builder.build_outward(ad),
            waypoints=build_waypoints(ad.outward_waypoints),
        )

        counterparts: dict[str, Proposal] = {}
        await self._match(outward, counterparts)
        self._proposals.persist(outward)

        return_proposal: Optional[Proposal] = None
        if ad.is_round_trip:
            return_criteria = self._criteria_builder.build_return(ad, outward.criteria)
            return_proposal = self._linker.create_return_proposal(outward, ad, return_criteria)
            await self._match(return_proposal, counterparts)
            self._proposals.persist(return_proposal)

        await self._checkpoint(1, outward)

        if return_proposal is not None:
            linked = self._linker.link_related_matchings(outward, return_proposal, counterparts)
            self._proposals.persist(outward)
            self._proposals.persist(return_proposal)
            await log_info(f"Связано совпадений туда/обратно: {len(linked)}", type_msg=TypeMsg.DEBUG)
            await self._checkpoint(2, outward)

        if ad.role == AdRole.DRIVER_OR_PASSENGER:
            linked = self._linker.link_opposite_matchings(outward)
            self._proposals.persist(outward)
            if return_proposal is not None:
                linked += self._linker.link_opposite_matchings(return_proposal)
                self._proposals.persist(return_proposal)
            await log_info(f"Связано противоположных совпадений: {len(linked)}", type_msg=TypeMsg.DEBUG)
            await self._checkpoint(3, outward)

        if ad.filters is None:
            ad.filters = {"order": dict(DEFAULT_ORDER)}

        results = self._results.create_ad_results(outward, counterparts)
        results = self._results.filter_results(results, ad.filters)
        ad.results = self._results.order_results(results, ad.filters)
        ad.id = outward.id

        await self._cache_proposals(outward, return_proposal)
        # У попутчиков появились новые совпадения
        await self._invalidate_proposals(
            {*counterparts, *(c.proposal_linked_id for c in counterparts.values() if c.proposal_linked_id)}
        )
        await self._publish_ad(ad, outward, return_proposal)

        await log_info(
            f"{'Поиск' if ad.search else 'Объявление'} {ad.id} создан(о): результатов {len(ad.results)}",
            type_msg=TypeMsg.INFO,
        )
        return ad

    async def _check_references(self, ad: Ad) -> None:
        """Проверяет существование пользователя, автора, сообществ и мероприятия."""
        if ad.user_id is not None and await self._users.get_user(ad.user_id) is None:
            await log_error(f"Пользователь {ad.user_id} не найден")
            raise UserNotFoundException(f"User {ad.user_id} not found")

        if ad.poster_id is not None and await self._users.get_user(ad.poster_id) is None:
            await log_error(f"Автор {ad.poster_id} не найден")
            raise UserNotFoundException(f"Poster {ad.poster_id} not found")

        for community_id in ad.communities:
            if await self._communities.get_community(community_id) is None:
                await log_error(f"Сообщество {community_id} не найдено")
                raise CommunityNotFoundException(f"Community {community_id} not found")

        if ad.event_id is not None and await self._events.get_event(ad.event_id) is None:
            await log_error(f"Мероприятие {ad.event_id} не найдено")
            raise EventNotFoundException(f"Event {ad.event_id} not found")

    @staticmethod
    def _resolve_type(ad: Ad) -> ProposalType:
        """Тип рейса; при one_way=None выводится из частоты и записывается в ad."""
        if ad.one_way is None:
            ad.one_way = ad.frequency != Frequency.REGULAR
        return ProposalType.ONE_WAY if ad.one_way else ProposalType.OUTWARD

    async def _match(self, proposal: Proposal, counterparts: dict[str, Proposal]) -> None:
        """Подбирает совпадения и запоминает предложения попутчиков."""
        candidates = await self._proposals.find_candidates(proposal)
        matchings = self._matcher.match(proposal, candidates)

        matched_ids = {matching.counterpart_of(proposal.id) for matching in matchings}
        for candidate in candidates:
            if candidate.id in matched_ids:
                counterparts[candidate.id] = candidate

        await log_info(
            f"Предложение {proposal.id} ({proposal.type.value}): кандидатов {len(candidates)}, "
            f"совпадений {len(matchings)}",
            type_msg=TypeMsg.DEBUG,
        )

    async def _checkpoint(self, number: int, outward: Proposal) -> None:
        written = await self._proposals.flush()
        await log_info(
            f"Контрольная точка {number} объявления {outward.id}: записано {written}",
            type_msg=TypeMsg.DEBUG,
        )

    async def _cache_proposals(self, *proposals: Optional[Proposal]) -> None:
        """Кэширует предложения; ошибка кэша не отменяет созданное объявление."""
        from mobicoop.config import settings

        for proposal in proposals:
            if proposal is None:
                continue
            try:
                await self._redis.set_model(
                    self._proposal_cache_key(proposal.id),
                    proposal,
                    ttl=settings.redis_ttl.PROPOSAL_TTL,
                )
            except Exception as e:
                await log_error(f"Не удалось закэшировать предложение {proposal.id}: {e}")

    async def _invalidate_proposals(self, proposal_ids: set[str]) -> None:
        """Удаляет предложения из кэша; ошибка кэша логируется."""
        for proposal_id in sorted(proposal_ids):
            try:
                await self._redis.delete(self._proposal_cache_key(proposal_id))
            except Exception as e:
                await log_error(f"Не удалось сбросить кэш предложения {proposal_id}: {e}")

    async def _publish_ad(self, ad: Ad, outward: Proposal, return_proposal: Optional[Proposal]) -> None:
        event_type = EventTypes.AD_SEARCHED if ad.search else EventTypes.AD_CREATED
        try:
            await self._event_bus.publish(DomainEvent(
                event_type=event_type,
                payload={
                    "ad_id": ad.id,
                    "user_id": ad.user_id,
                    "poster_id": ad.poster_id,
                    "role": ad.role.value,
                    "frequency": ad.frequency.value,
                    "outward_proposal_id": outward.id,
                    "return_proposal_id": return_proposal.id if return_proposal else None,
                    "results_count": len(ad.results),
                },
            ))
        except Exception as pub_error:
            await log_error(f"Не удалось опубликовать {event_type}: {pub_error}")

    # =========================================================================
    # ЧТЕНИЕ ОБЪЯВЛЕНИЯ
    # =========================================================================

    async def get_proposal(self, proposal_id: str) -> Optional[Proposal]:
        """
        Получает предложение (сначала кэш, затем БД).

        Args:
            proposal_id: ID предложения

        Returns:
            Предложение или None
        """
        cache_key = self._proposal_cache_key(proposal_id)

        cached = await self._redis.get_model(cache_key, Proposal)
        if cached is not None:
            return cached

        proposal = await self._proposals.get_by_id(proposal_id)

        if proposal is not None:
            await self._cache_proposals(proposal)

        return proposal

    async def get_ad(
        self,
        proposal_id: str,
        filters: Optional[dict[str, Any]] = None,
        order: Optional[dict[str, Any]] = None,
    ) -> Ad:
        """
        Восстанавливает объявление по предложению и пересчитывает результаты.

        Args:
            proposal_id: ID предложения (id объявления)
            filters: Фильтры результатов (role, frequency, date)
            order: Сортировка {"criteria": "date"|"price", "value": "ASC"|"DESC"}

        Returns:
            Объявление с результатами

        Raises:
            ProposalNotFoundException: Предложение не найдено
        """
        proposal = await self.get_proposal(proposal_id)
        if proposal is None:
            await log_error(f"Предложение {proposal_id} не найдено")
            raise ProposalNotFoundException(f"Proposal {proposal_id} not found")

        counterpart_ids = [matching.counterpart_of(proposal.id) for matching in proposal.matchings]
        counterparts = await self._proposals.get_many(counterpart_ids)

        ad = self._proposal_to_ad(proposal)
        ad.filters = {"filters": filters or {}, "order": order or dict(DEFAULT_ORDER)}

        results = self._results.create_ad_results(proposal, counterparts)
        results = self._results.filter_results(results, ad.filters)
        ad.results = self._results.order_results(results, ad.filters)

        await log_info(
            f"Объявление {ad.id} прочитано: результатов {len(ad.results)}",
            type_msg=TypeMsg.DEBUG,
        )
        return ad

    @staticmethod
    def _proposal_to_ad(proposal: Proposal) -> Ad:
        criteria = proposal.criteria

        if criteria.driver and criteria.passenger:
            role = AdRole.DRIVER_OR_PASSENGER
        elif criteria.driver:
            role = AdRole.DRIVER
        else:
            role = AdRole.PASSENGER

        return Ad(
            id=proposal.id,
            search=proposal.private,
            role=role,
            frequency=criteria.frequency,
            one_way=proposal.type == ProposalType.ONE_WAY,
            outward_waypoints=[
                address_to_point(waypoint.address)
                for waypoint in sorted(proposal.waypoints, key=lambda w: w.position)
            ],
            outward_date=criteria.from_date,
            outward_limit_date=criteria.to_date,
            outward_time=criteria.from_time.strftime("%H:%M") if criteria.from_time else None,
            price_km=criteria.price_km,
            outward_driver_price=criteria.driver_price,
            outward_passenger_price=criteria.passenger_price,
            seats_driver=criteria.seats_driver,
            seats_passenger=criteria.seats_passenger,
            solidary=criteria.solidary,
            solidary_exclusive=criteria.solidary_exclusive,
            strict_date=criteria.strict_date,
            strict_punctual=criteria.strict_punctual,
            strict_regular=criteria.strict_regular,
            luggage=criteria.luggage,
            bike=criteria.bike,
            back_seats=criteria.back_seats,
            user_id=proposal.user_id,
            poster_id=proposal.user_delegate_id,
            communities=list(proposal.community_ids),
            event_id=proposal.event_id,
            comment=proposal.comment,
        )
