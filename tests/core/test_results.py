# tests/core/test_results.py
"""
Тесты для построения, фильтрации и сортировки результатов.
"""

from __future__ import annotations

from datetime import date, time
from typing import Optional

import pytest

from mobicoop.common.constants import AdRole, Frequency
from mobicoop.common.exceptions import AdException
from mobicoop.core.carpool.models import Matching, Result
from mobicoop.core.carpool.results import DEFAULT_ORDER, ResultManager


@pytest.fixture
def manager() -> ResultManager:
    return ResultManager()


def make_result(
    proposal_id: str,
    *,
    role: AdRole = AdRole.DRIVER,
    frequency: Frequency = Frequency.PUNCTUAL,
    departure_date: date = date(2030, 5, 6),
    departure_time: Optional[time] = time(8, 0),
    price: Optional[float] = None,
) -> Result:
    return Result(
        proposal_id=proposal_id,
        role=role,
        frequency=frequency,
        departure_date=departure_date,
        departure_time=departure_time,
        price=price,
    )


class TestCreateAdResults:
    """Тесты для create_ad_results."""

    def test_one_result_per_counterpart(self, manager: ResultManager, nancy_point, metz_point, proposal_factory) -> None:
        """Совпадения в обеих ролях с одним попутчиком дают один результат."""
        points = [nancy_point, metz_point]
        proposal = proposal_factory(points, user_id=1, driver=True, passenger=True)
        both = proposal_factory(
            points, user_id=2, driver=True, passenger=True, driver_price=5.0, passenger_price=4.0,
        )
        passenger = proposal_factory(points, user_id=3, passenger=True, passenger_price=3.5)

        proposal.matchings_offer.append(Matching(proposal_offer_id=proposal.id, proposal_request_id=both.id))
        proposal.matchings_request.append(Matching(proposal_offer_id=both.id, proposal_request_id=proposal.id))
        proposal.matchings_offer.append(Matching(proposal_offer_id=proposal.id, proposal_request_id=passenger.id))

        results = manager.create_ad_results(proposal, {both.id: both, passenger.id: passenger})

        by_id = {result.id: result for result in results}
        assert len(results) == 2
        assert by_id[both.id].role == AdRole.DRIVER_OR_PASSENGER
        assert by_id[both.id].price == 5.0
        assert len(by_id[both.id].matching_ids) == 2
        assert by_id[passenger.id].role == AdRole.PASSENGER
        assert by_id[passenger.id].price == 3.5
        assert by_id[passenger.id].seats == 1
        assert by_id[passenger.id].user_id == 3
        assert by_id[passenger.id].origin.address_locality == "Nancy"

    def test_driver_counterpart(self, manager: ResultManager, nancy_point, metz_point, proposal_factory) -> None:
        points = [nancy_point, metz_point]
        proposal = proposal_factory(points, user_id=1, passenger=True)
        driver = proposal_factory(points, user_id=2, driver=True, from_time=time(8, 10))
        matching = Matching(proposal_offer_id=driver.id, proposal_request_id=proposal.id, matching_linked_id="m-back")
        proposal.matchings_request.append(matching)

        [result] = manager.create_ad_results(proposal, {driver.id: driver})

        assert result.role == AdRole.DRIVER
        assert result.seats == 3
        assert result.departure_time == time(8, 10)
        assert result.has_return is True

    def test_regular_departure_time(self, manager: ResultManager, nancy_point, metz_point, proposal_factory) -> None:
        """Время регулярной поездки - первое включённое время недели."""
        points = [nancy_point, metz_point]
        proposal = proposal_factory(points, user_id=1, passenger=True)
        driver = proposal_factory(
            points, user_id=2, driver=True, frequency=Frequency.REGULAR,
            tue_check=True, tue_time=time(7, 45), thu_check=True, thu_time=time(9, 0),
        )
        proposal.matchings_request.append(Matching(proposal_offer_id=driver.id, proposal_request_id=proposal.id))

        [result] = manager.create_ad_results(proposal, {driver.id: driver})

        assert result.frequency == Frequency.REGULAR
        assert result.departure_time == time(7, 45)
        assert result.has_return is False

    def test_unknown_counterpart_skipped(self, manager: ResultManager, nancy_point, metz_point, proposal_factory) -> None:
        proposal = proposal_factory([nancy_point, metz_point], driver=True)
        proposal.matchings_offer.append(Matching(proposal_offer_id=proposal.id, proposal_request_id="gone"))

        assert manager.create_ad_results(proposal, {}) == []


class TestFilterResults:
    """Тесты для filter_results."""

    @pytest.fixture
    def results(self) -> list[Result]:
        return [
            make_result("a", role=AdRole.DRIVER, departure_date=date(2030, 5, 6)),
            make_result("b", role=AdRole.PASSENGER, departure_date=date(2030, 5, 8)),
            make_result("c", role=AdRole.DRIVER_OR_PASSENGER, departure_date=date(2030, 5, 4)),
            make_result("d", role=AdRole.DRIVER, frequency=Frequency.REGULAR, departure_date=date(2030, 1, 1)),
        ]

    def test_no_filters(self, manager: ResultManager, results: list[Result]) -> None:
        assert manager.filter_results(results, None) == results
        assert manager.filter_results(results, {"order": DEFAULT_ORDER}) == results

    def test_role(self, manager: ResultManager, results: list[Result]) -> None:
        """Попутчик с обеими ролями проходит фильтр по любой роли."""
        filtered = manager.filter_results(results, {"filters": {"role": "passenger"}})

        assert [r.id for r in filtered] == ["b", "c"]

    def test_frequency(self, manager: ResultManager, results: list[Result]) -> None:
        filtered = manager.filter_results(results, {"filters": {"frequency": "regular"}})

        assert [r.id for r in filtered] == ["d"]

    def test_date(self, manager: ResultManager, results: list[Result]) -> None:
        """Фильтр даты не отсекает регулярные поездки."""
        filtered = manager.filter_results(results, {"filters": {"date": "2030-05-06"}})

        assert [r.id for r in filtered] == ["a", "b", "d"]

    def test_date_object(self, manager: ResultManager, results: list[Result]) -> None:
        filtered = manager.filter_results(results, {"filters": {"date": date(2030, 5, 7)}})

        assert [r.id for r in filtered] == ["b", "d"]

    def test_combined(self, manager: ResultManager, results: list[Result]) -> None:
        filtered = manager.filter_results(
            results, {"filters": {"role": "driver", "frequency": "punctual", "date": "2030-05-05"}},
        )

        assert [r.id for r in filtered] == ["a"]

    @pytest.mark.parametrize(
        "filters",
        [{"role": "pilot"}, {"frequency": "daily"}, {"date": "06/05/2030"}],
    )
    def test_invalid_values(self, manager: ResultManager, results: list[Result], filters) -> None:
        with pytest.raises(AdException, match="Invalid filter"):
            manager.filter_results(results, {"filters": filters})


class TestOrderResults:
    """Тесты для order_results."""

    def test_default_date_ascending(self, manager: ResultManager) -> None:
        results = [
            make_result("late", departure_date=date(2030, 5, 7)),
            make_result("early-evening", departure_time=time(18, 0)),
            make_result("early-morning", departure_time=time(7, 0)),
            make_result("no-time", departure_time=None),
        ]

        ordered = manager.order_results(results, None)

        assert [r.id for r in ordered] == ["no-time", "early-morning", "early-evening", "late"]

    def test_date_descending(self, manager: ResultManager) -> None:
        results = [make_result("x", departure_date=date(2030, 5, 6)), make_result("y", departure_date=date(2030, 5, 9))]

        ordered = manager.order_results(results, {"order": {"criteria": "date", "value": "DESC"}})

        assert [r.id for r in ordered] == ["y", "x"]

    def test_ties_ordered_by_id(self, manager: ResultManager) -> None:
        """Равные результаты упорядочены по id независимо от входного порядка."""
        results = [make_result("c"), make_result("a"), make_result("b")]

        assert [r.id for r in manager.order_results(results, None)] == ["a", "b", "c"]
        assert [r.id for r in manager.order_results(list(reversed(results)), None)] == ["a", "b", "c"]

    def test_price_ascending_none_last(self, manager: ResultManager) -> None:
        results = [make_result("p3", price=12.0), make_result("none"), make_result("p1", price=4.5)]

        ordered = manager.order_results(results, {"order": {"criteria": "price", "value": "ASC"}})

        assert [r.id for r in ordered] == ["p1", "p3", "none"]

    def test_price_descending_none_last(self, manager: ResultManager) -> None:
        results = [make_result("p1", price=4.5), make_result("none"), make_result("p3", price=12.0)]

        ordered = manager.order_results(results, {"order": {"criteria": "price", "value": "desc"}})

        assert [r.id for r in ordered] == ["p3", "p1", "none"]
