# mobicoop/core/carpool/linker.py
"""
Связывание предложений и совпадений.

- обратный рейс: клон рейса туда со своими критериями и точками
- связанные совпадения: совпадение туда <-> совпадение обратно с той же парой
- противоположные совпадения: одна пара в ролях водитель/пассажир и наоборот
"""

from __future__ import annotations

from typing import Mapping

from mobicoop.common.constants import ProposalType
from mobicoop.core.carpool.models import Ad, Criteria, Matching, Proposal
from mobicoop.core.carpool.waypoints import build_waypoints


class ProposalLinker:
    """Связывание рейсов туда/обратно и их совпадений."""

    def create_return_proposal(self, outward: Proposal, ad: Ad, return_criteria: Criteria) -> Proposal:
        """
        Создаёт обратный рейс и связывает его с рейсом туда.

        Без точек обратного рейса берутся точки рейса туда в обратном
        порядке; ad.return_waypoints обновляется.

        Args:
            outward: Рейс туда
            ad: Объявление
            return_criteria: Критерии обратного рейса

        Returns:
            Обратный рейс
        """
        if not ad.return_waypoints:
            ad.return_waypoints = list(reversed(ad.outward_waypoints))

        return_proposal = Proposal(
            type=ProposalType.RETURN,
            user_id=outward.user_id,
            user_delegate_id=outward.user_delegate_id,
            private=outward.private,
            comment=outward.comment,
            community_ids=list(outward.community_ids),
            event_id=outward.event_id,
            criteria=return_criteria,
            waypoints=build_waypoints(ad.return_waypoints),
            proposal_linked_id=outward.id,
        )
        outward.proposal_linked_id = return_proposal.id
        return return_proposal

    def link_related_matchings(
        self,
        outward: Proposal,
        return_proposal: Proposal,
        counterparts: Mapping[str, Proposal],
    ) -> list[tuple[Matching, Matching]]:
        """
        Связывает совпадения рейса туда с совпадениями обратного рейса той же пары.

        Args:
            outward: Рейс туда
            return_proposal: Обратный рейс
            counterparts: Предложения попутчиков по ID

        Returns:
            Пары связанных совпадений
        """
        linked: list[tuple[Matching, Matching]] = []

        pairs = (
            (outward.matchings_offer, return_proposal.matchings_offer, "proposal_request_id"),
            (outward.matchings_request, return_proposal.matchings_request, "proposal_offer_id"),
        )
        for outward_matchings, return_matchings, counterpart_field in pairs:
            for outward_matching in outward_matchings:
                counterpart = counterparts.get(getattr(outward_matching, counterpart_field))
                if counterpart is None or counterpart.proposal_linked_id is None:
                    continue

                for return_matching in return_matchings:
                    if getattr(return_matching, counterpart_field) != counterpart.proposal_linked_id:
                        continue
                    outward_matching.matching_linked_id = return_matching.id
                    return_matching.matching_linked_id = outward_matching.id
                    linked.append((outward_matching, return_matching))
                    break

        return linked

    def link_opposite_matchings(self, proposal: Proposal) -> list[tuple[Matching, Matching]]:
        """
        Связывает совпадения предложения с обеими ролями против одного попутчика.

        Args:
            proposal: Предложение водителя и пассажира

        Returns:
            Пары противоположных совпадений
        """
        linked: list[tuple[Matching, Matching]] = []

        requests_by_counterpart = {
            matching.proposal_offer_id: matching for matching in proposal.matchings_request
        }
        for offer_matching in proposal.matchings_offer:
            request_matching = requests_by_counterpart.get(offer_matching.proposal_request_id)
            if request_matching is None:
                continue
            offer_matching.matching_opposite_id = request_matching.id
            request_matching.matching_opposite_id = offer_matching.id
            linked.append((offer_matching, request_matching))

        return linked
