# mobicoop/core/carpool/__init__.py
"""
Домен совместных поездок.
Объявления, предложения, подбор попутчиков и результаты.
"""

from mobicoop.core.carpool.models import (
    Ad,
    Address,
    Criteria,
    Matching,
    Proposal,
    Result,
    ScheduleEntry,
    Waypoint,
)
from mobicoop.core.carpool.criteria import CriteriaBuilder
from mobicoop.core.carpool.linker import ProposalLinker
from mobicoop.core.carpool.matching import ProposalMatcher
from mobicoop.core.carpool.repository import ProposalRepository
from mobicoop.core.carpool.results import ResultManager
from mobicoop.core.carpool.service import AdService

__all__ = [
    "Ad",
    "Address",
    "Criteria",
    "Matching",
    "Proposal",
    "Result",
    "ScheduleEntry",
    "Waypoint",
    "CriteriaBuilder",
    "ProposalLinker",
    "ProposalMatcher",
    "ProposalRepository",
    "ResultManager",
    "AdService",
]
