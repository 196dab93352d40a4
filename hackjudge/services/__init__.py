from .entity_store import EntityStore
from .registration_service import RegistrationService
from .scoring_service import ScoringService
from .aggregation_service import AggregationService
from .ranking_service import RankingService

__all__ = [
    "EntityStore",
    "RegistrationService",
    "ScoringService",
    "AggregationService",
    "RankingService",
]
