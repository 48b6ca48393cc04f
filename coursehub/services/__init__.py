"""
Services package
"""
from coursehub.services.scoring_service import ScoringService
from coursehub.services.knowledge_graph_service import KnowledgeGraphService
from coursehub.services.question_bank_service import QuestionBankService
from coursehub.services.statistics_service import StatisticsService

__all__ = ['ScoringService', 'KnowledgeGraphService', 'QuestionBankService', 'StatisticsService']
