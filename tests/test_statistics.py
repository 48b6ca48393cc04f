import pytest

from coursehub.exceptions import NotFoundError
from coursehub.services.scoring_service import ScoringService
from coursehub.services.statistics_service import (
    StatisticsService, question_accuracy, score_summary, summarize_statuses
)


def test_summarize_statuses():
    stats = summarize_statuses(['submitted', 'graded', 'graded'], total_students=5)
    assert stats == {'submitted': 3, 'graded': 2, 'pending': 1, 'totalStudents': 5}


def test_score_summary():
    summary = score_summary([95, 59.5, 60, 'bad', 120])
    assert summary['count'] == 5
    assert summary['maxScore'] == 120
    assert summary['minScore'] == 0
    assert summary['passRate'] == 60.0
    counts = {bucket['range']: bucket['count'] for bucket in summary['scoreDistribution']}
    assert counts == {'0-59': 2, '60-69': 1, '70-79': 0, '80-89': 0, '90-100': 2}


def test_score_summary_scales_to_full_score():
    summary = score_summary([45, 29, 30], full_score=50)
    assert summary['fullScore'] == 50
    assert summary['maxScore'] == 45
    assert summary['passRate'] == round(2 / 3 * 100, 2)
    counts = {bucket['range']: bucket['count'] for bucket in summary['scoreDistribution']}
    assert counts == {'0-59': 1, '60-69': 1, '70-79': 0, '80-89': 0, '90-100': 1}
    assert score_summary([50], full_score=0)['fullScore'] == 100


def test_score_summary_empty():
    summary = score_summary([])
    assert summary['count'] == 0
    assert summary['avgScore'] == 0
    assert len(summary['scoreDistribution']) == 5


def test_question_accuracy_ignores_subjective_answers():
    stats = question_accuracy([
        {'questionId': 1, 'type': 'single_choice', 'isCorrect': True},
        {'questionId': 1, 'type': 'single_choice', 'isCorrect': False},
        {'questionId': 2, 'type': 'essay', 'isCorrect': None},
    ])
    assert stats == [{'questionId': 1, 'attempts': 2, 'correct': 1, 'accuracy': 50.0}]


def test_source_stats(app, seed):
    with app.app_context():
        ScoringService.submit(seed.alice, 'exam', seed.exam, [
            {'questionId': seed.single, 'content': 'B'},
            {'questionId': seed.multi, 'content': 'A,C'},
        ])
        ScoringService.submit(seed.bob, 'exam', seed.exam, [
            {'questionId': seed.single, 'content': 'A'},
        ])

        stats = StatisticsService.get_source_stats('exam', seed.exam)
        assert stats['submitted'] == 2
        assert stats['pending'] == stats['submitted'] - stats['graded']
        assert stats['totalStudents'] == 2
        assert stats['avgScore'] == 50
        assert stats['maxScore'] == 100
        assert stats['passRate'] == 50.0
        accuracy = {row['questionId']: row['accuracy'] for row in stats['questionStats']}
        assert accuracy == {seed.single: 50.0, seed.multi: 50.0}


def test_source_submissions_lists_whole_roster(app, seed):
    with app.app_context():
        ScoringService.submit(seed.alice, 'assignment', seed.homework, [])
        rows = StatisticsService.get_source_submissions('assignment', seed.homework)
        assert [row['studentNumber'] for row in rows] == ['s001', 's002']
        assert rows[0]['status'] == 'submitted'
        assert rows[1]['status'] == 'not_submitted'
        assert rows[1]['submissionId'] is None


def test_unknown_source(app, seed):
    with app.app_context():
        with pytest.raises(NotFoundError):
            StatisticsService.get_source_stats('exam', 9999)


def test_source_stats_use_the_paper_maximum(app, seed):
    with app.app_context():
        ScoringService.submit(seed.alice, 'assignment', seed.homework, [
            {'questionId': seed.single, 'content': 'B'},
            {'questionId': seed.multi, 'content': 'A,C'},
            {'questionId': seed.true_false, 'content': 'T'},
        ])
        stats = StatisticsService.get_source_stats('assignment', seed.homework)
        assert stats['fullScore'] == 50
        assert stats['avgScore'] == 30
        assert stats['passRate'] == 100.0
        counts = {bucket['range']: bucket['count'] for bucket in stats['scoreDistribution']}
        assert counts['60-69'] == 1
