"""
Statistics Service - submission progress and score analytics for assignments and exams
"""
from sqlalchemy import and_
from coursehub import db
from coursehub.exceptions import NotFoundError
from coursehub.models.assignment import Assignment, AssignmentClass
from coursehub.models.exam import Exam, ExamClass
from coursehub.models.school_class import SchoolClass
from coursehub.models.submission import Submission, SubmissionDetail
from coursehub.models.question import Question
from coursehub.models.user import User
from coursehub.services.answer_normalizer import record_value, as_int, to_number
from coursehub.services.paper_service import PaperService
from coursehub.services.scoring_service import is_objective

PASS_SCORE = 60  # Percent of the full score
DEFAULT_FULL_SCORE = 100

SCORE_BUCKETS = (
    (0, 59),
    (60, 69),
    (70, 79),
    (80, 89),
    (90, 100),
)


def summarize_statuses(statuses, total_students=0):
    """
    Submission progress from the status of each submission

    Returns:
        Dict with submitted, graded, pending and totalStudents
    """
    statuses = list(statuses)
    submitted = len(statuses)
    graded = sum(1 for status in statuses if status == 'graded')
    return {
        'submitted': submitted,
        'graded': graded,
        'pending': submitted - graded,
        'totalStudents': int(total_students or 0)
    }


def score_summary(scores, pass_score=PASS_SCORE, full_score=DEFAULT_FULL_SCORE):
    """
    Average, extremes, pass rate and bucket distribution of total scores

    Buckets and the pass line are percentages of full_score (100 when the
    paper has no positive maximum). Scores above the last bucket are counted
    in it; unparseable scores count as 0.
    """
    values = [to_number(score) for score in scores]
    full_score = to_number(full_score)
    if full_score <= 0:
        full_score = DEFAULT_FULL_SCORE
    percents = [value / full_score * 100 for value in values]
    distribution = [{'range': f'{low}-{high}', 'min': low, 'max': high, 'count': 0}
                    for low, high in SCORE_BUCKETS]

    if not values:
        return {
            'count': 0,
            'avgScore': 0,
            'maxScore': 0,
            'minScore': 0,
            'passRate': 0,
            'fullScore': full_score,
            'scoreDistribution': distribution
        }

    for percent in percents:
        for bucket in distribution:
            if percent < bucket['max'] + 1:
                bucket['count'] += 1
                break
        else:
            distribution[-1]['count'] += 1

    passed = sum(1 for percent in percents if percent >= pass_score)
    return {
        'count': len(values),
        'avgScore': round(sum(values) / len(values), 2),
        'maxScore': max(values),
        'minScore': min(values),
        'passRate': round(passed / len(values) * 100, 2),
        'fullScore': full_score,
        'scoreDistribution': distribution
    }


def question_accuracy(details):
    """
    Per-question correct rate over objective answers

    Args:
        details: Records with questionId, type and isCorrect

    Returns:
        List of dicts with questionId, attempts, correct, accuracy (percent),
        in order of first appearance
    """
    stats = {}
    for detail in details:
        if not is_objective(record_value(detail, 'type')):
            continue
        question_id = as_int(record_value(detail, 'questionId', 'question_id'))
        if question_id is None:
            continue
        entry = stats.setdefault(question_id, {'questionId': question_id, 'attempts': 0, 'correct': 0})
        entry['attempts'] += 1
        if record_value(detail, 'isCorrect', 'is_correct'):
            entry['correct'] += 1

    for entry in stats.values():
        entry['accuracy'] = round(entry['correct'] / entry['attempts'] * 100, 2)
    return list(stats.values())


class StatisticsService:
    """Service for assignment and exam reporting"""

    SOURCES = {
        'assignment': (Assignment, AssignmentClass, AssignmentClass.assignment_id),
        'exam': (Exam, ExamClass, ExamClass.exam_id),
    }

    @classmethod
    def _check_source(cls, source_type, source_id):
        if source_type not in cls.SOURCES:
            raise NotFoundError(f'Unknown source type: {source_type}')
        model = cls.SOURCES[source_type][0]
        source = db.session.get(model, source_id)
        if not source:
            raise NotFoundError(f'{source_type.capitalize()} not found')
        return source

    @classmethod
    def _roster_query(cls, source_type, source_id):
        _, link_model, source_column = cls.SOURCES[source_type]
        return db.session.query(User).join(
            link_model, link_model.class_id == User.class_id
        ).filter(
            source_column == source_id,
            User.role == 'student'
        )

    @classmethod
    def get_source_stats(cls, source_type, source_id):
        """
        Progress and score statistics of an assignment or exam

        Returns:
            Dict with submitted/graded/pending/totalStudents, a score summary
            and per-question accuracy
        """
        cls._check_source(source_type, source_id)

        submissions = Submission.query.filter_by(source_type=source_type, source_id=source_id).all()
        total_students = cls._roster_query(source_type, source_id).distinct().count()

        stats = summarize_statuses([s.status for s in submissions], total_students)
        full_score = PaperService.paper_max_score(source_type, source_id)
        stats.update(score_summary([s.total_score for s in submissions], full_score=full_score))

        rows = db.session.query(SubmissionDetail, Question.type).outerjoin(
            Question, SubmissionDetail.question_id == Question.id
        ).join(
            Submission, SubmissionDetail.submission_id == Submission.id
        ).filter(
            Submission.source_type == source_type,
            Submission.source_id == source_id
        ).all()
        stats['questionStats'] = question_accuracy([
            {'questionId': detail.question_id, 'type': question_type, 'isCorrect': detail.is_correct}
            for detail, question_type in rows
        ])
        return stats

    @classmethod
    def get_source_submissions(cls, source_type, source_id):
        """
        Roster of the targeted classes with each student's submission, if any

        Students who have not submitted appear with submissionId None.
        """
        cls._check_source(source_type, source_id)
        _, link_model, source_column = cls.SOURCES[source_type]

        rows = db.session.query(User, SchoolClass, Submission).join(
            link_model, link_model.class_id == User.class_id
        ).join(
            SchoolClass, SchoolClass.id == User.class_id
        ).outerjoin(
            Submission, and_(
                Submission.source_type == source_type,
                Submission.source_id == source_id,
                Submission.student_id == User.id
            )
        ).filter(
            source_column == source_id,
            User.role == 'student'
        ).order_by(SchoolClass.name, User.username).all()

        return [{
            'studentId': student.id,
            'studentName': student.name,
            'studentNumber': student.username,
            'className': school_class.name,
            'submissionId': submission.id if submission else None,
            'status': submission.status if submission else 'not_submitted',
            'totalScore': submission.total_score if submission else None,
            'submittedAt': submission.submitted_at.isoformat() if submission and submission.submitted_at else None
        } for student, school_class, submission in rows]
