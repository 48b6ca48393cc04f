"""
Scoring Service for submissions and grading
"""
import logging
from datetime import datetime
from coursehub import db
from coursehub.exceptions import (
    NotFoundError, SubmissionClosedError, DuplicateSubmissionError,
    EmptyPaperError, GradeValidationError
)
from coursehub.models.assignment import Assignment, AssignmentQuestion
from coursehub.models.exam import Exam, ExamQuestion
from coursehub.models.question import Question
from coursehub.models.submission import Submission, SubmissionDetail
from coursehub.models.user import User
from coursehub.services.answer_normalizer import (
    OBJECTIVE_TYPES, record_value, as_int, to_number, normalize_answer,
    answer_text, parse_options, render_kind, question_type_of
)

logger = logging.getLogger(__name__)

SOURCE_TYPES = ('assignment', 'exam')


def is_objective(question_type) -> bool:
    return question_type_of(question_type) in OBJECTIVE_TYPES


def judge(question, student_answer):
    """
    Mechanical verdict for an answer.

    Returns True/False for objective questions with an answer key, None when
    the answer needs a teacher (subjective type, no key, or no question).
    """
    if not question:
        return None
    question_type = question_type_of(record_value(question, 'type'))
    if not is_objective(question_type):
        return None
    standard = normalize_answer(question_type, record_value(question, 'answer'))
    if not standard:
        return None
    student = normalize_answer(question_type, student_answer)
    return bool(student) and student == standard


def grade_detail(detail, question=None, rescore=True) -> dict:
    """
    Attach the verdict to a submission detail record.

    Objective answers score ``maxScore`` when correct and 0 otherwise. Answers
    that need a teacher keep their current score (0 until graded) and are
    flagged ``requiresManualScore``. With ``rescore=False`` the stored score
    is kept for every detail.
    """
    graded = dict(detail)
    max_score = to_number(record_value(detail, 'maxScore', 'max_score'))
    current = to_number(record_value(detail, 'score'))
    verdict = judge(question, record_value(detail, 'studentAnswer', 'student_answer'))

    graded['maxScore'] = max_score
    graded['isCorrect'] = verdict
    graded['requiresManualScore'] = verdict is None
    graded['questionMissing'] = question is None
    if question is not None:
        graded['type'] = question_type_of(record_value(question, 'type'))

    if verdict is None or not rescore:
        graded['score'] = current
    else:
        graded['score'] = max_score if verdict else 0.0
    return graded


def grade_details(details, questions, rescore=True) -> list:
    """Grade details against questions given as a list or an id -> question mapping"""
    if isinstance(questions, dict):
        by_id = {as_int(key): value for key, value in questions.items()}
    else:
        by_id = {as_int(record_value(q, 'id')): q for q in questions or []}
    return [
        grade_detail(detail, by_id.get(as_int(record_value(detail, 'questionId', 'question_id'))), rescore)
        for detail in details
    ]


def total_score(details) -> float:
    """Sum of detail scores; ungraded details count with their current score"""
    return sum(to_number(record_value(detail, 'score')) for detail in details)


def apply_grades(details, grades) -> list:
    """
    Upsert teacher scores onto detail records, keyed by detail id.

    Unknown detail ids are ignored; applying the same grades again yields the
    same records.
    """
    updates = {}
    for grade in grades or []:
        detail_id = as_int(record_value(grade, 'detailId', 'detail_id'))
        if detail_id is not None:
            updates[detail_id] = to_number(record_value(grade, 'score'))

    result = []
    for detail in details:
        updated = dict(detail)
        detail_id = as_int(record_value(detail, 'detailId', 'detail_id', 'id'))
        if detail_id in updates:
            updated['score'] = updates[detail_id]
        result.append(updated)
    return result


class ScoringService:
    """Service for submitting answer sheets and grading them"""

    SOURCES = {
        'assignment': (Assignment, AssignmentQuestion, AssignmentQuestion.assignment_id),
        'exam': (Exam, ExamQuestion, ExamQuestion.exam_id),
    }

    @classmethod
    def _load_source(cls, source_type, source_id):
        if source_type not in cls.SOURCES:
            raise NotFoundError(f'Unknown source type: {source_type}')
        model = cls.SOURCES[source_type][0]
        source = db.session.get(model, source_id)
        if not source:
            raise NotFoundError(f'{source_type.capitalize()} not found')
        return source

    @classmethod
    def get_paper(cls, source_type, source_id) -> list:
        """
        Questions of an assignment or exam in paper order

        Returns:
            List of (link, Question) tuples; link.score is the max score
        """
        _, link_model, source_column = cls.SOURCES[source_type]
        return db.session.query(link_model, Question).join(
            Question, link_model.question_id == Question.id
        ).filter(
            source_column == source_id
        ).order_by(
            link_model.question_order, link_model.id
        ).all()

    @classmethod
    def get_submission_status(cls, student_id, source_type, source_id):
        """Existing submission of a student for a source, or None"""
        return Submission.query.filter_by(
            student_id=student_id,
            source_type=source_type,
            source_id=source_id
        ).first()

    @classmethod
    def submit(cls, student_id: int, source_type: str, source_id: int, answers, now=None) -> dict:
        """
        Store a student's answer sheet and auto-grade objective questions

        Args:
            student_id: Student user ID
            source_type: 'assignment' or 'exam'
            source_id: Assignment or exam ID
            answers: List of {questionId, content}
            now: Submission time (defaults to utcnow)

        Returns:
            Dict with submissionId and the auto score
        """
        now = now or datetime.utcnow()
        source = cls._load_source(source_type, source_id)

        if source_type == 'exam' and source.status(now) == 'not_started':
            raise SubmissionClosedError('The exam has not started yet')
        if source.is_closed(now):
            raise SubmissionClosedError(f'The {source_type} is closed for submissions')

        paper = cls.get_paper(source_type, source_id)
        if not paper:
            raise EmptyPaperError()

        if cls.get_submission_status(student_id, source_type, source_id):
            raise DuplicateSubmissionError(f'This {source_type} has already been submitted')

        answer_map = {}
        for answer in answers or []:
            question_id = as_int(record_value(answer, 'questionId', 'question_id'))
            if question_id is not None:
                answer_map[question_id] = record_value(answer, 'content', 'studentAnswer', 'answer')

        submission = Submission(
            student_id=student_id,
            source_type=source_type,
            source_id=source_id,
            status='submitted',
            submitted_at=now
        )
        db.session.add(submission)

        graded = []
        for link, question in paper:
            detail = grade_detail({
                'questionId': question.id,
                'studentAnswer': answer_map.get(question.id),
                'maxScore': link.score,
                'score': 0
            }, question.to_dict())
            graded.append(detail)
            submission.details.append(SubmissionDetail(
                question_id=question.id,
                student_answer=answer_text(answer_map.get(question.id)),
                is_correct=detail['isCorrect'],
                score=detail['score'],
                max_score=detail['maxScore']
            ))

        submission.total_score = total_score(graded)
        db.session.commit()

        logger.info("Submission %s stored for %s %s by student %s (auto score %.2f)",
                    submission.id, source_type, source_id, student_id, submission.total_score)

        return {'submissionId': submission.id, 'score': submission.total_score}

    @classmethod
    def _get_submission(cls, submission_id):
        submission = db.session.get(Submission, submission_id)
        if not submission:
            raise NotFoundError('Submission not found')
        return submission

    @classmethod
    def get_submission_for_grading(cls, submission_id: int) -> dict:
        """
        Submission header plus every detail joined with its question

        Details whose question no longer exists are kept and flagged
        ``requiresManualScore``.
        """
        submission = cls._get_submission(submission_id)

        rows = db.session.query(SubmissionDetail, Question).outerjoin(
            Question, SubmissionDetail.question_id == Question.id
        ).filter(
            SubmissionDetail.submission_id == submission_id
        ).order_by(SubmissionDetail.id).all()

        details = []
        for detail, question in rows:
            graded = grade_detail(detail.to_record(), question.to_dict() if question else None, rescore=False)
            graded.update({
                'title': question.title if question else None,
                'content': question.content if question else None,
                'type': question.type if question else None,
                'renderKind': render_kind(question.type if question else None),
                'options': parse_options(question.options) if question else [],
                'standardAnswer': question.answer if question else None,
            })
            details.append(graded)

        header = submission.to_dict()
        student = db.session.get(User, submission.student_id)
        header['studentName'] = (student.name or student.username) if student else None
        source_model = cls.SOURCES.get(submission.source_type, (None,))[0]
        source = db.session.get(source_model, submission.source_id) if source_model else None
        header['sourceTitle'] = source.title if source else None
        header['totalScore'] = total_score(details)

        return {'submission': header, 'details': details}

    @classmethod
    def validate_grades(cls, submission_id: int, grades) -> list:
        """
        Check teacher input before it is persisted

        Every grade must name a detail of this submission and carry a score
        between 0 and that detail's max score.
        """
        submission = cls._get_submission(submission_id)
        max_scores = {detail.id: to_number(detail.max_score) for detail in submission.details}

        cleaned = []
        for grade in grades or []:
            detail_id = as_int(record_value(grade, 'detailId', 'detail_id'))
            if detail_id not in max_scores:
                raise GradeValidationError(f'Answer {detail_id} does not belong to this submission')
            score = record_value(grade, 'score')
            if isinstance(score, bool) or not isinstance(score, (int, float)):
                raise GradeValidationError(f'Score for answer {detail_id} must be a number')
            if score < 0 or score > max_scores[detail_id]:
                raise GradeValidationError(
                    f'Score for answer {detail_id} must be between 0 and {max_scores[detail_id]:g}'
                )
            cleaned.append({'detailId': detail_id, 'score': float(score)})
        return cleaned

    @classmethod
    def update_grades(cls, submission_id: int, grades) -> dict:
        """
        Persist teacher scores and recompute the total

        Args:
            submission_id: Submission ID
            grades: List of {detailId, score}

        Returns:
            Dict with the new total score
        """
        submission = cls._get_submission(submission_id)
        records = apply_grades([detail.to_record() for detail in submission.details], grades)

        changed = False
        for detail, record in zip(submission.details, records):
            score = to_number(record['score'])
            if to_number(detail.score) != score:
                detail.score = score
                changed = True

        new_total = total_score(records)
        if changed or submission.status != 'graded':
            submission.graded_at = datetime.utcnow()
        submission.total_score = new_total
        submission.status = 'graded'
        db.session.commit()

        logger.info("Submission %s graded, total %.2f", submission_id, new_total)

        return {'success': True, 'newTotalScore': new_total}

    @classmethod
    def recompute_total(cls, submission) -> float:
        """Bring total_score back in line with the detail scores"""
        submission.total_score = total_score([detail.to_record() for detail in submission.details])
        return submission.total_score
