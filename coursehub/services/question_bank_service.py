"""
Question bank management
"""
import logging
from datetime import datetime
from sqlalchemy import or_
from coursehub import db
from coursehub.exceptions import NotFoundError
from coursehub.models.assignment import AssignmentQuestion
from coursehub.models.exam import ExamQuestion
from coursehub.models.question import Question
from coursehub.services.answer_normalizer import normalize_question, parse_options

logger = logging.getLogger(__name__)


class QuestionBankService:
    """Listing, editing and safe deletion of questions"""

    @staticmethod
    def list_questions(course_id=None, search=None, created_by=None):
        """Active questions, newest first, with options resolved"""
        query = Question.query.filter_by(status='active')
        if course_id:
            query = query.filter_by(course_id=course_id)
        if created_by:
            query = query.filter_by(created_by=created_by)
        if search:
            pattern = f'%{search}%'
            query = query.filter(or_(Question.content.like(pattern), Question.title.like(pattern)))
        questions = query.order_by(Question.created_at.desc(), Question.id.desc()).all()
        return [normalize_question(question.to_dict()) for question in questions]

    @staticmethod
    def get_question(question_id):
        question = db.session.get(Question, question_id)
        if not question:
            raise NotFoundError('Question not found')
        return normalize_question(question.to_dict())

    @staticmethod
    def upsert_question(teacher_id, data):
        """
        Create a question, or update one the teacher owns when data carries an id

        Options are stored in canonical form.
        """
        question_id = data.get('id')
        if question_id:
            question = Question.query.filter_by(id=question_id, created_by=teacher_id).first()
            if not question:
                raise NotFoundError('Question not found')
        else:
            question = Question(created_by=teacher_id, status='active')
            db.session.add(question)

        content = data.get('content', question.content)
        question.course_id = data.get('courseId', question.course_id)
        question.type = data.get('type', question.type)
        question.content = content
        question.title = data.get('title') or question.title or str(content or '')[:50]
        if 'options' in data:
            question.options = parse_options(data['options']) or None
        question.answer = data.get('answer', question.answer)
        question.analysis = data.get('analysis', question.analysis)
        question.difficulty = data.get('difficulty', question.difficulty or 'medium')
        question.updated_at = datetime.utcnow()

        db.session.commit()
        return question

    @staticmethod
    def delete_questions_bulk(ids, teacher_id):
        """
        Delete the teacher's questions; those used by an assignment or exam are archived instead

        Returns:
            Dict with deleted, archived and failed counts
        """
        results = {'deleted': 0, 'archived': 0, 'failed': 0}

        for question_id in ids:
            question = Question.query.filter_by(id=question_id, created_by=teacher_id).first()
            if not question:
                results['failed'] += 1
                continue

            references = AssignmentQuestion.query.filter_by(question_id=question_id).count() \
                + ExamQuestion.query.filter_by(question_id=question_id).count()

            if references > 0:
                question.status = 'archived'
                question.updated_at = datetime.utcnow()
                results['archived'] += 1
            else:
                db.session.delete(question)
                results['deleted'] += 1

        db.session.commit()
        logger.info("Bulk delete by teacher %s: %s", teacher_id, results)
        return results
