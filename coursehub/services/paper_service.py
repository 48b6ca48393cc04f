"""
Paper Service - publishing assignments and exams

A paper is the ordered list of questions of an assignment or exam, each with
its max score. Publishing also hands the work out to classes and enrolls
those classes in the course.
"""
import logging
from sqlalchemy import func
from coursehub import db
from coursehub.exceptions import NotFoundError, PaperValidationError, SourceInUseError
from coursehub.models.assignment import Assignment, AssignmentQuestion, AssignmentClass
from coursehub.models.course import Course, CourseClass
from coursehub.models.exam import Exam, ExamQuestion, ExamClass
from coursehub.models.question import Question
from coursehub.models.school_class import SchoolClass
from coursehub.models.submission import Submission
from coursehub.services.answer_normalizer import record_value, as_int, to_number

logger = logging.getLogger(__name__)

ASSIGNMENT_STATUSES = ('draft', 'published', 'closed')


def parse_paper(items):
    """
    Paper entries from client input

    Each item carries questionId, score and an optional order. Scores are
    parsed leniently (unparseable -> 0); items without a usable question id
    are dropped and a repeated question keeps its first entry.

    Returns:
        List of {questionId, score, order} sorted by order
    """
    paper = []
    seen = set()
    for index, item in enumerate(items or []):
        if not isinstance(item, dict):
            continue
        question_id = as_int(record_value(item, 'questionId', 'question_id'))
        if question_id is None or question_id in seen:
            continue
        seen.add(question_id)
        order = as_int(record_value(item, 'order', 'questionOrder', 'question_order'))
        paper.append({
            'questionId': question_id,
            'score': max(to_number(record_value(item, 'score')), 0.0),
            'order': index + 1 if order is None else order
        })
    return sorted(paper, key=lambda entry: entry['order'])


def parse_class_ids(values):
    """Distinct class ids in input order; non-numeric entries are dropped"""
    class_ids = []
    for value in values or []:
        class_id = as_int(value)
        if class_id is not None and class_id not in class_ids:
            class_ids.append(class_id)
    return class_ids


class PaperService:
    """Service for creating, editing and listing assignments and exams"""

    SOURCES = {
        'assignment': (Assignment, AssignmentQuestion, AssignmentClass, 'assignment_id'),
        'exam': (Exam, ExamQuestion, ExamClass, 'exam_id'),
    }

    @classmethod
    def _get_owned(cls, source_type, source_id, teacher_id):
        model = cls.SOURCES[source_type][0]
        source = model.query.filter_by(id=source_id, created_by=teacher_id).first()
        if not source:
            raise NotFoundError(f'{source_type.capitalize()} not found')
        return source

    @staticmethod
    def _has_submissions(source_type, source_id):
        return Submission.query.filter_by(source_type=source_type, source_id=source_id).first() is not None

    @staticmethod
    def _check_references(course_id, paper, class_ids):
        if course_id is None or not db.session.get(Course, course_id):
            raise NotFoundError('Course not found')

        if class_ids is not None:
            if not class_ids:
                raise PaperValidationError('Choose at least one class')
            known_classes = {row.id for row in SchoolClass.query.filter(SchoolClass.id.in_(class_ids)).all()}
            missing = [class_id for class_id in class_ids if class_id not in known_classes]
            if missing:
                raise PaperValidationError(f'Unknown class: {missing[0]}')

        question_ids = [entry['questionId'] for entry in paper]
        if question_ids:
            known_questions = {row.id for row in Question.query.filter(Question.id.in_(question_ids)).all()}
            missing = [question_id for question_id in question_ids if question_id not in known_questions]
            if missing:
                raise PaperValidationError(f'Unknown question: {missing[0]}')

    @classmethod
    def _replace_links(cls, source_type, source, paper, class_ids):
        _, question_model, class_model, column = cls.SOURCES[source_type]

        if paper is not None:
            question_model.query.filter_by(**{column: source.id}).delete(synchronize_session=False)
            for position, entry in enumerate(paper, start=1):
                db.session.add(question_model(**{column: source.id}, question_id=entry['questionId'],
                                              score=entry['score'], question_order=position))

        if class_ids is None:
            return

        class_model.query.filter_by(**{column: source.id}).delete(synchronize_session=False)
        for class_id in class_ids:
            db.session.add(class_model(**{column: source.id}, class_id=class_id))

        enrolled = {row.class_id for row in CourseClass.query.filter_by(course_id=source.course_id).all()}
        for class_id in class_ids:
            if class_id not in enrolled:
                db.session.add(CourseClass(course_id=source.course_id, class_id=class_id))

    @classmethod
    def _prepare(cls, source_type, teacher_id, data, source_id):
        """Load or create the source and parse the paper; a paper may not change once answered"""
        model = cls.SOURCES[source_type][0]
        if source_id:
            source = cls._get_owned(source_type, source_id, teacher_id)
        else:
            source = model(created_by=teacher_id)

        course_id = as_int(data.get('courseId')) or source.course_id
        paper = parse_paper(data['questions']) if data.get('questions') is not None else None
        class_ids = parse_class_ids(data['classIds']) if data.get('classIds') is not None else None

        if source_id and paper is not None and cls._has_submissions(source_type, source_id):
            raise SourceInUseError('The paper cannot change after students have submitted')
        if not source_id:
            paper = paper or []
            class_ids = class_ids or []

        cls._check_references(course_id, paper or [], class_ids)
        source.course_id = course_id
        return source, paper, class_ids

    @classmethod
    def save_assignment(cls, teacher_id, data, assignment_id=None):
        """
        Create an assignment, or update one the teacher created

        Args:
            teacher_id: Teacher user ID
            data: Dict with courseId, title, description, dueDate, status,
                classIds and questions ([{questionId, score, order}])
            assignment_id: Assignment to update; None creates one

        Returns:
            The saved Assignment
        """
        assignment, paper, class_ids = cls._prepare('assignment', teacher_id, data, assignment_id)

        status = data.get('status') or assignment.status or 'published'
        if status not in ASSIGNMENT_STATUSES:
            raise PaperValidationError(f'Unknown status: {status}')

        assignment.title = data.get('title') or assignment.title
        assignment.description = data.get('description', assignment.description)
        assignment.due_date = data.get('dueDate') or assignment.due_date
        assignment.status = status
        db.session.add(assignment)
        db.session.flush()

        cls._replace_links('assignment', assignment, paper, class_ids)
        db.session.commit()

        logger.info("Assignment %s saved by teacher %s for classes %s",
                    assignment.id, teacher_id, class_ids)
        return assignment

    @classmethod
    def save_exam(cls, teacher_id, data, exam_id=None):
        """
        Create an exam, or update one the teacher created

        The end time always follows from start time and duration; a duration
        that cannot be parsed counts as 0 minutes. Without an explicit total
        score the exam is worth the sum of its question scores.
        """
        exam, paper, class_ids = cls._prepare('exam', teacher_id, data, exam_id)

        start_time = data.get('startTime') or exam.start_time
        if start_time is None:
            raise PaperValidationError('Start time is required')
        duration = data['duration'] if 'duration' in data else exam.duration
        exam.schedule(start_time, int(to_number(duration)))

        exam.title = data.get('title') or exam.title
        exam.description = data.get('description', exam.description)
        total = to_number(data.get('totalScore'))
        if total <= 0 and paper is not None:
            total = sum(entry['score'] for entry in paper)
        if total > 0:
            exam.total_score = int(round(total))
        db.session.add(exam)
        db.session.flush()

        cls._replace_links('exam', exam, paper, class_ids)
        db.session.commit()

        logger.info("Exam %s saved by teacher %s (%s min from %s)",
                    exam.id, teacher_id, exam.duration, exam.start_time.isoformat())
        return exam

    @classmethod
    def delete_source(cls, source_type, source_id, teacher_id):
        """Delete an unanswered assignment or exam together with its paper and class links"""
        source = cls._get_owned(source_type, source_id, teacher_id)
        if cls._has_submissions(source_type, source_id):
            raise SourceInUseError(f'Students have already submitted this {source_type}')

        _, question_model, class_model, column = cls.SOURCES[source_type]
        question_model.query.filter_by(**{column: source_id}).delete(synchronize_session=False)
        class_model.query.filter_by(**{column: source_id}).delete(synchronize_session=False)
        db.session.delete(source)
        db.session.commit()
        logger.info("%s %s deleted by teacher %s", source_type.capitalize(), source_id, teacher_id)

    @classmethod
    def get_source(cls, source_type, source_id):
        """Header, paper and class ids of an assignment or exam"""
        model, question_model, class_model, column = cls.SOURCES[source_type]
        source = db.session.get(model, source_id)
        if not source:
            raise NotFoundError(f'{source_type.capitalize()} not found')

        links = question_model.query.filter_by(**{column: source_id}).order_by(
            question_model.question_order, question_model.id
        ).all()
        classes = class_model.query.filter_by(**{column: source_id}).all()

        data = source.to_dict()
        data['questions'] = [{
            'questionId': link.question_id,
            'score': link.score,
            'order': link.question_order
        } for link in links]
        data['maxScore'] = sum(to_number(link.score) for link in links)
        data['classIds'] = sorted(link.class_id for link in classes)
        return data

    @classmethod
    def paper_max_score(cls, source_type, source_id) -> float:
        """Sum of the question scores on a paper"""
        _, question_model, _, column = cls.SOURCES[source_type]
        total = db.session.query(func.sum(question_model.score)).filter(
            getattr(question_model, column) == source_id
        ).scalar()
        return to_number(total)

    @classmethod
    def list_for_teacher(cls, source_type, teacher_id):
        """Sources created by a teacher, newest first"""
        model = cls.SOURCES[source_type][0]
        sources = model.query.filter_by(created_by=teacher_id).order_by(model.created_at.desc(), model.id.desc()).all()
        return [source.to_dict() for source in sources]

    @classmethod
    def list_for_student(cls, source_type, student):
        """
        Sources handed out to the student's class with the student's submission state

        Draft assignments are not listed.
        """
        if student.class_id is None:
            return []

        model, _, class_model, column = cls.SOURCES[source_type]
        query = db.session.query(model, Course.name).join(
            class_model, getattr(class_model, column) == model.id
        ).outerjoin(
            Course, Course.id == model.course_id
        ).filter(class_model.class_id == student.class_id)
        if source_type == 'assignment':
            query = query.filter(model.status != 'draft')
            query = query.order_by(model.due_date.desc(), model.id.desc())
        else:
            query = query.order_by(model.start_time.desc(), model.id.desc())
        rows = query.all()

        submissions = {
            submission.source_id: submission
            for submission in Submission.query.filter_by(student_id=student.id, source_type=source_type).all()
        }

        items = []
        for source, course_name in rows:
            item = source.to_dict()
            item['courseName'] = course_name
            submission = submissions.get(source.id)
            item['submitted'] = submission is not None
            item['submissionId'] = submission.id if submission else None
            item['submissionStatus'] = submission.status if submission else 'not_submitted'
            item['totalScore'] = submission.total_score if submission else None
            items.append(item)
        return items

    @staticmethod
    def courses_for_class(class_id):
        """Courses a class is enrolled in"""
        if class_id is None:
            return []
        courses = Course.query.join(
            CourseClass, CourseClass.course_id == Course.id
        ).filter(CourseClass.class_id == class_id).order_by(Course.name).all()
        return [course.to_dict() for course in courses]

    @staticmethod
    def is_enrolled(course_id, class_id):
        if class_id is None:
            return False
        return CourseClass.query.filter_by(course_id=course_id, class_id=class_id).first() is not None
