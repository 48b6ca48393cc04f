"""
Shared fixtures: an in-memory app, a seeded course and logged-in clients
"""
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from coursehub import create_app, db
from coursehub.models.user import User
from coursehub.models.school_class import SchoolClass
from coursehub.models.course import Course, CourseClass
from coursehub.models.chapter import Chapter
from coursehub.models.knowledge_point import KnowledgePoint
from coursehub.models.question import Question
from coursehub.models.assignment import Assignment, AssignmentQuestion, AssignmentClass
from coursehub.models.exam import Exam, ExamQuestion, ExamClass
from coursehub.services.cache_service import CacheService

PASSWORD = 'secret123'

CHOICES = [
    {'key': 'A', 'text': 'func'},
    {'key': 'B', 'text': 'def'},
    {'key': 'C', 'text': 'lambda'},
]


@pytest.fixture
def app():
    CacheService.reset()
    app = create_app('testing')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
    CacheService.reset()


def _user(username, role, school_class=None):
    user = User(username=username, name=username.title(), role=role, school_class=school_class)
    user.set_password(PASSWORD)
    db.session.add(user)
    return user


def _question(course, teacher, question_type, answer, options=None):
    question = Question(course_id=course.id, type=question_type, title=f'{question_type} question',
                        content=f'Content of a {question_type} question', options=options,
                        answer=answer, created_by=teacher.id)
    db.session.add(question)
    return question


def _paper(link_model, owner_field, owner, questions_and_scores):
    for order, (question, score) in enumerate(questions_and_scores, start=1):
        db.session.add(link_model(**{owner_field: owner.id}, question_id=question.id,
                                  score=score, question_order=order))


@pytest.fixture
def seed(app):
    """Seed two classes, a teacher, three students and a course with papers; returns ids"""
    now = datetime.utcnow()
    with app.app_context():
        class_a = SchoolClass(name='Class A', grade=2024)
        class_b = SchoolClass(name='Class B', grade=2024)
        db.session.add_all([class_a, class_b])
        db.session.flush()

        teacher = _user('teacher1', 'teacher')
        alice = _user('s001', 'student', class_a)
        bob = _user('s002', 'student', class_a)
        carol = _user('s003', 'student', class_b)
        db.session.flush()

        course = Course(name='Programming', code='CS101', teacher_id=teacher.id, status='active')
        db.session.add(course)
        db.session.flush()
        db.session.add(CourseClass(course_id=course.id, class_id=class_a.id))

        basics = Chapter(course_id=course.id, title='Basics', chapter_order=1)
        structures = Chapter(course_id=course.id, title='Data structures', chapter_order=2)
        db.session.add_all([basics, structures])
        db.session.flush()

        variables = KnowledgePoint(course_id=course.id, chapter_id=basics.id, name='Variables', kp_order=1)
        functions = KnowledgePoint(course_id=course.id, chapter_id=basics.id, name='Functions', kp_order=2)
        lists = KnowledgePoint(course_id=course.id, chapter_id=structures.id, name='Lists', kp_order=1)
        db.session.add_all([variables, functions, lists])

        single = _question(course, teacher, 'single_choice', 'B', CHOICES)
        multi = _question(course, teacher, 'multiple_choice', 'A,C', CHOICES)
        true_false = _question(course, teacher, 'true_false', 'T',
                               [{'key': 'T', 'text': '正确'}, {'key': 'F', 'text': '错误'}])
        essay = _question(course, teacher, 'essay', '')
        db.session.flush()

        homework = Assignment(course_id=course.id, title='Homework 1', created_by=teacher.id,
                              due_date=now + timedelta(days=3), status='published')
        closed = Assignment(course_id=course.id, title='Old homework', created_by=teacher.id,
                            due_date=now - timedelta(days=1), status='published')
        empty = Assignment(course_id=course.id, title='Empty homework', created_by=teacher.id,
                           due_date=now + timedelta(days=3), status='published')
        db.session.add_all([homework, closed, empty])

        exam = Exam(course_id=course.id, title='Midterm', created_by=teacher.id)
        exam.schedule(now - timedelta(minutes=10), 120)
        future_exam = Exam(course_id=course.id, title='Final', created_by=teacher.id)
        future_exam.schedule(now + timedelta(days=1), 90)
        db.session.add_all([exam, future_exam])
        db.session.flush()

        _paper(AssignmentQuestion, 'assignment_id', homework,
               [(single, 10), (multi, 10), (true_false, 10), (essay, 20)])
        _paper(AssignmentQuestion, 'assignment_id', closed, [(single, 10)])
        _paper(ExamQuestion, 'exam_id', exam, [(single, 50), (multi, 50)])
        _paper(ExamQuestion, 'exam_id', future_exam, [(single, 100)])

        for assignment in (homework, closed, empty):
            db.session.add(AssignmentClass(assignment_id=assignment.id, class_id=class_a.id))
        for scheduled in (exam, future_exam):
            db.session.add(ExamClass(exam_id=scheduled.id, class_id=class_a.id))

        db.session.commit()

        return SimpleNamespace(
            class_a=class_a.id, class_b=class_b.id,
            teacher=teacher.id, alice=alice.id, bob=bob.id, carol=carol.id,
            course=course.id, basics=basics.id, structures=structures.id,
            variables=variables.id, functions=functions.id, lists=lists.id,
            single=single.id, multi=multi.id, true_false=true_false.id, essay=essay.id,
            homework=homework.id, closed=closed.id, empty=empty.id,
            exam=exam.id, future_exam=future_exam.id
        )


def login(client, username, password=PASSWORD):
    return client.post('/auth/login', json={'username': username, 'password': password})


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def teacher_client(app, seed):
    client = app.test_client()
    login(client, 'teacher1')
    return client


@pytest.fixture
def student_client(app, seed):
    client = app.test_client()
    login(client, 's001')
    return client


@pytest.fixture
def other_student_client(app, seed):
    client = app.test_client()
    login(client, 's002')
    return client
