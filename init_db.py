"""
Initialize database and create demo users, a class and a course
"""
import os
import sys
from datetime import datetime, timedelta

# Add app to path
sys.path.insert(0, os.path.dirname(__file__))

from coursehub import create_app, db
from coursehub.models.user import User
from coursehub.models.school_class import SchoolClass
from coursehub.models.course import Course, CourseClass
from coursehub.models.chapter import Chapter
from coursehub.models.knowledge_point import KnowledgePoint
from coursehub.models.question import Question
from coursehub.models.assignment import Assignment, AssignmentQuestion, AssignmentClass
from coursehub.models.exam import Exam, ExamQuestion, ExamClass

DEMO_COURSE_CODE = 'CS101'

DEMO_TREE = [
    ('Python basics', ['Variables', 'Control flow', 'Functions']),
    ('Data structures', ['Lists and tuples', 'Dictionaries']),
]

DEMO_QUESTIONS = [
    {'type': 'single_choice', 'content': 'Which keyword defines a function?',
     'options': [{'key': 'A', 'text': 'func'}, {'key': 'B', 'text': 'def'},
                 {'key': 'C', 'text': 'lambda'}, {'key': 'D', 'text': 'fn'}],
     'answer': 'B'},
    {'type': 'multiple_choice', 'content': 'Which of these are mutable?',
     'options': [{'key': 'A', 'text': 'list'}, {'key': 'B', 'text': 'tuple'},
                 {'key': 'C', 'text': 'dict'}, {'key': 'D', 'text': 'str'}],
     'answer': 'A,C'},
    {'type': 'true_false', 'content': 'Tuples can be used as dictionary keys.',
     'options': [{'key': 'T', 'text': '正确'}, {'key': 'F', 'text': '错误'}],
     'answer': 'T'},
    {'type': 'essay', 'content': 'Explain the difference between a list and a generator.',
     'options': None, 'answer': ''},
]


def _get_or_create_user(username, role, name, password, school_class=None):
    user = User.query.filter_by(username=username).first()
    if user:
        return user
    print(f"Creating {role}: {username}...")
    user = User(username=username, name=name, email=f'{username}@coursehub.local', role=role,
                school_class=school_class)
    user.set_password(password)  # Change this in production!
    db.session.add(user)
    db.session.flush()
    return user


def _seed_course(teacher, school_class):
    course = Course.query.filter_by(code=DEMO_COURSE_CODE).first()
    if course:
        print(f"Course {DEMO_COURSE_CODE} already exists, skipping demo content")
        return

    print(f"Creating course: {DEMO_COURSE_CODE}...")
    course = Course(name='Introduction to Programming', code=DEMO_COURSE_CODE,
                    teacher_id=teacher.id, status='active')
    db.session.add(course)
    db.session.flush()
    db.session.add(CourseClass(course_id=course.id, class_id=school_class.id))

    for chapter_order, (title, points) in enumerate(DEMO_TREE, start=1):
        chapter = Chapter(course_id=course.id, title=title, chapter_order=chapter_order)
        db.session.add(chapter)
        db.session.flush()
        for kp_order, name in enumerate(points, start=1):
            db.session.add(KnowledgePoint(course_id=course.id, chapter_id=chapter.id,
                                          name=name, kp_order=kp_order))

    questions = []
    for data in DEMO_QUESTIONS:
        question = Question(course_id=course.id, title=data['content'][:50], created_by=teacher.id,
                            difficulty='medium', status='active', **data)
        db.session.add(question)
        questions.append(question)
    db.session.flush()

    assignment = Assignment(course_id=course.id, title='Week 1 homework', created_by=teacher.id,
                            due_date=datetime.utcnow() + timedelta(days=7), status='published')
    db.session.add(assignment)
    db.session.flush()
    db.session.add(AssignmentClass(assignment_id=assignment.id, class_id=school_class.id))

    exam = Exam(course_id=course.id, title='Midterm', created_by=teacher.id, total_score=100)
    exam.schedule(datetime.utcnow() + timedelta(days=14), 90)
    db.session.add(exam)
    db.session.flush()
    db.session.add(ExamClass(exam_id=exam.id, class_id=school_class.id))

    for order, question in enumerate(questions, start=1):
        db.session.add(AssignmentQuestion(assignment_id=assignment.id, question_id=question.id,
                                          score=10, question_order=order))
        db.session.add(ExamQuestion(exam_id=exam.id, question_id=question.id,
                                    score=25, question_order=order))


def init_database():
    """Initialize database and create tables"""
    app = create_app()

    with app.app_context():
        print("Creating database tables...")
        db.create_all()

        _get_or_create_user('admin', 'admin', 'Administrator', 'admin123')
        teacher = _get_or_create_user('teacher', 'teacher', 'Demo Teacher', 'teacher123')

        school_class = SchoolClass.query.filter_by(name='CS 2024-1').first()
        if not school_class:
            print("Creating class: CS 2024-1...")
            school_class = SchoolClass(name='CS 2024-1', grade=2024)
            db.session.add(school_class)
            db.session.flush()

        for number, name in (('2024001', 'Alice'), ('2024002', 'Bob'), ('2024003', 'Carol')):
            _get_or_create_user(number, 'student', name, 'student123', school_class)

        _seed_course(teacher, school_class)

        db.session.commit()
        print("\nDatabase initialized successfully!")
        print("\nTest users created:")
        print("Admin: username='admin', password='admin123'")
        print("Teacher: username='teacher', password='teacher123'")
        print("Students: username='2024001/2024002/2024003', password='student123'")
        print("\nIMPORTANT: Change these passwords in production!")


if __name__ == '__main__':
    init_database()
