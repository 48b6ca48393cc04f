"""
Database models
"""
from coursehub.models.user import User
from coursehub.models.school_class import SchoolClass
from coursehub.models.course import Course, CourseClass
from coursehub.models.chapter import Chapter
from coursehub.models.knowledge_point import KnowledgePoint
from coursehub.models.question import Question
from coursehub.models.assignment import Assignment, AssignmentQuestion, AssignmentClass
from coursehub.models.exam import Exam, ExamQuestion, ExamClass
from coursehub.models.submission import Submission, SubmissionDetail

__all__ = [
    'User',
    'SchoolClass',
    'Course',
    'CourseClass',
    'Chapter',
    'KnowledgePoint',
    'Question',
    'Assignment',
    'AssignmentQuestion',
    'AssignmentClass',
    'Exam',
    'ExamQuestion',
    'ExamClass',
    'Submission',
    'SubmissionDetail'
]
