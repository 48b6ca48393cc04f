"""
Student routes
"""
from flask import request, jsonify, current_app
from flask_login import login_required, current_user
from functools import wraps
from coursehub.student import student_bp
from coursehub import db
from coursehub.exceptions import CourseHubError
from coursehub.models.assignment import AssignmentClass
from coursehub.models.exam import ExamClass
from coursehub.responses import failure, error_response
from coursehub.services.answer_normalizer import normalize_question
from coursehub.services.knowledge_graph_service import KnowledgeGraphService
from coursehub.services.paper_service import PaperService
from coursehub.services.scoring_service import ScoringService

SOURCE_KINDS = {
    'assignments': ('assignment', AssignmentClass, 'assignment_id'),
    'exams': ('exam', ExamClass, 'exam_id'),
}


def student_required(f):
    """Decorator to require student role"""
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_student:
            return failure('Access denied. This area is for students only.', 403)
        return f(*args, **kwargs)
    return decorated_function


def _distributed_to_student(kind, source_id):
    """Whether the assignment or exam was handed out to the student's class"""
    _, link_model, column = SOURCE_KINDS[kind]
    if current_user.class_id is None:
        return False
    return link_model.query.filter(
        getattr(link_model, column) == source_id,
        link_model.class_id == current_user.class_id
    ).first() is not None


@student_bp.route('/<any(assignments, exams):kind>')
@student_required
def list_sources(kind):
    """Work handed out to the student's class, with the student's submission state"""
    items = PaperService.list_for_student(SOURCE_KINDS[kind][0], current_user)
    return jsonify({'success': True, kind: items})


@student_bp.route('/<any(assignments, exams):kind>/<int:source_id>')
@student_required
def paper(kind, source_id):
    """Questions to answer, with their scores; answer keys and analyses are left out"""
    if not _distributed_to_student(kind, source_id):
        return failure('This work was not assigned to your class', 403)

    source_type = SOURCE_KINDS[kind][0]
    try:
        source = PaperService.get_source(source_type, source_id)
    except CourseHubError as e:
        return error_response(e)

    if source_type == 'exam' and source['status'] == 'not_started':
        return failure('The exam has not started yet', 403)

    questions = []
    for link, question in ScoringService.get_paper(source_type, source_id):
        record = normalize_question(question.to_dict())
        record.pop('answer', None)
        record.pop('analysis', None)
        record['score'] = link.score
        questions.append(record)
    source['questions'] = questions
    return jsonify({'success': True, source_type: source})


@student_bp.route('/<any(assignments, exams):kind>/<int:source_id>/submit', methods=['POST'])
@student_required
def submit(kind, source_id):
    """Submit an answer sheet"""
    data = request.get_json(silent=True) or {}
    answers = data.get('answers', [])
    if not isinstance(answers, list) or not all(isinstance(a, dict) for a in answers):
        return failure('answers must be a list of {questionId, content}')

    if not _distributed_to_student(kind, source_id):
        return failure('This work was not assigned to your class', 403)

    try:
        result = ScoringService.submit(current_user.id, SOURCE_KINDS[kind][0], source_id, answers)
        return jsonify({'success': True, **result}), 201
    except CourseHubError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Submission failed for %s %s", kind, source_id)
        return failure(f'Error submitting answers: {str(e)}', 500)


@student_bp.route('/<any(assignments, exams):kind>/<int:source_id>/status')
@student_required
def submission_status(kind, source_id):
    """Whether the student has submitted, and the current score"""
    submission = ScoringService.get_submission_status(current_user.id, SOURCE_KINDS[kind][0], source_id)
    if not submission:
        return jsonify({'success': True, 'submitted': False, 'submission': None})
    return jsonify({'success': True, 'submitted': True, 'submission': submission.to_dict()})


@student_bp.route('/submissions/<int:submission_id>')
@student_required
def submission_result(submission_id):
    """
    The student's own answer sheet

    Answer keys are only revealed once the submission is graded.
    """
    try:
        result = ScoringService.get_submission_for_grading(submission_id)
    except CourseHubError as e:
        return error_response(e)

    if result['submission']['studentId'] != current_user.id:
        return failure('Access denied', 403)

    if result['submission']['status'] != 'graded':
        for detail in result['details']:
            detail['standardAnswer'] = None

    return jsonify({'success': True, **result})


@student_bp.route('/courses')
@student_required
def courses():
    """Courses the student's class is enrolled in"""
    return jsonify({'success': True, 'courses': PaperService.courses_for_class(current_user.class_id)})


@student_bp.route('/courses/<int:course_id>/knowledge-graph')
@student_required
def knowledge_graph(course_id):
    if not PaperService.is_enrolled(course_id, current_user.class_id):
        return failure('Your class is not enrolled in this course', 403)
    try:
        graph = KnowledgeGraphService.get_course_graph(course_id, request.args.get('direction'))
        return jsonify({'success': True, 'graph': graph})
    except CourseHubError as e:
        return error_response(e)
