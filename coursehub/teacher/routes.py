"""
Teacher routes
"""
import io
import zipfile
from flask import request, jsonify, send_file, current_app
from flask_login import login_required, current_user
from functools import wraps
from openpyxl.utils.exceptions import InvalidFileException
from werkzeug.datastructures import MultiDict
from coursehub.teacher import teacher_bp
from coursehub.teacher.forms import (
    ChapterForm, KnowledgePointForm, ImportQuestionsForm, GradeItemForm, AssignmentForm, ExamForm
)
from coursehub import db
from coursehub.exceptions import CourseHubError
from coursehub.models.course import Course
from coursehub.responses import failure, error_response, form_errors
from coursehub.services.knowledge_graph_service import KnowledgeGraphService
from coursehub.services.paper_service import PaperService
from coursehub.services.question_bank_service import QuestionBankService
from coursehub.services.question_import_service import read_workbook, export_workbook, import_questions
from coursehub.services.scoring_service import ScoringService
from coursehub.services.statistics_service import StatisticsService

SOURCE_KINDS = {'assignments': 'assignment', 'exams': 'exam'}
SOURCE_FORMS = {'assignments': AssignmentForm, 'exams': ExamForm}


def teacher_required(f):
    """Decorator to require teacher/admin role"""
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not current_user.is_teacher:
            return failure('Access denied. This area is for teachers only.', 403)
        return f(*args, **kwargs)
    return decorated_function


def _text(value):
    return '' if value is None else str(value)


@teacher_bp.route('/courses/<int:course_id>/knowledge-graph')
@teacher_required
def knowledge_graph(course_id):
    """Laid-out knowledge graph of a course"""
    try:
        graph = KnowledgeGraphService.get_course_graph(course_id, request.args.get('direction'))
        return jsonify({'success': True, 'graph': graph})
    except CourseHubError as e:
        return error_response(e)


@teacher_bp.route('/courses/<int:course_id>/chapters', methods=['POST'])
@teacher_required
def create_chapter(course_id):
    """Add a chapter to a course"""
    form = ChapterForm()
    if not form.validate_on_submit():
        return jsonify({'success': False, 'message': 'Invalid chapter', 'errors': form_errors(form)}), 400

    try:
        chapter = KnowledgeGraphService.create_chapter(
            course_id,
            title=form.title.data,
            description=form.description.data,
            chapter_order=form.chapter_order.data
        )
        return jsonify({'success': True, 'chapter': chapter.to_dict()}), 201
    except CourseHubError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Chapter creation failed for course %s", course_id)
        return failure(f'Error creating chapter: {str(e)}', 500)


@teacher_bp.route('/chapters/<int:chapter_id>/delete', methods=['POST'])
@teacher_required
def delete_chapter(chapter_id):
    """Delete a chapter"""
    try:
        KnowledgeGraphService.delete_chapter(chapter_id)
        return jsonify({'success': True, 'message': 'Chapter deleted'})
    except CourseHubError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Chapter %s deletion failed", chapter_id)
        return failure(f'Error deleting chapter: {str(e)}', 500)


@teacher_bp.route('/courses/<int:course_id>/knowledge-points', methods=['POST'])
@teacher_required
def create_knowledge_point(course_id):
    """Add a knowledge point to a course, optionally under a chapter"""
    form = KnowledgePointForm()
    if not form.validate_on_submit():
        return jsonify({'success': False, 'message': 'Invalid knowledge point', 'errors': form_errors(form)}), 400

    try:
        kp = KnowledgeGraphService.create_knowledge_point(
            course_id,
            name=form.name.data,
            chapter_id=form.chapter_id.data,
            description=form.description.data,
            kp_order=form.kp_order.data
        )
        return jsonify({'success': True, 'knowledgePoint': kp.to_dict()}), 201
    except CourseHubError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Knowledge point creation failed for course %s", course_id)
        return failure(f'Error creating knowledge point: {str(e)}', 500)


@teacher_bp.route('/knowledge-points/<int:kp_id>/delete', methods=['POST'])
@teacher_required
def delete_knowledge_point(kp_id):
    """Delete a knowledge point"""
    try:
        KnowledgeGraphService.delete_knowledge_point(kp_id)
        return jsonify({'success': True, 'message': 'Knowledge point deleted'})
    except CourseHubError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Knowledge point %s deletion failed", kp_id)
        return failure(f'Error deleting knowledge point: {str(e)}', 500)


@teacher_bp.route('/questions')
@teacher_required
def questions():
    """Question bank with optional course and text filters"""
    questions = QuestionBankService.list_questions(
        course_id=request.args.get('course_id', type=int),
        search=request.args.get('search', '').strip() or None
    )
    return jsonify({'success': True, 'questions': questions})


@teacher_bp.route('/questions/<int:question_id>')
@teacher_required
def question_detail(question_id):
    try:
        return jsonify({'success': True, 'question': QuestionBankService.get_question(question_id)})
    except CourseHubError as e:
        return error_response(e)


@teacher_bp.route('/questions/save', methods=['POST'])
@teacher_required
def save_question():
    """Create a question or update one of the teacher's own"""
    data = request.get_json(silent=True) or {}
    if not data.get('id') and (not data.get('content') or not data.get('type')):
        return failure('content and type are required')

    try:
        question = QuestionBankService.upsert_question(current_user.id, data)
        return jsonify({'success': True, 'question': question.to_dict()})
    except CourseHubError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Saving question failed")
        return failure(f'Error saving question: {str(e)}', 500)


@teacher_bp.route('/questions/import', methods=['POST'])
@teacher_required
def import_questions_route():
    """Import questions from an uploaded workbook"""
    form = ImportQuestionsForm()
    if not form.validate_on_submit():
        return jsonify({'success': False, 'message': 'Invalid upload', 'errors': form_errors(form)}), 400

    if not db.session.get(Course, form.course_id.data):
        return failure('Course not found', 404)

    try:
        rows = read_workbook(io.BytesIO(form.file.data.read()))
    except (InvalidFileException, zipfile.BadZipFile, OSError) as e:
        current_app.logger.warning("Unreadable workbook upload: %s", e)
        return failure('The file is not a readable Excel workbook')

    if not rows:
        return failure('The workbook has no data rows')

    try:
        count = import_questions(current_user.id, form.course_id.data, rows)
        return jsonify({'success': True, 'count': count, 'message': f'Imported {count} questions'})
    except CourseHubError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Question import failed")
        return failure(f'Error importing questions: {str(e)}', 500)


@teacher_bp.route('/questions/export')
@teacher_required
def export_questions():
    """Download the question bank as a workbook"""
    questions = QuestionBankService.list_questions(course_id=request.args.get('course_id', type=int))
    return send_file(
        export_workbook(questions),
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        as_attachment=True,
        download_name='questions.xlsx'
    )


@teacher_bp.route('/questions/delete', methods=['POST'])
@teacher_required
def delete_questions():
    """Delete (or archive, when in use) several questions"""
    data = request.get_json(silent=True) or {}
    ids = data.get('ids')
    if not isinstance(ids, list) or not all(isinstance(i, int) and not isinstance(i, bool) for i in ids):
        return failure('ids must be a list of question IDs')

    try:
        results = QuestionBankService.delete_questions_bulk(ids, current_user.id)
        return jsonify({
            'success': True,
            'results': results,
            'message': f"Deleted {results['deleted']} question(s), archived {results['archived']}"
        })
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Bulk question delete failed")
        return failure(f'Error deleting questions: {str(e)}', 500)


def _paper_data(kind, form):
    """Service input from a validated header form plus the JSON paper and class lists"""
    body = request.get_json(silent=True) or {}
    data = {
        'courseId': form.course_id.data,
        'title': form.title.data,
        'description': form.description.data,
        'classIds': body.get('class_ids', body.get('classIds')),
        'questions': body.get('questions'),
    }
    if kind == 'assignments':
        data['dueDate'] = form.due_date.data
        data['status'] = form.status.data or None
    else:
        data['startTime'] = form.start_time.data
        data['totalScore'] = form.total_score.data
        if form.duration.data is not None:
            data['duration'] = form.duration.data
    return data


def _save_source(kind, source_id=None):
    form = SOURCE_FORMS[kind]()
    if not form.validate_on_submit():
        return jsonify({'success': False, 'message': f'Invalid {SOURCE_KINDS[kind]}', 'errors': form_errors(form)}), 400

    body = request.get_json(silent=True) or {}
    for name in ('questions', 'class_ids', 'classIds'):
        if body.get(name) is not None and not isinstance(body[name], list):
            return failure(f'{name} must be a list')

    try:
        data = _paper_data(kind, form)
        if kind == 'assignments':
            source = PaperService.save_assignment(current_user.id, data, source_id)
        else:
            source = PaperService.save_exam(current_user.id, data, source_id)
        return jsonify({
            'success': True,
            SOURCE_KINDS[kind]: PaperService.get_source(SOURCE_KINDS[kind], source.id)
        }), 200 if source_id else 201
    except CourseHubError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Saving %s failed", SOURCE_KINDS[kind])
        return failure(f'Error saving {SOURCE_KINDS[kind]}: {str(e)}', 500)


@teacher_bp.route('/<any(assignments, exams):kind>')
@teacher_required
def list_sources(kind):
    """Assignments or exams created by the current teacher"""
    return jsonify({'success': True, kind: PaperService.list_for_teacher(SOURCE_KINDS[kind], current_user.id)})


@teacher_bp.route('/<any(assignments, exams):kind>', methods=['POST'])
@teacher_required
def create_source(kind):
    """Publish an assignment or exam with its paper and target classes"""
    return _save_source(kind)


@teacher_bp.route('/<any(assignments, exams):kind>/<int:source_id>')
@teacher_required
def source_detail(kind, source_id):
    try:
        return jsonify({'success': True, SOURCE_KINDS[kind]: PaperService.get_source(SOURCE_KINDS[kind], source_id)})
    except CourseHubError as e:
        return error_response(e)


@teacher_bp.route('/<any(assignments, exams):kind>/<int:source_id>', methods=['POST'])
@teacher_required
def update_source(kind, source_id):
    """Edit one of the teacher's assignments or exams"""
    return _save_source(kind, source_id)


@teacher_bp.route('/<any(assignments, exams):kind>/<int:source_id>/delete', methods=['POST'])
@teacher_required
def delete_source(kind, source_id):
    try:
        PaperService.delete_source(SOURCE_KINDS[kind], source_id, current_user.id)
        return jsonify({'success': True, 'message': f'{SOURCE_KINDS[kind].capitalize()} deleted'})
    except CourseHubError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Deleting %s %s failed", SOURCE_KINDS[kind], source_id)
        return failure(f'Error deleting {SOURCE_KINDS[kind]}: {str(e)}', 500)


@teacher_bp.route('/<any(assignments, exams):kind>/<int:source_id>/submissions')
@teacher_required
def source_submissions(kind, source_id):
    """Students of the targeted classes with their submission state"""
    try:
        rows = StatisticsService.get_source_submissions(SOURCE_KINDS[kind], source_id)
        return jsonify({'success': True, 'submissions': rows})
    except CourseHubError as e:
        return error_response(e)


@teacher_bp.route('/<any(assignments, exams):kind>/<int:source_id>/stats')
@teacher_required
def source_stats(kind, source_id):
    """Progress and score statistics"""
    try:
        stats = StatisticsService.get_source_stats(SOURCE_KINDS[kind], source_id)
        return jsonify({'success': True, 'stats': stats})
    except CourseHubError as e:
        return error_response(e)


@teacher_bp.route('/submissions/<int:submission_id>')
@teacher_required
def grading_detail(submission_id):
    """Answer sheet with questions, answer keys and current scores"""
    try:
        return jsonify({'success': True, **ScoringService.get_submission_for_grading(submission_id)})
    except CourseHubError as e:
        return error_response(e)


@teacher_bp.route('/submissions/<int:submission_id>/grades', methods=['POST'])
@teacher_required
def update_grades(submission_id):
    """Save teacher scores for a submission"""
    data = request.get_json(silent=True) or {}
    items = data.get('grades')
    if not isinstance(items, list):
        return failure('grades must be a list')

    grades = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            return failure(f'Grade {index} is malformed')
        form = GradeItemForm(formdata=MultiDict({
            'detail_id': _text(item.get('detailId', item.get('detail_id'))),
            'score': _text(item.get('score'))
        }))
        if not form.validate():
            return jsonify({'success': False, 'message': f'Grade {index} is invalid', 'errors': form_errors(form)}), 400
        grades.append({'detailId': form.detail_id.data, 'score': form.score.data})

    try:
        grades = ScoringService.validate_grades(submission_id, grades)
        result = ScoringService.update_grades(submission_id, grades)
        return jsonify(result)
    except CourseHubError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception("Saving grades failed for submission %s", submission_id)
        return failure(f'Error saving grades: {str(e)}', 500)
