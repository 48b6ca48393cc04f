"""
Question import and export through Excel workbooks
"""
import io
import json
import logging
import re
from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from coursehub import db
from coursehub.exceptions import ImportRowError
from coursehub.models.question import Question, QUESTION_TYPES
from coursehub.services.answer_normalizer import (
    EMPTY_MARKERS, MULTI_SELECT_DELIMITER, clean_json_text, normalize_true_false, parse_options
)

logger = logging.getLogger(__name__)

# Header aliases, first match wins
HEADER_ALIASES = {
    'content': ('题目内容', '题干', '内容', 'content', 'question'),
    'type': ('题型', 'type'),
    'options': ('选项(JSON格式)', '选项', 'options'),
    'answer': ('答案', 'answer'),
    'analysis': ('解析', 'analysis'),
    'difficulty': ('难度', 'difficulty'),
}

TYPE_LABELS = {
    '单选题': 'single_choice',
    '多选题': 'multiple_choice',
    '判断题': 'true_false',
    '填空题': 'fill_blank',
    '问答题': 'essay',
    '简答题': 'essay',
    '编程题': 'programming',
}

TYPE_NAMES = {value: key for key, value in TYPE_LABELS.items() if key != '简答题'}

DIFFICULTY_LABELS = {
    '简单': 'easy',
    '中等': 'medium',
    '困难': 'hard',
}

DIFFICULTY_NAMES = {value: key for key, value in DIFFICULTY_LABELS.items()}

TRUE_FALSE_OPTIONS = [
    {'key': 'T', 'text': '正确'},
    {'key': 'F', 'text': '错误'},
]

EXPORT_HEADERS = ('题目内容', '题型', '难度', '选项(JSON格式)', '答案', '解析')
EXPORT_COLUMN_WIDTHS = (50, 12, 10, 60, 10, 30)

_CONTIGUOUS_KEYS = re.compile(r'^[A-Z]{2,}$')

# Spreadsheet row of the first data row (row 1 holds the headers)
FIRST_DATA_ROW = 2


def _cell(row, field):
    for alias in HEADER_ALIASES[field]:
        value = row.get(alias)
        if value is not None and str(value).strip() != '':
            return value
    return None


def _question_type(label):
    label = str(label).strip()
    if label in TYPE_LABELS:
        return TYPE_LABELS[label]
    lowered = label.lower()
    return lowered if lowered in QUESTION_TYPES else None


def _difficulty(label):
    if label is None:
        return 'medium'
    label = str(label).strip()
    return DIFFICULTY_LABELS.get(label) or (label.lower() if label.lower() in DIFFICULTY_NAMES else 'medium')


def _options(raw, row_number):
    if isinstance(raw, (list, dict)):
        return parse_options(raw) or None
    if raw is None or str(raw).strip().lower() in EMPTY_MARKERS:
        return None
    try:
        decoded = json.loads(clean_json_text(str(raw)))
    except (ValueError, RecursionError):
        logger.warning("Row %s: options are not valid JSON, importing without options", row_number)
        return None
    return parse_options(decoded) or None


def _answer(question_type, raw):
    answer = '' if raw is None else str(raw).strip()
    if question_type == 'true_false':
        return 'T' if normalize_true_false(answer) == 'T' else 'F'
    if question_type in ('single_choice', 'multiple_choice'):
        answer = answer.upper()
    if question_type == 'multiple_choice' and _CONTIGUOUS_KEYS.match(answer):
        # "ABC" written in a sheet means A, B and C
        answer = MULTI_SELECT_DELIMITER.join(answer)
    return answer


def parse_row(row, row_number, course_id=None):
    """
    Question payload from one spreadsheet row

    Raises:
        ImportRowError: content or question type missing or unknown
    """
    content = _cell(row, 'content')
    type_label = _cell(row, 'type')
    if content is None or type_label is None:
        raise ImportRowError(row_number, 'missing question content or type')

    question_type = _question_type(type_label)
    if question_type is None:
        raise ImportRowError(row_number, f'unknown question type "{type_label}"')

    if question_type == 'true_false':
        options = [dict(option) for option in TRUE_FALSE_OPTIONS]
    else:
        options = _options(_cell(row, 'options'), row_number)

    content = str(content)
    return {
        'courseId': course_id,
        'title': content[:50],
        'content': content,
        'type': question_type,
        'difficulty': _difficulty(_cell(row, 'difficulty')),
        'options': options,
        'answer': _answer(question_type, _cell(row, 'answer')),
        'analysis': str(_cell(row, 'analysis') or ''),
    }


def parse_rows(rows, course_id=None):
    """Parse data rows; the first row is spreadsheet row 2"""
    return [parse_row(row, index + FIRST_DATA_ROW, course_id) for index, row in enumerate(rows)]


def read_workbook(stream):
    """
    Data rows of the first worksheet as dicts keyed by the header row

    Fully empty rows are skipped.
    """
    workbook = load_workbook(stream, read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        rows = sheet.iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            return []
        keys = [str(cell).strip() if cell is not None else '' for cell in header]
        records = []
        for values in rows:
            if values is None or all(value is None or str(value).strip() == '' for value in values):
                continue
            records.append({key: value for key, value in zip(keys, values) if key})
        return records
    finally:
        workbook.close()


def export_workbook(questions):
    """
    Workbook bytes for a list of question records

    Returns:
        BytesIO positioned at the start
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = 'Questions'
    sheet.append(EXPORT_HEADERS)

    for question in questions:
        question_type = question.get('type')
        answer = question.get('answer') or ''
        if question_type == 'true_false':
            answer = 'T' if normalize_true_false(answer) == 'T' else 'F'
        options = parse_options(question.get('options'))
        sheet.append([
            question.get('content') or '',
            TYPE_NAMES.get(question_type, question_type),
            DIFFICULTY_NAMES.get(question.get('difficulty'), DIFFICULTY_NAMES['medium']),
            json.dumps(options, ensure_ascii=False) if options else '无',
            answer,
            question.get('analysis') or '',
        ])

    for index, width in enumerate(EXPORT_COLUMN_WIDTHS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    output = io.BytesIO()
    workbook.save(output)
    output.seek(0)
    return output


def import_questions(teacher_id, course_id, rows):
    """
    Parse and insert all rows in one transaction

    Nothing is inserted when any row fails.

    Returns:
        Number of imported questions
    """
    payloads = parse_rows(rows, course_id)
    for payload in payloads:
        db.session.add(Question(
            course_id=course_id,
            type=payload['type'],
            title=payload['title'],
            content=payload['content'],
            options=payload['options'],
            answer=payload['answer'],
            analysis=payload['analysis'],
            difficulty=payload['difficulty'],
            created_by=teacher_id,
            status='active'
        ))
    db.session.commit()
    logger.info("Imported %d question(s) into course %s", len(payloads), course_id)
    return len(payloads)
