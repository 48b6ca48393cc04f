"""
Option and answer normalization

Question options are stored either as a structured list or as the raw JSON
text an older import wrote. They are resolved once here into an ordered list
of {key, text} pairs; nothing downstream re-interprets the stored value.
Malformed input degrades to an empty list or to free text, never to an error.
"""
import json
import logging
import math
import re
import string

logger = logging.getLogger(__name__)

OBJECTIVE_TYPES = ('single_choice', 'multiple_choice', 'true_false')
SUBJECTIVE_TYPES = ('fill_blank', 'essay', 'programming')

MULTI_SELECT_DELIMITER = ','

TRUE_TOKENS = frozenset(('T', 'TRUE', 'Y', 'YES', '正确', '对', '√'))
FALSE_TOKENS = frozenset(('F', 'FALSE', 'N', 'NO', '错误', '错', '×'))

EMPTY_MARKERS = frozenset(('', '无', 'none', 'null', '-'))

# Full-width punctuation typed into spreadsheets breaks json.loads
_FULLWIDTH = str.maketrans({
    '“': '"',
    '”': '"',
    '＂': '"',
    '，': ',',
    '：': ':',
    '［': '[',
    '］': ']',
    '｛': '{',
    '｝': '}',
})

_LABELED_OPTION = re.compile(r'^\s*([A-Za-z])\s*[.．、:：)）]\s*(.*)$', re.S)

_RENDER_KINDS = {
    'single_choice': 'choice',
    'true_false': 'choice',
    'multiple_choice': 'multi_choice',
    'fill_blank': 'text',
    'programming': 'code',
}


def record_value(record, *names, default=None):
    """First non-None value among names, for dict records or model objects"""
    if record is None:
        return default
    for name in names:
        if isinstance(record, dict):
            value = record.get(name)
        else:
            value = getattr(record, name, None)
        if value is not None:
            return value
    return default


def as_int(value):
    """Integer id or None"""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def question_type_of(value):
    """Lower-cased question type; anything but a string is an unknown type"""
    return value.strip().lower() if isinstance(value, str) else ''


def to_number(value) -> float:
    """Parse a score or duration; anything unparseable counts as 0"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def clean_json_text(text):
    return text.translate(_FULLWIDTH)


def _coerce_option(item, index):
    if isinstance(item, dict):
        key = record_value(item, 'key', 'label', 'id')
        text = record_value(item, 'text', 'content', 'value', default='')
    elif isinstance(item, str):
        match = _LABELED_OPTION.match(item)
        if match:
            key, text = match.group(1), match.group(2).strip()
        else:
            key = string.ascii_uppercase[index] if index < 26 else None
            text = item.strip()
    elif isinstance(item, (int, float)) and not isinstance(item, bool):
        key = string.ascii_uppercase[index] if index < 26 else None
        text = str(item)
    else:
        return None

    if key is None:
        return None
    key = str(key).strip().upper()
    if not key:
        return None
    return {'key': key, 'text': '' if text is None else str(text)}


def parse_options(raw):
    """
    Resolve a stored options value into [{'key': 'A', 'text': '...'}, ...]

    Accepts a list of option dicts (``key`` or ``label``), a list of strings
    (``"A. foo"`` or bare text), a ``{key: text}`` mapping, or any of those
    encoded as JSON text. Returns [] for empty or malformed input.
    """
    if raw is None:
        return []
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode('utf-8', errors='replace')

    if isinstance(raw, str):
        text = raw.strip()
        if text.lower() in EMPTY_MARKERS:
            return []
        try:
            raw = json.loads(clean_json_text(text))
        except (ValueError, RecursionError):
            logger.warning("Unparseable options value, using no options: %.80s", text)
            return []
        if isinstance(raw, str):
            # Double-encoded JSON
            return parse_options(raw) if raw.strip() != text else []

    if isinstance(raw, dict):
        if 'key' in raw or 'label' in raw:
            items = [raw]
        else:
            items = [{'key': key, 'text': value} for key, value in raw.items()]
    elif isinstance(raw, (list, tuple)):
        items = raw
    else:
        logger.warning("Unsupported options type %s, using no options", type(raw).__name__)
        return []

    options = []
    seen = set()
    for index, item in enumerate(items):
        option = _coerce_option(item, index)
        if option is None or option['key'] in seen:
            continue
        seen.add(option['key'])
        options.append(option)
    return options


def split_answer(raw):
    """Selected keys of a multi-select answer, upper-cased, de-duplicated and sorted"""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        parts = [str(part) for part in raw if part is not None]
    else:
        parts = str(raw).replace('，', MULTI_SELECT_DELIMITER).split(MULTI_SELECT_DELIMITER)
    return sorted({part.strip().upper() for part in parts if part and part.strip()})


def normalize_true_false(raw):
    token = str(raw).strip().upper()
    if token in TRUE_TOKENS:
        return 'T'
    if token in FALSE_TOKENS:
        return 'F'
    return token


def normalize_answer(question_type, raw) -> str:
    """Canonical comparable form of an answer for the given question type"""
    if raw is None:
        return ''
    question_type = question_type_of(question_type)

    if question_type == 'multiple_choice':
        return MULTI_SELECT_DELIMITER.join(split_answer(raw))

    if isinstance(raw, (list, tuple, set, frozenset)):
        raw = MULTI_SELECT_DELIMITER.join(str(part) for part in raw)

    if question_type == 'single_choice':
        return str(raw).strip().upper()
    if question_type == 'true_false':
        return normalize_true_false(raw)
    return str(raw).strip()


def answer_text(raw):
    """Answer as stored on a submission detail"""
    if raw is None:
        return ''
    if isinstance(raw, (list, tuple, set, frozenset)):
        return MULTI_SELECT_DELIMITER.join(sorted(str(part) for part in raw))
    return str(raw)


def render_kind(question_type):
    """How a client renders the answer area; unknown types fall back to free text"""
    return _RENDER_KINDS.get(question_type_of(question_type), 'free_text')


def normalize_question(record):
    """Question record with options resolved to the canonical list"""
    question = dict(record)
    question['type'] = question_type_of(question.get('type'))
    question['options'] = parse_options(question.get('options'))
    question['renderKind'] = render_kind(question['type'])
    return question
