from coursehub.services.answer_normalizer import (
    answer_text, as_int, normalize_answer, normalize_question, parse_options,
    question_type_of, render_kind, split_answer, to_number
)


class TestParseOptions:
    def test_structured_list(self):
        options = parse_options([{'key': 'a', 'text': 'one'}, {'label': 'B', 'content': 'two'}])
        assert options == [{'key': 'A', 'text': 'one'}, {'key': 'B', 'text': 'two'}]

    def test_json_text(self):
        assert parse_options('[{"key": "A", "text": "x"}]') == [{'key': 'A', 'text': 'x'}]

    def test_double_encoded_json(self):
        raw = '"[{\\"key\\": \\"A\\", \\"text\\": \\"x\\"}]"'
        assert parse_options(raw) == [{'key': 'A', 'text': 'x'}]

    def test_fullwidth_punctuation(self):
        raw = '［｛“key”：“A”，“text”：“x”｝］'
        assert parse_options(raw) == [{'key': 'A', 'text': 'x'}]

    def test_mapping(self):
        assert parse_options({'A': 'x', 'B': 'y'}) == [{'key': 'A', 'text': 'x'}, {'key': 'B', 'text': 'y'}]

    def test_labeled_and_bare_strings(self):
        assert parse_options(['A. first', 'B、second']) == [
            {'key': 'A', 'text': 'first'}, {'key': 'B', 'text': 'second'}
        ]
        assert parse_options(['first', 'second']) == [
            {'key': 'A', 'text': 'first'}, {'key': 'B', 'text': 'second'}
        ]

    def test_duplicate_keys_keep_first(self):
        options = parse_options([{'key': 'A', 'text': 'x'}, {'key': 'a', 'text': 'y'}])
        assert options == [{'key': 'A', 'text': 'x'}]

    def test_malformed_input_degrades_to_empty(self):
        assert parse_options('not json at all') == []
        assert parse_options(None) == []
        assert parse_options('无') == []
        assert parse_options(42) == []

    def test_deeply_nested_json_degrades_to_empty(self):
        assert parse_options('[' * 100000 + ']' * 100000) == []


class TestAnswers:
    def test_multi_select_is_order_insensitive(self):
        assert normalize_answer('multiple_choice', 'C,A') == 'A,C'
        assert normalize_answer('multiple_choice', ['c', 'a', 'a']) == 'A,C'
        assert normalize_answer('multiple_choice', 'A，C') == 'A,C'

    def test_single_choice_case(self):
        assert normalize_answer('single_choice', ' b ') == 'B'

    def test_true_false_tokens(self):
        assert normalize_answer('true_false', '正确') == 'T'
        assert normalize_answer('true_false', 'false') == 'F'

    def test_missing_answer(self):
        assert normalize_answer('single_choice', None) == ''
        assert split_answer(None) == []

    def test_answer_text_sorts_lists(self):
        assert answer_text(['C', 'A']) == 'A,C'
        assert answer_text(None) == ''
        assert answer_text('free text') == 'free text'


def test_to_number_defaults_to_zero():
    assert to_number('7.5') == 7.5
    assert to_number('abc') == 0.0
    assert to_number(None) == 0.0
    assert to_number(float('nan')) == 0.0
    assert to_number(True) == 0.0


def test_as_int():
    assert as_int('12') == 12
    assert as_int('x') is None
    assert as_int(False) is None


def test_render_kind_falls_back_to_free_text():
    assert render_kind('single_choice') == 'choice'
    assert render_kind('MULTIPLE_CHOICE') == 'multi_choice'
    assert render_kind('programming') == 'code'
    assert render_kind('essay') == 'free_text'
    assert render_kind('mystery') == 'free_text'


def test_normalize_question():
    question = normalize_question({'id': 1, 'type': 'Single_Choice', 'options': '{"A": "x"}'})
    assert question['type'] == 'single_choice'
    assert question['options'] == [{'key': 'A', 'text': 'x'}]
    assert question['renderKind'] == 'choice'


def test_non_string_question_type_is_free_text():
    assert question_type_of(' Essay ') == 'essay'
    assert question_type_of(5) == ''
    assert question_type_of(None) == ''
    assert render_kind(5) == 'free_text'
    assert normalize_answer(7, ' b ') == 'b'

    question = normalize_question({'id': 2, 'type': ['single_choice'], 'options': None})
    assert question['type'] == ''
    assert question['renderKind'] == 'free_text'
