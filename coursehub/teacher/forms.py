"""
Teacher forms
"""
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired, FileAllowed
from wtforms import Form, StringField, TextAreaField, IntegerField, FloatField, DateTimeField
from wtforms.validators import DataRequired, InputRequired, Length, Optional, NumberRange, AnyOf


class ChapterForm(FlaskForm):
    """Form for adding a chapter to a course"""
    title = StringField('Title', validators=[DataRequired(), Length(max=200)])
    description = TextAreaField('Description', validators=[Optional()])
    chapter_order = IntegerField('Order', validators=[Optional(), NumberRange(min=0)])


class KnowledgePointForm(FlaskForm):
    """Form for adding a knowledge point to a course"""
    name = StringField('Name', validators=[DataRequired(), Length(max=200)])
    chapter_id = IntegerField('Chapter', validators=[Optional()])
    description = TextAreaField('Description', validators=[Optional()])
    kp_order = IntegerField('Order', validators=[Optional(), NumberRange(min=0)])


class ImportQuestionsForm(FlaskForm):
    """Form for importing questions from an Excel workbook"""
    course_id = IntegerField('Course', validators=[DataRequired()])
    file = FileField('Workbook', validators=[
        FileRequired(),
        FileAllowed(['xlsx'], 'Only .xlsx workbooks are supported')
    ])


DATETIME_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M', '%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M']


class AssignmentForm(FlaskForm):
    """Header of an assignment; the paper and classes travel as JSON lists"""
    course_id = IntegerField('Course', validators=[DataRequired()])
    title = StringField('Title', validators=[DataRequired(), Length(max=200)])
    description = TextAreaField('Description', validators=[Optional()])
    due_date = DateTimeField('Due date', format=DATETIME_FORMATS, validators=[DataRequired()])
    status = StringField('Status', validators=[Optional(), AnyOf(['draft', 'published', 'closed'])])


class ExamForm(FlaskForm):
    """Header of an exam; the end time is derived from start time and duration"""
    course_id = IntegerField('Course', validators=[DataRequired()])
    title = StringField('Title', validators=[DataRequired(), Length(max=200)])
    description = TextAreaField('Description', validators=[Optional()])
    start_time = DateTimeField('Start time', format=DATETIME_FORMATS, validators=[DataRequired()])
    duration = FloatField('Duration', validators=[Optional(), NumberRange(min=0)])
    total_score = FloatField('Total score', validators=[Optional(), NumberRange(min=0)])


class GradeItemForm(Form):
    """One score entered by a teacher; validated per item of a JSON list"""
    detail_id = IntegerField('Answer', validators=[InputRequired()])
    score = FloatField('Score', validators=[InputRequired(), NumberRange(min=0)])
