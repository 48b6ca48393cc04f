"""
Question bank model
"""
from datetime import datetime
from coursehub import db

QUESTION_TYPES = ('single_choice', 'multiple_choice', 'true_false', 'fill_blank', 'essay', 'programming')
DIFFICULTIES = ('easy', 'medium', 'hard')


class Question(db.Model):
    """Question in a course's question bank"""
    __tablename__ = 'questions'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False, index=True)
    type = db.Column(db.String(30), nullable=False)
    title = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text)
    options = db.Column(db.JSON)  # [{"key": "A", "text": "..."}] or a raw JSON string from older imports
    answer = db.Column(db.Text)  # Canonical answer key, e.g. "B", "A,C", "T"
    analysis = db.Column(db.Text)
    difficulty = db.Column(db.String(10), default='medium')
    status = db.Column(db.String(20), default='active')  # active, archived
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        """Raw record; options are resolved by the answer normalizer"""
        return {
            'id': self.id,
            'courseId': self.course_id,
            'type': self.type,
            'title': self.title,
            'content': self.content,
            'options': self.options,
            'answer': self.answer,
            'analysis': self.analysis,
            'difficulty': self.difficulty,
            'status': self.status
        }

    def __repr__(self):
        return f'<Question {self.id} type={self.type} status={self.status}>'
