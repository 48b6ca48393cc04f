"""
Exam models
"""
from datetime import datetime, timedelta
from coursehub import db


class Exam(db.Model):
    """Timed exam distributed to classes"""
    __tablename__ = 'exams'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    duration = db.Column(db.Integer, nullable=False, default=60)  # Minutes
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    total_score = db.Column(db.Integer, default=100)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    questions = db.relationship('ExamQuestion', backref='exam', lazy='dynamic',
                                cascade='all, delete-orphan', order_by='ExamQuestion.question_order')
    classes = db.relationship('ExamClass', backref='exam', lazy='dynamic', cascade='all, delete-orphan')

    def schedule(self, start_time, duration):
        """Set the window; the end is always start + duration"""
        self.start_time = start_time
        self.duration = duration
        self.end_time = start_time + timedelta(minutes=duration)

    def status(self, now=None):
        now = now or datetime.utcnow()
        if now < self.start_time:
            return 'not_started'
        if now <= self.end_time:
            return 'in_progress'
        return 'ended'

    def is_closed(self, now=None):
        return self.status(now) == 'ended'

    def to_dict(self, now=None):
        return {
            'id': self.id,
            'courseId': self.course_id,
            'title': self.title,
            'description': self.description,
            'duration': self.duration,
            'startTime': self.start_time.isoformat() if self.start_time else None,
            'endTime': self.end_time.isoformat() if self.end_time else None,
            'status': self.status(now),
            'totalScore': self.total_score,
            'createdBy': self.created_by
        }

    def __repr__(self):
        return f'<Exam {self.id} {self.title}>'


class ExamQuestion(db.Model):
    """Question on an exam paper with its max score"""
    __tablename__ = 'exam_questions'

    id = db.Column(db.Integer, primary_key=True)
    exam_id = db.Column(db.Integer, db.ForeignKey('exams.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('questions.id'), nullable=False, index=True)
    score = db.Column(db.Numeric(8, 2, asdecimal=False), default=1)
    question_order = db.Column(db.Integer, default=0)

    question = db.relationship('Question')


class ExamClass(db.Model):
    """Class an exam is distributed to"""
    __tablename__ = 'exam_classes'

    id = db.Column(db.Integer, primary_key=True)
    exam_id = db.Column(db.Integer, db.ForeignKey('exams.id'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
