"""
Assignment models
"""
from datetime import datetime
from coursehub import db


class Assignment(db.Model):
    """Homework assignment distributed to classes"""
    __tablename__ = 'assignments'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    due_date = db.Column(db.DateTime)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    status = db.Column(db.String(20), default='draft')  # draft, published, closed
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    questions = db.relationship('AssignmentQuestion', backref='assignment', lazy='dynamic',
                                cascade='all, delete-orphan', order_by='AssignmentQuestion.question_order')
    classes = db.relationship('AssignmentClass', backref='assignment', lazy='dynamic', cascade='all, delete-orphan')

    def is_closed(self, now=None):
        now = now or datetime.utcnow()
        return self.due_date is not None and now > self.due_date

    def to_dict(self):
        return {
            'id': self.id,
            'courseId': self.course_id,
            'title': self.title,
            'description': self.description,
            'dueDate': self.due_date.isoformat() if self.due_date else None,
            'status': self.status,
            'createdBy': self.created_by,
            'createdAt': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<Assignment {self.id} {self.title}>'


class AssignmentQuestion(db.Model):
    """Question on an assignment paper with its max score"""
    __tablename__ = 'assignment_questions'

    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey('assignments.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('questions.id'), nullable=False, index=True)
    score = db.Column(db.Numeric(8, 2, asdecimal=False), default=1)
    question_order = db.Column(db.Integer, default=0)

    question = db.relationship('Question')


class AssignmentClass(db.Model):
    """Class an assignment is distributed to"""
    __tablename__ = 'assignment_classes'

    id = db.Column(db.Integer, primary_key=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey('assignments.id'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False)
