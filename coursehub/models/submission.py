"""
Submission models
"""
from datetime import datetime
from coursehub import db


class Submission(db.Model):
    """Student answer sheet for an assignment or an exam"""
    __tablename__ = 'submissions'
    __table_args__ = (
        db.Index('ix_submissions_source', 'source_type', 'source_id'),
    )

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    source_type = db.Column(db.String(20), nullable=False)  # 'assignment' or 'exam'
    source_id = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(20), nullable=False, default='submitted')  # submitted, graded
    total_score = db.Column(db.Numeric(8, 2, asdecimal=False), default=0)  # Always the sum of detail scores

    submitted_at = db.Column(db.DateTime, default=datetime.utcnow)
    graded_at = db.Column(db.DateTime)

    details = db.relationship('SubmissionDetail', backref='submission', lazy='select',
                              cascade='all, delete-orphan', order_by='SubmissionDetail.id')

    def to_dict(self):
        return {
            'id': self.id,
            'studentId': self.student_id,
            'sourceType': self.source_type,
            'sourceId': self.source_id,
            'status': self.status,
            'totalScore': self.total_score or 0,
            'submittedAt': self.submitted_at.isoformat() if self.submitted_at else None,
            'gradedAt': self.graded_at.isoformat() if self.graded_at else None
        }

    def __repr__(self):
        return f'<Submission {self.id} {self.source_type}={self.source_id} student={self.student_id} score={self.total_score}>'


class SubmissionDetail(db.Model):
    """Answer to one question of a submission"""
    __tablename__ = 'submission_details'

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(db.Integer, db.ForeignKey('submissions.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, nullable=False)  # Question may be deleted later

    student_answer = db.Column(db.Text)
    is_correct = db.Column(db.Boolean)  # None for answers that need a teacher
    score = db.Column(db.Numeric(6, 2, asdecimal=False), default=0)
    max_score = db.Column(db.Numeric(6, 2, asdecimal=False), default=0)

    def to_record(self):
        """In-memory record consumed by the scoring functions"""
        return {
            'detailId': self.id,
            'questionId': self.question_id,
            'studentAnswer': self.student_answer,
            'isCorrect': self.is_correct,
            'score': self.score,
            'maxScore': self.max_score
        }

    def __repr__(self):
        return f'<SubmissionDetail {self.id} question={self.question_id} score={self.score}>'
