"""
School class model
"""
from datetime import datetime
from coursehub import db


class SchoolClass(db.Model):
    """Teaching class that assignments and exams are distributed to"""
    __tablename__ = 'classes'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    grade = db.Column(db.Integer)  # Enrollment year, e.g. 2024
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<SchoolClass {self.name}>'
