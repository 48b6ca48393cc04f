"""
Course model
"""
from datetime import datetime
from coursehub import db


class Course(db.Model):
    """Course owned by a teacher"""
    __tablename__ = 'courses'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(50), nullable=False, unique=True)
    description = db.Column(db.Text)
    teacher_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    semester = db.Column(db.String(20))  # e.g. "2024-2025-1"
    status = db.Column(db.String(20), default='draft')  # draft, active, archived
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    chapters = db.relationship('Chapter', backref='course', lazy='dynamic', cascade='all, delete-orphan')
    knowledge_points = db.relationship('KnowledgePoint', backref='course', lazy='dynamic', cascade='all, delete-orphan')
    classes = db.relationship('CourseClass', backref='course', lazy='dynamic', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'description': self.description,
            'teacherId': self.teacher_id,
            'semester': self.semester,
            'status': self.status
        }

    def __repr__(self):
        return f'<Course {self.code} {self.name}>'


class CourseClass(db.Model):
    """Class enrolled in a course"""
    __tablename__ = 'course_classes'
    __table_args__ = (
        db.UniqueConstraint('course_id', 'class_id', name='uq_course_classes'),
    )

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
