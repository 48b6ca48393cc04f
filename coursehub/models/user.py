"""
User model
"""
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from coursehub import db


class User(UserMixin, db.Model):
    """Account of an admin, teacher or student"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)  # Student number for students
    name = db.Column(db.String(100))
    email = db.Column(db.String(120), unique=True, nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='student')  # 'admin', 'teacher', or 'student'
    class_id = db.Column(db.Integer, db.ForeignKey('classes.id'), nullable=True)  # Students only
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)

    # Relationships
    school_class = db.relationship('SchoolClass', backref=db.backref('students', lazy='dynamic'))
    submissions = db.relationship('Submission', backref='student', lazy='dynamic', cascade='all, delete-orphan')

    @property
    def is_teacher(self):
        return self.role in ('teacher', 'admin')

    @property
    def is_student(self):
        return self.role == 'student'

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify a login attempt against the stored hash"""
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'classId': self.class_id
        }

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'
