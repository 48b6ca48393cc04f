"""
Chapter model
"""
from datetime import datetime
from coursehub import db


class Chapter(db.Model):
    """Chapter of a course, parent of knowledge points"""
    __tablename__ = 'chapters'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    chapter_order = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Knowledge points outlive their chapter; the graph drops them once unlinked
    knowledge_points = db.relationship('KnowledgePoint', backref='chapter', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'courseId': self.course_id,
            'title': self.title,
            'description': self.description,
            'chapterOrder': self.chapter_order
        }

    def __repr__(self):
        return f'<Chapter {self.id} {self.title}>'
