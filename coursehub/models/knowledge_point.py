"""
Knowledge point model
"""
from datetime import datetime
from coursehub import db


class KnowledgePoint(db.Model):
    """Knowledge point, leaf of the course -> chapter -> knowledge point tree"""
    __tablename__ = 'knowledge_points'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False, index=True)
    chapter_id = db.Column(db.Integer, db.ForeignKey('chapters.id'), nullable=True, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    kp_order = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'courseId': self.course_id,
            'chapterId': self.chapter_id,
            'name': self.name,
            'description': self.description,
            'kpOrder': self.kp_order
        }

    def __repr__(self):
        return f'<KnowledgePoint {self.id} {self.name} chapter={self.chapter_id}>'
