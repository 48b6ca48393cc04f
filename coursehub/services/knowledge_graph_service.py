"""
Knowledge graph composition for the course -> chapter -> knowledge point tree
"""
import logging
from flask import current_app
from coursehub import db
from coursehub.exceptions import CourseHubError, NotFoundError
from coursehub.models.course import Course
from coursehub.models.chapter import Chapter
from coursehub.models.knowledge_point import KnowledgePoint
from coursehub.services.answer_normalizer import record_value, as_int
from coursehub.services.cache_service import CacheService
from coursehub.services.graph_layout import DIRECTIONS, layout_graph, node_size

logger = logging.getLogger(__name__)

ROOT_NODE_ID = 'root-course'
DEFAULT_COURSE_LABEL = 'Course'


def course_node_id(course_id=None):
    return ROOT_NODE_ID if course_id is None else f'course-{course_id}'


def chapter_node_id(chapter_id):
    return f'chapter-{chapter_id}'


def kp_node_id(kp_id):
    return f'kp-{kp_id}'


def _plain(record):
    if record is None:
        return None
    if isinstance(record, dict):
        return dict(record)
    if hasattr(record, 'to_dict'):
        return record.to_dict()
    return None


def _node(node_id, kind, label, record=None):
    width, height = node_size(kind)
    return {
        'id': node_id,
        'type': kind,
        'data': {'label': label, 'original': _plain(record)},
        'position': {'x': 0, 'y': 0},
        'width': width,
        'height': height,
    }


def _edge(source, target):
    return {
        'id': f'e-{source}-{target}',
        'source': source,
        'target': target,
        'type': 'smoothstep',
    }


def compose_graph(course, chapters, knowledge_points):
    """
    Build the node and edge sets of a course tree.

    Args:
        course: Course name, or a record with ``id`` and ``name``
        chapters: Records with ``id``, ``title`` and optional ``description``
        knowledge_points: Records with ``id``, ``name``, ``chapterId``

    Returns:
        Dict with 'nodes' and 'edges'. Knowledge points whose chapter is not
        in ``chapters`` are left out.
    """
    if isinstance(course, str) or course is None:
        course_id, label, course_record = None, course, None
    else:
        course_id = as_int(record_value(course, 'id'))
        label = record_value(course, 'name', 'title')
        course_record = course

    root_id = course_node_id(course_id)
    nodes = [_node(root_id, 'course', label or DEFAULT_COURSE_LABEL, course_record)]
    edges = []

    chapter_nodes = {}
    for chapter in chapters or []:
        chapter_id = as_int(record_value(chapter, 'id'))
        if chapter_id is None or chapter_id in chapter_nodes:
            continue
        node_id = chapter_node_id(chapter_id)
        chapter_nodes[chapter_id] = node_id
        nodes.append(_node(node_id, 'chapter', record_value(chapter, 'title', 'name', default=''), chapter))
        edges.append(_edge(root_id, node_id))

    seen = set()
    dropped = 0
    for kp in knowledge_points or []:
        kp_id = as_int(record_value(kp, 'id'))
        if kp_id is None or kp_id in seen:
            continue
        parent_id = chapter_nodes.get(as_int(record_value(kp, 'chapterId', 'chapter_id')))
        if parent_id is None:
            dropped += 1
            continue
        seen.add(kp_id)
        node_id = kp_node_id(kp_id)
        nodes.append(_node(node_id, 'kp', record_value(kp, 'name', default=''), kp))
        edges.append(_edge(parent_id, node_id))

    if dropped:
        logger.debug("Dropped %d knowledge point(s) without a known chapter", dropped)

    return {'nodes': nodes, 'edges': edges}


class KnowledgeGraphService:
    """Loads, lays out and caches course knowledge graphs"""

    @staticmethod
    def _get_course(course_id):
        course = db.session.get(Course, course_id)
        if not course:
            raise NotFoundError('Course not found')
        return course

    @classmethod
    def get_course_graph(cls, course_id, direction=None):
        """
        Composed and laid-out graph of a course

        Args:
            course_id: Course ID
            direction: 'TB' or 'LR' (defaults to GRAPH_DIRECTION)

        Returns:
            Dict with 'nodes', 'edges' and 'direction'
        """
        course = cls._get_course(course_id)
        config = current_app.config
        direction = (direction or config['GRAPH_DIRECTION']).upper()
        if direction not in DIRECTIONS:
            raise CourseHubError(f'Unsupported layout direction: {direction}')

        cache = CacheService()
        cached = cache.get_graph(course_id, direction)
        if cached:
            return cached

        chapters = Chapter.query.filter_by(course_id=course_id) \
            .order_by(Chapter.chapter_order, Chapter.id).all()
        knowledge_points = KnowledgePoint.query.filter_by(course_id=course_id) \
            .order_by(KnowledgePoint.kp_order, KnowledgePoint.id).all()

        graph = compose_graph(
            {'id': course.id, 'name': course.name},
            [chapter.to_dict() for chapter in chapters],
            [kp.to_dict() for kp in knowledge_points]
        )
        graph = layout_graph(graph, direction,
                             ranksep=config['GRAPH_RANKSEP'],
                             nodesep=config['GRAPH_NODESEP'])
        cache.set_graph(course_id, direction, graph, ttl=config['GRAPH_CACHE_TTL'])
        return graph

    @classmethod
    def invalidate(cls, course_id):
        """Forget cached graphs of a course after its tree changed"""
        return CacheService().invalidate_course(course_id)

    @classmethod
    def create_chapter(cls, course_id, title, description=None, chapter_order=None):
        cls._get_course(course_id)
        if chapter_order is None:
            chapter_order = Chapter.query.filter_by(course_id=course_id).count() + 1
        chapter = Chapter(course_id=course_id, title=title, description=description,
                          chapter_order=chapter_order)
        db.session.add(chapter)
        db.session.commit()
        cls.invalidate(course_id)
        return chapter

    @classmethod
    def delete_chapter(cls, chapter_id):
        """Delete a chapter; its knowledge points stay but fall out of the graph"""
        chapter = db.session.get(Chapter, chapter_id)
        if not chapter:
            raise NotFoundError('Chapter not found')
        course_id = chapter.course_id
        KnowledgePoint.query.filter_by(chapter_id=chapter_id).update({'chapter_id': None})
        db.session.delete(chapter)
        db.session.commit()
        cls.invalidate(course_id)
        return course_id

    @classmethod
    def create_knowledge_point(cls, course_id, name, chapter_id=None, description=None, kp_order=None):
        cls._get_course(course_id)
        if chapter_id is not None:
            chapter = db.session.get(Chapter, chapter_id)
            if not chapter or chapter.course_id != course_id:
                raise NotFoundError('Chapter not found in this course')
        if kp_order is None:
            kp_order = KnowledgePoint.query.filter_by(course_id=course_id, chapter_id=chapter_id).count() + 1
        kp = KnowledgePoint(course_id=course_id, chapter_id=chapter_id, name=name,
                            description=description, kp_order=kp_order)
        db.session.add(kp)
        db.session.commit()
        cls.invalidate(course_id)
        return kp

    @classmethod
    def delete_knowledge_point(cls, kp_id):
        kp = db.session.get(KnowledgePoint, kp_id)
        if not kp:
            raise NotFoundError('Knowledge point not found')
        course_id = kp.course_id
        db.session.delete(kp)
        db.session.commit()
        cls.invalidate(course_id)
        return course_id
