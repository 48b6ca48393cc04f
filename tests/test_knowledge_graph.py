import pytest

from coursehub import db
from coursehub.exceptions import CourseHubError, NotFoundError
from coursehub.models.knowledge_point import KnowledgePoint
from coursehub.services.knowledge_graph_service import (
    ROOT_NODE_ID, KnowledgeGraphService, compose_graph
)


def _ids(items):
    return [item['id'] for item in items]


class TestComposeGraph:
    def test_course_chapter_and_point(self):
        graph = compose_graph('Algebra',
                              [{'id': 1, 'title': 'Equations'}],
                              [{'id': 7, 'name': 'Linear', 'chapterId': 1}])
        assert _ids(graph['nodes']) == [ROOT_NODE_ID, 'chapter-1', 'kp-7']
        assert [(e['source'], e['target']) for e in graph['edges']] == [
            (ROOT_NODE_ID, 'chapter-1'), ('chapter-1', 'kp-7')
        ]
        assert _ids(graph['edges']) == [f'e-{ROOT_NODE_ID}-chapter-1', 'e-chapter-1-kp-7']
        assert graph['nodes'][0]['data']['label'] == 'Algebra'
        assert [n['type'] for n in graph['nodes']] == ['course', 'chapter', 'kp']

    def test_orphaned_point_is_dropped(self):
        graph = compose_graph('Algebra', [], [{'id': 7, 'name': 'Linear', 'chapterId': 1}])
        assert _ids(graph['nodes']) == [ROOT_NODE_ID]
        assert graph['edges'] == []

    def test_point_without_chapter_is_dropped(self):
        graph = compose_graph('Algebra', [{'id': 1, 'title': 'Equations'}],
                              [{'id': 7, 'name': 'Linear', 'chapterId': None}])
        assert _ids(graph['nodes']) == [ROOT_NODE_ID, 'chapter-1']

    def test_course_record_gives_scoped_root(self):
        graph = compose_graph({'id': 5, 'name': 'Physics'}, [{'id': 1, 'title': 'Motion'}], [])
        assert _ids(graph['nodes']) == ['course-5', 'chapter-1']
        assert graph['nodes'][0]['data']['original'] == {'id': 5, 'name': 'Physics'}

    def test_duplicate_ids_are_ignored(self):
        graph = compose_graph('X',
                              [{'id': 1, 'title': 'A'}, {'id': 1, 'title': 'A again'}],
                              [{'id': 2, 'name': 'p', 'chapterId': 1}, {'id': 2, 'name': 'p', 'chapterId': 1}])
        assert _ids(graph['nodes']) == [ROOT_NODE_ID, 'chapter-1', 'kp-2']
        assert len(graph['edges']) == 2

    def test_node_ids_are_unique_and_edges_resolve(self):
        graph = compose_graph('X',
                              [{'id': 1, 'title': 'A'}, {'id': 2, 'title': 'B'}],
                              [{'id': 1, 'name': 'p', 'chapterId': 1},
                               {'id': 2, 'name': 'q', 'chapterId': 2},
                               {'id': 3, 'name': 'r', 'chapterId': 3}])
        ids = _ids(graph['nodes'])
        assert len(ids) == len(set(ids))
        for edge in graph['edges']:
            assert edge['source'] in ids and edge['target'] in ids


class TestKnowledgeGraphService:
    def test_course_graph_is_laid_out(self, app, seed):
        with app.test_request_context():
            graph = KnowledgeGraphService.get_course_graph(seed.course)
            assert graph['direction'] == 'TB'
            assert _ids(graph['nodes']) == [
                f'course-{seed.course}',
                f'chapter-{seed.basics}', f'chapter-{seed.structures}',
                f'kp-{seed.variables}', f'kp-{seed.lists}', f'kp-{seed.functions}',
            ]
            assert len(graph['edges']) == 5
            assert {n['rank'] for n in graph['nodes']} == {0, 1, 2}

    def test_unknown_course_and_direction(self, app, seed):
        with app.test_request_context():
            with pytest.raises(NotFoundError):
                KnowledgeGraphService.get_course_graph(9999)
            with pytest.raises(CourseHubError):
                KnowledgeGraphService.get_course_graph(seed.course, 'diagonal')

    def test_deleting_chapter_drops_its_points(self, app, seed):
        with app.test_request_context():
            KnowledgeGraphService.delete_chapter(seed.basics)
            graph = KnowledgeGraphService.get_course_graph(seed.course)
            assert _ids(graph['nodes']) == [
                f'course-{seed.course}', f'chapter-{seed.structures}', f'kp-{seed.lists}'
            ]
            assert db.session.get(KnowledgePoint, seed.variables).chapter_id is None

    def test_create_point_checks_chapter_course(self, app, seed):
        with app.test_request_context():
            with pytest.raises(NotFoundError):
                KnowledgeGraphService.create_knowledge_point(seed.course, 'Loose', chapter_id=9999)
            kp = KnowledgeGraphService.create_knowledge_point(seed.course, 'Tuples', chapter_id=seed.structures)
            assert kp.kp_order == 2

    def test_create_chapter_appends(self, app, seed):
        with app.test_request_context():
            chapter = KnowledgeGraphService.create_chapter(seed.course, 'Classes')
            assert chapter.chapter_order == 3
