from coursehub.services.graph_layout import assign_ranks, layout_graph
from coursehub.services.knowledge_graph_service import compose_graph


def _graph():
    return compose_graph(
        'Course',
        [{'id': 1, 'title': 'One'}, {'id': 2, 'title': 'Two'}],
        [{'id': 10, 'name': 'a', 'chapterId': 1},
         {'id': 11, 'name': 'b', 'chapterId': 1},
         {'id': 12, 'name': 'c', 'chapterId': 1},
         {'id': 20, 'name': 'd', 'chapterId': 2}]
    )


def _by_id(graph):
    return {node['id']: node for node in graph['nodes']}


def test_ranks_follow_tree_depth():
    graph = _graph()
    ranks = assign_ranks(graph['nodes'], graph['edges'])
    assert ranks['root-course'] == 0
    assert ranks['chapter-1'] == ranks['chapter-2'] == 1
    assert ranks['kp-10'] == ranks['kp-20'] == 2


def test_cycle_keeps_rank_from_predecessors():
    nodes = [{'id': 'a'}, {'id': 'b'}, {'id': 'c'}]
    edges = [{'source': 'a', 'target': 'b'}, {'source': 'b', 'target': 'c'}, {'source': 'c', 'target': 'b'}]
    ranks = assign_ranks(nodes, edges)
    assert ranks['a'] == 0
    assert ranks['b'] == 1


def test_nodes_on_a_rank_do_not_overlap():
    graph = layout_graph(_graph(), nodesep=50)
    rows = {}
    for node in graph['nodes']:
        rows.setdefault(node['rank'], []).append(node)
    for nodes in rows.values():
        nodes.sort(key=lambda n: n['position']['x'])
        for left, right in zip(nodes, nodes[1:]):
            assert left['position']['x'] + left['width'] + 50 <= right['position']['x'] + 1e-9


def test_ranks_are_separated_top_to_bottom():
    graph = layout_graph(_graph(), ranksep=80)
    nodes = _by_id(graph)
    course, chapter, kp = nodes['root-course'], nodes['chapter-1'], nodes['kp-10']
    assert course['position']['y'] + course['height'] + 80 <= chapter['position']['y'] + 1e-9
    assert chapter['position']['y'] + chapter['height'] + 80 <= kp['position']['y'] + 1e-9
    assert course['targetPosition'] == 'top' and course['sourcePosition'] == 'bottom'


def test_parent_is_centred_over_children():
    nodes = _by_id(layout_graph(_graph()))

    def centre(node_id):
        return nodes[node_id]['position']['x'] + nodes[node_id]['width'] / 2

    assert centre('chapter-1') == centre('kp-11')
    assert centre('chapter-2') == centre('kp-20')


def test_positions_are_top_left_with_node_sizes():
    nodes = _by_id(layout_graph(_graph()))
    assert (nodes['root-course']['width'], nodes['root-course']['height']) == (180, 80)
    assert (nodes['chapter-1']['width'], nodes['chapter-1']['height']) == (150, 60)
    assert (nodes['kp-10']['width'], nodes['kp-10']['height']) == (120, 60)
    assert nodes['root-course']['position']['y'] == 0


def test_layout_is_deterministic_and_pure():
    source = _graph()
    first = layout_graph(source)
    second = layout_graph(source)
    assert first == second
    assert all(node['position'] == {'x': 0, 'y': 0} for node in source['nodes'])


def test_left_to_right_swaps_axes():
    graph = layout_graph(_graph(), direction='lr', ranksep=80)
    nodes = _by_id(graph)
    assert graph['direction'] == 'LR'
    course, chapter = nodes['root-course'], nodes['chapter-1']
    assert course['position']['x'] + course['width'] + 80 <= chapter['position']['x'] + 1e-9
    assert chapter['targetPosition'] == 'left' and chapter['sourcePosition'] == 'right'


def test_empty_graph():
    assert layout_graph({'nodes': [], 'edges': []})['nodes'] == []
