"""
Layered layout for knowledge graphs

Nodes are ranked by longest path from the sources (course 0, chapters 1,
knowledge points 2), then each node is centred over the band its subtree
occupies. Sibling subtrees are packed left to right with ``nodesep`` between
them and rank bands are stacked with ``ranksep`` between them, so nodes on one
rank never overlap. The result depends only on the input order and topology.
"""
from collections import deque

NODE_SIZES = {
    'course': (180, 80),
    'chapter': (150, 60),
    'kp': (120, 60),
}
DEFAULT_NODE_SIZE = (120, 60)

DIRECTIONS = ('TB', 'LR')
DEFAULT_RANKSEP = 80
DEFAULT_NODESEP = 50


def node_size(kind):
    """(width, height) footprint of a node kind"""
    return NODE_SIZES.get(kind, DEFAULT_NODE_SIZE)


def _footprint(node):
    width, height = node_size(node.get('type'))
    return node.get('width') or width, node.get('height') or height


def _adjacency(node_ids, edges):
    known = set(node_ids)
    children = {node_id: [] for node_id in node_ids}
    links = []
    for edge in edges:
        source, target = edge.get('source'), edge.get('target')
        if source in known and target in known and source != target:
            children[source].append(target)
            links.append((source, target))
    return children, links


def assign_ranks(nodes, edges):
    """
    Longest-path rank of every node.

    Sources get rank 0. Nodes caught in a cycle keep the rank reached from
    their acyclic predecessors (0 when there is none).
    """
    node_ids = [node['id'] for node in nodes]
    children, links = _adjacency(node_ids, edges)

    pending = {node_id: 0 for node_id in node_ids}
    for _, target in links:
        pending[target] += 1

    ranks = {node_id: 0 for node_id in node_ids}
    queue = deque(node_id for node_id in node_ids if pending[node_id] == 0)
    while queue:
        node_id = queue.popleft()
        for child in children[node_id]:
            ranks[child] = max(ranks[child], ranks[node_id] + 1)
            pending[child] -= 1
            if pending[child] == 0:
                queue.append(child)
    return ranks


def layout_graph(graph, direction='TB', ranksep=DEFAULT_RANKSEP, nodesep=DEFAULT_NODESEP):
    """
    Return a copy of ``graph`` with every node positioned.

    Each node gets ``position`` (top-left corner, as the rendering layer
    expects), ``rank``, ``width``/``height`` and the handle sides for the
    direction. ``TB`` stacks ranks top to bottom, ``LR`` left to right.
    """
    direction = (direction or 'TB').upper()
    horizontal = direction == 'LR'
    nodes = list(graph.get('nodes') or [])
    edges = list(graph.get('edges') or [])

    node_ids = [node['id'] for node in nodes]
    sizes = {node['id']: _footprint(node) for node in nodes}
    ranks = assign_ranks(nodes, edges)

    def breadth(node_id):
        width, height = sizes[node_id]
        return height if horizontal else width

    def depth(node_id):
        width, height = sizes[node_id]
        return width if horizontal else height

    # Spanning tree: the first edge from the rank directly above adopts a node
    parent = {}
    _, links = _adjacency(node_ids, edges)
    for source, target in links:
        if target not in parent and ranks[source] == ranks[target] - 1:
            parent[target] = source

    tree_children = {node_id: [] for node_id in node_ids}
    for node_id in node_ids:
        if node_id in parent:
            tree_children[parent[node_id]].append(node_id)
    roots = [node_id for node_id in node_ids if node_id not in parent]

    span = {}

    def measure(node_id):
        kids = tree_children[node_id]
        kids_span = sum(measure(kid) for kid in kids) + nodesep * (len(kids) - 1) if kids else 0
        span[node_id] = max(breadth(node_id), kids_span)
        return span[node_id]

    centre = {}

    def place(node_id, start):
        centre[node_id] = start + span[node_id] / 2
        kids = tree_children[node_id]
        if not kids:
            return
        kids_span = sum(span[kid] for kid in kids) + nodesep * (len(kids) - 1)
        cursor = start + (span[node_id] - kids_span) / 2
        for kid in kids:
            place(kid, cursor)
            cursor += span[kid] + nodesep

    cursor = 0
    for root in roots:
        measure(root)
        place(root, cursor)
        cursor += span[root] + nodesep

    # Rank bands
    max_rank = max(ranks.values(), default=0)
    band_depth = [0] * (max_rank + 1)
    for node_id in node_ids:
        band_depth[ranks[node_id]] = max(band_depth[ranks[node_id]], depth(node_id))
    band_centre = []
    offset = 0
    for rank in range(max_rank + 1):
        band_centre.append(offset + band_depth[rank] / 2)
        offset += band_depth[rank] + ranksep

    laid_out = []
    for node in nodes:
        node_id = node['id']
        width, height = sizes[node_id]
        along, across = centre[node_id], band_centre[ranks[node_id]]
        if horizontal:
            x, y = across - width / 2, along - height / 2
        else:
            x, y = along - width / 2, across - height / 2

        placed = dict(node)
        placed.update({
            'width': width,
            'height': height,
            'rank': ranks[node_id],
            'position': {'x': x, 'y': y},
            'targetPosition': 'left' if horizontal else 'top',
            'sourcePosition': 'right' if horizontal else 'bottom',
        })
        laid_out.append(placed)

    result = dict(graph)
    result.update({
        'nodes': laid_out,
        'edges': [dict(edge) for edge in edges],
        'direction': 'LR' if horizontal else 'TB',
    })
    return result
