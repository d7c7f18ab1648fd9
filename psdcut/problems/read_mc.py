import networkx as nx

from psdcut.problems.quadratic import BinaryQuadraticProblem


def read_mc(filename, solution_value=None, name=None):
    """
    Max-cut instance in rudy/biqmac `.mc` format as a BinaryQuadraticProblem.
    `solution_value` is the known optimal cut, if any.
    """
    return BinaryQuadraticProblem.from_graph(read_mc_graph(filename), solution_value=solution_value, name=name)


def read_mc_graph(filename):
    G = nx.Graph()

    with open(filename, 'r') as f:
        # first line holds the number of nodes and edges
        n_nodes, n_edges = map(int, f.readline().split())
        G.add_nodes_from(range(n_nodes))

        # edges are 1-based
        for _ in range(n_edges):
            line = f.readline()
            if not line.strip():
                raise ValueError(f"{filename}: expected {n_edges} edges")
            u, v, w = line.split()
            u, v = int(u) - 1, int(v) - 1
            if G.has_edge(u, v):
                G[u][v]['weight'] += float(w)
            else:
                G.add_edge(u, v, weight=float(w))

    return G
