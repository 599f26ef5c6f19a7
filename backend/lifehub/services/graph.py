"""
Graph operations using NetworkX.

This module handles:
- Building the gating dependency graph from in-memory tasks
- Cycle detection for dependency validation
- Downstream traversal (which tasks a prerequisite transitively gates)
"""

from typing import Iterable

import networkx as nx

from lifehub.models import Task


def build_dependency_graph(tasks: Iterable[Task], gating_only: bool = True) -> nx.DiGraph:
    """
    Build a DiGraph from the tasks' dependency edges.

    Returns a graph where:
    - Nodes are task IDs
    - Edges go from prerequisite -> dependent

    Edges pointing at deleted tasks are kept; the missing prerequisite
    becomes a bare node without a ``task`` attribute.
    """
    graph = nx.DiGraph()
    tasks = list(tasks)

    for task in tasks:
        graph.add_node(task.id, task=task)

    for task in tasks:
        for dep in task.dependencies:
            if gating_only and not dep.is_gating:
                continue
            graph.add_edge(dep.depends_on_task_id, dep.task_id)

    return graph


def would_create_cycle(graph: nx.DiGraph, prerequisite_id: str, dependent_id: str) -> bool:
    """
    Check if adding prerequisite -> dependent would create a cycle.

    Returns True if a cycle would be created, False otherwise.
    """
    if prerequisite_id == dependent_id:
        return True
    if dependent_id not in graph or prerequisite_id not in graph:
        return False
    # A path dependent ~> prerequisite plus the new edge closes a loop
    return nx.has_path(graph, dependent_id, prerequisite_id)


def get_descendants(graph: nx.DiGraph, task_id: str) -> list[str]:
    """Task IDs transitively gated by ``task_id``."""
    if task_id not in graph:
        return []
    return list(nx.descendants(graph, task_id))


def completion_order(graph: nx.DiGraph) -> list[str]:
    """
    Topological order of the graph: prerequisites before dependents.

    Raises:
        ValueError: if the graph contains a cycle
    """
    try:
        return list(nx.topological_sort(graph))
    except nx.NetworkXUnfeasible:
        raise ValueError("Graph contains a cycle")
