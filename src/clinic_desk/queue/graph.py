"""
Queue status graph and pure validators.

The graph is plain data so it can be checked without touching the
database. QueueConfig.ready() refuses to start with an invalid graph.
"""

WAITING = "waiting"
URGENT = "urgent"
IN_CONSULTATION = "in_consultation"
DISPENSARY = "dispensary"
COMPLETED = "completed"
CANCELLED = "cancelled"

QUEUE_STATUSES = [WAITING, URGENT, IN_CONSULTATION, DISPENSARY, COMPLETED, CANCELLED]

# Statuses a new entry may start in
INITIAL_STATUSES = [WAITING, URGENT]

TERMINAL_STATUSES = [COMPLETED, CANCELLED]

# Statuses still waiting to be called, in call priority order
CALLABLE_STATUSES = [URGENT, WAITING]

QUEUE_TRANSITIONS = {
    WAITING: [IN_CONSULTATION, URGENT, CANCELLED],
    URGENT: [IN_CONSULTATION, WAITING, CANCELLED],
    IN_CONSULTATION: [DISPENSARY, WAITING, CANCELLED],
    DISPENSARY: [COMPLETED, WAITING, CANCELLED],
    COMPLETED: [],
    CANCELLED: [],
}


def get_allowed_transitions(status: str) -> list[str]:
    """Valid next statuses; terminal and unknown statuses have none."""
    if status in TERMINAL_STATUSES:
        return []
    return list(QUEUE_TRANSITIONS.get(status, []))


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in get_allowed_transitions(from_status)


def validate_queue_graph(
    statuses: list[str],
    transitions: dict[str, list[str]],
    initial_statuses: list[str],
    terminal_statuses: list[str],
) -> list[str]:
    """
    Validate a status graph is sane and usable.

    Returns list of error messages (empty = valid).

    Checks:
    - initial and terminal statuses exist
    - all transition sources and targets exist
    - terminal statuses have no outgoing transitions
    - every status is reachable from some initial status
    - a terminal status is reachable from every non-terminal status
    """
    errors = []
    known = set(statuses)

    for status in initial_statuses:
        if status not in known:
            errors.append(f"initial status '{status}' not in statuses")

    for status in terminal_statuses:
        if status not in known:
            errors.append(f"terminal status '{status}' not in statuses")

    for from_status, to_statuses in transitions.items():
        if from_status not in known:
            errors.append(f"transition from unknown status '{from_status}'")
        for to_status in to_statuses:
            if to_status not in known:
                errors.append(f"transition to unknown status '{to_status}'")

    for status in terminal_statuses:
        if transitions.get(status):
            errors.append(f"terminal status '{status}' has outgoing transitions")

    starts = [s for s in initial_statuses if s in known]
    if starts:
        reachable = set()
        for start in starts:
            reachable |= _find_reachable(start, transitions)
        for status in statuses:
            if status not in reachable:
                errors.append(f"status '{status}' unreachable from initial statuses")

    terminals = set(terminal_statuses)
    for status in statuses:
        if status in terminals:
            continue
        if not terminals & _find_reachable(status, transitions):
            errors.append(f"status '{status}' cannot reach a terminal status")

    return errors


def _find_reachable(start: str, transitions: dict[str, list[str]]) -> set[str]:
    """BFS over the transition map, including start itself."""
    visited = {start}
    pending = [start]

    while pending:
        current = pending.pop(0)
        for next_status in transitions.get(current, []):
            if next_status not in visited:
                visited.add(next_status)
                pending.append(next_status)

    return visited
