# graph/nodes/clock_out_node.py
from graph.notices import NOTICES
from graph.state import MutationState
from services.models import MutationError
from services.session_ops import find_open_break_index, find_open_session_index, sanitize_tasks


def clock_out_node(state: MutationState) -> dict:
    """退勤ノード。「やったこと」が1行もなければ退勤させない"""
    working = state["working"]
    index = find_open_session_index(working, state["user_id"])
    if index is None:
        return {"error": MutationError.NOT_WORKING}

    tasks = sanitize_tasks(state["tasks"])
    if not tasks:
        return {"error": MutationError.MISSING_TASKS}

    now = state["now"]
    session = working[index]
    session.tasks = tasks
    notice = NOTICES["clock_out"]

    break_index = find_open_break_index(session)
    if break_index is not None:
        session.breaks[break_index].end_at = now
        notice = NOTICES["clock_out_with_break"]

    session.end_at = now
    session.updated_at = now
    return {"working": working, "notice": notice}
