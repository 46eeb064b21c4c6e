# graph/nodes/task_node.py
from graph.notices import NOTICES
from graph.state import MutationState
from services.models import MutationError
from services.session_ops import find_open_session_index, sanitize_tasks


def save_current_tasks_node(state: MutationState) -> dict:
    """勤務中セッションの「やったこと」を置き換えるノード"""
    working = state["working"]
    index = find_open_session_index(working, state["user_id"])
    if index is None:
        return {"error": MutationError.NOT_WORKING}

    session = working[index]
    session.tasks = sanitize_tasks(state["tasks"])
    session.updated_at = state["now"]
    return {"working": working, "notice": NOTICES["tasks_saved"]}


def save_session_tasks_node(state: MutationState) -> dict:
    """本人の過去セッションの「やったこと」を置き換えるノード"""
    working = state["working"]
    target = next(
        (
            session
            for session in working
            if session.id == state["session_id"] and session.user_id == state["user_id"]
        ),
        None,
    )
    if target is None:
        return {"error": MutationError.NOT_FOUND}

    target.tasks = sanitize_tasks(state["tasks"])
    target.updated_at = state["now"]
    return {"working": working, "notice": NOTICES["tasks_saved"]}
