# graph/nodes/break_node.py
from graph.notices import NOTICES
from graph.state import MutationState
from services.clock import IdFactory, new_id
from services.models import MutationError
from services.session_ops import find_open_break_index, find_open_session_index, open_break


def break_start_node(state: MutationState, id_factory: IdFactory = new_id) -> dict:
    """休憩開始ノード"""
    working = state["working"]
    index = find_open_session_index(working, state["user_id"])
    if index is None:
        return {"error": MutationError.NOT_WORKING}

    session = working[index]
    if find_open_break_index(session) is not None:
        return {"error": MutationError.ALREADY_ON_BREAK}

    open_break(session, state["now"], id_factory=id_factory)
    return {"working": working, "notice": NOTICES["break_start"]}


def break_end_node(state: MutationState) -> dict:
    """休憩終了ノード"""
    working = state["working"]
    index = find_open_session_index(working, state["user_id"])
    if index is None:
        return {"error": MutationError.NOT_WORKING}

    session = working[index]
    break_index = find_open_break_index(session)
    if break_index is None:
        return {"error": MutationError.NOT_ON_BREAK}

    now = state["now"]
    session.breaks[break_index].end_at = now
    session.updated_at = now
    return {"working": working, "notice": NOTICES["break_end"]}
