# graph/nodes/clock_in_node.py
from graph.notices import NOTICES
from graph.state import MutationState
from services.clock import IdFactory, new_id
from services.models import MutationError
from services.session_ops import find_open_session_index, new_open_session


def clock_in_node(state: MutationState, id_factory: IdFactory = new_id) -> dict:
    """出勤: 新しい勤務を開始するノード"""
    working = state["working"]
    user_id = state["user_id"]
    if find_open_session_index(working, user_id) is not None:
        return {"error": MutationError.ALREADY_WORKING}

    now = state["now"]
    working.append(new_open_session(user_id, now, now, id_factory=id_factory))
    return {"working": working, "notice": NOTICES["clock_in"]}
