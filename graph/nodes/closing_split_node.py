# graph/nodes/closing_split_node.py
from graph.state import MutationState
from services.clock import IdFactory, new_id
from services.session_ops import ensure_closing_boundary_split


def closing_split_node(state: MutationState, id_factory: IdFactory = new_id) -> dict:
    """操作の前に、締め境界を跨いだ勤務を分割するノード"""
    result = ensure_closing_boundary_split(
        state["working"], state["user_id"], state["now"], id_factory=id_factory
    )
    return {
        "working": result.sessions,
        "split_occurred": result.split_occurred,
    }
