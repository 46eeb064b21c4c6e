# graph/nodes/finalize_node.py
from graph.notices import NOTICES
from graph.state import MutationState
from services.session_ops import sort_sessions


def finalize_node(state: MutationState) -> dict:
    """成功した操作の結果を並べ替え、分割発生時は通知を差し替えるノード"""
    notice = state.get("notice")
    if state["split_occurred"]:
        notice = NOTICES["closing_split"]
    return {
        "working": sort_sessions(state["working"]),
        "notice": notice,
    }
