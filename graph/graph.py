# graph/graph.py
from langgraph.graph import StateGraph, START, END
from graph.state import MutationState

# 勤務中セッションに触れる操作は、先に締め日分割を通す
SPLIT_OPERATIONS = frozenset({"break_start", "break_end", "clock_out", "save_current_tasks"})

OPERATIONS = (
    "clock_in",
    "break_start",
    "break_end",
    "clock_out",
    "save_current_tasks",
    "save_session_tasks",
    "correct",
)


def route_entry(state: MutationState) -> str:
    if state["operation"] in SPLIT_OPERATIONS:
        return "closing_split"
    return state["operation"]


def route_after_closing_split(state: MutationState) -> str:
    return state["operation"]


def route_after_operation(state: MutationState) -> str:
    if state.get("error") is not None:
        return "end"
    return "finalize"


def build_mutation_graph(id_factory=None):
    """勤怠操作のLangGraphを構築して返す

    ID生成を伴うノードはfunctools.partialでid_factoryを束縛し、
    LangGraphが期待する (state) -> dict シグネチャに合わせる。
    """
    from functools import partial
    from services.clock import new_id
    from graph.nodes.closing_split_node import closing_split_node
    from graph.nodes.clock_in_node import clock_in_node
    from graph.nodes.break_node import break_start_node, break_end_node
    from graph.nodes.clock_out_node import clock_out_node
    from graph.nodes.task_node import save_current_tasks_node, save_session_tasks_node
    from graph.nodes.correction_node import correction_node
    from graph.nodes.finalize_node import finalize_node

    id_factory = id_factory or new_id

    operation_nodes = {
        "clock_in": partial(clock_in_node, id_factory=id_factory),
        "break_start": partial(break_start_node, id_factory=id_factory),
        "break_end": break_end_node,
        "clock_out": clock_out_node,
        "save_current_tasks": save_current_tasks_node,
        "save_session_tasks": save_session_tasks_node,
        "correct": partial(correction_node, id_factory=id_factory),
    }

    workflow = StateGraph(MutationState)

    workflow.add_node("closing_split", partial(closing_split_node, id_factory=id_factory))
    for name, node in operation_nodes.items():
        workflow.add_node(name, node)
    workflow.add_node("finalize", finalize_node)

    operation_map = {name: name for name in OPERATIONS}

    workflow.add_conditional_edges(
        START,
        route_entry,
        {"closing_split": "closing_split", **operation_map},
    )
    workflow.add_conditional_edges(
        "closing_split",
        route_after_closing_split,
        operation_map,
    )
    for name in OPERATIONS:
        workflow.add_conditional_edges(
            name,
            route_after_operation,
            {"finalize": "finalize", "end": END},
        )

    workflow.add_edge("finalize", END)

    return workflow.compile()
