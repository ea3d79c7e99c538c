"""
Processo Workflows.

The process lifecycle state machine.  ``PROCESS_WORKFLOW`` is the only
authority on which status moves are legal; ``ProcessLifecycleService``
looks every action up here before evaluating guards.
"""

from licita_kernel.domain.workflow import Guard, Transition, Workflow
from licita_kernel.logging_config import get_logger
from licita_modules.processo.models import ProcessStatus

logger = get_logger("modules.processo.workflows")

_P = ProcessStatus.PARTICIPACAO.value
_J = ProcessStatus.JULGAMENTO_HABILITACAO.value
_V = ProcessStatus.VENCIDO.value
_X = ProcessStatus.EXECUCAO.value
_G = ProcessStatus.PAGAMENTO.value
_E = ProcessStatus.ENCERRAMENTO.value
_L = ProcessStatus.PERDIDO.value
_A = ProcessStatus.ARQUIVADO.value


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

PROCESS_EXISTS = Guard(
    name="process_exists",
    description="Process exists and belongs to the company",
)

NOT_TERMINAL = Guard(
    name="not_terminal",
    description="Process is not closed, lost or archived",
)

IN_EXECUTION = Guard(
    name="in_execution",
    description="Process status is execucao or vencido",
)

ACCEPTED_ITEMS_SETTLED = Guard(
    name="accepted_items_settled",
    description="At least one accepted item and every accepted item received its awarded value",
)

STATUS_POLICY_ALLOWS = Guard(
    name="status_policy_allows",
    description="The status policy approves the transition",
)

SESSION_ELAPSED = Guard(
    name="session_elapsed",
    description="The public session date and time has passed",
)


# -----------------------------------------------------------------------------
# Process Workflow
# -----------------------------------------------------------------------------

PROCESS_WORKFLOW = Workflow(
    name="processo",
    description="Bid process lifecycle",
    initial_state=_P,
    states=(_P, _J, _V, _X, _G, _E, _L, _A),
    transitions=(
        Transition(_P, _J, action="move_to_judging", guard=PROCESS_EXISTS),
        Transition(_J, _J, action="move_to_judging", guard=PROCESS_EXISTS),
        Transition(_P, _J, action="auto_move_to_judging", guard=SESSION_ELAPSED),
        Transition(_P, _X, action="mark_won", guard=NOT_TERMINAL),
        Transition(_J, _X, action="mark_won", guard=NOT_TERMINAL),
        Transition(_V, _X, action="mark_won", guard=NOT_TERMINAL),
        Transition(_X, _X, action="mark_won", guard=NOT_TERMINAL),
        Transition(_G, _X, action="mark_won", guard=NOT_TERMINAL),
        Transition(_X, _X, action="confirm_payment", guard=IN_EXECUTION),
        Transition(_V, _V, action="confirm_payment", guard=IN_EXECUTION),
        Transition(_X, _E, action="close_after_payment", guard=ACCEPTED_ITEMS_SETTLED),
        Transition(_V, _E, action="close_after_payment", guard=ACCEPTED_ITEMS_SETTLED),
        Transition(_X, _G, action="start_payment", guard=STATUS_POLICY_ALLOWS),
        Transition(_G, _E, action="close", guard=STATUS_POLICY_ALLOWS),
        Transition(_P, _L, action="mark_lost", guard=STATUS_POLICY_ALLOWS),
        Transition(_J, _L, action="mark_lost", guard=STATUS_POLICY_ALLOWS),
        Transition(_L, _A, action="archive", guard=STATUS_POLICY_ALLOWS),
        Transition(_E, _A, action="archive", guard=STATUS_POLICY_ALLOWS),
    ),
    terminal_states=(_E, _L, _A),
)

logger.info(
    "processo_workflow_registered",
    extra={
        "workflow_name": PROCESS_WORKFLOW.name,
        "state_count": len(PROCESS_WORKFLOW.states),
        "transition_count": len(PROCESS_WORKFLOW.transitions),
        "initial_state": PROCESS_WORKFLOW.initial_state,
    },
)
