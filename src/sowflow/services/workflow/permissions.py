"""Who may approve, reject or skip, given the current workflow state.

| role     | applies when               | approve / reject      | skip                |
|----------|----------------------------|-----------------------|---------------------|
| vp       | any current stage          | assigned or admin     | admin               |
| director | current is Director stage  | assigned or admin     | admin               |
| manager  | current is Manager stage   | assigned or admin     | admin               |
| admin    | always                     | yes                   | stage.auto_approve  |
| others   | never                      | no                    | no                  |

With no current stage (workflow complete) nothing is permitted.
"""

from collections.abc import Callable
from dataclasses import dataclass

from sowflow.models.actor import Actor
from sowflow.models.enums import ApprovalAction, Role, StageKind
from sowflow.models.workflow import Stage


@dataclass(frozen=True)
class Permissions:
    can_approve: bool = False
    can_reject: bool = False
    can_skip: bool = False

    def allows(self, action: ApprovalAction) -> bool:
        return {
            ApprovalAction.APPROVE: self.can_approve,
            ApprovalAction.REJECT: self.can_reject,
            ApprovalAction.SKIP: self.can_skip,
        }[action]


DENY = Permissions()


@dataclass(frozen=True)
class _Context:
    current: StageKind
    is_assigned: bool
    is_admin: bool
    auto_approve: bool


def _deny(ctx: _Context) -> Permissions:
    return DENY


def _reviewer(ctx: _Context) -> Permissions:
    may_decide = ctx.is_assigned or ctx.is_admin
    return Permissions(can_approve=may_decide, can_reject=may_decide, can_skip=ctx.is_admin)


def _gated(kind: StageKind) -> Callable[[_Context], Permissions]:
    def _check(ctx: _Context) -> Permissions:
        return _reviewer(ctx) if ctx.current is kind else DENY

    return _check


def _admin(ctx: _Context) -> Permissions:
    return Permissions(can_approve=True, can_reject=True, can_skip=ctx.auto_approve)


PERMISSION_EVALUATORS: dict[Role, Callable[[_Context], Permissions]] = {
    Role.ADMIN: _admin,
    Role.VP: _reviewer,
    Role.DIRECTOR: _gated(StageKind.DIRECTOR),
    Role.MANAGER: _gated(StageKind.MANAGER),
    Role.PMO: _deny,
    Role.SOLUTION_CONSULTANT: _deny,
    Role.PRO_SERVICES: _deny,
    Role.SALES: _deny,
    Role.USER: _deny,
}


def evaluate_permissions(
    role: Role,
    current_stage: StageKind | None,
    is_assigned: bool,
    is_admin: bool,
    auto_approve: bool = False,
) -> Permissions:
    if current_stage is None:
        return DENY
    evaluator = PERMISSION_EVALUATORS[role]
    return evaluator(
        _Context(
            current=current_stage,
            is_assigned=is_assigned,
            is_admin=is_admin,
            auto_approve=auto_approve,
        )
    )


def permissions_for(actor: Actor, current_stage: Stage | None, target_stage: Stage | None) -> Permissions:
    """Evaluate for an actor against the projected current stage.

    ``target_stage`` is the stage being acted on; assignment and auto-approve
    are read from it. For status display it is the current stage itself.
    """
    if current_stage is None or target_stage is None:
        return DENY
    return evaluate_permissions(
        role=actor.role,
        current_stage=current_stage.kind,
        is_assigned=target_stage.assigned_role == actor.role,
        is_admin=actor.is_admin,
        auto_approve=target_stage.auto_approve,
    )
