"""Read model over the configured approval stages."""

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.models.enums import StageKind
from sowflow.models.workflow import Stage
from sowflow.repositories.stage_repo import ApprovalStageRepository


class StageCatalog:
    """Stages in their total order (sort_order, then stage_id)."""

    def __init__(self, stages: Iterable[Stage]):
        self._stages = sorted(stages, key=lambda s: (s.sort_order, s.stage_id))
        self._by_id = {s.stage_id: s for s in self._stages}

    def __iter__(self):
        return iter(self._stages)

    def __len__(self) -> int:
        return len(self._stages)

    def get(self, stage_id: str) -> Stage | None:
        return self._by_id.get(stage_id)

    def active(self) -> list[Stage]:
        return [s for s in self._stages if s.is_active]

    def first_active(self, count: int) -> list[Stage]:
        return self.active()[:count]

    def find(self, kind: StageKind) -> Stage | None:
        """First active stage of the given kind."""
        return next((s for s in self.active() if s.kind is kind), None)


async def load_stage_catalog(session: AsyncSession) -> StageCatalog:
    rows = await ApprovalStageRepository(session).list_all()
    return StageCatalog(Stage.model_validate(r) for r in rows)
