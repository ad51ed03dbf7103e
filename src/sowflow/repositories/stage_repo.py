"""Approval stage and rule repositories."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sowflow.db.models.stage import ApprovalRuleRow, ApprovalStageRow
from sowflow.repositories.base import BaseRepository


class ApprovalStageRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, ApprovalStageRow)

    async def get(self, stage_id: str) -> ApprovalStageRow | None:
        return await self.get_by_id("stage_id", stage_id)

    async def get_by_name(self, name: str) -> ApprovalStageRow | None:
        return await self.get_where(name=name)

    async def list_all(self) -> list[ApprovalStageRow]:
        stmt = select(ApprovalStageRow).order_by(
            ApprovalStageRow.sort_order.asc(), ApprovalStageRow.stage_id.asc()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class ApprovalRuleRepository(BaseRepository):
    def __init__(self, session: AsyncSession):
        super().__init__(session, ApprovalRuleRow)

    async def get(self, rule_id: str) -> ApprovalRuleRow | None:
        return await self.get_by_id("rule_id", rule_id)

    async def list_all(self) -> list[ApprovalRuleRow]:
        stmt = select(ApprovalRuleRow).order_by(
            ApprovalRuleRow.sort_order.asc(), ApprovalRuleRow.rule_id.asc()
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
