"""Demonstrate how amount thresholds shape the SOW approval workflow.

Configures two amount rules (Manager at 10k, Director at 40k), then drives
three documents through the sowflow API:

  - a 50k SOW that needs Manager then Director approval,
  - a 5k SOW that matches no rule and falls back to the default stages,
    which a VP approval completes in one step,
  - a 20k SOW the manager rejects.

Usage:
    python scripts/simulate_sow_workflow.py

Prereq: None (uses in-memory DB).
"""

import asyncio
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
os.environ.setdefault("SOWFLOW_RATE_LIMIT_ENABLED", "false")

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from sowflow.db.base import Base
import sowflow.db.models  # noqa: F401
from sowflow.db.models.user import UserRow
from sowflow.main import create_app
from sowflow.models.enums import Role
from sowflow.services.default_stages import seed_default_stages
from sowflow.services.security import make_tokens

USERS = {
    "admin": ("usr_sim_admin", Role.ADMIN, True),
    "manager": ("usr_sim_manager", Role.MANAGER, False),
    "director": ("usr_sim_director", Role.DIRECTOR, False),
    "vp": ("usr_sim_vp", Role.VP, False),
}

RULES = [
    ("Manager Approval", 10000, 1),
    ("Director Approval", 40000, 2),
]


def print_section(title: str):
    print()
    print("=" * 72)
    print(f"  {title}")
    print("=" * 72)


async def seed(session_factory) -> dict[str, dict]:
    """Seed stages and users; return auth headers per persona."""
    headers = {}
    async with session_factory() as session:
        await seed_default_stages(session)
        for persona, (user_id, role, is_admin) in USERS.items():
            session.add(UserRow(
                user_id=user_id,
                email=f"{persona}@sowflow.example.com",
                display_name=persona.title(),
                role=role.value,
                is_admin=is_admin,
            ))
            access_token, _ = make_tokens(user_id, role.value, is_admin)
            headers[persona] = {"Authorization": f"Bearer {access_token}"}
        await session.commit()
    return headers


async def show_status(client, doc_id: str, headers: dict):
    r = await client.get(f"/api/v1/documents/{doc_id}/workflow", headers=headers)
    assert r.status_code == 200, f"Status: {r.status_code} {r.text}"
    status = r.json()
    current = (status["current_stage"] or {}).get("name", "-")
    nxt = (status["next_stage"] or {}).get("name", "-")
    print(f"    current={current:18s} next={nxt:18s} complete={status['is_complete']} "
          f"bypassed={status['bypassed']} rejected={status['is_rejected']}")
    for approval in status["approvals"]:
        print(f"      - {approval['stage']['name']:18s} {approval['status']:9s} "
              f"by {approval['approver_id'] or '-'}")
    return status


async def act(client, doc_id: str, stage_id: str, action: str, headers: dict, comments=None):
    body = {"action": action}
    if comments:
        body["comments"] = comments
    r = await client.patch(f"/api/v1/documents/{doc_id}/approvals/{stage_id}", json=body, headers=headers)
    print(f"    {action:8s} -> HTTP {r.status_code}")
    return r


async def main():
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    headers = await seed(session_factory)

    app = create_app()
    app.state.db_engine = engine
    app.state.db_session_factory = session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:

        # ── Phase 1: Stages and rules ──────────────────────────────────
        print_section("PHASE 1: APPROVAL STAGES AND RULES")
        r = await client.get("/api/v1/admin/approval-stages", headers=headers["admin"])
        assert r.status_code == 200
        stages = {s["name"]: s["stage_id"] for s in r.json()}
        for name, stage_id in stages.items():
            print(f"  {name:18s} {stage_id}")

        for stage_name, min_amount, sort_order in RULES:
            r = await client.post(
                "/api/v1/admin/approval-rules",
                json={
                    "condition_type": "amount",
                    "condition_value": {"min_amount": min_amount},
                    "stage_id": stages[stage_name],
                    "sort_order": sort_order,
                },
                headers=headers["admin"],
            )
            assert r.status_code == 201, f"Rule: {r.status_code} {r.text}"
            print(f"  rule: amount >= {min_amount:>6} requires {stage_name}")

        # ── Phase 2: 50k SOW, sequential approval ──────────────────────
        print_section("PHASE 2: 50k SOW (Manager -> Director)")
        r = await client.post("/api/v1/documents", json={"title": "Data platform rollout", "amount": 50000},
                              headers=headers["admin"])
        doc_large = r.json()["document_id"]
        r = await client.post(f"/api/v1/documents/{doc_large}/workflow/start", headers=headers["admin"])
        assert r.status_code == 201, f"Start: {r.status_code} {r.text}"
        print(f"  started with {r.json()['stages_created']} stages")
        await show_status(client, doc_large, headers["manager"])

        print("  director tries first:")
        r = await act(client, doc_large, stages["Director Approval"], "approve", headers["director"])
        assert r.status_code == 403

        print("  manager approves:")
        await act(client, doc_large, stages["Manager Approval"], "approve", headers["manager"])
        print("  director approves:")
        await act(client, doc_large, stages["Director Approval"], "approve", headers["director"],
                  comments="Budget confirmed with finance")
        await show_status(client, doc_large, headers["admin"])

        # ── Phase 3: 5k SOW, fallback path with VP bypass ──────────────
        print_section("PHASE 3: 5k SOW (fallback stages, VP bypass)")
        r = await client.post("/api/v1/documents", json={"title": "Workshop", "amount": 5000},
                              headers=headers["admin"])
        doc_small = r.json()["document_id"]
        r = await client.post(f"/api/v1/documents/{doc_small}/workflow/start", headers=headers["admin"])
        print(f"  started with {r.json()['stages_created']} stages (fallback={r.json()['used_fallback']})")
        print("  vp approves:")
        await act(client, doc_small, stages["VP Approval"], "approve", headers["vp"])
        await show_status(client, doc_small, headers["vp"])

        # ── Phase 4: 20k SOW, rejection and conflict ───────────────────
        print_section("PHASE 4: 20k SOW (rejection)")
        r = await client.post("/api/v1/documents", json={"title": "Migration support", "amount": 20000},
                              headers=headers["admin"])
        doc_mid = r.json()["document_id"]
        await client.post(f"/api/v1/documents/{doc_mid}/workflow/start", headers=headers["admin"])
        await client.post(f"/api/v1/documents/{doc_mid}/comments", json={"text": "Rates exceed the 2026 card"},
                          headers=headers["manager"])
        print("  manager rejects:")
        await act(client, doc_mid, stages["Manager Approval"], "reject", headers["manager"],
                  comments="Rates exceed the 2026 card")
        print("  admin tries to approve the resolved stage:")
        r = await act(client, doc_mid, stages["Manager Approval"], "approve", headers["admin"])
        assert r.status_code == 409
        await show_status(client, doc_mid, headers["admin"])

        # ── Summary ────────────────────────────────────────────────────
        print_section("SUMMARY")
        for doc_id in (doc_large, doc_small, doc_mid):
            doc = (await client.get(f"/api/v1/documents/{doc_id}", headers=headers["admin"])).json()
            stats = (await client.get(f"/api/v1/documents/{doc_id}/approval-stats",
                                      headers=headers["admin"])).json()
            summary = (await client.get(f"/api/v1/documents/{doc_id}/audit/summary",
                                        headers=headers["admin"])).json()
            print(f"  {doc['title']:22s} amount={doc['amount']:>8.0f} status={doc['status']:9s} "
                  f"approved={stats['approved_approvals']} audit_entries={summary['total_actions']}")
        print()
        print("=" * 72)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
