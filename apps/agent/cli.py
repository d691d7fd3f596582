from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from bambai_platform.config import AgentConfig, load_agent_config
from bambai_platform.errors import ToolError
from bambai_platform.facade import DomainApiClient, EnvTokenProvider
from bambai_platform.gate import ConfirmationGate, Decision
from bambai_platform.gateway import ToolGateway, ToolResult
from bambai_platform.registry import ToolContext, ToolRegistry, check_executor_table
from bambai_platform.schedule import ACTION_NAME, get_schedule_prompt
from bambai_tools import TOOLS_ROOT

from apps.agent.context import SqlAgentContext
from apps.agent.db.engine import make_engine, make_session_factory
from apps.agent.db.init_db import create_tables
from apps.agent.stores import SqlEventSink, SqlPendingStore

logger = logging.getLogger("bambai.cli")

REPO_ROOT = Path(__file__).resolve().parents[2]  # apps/agent/cli.py -> repo root


@dataclass
class App:
    config: AgentConfig
    registry: ToolRegistry
    gateway: ToolGateway
    agent: SqlAgentContext
    api: DomainApiClient

    def context(self) -> ToolContext:
        # v0.1: hardcode dev identity
        return ToolContext(
            profile_id="dev",
            session_id="dev",
            channel="cli",
            timezone=self.config.timezone,
            agent=self.agent,
            api=self.api,
        )


def make_app(config_path: Optional[Path] = None) -> App:
    cfg = load_agent_config(config_path or REPO_ROOT / "config" / "agent.yaml")

    reg = ToolRegistry(TOOLS_ROOT)
    reg.discover()

    engine = make_engine(cfg.database_url)
    create_tables(engine)
    sessions = make_session_factory(engine)

    gate = ConfirmationGate(
        reg,
        store=SqlPendingStore(sessions),
        pending_ttl_seconds=cfg.confirmation.pending_ttl_seconds,
    )
    problems = check_executor_table(reg, gate.executions)
    for p in problems:
        logger.warning("tool wiring: %s", p)

    api = DomainApiClient(
        cfg.api.base_url,
        timeout_s=cfg.api.timeout_seconds,
        token_provider=EnvTokenProvider(cfg.api.token_env),
    )
    gateway = ToolGateway(reg, gate, on_event=SqlEventSink(sessions), max_workers=cfg.max_parallel_tools)
    return App(config=cfg, registry=reg, gateway=gateway, agent=SqlAgentContext(sessions), api=api)


def print_result(res: ToolResult) -> None:
    print("status:", res.status)
    if res.error:
        print("error:", res.error)
    print("data:", res.data)
    print("meta:", res.meta)

    if res.status == "approval_required":
        print("\npending_id:", res.data.get("pending_id"))


def cmd_tools(app: App, args):
    for name, spec in app.registry.list().items():
        gate = "confirm" if spec.requires_confirmation else "auto"
        print(f"- {name} [{gate}] {spec.handler}")


def cmd_run(app: App, args):
    payload = json.loads(args.json)
    print_result(app.gateway.run_tool(args.tool, payload, app.context()))


def cmd_approve(app: App, args):
    print_result(app.gateway.resolve(args.pending_id, Decision.APPROVE, app.context()))


def cmd_deny(app: App, args):
    res = app.gateway.resolve(args.pending_id, Decision.DENY, app.context())
    print("denied:", args.pending_id)
    print("result:", res.data.get("result"))


def cmd_approvals(app: App, args):
    app.gateway.gate.expire_stale()
    pending = app.gateway.gate.store.list(args.status, limit=args.limit)
    if not pending:
        print(f"No confirmations with status='{args.status}'.")
        return

    for p in pending:
        print(
            f"- pending_id={p.pending_id} status={p.status} requested={p.created_at.isoformat()} "
            f"tool={p.tool_name} input={json.dumps(p.arguments)}"
        )


def cmd_tasks(app: App, args):
    tasks = app.agent.list_tasks(status=None if args.status == "all" else args.status, limit=args.limit)
    if not tasks:
        print("No scheduled tasks.")
        return
    for t in tasks:
        run_at = t.run_at.isoformat() if t.run_at else "-"
        print(f"- task_id={t.task_id} {t.kind}={t.trigger_value} run_at={run_at} status={t.status} payload={t.payload!r}")


def cmd_fire(app: App, args):
    def execute_task(description: str) -> str:
        line = f"Running scheduled task: {description}"
        print(line)
        return line

    fired = app.agent.fire_due({ACTION_NAME: execute_task})
    print(f"fired: {len(fired)}")


def cmd_cancel(app: App, args):
    ok = app.agent.cancel(args.task_id)
    print("cancelled:" if ok else "not active:", args.task_id)


def cmd_schedule_prompt(app: App, args):
    print(get_schedule_prompt(datetime.now(timezone.utc)))


def main():
    p = argparse.ArgumentParser(prog="assistant")
    p.add_argument("--config", type=Path, default=None, help="Path to agent.yaml")
    p.add_argument("--log-level", default="WARNING")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("tools", help="List registered tools.").set_defaults(func=cmd_tools)

    runp = sub.add_parser("run", help="Run a tool with JSON input (may require confirmation).")
    runp.add_argument("tool", help="Tool name, e.g. getStudents")
    runp.add_argument("json", help='JSON payload, e.g. \'{"schoolIds":"1,2"}\'')
    runp.set_defaults(func=cmd_run)

    ap = sub.add_parser("approve", help="Approve and execute a pending confirmation.")
    ap.add_argument("pending_id")
    ap.set_defaults(func=cmd_approve)

    dn = sub.add_parser("deny", help="Deny a pending confirmation.")
    dn.add_argument("pending_id")
    dn.set_defaults(func=cmd_deny)

    ls = sub.add_parser("approvals", help="List confirmations.")
    ls.add_argument("--status", default="pending", choices=["pending", "approved", "denied", "expired"])
    ls.add_argument("--limit", type=int, default=20)
    ls.set_defaults(func=cmd_approvals)

    ts = sub.add_parser("tasks", help="List scheduled tasks.")
    ts.add_argument("--status", default="active", choices=["active", "done", "cancelled", "failed", "all"])
    ts.add_argument("--limit", type=int, default=50)
    ts.set_defaults(func=cmd_tasks)

    sub.add_parser("fire", help="Run scheduled tasks that are due now.").set_defaults(func=cmd_fire)

    cn = sub.add_parser("cancel", help="Cancel an active scheduled task.")
    cn.add_argument("task_id")
    cn.set_defaults(func=cmd_cancel)

    sub.add_parser("schedule-prompt", help="Print the scheduling system prompt.").set_defaults(
        func=cmd_schedule_prompt
    )

    args = p.parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = make_app(args.config)
    try:
        args.func(app, args)
    except ToolError as te:
        print("error:", te.to_json())
        raise SystemExit(1)
    finally:
        app.api.close()


if __name__ == "__main__":
    main()
