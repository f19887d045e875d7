"""CLI parser construction for the taskcore developer CLI."""

import argparse
from typing import Any

from application.ordering import OrderingKind
from application.views import ViewScope


def build_parser(commands: Any) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tasks.py",
        description="taskcore: title tokens, sort keys, actionability and the filter DSL over a YAML snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="store_true", help="print version and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging to stderr")

    def add_snapshot_arg(sp):
        sp.add_argument(
            "--snapshot",
            "-s",
            dest="snapshot",
            help="YAML snapshot file (defaults to 'snapshot' from the user config)",
        )
        return sp

    sub = parser.add_subparsers(dest="command", help="Commands")

    # parse-title
    pt = sub.add_parser("parse-title", help="Extract @project, #tags and URLs from a title")
    pt.add_argument("title")
    add_snapshot_arg(pt)
    pt.set_defaults(func=commands.cmd_parse_title)

    # key-between
    kb = sub.add_parser("key-between", help="Generate sort keys between two bounds")
    kb.add_argument("--before", help="lower bound key (exclusive)")
    kb.add_argument("--after", help="upper bound key (exclusive)")
    kb.add_argument("--count", "-n", type=int, default=1, help="number of keys")
    kb.set_defaults(func=commands.cmd_key_between)

    # order
    op = sub.add_parser("order", help="Plan a reorder gesture and print the new sort key")
    op.add_argument("kind", choices=[k.value for k in OrderingKind])
    op.add_argument("--task", type=int, dest="task_id")
    op.add_argument("--anchor", type=int, dest="anchor_id")
    op.add_argument("--parent", type=int, dest="parent_id")
    op.add_argument("--project", type=int, dest="project_id")
    add_snapshot_arg(op)
    op.set_defaults(func=commands.cmd_order)

    # view
    vp = sub.add_parser("view", help="List visible task ids in display order")
    vp.add_argument("--hide-non-actionable", action="store_true", default=None)
    vp.add_argument("--show-completed", action="store_true", default=None)
    vp.add_argument("--project", type=int, dest="project_id")
    vp.add_argument("--include-archived", action="store_true")
    vp.add_argument("--scope", choices=[s.value for s in ViewScope], default="all", help="page scope: all, inbox, today or someday")
    vp.add_argument("--now", help="reference time YYYY-MM-DDTHH:MM for the today scope (defaults to now)")
    add_snapshot_arg(vp)
    vp.set_defaults(func=commands.cmd_view)

    # filter
    fp = sub.add_parser("filter", help="Run a filter query over root tasks")
    fp.add_argument("query")
    add_snapshot_arg(fp)
    fp.set_defaults(func=commands.cmd_filter)

    # check-filter
    cf = sub.add_parser("check-filter", help="Validate a filter query without running it")
    cf.add_argument("query")
    cf.set_defaults(func=commands.cmd_check_filter)

    # suggest
    sg = sub.add_parser("suggest", help="Completion suggestions for a partial filter query")
    sg.add_argument("query")
    sg.add_argument("--cursor", type=int, help="cursor offset (defaults to end of query)")
    add_snapshot_arg(sg)
    sg.set_defaults(func=commands.cmd_suggest)

    # review
    rp = sub.add_parser("review", help="Tasks due for review and recently reviewed ones")
    rp.add_argument("--interval", type=int, dest="interval_days", help="review interval in days")
    rp.add_argument("--today", help="reference date YYYY-MM-DD (defaults to today)")
    add_snapshot_arg(rp)
    rp.set_defaults(func=commands.cmd_review)

    return parser
