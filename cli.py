import argparse
import json
import sys
from orchestrator import EditorService
from utils.logging import configure_from_config
from utils.diff_utils import make_unified_diff
from config import load_config
from editor.exceptions import EditorError

EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_EDITOR_ERROR = 2


def _emit(payload):
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _read_plan(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    with open(source, "r", encoding="utf-8") as f:
        return f.read()


def run_new(args, service, logger):
    record = service.create_project(args.template)
    _emit({"id": record.id, "templateSlug": record.template_slug, "version": record.version})


def run_apply(args, service, logger):
    raw_plan = _read_plan(args.plan)

    # Capture pre-apply content per path so --show-diff can print what changed
    before = {}
    if args.show_diff:
        from utils.plan_parser import parse_patch_plan
        parsed = parse_patch_plan(raw_plan)
        if parsed.ok:
            for change in parsed.plan.changes:
                before.setdefault(change.file_path, service.read_file(args.project_id, change.file_path))

    result = service.apply_plan(args.project_id, raw_plan)
    _emit(result.model_dump(mode="json"))

    if result.skipped:
        logger.warning(f"{len(result.skipped)} operation(s) skipped")
        for skip in result.skipped:
            logger.warning(f"  - {skip.file_path}: {skip.reason}")

    if args.show_diff:
        for path, original in before.items():
            diff = make_unified_diff(original, service.read_file(args.project_id, path), path)
            if diff:
                print(diff, file=sys.stderr)


def run_history(args, service, logger):
    step = service.undo(args.project_id) if args.command == "undo" else service.redo(args.project_id)
    payload = {"version": step.version, "canUndo": step.can_undo, "canRedo": step.can_redo}
    if step.content is not None:
        payload["filePath"] = step.file_path
        payload["content"] = step.content
    else:
        logger.info(f"Nothing to {args.command}")
    _emit(payload)


def run_state(args, service, logger):
    state = service.history_state(args.project_id)
    _emit({"version": state.version, "canUndo": state.can_undo, "canRedo": state.can_redo})


def run_show(args, service, logger):
    sys.stdout.write(service.read_file(args.project_id, args.file_path))


def run_context(args, service, logger):
    ctx = service.context(args.project_id, args.file_path, max_chars=args.max_chars, query=args.query)
    _emit(ctx.model_dump(mode="json"))


COMMANDS = {
    "new": run_new,
    "apply": run_apply,
    "undo": run_history,
    "redo": run_history,
    "state": run_state,
    "show": run_show,
    "context": run_context,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patch-ledger",
        description="Apply agent-proposed patches to project files with undo/redo history",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start a project from a template
  patch-ledger new dental

  # Apply an agent response containing a patch plan
  patch-ledger apply dental--1234 response.txt --show-diff

  # Step back and forward through history
  patch-ledger undo dental--1234
  patch-ledger redo dental--1234
        """
    )
    parser.add_argument(
        "--config",
        help="Path to YAML config file (default: $PATCH_LEDGER_CONFIG, else config.yml)",
        default=None,
    )
    parser.add_argument("--log-level", help="Override log level (DEBUG, INFO, WARNING, ERROR)", default=None)

    sub = parser.add_subparsers(dest="command", required=True)

    p_new = sub.add_parser("new", help="Create a project for a template")
    p_new.add_argument("template", help="Template slug")

    p_apply = sub.add_parser("apply", help="Apply a patch plan to a project")
    p_apply.add_argument("project_id")
    p_apply.add_argument("plan", help="File holding the agent response, or '-' for stdin")
    p_apply.add_argument("--show-diff", action="store_true", help="Print unified diffs to stderr")

    for name, help_text in (("undo", "Undo the last change"), ("redo", "Redo the last undone change")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("project_id")

    p_state = sub.add_parser("state", help="Show version and undo/redo availability")
    p_state.add_argument("project_id")

    p_show = sub.add_parser("show", help="Print the current content of a file")
    p_show.add_argument("project_id")
    p_show.add_argument("file_path")

    p_ctx = sub.add_parser("context", help="Prepare file context for an agent prompt")
    p_ctx.add_argument("project_id")
    p_ctx.add_argument("file_path")
    p_ctx.add_argument("--query", help="User request used to pick targeted excerpts")
    p_ctx.add_argument("--max-chars", type=int, default=None, help="Context budget (1000-40000)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Load config first
    cfg = load_config(args.config)

    # Configure logging from config (or override with CLI arg)
    logger = configure_from_config(cfg.logging, level=args.log_level)

    logger.debug(f"Config file: {args.config}")
    logger.debug(f"Store backend: {cfg.store.backend} ({cfg.store.data_dir})")

    service = EditorService(config=cfg)
    try:
        COMMANDS[args.command](args, service, logger)
    except EditorError as e:
        logger.error(f"{args.command} failed: {e}")
        return EXIT_EDITOR_ERROR
    except (OSError, ValueError) as e:
        logger.error(f"Invalid input: {e}")
        return EXIT_INVALID_INPUT
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
