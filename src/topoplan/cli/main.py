"""
Main CLI module with argument parsing and command execution.

This module provides the main CLI interface including:
- Command line argument parsing
- Command routing and execution
- Exit codes and Ctrl-C cancellation of a running apply
"""
import argparse
import signal
import sys
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from dotenv import find_dotenv, load_dotenv

from topoplan import __version__
from topoplan.application.dto import ApplyResult
from topoplan.application.service import TopologyService
from topoplan.cli.formatters import format_output
from topoplan.config.manager import ConfigurationManager
from topoplan.domain.base.exceptions import DomainException, EntityNotFoundError
from topoplan.infrastructure.logging.logger import get_logger, setup_logging

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CHANGES = 2
EXIT_CANCELLED = 130

CommandResult = Tuple[Any, int]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="topoplan",
        description="topoplan - plan and apply declarative infrastructure topologies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s validate -f topology.yaml             # Check references and ordering
  %(prog)s plan -f topology.yaml                 # Show pending changes (exit 2 if any)
  %(prog)s apply -f topology.yaml --format table # Apply and show a summary table
  %(prog)s destroy -f topology.yaml              # Delete everything in reverse order
  %(prog)s state list                            # Inspect applied state
        """,
    )

    # Global options
    parser.add_argument("--config", help="Configuration file path")
    parser.add_argument("--state", help="State file path (overrides configuration)")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Set logging level")
    parser.add_argument("--format", choices=["json", "yaml", "table"], default="json",
                        help="Output format")
    parser.add_argument("--output", help="Output file (default: stdout)")
    parser.add_argument("--quiet", action="store_true", help="Suppress non-essential output")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    validate = subparsers.add_parser("validate", help="Validate a topology and print its order")
    validate.add_argument("-f", "--file", required=True, help="Topology file")

    plan = subparsers.add_parser("plan", help="Show the operations an apply would run")
    plan.add_argument("-f", "--file", required=True, help="Topology file")
    plan.add_argument("--destroy", action="store_true", help="Plan deletion of every applied resource")
    plan.add_argument("--out", help="Also write the plan as JSON to this file")

    apply = subparsers.add_parser("apply", help="Plan and apply a topology")
    apply.add_argument("-f", "--file", required=True, help="Topology file")

    destroy = subparsers.add_parser("destroy", help="Delete every applied resource")
    destroy.add_argument("-f", "--file", required=True, help="Topology file")

    outputs = subparsers.add_parser("outputs", help="Show resolved topology outputs")
    outputs.add_argument("-f", "--file", required=True, help="Topology file")

    state = subparsers.add_parser("state", help="Inspect applied state")
    state_subparsers = state.add_subparsers(dest="action", help="State actions")
    state_subparsers.add_parser("list", help="List applied resources")
    state_show = state_subparsers.add_parser("show", help="Show one applied resource")
    state_show.add_argument("logical_id", help="Logical ID to show")

    return parser.parse_args(argv)


@contextmanager
def cancel_on_interrupt(event: threading.Event) -> Iterator[None]:
    """
    First Ctrl-C sets ``event`` so no further operation starts; a second one
    interrupts immediately.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _handler(signum, frame):
        if event.is_set():
            raise KeyboardInterrupt
        event.set()
        print("\nCancelling: waiting for in-flight operations to finish...", file=sys.stderr)

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def handle_validate(args: argparse.Namespace, service: TopologyService) -> CommandResult:
    document = service.load(args.file)
    graph = service.validate(document)
    order = [
        {"logical_id": logical_id, "kind": graph.get(logical_id).kind,
         "depends_on": sorted(graph.dependencies(logical_id))}
        for logical_id in graph.topological_order
    ]
    return {"name": document.name, "valid": True, "order": order}, EXIT_OK


def handle_plan(args: argparse.Namespace, service: TopologyService) -> CommandResult:
    document = service.load(args.file)
    plan = service.plan(document, destroy=args.destroy)
    data = plan.to_dict()
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(format_output(data, "json"))
    return data, EXIT_CHANGES if plan.has_changes() else EXIT_OK


def handle_apply(args: argparse.Namespace, service: TopologyService) -> CommandResult:
    document = service.load(args.file)
    cancel_event = threading.Event()
    with cancel_on_interrupt(cancel_event):
        result = service.apply(document, cancel_event)
    return result.to_dict(), _apply_exit_code(result)


def handle_destroy(args: argparse.Namespace, service: TopologyService) -> CommandResult:
    document = service.load(args.file)
    cancel_event = threading.Event()
    with cancel_on_interrupt(cancel_event):
        result = service.destroy(document, cancel_event)
    return result.to_dict(), _apply_exit_code(result)


def handle_outputs(args: argparse.Namespace, service: TopologyService) -> CommandResult:
    document = service.load(args.file)
    return {"name": document.name, "outputs": service.outputs(document)}, EXIT_OK


def handle_state(args: argparse.Namespace, service: TopologyService) -> CommandResult:
    state = service.state()
    if args.action == "show":
        entry = state.get(args.logical_id)
        if entry is None:
            raise EntityNotFoundError("StateEntry", args.logical_id)
        return dict(entry.model_dump(mode="json"), logical_id=args.logical_id), EXIT_OK

    entries = [
        dict(state.get(logical_id).model_dump(mode="json"), logical_id=logical_id)
        for logical_id in state.logical_ids()
    ]
    return {"serial": state.serial, "entries": entries}, EXIT_OK


COMMANDS: Dict[str, Callable[[argparse.Namespace, TopologyService], CommandResult]] = {
    "validate": handle_validate,
    "plan": handle_plan,
    "apply": handle_apply,
    "destroy": handle_destroy,
    "outputs": handle_outputs,
    "state": handle_state,
}


def _apply_exit_code(result: ApplyResult) -> int:
    if result.cancelled:
        return EXIT_CANCELLED
    return EXIT_OK if result.success else EXIT_ERROR


def create_service(args: argparse.Namespace) -> TopologyService:
    """Load configuration, configure logging and build the service."""
    config = ConfigurationManager(args.config).app_config

    level = args.log_level or ("DEBUG" if args.verbose else "WARNING" if args.quiet else None)
    if level:
        config = config.model_copy(update={"logging": config.logging.model_copy(update={"level": level})})
    setup_logging(config.logging)

    return TopologyService(config, state_path=args.state)


def write_output(args: argparse.Namespace, data: Any) -> None:
    formatted_output = format_output(data, args.format)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(formatted_output)
        if not args.quiet:
            print(f"Output written to {args.output}")
    else:
        print(formatted_output)


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    load_dotenv(find_dotenv(usecwd=True))
    args = parse_args(argv)

    if not args.command:
        print("Error: No command specified. Use --help for usage information.", file=sys.stderr)
        sys.exit(EXIT_ERROR)
    if args.command == "state" and not args.action:
        print("Error: No action specified for state. Use --help for usage information.", file=sys.stderr)
        sys.exit(EXIT_ERROR)

    logger = get_logger(__name__)
    try:
        service = create_service(args)
        data, exit_code = COMMANDS[args.command](args, service)
        write_output(args, data)
    except DomainException as e:
        logger.error(f"Domain error: {e}")
        if not args.quiet:
            print(f"Error: {e}", file=sys.stderr)
        sys.exit(EXIT_ERROR)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(EXIT_CANCELLED)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        if not args.quiet:
            print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(EXIT_ERROR)

    if exit_code != EXIT_OK:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
