"""
stackbridge command line.

Usage:
    stackbridge preview stack.yaml
    stackbridge deploy stack.yaml --library ./libpulumi_bridge.so
    stackbridge import stack.yaml --type azure-native:resources:ResourceGroup --name rg --id /subscriptions/...
    stackbridge refs stack.yaml
"""

from __future__ import annotations

import argparse
import json
from typing import Any, Sequence

from stackbridge.cli.ux import console, error, header, success, warning
from stackbridge.config.loader import StackDefinition, load_stack_file
from stackbridge.config.settings import get_settings
from stackbridge.core.errors import ExitCode, main_with_error_handling
from stackbridge.events.handlers import PrintEventHandler
from stackbridge.logging import LOG_FORMATS, bind_context, configure_logging
from stackbridge.orchestration.results import StackResult
from stackbridge.orchestration.stack import Engine, Stack
from stackbridge.references import find_references, missing_references, render_value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackbridge", description="Run infrastructure operations through the automation runtime"
    )
    parser.add_argument("--library", help="Path to the runtime shared library")
    parser.add_argument("--log-level", default=None, help="Log level (default from settings)")
    parser.add_argument(
        "--log-format", choices=LOG_FORMATS, default=None, help="Log format (default from settings)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("stack_file", help="Path to stack YAML file")
        sub.add_argument("--json", action="store_true", help="Print the result as JSON")
        sub.add_argument("--quiet", action="store_true", help="Do not print progress events")

    add_common(subparsers.add_parser("preview", help="Show what a deployment would change"))
    add_common(subparsers.add_parser("deploy", help="Create or update the stack's resources"))
    add_common(subparsers.add_parser("refresh", help="Reconcile state with live resources"))
    add_common(subparsers.add_parser("destroy", help="Delete every resource in the stack"))
    add_common(subparsers.add_parser("outputs", help="Print the stack's current outputs"))

    import_parser = subparsers.add_parser("import", help="Adopt an existing resource")
    add_common(import_parser)
    import_parser.add_argument("--type", dest="resource_type", required=True, help="Resource type token")
    import_parser.add_argument("--name", dest="resource_name", required=True, help="Logical resource name")
    import_parser.add_argument("--id", dest="resource_id", required=True, help="Provider resource id")

    refs_parser = subparsers.add_parser(
        "refs", help="List output references and report ones to undeclared resources"
    )
    refs_parser.add_argument("stack_file", help="Path to stack YAML file")
    refs_parser.add_argument("--json", action="store_true", help="Print the report as JSON")

    return parser


def build_stack(engine: Engine, definition: StackDefinition) -> Stack:
    builder = engine.create_stack(definition.stack)
    if definition.project:
        builder.with_project(definition.project)
    if definition.backend:
        builder.with_backend(definition.backend)
    if definition.runtime is not None:
        builder.with_runtime_config(definition.runtime)
    for key, value in definition.config.items():
        builder.with_config(key, value)
    return builder.build()


def run_operation(args: argparse.Namespace, engine: Engine) -> StackResult:
    definition = load_stack_file(args.stack_file)
    stack = build_stack(engine, definition)
    handler = None if args.quiet or args.json else PrintEventHandler()

    if args.command == "destroy":
        return stack.destroy()
    if args.command == "outputs":
        return stack.get_outputs()

    if args.command == "import":
        builder: Any = (
            stack.import_resource()
            .with_resource_type(args.resource_type)
            .with_resource_name(args.resource_name)
            .with_resource_id(args.resource_id)
        )
    elif args.command == "refresh":
        builder = stack.refresh()
    elif args.command == "preview":
        builder = stack.preview().with_resources(definition.resources)
    else:
        builder = stack.deploy().with_resources(definition.resources)

    if handler is None:
        return builder.execute()
    return builder.with_event_handler(handler).execute(drain=True)


def print_result(result: StackResult, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
        return

    header(f"{result.operation} {result.project}/{result.stack}")
    for key, value in sorted(result.values.items()):
        console.print(f"  [info]{key}[/info] = {render_value(value)}")
    success(f"{result.operation} finished in {result.duration_seconds:.1f}s")


def refs_command(args: argparse.Namespace) -> int:
    definition = load_stack_file(args.stack_file)
    names = definition.resource_names
    tree = [resource.properties for resource in definition.resources]
    references = find_references(tree)
    dangling = missing_references(tree, names)

    if args.json:
        report = {
            "references": [reference.placeholder for reference in references],
            "missing": [reference.placeholder for reference in dangling],
        }
        print(json.dumps(report, indent=2))
    else:
        header(f"References in {definition.stack}")
        if not references:
            console.print("  [muted]no output references[/muted]")
        for resource in definition.resources:
            for reference in resource.references():
                console.print(f"  {resource.name} -> [highlight]{reference.placeholder}[/highlight]")
        for reference in dangling:
            warning(f"{reference.placeholder} refers to undeclared resource '{reference.resource_name}'")

    if dangling:
        if not args.json:
            error(f"{len(dangling)} reference(s) cannot be resolved")
        return ExitCode.OPERATION_FAILED
    return ExitCode.SUCCESS


@main_with_error_handling()
def main(argv: Sequence[str] | None = None, *, engine: Engine | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.library:
        settings = settings.model_copy(update={"library_path": args.library})
    configure_logging(args.log_level or settings.log_level, args.log_format or settings.log_format)
    log = bind_context(command=args.command, stack_file=args.stack_file)
    log.debug("command_started")

    if args.command == "refs":
        return refs_command(args)

    engine = engine or Engine(settings=settings)
    result = run_operation(args, engine)
    print_result(result, args.json)
    return ExitCode.SUCCESS


if __name__ == "__main__":
    raise SystemExit(main())
