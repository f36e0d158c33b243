from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from hammadde_usage import __version__ as TOOL_VERSION
from hammadde_usage.config import DEFAULT_CONFIG_NAME, ConfigError, Settings, load_settings, starter_config
from hammadde_usage.contracts import build_payload, build_run_summary
from hammadde_usage.export import results_to_csv, summaries_to_csv, write_csv
from hammadde_usage.loader import load_table
from hammadde_usage.models import ProcessResult
from hammadde_usage.normalizer import table_warnings
from hammadde_usage.reconcile import (
    AnalysisOutcome,
    DEFICIT,
    SORT_COLUMNS,
    SURPLUS,
    analyse_project,
    classify_result,
    filter_results,
    sort_results,
)
from hammadde_usage.recipe import process_recipe_records, recipe_ingredients
from hammadde_usage.sales import process_sales_records
from hammadde_usage.store import AnalysisProject, ProjectNotFoundError, ProjectStore
from hammadde_usage.supply import process_supply_records

logger = logging.getLogger("hammadde_usage")

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_NO_ROWS = 3
EXIT_ANALYSIS_FAILED = 4

DATASET_KINDS = ("recipe", "supply", "sales")
DATASET_LABELS = {"recipe": "Reçete", "supply": "HAVI", "sales": "AktifPOS"}
STEP_LABELS = ("Reçete", "HAVI", "AktifPOS", "Analiz")
TEXT_RESULT_LIMIT = 25
PREVIEW_ROWS = 5


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class HammaddeUsageArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def maybe_emit_json_stdout(payload: Any, enabled: bool) -> None:
    if enabled:
        print(json_dumps(payload))


def write_text(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload, encoding="utf-8")


def safe_output_path(path: Path) -> Path:
    if path.exists():
        raise CliError(f"Refusing to overwrite existing output: {path}", EXIT_COMMAND_ERROR)
    return path


def configure_logging(args: argparse.Namespace) -> None:
    level = logging.WARNING
    if getattr(args, "verbose", False):
        level = logging.DEBUG
    elif getattr(args, "quiet", False):
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def classify_backend_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, (ImportError, UnicodeDecodeError)):
        return EXIT_PARSE_FAILED
    if isinstance(exc, FileNotFoundError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, ValueError):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def open_store(args: argparse.Namespace, settings: Settings) -> ProjectStore:
    root = Path(args.store_dir) if getattr(args, "store_dir", None) else settings.store_path
    return ProjectStore(root)


def fetch_project(store: ProjectStore, project_id: str) -> AnalysisProject:
    try:
        return store.get(project_id)
    except ProjectNotFoundError:
        raise CliError(f"Project not found: {project_id}", EXIT_COMMAND_ERROR)


def project_overview(project: AnalysisProject) -> dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "created_at": project.created_at,
        "counts": {kind: len(project.entries(kind)) for kind in DATASET_KINDS},
        "completed_steps": list(project.completed_steps),
    }


def project_payload(store: ProjectStore, command: str, body: dict[str, Any]) -> dict[str, Any]:
    return build_payload(
        "hammadde_usage.project",
        body,
        build_run_summary(tool="hammadde-usage", script=f"project {command}", input_path=store.root),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# TEXT RENDERING
# ═══════════════════════════════════════════════════════════════════════════════

def render_project_text(project: AnalysisProject) -> str:
    steps = ", ".join(
        f"{label}: {'done' if flag else 'pending'}" for label, flag in zip(STEP_LABELS, project.completed_steps)
    )
    counts = ", ".join(f"{DATASET_LABELS[kind]} {len(project.entries(kind))}" for kind in DATASET_KINDS)
    return "\n".join(
        [
            f"Project: {project.name}",
            f"ID: {project.id}",
            f"Created: {project.created_at}",
            f"Rows: {counts}",
            f"Steps: {steps}",
        ]
    )


def render_ingest_text(kind: str, file_name: str, result: ProcessResult, warnings: list[str]) -> str:
    lines = [
        f"hammadde-usage ingest ({DATASET_LABELS[kind]})",
        f"File: {file_name}",
        f"Entries stored: {len(result.entries)}",
    ]
    for key, value in sorted(result.stats.items()):
        lines.append(f"  {key}: {value}")
    for warning in warnings:
        lines.append(f"Warning: {warning}")
    return "\n".join(lines)


def _fmt(value: float | None) -> str:
    return "-" if value is None else f"{value:,.1f}"


def render_analysis_text(outcome: AnalysisOutcome, results: list, summaries: list) -> str:
    lines = [
        "hammadde-usage analyse",
        f"Rows: {len(results)} of {len(outcome.results)}",
        f"Branches: {len(summaries)}",
        "",
        "Branch summary:",
    ]
    for item in summaries:
        lines.append(
            f"  {item.branch} ({item.province or '?'}): {item.total_items} items, "
            f"{item.deficit_count} over-used, {item.surplus_count} over-ordered, "
            f"{item.near_match_count} near match, {item.incomparable_unit_count} incomparable"
        )
    lines.extend(["", f"Largest differences (top {min(TEXT_RESULT_LIMIT, len(results))}):"])
    for item in results[:TEXT_RESULT_LIMIT]:
        percent = "-" if item.difference_percent is None else f"{item.difference_percent:+.1f}%"
        lines.append(
            f"  {item.branch} | {item.resource} [{item.unit}] supplied {_fmt(item.supplied)}, "
            f"used {_fmt(item.demand)}, diff {_fmt(item.difference)} ({percent})"
        )
    return "\n".join(lines)


# ═══════════════════════════════════════════════════════════════════════════════
# PARSER
# ═══════════════════════════════════════════════════════════════════════════════

def add_log_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = HammaddeUsageArgumentParser(
        prog="hammadde-usage",
        description="Compare raw-material deliveries with recipe-based usage per branch.",
    )
    parser.add_argument("--config", help=f"Settings JSON (default: ./{DEFAULT_CONFIG_NAME} when present)")
    parser.add_argument("--store-dir", dest="store_dir", help="Project store directory")
    subparsers = parser.add_subparsers(dest="command", required=True)

    project = subparsers.add_parser("project", help="Create, list, show or delete analysis projects.")
    project_subparsers = project.add_subparsers(dest="project_command", required=True)
    project_create = project_subparsers.add_parser("create", help="Create an empty project.")
    project_create.add_argument("--name", help="Project name (default: 'Analiz DD.MM.YYYY HH:MM')")
    project_create.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    add_log_flags(project_create)
    project_list = project_subparsers.add_parser("list", help="List projects, newest first.")
    project_list.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    add_log_flags(project_list)
    project_show = project_subparsers.add_parser("show", help="Show one project.")
    project_show.add_argument("project_id", help="Project id")
    project_show.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    add_log_flags(project_show)
    project_delete = project_subparsers.add_parser("delete", help="Delete a project.")
    project_delete.add_argument("project_id", help="Project id")
    add_log_flags(project_delete)

    ingest = subparsers.add_parser("ingest", help="Load a recipe, supply or sales file into a project.")
    ingest.add_argument("project_id", help="Project id")
    ingest.add_argument("kind", choices=DATASET_KINDS, help="Which dataset the file holds")
    ingest.add_argument("input", help="Input file path")
    ingest.add_argument("--sheet", dest="sheet_name", help="Workbook sheet name (default: first sheet)")
    ingest.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    add_log_flags(ingest)

    analyse = subparsers.add_parser("analyse", help="Reconcile supply against recipe-based usage.")
    analyse.add_argument("project_id", help="Project id")
    analyse.add_argument("--province", help="Only rows for this province")
    analyse.add_argument("--branch", help="Only rows for this normalized branch")
    analyse.add_argument("--resource", help="Only rows for this raw material")
    analyse.add_argument("--sort", choices=SORT_COLUMNS, help="Sort column (default: largest percentage first)")
    analyse.add_argument("--desc", action="store_true", help="Sort descending")
    analyse.add_argument("--csv", dest="csv_path", help="Write the detailed results CSV here")
    analyse.add_argument("--summary-csv", dest="summary_csv_path", help="Write the branch summary CSV here")
    analyse.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    add_log_flags(analyse)

    config = subparsers.add_parser("config", help="Generate configuration.")
    config_subparsers = config.add_subparsers(dest="config_command", required=True)
    config_init = config_subparsers.add_parser("init", help="Write a starter config file.")
    config_init.add_argument("--path", default=DEFAULT_CONFIG_NAME, help="Config output path")

    subparsers.add_parser("version", help="Print version")
    return parser


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

def run_project(args: argparse.Namespace, settings: Settings) -> int:
    store = open_store(args, settings)
    quiet = args.quiet

    if args.project_command == "create":
        project = store.create(args.name)
        if args.json:
            maybe_emit_json_stdout(project_payload(store, "create", {"project": project_overview(project)}), True)
        else:
            print(project.id)
            emit_human(f"Project created: {project.name}", quiet=quiet)
        return EXIT_SUCCESS

    if args.project_command == "list":
        projects = store.list()
        if args.json:
            overviews = [project_overview(project) for project in projects]
            maybe_emit_json_stdout(project_payload(store, "list", {"projects": overviews}), True)
        else:
            if not projects:
                emit_human("No projects yet. Create one with: hammadde-usage project create", quiet=quiet)
            for project in projects:
                print(f"{project.id}\t{project.name}\t{project.created_at}")
        return EXIT_SUCCESS

    if args.project_command == "show":
        project = fetch_project(store, args.project_id)
        if args.json:
            maybe_emit_json_stdout(project_payload(store, "show", {"project": project_overview(project)}), True)
        else:
            print(render_project_text(project))
        return EXIT_SUCCESS

    if args.project_command == "delete":
        try:
            store.delete(args.project_id)
        except ProjectNotFoundError:
            raise CliError(f"Project not found: {args.project_id}", EXIT_COMMAND_ERROR)
        emit_human(f"Project deleted: {args.project_id}", quiet=quiet)
        return EXIT_SUCCESS

    raise CliError(f"Unknown project command: {args.project_command}", EXIT_COMMAND_ERROR)


def process_table(kind: str, table, settings: Settings) -> ProcessResult:
    if kind == "recipe":
        return process_recipe_records(table.records, settings)
    if kind == "supply":
        return process_supply_records(table.records, settings)
    return process_sales_records(table.records, table.preamble, settings)


def run_ingest(args: argparse.Namespace, settings: Settings) -> int:
    input_path = Path(args.input)
    if not input_path.exists():
        eprint(f"File not found: {input_path}")
        return EXIT_COMMAND_ERROR

    store = open_store(args, settings)
    fetch_project(store, args.project_id)

    try:
        table = load_table(input_path, sheet_name=args.sheet_name, settings=settings)
    except Exception as exc:
        eprint(str(exc))
        return classify_backend_exception(exc)

    result = process_table(args.kind, table, settings)
    warnings = table.warnings + result.warnings
    status = "ok" if result.ok else "failed"
    if result.ok:
        store.update_dataset(args.project_id, args.kind, result.entries)
    metrics = {"entries": len(result.entries), **result.stats}
    if args.kind == "recipe":
        metrics["ingredients"] = len(recipe_ingredients(result.entries))

    payload = build_payload(
        "hammadde_usage.ingest",
        {
            "project_id": args.project_id,
            "kind": args.kind,
            "file": table.file_name,
            "sheet": table.sheet_name,
            "entries": len(result.entries),
            "stats": result.stats,
            "preview": [entry.as_normalized() for entry in result.entries[:PREVIEW_ROWS]],
        },
        build_run_summary(
            tool="hammadde-usage",
            script="ingest",
            input_path=input_path,
            status=status,
            metrics=metrics,
            warnings=warnings,
        ),
    )
    if args.json:
        maybe_emit_json_stdout(payload, True)
    else:
        emit_human(render_ingest_text(args.kind, table.file_name, result, warnings), quiet=args.quiet)

    if not result.ok:
        eprint(f"No {args.kind} rows could be read from {table.file_name}; the project was not changed.")
        return EXIT_NO_ROWS
    return EXIT_SUCCESS


def run_analyse(args: argparse.Namespace, settings: Settings) -> int:
    store = open_store(args, settings)
    project = fetch_project(store, args.project_id)

    outcome = analyse_project(
        project.recipe_entries,
        project.supply_entries,
        project.sales_entries,
        settings=settings,
    )
    if outcome.missing:
        labels = ", ".join(DATASET_LABELS[name] for name in outcome.missing)
        eprint(f"Analysis needs all three datasets. Missing: {labels}")
        return EXIT_ANALYSIS_FAILED
    if outcome.error:
        eprint(outcome.error)
        return EXIT_ANALYSIS_FAILED

    outputs = [Path(value) for value in (args.csv_path, args.summary_csv_path) if value]
    if len(outputs) == 2 and outputs[0].resolve() == outputs[1].resolve():
        raise CliError(f"--csv and --summary-csv point at the same file: {outputs[0]}", EXIT_COMMAND_ERROR)
    for path in outputs:
        safe_output_path(path)

    results = filter_results(outcome.results, province=args.province, branch=args.branch, resource=args.resource)
    if args.sort:
        results = sort_results(results, args.sort, args.desc)
    summaries = [
        item
        for item in outcome.summaries
        if (not args.province or item.province == args.province) and (not args.branch or item.branch == args.branch)
    ]

    written: list[Path] = []
    if args.csv_path:
        written.append(write_csv(Path(args.csv_path), results_to_csv(results)))
    if args.summary_csv_path:
        written.append(write_csv(Path(args.summary_csv_path), summaries_to_csv(summaries)))
    store.update_step(project.id, 3, True)

    verdicts = [classify_result(item, settings.near_match_threshold) for item in results]
    payload = build_payload(
        "hammadde_usage.analysis",
        {
            "project": {"id": project.id, "name": project.name},
            "filters": {"province": args.province, "branch": args.branch, "resource": args.resource},
            "results": [item.to_dict() for item in results],
            "summaries": [item.to_dict() for item in summaries],
            "branches": outcome.branches,
            "resources": outcome.resources,
        },
        build_run_summary(
            tool="hammadde-usage",
            script="analyse",
            input_path=store.path_for(project.id),
            output_path=written[0] if written else None,
            metrics={
                "rows": len(results),
                "branches": len(summaries),
                "deficits": verdicts.count(DEFICIT),
                "surpluses": verdicts.count(SURPLUS),
            },
            warnings=list(table_warnings()),
        ),
    )
    if args.json:
        maybe_emit_json_stdout(payload, True)
    else:
        emit_human(render_analysis_text(outcome, results, summaries), quiet=args.quiet)
    for path in written:
        emit_human(f"CSV written: {path}", quiet=args.quiet)
    return EXIT_SUCCESS


def run_config_init(args: argparse.Namespace) -> int:
    config_path = Path(args.path)
    if config_path.exists():
        eprint(f"Refusing to overwrite existing config: {config_path}")
        return EXIT_COMMAND_ERROR
    write_text(config_path, json_dumps(starter_config()) + "\n")
    emit_human(f"Config written: {config_path}")
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "version":
            return run_version()
        if args.command == "config":
            if args.config_command == "init":
                return run_config_init(args)

        configure_logging(args)
        try:
            settings = load_settings(args.config)
        except ConfigError as exc:
            raise CliError(str(exc), EXIT_COMMAND_ERROR)
        logger.debug("Settings: %s", settings.to_dict())

        if args.command == "project":
            return run_project(args, settings)
        if args.command == "ingest":
            return run_ingest(args, settings)
        if args.command == "analyse":
            return run_analyse(args, settings)
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
