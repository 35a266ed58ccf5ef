"""CLI interface for Projectify."""
import logging
from pathlib import Path
from typing import Optional

import typer

from ..codes.collection import export_collection_text, populate_code_collection
from ..codes.errors import ReferenceLoadError
from ..codes.parser import ParseLog
from ..codes.reference import load_reference_types
from ..codes.validator import validate_text_report
from ..config.settings import AppSettings, load_settings

app = typer.Typer(help="Projectify - build financial model workbooks from code records")

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def _read_input(input_file: str) -> str:
    return Path(input_file).read_text(encoding="utf-8")


def _reference_types(settings: AppSettings, codes: Optional[str]):
    path = codes or settings.reference_path
    if not path:
        raise typer.BadParameter("No code types file given (use --codes or reference_path)")
    return load_reference_types(path)


def parse(input_file: str, show_skipped: bool = False) -> str:
    """Parse code records and print the resulting collection."""
    log = ParseLog()
    collection = populate_code_collection(_read_input(input_file), log)
    text = export_collection_text(collection)
    print(text)
    if show_skipped:
        print(f"Dropped fragments: {len(log)}")
        for skip in log.skips:
            print(f"  - {skip.reason}: {skip.fragment}")
    return text


def validate(input_file: str, codes: Optional[str] = None, config: Optional[str] = None) -> bool:
    """Validate code records; return True when no diagnostics were found."""
    settings = load_settings(config)
    try:
        reference = _reference_types(settings, codes)
    except ReferenceLoadError as e:
        print(f"✗ {e}")
        return False

    report = validate_text_report(_read_input(input_file), reference)
    print(report.to_report_text())
    return report.passed


def run(
    input_file: str,
    workbook: str,
    output: str,
    codes: Optional[str] = None,
    config: Optional[str] = None,
    force: bool = False,
) -> bool:
    """Validate, then execute code records against *workbook*, saving to *output*."""
    from ..excel.document import WorkbookDocument
    from ..excel.executor import CodeExecutor

    settings = load_settings(config)
    text = _read_input(input_file)

    print(f"[1/3] Validating: {input_file}")
    try:
        reference = _reference_types(settings, codes)
    except ReferenceLoadError as e:
        print(f"  ✗ {e}")
        return False
    report = validate_text_report(text, reference)
    if not report.passed:
        print(report.to_report_text())
        if not force:
            print("  ✗ Validation failed; nothing written (use --force to run anyway)")
            return False

    print("[2/3] Building code collection...")
    collection = populate_code_collection(text)
    print(f"  → {len(collection)} codes")

    print(f"[3/3] Running codes against {workbook}")
    document = WorkbookDocument.open(workbook, output_path=output)
    result = CodeExecutor(document, settings.executor).execute(collection)
    document.sync()
    print(result.to_report_text())
    print(f"\n✓ Output saved to {output}")
    return result.succeeded


def template(output: str = "templates/master.xlsx", config: Optional[str] = None) -> str:
    """Write the default master template workbook."""
    from ..excel.template import save_master_template

    settings = load_settings(config)
    path = save_master_template(output, settings.executor)
    print(f"✓ Master template written to {path}")
    return path


@app.command("parse")
def cli_parse(
    input_file: str = typer.Argument(..., help="Text file containing code records"),
    show_skipped: bool = typer.Option(False, "--show-skipped", help="List dropped fragments"),
):
    """Parse code records and print the collection."""
    parse(input_file, show_skipped)


@app.command("validate")
def cli_validate(
    input_file: str = typer.Argument(..., help="Text file containing code records"),
    codes: Optional[str] = typer.Option(None, help="Valid code types file (Codes.txt)"),
    config: Optional[str] = typer.Option(None, help="Path to config YAML/JSON"),
):
    """Validate code records against the valid code types list."""
    if not validate(input_file, codes, config):
        raise typer.Exit(code=1)


@app.command("run")
def cli_run(
    input_file: str = typer.Argument(..., help="Text file containing code records"),
    workbook: str = typer.Option("templates/master.xlsx", help="Workbook holding the template sheet"),
    output: str = typer.Option("output/model.xlsx", "--out", help="Output workbook path"),
    codes: Optional[str] = typer.Option(None, help="Valid code types file (Codes.txt)"),
    config: Optional[str] = typer.Option(None, help="Path to config YAML/JSON"),
    force: bool = typer.Option(False, "--force", help="Run even if validation fails"),
):
    """Validate and execute code records, writing a new workbook."""
    if not run(input_file, workbook, output, codes, config, force):
        raise typer.Exit(code=1)


@app.command("template")
def cli_template(
    output: str = typer.Option("templates/master.xlsx", "--out", help="Where to write the template"),
    config: Optional[str] = typer.Option(None, help="Path to config YAML/JSON"),
):
    """Write the default master template workbook."""
    template(output, config)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
