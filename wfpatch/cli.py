"""Command-line interface for wfpatch.

Provides `wfpatch scan` to list script injection findings and `wfpatch fix`
to print the patches that fix them.
"""

import json
import logging
import sys
from pathlib import Path
from typing import List, Tuple

import click

from . import __version__
from .detector import Finding, scan_file
from .patch import PatchResult, remediate

LOG_LEVELS = ["debug", "info", "warning", "error"]


@click.group()
@click.version_option(version=__version__, prog_name="wfpatch")
@click.option('--log-level', type=click.Choice(LOG_LEVELS), default='warning', envvar='WFPATCH_LOG_LEVEL',
              show_default=True, help='Logging verbosity')
def cli(log_level: str):
    """GitHub Actions script injection fixer.

    Finds untrusted input interpolated into run: commands and generates patches
    moving it into environment variables.
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _workflow_files(path: str) -> List[Path]:
    """A single workflow file, or every workflow under .github/workflows/."""
    path_obj = Path(path)
    if path_obj.is_file():
        return [path_obj]

    workflows_dir = path_obj / '.github' / 'workflows'
    if not workflows_dir.is_dir():
        click.echo(f"Error: No .github/workflows/ directory found at {path}", err=True)
        sys.exit(1)
    return sorted(workflows_dir.glob('*.yml')) + sorted(workflows_dir.glob('*.yaml'))


def _read(workflow_file: Path) -> str:
    # keep line endings untouched so patches apply to the file as-is
    with open(workflow_file, 'r', encoding='utf-8', newline='') as f:
        return f.read()


def _display_path(workflow_file: Path, path: str) -> str:
    """Path of a workflow as patches name it, relative to the repository root.

    i.e. `.github/workflows/ci.yml` when scanning the repository directory.
    """
    path_obj = Path(path)
    if path_obj.is_dir():
        return workflow_file.relative_to(path_obj).as_posix()
    if path_obj.is_absolute():
        return workflow_file.name
    return path_obj.as_posix()


def _scan(path: str) -> List[Tuple[Path, str, List[Finding]]]:
    scanned = []
    for workflow_file in _workflow_files(path):
        content = _read(workflow_file)
        scanned.append((workflow_file, content, scan_file(content, _display_path(workflow_file, path))))
    return scanned


@cli.command()
@click.argument('path', type=click.Path(exists=True, file_okay=True, dir_okay=True), default='.')
@click.option('--format', 'output_format', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
def scan(path: str, output_format: str):
    """Scan a workflow file or directory for script injection.

    PATH can be a single .yml/.yaml file or a directory containing .github/workflows/
    """
    findings = [f for _, _, file_findings in _scan(path) for f in file_findings]

    if output_format == 'json':
        output = {
            'findings_count': len(findings),
            'findings': [
                {'file': f.path, 'line': f.offset, 'snippet': f.snippet}
                for f in findings
            ],
        }
        click.echo(json.dumps(output, indent=2))
    else:
        click.echo(f"wfpatch v{__version__}")
        click.echo(f"Findings: {len(findings)}")
        click.echo()

        if not findings:
            click.echo("No script injection found.")
        for f in findings:
            click.echo(f"[CRITICAL] {f.path}:{f.offset}: script-injection")
            click.echo(f"  Untrusted input `${{{{ {f.snippet} }}}}` used in a `run:` block.")
            click.echo()

    sys.exit(1 if findings else 0)


@cli.command()
@click.argument('path', type=click.Path(exists=True, file_okay=True, dir_okay=True), default='.')
@click.option('--format', 'output_format', type=click.Choice(['diff', 'json']), default='diff',
              help='Output format')
@click.option('--workers', type=click.IntRange(min=1), default=1, envvar='WFPATCH_WORKERS',
              show_default=True, help='Findings of a workflow remediated in parallel')
def fix(path: str, output_format: str, workers: int):
    """Print a patch for each script injection finding.

    Every patch applies to the original workflow on its own. Findings that
    cannot be fixed are reported on stderr.
    """
    results: List[PatchResult] = []
    for _, content, findings in _scan(path):
        results.extend(remediate(content, findings, max_workers=workers))

    if output_format == 'json':
        output = [
            {
                'file': r.finding.path,
                'line': r.finding.offset,
                'snippet': r.finding.snippet,
                'patch': r.patch,
                'error': str(r.error) if r.error else None,
            }
            for r in results
        ]
        click.echo(json.dumps(output, indent=2))
    else:
        for r in results:
            if r.error:
                click.echo(f"Error: {r.finding}: {r.error}", err=True)
                continue
            click.echo(f"# {r.finding}")
            click.echo(r.patch, nl=False)

    failed = [r for r in results if not r.ok]
    sys.exit(1 if failed else 0)


def main():
    cli()


if __name__ == '__main__':
    main()
