"""CLI interface for exifstrip -- strip, batch, scan, info subcommands."""

import json
import sys
import time
from pathlib import Path

import click

import exifstrip
from exifstrip.config import OffsetMode, StripConfig
from exifstrip.errors import StripError
from exifstrip.log import (
    cli_dim, cli_error, cli_header, cli_info, cli_success, cli_warning,
    enable_debug_logging, log_error, log_info, log_warn,
)
from exifstrip.report import generate_report
from exifstrip.scanner import scan_batch, scan_file
from exifstrip.stripper import collect_jpeg_files, discard_exif, strip_batch


@click.group()
@click.version_option(version=exifstrip.__version__, prog_name='exifstrip')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='JSON config file merged over the defaults.')
@click.option('--offset-mode', type=click.Choice([m.value for m in OffsetMode]),
              help='How the first IFD offset is translated.')
@click.option('--follow-chain/--first-ifd-only', default=None,
              help='Also remove every IFD linked after the first one.')
@click.option('--strict-segment-length', is_flag=True, default=None,
              help='Reject headers that overrun the APP1 segment length.')
@click.option('--debug', is_flag=True, help='Print parser diagnostics to stderr.')
@click.pass_context
def main(ctx, config_path, offset_mode, follow_chain, strict_segment_length, debug):
    """exifstrip: remove EXIF metadata from JPEG files.

    The EXIF IFD is cut out of the APP1 segment; every other byte of the
    file is preserved.
    """
    if debug:
        enable_debug_logging()
    try:
        config = StripConfig.from_json(config_path) if config_path else StripConfig.default()
        config = config.merged(offset_mode=offset_mode, follow_chain=follow_chain,
                               strict_segment_length=strict_segment_length)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--config')
    ctx.obj = config


@main.command()
@click.argument('input_path', metavar='INPUT', type=click.Path(exists=True, dir_okay=False))
@click.argument('output_path', metavar='OUTPUT', type=click.Path(dir_okay=False))
@click.pass_obj
def strip(config, input_path, output_path):
    """Strip EXIF from INPUT and write the result to OUTPUT.

    Any parse failure is fatal and leaves OUTPUT untouched.
    """
    raw = Path(input_path).read_bytes()
    try:
        result = discard_exif(raw, config)
    except StripError as e:
        click.echo(cli_error(f'Error occurred while discarding exif headers: {e}'), err=True)
        sys.exit(1)

    try:
        Path(output_path).write_bytes(result)
    except OSError as e:
        click.echo(cli_error(f'Error while writing to output file: {e}'), err=True)
        sys.exit(1)

    click.echo(cli_success(f'Removed {len(raw) - len(result)} byte(s) of EXIF '
                           f'from {Path(input_path).name}'))


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--output', '-o', type=click.Path(),
              help='Output directory (copy mode). If omitted, strips in-place.')
@click.option('--in-place', is_flag=True,
              help='Explicitly confirm in-place stripping (required if no --output).')
@click.option('--dry-run', is_flag=True, help='Compute only, don\'t write files.')
@click.option('--no-verify', is_flag=True, help='Skip post-write digest check.')
@click.option('--report', '-r', type=click.Path(), help='Write a JSON report to this path.')
@click.option('--verbose', '-v', is_flag=True, help='Show detailed progress.')
@click.option('--workers', '-w', type=int, default=1,
              help='Number of parallel workers (default: 1, sequential).')
@click.option('--log', type=click.Path(), help='Write log to file.')
@click.pass_obj
def batch(config, path, output, in_place, dry_run, no_verify, report, verbose, workers, log):
    """Strip EXIF from every JPEG under PATH.

    PATH can be a single file or a directory to process recursively.

    By default, uses copy mode (--output required). Use --in-place to
    modify original files directly.
    """
    input_path = Path(path)
    output_dir = Path(output) if output else None

    # Safety check: require explicit flag for in-place
    if output_dir is None and not in_place and not dry_run:
        click.echo(cli_error('Error: Must specify --output for copy mode, or --in-place '
                             'to modify originals directly.'), err=True)
        sys.exit(1)

    log_file = open(log, 'w') if log else None

    def log_msg(msg, styled=None, fmt=log_info):
        click.echo(styled if styled is not None else msg)
        if log_file:
            log_file.write(fmt(msg) + '\n')
            log_file.flush()

    try:
        files = collect_jpeg_files(input_path, config.extensions)
        if not files:
            log_msg(f'No JPEG files found in {input_path}', fmt=log_warn)
            return

        mode_str = 'DRY RUN' if dry_run else ('copy' if output_dir else 'in-place')
        workers_str = f', {workers} workers' if workers > 1 else ''
        log_msg(f'exifstrip v{exifstrip.__version__} — {mode_str}{workers_str}',
                cli_header(f'exifstrip v{exifstrip.__version__} — {mode_str}{workers_str}'))
        log_msg(f'Processing {len(files)} file(s)...\n')

        t0 = time.time()

        def progress(i, total, filepath, result):
            elapsed = time.time() - t0
            rate = i / elapsed if elapsed > 0 else 0

            if result.error:
                status = f'ERROR: {result.error}'
                styled = cli_error(status)
            elif result.bytes_removed > 0:
                status = f'removed {result.bytes_removed} byte(s)'
                if result.verified:
                    status += ' [verified]'
                styled = cli_success(status)
            else:
                status = 'no EXIF'
                styled = cli_dim(status)

            if verbose or result.error:
                prefix = f'  [{i}/{total}] {rate:.1f}/s | {filepath.name} | '
                log_msg(prefix + status, prefix + styled,
                        fmt=log_error if result.error else log_info)

        batch_result = strip_batch(
            input_path, output_dir=output_dir, config=config,
            verify=not no_verify, dry_run=dry_run,
            progress_callback=progress, workers=workers,
        )

        log_msg(f'\nDone in {batch_result.total_time_seconds:.1f}s')
        log_msg(f'  Total:         {batch_result.total_files}')
        log_msg(f'  Stripped:      {batch_result.files_stripped}')
        log_msg(f'  Already clean: {batch_result.files_already_clean}')
        log_msg(f'  Errors:        {batch_result.files_errored}')

        if report and not dry_run:
            generate_report(batch_result, output_path=Path(report))
            batch_result.report_path = Path(report)
            log_msg(f'\nReport: {report}')
    finally:
        if log_file:
            log_file.close()

    if batch_result.files_errored > 0:
        sys.exit(1)


@main.command()
@click.argument('path', type=click.Path(exists=True))
@click.option('--verbose', '-v', is_flag=True, help='Also list files without EXIF.')
@click.option('--json-out', type=click.Path(), help='Write results as JSON to file.')
@click.pass_obj
def scan(config, path, verbose, json_out):
    """Report which files carry an EXIF IFD (read-only).

    PATH can be a single file or a directory to scan recursively.
    """
    input_path = Path(path)
    files = collect_jpeg_files(input_path, config.extensions)

    if not files:
        click.echo(f'No JPEG files found in {input_path}')
        return

    click.echo(f'Scanning {len(files)} file(s)...')

    def progress(i, total, filepath, result):
        if result.error:
            click.echo(f'  [{i}/{total}] {filepath.name} — ' + cli_error(f'ERROR: {result.error}'))
        elif result.has_exif:
            click.echo(f'  [{i}/{total}] {filepath.name} — ' + cli_warning(
                f'EXIF IFD at {result.ifd_offset} ({result.byte_order}, '
                f'{result.tag_count} tag(s), {result.ifd_length} bytes)'))
        elif verbose:
            click.echo(f'  [{i}/{total}] {filepath.name} — ' + cli_success('no EXIF'))

    results = scan_batch(files, config, progress_callback=progress)

    with_exif = sum(1 for r in results if r.has_exif)
    errors = sum(1 for r in results if r.error)
    click.echo(f'\nSummary: {len(results)} files scanned, '
               f'{with_exif} with EXIF, {errors} error(s)')

    if json_out:
        with open(json_out, 'w') as f:
            json.dump([{
                'file': str(r.filepath),
                'has_exif': r.has_exif,
                'ifd_offset': r.ifd_offset,
                'byte_order': r.byte_order,
                'tag_count': r.tag_count,
                'ifd_length': r.ifd_length,
                'scan_time_ms': round(r.scan_time_ms, 1),
                'error': r.error,
            } for r in results], f, indent=2)
        click.echo(f'Results written to {json_out}')


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def info(config, path):
    """Show the EXIF header fields and IFD span of a single file."""
    filepath = Path(path)
    result = scan_file(filepath, config)

    click.echo(f'File: {filepath.name}')
    click.echo(f'Size: {result.file_size} bytes')
    click.echo(f'Offset mode: {config.offset_mode.value}')

    if not result.has_exif and not result.error:
        click.echo(cli_success('EXIF: none'))
        return

    if result.has_exif:
        click.echo(cli_info(f'Byte order: {result.byte_order}'))
        click.echo(cli_info(f'IFD offset: {result.ifd_offset}'))
    if result.tag_count is not None:
        click.echo(cli_info(f'Tag count: {result.tag_count}'))
        click.echo(cli_info(f'IFD length: {result.ifd_length} bytes'))
    if result.error:
        click.echo(cli_error(f'Error: {result.error}'))
        sys.exit(1)


if __name__ == '__main__':
    main()
