"""Batch strip report generation (JSON)."""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import exifstrip
from exifstrip.models import BatchResult


def generate_report(
    batch_result: BatchResult,
    output_path: Optional[Path] = None,
) -> dict:
    """Generate a JSON report for a batch strip run.

    Args:
        batch_result: The BatchResult from strip_batch().
        output_path: If provided, write the report JSON to this file.

    Returns:
        The report as a dict.
    """
    mode = "unknown"
    if batch_result.results:
        mode = batch_result.results[0].mode

    file_records = []
    verified_count = 0
    total_bytes = 0
    for result in batch_result.results:
        record = {
            'filename': result.output_path.name,
            'source_path': str(result.source_path),
            'output_path': str(result.output_path),
            'bytes_removed': result.bytes_removed,
            'ifds_removed': result.ifds_removed,
            'verified': result.verified,
            'strip_time_ms': round(result.strip_time_ms, 1),
        }
        if result.error:
            record['error'] = result.error
            record['error_kind'] = result.error_kind
        elif result.sha256_after:
            record['sha256_after'] = result.sha256_after

        if result.verified:
            verified_count += 1
        total_bytes += result.bytes_removed
        file_records.append(record)

    report = {
        'report_id': str(uuid.uuid4()),
        'generator': 'exifstrip',
        'version': exifstrip.__version__,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'mode': mode,
        'summary': {
            'total_files': batch_result.total_files,
            'stripped': batch_result.files_stripped,
            'already_clean': batch_result.files_already_clean,
            'errors': batch_result.files_errored,
            'verified': verified_count,
            'bytes_removed': total_bytes,
            'total_time_seconds': round(batch_result.total_time_seconds, 2),
        },
        'method': 'EXIF IFD excision (APP1 segment, byte-preserving)',
        'files': file_records,
    }

    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            json.dump(report, f, indent=2)

    return report
