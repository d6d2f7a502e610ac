"""CSV row layout for match records."""

from datetime import datetime

from entroscan.models.scan import PLACEHOLDER, MatchRecord

COLUMNS = [
    "FilePath",
    "Entropy",
    "Method",
    "Size",
    "SizeBytes",
    "Owner",
    "CreationTime",
    "LastWriteTime",
    "LastAccessTime",
    "SignatureStatus",
    "Signer",
    "ZoneId",
    "ReferrerUrl",
    "HostUrl",
    "CompanyName",
    "ProductName",
    "FileDescription",
    "FileVersion",
    "OriginalFilename",
]

ENTROPY_COLUMN = COLUMNS.index("Entropy")
CREATED_COLUMN = COLUMNS.index("CreationTime")

_SIZE_UNITS = ["bytes", "KB", "MB", "GB", "TB"]


def format_size(size_bytes: int) -> str:
    """Human-readable size ('512 bytes', '1.50 MB')."""
    if size_bytes < 1024:
        return f"{size_bytes} bytes"
    size = float(size_bytes)
    for unit in _SIZE_UNITS[1:]:
        size /= 1024
        if size < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{size:.2f} {unit}"
    return f"{size_bytes} bytes"


def format_timestamp(ts: datetime | None) -> str:
    """ISO-8601 timestamp or the placeholder."""
    if ts is None:
        return PLACEHOLDER
    return ts.isoformat(timespec="seconds")


def record_to_row(record: MatchRecord) -> list[str]:
    """Render a MatchRecord in COLUMNS order."""
    return [
        record.file_path,
        f"{record.entropy_value:.3f}",
        record.method.value,
        record.size_display,
        str(record.size_bytes),
        record.owner,
        format_timestamp(record.created),
        format_timestamp(record.modified),
        format_timestamp(record.accessed),
        record.signature_status,
        record.signer,
        record.zone_id,
        record.referrer_url,
        record.host_url,
        record.company_name,
        record.product_name,
        record.file_description,
        record.file_version,
        record.original_filename,
    ]
