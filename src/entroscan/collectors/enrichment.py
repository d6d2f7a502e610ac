"""Metadata enrichment for matched files.

Each lookup fails independently: a field that cannot be determined is
reported as the placeholder "-" and never prevents the record from
being written.
"""

import configparser
import sys
from pathlib import Path
from typing import Any

import pefile
from cryptography import x509
from cryptography.hazmat.primitives.serialization import pkcs7
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from entroscan.core import logging as log
from entroscan.models.scan import PLACEHOLDER

# StringFileInfo keys mapped to MatchRecord fields
VERSION_FIELDS = {
    "CompanyName": "company_name",
    "ProductName": "product_name",
    "FileDescription": "file_description",
    "FileVersion": "file_version",
    "OriginalFilename": "original_filename",
}

ZONE_FIELDS = {
    "zoneid": "zone_id",
    "referrerurl": "referrer_url",
    "hosturl": "host_url",
}


def lookup_owner(path: str) -> str:
    """Owning user name of a file."""
    try:
        return Path(path).owner()
    except (KeyError, OSError, NotImplementedError):
        return PLACEHOLDER


def parse_zone_identifier(text: str) -> dict[str, str]:
    """Parse the [ZoneTransfer] section of a Zone.Identifier stream.

    Args:
        text: Stream content

    Returns:
        Dict with zone_id, referrer_url and host_url where present
    """
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        parser.read_string(text)
    except configparser.Error:
        return {}

    if not parser.has_section("ZoneTransfer"):
        return {}

    fields = {}
    for key, value in parser.items("ZoneTransfer"):
        field = ZONE_FIELDS.get(key.lower())
        if field and value.strip():
            fields[field] = value.strip()
    return fields


def lookup_zone_identifier(path: str) -> dict[str, str]:
    """Read the Zone.Identifier alternate data stream (NTFS only)."""
    if sys.platform != "win32":
        return {}
    try:
        with open(f"{path}:Zone.Identifier", encoding="utf-8", errors="replace") as f:
            return parse_zone_identifier(f.read())
    except OSError:
        return {}


def _der_extent(blob: bytes) -> bytes:
    """Trim trailing alignment padding after the outer DER SEQUENCE."""
    if len(blob) < 2 or blob[0] != 0x30:
        return blob
    length = blob[1]
    header = 2
    if length & 0x80:
        count = length & 0x7F
        length = int.from_bytes(blob[2 : 2 + count], "big")
        header += count
    return blob[: header + length]


def _is_code_signing(cert: x509.Certificate) -> bool:
    try:
        usage = cert.extensions.get_extension_for_class(x509.ExtendedKeyUsage).value
    except x509.ExtensionNotFound:
        return False
    return ExtendedKeyUsageOID.CODE_SIGNING in usage


def _leaf_certificate(certs: list[x509.Certificate]) -> x509.Certificate | None:
    """The certificate that issued none of the others in the bundle.

    Signed binaries often carry a timestamping chain as well; a leaf
    marked for code signing wins over the timestamping leaf.
    """
    leaves = [
        cert
        for cert in certs
        if not any(other.issuer == cert.subject for other in certs if other is not cert)
    ]
    for cert in leaves:
        if _is_code_signing(cert):
            return cert
    if leaves:
        return leaves[0]
    return certs[0] if certs else None


def signer_name(blob: bytes) -> str | None:
    """Common name of the signing certificate in a PKCS#7 SignedData blob.

    Args:
        blob: DER-encoded PKCS#7 content, as found after the
            WIN_CERTIFICATE header of a PE security directory

    Returns:
        The leaf certificate's subject CN, or None if it cannot be read
    """
    try:
        certs = pkcs7.load_der_pkcs7_certificates(_der_extent(blob))
    except ValueError as e:
        log.debug("Cannot parse Authenticode certificates", error=str(e))
        return None

    leaf = _leaf_certificate(certs)
    if leaf is None:
        return None
    names = leaf.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not names:
        return None
    value = names[0].value
    return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value


def _signature_fields(pe: pefile.PE) -> dict[str, str]:
    security_index = pefile.DIRECTORY_ENTRY["IMAGE_DIRECTORY_ENTRY_SECURITY"]
    directories = pe.OPTIONAL_HEADER.DATA_DIRECTORY
    if len(directories) <= security_index:
        return {"signature_status": "Unsigned"}

    directory = directories[security_index]
    if directory.VirtualAddress == 0 or directory.Size == 0:
        return {"signature_status": "Unsigned"}

    # Security directory address is a file offset; skip the 8-byte WIN_CERTIFICATE header
    blob = pe.__data__[directory.VirtualAddress + 8 : directory.VirtualAddress + directory.Size]
    fields = {"signature_status": "Signed"}
    name = signer_name(bytes(blob))
    if name:
        fields["signer"] = name
    return fields


def _version_fields(pe: pefile.PE) -> dict[str, str]:
    fields: dict[str, str] = {}
    for file_info in getattr(pe, "FileInfo", None) or []:
        for entry in file_info:
            if getattr(entry, "Key", b"") != b"StringFileInfo":
                continue
            for table in getattr(entry, "StringTable", []):
                for key, value in table.entries.items():
                    name = key.decode("utf-8", errors="replace")
                    field = VERSION_FIELDS.get(name)
                    text = value.decode("utf-8", errors="replace").strip()
                    if field and text and field not in fields:
                        fields[field] = text
    return fields


def lookup_pe_metadata(path: str) -> dict[str, str]:
    """Signature status, signer and version resource strings of a PE file."""
    try:
        with open(path, "rb") as f:
            if f.read(2) != b"MZ":
                return {"signature_status": "Not a PE File"}
    except OSError:
        return {}

    try:
        pe = pefile.PE(path, fast_load=True)
    except pefile.PEFormatError:
        return {"signature_status": "Not a PE File"}
    except OSError:
        return {}

    try:
        pe.parse_data_directories(
            directories=[pefile.DIRECTORY_ENTRY["IMAGE_DIRECTORY_ENTRY_RESOURCE"]]
        )
        fields = _signature_fields(pe)
        fields.update(_version_fields(pe))
        return fields
    except (pefile.PEFormatError, AttributeError, IndexError, ValueError) as e:
        log.debug(f"PE metadata unavailable for {path}", error=str(e))
        return {}
    finally:
        pe.close()


def enrich(path: str) -> dict[str, Any]:
    """Collect every enrichment field for a matched file.

    Args:
        path: Matched file

    Returns:
        Mapping of MatchRecord field names to values (missing fields omitted)
    """
    fields: dict[str, Any] = {"owner": lookup_owner(path)}
    fields.update(lookup_zone_identifier(path))
    fields.update(lookup_pe_metadata(path))
    return fields
