"""
Metadata codec — embed ProvenanceMetadata in a single workbook cell.

The blob is canonical JSON (sorted keys, no whitespace) carrying a `kind`
tag and a `schemaVersion`. Decoding rejects anything it cannot trust with
MetadataDecodeError; callers substitute default_metadata() instead of
failing the import.
"""

import json
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from config import settings
from exceptions import MetadataDecodeError, MetadataEncodeError
from models.catalog import Company, OrderType
from models.order_workbook import (
    CANONICAL_COLUMN_MAP,
    METADATA_KIND,
    SCHEMA_VERSION,
    CompanySnapshot,
    ProvenanceMetadata,
    WorkbookFeatures,
)

logger = structlog.get_logger(__name__)

# Excel stores at most 32,767 characters per cell
MAX_CELL_LENGTH = 32767

SUPPORTED_MAJOR_VERSIONS = {1}

_EXPORT_ID_ALPHABET = string.digits + string.ascii_lowercase


def encode(metadata: ProvenanceMetadata) -> str:
    """
    Serialize metadata to a single-cell string.

    Raises:
        MetadataEncodeError: If the blob would not fit in one cell
    """
    payload = metadata.model_dump(mode="json", by_alias=True)
    blob = json.dumps(payload, sort_keys=True, separators=(",", ":"))

    if len(blob) > MAX_CELL_LENGTH:
        raise MetadataEncodeError(len(blob), MAX_CELL_LENGTH)

    return blob


def decode(blob: Any) -> ProvenanceMetadata:
    """
    Parse a metadata blob read back from a workbook cell.

    Accepts blobs written before the `kind` tag existed, including the
    legacy `version` key in place of `schemaVersion`.

    Raises:
        MetadataDecodeError: If the blob is empty, not JSON, of an
            unsupported schema version or structurally invalid
    """
    if not isinstance(blob, str) or not blob.strip():
        raise MetadataDecodeError("empty metadata cell")

    try:
        payload = json.loads(blob)
    except json.JSONDecodeError as e:
        raise MetadataDecodeError("not valid JSON", {"position": e.pos})

    if not isinstance(payload, dict):
        raise MetadataDecodeError("expected a JSON object")

    kind = payload.get("kind", METADATA_KIND)
    if kind != METADATA_KIND:
        raise MetadataDecodeError("unexpected metadata kind", {"kind": kind})

    version = payload.get("schemaVersion", payload.get("version"))
    major = _major_version(version)
    if major not in SUPPORTED_MAJOR_VERSIONS:
        raise MetadataDecodeError(
            "unsupported schema version",
            {"schema_version": version, "supported": sorted(SUPPORTED_MAJOR_VERSIONS)}
        )

    try:
        return ProvenanceMetadata.model_validate(payload)
    except PydanticValidationError as e:
        raise MetadataDecodeError(
            "missing or invalid fields",
            {"fields": [".".join(str(p) for p in err["loc"]) for err in e.errors()]}
        )


def _major_version(version: Any) -> Optional[int]:
    """'1.2.0' -> 1; None for anything unparseable."""
    if not isinstance(version, str):
        return None
    head = version.strip().split(".", 1)[0]
    return int(head) if head.isdigit() else None


# ===================
# CONSTRUCTION
# ===================

def generate_export_id() -> str:
    """
    Globally unique export identifier.

    Format: EXP-<epoch milliseconds>-<9 random base36 chars>
    """
    suffix = "".join(secrets.choice(_EXPORT_ID_ALPHABET) for _ in range(9))
    return f"EXP-{int(time.time() * 1000)}-{suffix}"


def create_export_metadata(
    company: Company,
    order_type: OrderType,
    generated_at: Optional[datetime] = None,
) -> ProvenanceMetadata:
    """Metadata for one export; features follow from the order type."""
    return ProvenanceMetadata(
        schema_version=SCHEMA_VERSION,
        generated_at=generated_at or datetime.now(timezone.utc),
        export_id=generate_export_id(),
        company=CompanySnapshot(
            id=company.id,
            name=company.name,
            pricing_tier=company.pricing_tier,
        ),
        order_type=order_type,
        column_map=dict(CANONICAL_COLUMN_MAP),
        features=WorkbookFeatures.for_order_type(order_type),
    )


def default_metadata(company_id: str, export_id: str = "UNKNOWN") -> ProvenanceMetadata:
    """
    Conservative stand-in for missing or unreadable metadata.

    At-once order, canonical column layout, file prices never trusted,
    minimums off, inventory checked.
    """
    return ProvenanceMetadata(
        schema_version=SCHEMA_VERSION,
        generated_at=datetime.now(timezone.utc),
        export_id=export_id,
        company=CompanySnapshot(
            id=company_id,
            name="Unknown",
            pricing_tier=settings.default_pricing_tier,
        ),
        order_type=OrderType.AT_ONCE,
        column_map=dict(CANONICAL_COLUMN_MAP),
        features=WorkbookFeatures(
            allow_price_override=False,
            enforce_minimums=False,
            validate_inventory=True,
        ),
    )
