"""NetSuite File Cabinet uploads and record attachments.

Runs after a purchase order has been created live. The order is already
committed at that point, so this module reports problems and never raises:

1. Ensure the attachment folder exists (find, else create; id cached)
2. For each file: upload it into the folder, then attach it to the order
3. Count successes and failures; collect one error string per failed file
"""

import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from connectors.erp_base import AttachmentOutcome, SourceFile
from connectors.netsuite.ns_cache import TTLCache
from connectors.netsuite.ns_client import (
    NSApiClient,
    NSRecordError,
    best_effort,
    preview_body,
    resolve_record_id,
)
from connectors.netsuite.ns_models import NSFolderRow
from core.observability.logging import get_logger, log_workflow_event, with_correlation

logger = get_logger(__name__)

FOLDER_PATH = "/record/v1/folder"
FILE_PATH = "/record/v1/file"


@dataclass
class AttachmentConfig:
    """Settings for attachment uploads.

    Attributes:
        folder_name: File Cabinet folder that receives every upload
        record_type: REST record type files are attached to
        description_prefix: Leading text of each file's description
    """
    folder_name: str = "SSVF TFA Attachments"
    record_type: str = "purchaseOrder"
    description_prefix: str = "SSVF TFA attachment for PO"

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "AttachmentConfig":
        known = {k: str(v) for k, v in settings.items() if k in cls.__dataclass_fields__}
        return cls(**known)


def _suiteql_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def attachment_file_name(file_name: str, internal_id: str, display_number: Optional[str]) -> str:
    """Prefix uploads so they can be found in the File Cabinet by order number."""
    if display_number:
        return f"PO_{display_number}_{file_name}"
    return f"TFA_{internal_id}_{file_name}"


class AttachmentWorkflow:
    """Uploads source files and links them to a created record.

    The folder id cache is owned by the connector and passed in, so it is
    shared by every invocation for the lifetime of the connector.
    """

    def __init__(
        self,
        client: NSApiClient,
        folder_cache: TTLCache[str],
        config: Optional[AttachmentConfig] = None,
    ):
        self.client = client
        self.folder_cache = folder_cache
        self.config = config or AttachmentConfig()

    # =========================================================================
    # Folder
    # =========================================================================

    async def ensure_folder(self) -> str:
        """Find or create the attachment folder; cached without expiry.

        Raises:
            NSRecordError: Folder could not be created
        """
        return await self.folder_cache.get_or_populate(self._find_or_create_folder, ttl=None)

    async def _find_or_create_folder(self) -> str:
        folder_id = await best_effort(
            self._find_folder(),
            f"Folder lookup for '{self.config.folder_name}'",
        )
        if folder_id:
            return folder_id
        return await self._create_folder()

    async def _find_folder(self) -> Optional[str]:
        page = await self.client.suiteql(
            f"SELECT id FROM mediaitemfolder WHERE name = {_suiteql_literal(self.config.folder_name)}",
            limit=1,
        )
        if not page.items:
            return None
        return NSFolderRow.model_validate(page.items[0]).id

    async def _create_folder(self) -> str:
        logger.info(f"Creating File Cabinet folder '{self.config.folder_name}'")
        response = await self.client.request(
            "POST",
            FOLDER_PATH,
            {"name": self.config.folder_name},
            follow_redirects=False,
        )
        folder_id = resolve_record_id(response) if response.ok else None
        if not folder_id:
            raise NSRecordError(
                f"Failed to create folder '{self.config.folder_name}': {response.status}",
                response.status,
                preview_body(response.data),
            )
        return folder_id

    # =========================================================================
    # Files
    # =========================================================================

    async def upload_file(
        self,
        file_name: str,
        content: bytes,
        folder_id: str,
        description: Optional[str] = None,
    ) -> str:
        """Upload one file into the File Cabinet and return its internal id."""
        body: Dict[str, Any] = {
            "name": file_name,
            "folder": {"id": folder_id},
            "content": base64.b64encode(content).decode("ascii"),
        }
        if description:
            body["description"] = description

        response = await self.client.request("POST", FILE_PATH, body, follow_redirects=False)
        file_id = resolve_record_id(response) if response.ok else None
        if not file_id:
            raise NSRecordError(
                f"Failed to upload file to NetSuite: {response.status} {preview_body(response.data)}",
                response.status,
                preview_body(response.data),
            )
        return file_id

    async def attach_file(self, file_id: str, internal_id: str) -> None:
        """Link an uploaded file to the record."""
        response = await self.client.request(
            "POST",
            f"/record/v1/{self.config.record_type}/{internal_id}/!transform/attach",
            {"record": {"type": "file", "id": file_id}},
        )
        if not response.ok:
            raise NSRecordError(
                f"Failed to attach file {file_id} to PO {internal_id}: "
                f"{response.status} {preview_body(response.data)}",
                response.status,
                preview_body(response.data),
            )

    async def upload_and_attach_files(
        self,
        internal_id: str,
        display_number: Optional[str],
        files: List[SourceFile],
    ) -> AttachmentOutcome:
        """Upload and attach every file; one failure never stops the rest."""
        with with_correlation(
            operation="upload_and_attach_files",
            record_type=self.config.record_type,
            internal_id=internal_id,
            display_number=display_number,
        ):
            if not files:
                return AttachmentOutcome()

            try:
                folder_id = await self.ensure_folder()
            except Exception as e:
                logger.error(f"Folder creation failed: {e}")
                return AttachmentOutcome(
                    attached_count=0,
                    failed_count=len(files),
                    errors=[f"Folder creation failed: {e}"],
                )

            outcome = AttachmentOutcome()
            description = f"{self.config.description_prefix} {display_number or internal_id}"
            for source in files:
                try:
                    file_id = await self.upload_file(
                        attachment_file_name(source.file_name, internal_id, display_number),
                        source.content,
                        folder_id,
                        description,
                    )
                    await self.attach_file(file_id, internal_id)
                    outcome.attached_count += 1
                except Exception as e:
                    message = f"Failed {source.file_name}: {e}"
                    logger.warning(message)
                    outcome.failed_count += 1
                    outcome.errors.append(message)

            log_workflow_event(
                "attachment_batch_finished",
                attached=outcome.attached_count,
                failed=outcome.failed_count,
            )
            return outcome
