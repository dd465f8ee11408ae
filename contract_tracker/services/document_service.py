import logging
import mimetypes
import uuid
from werkzeug.utils import secure_filename
from contract_tracker.exceptions import PersistenceError, ValidationError
from contract_tracker.models import ProcessDocument
from contract_tracker.services.change_feed import PROCESSES
from contract_tracker.services.persistence import commit_and_publish
from contract_tracker.utils import utcnow

logger = logging.getLogger(__name__)


def storage_key_for(process_id, file_name):
    # secure_filename prevents names like "../../etc/passwd" escaping the namespace;
    # the random prefix keeps names that sanitize alike from overwriting each other
    safe_name = secure_filename(file_name) or 'arquivo'
    return f"processes/{process_id}/{uuid.uuid4().hex[:8]}_{safe_name}"


class DocumentService:
    """Uploads files for a process and records them on the process."""

    def __init__(self, blob_store, feed):
        self.blob_store = blob_store
        self.feed = feed

    def attach(self, process, file_obj, file_name, uploader_name, content_type=None):
        """
        Stores the file and appends a document entry to ``process``.

        No versioning: a second upload with the same name gets its own entry.
        Raises UploadError if storage fails (nothing recorded) and
        PersistenceError if the entry cannot be saved after the upload.
        """
        if file_obj is None or not file_name:
            raise ValidationError('Selecione um arquivo.', details={'file': 'required'})

        key = storage_key_for(process.id, file_name)
        content_type = content_type or mimetypes.guess_type(file_name)[0]

        self.blob_store.put(key, file_obj, content_type)
        # Fails early if the blob cannot be linked; links are re-issued on every open
        self.blob_store.get_url(key)

        document = ProcessDocument(
            name=file_name,
            storage_key=key,
            uploaded_at=utcnow(),
            uploaded_by=uploader_name,
        )
        process.documents.append(document)
        try:
            commit_and_publish(self.feed, PROCESSES)
        except PersistenceError:
            # The blob stays in storage with no entry pointing at it
            logger.error("Document metadata not saved; orphaned blob %s on process %s", key, process.id)
            raise

        logger.info("Document %s attached to process %s by %s", file_name, process.id, uploader_name)
        return document
