from flask import current_app
from contract_tracker.services.blob_store import create_blob_store
from contract_tracker.services.change_feed import ChangeFeed
from contract_tracker.services.document_service import DocumentService
from contract_tracker.services.user_service import UserService
from contract_tracker.services.workflow_service import WorkflowService

EXTENSION_KEY = 'contract_tracker'


class Backend:
    """The collaborator handle built once per app and handed to every component."""

    def __init__(self, feed, blob_store):
        self.feed = feed
        self.blob_store = blob_store
        self.workflow = WorkflowService(feed)
        self.documents = DocumentService(blob_store, feed)
        self.users = UserService(feed)

    @classmethod
    def from_config(cls, config):
        return cls(ChangeFeed(), create_blob_store(config))


def init_backend(app, backend=None):
    backend = backend or Backend.from_config(app.config)
    app.extensions[EXTENSION_KEY] = backend
    return backend


def get_backend():
    return current_app.extensions[EXTENSION_KEY]
