from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload
from videolens.core.config import settings
from videolens.core.errors import retry_with_backoff, StorageError
from videolens.core.logging_config import get_logger
import os
import io

logger = get_logger(__name__)

PUBLIC_URL_TEMPLATE = "https://drive.google.com/uc?export=download&id={file_id}"


class StorageService:
    """
    durable storage for derived assets (frame images, audio) on google drive.

    keys look like "video-analysis/<job_id>/frame_1.jpg"; every key segment
    but the last becomes a folder under GOOGLE_DRIVE_ROOT_FOLDER_ID. uploaded
    files are shared read-only with anyone holding the link so the llm and
    speech-to-text services can fetch them.
    """

    def __init__(self):
        self.credentials = None
        self.service = None
        if os.path.exists(settings.GOOGLE_DRIVE_CREDENTIALS_PATH):
            self.credentials = service_account.Credentials.from_service_account_file(
                settings.GOOGLE_DRIVE_CREDENTIALS_PATH,
                scopes=['https://www.googleapis.com/auth/drive']
            )
            self.service = build('drive', 'v3', credentials=self.credentials, cache_discovery=False)

    @property
    def configured(self) -> bool:
        return bool(self.service and settings.GOOGLE_DRIVE_ROOT_FOLDER_ID)

    def _ensure_folder(self, parent_id: str, folder_name: str) -> str:
        """get or create a folder, returns folder id"""
        query = f"name='{folder_name}' and '{parent_id}' in parents and mimeType='application/vnd.google-apps.folder' and trashed=false"
        results = self.service.files().list(
            q=query,
            spaces='drive',
            fields='files(id, name)'
        ).execute()

        folders = results.get('files', [])
        if folders:
            return folders[0]['id']

        folder_metadata = {
            'name': folder_name,
            'mimeType': 'application/vnd.google-apps.folder',
            'parents': [parent_id]
        }
        folder = self.service.files().create(
            body=folder_metadata,
            fields='id'
        ).execute()
        return folder['id']

    @retry_with_backoff(max_retries=3, initial_delay=2.0)
    def _upload(self, key: str, data: bytes, content_type: str) -> str:
        """create the file under its key folders, returns drive file id"""
        *folders, filename = [part for part in key.split('/') if part]
        parent_id = settings.GOOGLE_DRIVE_ROOT_FOLDER_ID
        for folder_name in folders:
            parent_id = self._ensure_folder(parent_id, folder_name)

        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=content_type, resumable=False)
        created = self.service.files().create(
            body={'name': filename, 'parents': [parent_id]},
            media_body=media,
            fields='id'
        ).execute()
        return created['id']

    @retry_with_backoff(max_retries=3, initial_delay=2.0)
    def _share(self, file_id: str):
        self.service.permissions().create(
            fileId=file_id,
            body={'type': 'anyone', 'role': 'reader'},
            fields='id'
        ).execute()

    def put(self, key: str, data: bytes, content_type: str) -> dict:
        """store bytes under key; returns {"key", "url"} with a publicly fetchable url"""
        if not self.configured:
            raise StorageError("durable storage not configured")

        try:
            file_id = self._upload(key, data, content_type)
        except Exception as e:
            raise StorageError(f"failed to store {key}: {e}") from e

        # the file exists from here on; only the grant is retried
        try:
            self._share(file_id)
        except Exception as e:
            raise StorageError(f"failed to share {key} (drive file {file_id}): {e}") from e

        logger.info(f"stored {key} ({len(data) / 1024:.1f} KB) as drive file {file_id}")
        return {'key': key, 'url': PUBLIC_URL_TEMPLATE.format(file_id=file_id)}


storage_service = StorageService()


def storage_put(key: str, data: bytes, content_type: str) -> dict:
    return storage_service.put(key, data, content_type)


def storage_put_file(key: str, local_path: str, content_type: str) -> dict:
    with open(local_path, 'rb') as f:
        data = f.read()
    return storage_put(key, data, content_type)
