import logging
import os
import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError
from contract_tracker.exceptions import UploadError

logger = logging.getLogger(__name__)


class S3BlobStore:
    def __init__(self, config):
        """Initializes the S3 client from the app config mapping."""
        region = config['AWS_REGION']

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=config.get('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=config.get('AWS_SECRET_ACCESS_KEY'),
            region_name=region,
            # Regional endpoint, otherwise presigned links redirect and break
            endpoint_url=f'https://s3.{region}.amazonaws.com',
            config=Config(signature_version='s3v4')
        )
        self.bucket = config['S3_BUCKET_NAME']
        self.url_expiration = config.get('S3_URL_EXPIRATION', 3600)

    def put(self, key, file_obj, content_type=None):
        """
        Uploads a file-like object to S3.
        :param key: destination key, e.g. 'processes/12/edital.pdf'
        :return: the key
        """
        try:
            self.s3_client.upload_fileobj(
                file_obj,
                self.bucket,
                key,
                ExtraArgs={'ContentType': content_type or 'application/octet-stream'}
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 upload failed for %s: %s", key, e)
            raise UploadError(details={'key': key}) from e
        logger.info("S3 upload successful: %s", key)
        return key

    def get_url(self, key):
        """Generates a time-limited link to the object."""
        try:
            return self.s3_client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket, 'Key': key},
                ExpiresIn=self.url_expiration
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("S3 URL generation failed for %s: %s", key, e)
            raise UploadError(details={'key': key}) from e


class LocalBlobStore:
    """Keeps uploads on disk under ``root``; served by the /uploads route."""

    def __init__(self, root, base_url='/uploads'):
        self.root = os.path.abspath(root)
        self.base_url = base_url.rstrip('/')

    def path_for(self, key):
        path = os.path.abspath(os.path.join(self.root, key))
        if os.path.commonpath([self.root, path]) != self.root:
            raise UploadError(details={'key': key})
        return path

    def put(self, key, file_obj, content_type=None):
        path = self.path_for(key)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'wb') as out:
                while True:
                    chunk = file_obj.read(64 * 1024)
                    if not chunk:
                        break
                    out.write(chunk)
        except OSError as e:
            logger.error("Disk write failed for %s: %s", key, e)
            raise UploadError(details={'key': key}) from e
        return key

    def get_url(self, key):
        if not os.path.exists(self.path_for(key)):
            raise UploadError(details={'key': key})
        return f"{self.base_url}/{key}"


def create_blob_store(config):
    backend = (config.get('BLOB_BACKEND') or 'local').lower()
    if backend == 's3':
        return S3BlobStore(config)
    if backend == 'local':
        return LocalBlobStore(config['UPLOAD_FOLDER'], config.get('BLOB_BASE_URL', '/uploads'))
    raise ValueError(f"Unknown BLOB_BACKEND: {backend}")
