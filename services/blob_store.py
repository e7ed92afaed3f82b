"""
Blob Store
==========
Stores uploaded post images and returns the URL saved in ``Post.images``.

Backends (``BLOB_BACKEND``)
---------------------------
  local - LocalBlobStore, files under UPLOAD_FOLDER served at /uploads/<name>
  s3    - S3BlobStore, any S3-compatible bucket (AWS, Cloudflare R2, MinIO)

Stored names are random; the client's filename only contributes its extension.
"""
import os
from uuid import uuid4

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

from utils.errors import ExternalFailure, ValidationError


def file_extension(filename):
    return filename.rsplit('.', 1)[1].lower() if filename and '.' in filename else ''


def validate_image(file_storage, allowed_extensions):
    """Reject empty uploads and extensions outside *allowed_extensions*."""
    if file_storage is None or not file_storage.filename:
        raise ValidationError('Empty file upload')
    ext = file_extension(file_storage.filename)
    if ext not in allowed_extensions:
        raise ValidationError(f'File type .{ext or "?"} is not allowed')
    return ext


class LocalBlobStore:

    def __init__(self, folder, url_prefix='/uploads'):
        self.folder = folder
        self.url_prefix = url_prefix.rstrip('/')

    def save(self, file_storage, ext):
        name = f'{uuid4().hex}.{ext}'
        try:
            os.makedirs(self.folder, exist_ok=True)
            file_storage.save(os.path.join(self.folder, name))
        except OSError as e:
            raise ExternalFailure(f'Failed to store upload: {e}')
        return f'{self.url_prefix}/{name}'

    def delete(self, url):
        os.remove(os.path.join(self.folder, url.rsplit('/', 1)[-1]))


class S3BlobStore:

    def __init__(self, bucket, public_base, endpoint_url=None, region='auto',
                 access_key_id=None, secret_access_key=None):
        self.bucket = bucket
        self.public_base = public_base.rstrip('/')
        self._client_kwargs = dict(
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=BotoConfig(signature_version='s3v4'),
        )
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client('s3', **self._client_kwargs)
        return self._client

    def save(self, file_storage, ext):
        key = f'posts/{uuid4().hex}.{ext}'
        try:
            self.client.upload_fileobj(
                file_storage.stream,
                self.bucket,
                key,
                ExtraArgs={'ContentType': file_storage.mimetype or 'application/octet-stream'},
            )
        except (BotoCoreError, ClientError) as e:
            raise ExternalFailure(f'Failed to upload to object storage: {e}')
        return f'{self.public_base}/{key}'

    def delete(self, url):
        key = f'posts/{url.rsplit("/", 1)[-1]}'
        self.client.delete_object(Bucket=self.bucket, Key=key)


def create_blob_store(app_config):
    backend = app_config.get('BLOB_BACKEND', 'local')
    if backend == 'local':
        return LocalBlobStore(app_config['UPLOAD_FOLDER'])
    if backend == 's3':
        return S3BlobStore(
            bucket=app_config['S3_BUCKET'],
            public_base=app_config.get('PUBLIC_MEDIA_BASE', ''),
            endpoint_url=app_config.get('S3_ENDPOINT_URL'),
            region=app_config.get('S3_REGION', 'auto'),
            access_key_id=app_config.get('S3_ACCESS_KEY_ID'),
            secret_access_key=app_config.get('S3_SECRET_ACCESS_KEY'),
        )
    raise ValueError(f'Unknown BLOB_BACKEND: {backend}')


def init_blob_store(app):
    app.extensions['blob_store'] = create_blob_store(app.config)


def get_blob_store():
    return current_app.extensions['blob_store']


def store_images(files):
    """Validate and store every uploaded image, returning their URLs in order.

    All files are validated before any is stored.  If a save fails, the
    images already stored for this call are deleted before the error is raised.
    """
    allowed = current_app.config.get('ALLOWED_IMAGE_EXTENSIONS', set())
    max_images = current_app.config.get('MAX_POST_IMAGES', 5)
    files = [f for f in files if f and f.filename]
    if len(files) > max_images:
        raise ValidationError(f'A post can have at most {max_images} images')

    extensions = [validate_image(f, allowed) for f in files]
    store = get_blob_store()
    urls = []
    try:
        for f, ext in zip(files, extensions):
            urls.append(store.save(f, ext))
    except ExternalFailure:
        discard_images(urls)
        raise
    return urls


def discard_images(urls):
    """Best-effort delete of stored images that no post will reference."""
    store = get_blob_store()
    for url in urls:
        try:
            store.delete(url)
        except (OSError, BotoCoreError, ClientError) as e:
            current_app.logger.warning(f'Could not delete orphaned upload {url}: {e}')
