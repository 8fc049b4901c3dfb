"""
Product image storage backed by Cloudinary.

Uploads land in a single folder. Deletion only ever touches images inside
that folder and is best-effort: a failed delete leaves an orphaned image
behind but never fails the caller.
"""
import logging
import os
from typing import Optional
from urllib.parse import urlparse

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from django.conf import settings

from jewelbook.core.exceptions import ValidationError

from .models import PLACEHOLDER_IMAGE_URL

logger = logging.getLogger(__name__)

CLOUDINARY_CLOUD_NAME = getattr(
    settings,
    'CLOUDINARY_CLOUD_NAME',
    os.getenv('CLOUDINARY_CLOUD_NAME', '')
)

CLOUDINARY_API_KEY = getattr(
    settings,
    'CLOUDINARY_API_KEY',
    os.getenv('CLOUDINARY_API_KEY', '')
)

CLOUDINARY_API_SECRET = getattr(
    settings,
    'CLOUDINARY_API_SECRET',
    os.getenv('CLOUDINARY_API_SECRET', '')
)

CLOUDINARY_FOLDER = getattr(
    settings,
    'CLOUDINARY_FOLDER',
    os.getenv('CLOUDINARY_FOLDER', 'jewelry-inventory')
)

REQUEST_TIMEOUT = getattr(settings, 'EXTERNAL_HTTP_TIMEOUT', 10)


def is_configured() -> bool:
    return bool(CLOUDINARY_CLOUD_NAME and CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET)


def configure() -> bool:
    """Push the account credentials into the SDK; False when they are missing"""
    if not is_configured():
        return False
    cloudinary.config(
        cloud_name=CLOUDINARY_CLOUD_NAME,
        api_key=CLOUDINARY_API_KEY,
        api_secret=CLOUDINARY_API_SECRET,
        secure=True,
    )
    return True


def public_id_from_url(url: Optional[str]) -> Optional[str]:
    """
    Extract the public id (``folder/name``) of an image we uploaded.

    Returns None for the placeholder and for anything outside our folder.
    """
    if not url or url == PLACEHOLDER_IMAGE_URL:
        return None
    path = urlparse(url).path
    marker = '/upload/'
    if marker not in path:
        return None
    remainder = path.split(marker, 1)[1]
    parts = remainder.split('/')
    # Drop the optional version segment (v1712345678)
    if parts and parts[0].startswith('v') and parts[0][1:].isdigit():
        parts = parts[1:]
    public_id = '/'.join(parts)
    public_id = os.path.splitext(public_id)[0]
    if not public_id.startswith(f'{CLOUDINARY_FOLDER}/'):
        return None
    return public_id


def upload_image(image_file) -> str:
    """Upload an uploaded file object and return its secure URL"""
    if not configure():
        raise ValidationError('Image storage is not configured')

    filename = getattr(image_file, 'name', 'upload')
    try:
        result = cloudinary.uploader.upload(
            image_file,
            folder=CLOUDINARY_FOLDER,
            resource_type='image',
            timeout=REQUEST_TIMEOUT,
        )
    except CloudinaryError as e:
        logger.error(f"Image upload failed for {filename}: {str(e)}")
        raise ValidationError('Image upload failed')

    url = result.get('secure_url')
    if not url:
        logger.error(f"Image upload for {filename} returned no URL: {result}")
        raise ValidationError('Image upload failed')
    logger.info(f"Uploaded product image {filename} -> {url}")
    return url


def delete_image(url: Optional[str]) -> bool:
    """Remove a previously uploaded image; never raises"""
    public_id = public_id_from_url(url)
    if not public_id:
        return False
    if not configure():
        logger.info(f"Image storage not configured, leaving {public_id} in place")
        return False

    try:
        result = cloudinary.uploader.destroy(public_id, invalidate=True, timeout=REQUEST_TIMEOUT)
    except CloudinaryError as e:
        logger.warning(f"Failed to delete product image {public_id}: {str(e)}")
        return False
    if result.get('result') != 'ok':
        logger.warning(f"Product image {public_id} was not deleted: {result.get('result')}")
        return False
    logger.info(f"Deleted product image {public_id}")
    return True
