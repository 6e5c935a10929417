import logging
import os
import uuid

from django.core.files.storage import default_storage

from .validators import validate_image_file

logger = logging.getLogger(__name__)


def store_product_images(files):
    """Validate every file first, then push them to media storage.

    Returns the public URLs in upload order.
    """
    for file in files:
        validate_image_file(file)

    urls = []
    for file in files:
        extension = os.path.splitext(file.name)[1].lower()
        name = default_storage.save(f"products/{uuid.uuid4().hex}{extension}", file)
        urls.append(default_storage.url(name))
        logger.info(f"Stored product image {name}")
    return urls
