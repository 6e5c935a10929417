import os

from django.conf import settings
from django.core.exceptions import ValidationError
from PIL import Image, UnidentifiedImageError

VALID_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".webp"]


def validate_image_file(file):
    """
    Check that an uploaded file is an image we are willing to publish
    """
    max_size = settings.PRODUCT_IMAGE_MAX_SIZE
    if file.size > max_size:
        raise ValidationError(f"{file.name}: file must not exceed {max_size // (1024 * 1024)}MB")

    file_extension = os.path.splitext(file.name)[1].lower()
    if file_extension not in VALID_EXTENSIONS:
        raise ValidationError(
            f"{file.name}: unsupported format. Supported: {', '.join(VALID_EXTENSIONS)}"
        )

    try:
        file.seek(0)
        with Image.open(file) as img:
            img.verify()
            width, height = img.size
    except UnidentifiedImageError:
        raise ValidationError(f"{file.name}: file content is not a valid image")
    except Exception as e:
        raise ValidationError(f"{file.name}: invalid image file ({e})")
    finally:
        file.seek(0)

    max_dimension = settings.PRODUCT_IMAGE_MAX_DIMENSION
    if width > max_dimension or height > max_dimension:
        raise ValidationError(
            f"{file.name}: image too large, width and height must not exceed {max_dimension}px"
        )

    min_dimension = settings.PRODUCT_IMAGE_MIN_DIMENSION
    if width < min_dimension or height < min_dimension:
        raise ValidationError(
            f"{file.name}: image too small, width and height must be at least {min_dimension}px"
        )
