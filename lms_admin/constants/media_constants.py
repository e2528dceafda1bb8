"""Constants for the third-party media host."""

CLOUDINARY_UPLOAD_URL_TEMPLATE: str = "https://api.cloudinary.com/v1_1/{cloud_name}/{resource_type}/upload"
UPLOAD_TIMEOUT_SECONDS: float = 60.0
