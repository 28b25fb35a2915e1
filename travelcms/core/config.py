"""
Application Configuration and Constants
=======================================

This module contains the global configuration values, constants, and defaults
used throughout travelcms. It serves as a single source of truth for:

- Content store connection defaults (project, dataset, API version)
- Document type names used by the travel site schema
- Image file formats accepted for upload
- Gallery document defaults
- Network and image size limits

Note:
    All constants use UPPER_SNAKE_CASE naming convention. Modify these values to
    change application-wide behavior without touching business logic.
"""

# ============================================================================
# CONTENT STORE CONNECTION DEFAULTS
# ============================================================================
# Used when neither the config file nor the environment provides a value.

DEFAULT_PROJECT_ID = "q2w6jxdi"
DEFAULT_DATASET = "production"
DEFAULT_API_VERSION = "2024-01-01"

# Hosts for the live API and the cached CDN API. The CDN never serves
# token-authenticated requests, so writes always go to the live host.
API_HOST = "api.sanity.io"
API_CDN_HOST = "apicdn.sanity.io"

# ============================================================================
# DOCUMENT TYPES
# ============================================================================
# Schema type names as registered in the studio.

DESTINATION_DOC_TYPE = "destination"
PACKAGE_DOC_TYPE = "package"
SERVICE_DOC_TYPE = "service"
GALLERY_DOC_TYPE = "gallery"

# Field on destinations and packages that holds the hero image
MAIN_IMAGE_FIELD = "mainImage"

# ============================================================================
# GALLERY DEFAULTS
# ============================================================================

# Category assigned to every gallery entry created by the uploader; editors
# re-categorise in the studio afterwards.
DEFAULT_GALLERY_CATEGORY = "adventure"

GALLERY_TITLE_TEMPLATE = "Gallery Image {number}"

# ============================================================================
# IMAGE FILES
# ============================================================================

# Extensions (lower-case, with dot) picked up from the image directory.
# Anything else in the directory is classified as unrecognized and skipped.
SUPPORTED_IMAGE_EXTENSIONS = (".webp",)

# Content type sent with an upload when the format cannot be detected
DEFAULT_IMAGE_CONTENT_TYPE = "image/webp"

# Maximum file size for images (safety limit before reading bytes into memory)
MAX_IMAGE_SIZE_MB = 50

# Default location of the site's static images, relative to the working dir
DEFAULT_IMAGE_DIR = "public"

# ============================================================================
# NETWORK CONFIGURATION
# ============================================================================

# Maximum time to wait for network responses before timing out
NETWORK_TIMEOUT_SECONDS = 30

# Minimum seconds between API calls (0 disables throttling)
DEFAULT_RATE_LIMIT_SECONDS = 0.0
