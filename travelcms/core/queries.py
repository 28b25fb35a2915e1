"""
Content Queries
===============

GROQ queries for the travel site's content: packages, destinations,
services and gallery images.

Two families of functions live here:

- Site fetchers (``get_*``): used to render pages. A content store failure
  is logged and an empty value is returned so a page can still render.
- Sync fetchers (``fetch_*`` / ``find_*``): used by the image uploader.
  These raise, because the uploader must not act on a partial view of the
  dataset.
"""

import logging
from typing import Any, Dict, List, Optional

from travelcms.core import config
from travelcms.core.sanity_api import SanityAPI, SanityAPIError

logger = logging.getLogger(__name__)

# ============================================================================
# SITE QUERIES
# ============================================================================

PACKAGE_FIELDS = """
    _id,
    title,
    slug,
    mainImage,
    price,
    duration,
    description,
    highlights,
    destination-> {
      _id,
      name,
      slug
    }
"""

PACKAGES_QUERY = f"""
  *[_type == "{config.PACKAGE_DOC_TYPE}"] | order(_createdAt desc) {{{PACKAGE_FIELDS}}}
"""

PACKAGE_BY_SLUG_QUERY = f"""
  *[_type == "{config.PACKAGE_DOC_TYPE}" && slug.current == $slug][0] {{{PACKAGE_FIELDS},
    itinerary[] {{
      title,
      description
    }}
  }}
"""

DESTINATIONS_QUERY = f"""
  *[_type == "{config.DESTINATION_DOC_TYPE}"] | order(name asc) {{
    _id,
    name,
    slug,
    mainImage,
    description,
    location
  }}
"""

DESTINATION_BY_SLUG_QUERY = f"""
  *[_type == "{config.DESTINATION_DOC_TYPE}" && slug.current == $slug][0] {{
    _id,
    name,
    slug,
    mainImage,
    description,
    location,
    "featuredPackages": *[_type == "{config.PACKAGE_DOC_TYPE}" && references(^._id)] {{
      _id,
      title,
      slug,
      mainImage,
      price,
      duration
    }}
  }}
"""

SERVICE_FIELDS = """
    _id,
    title,
    slug,
    shortDescription,
    fullDescription,
    icon,
    colorGradient,
    category
"""

SERVICES_QUERY = f"""
  *[_type == "{config.SERVICE_DOC_TYPE}"] | order(order asc, title asc) {{{SERVICE_FIELDS}}}
"""

SERVICE_BY_SLUG_QUERY = f"""
  *[_type == "{config.SERVICE_DOC_TYPE}" && slug.current == $slug][0] {{{SERVICE_FIELDS}}}
"""

GALLERY_QUERY = f"""
  *[_type == "{config.GALLERY_DOC_TYPE}"] | order(displayOrder asc, _createdAt asc) {{
    _id,
    title,
    alt,
    image,
    category,
    displayOrder
  }}
"""

# ============================================================================
# SYNC QUERIES
# ============================================================================
# Published documents only: drafts live under the "drafts." id prefix.

DESTINATION_RECORDS_QUERY = f"""
  *[_type == "{config.DESTINATION_DOC_TYPE}" && !(_id in path("drafts.**"))] {{
    _id,
    name,
    slug,
    {config.MAIN_IMAGE_FIELD}
  }}
"""

PACKAGE_RECORDS_QUERY = f"""
  *[_type == "{config.PACKAGE_DOC_TYPE}" && !(_id in path("drafts.**"))] {{
    _id,
    title,
    slug,
    destination->{{name}},
    {config.MAIN_IMAGE_FIELD}
  }}
"""

GALLERY_BY_ASSET_QUERY = (
    f'*[_type == "{config.GALLERY_DOC_TYPE}" && image.asset._ref == $assetId][0]{{_id}}'
)

GALLERY_BY_FILENAME_QUERY = (
    f'*[_type == "{config.GALLERY_DOC_TYPE}" && '
    f'(sourceFilename == $filename || image.asset->originalFilename == $filename)][0]{{_id}}'
)


# ============================================================================
# SITE FETCHERS
# ============================================================================

def _fetch_list(api: SanityAPI, query: str, label: str) -> List[Dict[str, Any]]:
    try:
        return api.query(query) or []
    except SanityAPIError as e:
        logger.error(f"Error fetching {label}: {e}")
        return []


def _fetch_one(api: SanityAPI, query: str, label: str, **params) -> Optional[Dict[str, Any]]:
    try:
        return api.query(query, params) or None
    except SanityAPIError as e:
        logger.error(f"Error fetching {label}: {e}")
        return None


def get_packages(api: SanityAPI) -> List[Dict[str, Any]]:
    """All packages, newest first, with their destination resolved."""
    return _fetch_list(api, PACKAGES_QUERY, "packages")


def get_package_by_slug(api: SanityAPI, slug: str) -> Optional[Dict[str, Any]]:
    """One package with its day-by-day itinerary, or None."""
    return _fetch_one(api, PACKAGE_BY_SLUG_QUERY, "package", slug=slug)


def get_destinations(api: SanityAPI) -> List[Dict[str, Any]]:
    """All destinations ordered by name."""
    return _fetch_list(api, DESTINATIONS_QUERY, "destinations")


def get_destination_by_slug(api: SanityAPI, slug: str) -> Optional[Dict[str, Any]]:
    """One destination plus the packages that reference it, or None."""
    return _fetch_one(api, DESTINATION_BY_SLUG_QUERY, "destination", slug=slug)


def get_services(api: SanityAPI) -> List[Dict[str, Any]]:
    """All services in editor-defined order, then by title."""
    return _fetch_list(api, SERVICES_QUERY, "services")


def get_service_by_slug(api: SanityAPI, slug: str) -> Optional[Dict[str, Any]]:
    return _fetch_one(api, SERVICE_BY_SLUG_QUERY, "service", slug=slug)


def get_gallery_images(api: SanityAPI) -> List[Dict[str, Any]]:
    """Gallery entries in display order."""
    return _fetch_list(api, GALLERY_QUERY, "gallery images")


# ============================================================================
# SYNC FETCHERS
# ============================================================================

def fetch_destination_records(api: SanityAPI) -> List[Dict[str, Any]]:
    """Published destinations with their current main image."""
    return api.query(DESTINATION_RECORDS_QUERY) or []


def fetch_package_records(api: SanityAPI) -> List[Dict[str, Any]]:
    """Published packages with the referenced destination's name resolved."""
    return api.query(PACKAGE_RECORDS_QUERY) or []


def find_gallery_entry_by_asset(api: SanityAPI, asset_id: str) -> Optional[Dict[str, Any]]:
    """The gallery entry whose image points at ``asset_id``, if any."""
    return api.query(GALLERY_BY_ASSET_QUERY, {"assetId": asset_id}) or None


def find_gallery_entry_by_filename(api: SanityAPI, filename: str) -> Optional[Dict[str, Any]]:
    """The gallery entry created from ``filename``, if any."""
    return api.query(GALLERY_BY_FILENAME_QUERY, {"filename": filename}) or None
