"""
Image Upload and Matching
=========================

Batch job that pushes the site's static images into the content store.

Stages (run strictly one after another):
----------------------------------------
1. Gallery ingestion: every gallery-named image becomes a ``gallery``
   document, unless an entry for that file already exists.
2. Destination matching: each destination gets the image whose place name
   matches its own name; the image is uploaded and set as ``mainImage``.
3. Package matching: as above, keyed on the package's destination name.

Every item is independent. Content store and file errors on one item are
logged and counted, and the stage moves on. Each stage returns its own
:class:`StageStats`.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from travelcms.core import config
from travelcms.core.image_matching import ImageClassification, ImageKind, classify, find_matching_image
from travelcms.core.image_processing import detect_content_type, validate_image
from travelcms.core.queries import (
    fetch_destination_records,
    fetch_package_records,
    find_gallery_entry_by_asset,
    find_gallery_entry_by_filename,
)
from travelcms.core.sanity_api import SanityAPI, SanityAPIError, image_reference

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 50


# ============================================================================
# DATA STRUCTURES
# ============================================================================

@dataclass
class StageStats:
    """
    Counters for one stage of the run.

    In a dry run nothing is written, so matches land in ``planned`` and
    ``uploaded``/``updated`` stay zero.
    """
    stage: str
    total: int = 0
    uploaded: int = 0
    updated: int = 0
    already_exists: int = 0
    not_found: int = 0
    failed: int = 0
    planned: int = 0
    dry_run: bool = False

    def summary(self) -> str:
        if self.stage == "Gallery":
            done = f"{self.planned} would be uploaded" if self.dry_run else f"{self.uploaded} uploaded"
            return (f"{self.stage}: {done}, "
                    f"{self.already_exists} already existed, {self.failed} failed")
        done = f"{self.planned} would be updated" if self.dry_run else f"{self.updated} updated"
        return f"{self.stage}: {done}, {self.not_found} not found"


@dataclass
class ContentRecord:
    """
    A destination or package whose main image may be replaced.

    Attributes:
        id: Document ``_id``
        label: Name shown in the run log (destination name / package title)
        kind: 'destination' or 'package'
        match_name: Name matched against image filenames; None when the
            package has no destination or the destination has no name
        image: Current ``mainImage`` value, left untouched when nothing matches
    """
    id: str
    label: str
    kind: str
    match_name: Optional[str] = None
    image: Optional[Dict[str, Any]] = None

    @classmethod
    def from_destination(cls, doc: Dict[str, Any]) -> "ContentRecord":
        name = doc.get("name")
        return cls(
            id=doc["_id"],
            label=name or doc["_id"],
            kind=config.DESTINATION_DOC_TYPE,
            match_name=name or None,
            image=doc.get(config.MAIN_IMAGE_FIELD),
        )

    @classmethod
    def from_package(cls, doc: Dict[str, Any]) -> "ContentRecord":
        destination = doc.get("destination") or {}
        return cls(
            id=doc["_id"],
            label=doc.get("title") or doc["_id"],
            kind=config.PACKAGE_DOC_TYPE,
            match_name=destination.get("name") or None,
            image=doc.get(config.MAIN_IMAGE_FIELD),
        )


# ============================================================================
# HELPERS
# ============================================================================

def _log_stage_header(title: str):
    logger.info("")
    logger.info(SEPARATOR)
    logger.info(title)
    logger.info(SEPARATOR)


def discover_images(image_dir: Path) -> List[ImageClassification]:
    """
    Classify every file in ``image_dir``.

    Files are visited in name order so a run is reproducible on any platform.

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    if not image_dir.is_dir():
        raise FileNotFoundError(f"Image directory not found: {image_dir}")

    names = sorted(p.name for p in image_dir.iterdir() if p.is_file())
    images = [classify(name) for name in names]

    counts = {kind: 0 for kind in ImageKind}
    for image in images:
        counts[image.kind] += 1
    logger.debug(
        f"Discovered {len(images)} files in {image_dir}: "
        f"{counts[ImageKind.GALLERY]} gallery, {counts[ImageKind.NAMED]} named, "
        f"{counts[ImageKind.UNRECOGNIZED]} unrecognized"
    )
    return images


def upload_image(api: SanityAPI, image_path: Path) -> Optional[str]:
    """
    Upload one file and return its asset reference.

    Failures are logged and reported as None; nothing is retried.
    """
    valid, error = validate_image(image_path)
    if not valid:
        logger.error(f"  Failed to upload {image_path.name}: {error}")
        return None

    logger.info(f"  Uploading: {image_path.name}...")
    try:
        data = image_path.read_bytes()
        asset = api.assets.upload_image(data, image_path.name, detect_content_type(image_path))
    except (SanityAPIError, OSError) as e:
        logger.error(f"  Failed to upload {image_path.name}: {e}")
        return None

    return asset["_id"]


def gallery_document(image: ImageClassification, asset_id: str) -> Dict[str, Any]:
    """The ``gallery`` document created for an uploaded gallery image."""
    number = image.sequence if image.sequence is not None else 0
    title = config.GALLERY_TITLE_TEMPLATE.format(number=number)
    return {
        "_type": config.GALLERY_DOC_TYPE,
        "title": title,
        "alt": title,
        "image": image_reference(asset_id),
        "category": config.DEFAULT_GALLERY_CATEGORY,
        "displayOrder": number,
        "sourceFilename": image.filename,
    }


# ============================================================================
# STAGES
# ============================================================================

def ingest_gallery(
    api: SanityAPI,
    images: Sequence[ImageClassification],
    image_dir: Path,
    dry_run: bool = False
) -> StageStats:
    """
    Create a gallery document for each gallery image not already in the store.

    An entry counts as existing when it was created from the same filename,
    or when it already points at the asset the upload resolved to (the
    store keys assets on their bytes).
    """
    _log_stage_header("STEP 1: Uploading Gallery Images")
    stats = StageStats("Gallery", dry_run=dry_run)

    gallery = [image for image in images if image.is_gallery]
    stats.total = len(gallery)
    if not gallery:
        logger.info("No gallery images found")
        return stats

    logger.info(f"Found {len(gallery)} gallery images")

    for image in gallery:
        try:
            if find_gallery_entry_by_filename(api, image.filename):
                logger.info(f"  Already exists: {image.filename}")
                stats.already_exists += 1
                continue

            if dry_run:
                logger.info(f"  [DRY-RUN] Would upload and create gallery document: {image.filename}")
                stats.planned += 1
                continue

            asset_id = upload_image(api, image_dir / image.filename)
            if not asset_id:
                stats.failed += 1
                continue

            if find_gallery_entry_by_asset(api, asset_id):
                logger.info(f"  Already exists: {image.filename}")
                stats.already_exists += 1
                continue

            doc_id = api.documents.create(gallery_document(image, asset_id))
            logger.info(f"  Created gallery document: {image.filename} ({doc_id})")
            stats.uploaded += 1

        except (SanityAPIError, OSError) as e:
            logger.error(f"  Failed to create gallery document for {image.filename}: {e}")
            stats.failed += 1

    logger.info("")
    logger.info(stats.summary())
    return stats


def update_record_images(
    api: SanityAPI,
    records: Sequence[ContentRecord],
    images: Sequence[ImageClassification],
    image_dir: Path,
    stage: str,
    dry_run: bool = False
) -> StageStats:
    """
    Match each record to an image, upload it and patch the record's main image.

    A record without a match, or whose upload or patch fails, is counted as
    not found and keeps its current image.
    """
    stats = StageStats(stage, total=len(records), dry_run=dry_run)

    for record in records:
        match = find_matching_image(record.match_name, images)

        if not match.matched:
            if record.kind == config.PACKAGE_DOC_TYPE:
                logger.warning(
                    f"  No image found for package: {record.label} "
                    f"({record.match_name or 'no destination'})"
                )
            else:
                logger.warning(f"  No image found for: {record.label}")
            stats.not_found += 1
            continue

        if dry_run:
            logger.info(f"  [DRY-RUN] Would update: {record.label} with {match.filename} "
                        f"(matched by {match.matched_by})")
            stats.planned += 1
            continue

        asset_id = upload_image(api, image_dir / match.filename)
        if not asset_id:
            stats.not_found += 1
            continue

        try:
            api.documents.patch(record.id, set={config.MAIN_IMAGE_FIELD: image_reference(asset_id)})
        except SanityAPIError as e:
            logger.error(f"  Failed to update {record.label}: {e}")
            stats.not_found += 1
            continue

        logger.info(f"  Updated: {record.label} with {match.filename}")
        stats.updated += 1

    logger.info("")
    logger.info(stats.summary())
    return stats


def update_destination_images(
    api: SanityAPI,
    images: Sequence[ImageClassification],
    image_dir: Path,
    dry_run: bool = False
) -> StageStats:
    """Stage 2: set each published destination's main image from its name."""
    _log_stage_header("STEP 2: Matching Destination Images")

    docs = fetch_destination_records(api)
    if not docs:
        logger.info("No destinations found")
        return StageStats("Destinations", dry_run=dry_run)

    logger.info(f"Found {len(docs)} destinations")
    records = [ContentRecord.from_destination(doc) for doc in docs]
    return update_record_images(api, records, images, image_dir, "Destinations", dry_run)


def update_package_images(
    api: SanityAPI,
    images: Sequence[ImageClassification],
    image_dir: Path,
    dry_run: bool = False
) -> StageStats:
    """Stage 3: set each published package's main image from its destination's name."""
    _log_stage_header("STEP 3: Matching Package Images")

    docs = fetch_package_records(api)
    if not docs:
        logger.info("No packages found")
        return StageStats("Packages", dry_run=dry_run)

    logger.info(f"Found {len(docs)} packages")
    records = [ContentRecord.from_package(doc) for doc in docs]
    return update_record_images(api, records, images, image_dir, "Packages", dry_run)


def run_sync(api: SanityAPI, image_dir: Path, dry_run: bool = False) -> List[StageStats]:
    """
    Run all three stages in order and return their stats.

    Errors outside the per-item guards (directory missing, record fetch
    failing, malformed documents) propagate to the caller.
    """
    images = discover_images(image_dir)
    return [
        ingest_gallery(api, images, image_dir, dry_run=dry_run),
        update_destination_images(api, images, image_dir, dry_run=dry_run),
        update_package_images(api, images, image_dir, dry_run=dry_run),
    ]


def format_report(stats: Sequence[StageStats]) -> List[str]:
    """Lines of the end-of-run summary."""
    lines = [SEPARATOR, "SUMMARY", SEPARATOR]
    lines.extend(stage.summary() for stage in stats)
    lines.append(SEPARATOR)
    return lines
