"""
Image Filename Classification and Matching
==========================================

The site's static images follow two naming schemes:

- Gallery shots: ``imgi_07_12.webp`` (prefix, two numeric groups).
- Place shots: ``imgi_07_goa.webp`` (prefix, number, place name) or simply
  ``Kerala.webp``.

:func:`classify` turns a filename into an :class:`ImageClassification`, the
single place where that dispatch happens. :func:`find_matching_image` pairs a
destination name with the first place shot whose name normalizes to the
same string.
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Iterable, Optional

from travelcms.core import config


class ImageKind(Enum):
    """Result of classifying an image filename."""
    GALLERY = "gallery"
    NAMED = "named"
    UNRECOGNIZED = "unrecognized"


# <prefix>_<digits>_<digits>.<ext>, where <prefix> is any non-empty text
GALLERY_PATTERN = re.compile(r"^(?P<prefix>.+?)_(?P<sequence>\d+)_(?P<index>\d+)\.(?P<ext>[^.]+)$")

# <prefix>_<digits>_<token>.<ext>
PREFIXED_PLACE_PATTERN = re.compile(r"^(?P<prefix>.+?)_(?P<sequence>\d+)_(?P<token>.*)\.(?P<ext>[^.]+)$")

# <token>.<ext>
PLAIN_PLACE_PATTERN = re.compile(r"^(?P<token>.+)\.(?P<ext>[^.]+)$")

_NON_ALNUM = re.compile(r"[^a-z0-9]")


@dataclass(frozen=True)
class ImageClassification:
    """
    A classified image filename.

    Attributes:
        filename: The file's base name as found on disk
        kind: Gallery, named place or unrecognized
        place_token: Place name part of a NAMED filename
        sequence: First numeric group of a GALLERY filename
    """
    filename: str
    kind: ImageKind
    place_token: Optional[str] = None
    sequence: Optional[int] = None

    @property
    def stem(self) -> str:
        return PurePath(self.filename).stem

    @property
    def is_gallery(self) -> bool:
        return self.kind is ImageKind.GALLERY

    @property
    def is_named(self) -> bool:
        return self.kind is ImageKind.NAMED


@dataclass
class MatchResult:
    """Outcome of matching one record name against the image set."""
    target_name: str
    filename: Optional[str] = None
    matched_by: Optional[str] = None  # "token" or "stem"

    @property
    def matched(self) -> bool:
        return self.filename is not None


def normalize(name: Optional[str]) -> str:
    """
    Reduce a name to its lower-case alphanumeric characters.

    >>> normalize("Goa, Beaches!")
    'goabeaches'
    """
    if not name:
        return ""
    return _NON_ALNUM.sub("", name.lower())


def _has_supported_extension(filename: str) -> bool:
    suffix = PurePath(filename).suffix.lower()
    return suffix in config.SUPPORTED_IMAGE_EXTENSIONS


def classify(filename: str) -> ImageClassification:
    """
    Classify a filename as a gallery image, a named place image or neither.

    The gallery pattern is tried first, so a name with two numeric groups is
    never read as a place named after a number.
    """
    unrecognized = ImageClassification(filename, ImageKind.UNRECOGNIZED)

    if not filename or not _has_supported_extension(filename):
        return unrecognized

    m = GALLERY_PATTERN.match(filename)
    if m:
        return ImageClassification(filename, ImageKind.GALLERY, sequence=int(m.group("sequence")))

    m = PREFIXED_PLACE_PATTERN.match(filename) or PLAIN_PLACE_PATTERN.match(filename)
    if m:
        token = m.group("token").strip()
        if token:
            return ImageClassification(filename, ImageKind.NAMED, place_token=token)

    return unrecognized


def extract_place_token(filename: str) -> Optional[str]:
    """Place name embedded in ``filename``; None for gallery or unrecognized names."""
    return classify(filename).place_token


def find_matching_image(target_name: Optional[str], images: Iterable[ImageClassification]) -> MatchResult:
    """
    Find the image for a destination or package.

    Only NAMED images are candidates. The first image whose place token
    normalizes to the target wins; failing that, the first image whose whole
    stem does. A target that normalizes to the empty string never matches.

    Args:
        target_name: Display name to match (destination name)
        images: Classified images in discovery order

    Returns:
        MatchResult with ``filename`` set on success
    """
    result = MatchResult(target_name=target_name or "")
    wanted = normalize(target_name)
    if not wanted:
        return result

    candidates = [image for image in images if image.is_named]

    for image in candidates:
        if normalize(image.place_token) == wanted:
            result.filename = image.filename
            result.matched_by = "token"
            return result

    for image in candidates:
        if normalize(image.stem) == wanted:
            result.filename = image.filename
            result.matched_by = "stem"
            return result

    return result
