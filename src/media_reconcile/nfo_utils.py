"""Named-field extractors for Kodi-style .nfo descriptor files.

Descriptors are treated as opaque XML documents. Each extractor looks up one
field and returns a typed value with an explicit default, so a missing
optional field never fails a parse.
"""

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from media_reconcile.errors import DescriptorParseError
from media_reconcile.models import CanonicalEpisode, CanonicalShow
from media_reconcile.path_utils import basename, extension_of

logger = logging.getLogger(__name__)

SHOW_ROOT_TAG = "tvshow"
EPISODE_ROOT_TAG = "episodedetails"

# Full catalog image URL: https://<host>/t/p/{size}{path}
_IMAGE_URL_PATTERN = re.compile(r"^https?://[^/]+/t/p/[^/]+(/.+)$")


@dataclass
class EpisodeDescriptor:
    """Episode metadata parsed from a per-item descriptor."""

    episode: CanonicalEpisode
    original_filename: str = ""


def is_nfo_file(path: str) -> bool:
    """Check if a path is an NFO file (case-insensitive)."""
    return extension_of(path).lower() == ".nfo"


def is_folder_descriptor(path: str, descriptor_name: str = "tvshow.nfo") -> bool:
    """Check if path names the folder-level descriptor."""
    return basename(path).lower() == descriptor_name.lower()


def parse_descriptor(text: str, path: str) -> ET.Element:
    """Parse descriptor text into its root element.

    Raises:
        DescriptorParseError: If the text is not well-formed XML
    """
    try:
        return ET.fromstring(text)
    except ET.ParseError as e:
        raise DescriptorParseError(path, str(e)) from e


def text_field(root: ET.Element, tag: str) -> str:
    """Return the stripped text of the first child named tag, or ""."""
    element = root.find(tag)
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def int_field(root: ET.Element, tag: str) -> int:
    """Return the first child named tag as int, or 0 if missing/invalid."""
    value = text_field(root, tag)
    if not value:
        return 0
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer in <{tag}>: {value!r}, defaulting to 0")
        return 0


def float_field(root: ET.Element, tag: str) -> float:
    """Return the first child named tag as float, or 0.0 if missing/invalid."""
    value = text_field(root, tag)
    if not value:
        return 0.0
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid number in <{tag}>: {value!r}, defaulting to 0")
        return 0.0


def _to_int(value: str | None) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def extract_external_id(root: ET.Element) -> int:
    """Extract the catalog id, preferring the most specific designation.

    Order: <uniqueid type="tmdb">, <tmdbid>, the default <uniqueid>, <id>.
    Returns 0 if none of them holds an integer.
    """
    default_uniqueid: int | None = None
    for uniqueid in root.findall("uniqueid"):
        id_type = uniqueid.get("type", "").lower()
        value = _to_int(uniqueid.text)
        if value is None:
            continue
        if id_type == "tmdb":
            return value
        if uniqueid.get("default", "").lower() == "true" and default_uniqueid is None:
            default_uniqueid = value

    for candidate in (_to_int(root.findtext("tmdbid")), default_uniqueid):
        if candidate is not None:
            return candidate

    return _to_int(root.findtext("id")) or 0


def extract_rating(root: ET.Element) -> float:
    """Extract a rating from <rating> or the <ratings> block (default first)."""
    simple = float_field(root, "rating")
    if simple:
        return simple

    ratings = root.findall("ratings/rating")
    ordered = sorted(ratings, key=lambda r: r.get("default", "").lower() != "true")
    for rating in ordered:
        value = rating.findtext("value")
        if value and value.strip():
            try:
                return float(value.strip())
            except ValueError:
                continue
    return 0.0


def extract_image_path(url_or_path: str | None) -> str:
    """Return the path component of a catalog image URL.

    Values that do not have the /t/p/{size} URL shape are returned as-is.
    """
    if not url_or_path:
        return ""
    url_or_path = url_or_path.strip()
    match = _IMAGE_URL_PATTERN.match(url_or_path)
    if match:
        return match.group(1)
    return url_or_path


def extract_poster(root: ET.Element) -> str:
    """Return the series-level poster (poster thumb without a season)."""
    fallback = ""
    for thumb in root.findall("thumb"):
        if not thumb.text or not thumb.text.strip() or thumb.get("season"):
            continue
        if thumb.get("aspect") == "poster":
            return extract_image_path(thumb.text)
        if not fallback and not thumb.get("aspect"):
            fallback = extract_image_path(thumb.text)
    return fallback


def extract_fanart(root: ET.Element) -> str:
    """Return the backdrop from <fanart>, plain text or nested <thumb>."""
    fanart = root.find("fanart")
    if fanart is None:
        return ""
    nested = fanart.findtext("thumb")
    if nested and nested.strip():
        return extract_image_path(nested)
    return extract_image_path(fanart.text)


def extract_season_posters(root: ET.Element) -> dict[int, str]:
    """Return season number -> poster path from season thumbs."""
    posters: dict[int, str] = {}
    for thumb in root.findall("thumb"):
        season = _to_int(thumb.get("season"))
        if season is None or season < 0 or not thumb.text or not thumb.text.strip():
            continue
        if thumb.get("aspect", "poster") != "poster":
            continue
        posters.setdefault(season, extract_image_path(thumb.text))
    return posters


def extract_season_names(root: ET.Element) -> dict[int, str]:
    """Return season number -> name from <namedseason number="N">."""
    names: dict[int, str] = {}
    for named in root.findall("namedseason"):
        number = _to_int(named.get("number"))
        if number is None or not named.text or not named.text.strip():
            continue
        names[number] = named.text.strip()
    return names


def parse_show_descriptor(text: str, path: str) -> CanonicalShow:
    """Parse a folder-level descriptor into a show skeleton without seasons.

    Raises:
        DescriptorParseError: If the XML is malformed or not a <tvshow>
    """
    return show_from_element(parse_descriptor(text, path), path)


def show_from_element(root: ET.Element, path: str) -> CanonicalShow:
    """Build a show skeleton from an already parsed <tvshow> element."""
    if root.tag != SHOW_ROOT_TAG:
        raise DescriptorParseError(path, f"unexpected root element <{root.tag}>")

    return CanonicalShow(
        id=extract_external_id(root),
        name=text_field(root, "title"),
        original_name=text_field(root, "originaltitle"),
        overview=text_field(root, "plot"),
        poster_path=extract_poster(root),
        backdrop_path=extract_fanart(root),
        vote_average=extract_rating(root),
        status=text_field(root, "status"),
    )


def parse_episode_descriptor(text: str, path: str) -> EpisodeDescriptor | None:
    """Parse a per-item descriptor.

    Returns:
        EpisodeDescriptor, or None if the document is not <episodedetails>

    Raises:
        DescriptorParseError: If the XML is malformed
    """
    root = parse_descriptor(text, path)
    if root.tag != EPISODE_ROOT_TAG:
        logger.debug(f"Skipping non-episode descriptor <{root.tag}>: {path}")
        return None

    air_date = text_field(root, "premiered") or text_field(root, "aired")
    thumb = root.findtext("thumb")

    episode = CanonicalEpisode(
        season_number=int_field(root, "season"),
        episode_number=int_field(root, "episode"),
        id=extract_external_id(root),
        name=text_field(root, "title"),
        overview=text_field(root, "plot"),
        air_date=air_date,
        vote_average=extract_rating(root),
        runtime=int_field(root, "runtime"),
        still_path=extract_image_path(thumb),
    )
    return EpisodeDescriptor(
        episode=episode, original_filename=text_field(root, "original_filename")
    )
