"""Path and file-name helpers for POSIX-style media paths.

All paths handled by the engine use forward slashes. Platform-specific
translation happens before paths enter the engine and after they leave it,
so these helpers are built on ``posixpath`` rather than ``pathlib``.

Also centralizes the extension tables used to classify files inside a media
folder so the matcher, the validators and the lookup resolver agree.
"""

import posixpath
from collections.abc import Iterable
from dataclasses import dataclass, field

from media_reconcile.models import FileKind

# Supported extensions (lowercase with leading dot)
VIDEO_EXTENSIONS: tuple[str, ...] = (
    # Common video formats
    ".mp4", ".mkv", ".avi", ".mov", ".wmv", ".flv", ".webm", ".m4v",
    # MPEG formats
    ".mpg", ".mpeg", ".m2v", ".m1v",
    # QuickTime formats
    ".qt", ".3gp", ".3g2",
    # RealMedia formats
    ".rm", ".rmvb", ".ra",
    # Windows Media formats
    ".asf", ".wm",
    # Ogg formats
    ".ogv", ".ogm",
    # Other formats
    ".vob", ".divx", ".f4v", ".h264", ".mxf", ".svi", ".tp", ".trp", ".wtv",
    # Transport streams
    ".ts", ".m2ts", ".mts",
    ".swf", ".yuv", ".m4p", ".m4b", ".m4r",
)  # fmt: skip

SUBTITLE_EXTENSIONS: tuple[str, ...] = (
    ".srt", ".ass", ".ssa", ".vtt", ".sub", ".idx",
    ".smi", ".sami",
    ".lrc", ".sbv", ".ttml", ".dfxp", ".stl", ".usf", ".dks", ".jss", ".pjs",
    ".psb", ".rt", ".s2k", ".sbt", ".scc", ".cap", ".cdg", ".scr", ".xas",
    ".mpl", ".mks", ".sup", ".aqt", ".gsub", ".vsf", ".zeg", ".cif", ".cip",
    ".ets", ".itk", ".slt", ".ssf", ".tds", ".txt",
)  # fmt: skip

AUDIO_TRACK_EXTENSIONS: tuple[str, ...] = (".mka",)

DESCRIPTOR_EXTENSIONS: tuple[str, ...] = (".nfo",)

IMAGE_EXTENSIONS: tuple[str, ...] = (
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".tiff", ".tif", ".svg",
)  # fmt: skip

# Short classifier codes attached to associated files
TAG_VIDEO = "VID"
TAG_SUBTITLE = "SUB"
TAG_AUDIO = "AUD"
TAG_DESCRIPTOR = "NFO"
TAG_POSTER = "POSTER"

_TAG_KINDS: dict[str, FileKind] = {
    TAG_VIDEO: "video",
    TAG_SUBTITLE: "subtitle",
    TAG_AUDIO: "audio",
    TAG_DESCRIPTOR: "descriptor",
    TAG_POSTER: "poster",
}


def normalize_extension(extension: str) -> str:
    """Return extension lowercased with exactly one leading dot ("" stays "")."""
    extension = extension.strip().lower()
    if not extension:
        return ""
    return "." + extension.lstrip(".")


@dataclass
class ExtensionTable:
    """Configurable extension -> tag table.

    Earlier groups win when an extension appears in more than one group.
    """

    video: list[str] = field(default_factory=lambda: list(VIDEO_EXTENSIONS))
    subtitle: list[str] = field(default_factory=lambda: list(SUBTITLE_EXTENSIONS))
    audio: list[str] = field(default_factory=lambda: list(AUDIO_TRACK_EXTENSIONS))
    descriptor: list[str] = field(
        default_factory=lambda: list(DESCRIPTOR_EXTENSIONS)
    )
    poster: list[str] = field(default_factory=lambda: list(IMAGE_EXTENSIONS))

    def __post_init__(self) -> None:
        self._tags: dict[str, str] = {}
        groups = (
            (TAG_VIDEO, self.video),
            (TAG_SUBTITLE, self.subtitle),
            (TAG_AUDIO, self.audio),
            (TAG_DESCRIPTOR, self.descriptor),
            (TAG_POSTER, self.poster),
        )
        for tag, extensions in groups:
            for extension in extensions:
                self._tags.setdefault(normalize_extension(extension), tag)

    def tag_of(self, path: str) -> str:
        """Return the classifier tag for path's extension, or "" if unknown."""
        return self._tags.get(extension_of(path).lower(), "")

    def is_video(self, path: str) -> bool:
        return self.tag_of(path) == TAG_VIDEO

    def extended(
        self,
        video: Iterable[str] = (),
        subtitle: Iterable[str] = (),
        audio: Iterable[str] = (),
        poster: Iterable[str] = (),
    ) -> "ExtensionTable":
        """Return a new table with extra extensions appended to each group."""
        return ExtensionTable(
            video=[*self.video, *video],
            subtitle=[*self.subtitle, *subtitle],
            audio=[*self.audio, *audio],
            descriptor=list(self.descriptor),
            poster=[*self.poster, *poster],
        )


DEFAULT_EXTENSION_TABLE = ExtensionTable()


def tag_to_kind(tag: str | None) -> FileKind:
    """Map a short classifier code to a semantic file kind.

    Unknown or empty codes map to the generic "file" kind.
    """
    if not tag:
        return "file"
    return _TAG_KINDS.get(tag.upper(), "file")


def to_posix(path: str) -> str:
    """Normalize separators to forward slashes and drop a trailing slash."""
    path = path.replace("\\", "/")
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"
    return path


def basename(path: str) -> str:
    return posixpath.basename(path)


def dirname(path: str) -> str:
    return posixpath.dirname(path)


def extension_of(path: str) -> str:
    """Return the final dot-extension of path including the dot, or ""."""
    return posixpath.splitext(posixpath.basename(path))[1]


def strip_extension(path: str) -> str:
    """Return path without its final extension, directory kept."""
    extension = extension_of(path)
    return path[: -len(extension)] if extension else path


def stem_of(path: str) -> str:
    """Return the file name without its final extension."""
    return strip_extension(posixpath.basename(path))


def relative_to_folder(folder_path: str, path: str) -> str:
    """Return path relative to folder_path.

    Paths that are not under the folder are returned unchanged so relative
    file-list entries pass through as-is.
    """
    folder = to_posix(folder_path)
    path = to_posix(path)
    prefix = folder if folder.endswith("/") else folder + "/"
    if path.startswith(prefix):
        return path[len(prefix) :]
    return path


def absolute_in_folder(folder_path: str, path: str) -> str:
    """Return path joined onto folder_path unless it is already absolute."""
    path = to_posix(path)
    if path.startswith("/"):
        return path
    return posixpath.join(to_posix(folder_path), path)


def is_within_folder(folder_path: str, path: str) -> bool:
    """Return True if path is strictly inside folder_path."""
    folder = to_posix(folder_path)
    prefix = folder if folder.endswith("/") else folder + "/"
    return to_posix(path).startswith(prefix)


def is_abnormal_path(path: str) -> bool:
    """Return True if path changes under normalization (e.g. "..", "//", "./")."""
    return posixpath.normpath(path) != path


def sibling_path(
    anchor_old_path: str, anchor_new_path: str, other_old_path: str
) -> str:
    """Derive the new path of a file associated with a renamed anchor.

    The whole file name of the other file is replaced by the anchor's new
    stem; only its final extension and its directory are kept. Qualifiers such
    as ".en.forced" are dropped so the sibling mirrors the video exactly.

    Args:
        anchor_old_path: Anchor (video) path before the rename
        anchor_new_path: Anchor path after the rename
        other_old_path: Current path of the associated file

    Returns:
        New path for the associated file
    """
    new_stem = stem_of(anchor_new_path)
    directory = posixpath.dirname(other_old_path)
    new_name = new_stem + extension_of(other_old_path)
    return posixpath.join(directory, new_name) if directory else new_name
