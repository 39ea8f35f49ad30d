from __future__ import annotations

import enum
from dataclasses import dataclass


class ImageType(str, enum.Enum):
    """Where a chapter image came from, which decides how it is embedded."""

    FILE = "file"  # path on disk
    EXTRACTED = "extracted"  # read back from a previous parse
    BASE64 = "base64"  # data URI or bare base64 payload


class ChapterShape(enum.Enum):
    """Layout of a raw chapter dict as produced by the tag reader.

    NESTED chapters keep their title and picture under ``tags``; LEGACY
    chapters carry raw ``subFrames`` (TIT2/APIC). BARE chapters have neither.
    """

    NESTED = "nested"
    LEGACY = "legacy"
    BARE = "bare"

    @classmethod
    def of(cls, raw: dict) -> ChapterShape:
        if isinstance(raw.get("tags"), dict):
            return cls.NESTED
        if isinstance(raw.get("subFrames"), dict):
            return cls.LEGACY
        return cls.BARE


@dataclass
class ChapterRecord:
    """A chapter as the user edits it."""

    title: str
    start_time: str = "00:00:00.000"
    end_time: str | None = None
    image: str | None = None
    image_type: ImageType | None = None
    description: str | None = None

    def to_dict(self) -> dict:
        """Serialize to the camelCase dict used by chapter JSON files."""
        data = {"title": self.title, "startTime": self.start_time}
        if self.end_time is not None:
            data["endTime"] = self.end_time
        if self.image is not None:
            data["image"] = self.image
        if self.image_type is not None:
            data["imageType"] = ImageType(self.image_type).value
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict) -> ChapterRecord:
        image_type = data.get("imageType")
        return cls(
            title=data.get("title") or "",
            start_time=data.get("startTime") or "",
            end_time=data.get("endTime") or None,
            image=data.get("image") or None,
            image_type=ImageType(image_type) if image_type else None,
            description=data.get("description"),
        )


@dataclass
class TagDefaults:
    """Global tag values filled in when the source file has none."""

    title: str = "Audio with Chapters"
    artist: str = "Chapter Manager"
    album: str = "Chapters"
    genre: str = "Podcast"
    language: str = "eng"
