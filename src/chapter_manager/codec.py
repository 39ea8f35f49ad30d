"""Conversion between chapter records and raw ID3 chapter tag dicts.

Raw tag dicts are what :mod:`chapter_manager.id3` reads from and writes to an
MP3 file. Chapters come in two layouts (see :class:`ChapterShape`): ``encode``
always produces the nested layout, ``decode`` accepts both.
"""

from __future__ import annotations

import datetime
import logging

from chapter_manager.errors import MissingInputError
from chapter_manager.images import DEFAULT_MIME, load_chapter_image, to_data_uri
from chapter_manager.models import ChapterRecord, ChapterShape, ImageType, TagDefaults
from chapter_manager.timecode import (
    milliseconds_to_time_string,
    time_string_to_milliseconds,
)

logger = logging.getLogger(__name__)

TOC_ELEMENT_ID = "toc"
TOC_TITLE = "Table of Contents"
DEFAULT_CHAPTER_WINDOW_MS = 60000
PICTURE_TYPE_OTHER = {"id": 0, "name": "other"}


def decode(raw_tags: dict | None) -> list[ChapterRecord]:
    """Turn the ``chapter`` list of a raw tag dict into chapter records."""
    raw_chapters = (raw_tags or {}).get("chapter")
    if not isinstance(raw_chapters, list):
        return []

    chapters = []
    for raw in raw_chapters:
        title, image = _title_and_image(raw)
        end_ms = raw.get("endTimeMs")
        chapters.append(
            ChapterRecord(
                title=title,
                start_time=milliseconds_to_time_string(raw.get("startTimeMs")),
                # A chapter ending at 0 reads as having no end time.
                end_time=milliseconds_to_time_string(end_ms) if end_ms else None,
                image=image,
                image_type=ImageType.BASE64 if image else None,
            )
        )
    logger.debug("Decoded %d chapters", len(chapters))
    return chapters


def _title_and_image(raw: dict) -> tuple[str, str | None]:
    fallback_title = "Chapter {}".format(raw.get("elementID"))
    shape = ChapterShape.of(raw)

    if shape is ChapterShape.NESTED:
        tags = raw["tags"]
        picture = tags.get("image")
        image = None
        if isinstance(picture, dict) and picture.get("imageBuffer") is not None:
            image = to_data_uri(picture["imageBuffer"], picture.get("mime"))
        elif isinstance(picture, str):
            image = picture
        return tags.get("title") or fallback_title, image

    if shape is ChapterShape.LEGACY:
        sub_frames = raw["subFrames"]
        title = (sub_frames.get("TIT2") or {}).get("text") or fallback_title
        apic = sub_frames.get("APIC")
        image = None
        if isinstance(apic, dict) and apic.get("data"):
            image = to_data_uri(apic["data"], apic.get("mime"))
        elif isinstance(apic, str):
            image = apic
        return title, image

    return fallback_title, None


def validate_chapters(chapters: list[ChapterRecord]) -> None:
    """Raise MissingInputError unless every chapter has a title and start."""
    if not chapters:
        raise MissingInputError("No chapter data")
    for i, chapter in enumerate(chapters, 1):
        if not chapter.start_time:
            raise MissingInputError("Chapter {} missing start time".format(i))
        if not chapter.title:
            raise MissingInputError("Chapter {} missing title".format(i))


def encode(
    existing_tags: dict | None,
    chapters: list[ChapterRecord],
    defaults: TagDefaults | None = None,
) -> dict:
    """Build the raw tag dict that writes ``chapters`` over ``existing_tags``.

    Chapter and table-of-contents entries are replaced wholesale. Global
    tags already present in ``existing_tags`` are kept; missing ones are
    filled from ``defaults``.
    """
    validate_chapters(chapters)
    defaults = defaults or TagDefaults()

    raw_chapters = [
        _encode_chapter(chapters, i) for i in range(len(chapters))
    ]
    toc = build_table_of_contents([c["elementID"] for c in raw_chapters])

    new_tags = dict(existing_tags or {})
    new_tags["chapter"] = raw_chapters
    new_tags["tableOfContents"] = [toc]

    fallbacks = {
        "title": defaults.title,
        "artist": defaults.artist,
        "album": defaults.album,
        "genre": defaults.genre,
        "year": str(datetime.date.today().year),
        "comment": {
            "language": defaults.language,
            "text": "Contains {} chapters".format(len(chapters)),
        },
    }
    for key, value in fallbacks.items():
        if not new_tags.get(key):
            new_tags[key] = value

    logger.debug("Encoded %d chapters", len(raw_chapters))
    return new_tags


def _encode_chapter(chapters: list[ChapterRecord], index: int) -> dict:
    chapter = chapters[index]
    start_ms = time_string_to_milliseconds(chapter.start_time)

    if chapter.end_time:
        end_ms = time_string_to_milliseconds(chapter.end_time)
    elif index + 1 < len(chapters):
        end_ms = time_string_to_milliseconds(chapters[index + 1].start_time)
    else:
        end_ms = start_ms + DEFAULT_CHAPTER_WINDOW_MS

    tags = {"title": chapter.title}
    if chapter.image:
        loaded = load_chapter_image(chapter.image, chapter.image_type)
        if loaded:
            mime, data = loaded
            tags["image"] = {
                "mime": mime or DEFAULT_MIME,
                "type": dict(PICTURE_TYPE_OTHER),
                "description": "Chapter {}: {}".format(index + 1, chapter.title),
                "imageBuffer": data,
            }

    return {
        "elementID": "chp{}".format(index),
        "startTimeMs": start_ms,
        "endTimeMs": end_ms,
        "tags": tags,
    }


def build_table_of_contents(child_element_ids: list[str]) -> dict:
    """Top-level, ordered table of contents listing the given chapters."""
    return {
        "elementID": TOC_ELEMENT_ID,
        "flags": {"topLevel": True, "ordered": True},
        "childElementIDs": list(child_element_ids),
        "tags": {"title": TOC_TITLE},
    }
