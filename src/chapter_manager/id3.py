"""Read and write raw chapter tag dicts with mutagen.

Reading yields chapters in the sub-frame layout, since that is how mutagen
exposes CHAP frames. Writing accepts either chapter layout.
"""

from __future__ import annotations

import logging

from mutagen import MutagenError
from mutagen.id3 import (
    APIC,
    CHAP,
    COMM,
    CTOC,
    ID3,
    TALB,
    TCON,
    TDRC,
    TIT2,
    TPE1,
    CTOCFlags,
    Encoding,
    ID3NoHeaderError,
    PictureType,
)

from chapter_manager.models import ChapterShape

logger = logging.getLogger(__name__)

# CHAP byte offsets are unused; 0xFFFFFFFF marks them as such.
NO_OFFSET = 0xFFFFFFFF

_PICTURE_TYPE_NAMES = {
    int(getattr(PictureType, name)): name.lower()
    for name in dir(PictureType)
    if name.isupper()
}

_TEXT_FRAMES = {
    "title": ("TIT2", TIT2),
    "artist": ("TPE1", TPE1),
    "album": ("TALB", TALB),
    "genre": ("TCON", TCON),
    "year": ("TDRC", TDRC),
}


def read_tags(filepath: str) -> dict:
    """Read the ID3 tag of a file into a raw tag dict."""
    try:
        id3 = ID3(filepath)
    except ID3NoHeaderError:
        logger.debug("No ID3 tag in %s", filepath)
        return {}

    tags = {}
    for key, (frame_id, _) in _TEXT_FRAMES.items():
        frame = id3.get(frame_id)
        if frame and frame.text:
            tags[key] = str(frame.text[0])
    if "year" not in tags:
        frame = id3.get("TYER")
        if frame and frame.text:
            tags["year"] = str(frame.text[0])

    # Prefer the plain comment over described ones such as iTunNORM.
    comments = sorted(id3.getall("COMM"), key=lambda c: c.desc != "")
    if comments and comments[0].text:
        tags["comment"] = {
            "language": comments[0].lang,
            "text": str(comments[0].text[0]),
        }

    # mutagen stores frames sorted by size, so file order says nothing.
    toc_frames = sorted(
        id3.getall("CTOC"), key=lambda f: not f.flags & CTOCFlags.TOP_LEVEL
    )
    chapters = [
        _chapter_to_raw(frame)
        for frame in _in_toc_order(id3.getall("CHAP"), toc_frames)
    ]
    if chapters:
        tags["chapter"] = chapters
    tocs = [_toc_to_raw(frame) for frame in toc_frames]
    if tocs:
        tags["tableOfContents"] = tocs

    logger.debug("Read %d chapter frames from %s", len(chapters), filepath)
    return tags


def _in_toc_order(chap_frames: list[CHAP], toc_frames: list[CTOC]) -> list[CHAP]:
    """Order chapters as the top-level table of contents lists them.

    Chapters it does not list follow, by start time.
    """
    position = {}
    if toc_frames:
        for i, element_id in enumerate(toc_frames[0].child_element_ids):
            position.setdefault(element_id, i)
    listed = sorted(
        (f for f in chap_frames if f.element_id in position),
        key=lambda f: position[f.element_id],
    )
    unlisted = sorted(
        (f for f in chap_frames if f.element_id not in position),
        key=lambda f: f.start_time,
    )
    return listed + unlisted


def _chapter_to_raw(frame: CHAP) -> dict:
    sub_frames = {}
    titles = frame.sub_frames.getall("TIT2")
    if titles and titles[0].text:
        sub_frames["TIT2"] = {"text": str(titles[0].text[0])}
    pictures = frame.sub_frames.getall("APIC")
    if pictures:
        apic = pictures[0]
        sub_frames["APIC"] = {
            "mime": apic.mime,
            "type": _picture_type(apic.type),
            "description": apic.desc,
            "data": apic.data,
        }
    return {
        "elementID": frame.element_id,
        "startTimeMs": frame.start_time,
        "endTimeMs": frame.end_time,
        "subFrames": sub_frames,
    }


def _toc_to_raw(frame: CTOC) -> dict:
    raw = {
        "elementID": frame.element_id,
        "flags": {
            "topLevel": bool(frame.flags & CTOCFlags.TOP_LEVEL),
            "ordered": bool(frame.flags & CTOCFlags.ORDERED),
        },
        "childElementIDs": list(frame.child_element_ids),
    }
    titles = frame.sub_frames.getall("TIT2")
    if titles and titles[0].text:
        raw["tags"] = {"title": str(titles[0].text[0])}
    return raw


def _picture_type(value) -> dict:
    type_id = int(value)
    return {"id": type_id, "name": _PICTURE_TYPE_NAMES.get(type_id, str(type_id))}


def write_tags(tags: dict, filepath: str) -> bool:
    """Write a raw tag dict into the file's ID3 tag.

    Existing CHAP and CTOC frames are dropped; other frames are kept unless
    ``tags`` sets them. Returns False if mutagen fails.
    """
    try:
        try:
            id3 = ID3(filepath)
        except ID3NoHeaderError:
            id3 = ID3()

        for key, (frame_id, frame_cls) in _TEXT_FRAMES.items():
            if tags.get(key):
                id3.setall(
                    frame_id, [frame_cls(encoding=Encoding.UTF8, text=[str(tags[key])])]
                )
        if tags.get("comment"):
            comment = _comment_frame(tags["comment"])
            # Only the plain comment in that language; described ones stay.
            id3.setall(comment.HashKey, [comment])

        id3.delall("CHAP")
        id3.delall("CTOC")
        for raw in tags.get("chapter") or []:
            id3.add(_raw_to_chapter(raw))
        for raw in tags.get("tableOfContents") or []:
            id3.add(_raw_to_toc(raw))

        id3.save(filepath)
    except (MutagenError, OSError, ValueError) as e:
        logger.error("Failed to write ID3 tag to %s: %s", filepath, e)
        return False

    logger.debug(
        "Wrote %d chapter frames to %s", len(tags.get("chapter") or []), filepath
    )
    return True


def _comment_frame(comment) -> COMM:
    if isinstance(comment, dict):
        language = comment.get("language") or "eng"
        text = comment.get("text") or ""
    else:
        language, text = "eng", str(comment)
    return COMM(encoding=Encoding.UTF8, lang=language, desc="", text=[text])


def _raw_to_chapter(raw: dict) -> CHAP:
    shape = ChapterShape.of(raw)
    title = None
    picture = None
    if shape is ChapterShape.NESTED:
        title = raw["tags"].get("title")
        image = raw["tags"].get("image")
        if isinstance(image, dict) and image.get("imageBuffer") is not None:
            picture = (image, image["imageBuffer"])
    elif shape is ChapterShape.LEGACY:
        title = (raw["subFrames"].get("TIT2") or {}).get("text")
        apic = raw["subFrames"].get("APIC")
        if isinstance(apic, dict) and apic.get("data") is not None:
            picture = (apic, apic["data"])

    sub_frames = []
    if title:
        sub_frames.append(TIT2(encoding=Encoding.UTF8, text=[title]))
    if picture:
        info, data = picture
        sub_frames.append(
            APIC(
                encoding=Encoding.UTF8,
                mime=info.get("mime") or "image/jpeg",
                type=PictureType((info.get("type") or {}).get("id", 0)),
                desc=info.get("description") or "",
                data=bytes(data),
            )
        )

    return CHAP(
        element_id=raw["elementID"],
        start_time=int(raw.get("startTimeMs") or 0),
        end_time=int(raw.get("endTimeMs") or 0),
        start_offset=NO_OFFSET,
        end_offset=NO_OFFSET,
        sub_frames=sub_frames,
    )


def _raw_to_toc(raw: dict) -> CTOC:
    raw_flags = raw.get("flags") or {}
    flags = 0
    if raw_flags.get("topLevel"):
        flags |= CTOCFlags.TOP_LEVEL
    if raw_flags.get("ordered"):
        flags |= CTOCFlags.ORDERED

    sub_frames = []
    title = (raw.get("tags") or {}).get("title")
    if title:
        sub_frames.append(TIT2(encoding=Encoding.UTF8, text=[title]))

    return CTOC(
        element_id=raw["elementID"],
        flags=flags,
        child_element_ids=list(raw.get("childElementIDs") or []),
        sub_frames=sub_frames,
    )
