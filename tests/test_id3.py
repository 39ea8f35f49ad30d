"""Tests for reading and writing raw tag dicts through mutagen."""

from mutagen.id3 import COMM, ID3, TIT2, TPE1

from chapter_manager.codec import build_table_of_contents, encode
from chapter_manager.id3 import read_tags, write_tags
from chapter_manager.models import ChapterRecord
from conftest import PNG_BYTES


def test_read_tags_untagged_file(make_mp3):
    assert read_tags(make_mp3("plain.mp3")) == {}


def test_write_then_read_chapters(make_mp3):
    path = make_mp3("episode.mp3")
    tags = encode({}, [
        ChapterRecord(title="Intro", start_time="00:00:00.000"),
        ChapterRecord(title="Talk", start_time="00:00:30.000", end_time="00:05:00.000"),
    ])
    assert write_tags(tags, path) is True

    raw = read_tags(path)
    assert raw["title"] == "Audio with Chapters"
    assert raw["artist"] == "Chapter Manager"
    assert raw["genre"] == "Podcast"
    assert raw["comment"] == {"language": "eng", "text": "Contains 2 chapters"}

    intro, talk = raw["chapter"]
    assert intro == {
        "elementID": "chp0",
        "startTimeMs": 0,
        "endTimeMs": 30000,
        "subFrames": {"TIT2": {"text": "Intro"}},
    }
    assert talk["startTimeMs"] == 30000
    assert talk["endTimeMs"] == 300000

    [toc] = raw["tableOfContents"]
    assert toc["elementID"] == "toc"
    assert toc["flags"] == {"topLevel": True, "ordered": True}
    assert toc["childElementIDs"] == ["chp0", "chp1"]
    assert toc["tags"] == {"title": "Table of Contents"}


def test_write_embeds_chapter_picture(make_mp3):
    path = make_mp3("pictures.mp3")
    tags = {
        "chapter": [
            {
                "elementID": "chp0",
                "startTimeMs": 0,
                "endTimeMs": 1000,
                "tags": {
                    "title": "Art",
                    "image": {
                        "mime": "image/png",
                        "type": {"id": 0, "name": "other"},
                        "description": "Chapter 1: Art",
                        "imageBuffer": PNG_BYTES,
                    },
                },
            }
        ]
    }
    assert write_tags(tags, path)

    apic = read_tags(path)["chapter"][0]["subFrames"]["APIC"]
    assert apic["mime"] == "image/png"
    assert apic["type"] == {"id": 0, "name": "other"}
    assert apic["description"] == "Chapter 1: Art"
    assert apic["data"] == PNG_BYTES


def test_write_accepts_legacy_chapters(make_mp3):
    path = make_mp3("legacy.mp3")
    tags = {
        "chapter": [
            {
                "elementID": "ch0",
                "startTimeMs": 0,
                "endTimeMs": 5000,
                "subFrames": {"TIT2": {"text": "Old style"}},
            }
        ]
    }
    assert write_tags(tags, path)
    assert read_tags(path)["chapter"][0]["subFrames"]["TIT2"] == {"text": "Old style"}


def test_write_replaces_chapters_and_keeps_other_frames(make_mp3):
    path = make_mp3("retag.mp3")
    id3 = ID3()
    id3.add(TIT2(encoding=3, text=["Original"]))
    id3.add(TPE1(encoding=3, text=["Someone"]))
    id3.save(path)

    first = encode(read_tags(path), [
        ChapterRecord(title="A", start_time="00:00:00.000"),
        ChapterRecord(title="B", start_time="00:01:00.000"),
    ])
    assert write_tags(first, path)
    second = encode(read_tags(path), [ChapterRecord(title="Only", start_time="00:00:00.000")])
    assert write_tags(second, path)

    raw = read_tags(path)
    assert raw["title"] == "Original"
    assert raw["artist"] == "Someone"
    assert [c["subFrames"]["TIT2"]["text"] for c in raw["chapter"]] == ["Only"]
    assert raw["tableOfContents"][0]["childElementIDs"] == ["chp0"]


def test_write_tags_reports_failure(tmp_dir):
    assert write_tags({"title": "x"}, tmp_dir + "/missing.mp3") is False


def test_read_follows_table_of_contents_order(make_mp3):
    path = make_mp3("order.mp3")
    titles = ["A long introduction", "Q", "Middle part", "End"]
    tags = encode({}, [
        ChapterRecord(title=t, start_time="00:0{}:00.000".format(i))
        for i, t in enumerate(titles)
    ])
    assert write_tags(tags, path)

    raw = read_tags(path)
    assert [c["subFrames"]["TIT2"]["text"] for c in raw["chapter"]] == titles
    assert [c["elementID"] for c in raw["chapter"]] == ["chp0", "chp1", "chp2", "chp3"]


def test_read_puts_unlisted_chapters_last_by_start_time(make_mp3):
    path = make_mp3("unlisted.mp3")
    tags = {
        "chapter": [
            {"elementID": "late", "startTimeMs": 5000, "endTimeMs": 6000,
             "tags": {"title": "B"}},
            {"elementID": "early", "startTimeMs": 2000, "endTimeMs": 3000,
             "tags": {"title": "A much longer title"}},
            {"elementID": "chp0", "startTimeMs": 9000, "endTimeMs": 9500,
             "tags": {"title": "Listed chapter with a long title"}},
        ],
        "tableOfContents": [build_table_of_contents(["chp0"])],
    }
    assert write_tags(tags, path)

    ids = [c["elementID"] for c in read_tags(path)["chapter"]]
    assert ids == ["chp0", "early", "late"]


def test_write_comment_keeps_described_comments(make_mp3):
    path = make_mp3("comments.mp3")
    id3 = ID3()
    id3.add(COMM(encoding=3, lang="eng", desc="iTunNORM", text=[" 00000A1B"]))
    id3.add(COMM(encoding=3, lang="eng", desc="", text=["old comment"]))
    id3.save(path)

    assert read_tags(path)["comment"] == {"language": "eng", "text": "old comment"}
    assert write_tags({"comment": {"language": "eng", "text": "new comment"}}, path)

    comments = {c.desc: c.text[0] for c in ID3(path).getall("COMM")}
    assert comments == {"iTunNORM": " 00000A1B", "": "new comment"}
