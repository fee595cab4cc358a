"""Tests for show/episode extraction from filenames."""

import pytest

from subai.context.showinfo import clean_title, describe_release, extract_show_info, strip_release_noise


@pytest.mark.parametrize(
    "file_name,title,season,episode,year",
    [
        ("Wednesday.S01E02.1080p.WEB-DL.x264-GRP.srt", "Wednesday", 1, 2, None),
        ("the.mandalorian.s02.e05.srt", "the mandalorian", 2, 5, None),
        ("The.Office.3x07.HDTV.srt", "The Office", 3, 7, None),
        ("Show Name Season 2 Episode 10.srt", "Show Name", 2, 10, None),
        ("Inception.2010.1080p.BluRay.srt", "Inception", None, None, 2010),
        ("Spirited Away (2001).srt", "Spirited Away", None, None, 2001),
        ("[SubsPlease] Frieren - 05 (1080p) [ABCD1234].ass", "Frieren", None, 5, None),
        ("Show.Name.2021.S01E01.srt", "Show Name", 1, 1, 2021),
        ("random_notes.srt", "random notes", None, None, None),
    ],
)
def test_extract_show_info(file_name, title, season, episode, year):
    info = extract_show_info(file_name)
    assert info.title == title
    assert info.season == season
    assert info.episode == episode
    assert info.year == year


@pytest.mark.parametrize("file_name", [None, "", "   "])
def test_missing_name_is_unknown(file_name):
    assert extract_show_info(file_name).title == "Unknown"


def test_title_word_not_mistaken_for_release_tag():
    info = extract_show_info("Charlotte's Web (1973).srt")
    assert info.title == "Charlotte's Web"
    assert info.year == 1973


def test_path_components_ignored():
    assert extract_show_info("/uploads/user/Wednesday.S01E02.srt").title == "Wednesday"


def test_strip_release_noise():
    assert strip_release_noise("Dune.Part.Two.2024.2160p.WEB-DL.DDP5.1.x265-GRP.srt") == "Dune.Part.Two.2024"


def test_clean_title():
    assert clean_title("the_good.place") == "the good place"
    assert clean_title("Frieren - ") == "Frieren"


class TestDescribeRelease:
    def test_web_release(self):
        assert describe_release("Wednesday.S01E02.1080p.WEB-DL.x264.srt") == {
            "format": "SubRip (SRT)",
            "source": "Web",
            "quality": "1080p",
        }

    def test_bluray_release(self):
        info = describe_release("Inception.2010.2160p.BluRay.vtt")
        assert info["format"] == "WebVTT (VTT)"
        assert info["source"] == "Blu-ray"
        assert info["quality"] == "2160p"

    def test_unknown(self):
        assert describe_release(None) == {"format": "Unknown", "source": "Unknown", "quality": "Standard"}
