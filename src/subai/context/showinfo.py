"""Show/episode information from subtitle filenames.

Release names carry a lot of noise ("Show.Name.S01E02.1080p.WEB-DL.x264-GRP"),
so release tags and bracketed groups are stripped before an ordered list of
patterns is tried. The first match wins; a filename with no recognizable
structure still yields its cleaned name as the title.
"""

from __future__ import annotations

import re

from subai.core.models import ShowInfo

_EXTENSION_RE = re.compile(r"\.(srt|vtt|ass|ssa|sub|sbv|txt)$", re.IGNORECASE)

# Matched case-insensitively: these never occur in real titles
_TECHNICAL_TAGS = (
    "2160p", "1080p", "1080i", "720p", "576p", "480p", "HDR10",
    "x264", "x265", "h264", "h265", "h.264", "h.265", "HEVC", "XviD",
    "DDP5.1", "DD5.1", "TrueHD",
    "WEB-DL", "WEBRip", "BluRay", "BDRip", "BRRip", "DVDRip", "HDTV", "PDTV",
)  # fmt: skip

# Matched only in upper case: "WEB" is a tag, "Charlotte's Web" is a title
_UPPERCASE_TAGS = (
    "4K", "UHD", "HDR", "AVC", "VP9", "AV1", "AAC", "AC3", "DTS", "FLAC", "ATMOS",
    "WEB", "AMZN", "NF", "DSNP", "HMAX",
    "REPACK", "PROPER", "INTERNAL", "LIMITED", "EXTENDED", "UNRATED", "MULTI",
    "DUAL", "SUBBED", "DUBBED",
)  # fmt: skip


def _alternation(tags: tuple[str, ...]) -> str:
    return "|".join(re.escape(t) for t in sorted(tags, key=len, reverse=True))


_TAG_RE = re.compile(
    r"(?<![A-Za-z0-9])(?:(?i:"
    + _alternation(_TECHNICAL_TAGS)
    + r")|"
    + _alternation(_UPPERCASE_TAGS)
    + r")(?![A-Za-z0-9])"
)
_BRACKETS_RE = re.compile(r"\[[^\]]*\]|\{[^}]*\}")
# Parenthesized groups, except a bare year which is a useful marker
_PARENS_RE = re.compile(r"\((?!\s*(?:19|20)\d{2}\s*\))[^)]*\)")

_SEP = r"[\s._\-]"
_YEAR = r"(?:19|20)\d{2}"

_PATTERNS = [
    # Show.Name.S01E01 / show.name.s01.e01
    re.compile(rf"^(?P<title>.+?){_SEP}+S(?P<season>\d{{1,2}}){_SEP}*E(?P<episode>\d{{1,3}})", re.I),
    # Show.Name.1x01
    re.compile(rf"^(?P<title>.+?){_SEP}+(?P<season>\d{{1,2}})x(?P<episode>\d{{1,3}})(?!\d)", re.I),
    # Show Name Season 1 Episode 1
    re.compile(
        rf"^(?P<title>.+?){_SEP}+Season{_SEP}*(?P<season>\d{{1,2}}){_SEP}*"
        rf"Episode{_SEP}*(?P<episode>\d{{1,3}})",
        re.I,
    ),
    # Movie.Name.(2023)
    re.compile(rf"^(?P<title>.+?){_SEP}*\((?P<year>{_YEAR})\)"),
    # Movie.Name.2023
    re.compile(rf"^(?P<title>.+?){_SEP}+(?P<year>{_YEAR})(?!\d)"),
    # Anime Name Episode 01
    re.compile(rf"^(?P<title>.+?){_SEP}+Episode{_SEP}*(?P<episode>\d{{1,3}})", re.I),
    # Anime Name - 01
    re.compile(r"^(?P<title>.+?)\s+-\s+(?P<episode>\d{1,3})(?!\d)"),
]  # fmt: skip

_TRAILING_YEAR_RE = re.compile(rf"^(?P<title>.+?){_SEP}+\(?(?P<year>{_YEAR})\)?$")


def strip_release_noise(name: str) -> str:
    """Remove extension, bracketed groups and release tags from a filename.

    Everything after the first release tag is dropped too: release names put
    tags and the group suffix at the end.
    """
    name = _EXTENSION_RE.sub("", name.strip())
    name = _BRACKETS_RE.sub(" ", name)
    name = _PARENS_RE.sub(" ", name)

    match = _TAG_RE.search(name)
    if match and match.start() > 0 and name[: match.start()].strip(" ._-"):
        name = name[: match.start()]
    name = _TAG_RE.sub(" ", name)
    return name.strip(" ._-")


def clean_title(raw: str) -> str:
    """Turn a dotted/underscored release fragment into a readable title."""
    title = re.sub(r"[._]+", " ", raw)
    title = re.sub(r"\s+-+\s+|^-+|-+$", " ", title)
    title = re.sub(r"\s+", " ", title)
    return title.strip(" -")


def extract_show_info(file_name: str | None) -> ShowInfo:
    """Derive title, season, episode and year from a subtitle filename.

    Never fails: a missing filename gives "Unknown", and a filename without
    recognizable markers gives its cleaned name as the title.
    """
    if not file_name or not file_name.strip():
        return ShowInfo(title="Unknown")

    # Only the last path component is meaningful
    base = re.split(r"[\\/]", file_name.strip())[-1]
    name = strip_release_noise(base)
    if not name:
        return ShowInfo(title=clean_title(_EXTENSION_RE.sub("", base)) or "Unknown")

    for pattern in _PATTERNS:
        match = pattern.match(name)
        if not match:
            continue

        groups = match.groupdict()
        raw_title = groups["title"]
        year = int(groups["year"]) if groups.get("year") else None

        # "Show.Name.2021.S01E01": the year belongs to the show, not the title
        if year is None:
            trailing = _TRAILING_YEAR_RE.match(raw_title.strip(" ._-"))
            if trailing:
                raw_title = trailing.group("title")
                year = int(trailing.group("year"))

        title = clean_title(raw_title)
        if not title:
            continue

        return ShowInfo(
            title=title,
            season=int(groups["season"]) if groups.get("season") else None,
            episode=int(groups["episode"]) if groups.get("episode") else None,
            year=year,
        )

    return ShowInfo(title=clean_title(name) or "Unknown")


def describe_release(file_name: str | None) -> dict[str, str]:
    """Summarize container format, source and quality for progress output."""
    name = (file_name or "").lower()

    if name.endswith(".srt"):
        fmt = "SubRip (SRT)"
    elif name.endswith(".vtt"):
        fmt = "WebVTT (VTT)"
    elif name.endswith((".ass", ".ssa")):
        fmt = "Advanced SubStation (ASS)"
    else:
        fmt = "Unknown"

    if "dvdrip" in name or "dvd" in name:
        source = "DVD"
    elif "bluray" in name or "bdrip" in name or "brrip" in name:
        source = "Blu-ray"
    elif "web" in name:
        source = "Web"
    elif "hdtv" in name:
        source = "TV"
    else:
        source = "Unknown"

    if "2160p" in name or "4k" in name:
        quality = "2160p"
    elif "1080p" in name:
        quality = "1080p"
    elif "720p" in name:
        quality = "720p"
    else:
        quality = "Standard"

    return {"format": fmt, "source": source, "quality": quality}
