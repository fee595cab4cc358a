"""Tests for LLM prompt parsing edge cases."""

from subai.llm.prompts import (
    MalformedResponse,
    NumberedResponse,
    align_response,
    decode_line_breaks,
    encode_line_breaks,
    format_numbered_segments,
    parse_numbered_response,
)


def _texts(response: str, count: int) -> list:
    return align_response(parse_numbered_response(response, count), count).texts


def test_format_numbered_segments():
    assert format_numbered_segments(["Hi", "Bye"]) == "1. Hi\n2. Bye"
    assert format_numbered_segments(["Hi"], start=26) == "26. Hi"


def test_line_breaks_encoded():
    assert encode_line_breaks("One\nTwo") == "One<br>Two"
    assert decode_line_breaks("One <br/> Two") == "One\nTwo"
    assert decode_line_breaks("One<BR>Two") == "One\nTwo"


def test_parse_exact_match():
    parsed = parse_numbered_response("1. Hello\n2. World", 2)
    assert isinstance(parsed, NumberedResponse)
    assert [line.number for line in parsed.lines] == [1, 2]
    assert _texts("1. Hello\n2. World", 2) == ["Hello", "World"]


def test_parse_alternative_markers():
    assert _texts("1: Ahoj\n2) Světe\n**3**. Konec", 3) == ["Ahoj", "Světe", "Konec"]


def test_parse_blank_lines_and_fences_ignored():
    response = "```\n1. Hello\n\n2. World\n```\n"
    assert _texts(response, 2) == ["Hello", "World"]


def test_extra_lines_ignored():
    assert _texts("1. A\n2. B\n3. C\n4. D", 2) == ["A", "B"]


def test_fewer_lines_leave_gaps():
    alignment = align_response(parse_numbered_response("1. Only one", 3), 3)
    assert alignment.texts == ["Only one", None, None]
    assert alignment.missing == [1, 2]


def test_out_of_order_numbers_placed_by_number():
    assert _texts("2. Second\n1. First", 2) == ["First", "Second"]


def test_absolute_numbering_accepted():
    alignment = align_response(parse_numbered_response("26. A\n27. B", 2), 2, start=26)
    assert alignment.texts == ["A", "B"]


def test_unnumbered_line_uses_its_position():
    alignment = align_response(parse_numbered_response("1. A\nB\n3. C", 3), 3)
    assert alignment.texts == ["A", "B", "C"]
    assert alignment.repaired == [1]


def test_plain_lines_matching_count_are_positional():
    parsed = parse_numbered_response("Just plain text\nAnother line", 2)
    assert isinstance(parsed, NumberedResponse)
    assert align_response(parsed, 2).texts == ["Just plain text", "Another line"]


def test_empty_response_is_malformed():
    assert isinstance(parse_numbered_response("   \n", 2), MalformedResponse)


def test_malformed_recovered_by_position():
    parsed = parse_numbered_response("one\ntwo\nthree", 2)
    assert isinstance(parsed, MalformedResponse)
    alignment = align_response(parsed, 2)
    assert alignment.texts == ["one", "two"]
    assert alignment.repaired == [0, 1]


def test_malformed_fenced_reply_keeps_lines_in_place():
    parsed = parse_numbered_response("```\nEins\nZwei\n```", 3)
    assert isinstance(parsed, MalformedResponse)
    assert parsed.lines == ["Eins", "Zwei"]
    alignment = align_response(parsed, 3)
    assert alignment.texts == ["Eins", "Zwei", None]
    assert alignment.missing == [2]


def test_leading_chatter_dropped():
    response = "Here are the translations:\n```\nEins\nZwei\n```"
    assert _texts(response, 2) == ["Eins", "Zwei"]


def test_leading_chatter_dropped_from_malformed_reply():
    parsed = parse_numbered_response("Sure! Translation:\nEins\nZwei", 3)
    assert isinstance(parsed, MalformedResponse)
    assert align_response(parsed, 3).texts == ["Eins", "Zwei", None]


def test_leading_chatter_does_not_fill_missing_slot():
    assert _texts("Here are the translations:\n2. Zwei\n3. Drei", 3) == [None, "Zwei", "Drei"]


def test_colon_line_after_content_is_kept():
    assert _texts("Eins\nOkay, listen:", 2) == ["Eins", "Okay, listen:"]
