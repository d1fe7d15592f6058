import base64
import gzip
import zlib

import pytest

from ChapterFetcher import (
    BASE64_CHARSET,
    CUSTOM_CHARSET,
    ContentNotFoundError,
    DecodeError,
    RawDocument,
    decode_chapter_content,
    decode_payload,
    extract_payload,
    extract_title,
    obfuscate_payload,
    parse_chapter,
    translate_alphabet,
)
from conftest import MALFORMED_PAGE, make_chapter_page


def test_alphabets_are_distinct_64_symbol_sets():
    assert len(CUSTOM_CHARSET) == len(set(CUSTOM_CHARSET)) == 64
    assert len(BASE64_CHARSET) == len(set(BASE64_CHARSET)) == 64


@pytest.mark.parametrize("custom, standard", [("0", "A"), ("9", "J"), ("a", "K"), ("Z", "9"), ("-", "+"), ("_", "/")])
def test_substitution_maps_by_index(custom, standard):
    assert translate_alphabet(custom) == standard


def test_substitution_is_bijective_on_the_alphabet():
    for char in CUSTOM_CHARSET:
        decoded = translate_alphabet(char)
        assert translate_alphabet(decoded, BASE64_CHARSET, CUSTOM_CHARSET) == char


@pytest.mark.parametrize("char", ["=", ".", " ", "é", "\n"])
def test_characters_outside_the_alphabet_pass_through(char):
    assert translate_alphabet(char) == char
    assert translate_alphabet(char, BASE64_CHARSET, CUSTOM_CHARSET) == char


@pytest.mark.parametrize("text", [
    "Plain ASCII chapter.",
    "Chương 1: Khởi đầu<br><br>Trời đã tối.",
    "x" * 5000,
])
def test_decode_payload_inverts_obfuscation(text):
    assert decode_payload(obfuscate_payload(text)) == text


def _custom_encode(data: bytes) -> str:
    return translate_alphabet(base64.b64encode(data).decode("ascii"), BASE64_CHARSET, CUSTOM_CHARSET)


def test_decode_accepts_raw_deflate_stream():
    compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
    data = compressor.compress("raw deflate".encode("utf-8")) + compressor.flush()

    assert decode_payload(_custom_encode(data)) == "raw deflate"


def test_decode_accepts_gzip_stream():
    assert decode_payload(_custom_encode(gzip.compress("gzipped".encode("utf-8")))) == "gzipped"


def test_decode_tolerates_missing_padding():
    payload = obfuscate_payload("padding check!").rstrip("=")

    assert decode_payload(payload) == "padding check!"


def test_decode_chapter_content_from_page():
    page = make_chapter_page("Chương 3", "Nội dung<br>chương ba")

    assert decode_chapter_content(page) == "Nội dung<br>chương ba"


def test_extract_payload_requires_script_marker():
    with pytest.raises(DecodeError):
        extract_payload('<html><script>var data_x = "abc";</script></html>')


def test_extract_payload_requires_variable_assignment():
    with pytest.raises(DecodeError):
        extract_payload('<html><script id="script-x">var other = "abc";</script></html>')


def test_malformed_stream_is_a_decode_failure():
    with pytest.raises(DecodeError):
        decode_chapter_content(MALFORMED_PAGE)


def test_invalid_base64_is_a_decode_failure():
    with pytest.raises(DecodeError):
        decode_payload("a")


def test_decode_error_is_content_not_found():
    assert issubclass(DecodeError, ContentNotFoundError)


def test_extract_title_strips_inner_markup():
    assert extract_title('<div><h2 class="t"> <a href="#">Chương 1</a> <span>Mở đầu</span> </h2></div>') == "Chương 1 Mở đầu"
    assert extract_title("<div>no heading</div>") == ""


def test_parse_chapter_decodes_and_sanitizes():
    page = make_chapter_page("Chương 1", "<p>Dòng một</p><br><br><br><br>Dòng&nbsp;hai<!-- ad -->")
    record = parse_chapter(RawDocument(url="https://example.test/story/chuong-1", html=page))

    assert record.title == "Chương 1"
    assert record.content == "Dòng một<br><br>Dòng hai"


def test_parse_chapter_without_title_still_succeeds():
    page = make_chapter_page("", "Some content")
    record = parse_chapter(RawDocument(url="https://example.test/story/chuong-1", html=page))

    assert record.title == ""
    assert record.content == "Some content"


def test_parse_chapter_rejects_empty_content_even_with_title():
    page = make_chapter_page("Chương 1", "  <p> </p>\t<!-- nothing -->  ")

    with pytest.raises(ContentNotFoundError):
        parse_chapter(RawDocument(url="https://example.test/story/chuong-1", html=page))


def test_parse_chapter_uses_rendered_markup_for_browser_documents():
    document = RawDocument(
        url="https://example.test/story/chuong-4",
        html='<div class="inner">Rendered <b>text</b><br/>more</div>',
        title=" Chương 4 ",
        encoded=False,
    )
    record = parse_chapter(document)

    assert record.title == "Chương 4"
    assert record.content == "Rendered text<br/>more"
