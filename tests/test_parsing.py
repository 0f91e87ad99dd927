import io
import zipfile

import pytest
from docx import Document

from resumatch.helpers.parsing import (
    ParsedDocument,
    is_valid_file_type,
    parse_document,
    parse_upload,
    parse_zip,
    read_docx,
)
from resumatch.utils.exceptions import ProcessingError


def make_zip(entries):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()


def make_docx(*paragraphs):
    doc = Document()
    for p in paragraphs:
        doc.add_paragraph(p)
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


class TestFileTypes:
    def test_supported(self):
        for name in ["cv.pdf", "CV.DOCX", "notes.txt", "batch.zip"]:
            assert is_valid_file_type(name)

    def test_unsupported(self):
        for name in ["cv.doc", "photo.png", "noext", ""]:
            assert not is_valid_file_type(name)


class TestParseDocument:
    """Single-document text extraction"""

    def test_txt(self):
        assert parse_document("Python developer".encode("utf-8"), "cv.txt") == "Python developer"

    def test_txt_ignores_bad_bytes(self):
        assert parse_document(b"ok\xff\xfe", "cv.txt") == "ok"

    def test_docx(self):
        data = make_docx("Jane Doe", "React engineer")
        assert read_docx(data).endswith("Jane Doe\nReact engineer")
        assert parse_document(data, "cv.docx") == read_docx(data)

    def test_unsupported_type(self):
        with pytest.raises(ProcessingError):
            parse_document(b"data", "cv.png")

    def test_corrupt_docx(self):
        with pytest.raises(ProcessingError) as exc_info:
            parse_document(b"not a docx", "cv.docx")
        assert exc_info.value.details["document_type"] == ".docx"


class TestParseZip:
    """Each supported archive entry becomes its own document"""

    def test_entries(self):
        data = make_zip({
            "a.txt": "Alice resume",
            "folder/": "",
            "image.png": "binary",
            "empty.txt": "   ",
            "folder/b.docx": make_docx("Bob resume"),
        })
        docs = parse_zip(data)
        assert [d.filename for d in docs] == ["a.txt", "folder/b.docx"]
        assert docs[0].text == "Alice resume"
        assert "Bob resume" in docs[1].text

    def test_corrupt_entry_is_skipped(self):
        docs = parse_zip(make_zip({"bad.docx": "garbage", "ok.txt": "fine"}))
        assert [d.filename for d in docs] == ["ok.txt"]

    def test_bad_archive(self):
        with pytest.raises(ProcessingError):
            parse_zip(b"not a zip")


class TestParseUpload:
    def test_single_file_returns_text(self):
        assert parse_upload(b"hello", "cv.txt") == "hello"

    def test_zip_returns_documents(self):
        docs = parse_upload(make_zip({"a.txt": "x"}), "batch.ZIP")
        assert len(docs) == 1
        assert isinstance(docs[0], ParsedDocument)
