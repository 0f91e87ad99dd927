import io
import zipfile
from pathlib import PurePosixPath
from typing import List, Union
from pdfminer.high_level import extract_text as pdf_extract
from docx import Document
from resumatch.utils.exceptions import ProcessingError
from resumatch.utils.logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_UPLOADS = {".pdf", ".docx", ".txt", ".zip"}
SUPPORTED_ARCHIVE_ENTRIES = {".pdf", ".docx", ".txt"}

class ParsedDocument:
    """One plain-text document pulled out of an upload"""

    def __init__(self, filename: str, text: str):
        self.filename = filename
        self.text = text

    def __repr__(self):
        return f"ParsedDocument(filename={self.filename!r}, chars={len(self.text)})"

def file_extension(filename: str) -> str:
    return PurePosixPath(filename).suffix.lower()

def is_valid_file_type(filename: str) -> bool:
    return file_extension(filename) in SUPPORTED_UPLOADS

def read_txt(data: bytes) -> str:
    return data.decode("utf-8", errors="ignore")

def read_docx(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join([p.text for p in doc.paragraphs])

def read_pdf(data: bytes) -> str:
    return pdf_extract(io.BytesIO(data))

READERS = {
    ".txt": read_txt,
    ".docx": read_docx,
    ".pdf": read_pdf,
}

def parse_document(data: bytes, filename: str) -> str:
    ext = file_extension(filename)
    reader = READERS.get(ext)
    if reader is None:
        raise ProcessingError(f"Unsupported file type: {ext or filename}", document_type=ext)
    try:
        return reader(data)
    except Exception as e:
        raise ProcessingError(f"Failed to parse {filename}: {e}", document_type=ext, cause=e) from e

def parse_zip(data: bytes) -> List[ParsedDocument]:
    """Every supported, non-empty document inside a ZIP archive"""
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise ProcessingError(f"Failed to parse ZIP: {e}", document_type=".zip", cause=e) from e

    out = []
    with archive:
        for info in archive.infolist():
            if info.is_dir() or file_extension(info.filename) not in SUPPORTED_ARCHIVE_ENTRIES:
                continue
            try:
                text = parse_document(archive.read(info), info.filename)
            except ProcessingError as e:
                logger.warning(f"Skipping archive entry {info.filename}: {e.message}")
                continue
            if text.strip():
                out.append(ParsedDocument(info.filename, text))
    return out

def parse_upload(data: bytes, filename: str) -> Union[str, List[ParsedDocument]]:
    """Plain text for a single document, or a list of documents for a ZIP"""
    if file_extension(filename) == ".zip":
        return parse_zip(data)
    return parse_document(data, filename)
