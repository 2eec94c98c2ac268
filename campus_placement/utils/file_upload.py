"""
File Upload Utility - Validate resume uploads and extract their text.

Supported formats:
- PDF (.pdf) using PyPDF2
- Word (.docx) using python-docx
- Plain Text (.txt)

Max file size: 5MB
"""

import io
from dataclasses import dataclass
from zipfile import BadZipFile

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from fastapi import UploadFile, HTTPException
from PyPDF2 import PdfReader
from PyPDF2.errors import PyPdfError


MAX_FILE_SIZE_MB = 5
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024

CONTENT_TYPES = {
    '.pdf': 'application/pdf',
    '.docx': 'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    '.txt': 'text/plain'
}
ALLOWED_EXTENSIONS = set(CONTENT_TYPES)


@dataclass
class ExtractedResume:
    filename: str
    content_type: str
    size: int
    text: str


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def validate_upload(filename: str, size: int) -> str:
    """
    Check extension and size of an upload.

    Returns:
        The lowercase extension

    Raises:
        HTTPException 400 (type) / 413 (size)
    """
    if not filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = get_file_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{ext}'. Allowed: PDF, DOCX, TXT"
        )

    if size > MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {MAX_FILE_SIZE_MB}MB"
        )
    return ext


async def extract_resume(file: UploadFile) -> ExtractedResume:
    """
    Read an uploaded resume and extract its text.

    Raises:
        HTTPException on validation/extraction errors
    """
    content = await file.read()
    ext = validate_upload(file.filename, len(content))

    if ext == '.pdf':
        text = extract_from_pdf(content)
    elif ext == '.docx':
        text = extract_from_docx(content)
    else:  # .txt
        text = extract_from_txt(content)

    if not text.strip():
        raise HTTPException(
            status_code=400,
            detail="Could not extract text from file. File may be empty or corrupted."
        )

    return ExtractedResume(
        filename=file.filename,
        content_type=CONTENT_TYPES[ext],
        size=len(content),
        text=text
    )


def extract_from_pdf(content: bytes) -> str:
    """Extract text from PDF bytes."""
    try:
        reader = PdfReader(io.BytesIO(content))
        text_parts = []
        for page in reader.pages:
            page_text = page.extract_text()
            if page_text:
                text_parts.append(page_text)
        return '\n'.join(text_parts)
    except (PyPdfError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Error reading PDF: {str(e)}")


def extract_from_docx(content: bytes) -> str:
    """Extract paragraph and table text from DOCX bytes."""
    try:
        doc = Document(io.BytesIO(content))
    except (PackageNotFoundError, BadZipFile, KeyError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Error reading DOCX: {str(e)}")

    text_parts = [para.text for para in doc.paragraphs if para.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if row_text:
                text_parts.append(' | '.join(row_text))
    return '\n'.join(text_parts)


def extract_from_txt(content: bytes) -> str:
    """Extract text from TXT bytes."""
    try:
        return content.decode('utf-8')
    except UnicodeDecodeError:
        # latin-1 maps every byte
        return content.decode('latin-1')
