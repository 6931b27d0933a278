import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


@pytest.fixture()
def png_bytes() -> bytes:
    """1200-byte payload starting with the PNG signature."""
    header = b"\x89PNG\r\n\x1a\n"
    return header + b"\x00" * (1200 - len(header))


@pytest.fixture()
def jpeg_bytes() -> bytes:
    return b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 512


@pytest.fixture()
def webp_bytes() -> bytes:
    return b"RIFF\x24\x00\x00\x00WEBPVP8 " + b"\x00" * 256


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF certificate."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Certificate of Completion")
    c.save()
    return buf.getvalue()
