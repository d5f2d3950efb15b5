import io

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a one-page shipping invoice PDF."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    c.drawString(72, 760, "Commercial invoice PKG-001")
    c.drawString(72, 740, "Shipper: Acme Trading")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def oversized_bytes() -> bytes:
    """One byte over the 10 MiB upload limit."""
    return b"\0" * (10 * 1024 * 1024 + 1)
