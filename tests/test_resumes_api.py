import unittest
from io import BytesIO

from app_env import USER

from fastapi.testclient import TestClient
from pypdf import PdfWriter

from app.main import app
from app.services.resume_service import DEFAULT_RESUME_SUGGESTIONS, extract_resume_text

RESUME = "Jane Doe\nSenior Backend Engineer\n- Built Python microservices used by 1.2M users.\n"


def _pdf_with_pages(*page_texts: str) -> bytes:
    """Minimal PDF with one Helvetica text line per page."""
    page_numbers = [4 + 2 * index for index in range(len(page_texts))]
    kids = " ".join(f"{number} 0 R" for number in page_numbers)
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(page_texts)} >>".encode("ascii"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for number, text in zip(page_numbers, page_texts):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {number + 1} 0 R >>"
            ).encode("ascii")
        )
        stream = f"BT /F1 12 Tf 72 720 Td ({text}) Tj ET".encode("latin-1")
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


def _blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class ResumesApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_extract_text_from_txt(self):
        response = self.client.post(
            "/v1/resumes/extract-text",
            files={"file": ("resume.txt", RESUME.encode("utf-8"), "text/plain")},
            headers=USER,
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["source_type"], "text")
        self.assertEqual(body["text"], RESUME.strip())
        self.assertEqual(body["characters"], len(RESUME.strip()))

    def test_extract_text_from_pdf(self):
        pdf = _pdf_with_pages("Jane Doe Senior Backend Engineer", "Built Python microservices")
        response = self.client.post(
            "/v1/resumes/extract-text",
            files={"file": ("resume.pdf", pdf, "application/pdf")},
            headers=USER,
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["source_type"], "pdf")
        self.assertEqual(body["pages"], 2)
        first, second = body["text"].split("\n\n")
        self.assertIn("Jane Doe Senior Backend Engineer", first)
        self.assertIn("Built Python microservices", second)
        self.assertEqual(body["characters"], len(body["text"]))

    def test_pdf_without_text_is_rejected(self):
        with self.assertRaisesRegex(ValueError, "No extractable text"):
            extract_resume_text("scan.pdf", _blank_pdf())

        response = self.client.post(
            "/v1/resumes/extract-text",
            files={"file": ("scan.pdf", _blank_pdf(), "application/pdf")},
            headers=USER,
        )
        self.assertEqual(response.status_code, 400)

    def test_rejects_unsupported_and_fake_pdf(self):
        response = self.client.post(
            "/v1/resumes/extract-text",
            files={"file": ("resume.docx", b"PK\x03\x04", "application/octet-stream")},
            headers=USER,
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            "/v1/resumes/extract-text",
            files={"file": ("resume.pdf", b"not really a pdf", "application/pdf")},
            headers=USER,
        )
        self.assertEqual(response.status_code, 400)

    def test_rejects_empty_text_file(self):
        response = self.client.post(
            "/v1/resumes/extract-text",
            files={"file": ("resume.md", b"   \n", "text/markdown")},
            headers=USER,
        )
        self.assertEqual(response.status_code, 400)

    def test_suggestions_fall_back_without_llm(self):
        response = self.client.post(
            "/v1/resumes/suggestions",
            json={"resume_content": RESUME * 2},
            headers=USER,
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["source"], "fallback")
        self.assertEqual(body["suggestions"], DEFAULT_RESUME_SUGGESTIONS.model_dump())


if __name__ == "__main__":
    unittest.main()
