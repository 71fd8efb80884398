import asyncio
import base64
import unittest
from types import SimpleNamespace
from unittest.mock import patch

from pypdf.errors import PdfReadError

from omnichat.documents import extract_text, is_supported_document
from omnichat.errors import DocumentParseError
from tests.pdf_fixtures import build_pdf_base64

PDF_B64 = base64.b64encode(b"%PDF-1.4 fake").decode("ascii")


def _page(text):
    return SimpleNamespace(extract_text=lambda: text)


class ExtractTextTests(unittest.TestCase):
    def test_pages_are_joined_in_order_with_whitespace_collapsed(self) -> None:
        reader = SimpleNamespace(pages=[_page("Page one\n  intro"), _page(None), _page("Page\ttwo")])
        with patch("omnichat.documents.PdfReader", return_value=reader) as reader_cls:
            text = asyncio.run(extract_text(PDF_B64, "application/pdf"))

        self.assertEqual("Page one intro Page two", text)
        self.assertEqual(b"%PDF-1.4 fake", reader_cls.call_args.args[0].getvalue())

    def test_document_without_text_returns_empty_string(self) -> None:
        reader = SimpleNamespace(pages=[_page(""), _page("   ")])
        with patch("omnichat.documents.PdfReader", return_value=reader):
            self.assertEqual("", asyncio.run(extract_text(PDF_B64, "application/pdf")))

    def test_reader_failure_becomes_document_parse_error(self) -> None:
        with patch("omnichat.documents.PdfReader", side_effect=PdfReadError("EOF marker not found")):
            with self.assertRaises(DocumentParseError):
                asyncio.run(extract_text(PDF_B64, "application/pdf"))

    def test_invalid_base64_is_rejected(self) -> None:
        with self.assertRaises(DocumentParseError):
            asyncio.run(extract_text("not base64!!", "application/pdf"))

    def test_empty_payload_is_rejected(self) -> None:
        with self.assertRaises(DocumentParseError):
            asyncio.run(extract_text("", "application/pdf"))

    def test_unsupported_mime_type_is_rejected(self) -> None:
        with patch("omnichat.documents.PdfReader") as reader_cls:
            with self.assertRaises(DocumentParseError):
                asyncio.run(extract_text(PDF_B64, "text/plain"))
        reader_cls.assert_not_called()

    def test_supported_document_types(self) -> None:
        self.assertTrue(is_supported_document("application/pdf"))
        self.assertFalse(is_supported_document("image/png"))


class ExtractRealPdfTests(unittest.TestCase):
    def test_pages_of_a_real_pdf_are_read_in_order(self) -> None:
        text = asyncio.run(extract_text(build_pdf_base64("Revenue grew ten percent", "Costs fell"), "application/pdf"))

        self.assertIn("Revenue grew ten percent", text)
        self.assertIn("Costs fell", text)
        self.assertLess(text.index("Revenue"), text.index("Costs"))

    def test_non_pdf_bytes_are_rejected(self) -> None:
        garbage = base64.b64encode(b"this is plainly not a pdf document").decode("ascii")
        with self.assertRaises(DocumentParseError):
            asyncio.run(extract_text(garbage, "application/pdf"))


if __name__ == "__main__":
    unittest.main()
