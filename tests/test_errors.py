import unittest
from types import SimpleNamespace

from omnichat.errors import (
    DOCUMENT_PARSE_MESSAGE,
    GENERIC_PREFIX,
    QUOTA_OR_BILLING_MESSAGE,
    UNCONFIGURED_MESSAGE,
    ClassifiedError,
    DocumentParseError,
    ErrorKind,
    UnconfiguredError,
    classify_error,
)


class BillingProblem(Exception):
    pass


class ClassifyErrorTests(unittest.TestCase):
    def test_quota_in_exception_message(self) -> None:
        result = classify_error(RuntimeError("429 RESOURCE_EXHAUSTED: Quota exceeded for metric"))
        self.assertEqual(ErrorKind.QUOTA_OR_BILLING, result.kind)
        self.assertEqual(QUOTA_OR_BILLING_MESSAGE, result.render())

    def test_billing_in_exception_type_name(self) -> None:
        self.assertEqual(ErrorKind.QUOTA_OR_BILLING, classify_error(BillingProblem("nope")).kind)

    def test_plain_string_and_dict_errors(self) -> None:
        self.assertEqual(ErrorKind.QUOTA_OR_BILLING, classify_error("billing account disabled").kind)
        self.assertEqual(ErrorKind.QUOTA_OR_BILLING, classify_error({"name": "QuotaFailure"}).kind)

        generic = classify_error({"message": "bad gateway"})
        self.assertEqual(ErrorKind.GENERIC, generic.kind)
        self.assertEqual(f"{GENERIC_PREFIX} bad gateway", generic.message)

    def test_object_without_message_is_generic(self) -> None:
        result = classify_error(SimpleNamespace())
        self.assertEqual(ErrorKind.GENERIC, result.kind)
        self.assertEqual(f"{GENERIC_PREFIX} Please try again.", result.message)

    def test_message_attribute_is_preferred(self) -> None:
        result = classify_error(SimpleNamespace(message="  upstream reset  "))
        self.assertEqual("upstream reset", result.detail)

    def test_unconfigured_and_document_errors(self) -> None:
        unconfigured = classify_error(UnconfiguredError("GEMINI_API_KEY"))
        self.assertEqual(ErrorKind.UNCONFIGURED, unconfigured.kind)
        self.assertEqual(UNCONFIGURED_MESSAGE, unconfigured.render("ignored prefix"))

        document = classify_error(DocumentParseError("broken xref"))
        self.assertEqual(ErrorKind.DOCUMENT_PARSE, document.kind)
        self.assertEqual(DOCUMENT_PARSE_MESSAGE, document.render("ignored prefix"))


class RenderTests(unittest.TestCase):
    def test_generic_render_uses_given_prefix(self) -> None:
        error = ClassifiedError(ErrorKind.GENERIC, "", "connection reset")
        self.assertEqual(
            "Sorry, I couldn't regenerate the response. connection reset",
            error.render("Sorry, I couldn't regenerate the response."),
        )

    def test_generic_render_without_detail_uses_fallback(self) -> None:
        self.assertEqual(f"{GENERIC_PREFIX} Please try again.", ClassifiedError(ErrorKind.GENERIC, "").render())


if __name__ == "__main__":
    unittest.main()
