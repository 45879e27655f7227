import unittest

from utils.cors import _normalize_methods, _parse_origins, build_cors_headers

from megaplan_fake import DummyRequest


class CorsTests(unittest.TestCase):
    def test_parse_origins_strips_trailing_slash(self):
        self.assertEqual(
            _parse_origins("https://likhtman.megaplan.ru/, https://app.example.com"),
            ["https://likhtman.megaplan.ru", "https://app.example.com"],
        )

    def test_wildcard_wins(self):
        self.assertEqual(_parse_origins("https://a.example.com,*"), ["*"])

    def test_wildcard_allows_any_origin(self):
        req = DummyRequest("GET", headers={"Origin": "https://anything.example.com"})
        headers = build_cors_headers(req, ["GET"], origins=["*"])
        self.assertEqual(headers["Access-Control-Allow-Origin"], "*")
        self.assertEqual(headers["Access-Control-Allow-Methods"], "GET, OPTIONS")
        self.assertEqual(headers["Access-Control-Expose-Headers"], "Content-Disposition")

    def test_explicit_list_echoes_matching_origin(self):
        req = DummyRequest("GET", headers={"Origin": "https://likhtman.megaplan.ru/"})
        headers = build_cors_headers(req, ["GET"], origins=["https://likhtman.megaplan.ru"])
        self.assertEqual(headers["Access-Control-Allow-Origin"], "https://likhtman.megaplan.ru")

    def test_unknown_origin_gets_no_allow_headers(self):
        req = DummyRequest("GET", headers={"Origin": "https://evil.example.com"})
        headers = build_cors_headers(req, ["GET"], origins=["https://likhtman.megaplan.ru"])
        self.assertEqual(headers, {"Vary": "Origin"})

    def test_requested_headers_are_merged(self):
        req = DummyRequest("OPTIONS", headers={"Access-Control-Request-Headers": "X-Trace, content-type"})
        headers = build_cors_headers(req, ["POST"], origins=["*"])
        self.assertEqual(headers["Access-Control-Allow-Headers"], "Content-Type, Authorization, X-Trace")

    def test_methods_are_deduplicated_and_include_options(self):
        self.assertEqual(_normalize_methods(["get", "POST", "GET"]), ["GET", "POST", "OPTIONS"])
        self.assertEqual(_normalize_methods(["OPTIONS", "POST"]), ["OPTIONS", "POST"])


if __name__ == "__main__":
    unittest.main()
