import os
import sys
import unittest
from unittest.mock import MagicMock, patch

import requests

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from travelcms.core.sanity_api import (
    SanityAPI,
    SanityAPIError,
    SanityAuthenticationError,
    SanityNetworkError,
    SanityNotFoundError,
    SanityPermissionError,
    SanityRateLimitError,
    image_reference,
)

BASE_URL = "https://proj.api.sanity.io/v2024-01-01"


def _response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    return response


class TestClientSetup(unittest.TestCase):

    def test_base_url_and_auth_header(self):
        api = SanityAPI("proj", "production", token="sk-test")
        self.assertEqual(api.base_url, BASE_URL)
        self.assertEqual(api.session.headers["Authorization"], "Bearer sk-test")

    def test_cdn_only_without_token(self):
        self.assertEqual(
            SanityAPI("proj", "production", use_cdn=True).base_url,
            "https://proj.apicdn.sanity.io/v2024-01-01"
        )
        self.assertEqual(SanityAPI("proj", "production", token="t", use_cdn=True).base_url, BASE_URL)

    def test_version_prefix_is_accepted(self):
        self.assertEqual(SanityAPI("proj", "production", api_version="v2021-10-21").api_version, "2021-10-21")

    def test_no_auth_header_without_token(self):
        self.assertNotIn("Authorization", SanityAPI("proj", "production").session.headers)

    def test_requires_project_and_dataset(self):
        with self.assertRaises(ValueError):
            SanityAPI("", "production")
        with self.assertRaises(ValueError):
            SanityAPI("proj", "")


class TestQuery(unittest.TestCase):
    def setUp(self):
        self.api = SanityAPI("proj", "production", token="sk-test")

    @patch('requests.Session.request')
    def test_query_encodes_params(self, mock_request):
        mock_request.return_value = _response(body={"ms": 3, "result": [{"_id": "a"}]})

        result = self.api.query('*[_id == $id]', {"id": "a"})

        self.assertEqual(result, [{"_id": "a"}])
        mock_request.assert_called_with(
            "GET",
            f"{BASE_URL}/data/query/production",
            params={"query": '*[_id == $id]', "$id": '"a"'},
            timeout=30
        )

    @patch('requests.Session.request')
    def test_null_result(self, mock_request):
        mock_request.return_value = _response(body={"result": None})
        self.assertIsNone(self.api.query('*[_id == "missing"][0]'))

    @patch('requests.Session.request')
    def test_long_query_is_posted(self, mock_request):
        mock_request.return_value = _response(body={"result": []})
        groq = "*[" + " " * 9000 + "]"

        self.api.query(groq, {"slug": "goa"})

        mock_request.assert_called_with(
            "POST",
            f"{BASE_URL}/data/query/production",
            json={"query": groq, "params": {"slug": "goa"}},
            timeout=30
        )

    @patch('requests.Session.request')
    def test_missing_result_is_an_error(self, mock_request):
        mock_request.return_value = _response(body={"unexpected": True})
        with self.assertRaises(SanityAPIError):
            self.api.query("*")

    @patch('requests.Session.request')
    def test_invalid_json(self, mock_request):
        response = _response()
        response.json.side_effect = ValueError("Expecting value")
        mock_request.return_value = response
        with self.assertRaises(SanityAPIError):
            self.api.query("*")

    @patch('requests.Session.request')
    def test_request_count(self, mock_request):
        mock_request.return_value = _response(body={"result": []})
        self.api.query("*")
        self.api.query("*")
        self.assertEqual(self.api.get_request_count(), 2)


class TestErrorMapping(unittest.TestCase):
    def setUp(self):
        self.api = SanityAPI("proj", "production", token="sk-test")

    @patch('requests.Session.request')
    def test_status_codes(self, mock_request):
        cases = {
            401: SanityAuthenticationError,
            403: SanityPermissionError,
            404: SanityNotFoundError,
            429: SanityRateLimitError,
            500: SanityAPIError,
        }
        for status, error_cls in cases.items():
            with self.subTest(status=status):
                mock_request.return_value = _response(status, {"error": {"description": "boom"}})
                with self.assertRaises(error_cls) as ctx:
                    self.api.query("*")
                self.assertIn("boom", str(ctx.exception))

    @patch('requests.Session.request')
    def test_plain_error_body(self, mock_request):
        mock_request.return_value = _response(403, {"error": "Forbidden", "message": "Insufficient permissions"})
        with self.assertRaises(SanityPermissionError) as ctx:
            self.api.query("*")
        self.assertIn("Insufficient permissions", str(ctx.exception))

    @patch('requests.Session.request')
    def test_connection_error(self, mock_request):
        mock_request.side_effect = requests.exceptions.ConnectionError("Network down")
        with self.assertRaises(SanityNetworkError):
            self.api.query("*")

    @patch('requests.Session.request')
    def test_timeout(self, mock_request):
        mock_request.side_effect = requests.exceptions.Timeout("read timed out")
        with self.assertRaises(SanityNetworkError):
            self.api.query("*")


class TestWrites(unittest.TestCase):
    def setUp(self):
        self.api = SanityAPI("proj", "production", token="sk-test")

    @patch('requests.Session.request')
    def test_upload_image(self, mock_request):
        mock_request.return_value = _response(body={"document": {"_id": "image-abc-10x10-webp"}})

        asset = self.api.assets.upload_image(b"bytes", "goa.webp", "image/webp")

        self.assertEqual(asset["_id"], "image-abc-10x10-webp")
        mock_request.assert_called_with(
            "POST",
            f"{BASE_URL}/assets/images/production",
            params={"filename": "goa.webp"},
            data=b"bytes",
            headers={"Content-Type": "image/webp"},
            timeout=30
        )

    @patch('requests.Session.request')
    def test_upload_without_document(self, mock_request):
        mock_request.return_value = _response(body={})
        with self.assertRaises(SanityAPIError):
            self.api.assets.upload_image(b"bytes", "goa.webp", "image/webp")

    @patch('requests.Session.request')
    def test_create(self, mock_request):
        mock_request.return_value = _response(body={
            "transactionId": "tx1",
            "results": [{"id": "gallery-1", "operation": "create"}],
        })
        doc = {"_type": "gallery", "title": "Gallery Image 1"}

        self.assertEqual(self.api.documents.create(doc), "gallery-1")
        mock_request.assert_called_with(
            "POST",
            f"{BASE_URL}/data/mutate/production",
            params={"returnIds": "true", "visibility": "sync"},
            json={"mutations": [{"create": doc}]},
            timeout=30
        )

    @patch('requests.Session.request')
    def test_patch_set(self, mock_request):
        mock_request.return_value = _response(body={"transactionId": "tx2", "results": []})
        value = image_reference("image-abc")

        self.assertEqual(self.api.documents.patch("dest-goa", set={"mainImage": value}), "dest-goa")
        mock_request.assert_called_with(
            "POST",
            f"{BASE_URL}/data/mutate/production",
            params={"returnIds": "true", "visibility": "sync"},
            json={"mutations": [{"patch": {"id": "dest-goa", "set": {"mainImage": value}}}]},
            timeout=30
        )

    def test_patch_needs_fields(self):
        with self.assertRaises(ValueError):
            self.api.documents.patch("dest-goa")

    def test_create_needs_type(self):
        with self.assertRaises(ValueError):
            self.api.documents.create({"title": "x"})

    @patch('requests.Session.request')
    def test_writes_without_token_send_nothing(self, mock_request):
        api = SanityAPI("proj", "production")
        with self.assertRaises(SanityAuthenticationError):
            api.assets.upload_image(b"bytes", "goa.webp", "image/webp")
        with self.assertRaises(SanityAuthenticationError):
            api.documents.create({"_type": "gallery"})
        mock_request.assert_not_called()


if __name__ == '__main__':
    unittest.main()
