"""
Unit tests for image filename classification, normalization and matching.
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from travelcms.core.image_matching import (
    ImageKind,
    classify,
    extract_place_token,
    find_matching_image,
    normalize,
)


class TestClassify(unittest.TestCase):
    """Gallery / named / unrecognized dispatch."""

    def test_gallery_name(self):
        result = classify("imgi_07_12.webp")
        self.assertEqual(result.kind, ImageKind.GALLERY)
        self.assertEqual(result.sequence, 7)
        self.assertIsNone(result.place_token)

    def test_prefixed_place_name(self):
        result = classify("imgi_07_goa.webp")
        self.assertEqual(result.kind, ImageKind.NAMED)
        self.assertEqual(result.place_token, "goa")
        self.assertIsNone(result.sequence)

    def test_plain_place_name(self):
        result = classify("kerala.webp")
        self.assertEqual(result.kind, ImageKind.NAMED)
        self.assertEqual(result.place_token, "kerala")

    def test_unsupported_extension_is_unrecognized(self):
        self.assertEqual(classify("notes.txt").kind, ImageKind.UNRECOGNIZED)
        self.assertEqual(classify("Goa.jpg").kind, ImageKind.UNRECOGNIZED)

    def test_extension_case_is_ignored(self):
        self.assertEqual(classify("imgi_01_02.WEBP").kind, ImageKind.GALLERY)
        self.assertEqual(classify("Ladakh.WebP").kind, ImageKind.NAMED)

    def test_edge_names_are_unrecognized(self):
        for name in ["", ".webp", "webp", "imgi_07_ .webp", "imgi_07_.webp"]:
            with self.subTest(name=name):
                self.assertEqual(classify(name).kind, ImageKind.UNRECOGNIZED)

    def test_gallery_never_named(self):
        """Two numeric groups always win over the place patterns."""
        for name in ["imgi_1_2.webp", "photo_001_999.webp", "a_0_0.webp", "img2_07_12.webp",
                     "my_photos_01_02.webp", "IMG-1_01_02.webp"]:
            with self.subTest(name=name):
                result = classify(name)
                self.assertEqual(result.kind, ImageKind.GALLERY)
                self.assertIsNone(extract_place_token(name))

    def test_gallery_prefix_may_hold_digits_and_underscores(self):
        self.assertEqual(classify("img2_07_12.webp").sequence, 7)
        self.assertEqual(classify("my_photos_01_02.webp").sequence, 1)

    def test_blank_prefixed_token_is_not_read_as_plain_name(self):
        self.assertIsNone(extract_place_token("imgi_07_.webp"))

    def test_multi_word_token(self):
        self.assertEqual(extract_place_token("imgi_03_Goa Beaches.webp"), "Goa Beaches")
        self.assertEqual(extract_place_token("imgi_03_12_b.webp"), "12_b")

    def test_classify_is_total(self):
        names = ["imgi_07_12.webp", "imgi_07_goa.webp", "kerala.webp", "notes.txt",
                 "weird..webp", "a.b.webp", "_.webp", "123.webp"]
        for name in names:
            with self.subTest(name=name):
                self.assertIn(classify(name).kind, set(ImageKind))
                self.assertEqual(classify(name), classify(name))

    def test_stem(self):
        self.assertEqual(classify("imgi_02_Kerala.webp").stem, "imgi_02_Kerala")


class TestNormalize(unittest.TestCase):

    def test_punctuation_and_case(self):
        self.assertEqual(normalize("Goa, Beaches!"), "goabeaches")
        self.assertEqual(normalize("goabeaches"), "goabeaches")
        self.assertEqual(normalize("goa-beaches"), "goabeaches")

    def test_idempotent(self):
        for value in ["Goa, Beaches!", "  Kerala  ", "Jammu & Kashmir", "", "123 ABC", "Café"]:
            with self.subTest(value=value):
                self.assertEqual(normalize(normalize(value)), normalize(value))

    def test_none_and_punctuation_only(self):
        self.assertEqual(normalize(None), "")
        self.assertEqual(normalize("!!! ---"), "")


class TestFindMatchingImage(unittest.TestCase):

    def setUp(self):
        self.images = [classify(name) for name in [
            "imgi_01_05.webp",
            "imgi_02_Kerala.webp",
            "Goa.webp",
            "imgi_04_Kerala.webp",
            "notes.txt",
        ]]

    def test_token_match_is_case_and_punctuation_insensitive(self):
        result = find_matching_image("KERALA!", self.images)
        self.assertTrue(result.matched)
        self.assertEqual(result.filename, "imgi_02_Kerala.webp")
        self.assertEqual(result.matched_by, "token")

    def test_first_match_wins(self):
        self.assertEqual(find_matching_image("kerala", self.images).filename, "imgi_02_Kerala.webp")

    def test_plain_file_matches(self):
        self.assertEqual(find_matching_image("Goa", self.images).filename, "Goa.webp")

    def test_stem_fallback(self):
        """A destination literally named like a prefixed file stem still matches."""
        result = find_matching_image("imgi 02 Kerala", self.images)
        self.assertEqual(result.filename, "imgi_02_Kerala.webp")
        self.assertEqual(result.matched_by, "stem")

    def test_gallery_images_are_not_candidates(self):
        self.assertFalse(find_matching_image("imgi_01_05", self.images).matched)

    def test_no_match(self):
        result = find_matching_image("Manali", self.images)
        self.assertFalse(result.matched)
        self.assertIsNone(result.matched_by)

    def test_empty_normalized_name_never_matches(self):
        images = self.images + [classify("!!!.webp")]
        for name in [None, "", "!!!", " - "]:
            with self.subTest(name=name):
                self.assertFalse(find_matching_image(name, images).matched)


if __name__ == '__main__':
    unittest.main()
