import unittest

from sanitize import strip_markup


class StripMarkupTests(unittest.TestCase):
    def test_removes_tags_and_whitespace(self):
        self.assertEqual(strip_markup("  <b>bob</b> "), "bob")
        self.assertEqual(strip_markup('<a href="x">link</a> text'), "link text")

    def test_keeps_comparisons_that_look_like_tags(self):
        self.assertEqual(strip_markup("a < b and c > d"), "a < b and c > d")
        self.assertEqual(strip_markup("1<2 and 3>2"), "1<2 and 3>2")

    def test_drops_script_and_style_bodies(self):
        self.assertEqual(strip_markup("hi<script>alert('x')</script>"), "hi")
        self.assertEqual(strip_markup("<STYLE type='text/css'>p {}</STYLE>ok"), "ok")

    def test_non_strings_become_none(self):
        self.assertIsNone(strip_markup(None))
        self.assertIsNone(strip_markup(42))


if __name__ == "__main__":
    unittest.main()
