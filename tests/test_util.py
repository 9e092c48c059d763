import unittest

from fssh.util import (
    UNIT_GB,
    UNIT_KB,
    UNIT_MB,
    UNIT_PB,
    UNIT_TB,
    clean,
    display_size,
    is_glob_pattern,
    join,
    tokenize,
)


class TestTokenize(unittest.TestCase):
    def test_whitespace(self):
        self.assertEqual(tokenize("a b c"), ["a", "b", "c"])
        self.assertEqual(tokenize("a  b c"), ["a", "b", "c"])
        self.assertEqual(tokenize("   "), [])

    def test_quotes(self):
        self.assertEqual(tokenize("a 'b' \"c\""), ["a", "b", "c"])
        self.assertEqual(tokenize("cp 'my file' dst"), ["cp", "my file", "dst"])

    def test_unbalanced_quote_falls_back(self):
        self.assertEqual(tokenize("cat 'oops"), ["cat", "'oops"])


class TestPaths(unittest.TestCase):
    def test_clean(self):
        self.assertEqual(clean(""), ".")
        self.assertEqual(clean("a//b/./c/.."), "a/b")
        self.assertEqual(clean("//a"), "/a")
        self.assertEqual(clean("a/.."), ".")

    def test_join(self):
        self.assertEqual(join(".", "a"), "a")
        self.assertEqual(join("a", "", "b/"), "a/b")
        self.assertEqual(join("a", ".."), ".")
        self.assertEqual(join(), "")

    def test_is_glob_pattern(self):
        self.assertFalse(is_glob_pattern("abc"))
        for pattern in ["*.txt", "**/*.txt", "?.txt", "[a-z].txt", "[].txt"]:
            self.assertTrue(is_glob_pattern(pattern), pattern)


class TestDisplaySize(unittest.TestCase):
    def test_units(self):
        cases = [
            (1, "   1B"),
            (UNIT_KB, "   1K"),
            (9999 * UNIT_KB, "  10M"),
            (UNIT_MB, "   1M"),
            (UNIT_GB, "   1G"),
            (UNIT_TB, "   1T"),
            (UNIT_PB, "   1P"),
        ]
        for size, want in cases:
            self.assertEqual(display_size(size), want, size)

    def test_rounds_half_up(self):
        self.assertEqual(display_size(UNIT_KB + UNIT_KB // 2), "   2K")
        self.assertEqual(display_size(UNIT_KB + UNIT_KB // 2 - 1), "   1K")


if __name__ == '__main__':
    unittest.main()
