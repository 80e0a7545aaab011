"""
Lexer tests for Kaleidoscope.

Author: xwest
"""

import unittest
import sys
import os
import tempfile

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from kaleidoscope.lexer import Lexer, LexerError, TokenType, tokenize_string, tokenize_file


FIB_SOURCE = """
# Compute the x'th fibonacci number.
def fib(x)
  if x < 3 then
    1
  else
    fib(x-1)+fib(x-2)

# This expression will compute the 40th number.
fib(40)
"""


def kinds(source):
    """Location-free view of the token stream, without the EOF token."""
    return [token.kind() for token in tokenize_string(source)[:-1]]


class TestLexer(unittest.TestCase):
    """Tokenization of single tokens and whole buffers."""

    def test_fibonacci_program(self):
        """Keywords, identifiers, numbers and symbols in a realistic buffer."""
        I, N, S = TokenType.IDENTIFIER, TokenType.NUMBER, TokenType.SYMBOL
        expected = [
            (TokenType.DEF, None), (I, "fib"), (S, "("), (I, "x"), (S, ")"),
            (I, "if"), (I, "x"), (S, "<"), (N, 3.0), (I, "then"),
            (N, 1.0),
            (I, "else"),
            (I, "fib"), (S, "("), (I, "x"), (S, "-"), (N, 1.0), (S, ")"),
            (S, "+"),
            (I, "fib"), (S, "("), (I, "x"), (S, "-"), (N, 2.0), (S, ")"),
            (I, "fib"), (S, "("), (N, 40.0), (S, ")"),
        ]
        self.assertEqual(kinds(FIB_SOURCE), expected)

    def test_keywords(self):
        self.assertEqual(kinds("def extern"), [(TokenType.DEF, None), (TokenType.EXTERN, None)])

    def test_keyword_flag(self):
        tokens = tokenize_string("def extern fib 1 ;")
        self.assertEqual([t.is_keyword for t in tokens], [True, True, False, False, False, False])

    def test_keyword_prefix_is_identifier(self):
        """Keywords only match the whole alphanumeric run."""
        self.assertEqual(kinds("define externs def1"), [
            (TokenType.IDENTIFIER, "define"),
            (TokenType.IDENTIFIER, "externs"),
            (TokenType.IDENTIFIER, "def1"),
        ])

    def test_identifier_stops_at_non_alphanumeric(self):
        self.assertEqual(kinds("ab_c"), [
            (TokenType.IDENTIFIER, "ab"),
            (TokenType.SYMBOL, "_"),
            (TokenType.IDENTIFIER, "c"),
        ])

    def test_numbers(self):
        self.assertEqual(kinds("42 3.25 .5 7."), [
            (TokenType.NUMBER, 42.0),
            (TokenType.NUMBER, 3.25),
            (TokenType.NUMBER, 0.5),
            (TokenType.NUMBER, 7.0),
        ])

    def test_number_followed_by_identifier(self):
        self.assertEqual(kinds("2x"), [(TokenType.NUMBER, 2.0), (TokenType.IDENTIFIER, "x")])

    def test_malformed_number(self):
        with self.assertRaises(LexerError) as ctx:
            tokenize_string("1 + 1.2.3")

        error = ctx.exception
        self.assertEqual(error.code, "L003")
        self.assertEqual(error.lexeme, "1.2.3")
        self.assertEqual(error.location.column, 5)
        self.assertIn("1.2.3", str(error))

    def test_lone_dot_is_malformed(self):
        with self.assertRaises(LexerError):
            tokenize_string(". ")

    def test_any_other_character_is_a_symbol(self):
        self.assertEqual(kinds("; , @ é"), [
            (TokenType.SYMBOL, ";"),
            (TokenType.SYMBOL, ","),
            (TokenType.SYMBOL, "@"),
            (TokenType.SYMBOL, "é"),
        ])

    def test_comment_to_end_of_line(self):
        self.assertEqual(kinds("a # b c\nd"), [(TokenType.IDENTIFIER, "a"), (TokenType.IDENTIFIER, "d")])

    def test_comment_at_end_of_buffer(self):
        self.assertEqual(kinds("a # trailing"), [(TokenType.IDENTIFIER, "a")])

    def test_empty_and_blank_buffers(self):
        for source in ["", "   \n\t ", "# only a comment", "#\n#\n"]:
            with self.subTest(source=source):
                tokens = tokenize_string(source)
                self.assertEqual(len(tokens), 1)
                self.assertEqual(tokens[0].type, TokenType.EOF)

    def test_eof_is_sticky(self):
        lexer = Lexer("x")
        self.assertEqual(lexer.next_token().type, TokenType.IDENTIFIER)
        for _ in range(3):
            self.assertTrue(lexer.next_token().is_eof)

    def test_iteration_is_lazy_and_stops_at_eof(self):
        lexer = Lexer("a b c")
        iterator = iter(lexer)
        self.assertEqual(next(iterator).value, "a")
        # Only the first token has been scanned
        self.assertEqual(lexer.pos, 1)
        self.assertEqual([t.value for t in iterator], ["b", "c"])

    def test_locations(self):
        tokens = tokenize_string("def f(x)\n  x * 2", "prog.ks")
        by_lexeme = {t.lexeme: t.location for t in tokens if t.lexeme}
        self.assertEqual((by_lexeme["def"].line, by_lexeme["def"].column), (1, 1))
        self.assertEqual((by_lexeme["f"].line, by_lexeme["f"].column), (1, 5))
        self.assertEqual((by_lexeme["*"].line, by_lexeme["*"].column), (2, 5))
        self.assertEqual(by_lexeme["2"].offset, 15)
        self.assertEqual(str(by_lexeme["def"]), "prog.ks:1:1")

    def test_tokenize_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "fib.ks")
            with open(path, 'w', encoding='utf-8') as f:
                f.write(FIB_SOURCE)

            tokens = tokenize_file(path)

        self.assertEqual([t.kind() for t in tokens], [t.kind() for t in tokenize_string(FIB_SOURCE)])
        self.assertTrue(tokens[-1].is_eof)
        self.assertEqual(tokens[0].location.filename, path)


class TestLexerProperties(unittest.TestCase):
    """Properties that hold for any buffer."""

    SOURCES = [
        "def test(x) (1+2+x)*(x+(1+2))",
        "extern sin(a); sin(1.5) < 2",
        "f(a, b, c) - g() * 4",
        FIB_SOURCE,
    ]

    def test_rescanning_is_idempotent(self):
        for source in self.SOURCES:
            with self.subTest(source=source):
                self.assertEqual(tokenize_string(source), tokenize_string(source))

    def test_comments_and_whitespace_are_transparent(self):
        for source in self.SOURCES:
            with self.subTest(source=source):
                tokens = tokenize_string(source)[:-1]
                padded = "  # leading comment\n" + "\t # note\n  ".join(t.lexeme for t in tokens) + "\n\n"
                self.assertEqual(kinds(padded), [t.kind() for t in tokens])


if __name__ == '__main__':
    unittest.main()
