"""
Turns MYCS source text into a list of tokens.

Rules are tried in a fixed priority order at the current offset and the
first rule that matches wins; there is no longest-match arbitration between
rules. Whitespace and comments are matched and dropped.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from mycs.mycs_errors import LexError, debug


class TokenKind(Enum):
    WHITESPACE = "whitespace"
    COMMENT = "comment"
    KEYWORD = "keyword"
    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"
    COMPARISON = "comparison"
    LOGICAL = "logical"
    OPERATOR = "operator"
    ASSIGN = "assign"
    SEPARATOR = "separator"
    LPAREN = "lparen"
    RPAREN = "rparen"
    LBRACE = "lbrace"
    RBRACE = "rbrace"
    DOT = "dot"
    COMMA = "comma"


KEYWORDS = (
    "class", "function", "if", "else", "while", "for", "return", "import", "new",
    "try", "catch", "throw", "finally", "public", "private", "protected",
    "virtual", "override", "extends", "this", "super", "interface", "implements",
    "break", "continue", "true", "false", "null",
)

# Order matters: comparison must precede assignment so that '==' is one token,
# and '//' comments must precede the '/' operator.
TOKEN_RULES = [
    (TokenKind.WHITESPACE, r"\s+"),
    (TokenKind.COMMENT, r"//[^\n]*"),
    (TokenKind.KEYWORD, r"\b(?:" + "|".join(KEYWORDS) + r")\b"),
    (TokenKind.IDENTIFIER, r"\b[_a-zA-Z][_a-zA-Z0-9]*\b"),
    (TokenKind.NUMBER, r"\b\d+(?:\.\d+)?\b"),
    (TokenKind.STRING, r'"(?:\\.|[^"\\])*"'),
    (TokenKind.COMPARISON, r"==|!=|<=|>=|<|>"),
    (TokenKind.LOGICAL, r"&&|\|\||!"),
    (TokenKind.OPERATOR, r"[+\-*/%]"),
    (TokenKind.ASSIGN, r"="),
    (TokenKind.SEPARATOR, r";"),
    (TokenKind.LPAREN, r"\("),
    (TokenKind.RPAREN, r"\)"),
    (TokenKind.LBRACE, r"\{"),
    (TokenKind.RBRACE, r"\}"),
    (TokenKind.DOT, r"\."),
    (TokenKind.COMMA, r","),
]

_COMPILED_RULES = [(kind, re.compile(pattern)) for kind, pattern in TOKEN_RULES]
_SKIPPED = (TokenKind.WHITESPACE, TokenKind.COMMENT)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line: int
    column: int = 1

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, line={self.line})"


class Lexer:
    """Tokenizes a whole source string at once."""

    def tokenize(self, source: str) -> List[Token]:
        tokens: List[Token] = []
        offset = 0
        line = 1
        line_start = 0
        while offset < len(source):
            for kind, pattern in _COMPILED_RULES:
                match = pattern.match(source, offset)
                if match is None or not match.group(0):
                    continue
                text = match.group(0)
                if kind not in _SKIPPED:
                    token = Token(kind, text, line, offset - line_start + 1)
                    tokens.append(token)
                    debug("Tokenized:", kind.name, repr(text))
                newlines = text.count("\n")
                if newlines:
                    line += newlines
                    line_start = offset + text.rfind("\n") + 1
                offset = match.end()
                break
            else:
                raise LexError(source[offset], line, offset - line_start + 1, offset)
        return tokens


def tokenize(source: str) -> List[Token]:
    return Lexer().tokenize(source)
