from mycs.mycs_runtime import ScriptRunner, ExecutionResult
from mycs.mycs_interpreter import Interpreter, EXTENSION
from mycs.mycs_lexer import Lexer, Token, TokenKind, tokenize
from mycs.mycs_parser import Parser, parse
from mycs.mycs_datatypes import ExecutionContext

__all__ = [
    "ScriptRunner",
    "ExecutionResult",
    "Interpreter",
    "EXTENSION",
    "Lexer",
    "Token",
    "TokenKind",
    "tokenize",
    "Parser",
    "parse",
    "ExecutionContext",
]
