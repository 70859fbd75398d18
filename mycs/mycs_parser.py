"""
Recursive-descent parser for MYCS.

The parser works on the token list produced by the lexer with one token of
lookahead (`self.current`) plus a one-token peek (`self._peek()`). It stops
at the first structural error by raising ParseError; no partial tree is
ever returned.
"""
from typing import List, Optional

from mycs.mycs_ast import (
    Program, Block, Assignment, MemberAssignment, ExpressionStatement,
    If, While, For, Break, Continue, FunctionDecl, Return, Print,
    ClassDecl, FieldDecl, MethodDecl, InterfaceDecl, MethodSignature,
    TryCatchFinally, Throw, Import,
    Expression, Statement, NumberLiteral, StringLiteral, BooleanLiteral, NullLiteral,
    Variable, UnaryOp, BinaryOp, Call, New, MemberAccess, MethodCall, SuperCall,
)
from mycs.mycs_errors import ParseError
from mycs.mycs_lexer import Token, TokenKind, tokenize

ACCESS_MODIFIERS = ("public", "private", "protected")

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}


def unescape(text: str) -> str:
    """Strips the quotes of a string lexeme and decodes its escapes."""
    body = text[1:-1]
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            out.append(_ESCAPES.get(nxt, "\\" + nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.position = 0

    # -----------------------------------------------------------------
    # Token helpers
    # -----------------------------------------------------------------

    @property
    def current(self) -> Optional[Token]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def _peek(self) -> Optional[Token]:
        if self.position + 1 < len(self.tokens):
            return self.tokens[self.position + 1]
        return None

    def _advance(self) -> Token:
        token = self.current
        if token is None:
            raise ParseError("a token", None)
        self.position += 1
        return token

    def _check(self, text: str) -> bool:
        tok = self.current
        return tok is not None and tok.text == text and tok.kind is not TokenKind.STRING

    def _expect(self, text: str) -> Token:
        if not self._check(text):
            raise ParseError(f"'{text}'", self.current)
        return self._advance()

    def _expect_identifier(self, what: str = "identifier") -> str:
        tok = self.current
        if tok is None or tok.kind is not TokenKind.IDENTIFIER:
            raise ParseError(what, tok)
        self._advance()
        return tok.text

    def _line(self) -> int:
        tok = self.current
        if tok is not None:
            return tok.line
        return self.tokens[-1].line if self.tokens else 0

    def _skip_separators(self):
        while self._check(";"):
            self._advance()

    def _end_simple_statement(self):
        if self._check(";"):
            self._advance()

    # -----------------------------------------------------------------
    # Statements
    # -----------------------------------------------------------------

    def parse_program(self) -> Program:
        statements = []
        self._skip_separators()
        while self.current is not None:
            statements.append(self.parse_statement())
            self._skip_separators()
        return Program(statements, line=1)

    def parse_statement(self) -> Statement:
        tok = self.current
        if tok is None:
            raise ParseError("a statement", None)
        if tok.kind is TokenKind.KEYWORD:
            match tok.text:
                case "class":
                    return self._parse_class()
                case "interface":
                    return self._parse_interface()
                case "function":
                    return self._parse_function()
                case "if":
                    return self._parse_if()
                case "while":
                    return self._parse_while()
                case "for":
                    return self._parse_for()
                case "return":
                    return self._parse_return()
                case "try":
                    return self._parse_try()
                case "throw":
                    return self._parse_throw()
                case "import":
                    return self._parse_import()
                case "break":
                    self._advance()
                    self._end_simple_statement()
                    return Break(line=tok.line)
                case "continue":
                    self._advance()
                    self._end_simple_statement()
                    return Continue(line=tok.line)
                case "this" | "super" | "new" | "true" | "false" | "null":
                    pass
                case _:
                    raise ParseError("a statement", tok)
        if tok.kind is TokenKind.IDENTIFIER and tok.text == "print":
            nxt = self._peek()
            if nxt is not None and nxt.text not in ("(", "=", "."):
                self._advance()
                value = self.parse_expression()
                self._end_simple_statement()
                return Print(value, line=tok.line)
        stmt = self._parse_simple_statement()
        self._end_simple_statement()
        return stmt

    def _parse_simple_statement(self) -> Statement:
        """Assignment, member assignment or expression statement, without a terminator."""
        tok = self.current
        if tok is not None and tok.kind is TokenKind.IDENTIFIER:
            nxt = self._peek()
            if nxt is not None and nxt.kind is TokenKind.ASSIGN:
                self._advance()
                self._advance()
                value = self.parse_expression()
                return Assignment(tok.text, value, line=tok.line)
        line = self._line()
        expr = self.parse_expression()
        if isinstance(expr, MemberAccess) and self.current is not None and self.current.kind is TokenKind.ASSIGN:
            self._advance()
            value = self.parse_expression()
            return MemberAssignment(expr.target, expr.member, value, line=line)
        return ExpressionStatement(expr, line=line)

    def parse_block(self) -> Block:
        line = self._line()
        if self._check("{"):
            self._advance()
            statements = []
            self._skip_separators()
            while self.current is not None and not self._check("}"):
                statements.append(self.parse_statement())
                self._skip_separators()
            self._expect("}")
            return Block(statements, line=line)
        # A single statement without braces.
        return Block([self.parse_statement()], line=line)

    def _parse_if(self) -> If:
        line = self._advance().line
        self._expect("(")
        condition = self.parse_expression()
        self._expect(")")
        then_branch = self.parse_block()
        else_branch = None
        if self._check("else"):
            self._advance()
            else_branch = self.parse_block()
        return If(condition, then_branch, else_branch, line=line)

    def _parse_while(self) -> While:
        line = self._advance().line
        self._expect("(")
        condition = self.parse_expression()
        self._expect(")")
        return While(condition, self.parse_block(), line=line)

    def _parse_for(self) -> For:
        line = self._advance().line
        self._expect("(")
        initializer = self._parse_simple_statement()
        self._expect(";")
        condition = self.parse_expression()
        self._expect(";")
        iterator = self._parse_simple_statement()
        self._expect(")")
        body = self.parse_block()
        return For(initializer, condition, iterator, body, line=line)

    def _parse_params(self) -> List[str]:
        self._expect("(")
        params = []
        if not self._check(")"):
            params.append(self._expect_identifier("parameter name"))
            while self._check(","):
                self._advance()
                params.append(self._expect_identifier("parameter name"))
        self._expect(")")
        return params

    def _parse_function(self) -> FunctionDecl:
        line = self._advance().line
        name = self._expect_identifier("function name")
        params = self._parse_params()
        return FunctionDecl(name, params, self.parse_block(), line=line)

    def _parse_return(self) -> Return:
        line = self._advance().line
        value = None
        if self.current is not None and not self._check(";") and not self._check("}"):
            value = self.parse_expression()
        self._end_simple_statement()
        return Return(value, line=line)

    def _parse_throw(self) -> Throw:
        line = self._advance().line
        value = self.parse_expression()
        self._end_simple_statement()
        return Throw(value, line=line)

    def _parse_import(self) -> Import:
        line = self._advance().line
        module = self._expect_identifier("module name")
        self._expect(";")
        return Import(module, line=line)

    def _parse_try(self) -> TryCatchFinally:
        line = self._advance().line
        try_block = self.parse_block()
        catch_var = None
        catch_block = None
        finally_block = None
        if self._check("catch"):
            self._advance()
            self._expect("(")
            catch_var = self._expect_identifier("exception variable")
            self._expect(")")
            catch_block = self.parse_block()
        if self._check("finally"):
            self._advance()
            finally_block = self.parse_block()
        if catch_block is None and finally_block is None:
            raise ParseError("'catch' or 'finally'", self.current)
        return TryCatchFinally(try_block, catch_var, catch_block, finally_block, line=line)

    def _parse_class(self) -> ClassDecl:
        line = self._advance().line
        name = self._expect_identifier("class name")
        base_name = None
        if self._check("extends"):
            self._advance()
            base_name = self._expect_identifier("base class name")
        interfaces = []
        if self._check("implements"):
            self._advance()
            interfaces.append(self._expect_identifier("interface name"))
            while self._check(","):
                self._advance()
                interfaces.append(self._expect_identifier("interface name"))
        self._expect("{")
        members = []
        while self.current is not None and not self._check("}"):
            members.append(self._parse_class_member())
        self._expect("}")
        return ClassDecl(name, base_name, members, interfaces, line=line)

    def _parse_class_member(self):
        line = self._line()
        access = "private"
        if self.current is not None and self.current.text in ACCESS_MODIFIERS:
            access = self._advance().text
        is_virtual = is_override = False
        if self._check("virtual"):
            self._advance()
            is_virtual = True
        elif self._check("override"):
            self._advance()
            is_override = True
        if self._check("function"):
            self._advance()
            name = self._expect_identifier("method name")
            params = self._parse_params()
            body = self.parse_block()
            return MethodDecl(name, params, body, access, is_virtual, is_override, line=line)
        name = self._expect_identifier("field name")
        initializer = None
        if self.current is not None and self.current.kind is TokenKind.ASSIGN:
            self._advance()
            initializer = self.parse_expression()
        self._expect(";")
        return FieldDecl(name, access, initializer, line=line)

    def _parse_interface(self) -> InterfaceDecl:
        line = self._advance().line
        name = self._expect_identifier("interface name")
        self._expect("{")
        methods = []
        while self.current is not None and not self._check("}"):
            sig_line = self._line()
            if self.current.text in ACCESS_MODIFIERS:
                self._advance()
            self._expect("function")
            method = self._expect_identifier("method name")
            params = self._parse_params()
            self._end_simple_statement()
            methods.append(MethodSignature(method, params, line=sig_line))
        self._expect("}")
        return InterfaceDecl(name, methods, line=line)

    # -----------------------------------------------------------------
    # Expressions, lowest precedence first
    # -----------------------------------------------------------------

    def parse_expression(self) -> Expression:
        return self._parse_logical_or()

    def _binary_chain(self, operators, operand) -> Expression:
        left = operand()
        while self.current is not None and self.current.kind is not TokenKind.STRING and self.current.text in operators:
            op_token = self._advance()
            right = operand()
            left = BinaryOp(op_token.text, left, right, line=op_token.line)
        return left

    def _parse_logical_or(self) -> Expression:
        return self._binary_chain(("||",), self._parse_logical_and)

    def _parse_logical_and(self) -> Expression:
        return self._binary_chain(("&&",), self._parse_equality)

    def _parse_equality(self) -> Expression:
        return self._binary_chain(("==", "!="), self._parse_relational)

    def _parse_relational(self) -> Expression:
        return self._binary_chain(("<", ">", "<=", ">="), self._parse_additive)

    def _parse_additive(self) -> Expression:
        return self._binary_chain(("+", "-"), self._parse_multiplicative)

    def _parse_multiplicative(self) -> Expression:
        return self._binary_chain(("*", "/", "%"), self._parse_unary)

    def _parse_unary(self) -> Expression:
        tok = self.current
        if tok is not None and tok.kind in (TokenKind.OPERATOR, TokenKind.LOGICAL) and tok.text in ("-", "+", "!"):
            self._advance()
            return UnaryOp(tok.text, self._parse_unary(), line=tok.line)
        return self._parse_postfix(self._parse_primary())

    def _parse_arguments(self) -> List[Expression]:
        self._expect("(")
        args = []
        if not self._check(")"):
            args.append(self.parse_expression())
            while self._check(","):
                self._advance()
                args.append(self.parse_expression())
        self._expect(")")
        return args

    def _parse_postfix(self, expr: Expression) -> Expression:
        while self._check("."):
            dot = self._advance()
            member = self._expect_identifier("member name")
            expr = MemberAccess(expr, member, line=dot.line)
            if self._check("("):
                expr = MethodCall(expr, self._parse_arguments(), line=dot.line)
        return expr

    def _parse_primary(self) -> Expression:
        tok = self.current
        if tok is None:
            raise ParseError("an expression", None)
        match tok.kind:
            case TokenKind.NUMBER:
                self._advance()
                return NumberLiteral(float(tok.text), line=tok.line)
            case TokenKind.STRING:
                self._advance()
                return StringLiteral(unescape(tok.text), line=tok.line)
            case TokenKind.IDENTIFIER:
                nxt = self._peek()
                if nxt is not None and nxt.kind is TokenKind.LPAREN:
                    self._advance()
                    return Call(tok.text, self._parse_arguments(), line=tok.line)
                self._advance()
                return Variable(tok.text, line=tok.line)
            case TokenKind.LPAREN:
                self._advance()
                expr = self.parse_expression()
                self._expect(")")
                return expr
            case TokenKind.KEYWORD:
                return self._parse_keyword_primary(tok)
        raise ParseError("an expression", tok)

    def _parse_keyword_primary(self, tok: Token) -> Expression:
        match tok.text:
            case "true" | "false":
                self._advance()
                return BooleanLiteral(tok.text == "true", line=tok.line)
            case "null":
                self._advance()
                return NullLiteral(line=tok.line)
            case "this":
                self._advance()
                return Variable("this", line=tok.line)
            case "new":
                self._advance()
                class_name = self._expect_identifier("class name")
                if self._check("("):
                    self._advance()
                    self._expect(")")
                return New(class_name, line=tok.line)
            case "super":
                self._advance()
                self._expect(".")
                method = self._expect_identifier("method name")
                return SuperCall(method, self._parse_arguments(), line=tok.line)
        raise ParseError("an expression", tok)


def parse(source: str) -> Program:
    """Lexes and parses a complete source string."""
    return Parser(tokenize(source)).parse_program()
