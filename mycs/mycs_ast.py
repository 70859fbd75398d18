"""
AST node types produced by the parser and consumed by the interpreter.

Nodes are plain dataclasses. Every node owns its children; `line` records
where the node started and is ignored by equality so trees can be compared
structurally in tests.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass
class Node:
    pass


# =================================================================
# Expressions
# =================================================================

@dataclass
class Expression(Node):
    pass


@dataclass
class NumberLiteral(Expression):
    value: float
    line: int = field(default=0, compare=False)


@dataclass
class StringLiteral(Expression):
    value: str
    line: int = field(default=0, compare=False)


@dataclass
class BooleanLiteral(Expression):
    value: bool
    line: int = field(default=0, compare=False)


@dataclass
class NullLiteral(Expression):
    line: int = field(default=0, compare=False)


@dataclass
class Variable(Expression):
    """A name lookup; `this` is a Variable too, bound in method scopes."""
    name: str
    line: int = field(default=0, compare=False)


@dataclass
class UnaryOp(Expression):
    op: str
    operand: Expression
    line: int = field(default=0, compare=False)


@dataclass
class BinaryOp(Expression):
    op: str
    left: Expression
    right: Expression
    line: int = field(default=0, compare=False)


@dataclass
class Call(Expression):
    """A call of a free function or built-in by name: `name(args)`."""
    name: str
    args: List[Expression]
    line: int = field(default=0, compare=False)


@dataclass
class New(Expression):
    class_name: str
    line: int = field(default=0, compare=False)


@dataclass
class MemberAccess(Expression):
    target: Expression
    member: str
    line: int = field(default=0, compare=False)


@dataclass
class MethodCall(Expression):
    """Calls whatever `target` evaluates to; normally a MemberAccess yielding a bound method."""
    target: Expression
    args: List[Expression]
    line: int = field(default=0, compare=False)


@dataclass
class SuperCall(Expression):
    method: str
    args: List[Expression]
    line: int = field(default=0, compare=False)


# =================================================================
# Statements
# =================================================================

@dataclass
class Statement(Node):
    pass


@dataclass
class Block(Statement):
    statements: List[Statement]
    line: int = field(default=0, compare=False)


@dataclass
class Program(Statement):
    statements: List[Statement]
    line: int = field(default=0, compare=False)


@dataclass
class Assignment(Statement):
    name: str
    value: Expression
    line: int = field(default=0, compare=False)


@dataclass
class MemberAssignment(Statement):
    target: Expression
    member: str
    value: Expression
    line: int = field(default=0, compare=False)


@dataclass
class ExpressionStatement(Statement):
    expression: Expression
    line: int = field(default=0, compare=False)


@dataclass
class If(Statement):
    condition: Expression
    then_branch: Block
    else_branch: Optional[Block] = None
    line: int = field(default=0, compare=False)


@dataclass
class While(Statement):
    condition: Expression
    body: Block
    line: int = field(default=0, compare=False)


@dataclass
class For(Statement):
    initializer: Statement
    condition: Expression
    iterator: Statement
    body: Block
    line: int = field(default=0, compare=False)


@dataclass
class Break(Statement):
    line: int = field(default=0, compare=False)


@dataclass
class Continue(Statement):
    line: int = field(default=0, compare=False)


@dataclass
class FunctionDecl(Statement):
    name: str
    params: List[str]
    body: Block
    line: int = field(default=0, compare=False)


@dataclass
class Return(Statement):
    value: Optional[Expression] = None
    line: int = field(default=0, compare=False)


@dataclass
class Print(Statement):
    value: Expression
    line: int = field(default=0, compare=False)


@dataclass
class FieldDecl(Node):
    name: str
    access: str = "private"
    initializer: Optional[Expression] = None
    line: int = field(default=0, compare=False)


@dataclass
class MethodDecl(Node):
    name: str
    params: List[str]
    body: Block
    access: str = "private"
    is_virtual: bool = False
    is_override: bool = False
    line: int = field(default=0, compare=False)


ClassMember = Union[FieldDecl, MethodDecl]


@dataclass
class ClassDecl(Statement):
    name: str
    base_name: Optional[str]
    members: List[ClassMember]
    interfaces: List[str] = field(default_factory=list)
    line: int = field(default=0, compare=False)


@dataclass
class MethodSignature(Node):
    name: str
    params: List[str]
    line: int = field(default=0, compare=False)


@dataclass
class InterfaceDecl(Statement):
    name: str
    methods: List[MethodSignature]
    line: int = field(default=0, compare=False)


@dataclass
class TryCatchFinally(Statement):
    try_block: Block
    catch_var: Optional[str] = None
    catch_block: Optional[Block] = None
    finally_block: Optional[Block] = None
    line: int = field(default=0, compare=False)


@dataclass
class Throw(Statement):
    value: Expression
    line: int = field(default=0, compare=False)


@dataclass
class Import(Statement):
    module: str
    line: int = field(default=0, compare=False)
