"""
The MYCS tree-walking interpreter.

Statements execute to an Outcome (Normal, Returning, Breaking, Continuing or
Raised); expressions evaluate to a value, or to a Raised outcome that every
enclosing expression hands back unchanged. Host-level faults are ordinary
Python exceptions (RuntimeFault) and bypass the language's try/catch.

All state lives in the ExecutionContext passed to every call, so a single
Interpreter can serve any number of independent contexts.
"""
import math
from pathlib import Path
from typing import Any, List, Optional, Union

from mycs.mycs_ast import (
    Node, Program, Block, Assignment, MemberAssignment, ExpressionStatement,
    If, While, For, Break, Continue, FunctionDecl, Return, Print,
    ClassDecl, FieldDecl, MethodDecl, InterfaceDecl, TryCatchFinally, Throw, Import,
    Expression, NumberLiteral, StringLiteral, BooleanLiteral, NullLiteral,
    Variable, UnaryOp, BinaryOp, Call, New, MemberAccess, MethodCall, SuperCall,
)
from mycs.mycs_datatypes import (
    ExecutionContext, ClassDefinition, FieldMember, MethodMember, MemberKind,
    ObjectInstance, BoundMethod, NOT_FOUND,
    Outcome, Normal, Breaking, Continuing, Returning, Raised, NORMAL, BREAK, CONTINUE,
)
from mycs.mycs_errors import (
    RuntimeFault, UndefinedVariableError, UndefinedFunctionError,
    UndefinedMemberError, UndefinedInterfaceError, InterfaceError, ArgumentCountError,
    ImportFault, debug,
)
from mycs.mycs_lexer import Lexer
from mycs.mycs_parser import Parser
from mycs.mycs_printer import to_text
from mycs.mycs_stdlib import StdLib, to_number

EXTENSION = ".mycs"


def is_truthy(value: Any) -> bool:
    match value:
        case bool():
            return value
        case int() | float():
            return value != 0
        case None:
            return False
    return True


def _divide(a: float, b: float) -> float:
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _modulo(a: float, b: float) -> float:
    # Truncated remainder, like IEEE fmod; x % 0 and inf % y are NaN.
    try:
        return math.fmod(a, b)
    except ValueError:
        return math.nan


def _equals(left: Any, right: Any) -> bool:
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    reference_types = (ObjectInstance, BoundMethod, list)
    if isinstance(left, reference_types) or isinstance(right, reference_types):
        return left is right
    if left is None or right is None:
        return left is right
    return to_number(left, "==") == to_number(right, "==")


def binary_operation(op: str, left: Any, right: Any) -> Any:
    """Applies a non-short-circuit binary operator to two evaluated operands."""
    if op == "+" and (isinstance(left, str) or isinstance(right, str)):
        return to_text(left) + to_text(right)
    if op == "==":
        return _equals(left, right)
    if op == "!=":
        return not _equals(left, right)
    a = to_number(left, op)
    b = to_number(right, op)
    match op:
        case "+":
            return a + b
        case "-":
            return a - b
        case "*":
            return a * b
        case "/":
            return _divide(a, b)
        case "%":
            return _modulo(a, b)
        case "<":
            return a < b
        case ">":
            return a > b
        case "<=":
            return a <= b
        case ">=":
            return a >= b
    raise RuntimeFault(f"Unknown operator: {op}")


class Interpreter:
    """Executes MYCS programs against an ExecutionContext."""

    def __init__(self, stdlib: Optional[StdLib] = None):
        self.stdlib = stdlib or StdLib()

    # =================================================================
    # Statements
    # =================================================================

    def execute_program(self, program: Program, ctx: ExecutionContext) -> Outcome:
        """Runs a whole program. Returns Normal, Returning (early exit) or Raised (uncaught)."""
        outcome = self.execute_block(program.statements, ctx)
        if isinstance(outcome, (Breaking, Continuing)):
            raise RuntimeFault("'break' or 'continue' outside of a loop")
        return outcome

    def execute_block(self, statements: List[Node], ctx: ExecutionContext) -> Outcome:
        for statement in statements:
            outcome = self.execute(statement, ctx)
            if not isinstance(outcome, Normal):
                return outcome
        return NORMAL

    def execute(self, node: Node, ctx: ExecutionContext) -> Outcome:
        try:
            return self._execute(node, ctx)
        except RuntimeFault as fault:
            if fault.line is None:
                fault.line = getattr(node, "line", None) or None
            raise

    def _execute(self, node: Node, ctx: ExecutionContext) -> Outcome:
        match node:
            case Block() | Program():
                return self.execute_block(node.statements, ctx)

            case Assignment():
                value = self.evaluate(node.value, ctx)
                if isinstance(value, Raised):
                    return value
                self.assign(node.name, value, ctx)
                return NORMAL

            case MemberAssignment():
                return self._assign_member(node, ctx)

            case ExpressionStatement():
                value = self.evaluate(node.expression, ctx)
                return value if isinstance(value, Raised) else NORMAL

            case Print():
                value = self.evaluate(node.value, ctx)
                if isinstance(value, Raised):
                    return value
                ctx.out.write(to_text(value) + "\n")
                return NORMAL

            case If():
                condition = self.evaluate(node.condition, ctx)
                if isinstance(condition, Raised):
                    return condition
                if is_truthy(condition):
                    return self.execute(node.then_branch, ctx)
                if node.else_branch is not None:
                    return self.execute(node.else_branch, ctx)
                return NORMAL

            case While():
                return self._execute_while(node, ctx)

            case For():
                return self._execute_for(node, ctx)

            case Break():
                return BREAK

            case Continue():
                return CONTINUE

            case FunctionDecl():
                ctx.functions[node.name] = node
                return NORMAL

            case Return():
                value = None
                if node.value is not None:
                    value = self.evaluate(node.value, ctx)
                    if isinstance(value, Raised):
                        return value
                return Returning(value)

            case ClassDecl():
                self._define_class(node, ctx)
                return NORMAL

            case InterfaceDecl():
                ctx.interfaces[node.name] = node
                return NORMAL

            case TryCatchFinally():
                return self._execute_try(node, ctx)

            case Throw():
                value = self.evaluate(node.value, ctx)
                if isinstance(value, Raised):
                    return value
                debug(f"Throwing {to_text(value)!r} from {ctx.call_stack or ['<top>']}")
                return Raised(value, tuple(ctx.call_stack))

            case Import():
                return self._execute_import(node, ctx)

        raise RuntimeFault(f"Unknown statement type: {type(node).__name__}")

    def assign(self, name: str, value: Any, ctx: ExecutionContext):
        if ctx.locals is not None:
            debug(f"Assigning local variable: {name}")
            ctx.locals[name] = value
        else:
            debug(f"Assigning global variable: {name}")
            ctx.globals[name] = value

    def lookup(self, name: str, ctx: ExecutionContext, line: Optional[int] = None) -> Any:
        if ctx.locals is not None and name in ctx.locals:
            return ctx.locals[name]
        if name in ctx.globals:
            return ctx.globals[name]
        raise UndefinedVariableError(name, line)

    def _execute_while(self, node: While, ctx: ExecutionContext) -> Outcome:
        while True:
            condition = self.evaluate(node.condition, ctx)
            if isinstance(condition, Raised):
                return condition
            if not is_truthy(condition):
                return NORMAL
            outcome = self.execute(node.body, ctx)
            if isinstance(outcome, Breaking):
                return NORMAL
            if not isinstance(outcome, (Normal, Continuing)):
                return outcome

    def _execute_for(self, node: For, ctx: ExecutionContext) -> Outcome:
        outcome = self.execute(node.initializer, ctx)
        if not isinstance(outcome, Normal):
            return outcome
        while True:
            condition = self.evaluate(node.condition, ctx)
            if isinstance(condition, Raised):
                return condition
            if not is_truthy(condition):
                return NORMAL
            outcome = self.execute(node.body, ctx)
            if isinstance(outcome, Breaking):
                return NORMAL
            if not isinstance(outcome, (Normal, Continuing)):
                return outcome
            # The iterator runs after `continue` too.
            step = self.execute(node.iterator, ctx)
            if not isinstance(step, Normal):
                return step

    def _execute_try(self, node: TryCatchFinally, ctx: ExecutionContext) -> Outcome:
        outcome = self.execute(node.try_block, ctx)
        if isinstance(outcome, Raised) and node.catch_block is not None:
            debug(f"Caught {to_text(outcome.value)!r} into '{node.catch_var}'")
            self.assign(node.catch_var, outcome.value, ctx)
            outcome = self.execute(node.catch_block, ctx)
        if node.finally_block is not None:
            final = self.execute(node.finally_block, ctx)
            if not isinstance(final, Normal):
                return final
        return outcome

    def _execute_import(self, node: Import, ctx: ExecutionContext) -> Outcome:
        path = (Path(ctx.import_dir) / f"{node.module}{EXTENSION}").resolve()
        if not path.is_file():
            raise ImportFault(f"Module not found: {path.name}", node.line)
        key = str(path)
        if key in ctx.import_stack:
            chain = " -> ".join(Path(p).stem for p in ctx.import_stack + [key])
            raise ImportFault(f"Circular import: {chain}", node.line)
        debug(f"Importing module {node.module} from {key}")
        source = path.read_text(encoding="utf-8")
        program = Parser(Lexer().tokenize(source)).parse_program()

        # Modules run at top level: shared globals and registries, no local frame.
        saved = (ctx.locals, ctx.current_instance, ctx.current_class)
        ctx.locals = ctx.current_instance = ctx.current_class = None
        ctx.import_stack.append(key)
        try:
            outcome = self.execute_block(program.statements, ctx)
        finally:
            ctx.import_stack.pop()
            ctx.locals, ctx.current_instance, ctx.current_class = saved
        if isinstance(outcome, (Breaking, Continuing)):
            raise ImportFault(f"'break' or 'continue' outside of a loop in module {node.module}", node.line)
        if isinstance(outcome, Raised):
            return outcome
        return NORMAL

    # =================================================================
    # Classes and interfaces
    # =================================================================

    def _define_class(self, node: ClassDecl, ctx: ExecutionContext):
        if node.name in ctx.classes:
            raise RuntimeFault(f"Class already defined: {node.name}", node.line)
        base_index = None
        if node.base_name is not None:
            base_index = ctx.classes.lookup(node.base_name, node.line)

        definition = ClassDefinition(node.name, base_index, interfaces=list(node.interfaces))
        for member in node.members:
            match member:
                case FieldDecl():
                    definition.members[member.name] = FieldMember(member.name, member.access, member.initializer)
                case MethodDecl():
                    definition.members[member.name] = MethodMember(
                        member.name, member.access, member.params, member.body,
                        member.is_virtual, member.is_override,
                    )

        for interface_name in node.interfaces:
            self._check_interface(definition, interface_name, ctx, node.line)

        index = ctx.classes.define(definition)
        debug(f"Defined class '{node.name}' at index {index} (base={base_index})")

    def _check_interface(self, definition: ClassDefinition, interface_name: str,
                         ctx: ExecutionContext, line: Optional[int]):
        interface = ctx.interfaces.get(interface_name)
        if interface is None:
            raise UndefinedInterfaceError(interface_name, line)
        for signature in interface.methods:
            # Same rule as dispatch: a field anywhere on the chain hides every method.
            own = definition.members.get(signature.name)
            inherited = NOT_FOUND
            if definition.base_index is not None:
                inherited = ctx.classes.resolve(definition.base_index, signature.name)
            if isinstance(own, FieldMember) or inherited.kind is MemberKind.FIELD:
                method = None
            elif isinstance(own, MethodMember):
                method = own
            else:
                method = inherited.member
            if method is None or len(method.params) != len(signature.params):
                raise InterfaceError(
                    f"Class {definition.name} does not implement "
                    f"{interface_name}.{signature.name}/{len(signature.params)}",
                    line,
                )

    def instantiate(self, node: New, ctx: ExecutionContext) -> Union[ObjectInstance, Raised]:
        index = ctx.classes.lookup(node.class_name, node.line)
        instance = ObjectInstance(index, ctx.classes[index].name)
        debug(f"Creating new object of class '{instance.class_name}'")

        saved = (ctx.locals, ctx.current_instance, ctx.current_class)
        ctx.locals = {"this": instance}
        ctx.current_instance = instance
        try:
            # Most-base class first so derived initializers overwrite inherited ones.
            for cls_index in reversed(ctx.classes.chain(index)):
                ctx.current_class = cls_index
                for member in ctx.classes[cls_index].members.values():
                    if not isinstance(member, FieldMember):
                        continue
                    value = None
                    if member.initializer is not None:
                        value = self.evaluate(member.initializer, ctx)
                        if isinstance(value, Raised):
                            return value
                    instance.fields[member.name] = value
        finally:
            ctx.locals, ctx.current_instance, ctx.current_class = saved
        return instance

    def _assign_member(self, node: MemberAssignment, ctx: ExecutionContext) -> Outcome:
        target = self.evaluate(node.target, ctx)
        if isinstance(target, Raised):
            return target
        value = self.evaluate(node.value, ctx)
        if isinstance(value, Raised):
            return value
        if not isinstance(target, ObjectInstance):
            raise RuntimeFault(f"Member assignment on a non-object: {to_text(target)}.{node.member}", node.line)
        resolution = ctx.classes.resolve(target.class_index, node.member)
        if resolution.kind is not MemberKind.FIELD:
            raise UndefinedMemberError(target.class_name, node.member, node.line)
        target.fields[node.member] = value
        return NORMAL

    # =================================================================
    # Expressions
    # =================================================================

    def evaluate(self, node: Expression, ctx: ExecutionContext) -> Any:
        match node:
            case NumberLiteral() | StringLiteral() | BooleanLiteral():
                return node.value

            case NullLiteral():
                return None

            case Variable():
                return self.lookup(node.name, ctx, node.line)

            case UnaryOp():
                operand = self.evaluate(node.operand, ctx)
                if isinstance(operand, Raised):
                    return operand
                match node.op:
                    case "-":
                        return -to_number(operand, "unary -")
                    case "+":
                        return to_number(operand, "unary +")
                    case "!":
                        return not is_truthy(operand)
                raise RuntimeFault(f"Unknown unary operator: {node.op}", node.line)

            case BinaryOp():
                return self._evaluate_binary(node, ctx)

            case Call():
                return self._call_function(node, ctx)

            case New():
                return self.instantiate(node, ctx)

            case MemberAccess():
                return self._access_member(node, ctx)

            case MethodCall():
                target = self.evaluate(node.target, ctx)
                if isinstance(target, Raised):
                    return target
                if not isinstance(target, BoundMethod):
                    raise RuntimeFault(f"Invalid method call: {to_text(target)} is not a method", node.line)
                args = self._evaluate_args(node.args, ctx)
                if isinstance(args, Raised):
                    return args
                return self.call_bound_method(target, args, ctx, node.line)

            case SuperCall():
                return self._call_super(node, ctx)

        raise RuntimeFault(f"Unknown expression type: {type(node).__name__}")

    def _evaluate_args(self, nodes: List[Expression], ctx: ExecutionContext) -> Union[List[Any], Raised]:
        values = []
        for arg in nodes:
            value = self.evaluate(arg, ctx)
            if isinstance(value, Raised):
                return value
            values.append(value)
        return values

    def _evaluate_binary(self, node: BinaryOp, ctx: ExecutionContext) -> Any:
        left = self.evaluate(node.left, ctx)
        if isinstance(left, Raised):
            return left
        if node.op in ("&&", "||"):
            if node.op == "&&" and not is_truthy(left):
                return False
            if node.op == "||" and is_truthy(left):
                return True
            right = self.evaluate(node.right, ctx)
            if isinstance(right, Raised):
                return right
            return is_truthy(right)
        right = self.evaluate(node.right, ctx)
        if isinstance(right, Raised):
            return right
        return binary_operation(node.op, left, right)

    def _access_member(self, node: MemberAccess, ctx: ExecutionContext) -> Any:
        target = self.evaluate(node.target, ctx)
        if isinstance(target, Raised):
            return target
        if not isinstance(target, ObjectInstance):
            raise RuntimeFault(f"Member access on a non-object: {to_text(target)}.{node.member}", node.line)
        resolution = ctx.classes.resolve(target.class_index, node.member)
        match resolution.kind:
            case MemberKind.FIELD:
                return target.fields.get(node.member)
            case MemberKind.METHOD:
                return BoundMethod(target, node.member)
        raise UndefinedMemberError(target.class_name, node.member, node.line)

    # =================================================================
    # Calls
    # =================================================================

    def _call_function(self, node: Call, ctx: ExecutionContext) -> Any:
        is_builtin = node.name in self.stdlib
        function = None if is_builtin else ctx.functions.get(node.name)
        if not is_builtin and function is None:
            raise UndefinedFunctionError(node.name, node.line)
        args = self._evaluate_args(node.args, ctx)
        if isinstance(args, Raised):
            return args
        if is_builtin:
            return self.stdlib.call(node.name, ctx, args, node.line)
        return self._invoke(node.name, function.params, function.body, args, ctx, line=node.line)

    def call_bound_method(self, bound: BoundMethod, args: List[Any], ctx: ExecutionContext,
                          line: Optional[int] = None) -> Any:
        instance = bound.instance
        resolution = ctx.classes.resolve(instance.class_index, bound.name)
        if resolution.kind is not MemberKind.METHOD:
            raise UndefinedMemberError(instance.class_name, bound.name, line)
        method = resolution.member
        debug(f"Calling method '{bound.name}' on object of class '{instance.class_name}' with {len(args)} args")
        return self._invoke(bound.name, method.params, method.body, args, ctx,
                            instance=instance, owner=resolution.owner, line=line)

    def _call_super(self, node: SuperCall, ctx: ExecutionContext) -> Any:
        instance = ctx.current_instance
        if instance is None or ctx.current_class is None:
            raise RuntimeFault("'super' can only be used inside a method", node.line)
        current = ctx.classes[ctx.current_class]
        if current.base_index is None:
            raise RuntimeFault(f"Class {current.name} has no base class", node.line)
        resolution = ctx.classes.find_method(current.base_index, node.method)
        if resolution.kind is not MemberKind.METHOD:
            raise UndefinedMemberError(ctx.classes[current.base_index].name, node.method, node.line)
        args = self._evaluate_args(node.args, ctx)
        if isinstance(args, Raised):
            return args
        method = resolution.member
        return self._invoke(f"super.{node.method}", method.params, method.body, args, ctx,
                            instance=instance, owner=resolution.owner, line=node.line)

    def _invoke(self, label: str, params: List[str], body: Block, args: List[Any], ctx: ExecutionContext,
                instance: Optional[ObjectInstance] = None, owner: Optional[int] = None,
                line: Optional[int] = None) -> Any:
        """Runs a function or method body in a fresh local scope and unwraps its outcome."""
        if len(params) != len(args):
            raise ArgumentCountError(label, len(params), len(args), line)
        scope = dict(zip(params, args))
        if instance is not None:
            scope["this"] = instance

        saved = (ctx.locals, ctx.current_instance, ctx.current_class)
        ctx.locals = scope
        ctx.current_instance = instance
        ctx.current_class = owner
        ctx.call_stack.append(label)
        try:
            outcome = self.execute(body, ctx)
            if isinstance(outcome, (Breaking, Continuing)):
                raise RuntimeFault(f"'break' or 'continue' outside of a loop in {label}", line)
        except RuntimeFault as fault:
            fault.capture(ctx.call_stack)
            raise
        except RecursionError as overflow:
            if not hasattr(overflow, "mycs_trace"):
                overflow.mycs_trace = list(ctx.call_stack)
            raise
        finally:
            ctx.call_stack.pop()
            ctx.locals, ctx.current_instance, ctx.current_class = saved

        match outcome:
            case Returning():
                return outcome.value
            case Raised():
                return outcome
        return None
