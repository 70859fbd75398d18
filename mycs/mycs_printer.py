"""
Formats MYCS runtime values into their textual form.
"""
import math

from mycs.mycs_datatypes import ObjectInstance, BoundMethod, ClassDefinition


class Printer:
    """Produces the text `print` writes and `+` concatenates."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format a value."""
        handler = self._handlers.get(type(obj))
        if handler is None:
            if isinstance(obj, ObjectInstance):
                handler = self._pformat_instance
            else:
                handler = lambda o, l: str(o)
        return handler(obj, level)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            float: self._pformat_number,
            int: self._pformat_number,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
            list: self._pformat_list,
            ObjectInstance: self._pformat_instance,
            BoundMethod: self._pformat_bound_method,
            ClassDefinition: self._pformat_class,
        }

    def _pformat_str(self, obj, level):
        # Strings print raw at top level and quoted inside containers.
        if level == 0:
            return obj
        escaped = obj.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'

    def _pformat_number(self, obj, level):
        value = float(obj)
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < 1e15:
            return str(int(value))
        return repr(value)

    def _pformat_bool(self, obj, level):
        return "true" if obj else "false"

    def _pformat_none(self, obj, level):
        return "null"

    def _pformat_list(self, obj, level):
        return "[" + ", ".join(self.pformat(item, level + 1) for item in obj) + "]"

    def _pformat_instance(self, obj, level):
        return f"<{obj.class_name} object>"

    def _pformat_bound_method(self, obj, level):
        return f"<method {obj.instance.class_name}.{obj.name}>"

    def _pformat_class(self, obj, level):
        return f"<class {obj.name}>"


_default_printer = Printer()


def to_text(value) -> str:
    return _default_printer.pformat(value)
